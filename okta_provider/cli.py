"""Command-line wrapper around the provider's resource adapters.

Lets operators create, delete and import collection members outside of
Terraform, or apply a YAML plan of many operations concurrently.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import yaml

from okta_provider import audit
from okta_provider.config.settings import load_settings
from okta_provider.core.okta.exceptions import OktaError
from okta_provider.provider import ProviderContext, build_provider
from okta_provider.resources import RESOURCE_TYPES, ResourceState

ACTIONS = ("create", "delete")


def _parse_assignments(pairs: list[str]) -> dict:
    attributes = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected key=value, got {pair!r}")
        attributes[key.strip()] = value
    return attributes


def _load_plan(path: Path) -> list[dict]:
    """Read a plan file: {"resources": [{"type": ..., "action": ..., <attributes>}]}."""
    with path.open(encoding="utf-8") as handle:
        document = yaml.safe_load(handle) or {}
    entries = document.get("resources") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"{path}: expected a top-level 'resources' list")

    plan = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: resources[{index}] must be a mapping")
        entry = dict(entry)
        type_name = entry.pop("type", None)
        action = entry.pop("action", "create")
        if type_name not in RESOURCE_TYPES:
            raise ValueError(f"{path}: resources[{index}]: unknown type {type_name!r}")
        if action not in ACTIONS:
            raise ValueError(f"{path}: resources[{index}]: action must be one of {', '.join(ACTIONS)}")
        config = RESOURCE_TYPES[type_name].schema.parse_config(entry)
        plan.append({"type": type_name, "action": action, "config": config})
    return plan


def run_operation(ctx: ProviderContext, type_name: str, action: str, config) -> ResourceState:
    """Run one create or delete and return the resulting state."""
    resource = ctx.resource(type_name)
    if action == "create":
        return resource.create(config)
    state = ResourceState.from_config(config)
    resource.delete(state)
    return state


def apply_plan(ctx: ProviderContext, plan: list[dict], parallelism: int) -> list[tuple[dict, Optional[str]]]:
    """Run every plan entry on a thread pool.

    Returns:
        (entry, error message or None) for each entry, in plan order
    """
    def _run(entry: dict) -> Optional[str]:
        # ValueError covers malformed parent documents and non-JSON bodies
        try:
            run_operation(ctx, entry["type"], entry["action"], entry["config"])
        except (OktaError, ValueError) as e:
            return str(e)
        return None

    with ThreadPoolExecutor(max_workers=parallelism) as executor:
        errors = list(executor.map(_run, plan))
    return list(zip(plan, errors))


def main(argv: Optional[list[str]] = None) -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Okta collection member helper")
    parser.add_argument("--log-level", default=None, help="Override OKTA_LOG_LEVEL")

    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("resources", help="List supported resource types")

    for action in ACTIONS:
        sp = sub.add_parser(action)
        sp.add_argument("--type", required=True, choices=sorted(RESOURCE_TYPES))
        sp.add_argument("--set", dest="attributes", action="append", default=[], metavar="KEY=VALUE")

    si = sub.add_parser("import", help="Parse an import ID into resource attributes")
    si.add_argument("--type", required=True, choices=sorted(RESOURCE_TYPES))
    si.add_argument("import_id")

    sa = sub.add_parser("apply", help="Apply a YAML plan of create/delete operations")
    sa.add_argument("--file", "-f", required=True, type=Path)
    sa.add_argument("--parallelism", type=int, default=None)

    sub.add_parser("audit-verify", help="Check the signatures of the audit log")

    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "resources":
        for type_name in sorted(RESOURCE_TYPES):
            schema = RESOURCE_TYPES[type_name].schema
            print(f"{type_name}\t{schema.import_hint}")
        return

    # Import needs no remote call, so no credentials are loaded for it.
    if args.cmd == "import":
        schema = RESOURCE_TYPES[args.type].schema
        try:
            state = schema.import_state(args.import_id)
        except ValueError as e:
            raise SystemExit(f"[import] {e}")
        print(json.dumps(schema.attributes(state)))
        return

    if args.cmd == "audit-verify":
        total, invalid = audit.find_invalid_events()
        for item in invalid:
            print(
                f"[audit] line {item.line}: {item.resource_type or '?'} on {item.parent_id or '?'}: {item.reason}",
                file=sys.stderr,
            )
        print(f"[audit] {total - len(invalid)}/{total} events verified ({audit.AUDIT_LOG_FILE})")
        if invalid:
            raise SystemExit(1)
        return

    try:
        settings = load_settings()
    except RuntimeError as e:
        raise SystemExit(f"[config] {e}")
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # Private-key auth fetches a token here, so credential problems surface now.
    try:
        ctx = build_provider(settings)
    except (RuntimeError, ValueError, OktaError) as e:
        raise SystemExit(f"[config] {e}")

    if args.cmd in ACTIONS:
        schema = RESOURCE_TYPES[args.type].schema
        try:
            config = schema.parse_config(_parse_assignments(args.attributes))
            state = run_operation(ctx, args.type, args.cmd, config)
        except (ValueError, OktaError) as e:
            raise SystemExit(f"[{args.cmd}] {e}")
        print(json.dumps(schema.attributes(state)))
        return

    if args.cmd == "apply":
        try:
            plan = _load_plan(args.file)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise SystemExit(f"[apply] {e}")
        results = apply_plan(ctx, plan, args.parallelism or settings.parallelism)
        failed = 0
        for entry, error in results:
            label = f"{entry['type']} {entry['config'].parent_id}/{entry['config'].value}"
            if error is None:
                print(f"[apply] {entry['action']} {label}: ok")
            else:
                failed += 1
                print(f"[apply] {entry['action']} {label}: FAILED: {error}", file=sys.stderr)
        print(f"[apply] {len(results) - failed} succeeded, {failed} failed")
        if failed:
            raise SystemExit(1)


if __name__ == "__main__":
    main()
