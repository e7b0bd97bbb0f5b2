"""Audit logging for resource operations (create, update, delete).

Each event is one JSON line in AUDIT_LOG_FILE, signed with HMAC-SHA256
over its canonical form when OKTA_AUDIT_SIGNING_KEY is available.
"""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Literal, Optional

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("OKTA_AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "resource-events.jsonl"
_default_secret_paths: list[Path] = [
    Path("/run/secrets/okta_audit_signing_key"),
    Path(".runtime/secrets/okta_audit_signing_key"),
]

EventType = Literal["create", "update", "delete"]


@dataclass(frozen=True)
class InvalidEvent:
    """An audit line that failed verification.

    Attributes:
        line: 1-based line number in the audit file
        resource_type: Terraform resource type of the event, if readable
        parent_id: Parent object the event mutated, if readable
        reason: Why verification failed
    """
    line: int
    resource_type: str
    parent_id: str
    reason: str


def _get_signing_key() -> bytes:
    """Get the audit signing key from environment or a secrets file (loaded lazily)."""
    key = os.environ.get("OKTA_AUDIT_SIGNING_KEY", "").strip()
    if key:
        return key.encode("utf-8")
    for path in _default_secret_paths:
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                continue
    return b""


def _prepare_log_file() -> Path:
    """Create the audit directory (0700) and return the log file path."""
    AUDIT_LOG_DIR.mkdir(mode=0o700, parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)
    return AUDIT_LOG_FILE


def _signature(event: dict[str, Any], key: bytes) -> str:
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_resource_event(
    event_type: EventType,
    resource_type: str,
    resource_id: str,
    *,
    parent_id: str = "",
    operator: str = "provider",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a resource event to the audit trail with timestamp and signature.

    Args:
        event_type: Operation performed (create, update, delete)
        resource_type: Terraform resource type
        resource_id: Resource ID (the collection member value)
        parent_id: ID of the parent object that was mutated
        operator: Who performed the operation
        details: Additional context (outcome, error message...)
        success: Whether the operation succeeded
    """
    log_file = _prepare_log_file()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "parent_id": parent_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    key = _get_signing_key()
    if key:
        event["signature"] = _signature(event, key)

    with log_file.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
    log_file.chmod(0o600)


def safe_log_resource_event(
    event_type: EventType,
    resource_type: str,
    resource_id: str,
    *,
    parent_id: str = "",
    operator: str = "provider",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a resource event, never raising.

    Audit failures must not fail the resource operation they describe.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_resource_event(
            event_type,
            resource_type,
            resource_id,
            parent_id=parent_id,
            operator=operator,
            details=details,
            success=success,
        )
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Failed to log %s event for %s %s: %s", event_type, resource_type, resource_id, e)
        return False


def _read_events() -> Iterator[tuple[int, Optional[dict]]]:
    # Yields (line number, event); event is None for lines that are not a JSON object
    if not AUDIT_LOG_FILE.exists():
        return
    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                event = None
            yield line_no, event if isinstance(event, dict) else None


def find_invalid_events() -> tuple[int, list[InvalidEvent]]:
    """Check every audit line against the current signing key.

    Returns:
        Tuple of (total_events, events that failed verification)
    """
    key = _get_signing_key()
    total = 0
    invalid: list[InvalidEvent] = []

    for line_no, event in _read_events():
        total += 1
        if event is None:
            invalid.append(InvalidEvent(line_no, "", "", "not a JSON object"))
            continue

        stored = event.pop("signature", "")
        if not stored:
            reason = "unsigned"
        elif not key:
            reason = "no signing key configured"
        elif not hmac.compare_digest(str(stored), _signature(event, key)):
            reason = "signature mismatch"
        else:
            continue
        invalid.append(InvalidEvent(
            line_no,
            str(event.get("resource_type", "")),
            str(event.get("parent_id", "")),
            reason,
        ))

    return total, invalid


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log, logging each failing line.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    total, invalid = find_invalid_events()
    for item in invalid:
        logger.warning("Audit line %d (%s on %s) failed verification: %s",
                       item.line, item.resource_type or "?", item.parent_id or "?", item.reason)
    return total, total - len(invalid)
