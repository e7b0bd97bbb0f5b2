"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["okta.apps.manage", "okta.authorizationServers.manage"]


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    # Priority 1: Read from /run/secrets
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)

    # Priority 2: Fallback to environment variable
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class ProviderConfig:
    """Provider configuration container."""
    # Org
    org_name: str
    base_url: str = "okta.com"

    # Auth (exactly one of api_token, access_token, private_key)
    api_token: str = ""
    access_token: str = ""
    client_id: str = ""
    private_key: str = ""
    private_key_id: str = ""
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))

    # Behavior
    request_timeout: float = 30.0
    lock_timeout: Optional[float] = None
    parallelism: int = 10
    log_level: str = "INFO"

    # Audit
    audit_enabled: bool = False

    @property
    def org_url(self) -> str:
        return f"https://{self.org_name}.{self.base_url}"

    @property
    def auth_method(self) -> str:
        """Name of the configured authentication method.

        Raises:
            RuntimeError: If none or more than one method is configured
        """
        configured = [
            name for name, value in (
                ("api_token", self.api_token),
                ("access_token", self.access_token),
                ("private_key", self.private_key),
            ) if value
        ]
        if not configured:
            raise RuntimeError(
                "No Okta credentials configured. "
                "Set OKTA_API_TOKEN, OKTA_ACCESS_TOKEN or OKTA_API_PRIVATE_KEY."
            )
        if len(configured) > 1:
            raise RuntimeError(f"Conflicting Okta credentials: {', '.join(configured)}. Configure only one.")
        if configured[0] == "private_key":
            if not self.client_id:
                raise RuntimeError("OKTA_API_CLIENT_ID is required with OKTA_API_PRIVATE_KEY.")
            if not self.scopes:
                raise RuntimeError("OKTA_API_SCOPES must list at least one scope with OKTA_API_PRIVATE_KEY.")
        return configured[0]

    @property
    def private_key_resolved(self) -> str:
        """PEM text of the private key; the setting may be the PEM itself or a file path."""
        if not self.private_key or self.private_key.lstrip().startswith("-----BEGIN"):
            return self.private_key
        path = Path(self.private_key).expanduser()
        if not path.is_file():
            raise RuntimeError(f"OKTA_API_PRIVATE_KEY is neither a PEM key nor a readable file: {path}")
        return path.read_text()


def _get_float(var_name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise RuntimeError(f"Environment variable {var_name} must be positive, got {raw!r}")
    return value


def load_settings() -> ProviderConfig:
    """Load provider settings from environment and /run/secrets."""
    org_name = os.environ.get("OKTA_ORG_NAME", "").strip()
    if not org_name:
        raise RuntimeError("Environment variable OKTA_ORG_NAME is required.")
    base_url = os.environ.get("OKTA_BASE_URL", "okta.com").strip() or "okta.com"

    # ─────────────────────────────────────────────────────────────────────────
    # Credentials: /run/secrets > environment variables
    # ─────────────────────────────────────────────────────────────────────────
    api_token = _load_secret_from_file("okta_api_token", "OKTA_API_TOKEN") or ""
    access_token = _load_secret_from_file("okta_access_token", "OKTA_ACCESS_TOKEN") or ""
    private_key = _load_secret_from_file("okta_api_private_key", "OKTA_API_PRIVATE_KEY") or ""
    client_id = os.environ.get("OKTA_API_CLIENT_ID", "")
    private_key_id = os.environ.get("OKTA_API_PRIVATE_KEY_ID", "")

    scopes = [
        scope.strip()
        for scope in os.environ.get("OKTA_API_SCOPES", ",".join(DEFAULT_SCOPES)).split(",")
        if scope.strip()
    ]

    parallelism_raw = os.environ.get("OKTA_PARALLELISM", "10").strip()
    if not parallelism_raw.isdigit() or int(parallelism_raw) < 1:
        raise RuntimeError(f"Environment variable OKTA_PARALLELISM must be a positive integer, got {parallelism_raw!r}")

    log_level = os.environ.get("OKTA_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise RuntimeError(f"Unknown OKTA_LOG_LEVEL {log_level!r}")

    config = ProviderConfig(
        org_name=org_name,
        base_url=base_url,
        api_token=api_token,
        access_token=access_token,
        client_id=client_id,
        private_key=private_key,
        private_key_id=private_key_id,
        scopes=scopes,
        request_timeout=_get_float("OKTA_REQUEST_TIMEOUT", 30.0),
        lock_timeout=_get_float("OKTA_LOCK_TIMEOUT", None),
        parallelism=int(parallelism_raw),
        log_level=log_level,
        audit_enabled=os.environ.get("OKTA_AUDIT_ENABLED", "false").lower() == "true",
    )

    # Fail fast on missing or conflicting credentials
    auth_method = config.auth_method
    logger.info("Org=%s; auth=%s", config.org_url, auth_method)
    return config
