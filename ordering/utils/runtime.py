"""Runtime environment helpers: dev-mode guard and the restaurant clock."""

import os
from datetime import datetime, timezone
from urllib.parse import urlparse
from typing import Optional, Set
from zoneinfo import ZoneInfo

_LOCAL_HOSTS: Set[str] = {"localhost", "127.0.0.1", "::1"}
DEFAULT_TIMEZONE = "America/Guatemala"


def _extract_hostname(url_value: str) -> Optional[str]:
    if not url_value or not url_value.strip():
        return None
    url_value = url_value.strip()
    candidate = url_value if "://" in url_value else f"http://{url_value}"
    return urlparse(candidate).hostname


def _allowed_dev_hosts() -> Set[str]:
    extra = os.getenv("DEV_MODE_ALLOWED_HOSTS", "")
    allowed = set(_LOCAL_HOSTS)
    allowed.update({host.strip().lower() for host in extra.split(",") if host.strip()})
    return allowed


def dev_mode_requested() -> bool:
    """Return True when DEV_MODE env var is set to a truthy value."""
    return os.getenv("DEV_MODE", "false").lower() == "true"


def dev_mode_active() -> bool:
    """Return True if dev mode is enabled and allowed; raise if misconfigured.

    Dev mode impersonates a staff superadmin, so it is only honoured when
    APP_BASE_URL points at a local host (or a host listed in
    DEV_MODE_ALLOWED_HOSTS), or when ALLOW_DEV_MODE=true is set explicitly.
    """
    if not dev_mode_requested():
        return False

    hostname = _extract_hostname(os.getenv("APP_BASE_URL", ""))
    allowed_hosts = _allowed_dev_hosts()
    if hostname:
        if hostname.lower() not in allowed_hosts:
            raise RuntimeError(
                "DEV_MODE=true is not permitted when APP_BASE_URL points to "
                f"'{hostname}'. Allowed hosts: {sorted(allowed_hosts)}"
            )
    elif os.getenv("ALLOW_DEV_MODE", "false").lower() != "true" and not os.getenv("PYTEST_CURRENT_TEST"):
        raise RuntimeError(
            "DEV_MODE=true requires APP_BASE_URL to be set to a localhost URL "
            "or ALLOW_DEV_MODE=true for non-local execution."
        )
    return True


def app_timezone() -> ZoneInfo:
    """Timezone used for schedules, promotion windows and order numbers."""
    return ZoneInfo(os.getenv("APP_TIMEZONE", DEFAULT_TIMEZONE))


def local_now() -> datetime:
    """Aware datetime in the restaurant timezone."""
    return datetime.now(app_timezone())


def to_local(moment: Optional[datetime]) -> datetime:
    """Normalize ``moment`` to the restaurant timezone; naive values are assumed local."""
    if moment is None:
        return local_now()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=app_timezone())
    return moment.astimezone(app_timezone())


def ensure_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from SQLite; convert aware ones."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)
