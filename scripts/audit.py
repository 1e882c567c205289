"""Signed audit trail for user, role and permission administration.

Events are appended to a JSONL file, one object per line. When a signing key
is configured each event carries an HMAC-SHA256 ``signature`` computed over
its canonical JSON form (sorted keys, no whitespace), so edits to past lines
are detectable with ``verify_audit_log()``.

Run ``python -m scripts.audit`` to verify the current log.
"""

from __future__ import annotations
import argparse
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "admin-events.jsonl"

SIGNING_KEY_ENV = "AUDIT_LOG_SIGNING_KEY"
SIGNING_KEY_FILES = (
    Path("/run/secrets/audit_log_signing_key"),
    Path(".runtime/secrets/audit_log_signing_key"),
)

EventType = Literal[
    "user_provisioned", "user_provision_failed", "user_rollback_failed",
    "user_deleted", "user_roles_updated",
    "role_created", "role_updated", "role_deleted", "role_permissions_reconciled",
    "permissions_updated",
]


def _read_key_file(path: Path) -> bytes:
    try:
        return path.read_text(encoding="utf-8").strip().encode("utf-8")
    except OSError:
        return b""


def _signing_key() -> bytes:
    """Resolve the signing key on every call; secrets may be mounted after import.

    Order: AUDIT_LOG_SIGNING_KEY_FILE, AUDIT_LOG_SIGNING_KEY, mounted secret files.
    An empty key disables signing.
    """
    explicit = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if explicit and Path(explicit).is_file():
        return _read_key_file(Path(explicit))
    if SIGNING_KEY_ENV in os.environ:
        return os.environ[SIGNING_KEY_ENV].strip().encode("utf-8")
    for path in SIGNING_KEY_FILES:
        if path.is_file():
            return _read_key_file(path)
    return b""


def _sign(event: dict[str, Any], key: bytes) -> str:
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_event(
    event_type: EventType,
    subject: str,
    *,
    operator: str = "system",
    tenant: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append one administration event to the audit trail.

    Args:
        event_type: What happened (user_provisioned, role_deleted, ...)
        subject: Affected entity: user email, user id, role id or API identifier
        operator: Caller identity (token subject, CLI --operator, "system")
        tenant: Auth0 tenant domain
        details: Event specific context (role ids, permission names, error)
        success: False for failed operations

    Raises:
        OSError: If the log directory or file cannot be written
    """
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)

    event: dict[str, Any] = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "tenant": tenant,
        "subject": subject,
        "operator": operator,
        "success": success,
        "details": details or {},
    }
    key = _signing_key()
    if key:
        event["signature"] = _sign(event, key)

    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_event(event_type: EventType, subject: str, **kwargs: Any) -> bool:
    """``log_event`` for request-serving code: an audit failure never fails the operation.

    Returns:
        True if the event was written
    """
    try:
        log_event(event_type, subject, **kwargs)
    except Exception as exc:
        print(f"[audit] Warning: could not record {event_type} for {subject}: {exc}", file=sys.stderr)
        return False
    return True


def iter_events(path: Path | None = None) -> Iterator[tuple[int, dict[str, Any] | None]]:
    """Yield ``(line_number, event)`` pairs; ``event`` is None for unparseable lines."""
    path = path or AUDIT_LOG_FILE
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as handle:
        for number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                yield number, json.loads(line)
            except json.JSONDecodeError:
                yield number, None


def verify_audit_log(path: Path | None = None) -> tuple[int, int]:
    """Check every event signature with the current key.

    Returns:
        (total_events, valid_signatures); unsigned or unparseable events count as invalid
    """
    key = _signing_key()
    total = valid = 0
    for _, event in iter_events(path):
        total += 1
        if not event or not key:
            continue
        stored = event.pop("signature", "")
        if stored and hmac.compare_digest(stored, _sign(event, key)):
            valid += 1
    return total, valid


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify the signed administration audit log")
    parser.add_argument("--file", type=Path, default=None, help=f"Log file (default: {AUDIT_LOG_FILE})")
    args = parser.parse_args(argv)

    total, valid = verify_audit_log(args.file)
    print(f"Audit log: {valid}/{total} events with valid signatures")
    return 0 if total == valid else 1


if __name__ == "__main__":
    sys.exit(main())
