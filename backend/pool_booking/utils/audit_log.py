from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Literal, Optional

AuditAction = Literal[
    "reservation.created",
    "reservation.cancelled",
]

_audit_logger = logging.getLogger("audit")
_audit_logger.setLevel(logging.INFO)
if not _audit_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _audit_logger.addHandler(handler)
_audit_logger.propagate = False

_operation_id_ctx: ContextVar[str | None] = ContextVar("operation_id", default=None)


def new_operation_id() -> str:
    """Generate an operation id and bind it to the current context."""
    operation_id = uuid.uuid4().hex
    _operation_id_ctx.set(operation_id)
    return operation_id


def set_operation_id(operation_id: str | None) -> None:
    _operation_id_ctx.set(operation_id)


def get_operation_id() -> Optional[str]:
    return _operation_id_ctx.get()


def emit_audit_log(
    *,
    action: AuditAction,
    reservation_id: int,
    client_id: Optional[int],
    reservation_time: Optional[datetime],
    message: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit structured JSON audit log. Raises RuntimeError if logging fails."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "info",
        "action": action,
        "operation_id": get_operation_id(),
        "reservation_id": reservation_id,
        "client_id": client_id,
        "reservation_time": reservation_time.isoformat() if reservation_time is not None else None,
    }
    if message is not None:
        payload["message"] = message
    if extra:
        payload.update(extra)

    # Drop None values to keep the log compact.
    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        _audit_logger.info(json.dumps(compact_payload, ensure_ascii=True))
    except Exception as exc:
        raise RuntimeError("failed to emit audit log") from exc
