import json
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from core import FilterParseError, HierarchyError, OrderingInvariantViolation
from infrastructure.snapshot_parser import SnapshotError


def iso_timestamp() -> str:
    """UTC timestamp for structured CLI output."""
    return datetime.now(timezone.utc).isoformat()


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return str(value)


def structured_response(
    command: str,
    *,
    status: str = "OK",
    message: str = "",
    payload: Optional[Dict] = None,
    summary: Optional[str] = None,
    exit_code: int = 0,
) -> int:
    """Unified JSON response for every CLI command."""
    body: Dict[str, object] = {
        "command": command,
        "status": status,
        "message": message,
        "timestamp": iso_timestamp(),
        "payload": payload or {},
    }
    if summary:
        body["summary"] = summary
    print(json.dumps(body, ensure_ascii=False, indent=2, default=_json_default))
    return exit_code


def structured_error(command: str, message: str, *, payload: Optional[Dict] = None, status: str = "ERROR") -> int:
    """Short-hand for structured error responses."""
    return structured_response(command, status=status, message=message, payload=payload, exit_code=1)


def error_payload(exc: Exception) -> Dict[str, Any]:
    """Machine-readable details for the domain error types."""
    payload: Dict[str, Any] = {"error": type(exc).__name__}
    if isinstance(exc, FilterParseError):
        payload.update(exc.to_dict())
    elif isinstance(exc, OrderingInvariantViolation):
        payload.update({"before": exc.before, "after": exc.after})
    elif isinstance(exc, HierarchyError):
        payload.update({"task_id": exc.task_id, "type": exc.error_type, "details": exc.details})
    elif isinstance(exc, SnapshotError):
        payload["source"] = exc.source
    return payload


def exception_response(command: str, exc: Exception) -> int:
    message = exc.message if isinstance(exc, (FilterParseError, SnapshotError)) else str(exc)
    return structured_error(command, message, payload=error_payload(exc))


def validation_response(command: str, success: bool, message: str, payload: Optional[Dict] = None) -> int:
    body = payload.copy() if payload else {}
    body["mode"] = "validate-only"
    return structured_response(
        f"{command}.validate",
        status="OK" if success else "ERROR",
        message=message,
        payload=body,
        summary=message,
        exit_code=0 if success else 1,
    )


__all__ = [
    "iso_timestamp",
    "structured_response",
    "structured_error",
    "error_payload",
    "exception_response",
    "validation_response",
]
