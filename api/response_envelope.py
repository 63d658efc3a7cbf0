"""
Uniform envelope for audited valuation responses. ``summary`` carries the
human-readable result description, or the error message when ``status`` is
``"error"``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


def _utc_stamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


@dataclass
class ApiResponse:
    operation: str
    api_version: str
    status: str  # "ok" | "error"
    data: Any
    summary: str
    audit_id: str
    timestamp: str = field(default_factory=_utc_stamp)
    metadata: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            key: getattr(self, key)
            for key in ("operation", "api_version", "status", "data", "summary", "audit_id", "timestamp")
        }
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload


def success_envelope(
    operation: str,
    api_version: str,
    data: Any,
    summary: str,
    audit_id: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> ApiResponse:
    return ApiResponse(operation, api_version, "ok", data, summary, audit_id, metadata=metadata)


def error_envelope(
    operation: str,
    api_version: str,
    error_message: str,
    audit_id: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> ApiResponse:
    return ApiResponse(operation, api_version, "error", None, error_message, audit_id, metadata=metadata)
