"""
Append-only ledger of audited valuation calls. Each row keeps the submitted
network and the result as JSON, so any past valuation can be replayed against
the algorithm version recorded with it.
"""

from datetime import datetime
import json
import uuid
from typing import Any, List, Optional

from sqlalchemy import Column, String, Float, DateTime, Text
from sqlalchemy.orm import Session

from models.base import Base


def _loads(raw: Optional[str]) -> Any:
    return json.loads(raw) if raw else None


class AuditLogEntry(Base):
    __tablename__ = "valuation_audit_log"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    operation = Column(String, nullable=False)
    algorithm_version = Column(String, nullable=False)
    request_payload = Column(Text, nullable=False)
    response_payload = Column(Text, nullable=False)  # "null" for failed calls
    duration_ms = Column(Float, nullable=False)
    caller_identity = Column(String, nullable=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    status = Column(String, nullable=False, default="success")  # success | error
    error_detail = Column(Text, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "operation": self.operation,
            "algorithm_version": self.algorithm_version,
            "request_payload": _loads(self.request_payload),
            "response_payload": _loads(self.response_payload),
            "duration_ms": self.duration_ms,
            "caller_identity": self.caller_identity,
            "status": self.status,
            "error_detail": self.error_detail,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self) -> str:
        return f"<AuditLogEntry(op={self.operation}, v={self.algorithm_version}, status={self.status})>"


class AuditLogger:
    def __init__(self, session: Session):
        self.session = session

    def log(
        self,
        operation: str,
        algorithm_version: str,
        request_payload: Any,
        response_payload: Any,
        duration_ms: float,
        caller_identity: Optional[str] = None,
        status: str = "success",
        error_detail: Optional[str] = None,
    ) -> AuditLogEntry:
        """Stages an entry on the session; the caller commits."""
        entry = AuditLogEntry(
            id=str(uuid.uuid4()),
            operation=operation,
            algorithm_version=algorithm_version,
            request_payload=json.dumps(request_payload, default=str),
            response_payload=json.dumps(response_payload, default=str),
            duration_ms=duration_ms,
            caller_identity=caller_identity,
            status=status,
            error_detail=error_detail,
        )
        self.session.add(entry)
        return entry

    def query_log(
        self,
        operation: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[AuditLogEntry]:
        """Newest entries first, optionally filtered by operation and start time."""
        q = self.session.query(AuditLogEntry)
        if operation:
            q = q.filter(AuditLogEntry.operation == operation)
        if since:
            q = q.filter(AuditLogEntry.timestamp >= since)
        return q.order_by(AuditLogEntry.timestamp.desc()).limit(limit).all()
