from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI
from pydantic import BaseModel, Field
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from api.network_value_api import NetworkValueAPI
from models.base import Base
from models.network import IntegrationLevel, SynergyLevel


DATABASE_URL = os.getenv("NETWORK_VALUE_DB_URL", "sqlite:///network_value.db")
LOG_LEVEL = os.getenv("NETWORK_VALUE_LOG_LEVEL", "INFO")

_engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)


def init_db() -> None:
    Base.metadata.create_all(bind=_engine)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


class NodeIn(BaseModel):
    id: str
    value: float
    active_rate: float = 1.0
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    value_label: Optional[str] = None


class ConnectionIn(BaseModel):
    id: str
    source_id: str
    target_id: str
    synergy: SynergyLevel = SynergyLevel.STANDARD


class NetworkValueRequest(BaseModel):
    nodes: List[NodeIn] = Field(default_factory=list)
    connections: List[ConnectionIn] = Field(default_factory=list)
    integration_level: IntegrationLevel = IntegrationLevel.SIMPLE
    caller_identity: Optional[str] = None


class ConnectedGroupsRequest(BaseModel):
    nodes: List[NodeIn] = Field(default_factory=list)
    connections: List[ConnectionIn] = Field(default_factory=list)
    caller_identity: Optional[str] = None


class PresetValueRequest(BaseModel):
    integration_level: IntegrationLevel = IntegrationLevel.SIMPLE
    caller_identity: Optional[str] = None


class AuditQueryRequest(BaseModel):
    operation: Optional[str] = None
    since: Optional[datetime] = None
    limit: int = Field(default=50, ge=1, le=500)
    caller_identity: Optional[str] = None


@asynccontextmanager
async def lifespan(_: FastAPI):
    logging.basicConfig(level=LOG_LEVEL.upper())
    init_db()
    yield


app = FastAPI(
    title="Network Value API",
    version="1.0.0",
    description=(
        "Extended Metcalfe's Law valuation of node networks: connected groups, "
        "standalone and connected value, and the resulting network multiplier."
    ),
    lifespan=lifespan,
)


def _service(db: Session, caller_identity: Optional[str]) -> NetworkValueAPI:
    return NetworkValueAPI(session=db, caller_identity=caller_identity)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/v1/levels")
def list_levels(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"status": "ok", **_service(db, None).list_levels()}


@app.get("/v1/presets")
def list_presets(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return {"status": "ok", "presets": _service(db, None).list_presets()}


@app.post("/v1/network-value")
def compute_network_value(payload: NetworkValueRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    service = _service(db, payload.caller_identity)
    response = service.compute_network_value(
        nodes=[n.model_dump(mode="json") for n in payload.nodes],
        connections=[c.model_dump(mode="json") for c in payload.connections],
        integration_level=payload.integration_level,
    )
    return response.to_dict()


@app.post("/v1/connected-groups")
def compute_connected_groups(payload: ConnectedGroupsRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    service = _service(db, payload.caller_identity)
    response = service.compute_connected_groups(
        nodes=[n.model_dump(mode="json") for n in payload.nodes],
        connections=[c.model_dump(mode="json") for c in payload.connections],
    )
    return response.to_dict()


@app.post("/v1/presets/{preset_id}/network-value")
def evaluate_preset(preset_id: str, payload: PresetValueRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    service = _service(db, payload.caller_identity)
    response = service.evaluate_preset(preset_id=preset_id, integration_level=payload.integration_level)
    return response.to_dict()


@app.post("/v1/audit-log")
def query_audit_log(payload: AuditQueryRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    service = _service(db, payload.caller_identity)
    records = service.query_audit_log(operation=payload.operation, since=payload.since, limit=payload.limit)
    return {"status": "ok", "records": records}
