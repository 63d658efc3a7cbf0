"""
Network Value API Layer
=======================
Audited, version-tracked facade over the Network Value Engine. **Every
audited method**:

  1. Resolves the current algorithm version for the operation.
  2. Builds node/connection snapshots from the request and delegates to
     the engine.
  3. Returns a structured payload plus a human-readable summary.
  4. Writes an AuditLogEntry (success or error) before returning.

Audited operations
~~~~~~~~~~~~~~~~~~
  - ``compute_network_value``    – standalone/connected value and multiplier,
                                   with a per-group breakdown.
  - ``compute_connected_groups`` – partition of the nodes into connected
                                   groups.
  - ``evaluate_preset``          – valuation of a built-in example network.

``list_levels``, ``list_presets`` and ``query_audit_log`` are plain lookups
and are not audited.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy.orm import Session

from engine.connectivity import find_connected_groups, unique_nodes
from engine.formatting import format_value
from engine.network_value_engine import NetworkValueEngine
from models.levels import INTEGRATION_CONFIGS, SYNERGY_CONFIGS
from models.network import Connection, FlowNode, IntegrationLevel
from models.presets import PRESETS, get_preset

from api.audit_log import AuditLogger
from api.algorithm_registry import get_current_version
from api.response_envelope import (
    ApiResponse,
    success_envelope,
    error_envelope,
)

logger = logging.getLogger(__name__)

NodeInput = Union[FlowNode, Mapping[str, Any]]
ConnectionInput = Union[Connection, Mapping[str, Any]]


def _parse_node(raw: NodeInput) -> FlowNode:
    if isinstance(raw, FlowNode):
        return raw
    return FlowNode(
        id=str(raw["id"]),
        value=float(raw.get("value", 0.0)),
        active_rate=float(raw.get("active_rate", 1.0)),
        name=raw.get("name"),
        icon=raw.get("icon"),
        color=raw.get("color"),
        value_label=raw.get("value_label"),
    )


def _parse_connection(raw: ConnectionInput) -> Connection:
    if isinstance(raw, Connection):
        return raw
    return Connection(
        id=str(raw["id"]),
        source_id=str(raw["source_id"]),
        target_id=str(raw["target_id"]),
        synergy=raw.get("synergy", "standard"),
    )


def _as_payload(items: Iterable[Any]) -> List[Any]:
    payload: List[Any] = []
    for x in items:
        if hasattr(x, "to_dict"):
            payload.append(x.to_dict())
        elif isinstance(x, Mapping):
            payload.append(dict(x))
        else:
            payload.append(repr(x))
    return payload


def _skipped_connection_ids(nodes: List[FlowNode], connections: List[Connection]) -> List[str]:
    known = {n.id for n in nodes}
    return [
        c.id for c in connections
        if c.source_id not in known or c.target_id not in known or c.source_id == c.target_id
    ]


class NetworkValueAPI:
    """
    Unified API surface for network valuation.

    Audited methods return an :class:`ApiResponse`; failures never raise,
    they come back as error envelopes with their own audit entry.
    """

    def __init__(
        self,
        session: Session,
        caller_identity: Optional[str] = None,
        engine: Optional[NetworkValueEngine] = None,
    ):
        self.session = session
        self.caller_identity = caller_identity
        self._engine = engine or NetworkValueEngine()
        self._audit = AuditLogger(session)

    # =====================================================================
    #  1.  compute_network_value
    # =====================================================================
    def compute_network_value(
        self,
        nodes: List[NodeInput],
        connections: Optional[List[ConnectionInput]] = None,
        integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
    ) -> ApiResponse:
        """
        Value a network snapshot.

        Returns
        -------
        ApiResponse
            ``data`` carries ``standalone_value``, ``connected_value``,
            ``multiplier``, their display strings, the integration
            coefficient applied, the per-group breakdown and the ids of any
            connections that were ignored.
        """
        op = "compute_network_value"
        ver = get_current_version(op)
        t0 = time.perf_counter()
        connections = connections or []
        request_payload: Dict[str, Any] = {
            "integration_level": getattr(integration_level, "value", integration_level),
        }

        try:
            request_payload["nodes"] = _as_payload(nodes)
            request_payload["connections"] = _as_payload(connections)
            parsed_nodes = [_parse_node(n) for n in nodes]
            parsed_connections = [_parse_connection(c) for c in connections]
            data = self._valuation_payload(parsed_nodes, parsed_connections, integration_level)
            summary = self._valuation_summary(data)

            duration = (time.perf_counter() - t0) * 1000
            audit = self._audit.log(
                operation=op,
                algorithm_version=ver.version,
                request_payload=request_payload,
                response_payload=data,
                duration_ms=duration,
                caller_identity=self.caller_identity,
            )
            self.session.commit()

            return success_envelope(
                operation=op,
                api_version=ver.version,
                data=data,
                summary=summary,
                audit_id=audit.id,
            )

        except Exception as exc:
            logger.exception("%s failed", op)
            return self._error(op, ver.version, request_payload, t0, exc)

    # =====================================================================
    #  2.  compute_connected_groups
    # =====================================================================
    def compute_connected_groups(
        self,
        nodes: List[NodeInput],
        connections: Optional[List[ConnectionInput]] = None,
    ) -> ApiResponse:
        """
        Partition the nodes into connected groups.

        ``data["groups"]`` lists node ids per group; isolated nodes appear as
        singleton groups.
        """
        op = "compute_connected_groups"
        ver = get_current_version(op)
        t0 = time.perf_counter()
        connections = connections or []
        request_payload: Dict[str, Any] = {}

        try:
            request_payload["nodes"] = _as_payload(nodes)
            request_payload["connections"] = _as_payload(connections)
            parsed_nodes = unique_nodes(_parse_node(n) for n in nodes)
            parsed_connections = [_parse_connection(c) for c in connections]
            groups = find_connected_groups(parsed_nodes, parsed_connections)

            data = {
                "groups": groups,
                "group_count": len(groups),
                "singleton_count": sum(1 for g in groups if len(g) == 1),
                "skipped_connection_ids": _skipped_connection_ids(parsed_nodes, parsed_connections),
            }
            largest = max((len(g) for g in groups), default=0)
            summary = (
                f"{len(parsed_nodes)} node(s) form {len(groups)} connected group(s); "
                f"the largest group has {largest} node(s) and "
                f"{data['singleton_count']} node(s) are unconnected."
            )

            duration = (time.perf_counter() - t0) * 1000
            audit = self._audit.log(
                operation=op,
                algorithm_version=ver.version,
                request_payload=request_payload,
                response_payload=data,
                duration_ms=duration,
                caller_identity=self.caller_identity,
            )
            self.session.commit()

            return success_envelope(
                operation=op,
                api_version=ver.version,
                data=data,
                summary=summary,
                audit_id=audit.id,
            )

        except Exception as exc:
            logger.exception("%s failed", op)
            return self._error(op, ver.version, request_payload, t0, exc)

    # =====================================================================
    #  3.  evaluate_preset
    # =====================================================================
    def evaluate_preset(
        self,
        preset_id: str,
        integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
    ) -> ApiResponse:
        """Value one of the built-in example networks."""
        op = "evaluate_preset"
        ver = get_current_version(op)
        t0 = time.perf_counter()
        request_payload = {
            "preset_id": preset_id,
            "integration_level": getattr(integration_level, "value", integration_level),
        }

        try:
            preset = get_preset(preset_id)
            data = self._valuation_payload(list(preset.nodes), list(preset.connections), integration_level)
            data["preset"] = preset.to_dict(include_graph=False)
            summary = f"Preset '{preset.name}': " + self._valuation_summary(data)

            duration = (time.perf_counter() - t0) * 1000
            audit = self._audit.log(
                operation=op,
                algorithm_version=ver.version,
                request_payload=request_payload,
                response_payload=data,
                duration_ms=duration,
                caller_identity=self.caller_identity,
            )
            self.session.commit()

            return success_envelope(
                operation=op,
                api_version=ver.version,
                data=data,
                summary=summary,
                audit_id=audit.id,
            )

        except Exception as exc:
            logger.exception("%s failed", op)
            return self._error(op, ver.version, request_payload, t0, exc)

    # =====================================================================
    #  Lookups (not audited)
    # =====================================================================
    def list_levels(self) -> Dict[str, Any]:
        """Recognised synergy and integration levels with the coefficients this engine uses."""
        synergy = []
        for level, cfg in SYNERGY_CONFIGS.items():
            entry = cfg.to_dict()
            entry["coefficient"] = self._engine.synergy_coefficients[level]
            synergy.append(entry)
        integration = []
        for level, cfg in INTEGRATION_CONFIGS.items():
            entry = cfg.to_dict()
            entry["coefficient"] = self._engine.integration_coefficients[level]
            integration.append(entry)
        return {"synergy_levels": synergy, "integration_levels": integration}

    def list_presets(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in PRESETS]

    def query_audit_log(
        self,
        operation: Optional[str] = None,
        since: Optional[datetime] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        entries = self._audit.query_log(operation=operation, since=since, limit=limit)
        return [e.to_dict() for e in entries]

    # =====================================================================
    #  Internals
    # =====================================================================
    def _valuation_payload(
        self,
        nodes: List[FlowNode],
        connections: List[Connection],
        integration_level: Union[IntegrationLevel, str],
    ) -> Dict[str, Any]:
        level = IntegrationLevel(integration_level)
        valued_nodes = unique_nodes(nodes)
        result, groups = self._engine.evaluate_network(valued_nodes, connections, level)

        data = result.to_dict()
        data.update({
            "integration_level": level.value,
            "integration_coefficient": self._engine.integration_coefficient(level),
            "node_count": len(valued_nodes),
            "connection_count": len(connections),
            "groups": [g.to_dict() for g in groups],
            "skipped_connection_ids": _skipped_connection_ids(nodes, connections),
            "display": {
                "standalone_value": format_value(result.standalone_value),
                "connected_value": format_value(result.connected_value),
                "multiplier": f"x{result.multiplier:.1f}",
            },
        })
        return data

    @staticmethod
    def _valuation_summary(data: Dict[str, Any]) -> str:
        connected_groups = sum(1 for g in data["groups"] if g["is_connected"])
        return (
            f"{data['node_count']} node(s) in {len(data['groups'])} group(s), "
            f"{connected_groups} of them connected. Standalone value "
            f"{data['display']['standalone_value']} grows to a connected value of "
            f"{data['display']['connected_value']} under '{data['integration_level']}' "
            f"integration (coefficient {data['integration_coefficient']}), a "
            f"{data['multiplier']:.2f}x network multiplier."
        )

    def _error(
        self,
        op: str,
        version: str,
        request_payload: Dict[str, Any],
        t0: float,
        exc: Exception,
    ) -> ApiResponse:
        self.session.rollback()
        duration = (time.perf_counter() - t0) * 1000
        audit = self._audit.log(
            operation=op,
            algorithm_version=version,
            request_payload=request_payload,
            response_payload=None,
            duration_ms=duration,
            caller_identity=self.caller_identity,
            status="error",
            error_detail=str(exc),
        )
        self.session.commit()
        return error_envelope(
            operation=op,
            api_version=version,
            error_message=str(exc),
            audit_id=audit.id,
        )
