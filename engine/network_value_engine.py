import logging
import math
import sys
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar, Union

from models.levels import integration_coefficient_table, synergy_coefficient_table
from models.network import (
    Connection,
    FlowNode,
    GroupValuation,
    IntegrationLevel,
    NetworkValue,
    SynergyLevel,
)
from .connectivity import find_connected_groups, unique_nodes

logger = logging.getLogger(__name__)

LevelT = TypeVar("LevelT", SynergyLevel, IntegrationLevel)


def _capped(x: float) -> float:
    """Clamps overflowed results to the largest finite float."""
    return min(x, sys.float_info.max)


def _finite_sum(values: Iterable[float]) -> float:
    try:
        return _capped(math.fsum(values))
    except OverflowError:
        return sys.float_info.max


def _validated_table(
    level_type: Type[LevelT],
    table: Optional[Mapping[Union[LevelT, str], float]],
    defaults: Dict[LevelT, float],
) -> Dict[LevelT, float]:
    if table is None:
        return dict(defaults)

    resolved: Dict[LevelT, float] = {}
    for key, coefficient in table.items():
        level = level_type(key)  # unknown keys raise ValueError
        coefficient = float(coefficient)
        if not math.isfinite(coefficient) or coefficient < 0:
            raise ValueError(f"Coefficient for {level.value!r} must be finite and non-negative, got {coefficient}")
        resolved[level] = coefficient

    missing = [lvl.value for lvl in level_type if lvl not in resolved]
    if missing:
        raise ValueError(f"{level_type.__name__} table is missing coefficients for: {', '.join(missing)}")
    return resolved


class NetworkValueEngine:
    """
    Extended Metcalfe's Law valuation over a snapshot of nodes and connections.

    - Standalone value: sum of each node's squared effective value.
    - Connected value: for each connected group,
      (sum of effective values)^2 x average synergy x integration coefficient.
      Groups without an internal connection contribute their squared
      effective value with no bonus at all.
    - Multiplier: connected / standalone, or 1 when there is no standalone value.
    - Results that would overflow are capped at ``sys.float_info.max``, so all
      three outputs stay finite.

    The engine keeps no state between calls other than its coefficient tables.
    """

    def __init__(
        self,
        synergy_coefficients: Optional[Mapping[Union[SynergyLevel, str], float]] = None,
        integration_coefficients: Optional[Mapping[Union[IntegrationLevel, str], float]] = None,
    ):
        self.synergy_coefficients = _validated_table(
            SynergyLevel, synergy_coefficients, synergy_coefficient_table()
        )
        self.integration_coefficients = _validated_table(
            IntegrationLevel, integration_coefficients, integration_coefficient_table()
        )

    def effective_value(self, node: FlowNode) -> float:
        return node.effective_value

    def synergy_coefficient(self, synergy: Union[SynergyLevel, str]) -> float:
        return self.synergy_coefficients[SynergyLevel(synergy)]

    def integration_coefficient(self, level: Union[IntegrationLevel, str]) -> float:
        return self.integration_coefficients[IntegrationLevel(level)]

    def group_connections(self, group: Iterable[str], connections: Iterable[Connection]) -> List[Connection]:
        """Connections with both endpoints inside the group (self-loops excluded)."""
        members = set(group)
        return [
            c for c in connections
            if c.source_id in members and c.target_id in members and c.source_id != c.target_id
        ]

    def average_group_synergy(self, group: Iterable[str], connections: Iterable[Connection]) -> float:
        """Mean synergy coefficient over the group's internal connections, 1.0 if there are none."""
        internal = self.group_connections(group, connections)
        if not internal:
            return 1.0
        return _finite_sum(self.synergy_coefficient(c.synergy) for c in internal) / len(internal)

    def evaluate_groups(
        self,
        nodes: Sequence[FlowNode],
        connections: Sequence[Connection],
        integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
    ) -> List[GroupValuation]:
        integration_coeff = self.integration_coefficient(integration_level)
        nodes = unique_nodes(nodes)
        connections = list(connections)
        by_id = {n.id: n for n in nodes}

        valuations: List[GroupValuation] = []
        for group in find_connected_groups(nodes, connections):
            total_effective = _finite_sum(self.effective_value(by_id[node_id]) for node_id in group)
            internal = self.group_connections(group, connections)
            avg_synergy = self.average_group_synergy(group, internal)

            if internal:
                value = _capped(_capped(total_effective * total_effective) * avg_synergy * integration_coeff)
            else:
                # unconnected groups get neither synergy nor integration
                value = _capped(total_effective * total_effective)

            valuations.append(
                GroupValuation(
                    node_ids=group,
                    total_effective_value=total_effective,
                    connection_count=len(internal),
                    average_synergy=avg_synergy,
                    value=value,
                )
            )
        return valuations

    def evaluate_network(
        self,
        nodes: Sequence[FlowNode],
        connections: Sequence[Connection],
        integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
    ) -> Tuple[NetworkValue, List[GroupValuation]]:
        """Network value together with the per-group breakdown it was summed from."""
        level = IntegrationLevel(integration_level)
        nodes = unique_nodes(nodes)
        if not nodes:
            return NetworkValue(standalone_value=0.0, connected_value=0.0, multiplier=1.0), []

        standalone_value = _finite_sum(_capped(e * e) for e in map(self.effective_value, nodes))
        groups = self.evaluate_groups(nodes, connections, level)
        connected_value = _finite_sum(g.value for g in groups)
        multiplier = _capped(connected_value / standalone_value) if standalone_value > 0 else 1.0

        logger.debug(
            "Network value: %d nodes in %d groups, standalone=%.4g connected=%.4g multiplier=%.4f (%s)",
            len(nodes), len(groups), standalone_value, connected_value, multiplier, level.value,
        )
        result = NetworkValue(
            standalone_value=standalone_value,
            connected_value=connected_value,
            multiplier=multiplier,
        )
        return result, groups

    def compute_network_value(
        self,
        nodes: Sequence[FlowNode],
        connections: Sequence[Connection],
        integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
    ) -> NetworkValue:
        result, _ = self.evaluate_network(nodes, connections, integration_level)
        return result


_default_engine = NetworkValueEngine()


def compute_network_value(
    nodes: Sequence[FlowNode],
    connections: Sequence[Connection],
    integration_level: Union[IntegrationLevel, str] = IntegrationLevel.SIMPLE,
) -> NetworkValue:
    return _default_engine.compute_network_value(nodes, connections, integration_level)


def compute_connected_groups(nodes: Sequence[FlowNode], connections: Sequence[Connection]) -> List[List[str]]:
    return find_connected_groups(nodes, connections)
