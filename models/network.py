import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class SynergyLevel(str, Enum):
    """Per-connection quality of the link between two nodes."""
    STANDARD = "standard"
    GOOD = "good"
    EXCELLENT = "excellent"


class IntegrationLevel(str, Enum):
    """How deeply the connected systems are merged. Applies to the whole network."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    FULL = "full"


def sanitized_effective_value(value: float, active_rate: float) -> float:
    """
    value x active_rate, kept finite and non-negative.

    Negative or non-finite values count as 0 and the active rate is clamped
    into [0, 1] (NaN counts as 0).
    """
    if not math.isfinite(value) or value < 0:
        value = 0.0
    if math.isnan(active_rate):
        active_rate = 0.0
    active_rate = min(max(active_rate, 0.0), 1.0)
    return float(value * active_rate)


@dataclass(frozen=True)
class FlowNode:
    """
    A participant in the network (a service, a user group, a location...).

    Only ``value`` and ``active_rate`` take part in valuation; the remaining
    attributes are carried for display.
    """
    id: str
    value: float
    active_rate: float = 1.0
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    value_label: Optional[str] = None

    @property
    def effective_value(self) -> float:
        return sanitized_effective_value(self.value, self.active_rate)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "value": self.value,
            "value_label": self.value_label,
            "active_rate": self.active_rate,
        }


@dataclass(frozen=True)
class Connection:
    """
    Undirected link between two nodes. ``source_id``/``target_id`` only
    record which side the link was drawn from.
    """
    id: str
    source_id: str
    target_id: str
    synergy: Union[SynergyLevel, str] = SynergyLevel.STANDARD

    def __post_init__(self):
        # Unknown levels raise ValueError here
        object.__setattr__(self, "synergy", SynergyLevel(self.synergy))

    @property
    def endpoints(self) -> Tuple[str, str]:
        return self.source_id, self.target_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "synergy": self.synergy.value,
        }


@dataclass(frozen=True)
class NetworkValue:
    standalone_value: float
    connected_value: float
    multiplier: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "standalone_value": self.standalone_value,
            "connected_value": self.connected_value,
            "multiplier": self.multiplier,
        }


@dataclass(frozen=True)
class GroupValuation:
    """Valuation of one connected group of nodes."""
    node_ids: List[str]
    total_effective_value: float
    connection_count: int
    average_synergy: float
    value: float
    is_connected: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "is_connected", self.connection_count > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_ids": list(self.node_ids),
            "total_effective_value": self.total_effective_value,
            "connection_count": self.connection_count,
            "average_synergy": self.average_synergy,
            "value": self.value,
            "is_connected": self.is_connected,
        }
