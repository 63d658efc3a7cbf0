"""
Canned example networks.

Each preset is a ready-made snapshot of nodes and connections modelled on a
well-known platform, handy for demos and as realistic fixtures.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from models.network import Connection, FlowNode, SynergyLevel


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    icon: str
    nodes: Tuple[FlowNode, ...]
    connections: Tuple[Connection, ...]

    def to_dict(self, include_graph: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "node_count": len(self.nodes),
            "connection_count": len(self.connections),
        }
        if include_graph:
            payload["nodes"] = [n.to_dict() for n in self.nodes]
            payload["connections"] = [c.to_dict() for c in self.connections]
        return payload


def _link(conn_id: str, source: str, target: str, synergy: SynergyLevel) -> Connection:
    return Connection(id=conn_id, source_id=source, target_id=target, synergy=synergy)


LINE_PRESET = Preset(
    id="line",
    name="LINE",
    description="Network effects of a messaging platform",
    icon="💬",
    nodes=(
        FlowNode("line-users", 95_000_000, 0.7, "Users", "👥", "#06C755", "Users"),
        FlowNode("line-groups", 50_000_000, 0.6, "Groups", "💬", "#00B900", "Groups"),
        FlowNode("line-stickers", 1_000_000, 0.4, "Stickers", "🎨", "#FFE033", "Creators"),
        FlowNode("line-pay", 40_000_000, 0.3, "LINE Pay", "💳", "#1DB446", "Registered users"),
    ),
    connections=(
        _link("c1", "line-users", "line-groups", SynergyLevel.EXCELLENT),
        _link("c2", "line-users", "line-stickers", SynergyLevel.GOOD),
        _link("c3", "line-groups", "line-pay", SynergyLevel.GOOD),
        _link("c4", "line-stickers", "line-pay", SynergyLevel.STANDARD),
    ),
)

MERCARI_PRESET = Preset(
    id="mercari",
    name="Mercari",
    description="Two-sided marketplace effects of a flea-market app",
    icon="🛒",
    nodes=(
        FlowNode("mercari-sellers", 20_000_000, 0.5, "Sellers", "🏪", "#FF0211", "Sellers"),
        FlowNode("mercari-buyers", 23_000_000, 0.6, "Buyers", "🛍️", "#4A90D9", "Buyers"),
        FlowNode("mercari-listings", 2_500_000_000, 0.8, "Listings", "📦", "#FF6B6B", "Total listings"),
        FlowNode("mercari-logistics", 170_000, 0.9, "Mercari Shipping", "🚚", "#00C2B8", "Drop-off points"),
        FlowNode("mercari-payment", 15_000_000, 0.4, "Merpay", "💰", "#FF4655", "Registered users"),
    ),
    connections=(
        _link("c1", "mercari-sellers", "mercari-listings", SynergyLevel.EXCELLENT),
        _link("c2", "mercari-buyers", "mercari-listings", SynergyLevel.EXCELLENT),
        _link("c3", "mercari-listings", "mercari-logistics", SynergyLevel.GOOD),
        _link("c4", "mercari-listings", "mercari-payment", SynergyLevel.GOOD),
        _link("c5", "mercari-sellers", "mercari-buyers", SynergyLevel.EXCELLENT),
    ),
)

UBER_PRESET = Preset(
    id="uber",
    name="Uber",
    description="Two-sided marketplace effects of ride sharing",
    icon="🚗",
    nodes=(
        FlowNode("uber-drivers", 5_000_000, 0.6, "Drivers", "🚘", "#000000", "Drivers"),
        FlowNode("uber-riders", 130_000_000, 0.4, "Riders", "🧑", "#276EF1", "Users"),
        FlowNode("uber-eats", 900_000, 0.7, "Uber Eats", "🍔", "#06C167", "Merchants"),
        FlowNode("uber-merchants", 900_000, 0.65, "Restaurants", "🍽️", "#FF5A5F", "Merchants"),
    ),
    connections=(
        _link("c1", "uber-drivers", "uber-riders", SynergyLevel.EXCELLENT),
        _link("c2", "uber-drivers", "uber-eats", SynergyLevel.EXCELLENT),
        _link("c3", "uber-riders", "uber-eats", SynergyLevel.GOOD),
        _link("c4", "uber-eats", "uber-merchants", SynergyLevel.EXCELLENT),
    ),
)

PHONE_PRESET = Preset(
    id="phone",
    name="Phone network",
    description="The classic Metcalfe's Law example",
    icon="📞",
    nodes=(
        FlowNode("phone-tokyo", 14_000_000, 0.8, "Tokyo", "📍", "#E53935", "Population"),
        FlowNode("phone-osaka", 8_800_000, 0.75, "Osaka", "🏙️", "#1E88E5", "Population"),
        FlowNode("phone-nagoya", 2_300_000, 0.7, "Nagoya", "🌆", "#43A047", "Population"),
        FlowNode("phone-fukuoka", 1_600_000, 0.65, "Fukuoka", "🌉", "#FB8C00", "Population"),
    ),
    connections=(
        _link("c1", "phone-tokyo", "phone-osaka", SynergyLevel.EXCELLENT),
        _link("c2", "phone-tokyo", "phone-nagoya", SynergyLevel.GOOD),
        _link("c3", "phone-osaka", "phone-nagoya", SynergyLevel.GOOD),
        _link("c4", "phone-osaka", "phone-fukuoka", SynergyLevel.GOOD),
        _link("c5", "phone-nagoya", "phone-fukuoka", SynergyLevel.STANDARD),
        _link("c6", "phone-tokyo", "phone-fukuoka", SynergyLevel.STANDARD),
    ),
)

PRESETS: List[Preset] = [LINE_PRESET, MERCARI_PRESET, UBER_PRESET, PHONE_PRESET]


def get_preset(preset_id: str) -> Preset:
    for preset in PRESETS:
        if preset.id == preset_id:
            return preset
    raise KeyError(f"Unknown preset: {preset_id}")
