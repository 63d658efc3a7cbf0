from dataclasses import dataclass
from typing import Dict

from models.network import IntegrationLevel, SynergyLevel


@dataclass(frozen=True)
class SynergyConfig:
    """Display label and default coefficient for one synergy level."""
    level: SynergyLevel
    label: str
    coefficient: float

    def to_dict(self):
        return {
            "level": self.level.value,
            "label": self.label,
            "coefficient": self.coefficient,
        }


@dataclass(frozen=True)
class IntegrationConfig:
    """Display label, description and default coefficient for one integration level."""
    level: IntegrationLevel
    label: str
    description: str
    coefficient: float

    def to_dict(self):
        return {
            "level": self.level.value,
            "label": self.label,
            "description": self.description,
            "coefficient": self.coefficient,
        }


SYNERGY_CONFIGS: Dict[SynergyLevel, SynergyConfig] = {
    SynergyLevel.STANDARD: SynergyConfig(SynergyLevel.STANDARD, "Standard", 1.0),
    SynergyLevel.GOOD: SynergyConfig(SynergyLevel.GOOD, "Good", 1.2),
    SynergyLevel.EXCELLENT: SynergyConfig(SynergyLevel.EXCELLENT, "Excellent", 1.5),
}

INTEGRATION_CONFIGS: Dict[IntegrationLevel, IntegrationConfig] = {
    IntegrationLevel.SIMPLE: IntegrationConfig(
        IntegrationLevel.SIMPLE, "Simple integration", "Cross-promotion only", 1.0
    ),
    IntegrationLevel.MODERATE: IntegrationConfig(
        IntegrationLevel.MODERATE, "Moderate integration", "Shared authentication and payment", 1.3
    ),
    IntegrationLevel.FULL: IntegrationConfig(
        IntegrationLevel.FULL, "Full integration", "Fully merged systems", 1.5
    ),
}


def synergy_coefficient_table() -> Dict[SynergyLevel, float]:
    return {level: cfg.coefficient for level, cfg in SYNERGY_CONFIGS.items()}


def integration_coefficient_table() -> Dict[IntegrationLevel, float]:
    return {level: cfg.coefficient for level, cfg in INTEGRATION_CONFIGS.items()}
