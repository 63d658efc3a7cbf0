"""
Algorithm Version Registry
===========================
Maps each audited operation to its versioned valuation algorithm, so that
every audit record names the exact algorithm that produced it and an older
version can be pinned when reproducing historical results.

The latest non-deprecated version whose ``effective_from`` has passed is the
active one.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class AlgorithmVersionDescriptor:
    version: str
    description: str
    effective_from: datetime = field(default_factory=datetime.utcnow)
    deprecated_at: Optional[datetime] = None


_REGISTRY: Dict[str, List[AlgorithmVersionDescriptor]] = {
    "compute_network_value": [
        AlgorithmVersionDescriptor(
            version="1.0.0",
            description=(
                "Extended Metcalfe valuation: squared effective value per connected "
                "group, scaled by mean synergy and the integration coefficient."
            ),
        ),
    ],
    "compute_connected_groups": [
        AlgorithmVersionDescriptor(
            version="1.0.0",
            description="Union-find partition of nodes into connected groups.",
        ),
    ],
    "evaluate_preset": [
        AlgorithmVersionDescriptor(
            version="1.0.0",
            description="Network valuation of a built-in example network.",
        ),
    ],
}


def get_current_version(operation: str) -> AlgorithmVersionDescriptor:
    versions = _REGISTRY.get(operation)
    if not versions:
        raise KeyError(f"Unknown operation: {operation}")

    now = datetime.utcnow()
    candidates = [
        v for v in versions
        if v.effective_from <= now and v.deprecated_at is None
    ]
    if not candidates:
        raise RuntimeError(
            f"No active algorithm version for operation '{operation}'"
        )
    return max(candidates, key=lambda v: v.effective_from)


def register_version(
    operation: str,
    version: str,
    description: str,
    effective_from: Optional[datetime] = None,
) -> AlgorithmVersionDescriptor:
    """
    Append a new version for an operation. A version with a future
    *effective_from* stays inactive until then.
    """
    desc = AlgorithmVersionDescriptor(
        version=version,
        description=description,
        effective_from=effective_from or datetime.utcnow(),
    )
    _REGISTRY.setdefault(operation, []).append(desc)
    return desc


def deprecate_version(operation: str, version: str) -> None:
    versions = _REGISTRY.get(operation, [])
    for i, v in enumerate(versions):
        if v.version == version and v.deprecated_at is None:
            _REGISTRY[operation][i] = AlgorithmVersionDescriptor(
                version=v.version,
                description=v.description,
                effective_from=v.effective_from,
                deprecated_at=datetime.utcnow(),
            )
            return
    raise KeyError(
        f"Active version '{version}' not found for operation '{operation}'"
    )


def list_versions(operation: str) -> List[AlgorithmVersionDescriptor]:
    """Every version descriptor (active and deprecated) for an operation."""
    return list(_REGISTRY.get(operation, []))
