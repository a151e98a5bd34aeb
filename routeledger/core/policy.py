"""
Routing policy.

A policy is immutable for the duration of a routing decision. Callers may
supply one per call or hold one per session.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from .canonical import canonical_json_bytes
from .errors import PolicyError


@dataclass(frozen=True)
class PolicyConfig:
    """
    Constraint parameters for routing.

    Fields:
        max_path_length: Maximum number of hops in a path (> 0)
        allowed_protocols: Protocol tags an edge may carry
        min_volume_threshold: Minimum event volume (unsigned)
        constraints: Named extra constraints, name -> parameters
    """
    max_path_length: int
    allowed_protocols: FrozenSet[str]
    min_volume_threshold: int = 0
    constraints: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.max_path_length, bool) or not isinstance(self.max_path_length, int) or self.max_path_length <= 0:
            raise PolicyError(f"max_path_length must be a positive integer, got {self.max_path_length!r}")
        if (
            isinstance(self.min_volume_threshold, bool)
            or not isinstance(self.min_volume_threshold, int)
            or self.min_volume_threshold < 0
        ):
            raise PolicyError(f"min_volume_threshold must be a non-negative integer, got {self.min_volume_threshold!r}")
        if isinstance(self.allowed_protocols, str):
            raise PolicyError("allowed_protocols must be a collection of tags, not a string")
        # Normalize so equal policies compare and encode identically
        object.__setattr__(self, "allowed_protocols", frozenset(self.allowed_protocols))
        object.__setattr__(self, "constraints", dict(self.constraints or {}))

    @classmethod
    def create(
        cls,
        max_path_length: int,
        allowed_protocols: Iterable[str],
        min_volume_threshold: int = 0,
        constraints: Optional[Mapping[str, Any]] = None,
    ) -> "PolicyConfig":
        return cls(
            max_path_length=max_path_length,
            allowed_protocols=frozenset(allowed_protocols),
            min_volume_threshold=min_volume_threshold,
            constraints=dict(constraints or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_path_length": self.max_path_length,
            "allowed_protocols": sorted(self.allowed_protocols),
            "min_volume_threshold": self.min_volume_threshold,
            "constraints": dict(self.constraints),
        }

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.to_dict())
