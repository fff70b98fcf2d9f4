# src/endstone_nocavebuilding/ports.py
# Strict Endstone-friendly. No future annotations.

from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, Protocol, Tuple

Point = Tuple[float, float, float]

# Query filters understood by every SpatialQuery implementation.
WORLD_LAYER = "world"


@dataclass(frozen=True)
class PlacementRequest:
    """One building attempt. actor_id is None for non-player placements."""

    actor_id: Optional[Hashable]
    target_point: Point


@dataclass(frozen=True)
class NearbyObject:
    name: Optional[str]


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    matched_type: Optional[str] = None


ALLOWED = Verdict(allowed=True)


class SpatialQuery(Protocol):
    """Returns the world objects found around a point."""

    def query(
        self,
        point: Point,
        radius: float,
        layer: str,
        ignore_triggers: bool,
    ) -> Iterable[NearbyObject]:
        ...


class Permissions(Protocol):
    def has_override(self, actor_id: Hashable) -> bool:
        ...


class Messaging(Protocol):
    """Delivers a localized notice. Locale resolution belongs to the implementation."""

    def notify(self, actor_id: Hashable, message_key: str) -> None:
        ...
