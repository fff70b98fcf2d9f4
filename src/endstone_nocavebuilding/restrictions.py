# src/endstone_nocavebuilding/restrictions.py
# Strict Endstone-friendly. No future annotations.

from enum import Enum
from typing import Union


class RestrictionType(Enum):
    """
    Known restricted zones, in default priority order.

    Each member carries:
      • tag: substring looked for in nearby object names
      • message_key: lang key sent to a player whose build was denied
    """

    CAVE = ("cave", "CannotBuildInCave")
    FORMATION = ("formation", "CannotBuildUnderRockFormation")

    def __init__(self, tag: str, message_key: str):
        self.tag = tag
        self.message_key = message_key

    @classmethod
    def from_tag(cls, tag: str) -> "RestrictionType":
        t = str(tag or "").strip().lower()
        for member in cls:
            if member.tag == t:
                return member
        raise ValueError(f"Unknown restriction type: {tag!r}")


class RestrictionRule:
    """A restriction type with its detection radius and on/off switch."""

    __slots__ = ("restriction", "radius", "enabled")

    def __init__(
        self,
        restriction: Union[RestrictionType, str],
        radius: float,
        enabled: bool = True,
    ):
        if not isinstance(restriction, RestrictionType):
            restriction = RestrictionType.from_tag(restriction)
        try:
            radius = float(radius)
        except (TypeError, ValueError):
            raise ValueError(f"Radius must be a number, got {radius!r}")
        if not radius > 0:
            raise ValueError(f"Radius must be positive, got {radius}")
        self.restriction = restriction
        self.radius = radius
        self.enabled = bool(enabled)

    @property
    def tag(self) -> str:
        return self.restriction.tag

    @property
    def message_key(self) -> str:
        return self.restriction.message_key

    def __eq__(self, other) -> bool:
        if not isinstance(other, RestrictionRule):
            return NotImplemented
        return (
            self.restriction is other.restriction
            and self.radius == other.radius
            and self.enabled == other.enabled
        )

    def __repr__(self) -> str:
        return (
            f"RestrictionRule({self.tag!r}, radius={self.radius}, "
            f"enabled={self.enabled})"
        )
