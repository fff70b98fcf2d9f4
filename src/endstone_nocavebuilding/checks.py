# src/endstone_nocavebuilding/checks.py
# Strict Endstone-friendly. No future annotations.

from contextlib import contextmanager
from typing import Iterator, List, Optional, Union

from .ports import WORLD_LAYER, NearbyObject, Point, SpatialQuery
from .restrictions import RestrictionType


# ── math helpers ─────────────────────────────────────────────────────────────
def dist3d(a: Point, b: Point) -> float:
    return (
        (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2
    ) ** 0.5


# ── name classification ──────────────────────────────────────────────────────
def name_matches(name: Optional[str], tag: str) -> bool:
    """
    Case-insensitive substring test. str.lower() does not depend on the
    process locale, so "CAVE" and "cave" always compare equal.
    """
    if not name or not tag:
        return False
    return tag.lower() in name.lower()


# ── pooled result buffers ───────────────────────────────────────────────────
class ListPool:
    """Reusable lists for query results. Every acquire is paired with a release."""

    def __init__(self, max_pooled: int = 8):
        self.max_pooled = max(0, int(max_pooled))
        self._free: List[list] = []
        self.in_use = 0

    @contextmanager
    def acquire(self) -> Iterator[list]:
        buf = self._free.pop() if self._free else []
        self.in_use += 1
        try:
            yield buf
        finally:
            buf.clear()
            self.in_use -= 1
            if len(self._free) < self.max_pooled:
                self._free.append(buf)

    @property
    def pooled(self) -> int:
        return len(self._free)


# ── evaluator ────────────────────────────────────────────────────────────────
class RestrictionChecker:
    """Decides whether a point sits near world geometry of a restriction type."""

    def __init__(self, spatial: SpatialQuery, pool: Optional[ListPool] = None):
        self.spatial = spatial
        self.pool = pool if pool is not None else ListPool()

    def is_restricted(
        self,
        point: Point,
        radius: float,
        restriction: Union[RestrictionType, str],
    ) -> bool:
        tag = (
            restriction.tag
            if isinstance(restriction, RestrictionType)
            else str(restriction or "")
        )
        results = self.spatial.query(
            point, radius, layer=WORLD_LAYER, ignore_triggers=True
        )
        with self.pool.acquire() as found:
            # lazy queries stop producing as soon as one object matches
            for obj in results or ():
                found.append(obj)
                if name_matches(_object_name(obj), tag):
                    return True
        return False


def _object_name(obj) -> Optional[str]:
    if isinstance(obj, NearbyObject):
        return obj.name
    try:
        v = getattr(obj, "name", None)
        return v if isinstance(v, str) else None
    except Exception:
        return None
