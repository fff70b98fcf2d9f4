# src/endstone_nocavebuilding/host.py
# Strict Endstone-friendly. No future annotations.
#
# Endstone-side implementations of the ports. Everything here is duck-typed
# against the server objects so it also runs against plain fakes.

import math
from typing import Any, Dict, Iterator, NamedTuple, Optional, Tuple

from .config import MAX_RADIUS
from .ports import NearbyObject, PlacementRequest

# Blocks nothing collides with. Treated like trigger volumes by the scan.
NON_COLLIDING_BLOCKS = frozenset(
    {
        "minecraft:air",
        "minecraft:cave_air",
        "minecraft:void_air",
        "minecraft:water",
        "minecraft:flowing_water",
        "minecraft:lava",
        "minecraft:flowing_lava",
        "minecraft:light_block",
        "minecraft:structure_void",
    }
)

# Open space a player can stand in.
OPEN_AIR_BLOCKS = frozenset({"air", "cave_air", "void_air"})

# Natural terrain that forms cave ceilings and overhangs. Ores match by suffix.
ROCK_BLOCKS = frozenset(
    {
        "stone",
        "granite",
        "diorite",
        "andesite",
        "deepslate",
        "tuff",
        "calcite",
        "dripstone_block",
        "pointed_dripstone",
        "dirt",
        "gravel",
        "clay",
        "sandstone",
        "red_sandstone",
        "hardened_clay",
        "stained_hardened_clay",
        "terracotta",
        "moss_block",
        "netherrack",
        "basalt",
        "blackstone",
        "end_stone",
        "bedrock",
    }
)

# Open space or rock ceiling with at least this much terrain overhead is cave.
CAVE_COVER = 8
CAVE_LABEL = "cave"
FORMATION_LABEL = "rock_formation"


class WorldPoint(NamedTuple):
    """A point that remembers which dimension it belongs to."""

    x: float
    y: float
    z: float
    dimension: Any = None


# ---------- event helpers ----------

def player_key(p) -> Optional[str]:
    try:
        name = str(getattr(p, "name", "") or "").strip()
    except Exception:
        return None
    return name or None


def placement_request_from_event(event) -> Optional[PlacementRequest]:
    """
    Build a request from a BlockPlaceEvent.
    Returns None when the placed block can't be read (nothing to check).
    """
    block = getattr(event, "block", None)
    if block is None:
        return None

    loc = getattr(block, "location", None)
    src = block if getattr(block, "x", None) is not None else loc
    if src is None:
        return None
    x = float(getattr(src, "x"))
    y = float(getattr(src, "y"))
    z = float(getattr(src, "z"))

    player = getattr(event, "player", None)
    dim = getattr(block, "dimension", None)
    if dim is None and loc is not None:
        dim = getattr(loc, "dimension", None)
    if dim is None and player is not None:
        dim = getattr(getattr(player, "location", None), "dimension", None)

    return PlacementRequest(
        actor_id=player_key(player) if player is not None else None,
        target_point=WorldPoint(x, y, z, dim),
    )


def cancel_event(event) -> None:
    set_cancelled = getattr(event, "set_cancelled", None) or getattr(event, "set_canceled", None)
    if callable(set_cancelled):
        try:
            set_cancelled(True); return
        except Exception:
            pass
    cancel = getattr(event, "cancel", None)
    if callable(cancel):
        try:
            cancel(); return
        except Exception:
            pass
    try:
        event.is_cancelled = True
    except Exception:
        pass


def find_player(server, actor_id) -> Optional[Any]:
    if server is None or actor_id is None:
        return None
    try:
        return server.get_player(str(actor_id))
    except Exception:
        return None


# ---------- spatial query ----------

class BlockScanQuery:
    """
    Samples the blocks around a point on a cubic grid inside the sphere and
    reports them as NearbyObjects named by block type id, plus a label for
    what the sample says about the terrain:

      • open air with at least CAVE_COVER blocks of ground above it
        → "<id>#cave"
      • natural rock with open air right below it (a ceiling) → "#cave"
        when deeply covered, "#rock_formation" when near the surface

    Non-colliding blocks stand in for trigger volumes: they are skipped
    when ignore_triggers is set unless they were labelled as cave space.
    """

    def __init__(
        self,
        server=None,
        step: int = 2,
        default_dimension: str = "Overworld",
        max_radius: float = MAX_RADIUS,
    ):
        self.server = server
        self.step = max(1, int(step))
        self.default_dimension = default_dimension
        self.max_radius = float(max_radius)

    def query(self, point, radius: float, layer: str, ignore_triggers: bool) -> Iterator[NearbyObject]:
        dim = getattr(point, "dimension", None) or self._fallback_dimension()
        if dim is None:
            return iter(())
        radius = min(float(radius), self.max_radius)
        return self._scan(dim, point[0], point[1], point[2], radius, ignore_triggers)

    def _fallback_dimension(self):
        try:
            level = getattr(self.server, "level", None)
            return level.get_dimension(self.default_dimension)
        except Exception:
            return None

    def _scan(self, dim, px, py, pz, radius, ignore_triggers) -> Iterator[NearbyObject]:
        cx, cy, cz = math.floor(px), math.floor(py), math.floor(pz)
        r = int(math.floor(radius))
        r2 = radius * radius
        offsets = range(-r, r + 1, self.step)
        tops: Dict[Tuple[int, int], Optional[int]] = {}
        for dx in offsets:
            for dz in offsets:
                x, z = cx + dx, cz + dz
                for dy in offsets:
                    if dx * dx + dy * dy + dz * dz > r2:
                        continue
                    y = cy + dy
                    block = _block_at(dim, x, y, z)
                    if block is None:
                        # outside build height / unloaded chunk
                        continue
                    btype = str(getattr(block, "type", "") or "")
                    solid = _collides(block, btype)
                    label = self._label(dim, tops, x, y, z, btype, solid)
                    if label:
                        yield NearbyObject(name=f"{btype}#{label}")
                    elif solid or not ignore_triggers:
                        yield NearbyObject(name=btype)

    def _label(self, dim, tops, x, y, z, btype, solid) -> Optional[str]:
        if solid:
            if not _is_rock(btype):
                return None
            below = _block_at(dim, x, y - 1, z)
            if below is None or not _is_open_air(str(getattr(below, "type", "") or "")):
                return None
            cover = self._cover(dim, tops, x, y, z)
            if cover is None:
                return None
            return CAVE_LABEL if cover >= CAVE_COVER else FORMATION_LABEL

        if not _is_open_air(btype):
            return None
        cover = self._cover(dim, tops, x, y, z)
        if cover is not None and cover >= CAVE_COVER:
            return CAVE_LABEL
        return None

    def _cover(self, dim, tops, x, y, z) -> Optional[int]:
        """Blocks of terrain above (x, y, z), from the column's highest block."""
        key = (x, z)
        if key not in tops:
            tops[key] = _highest_y(dim, x, z)
        top = tops[key]
        return None if top is None else top - y


def _block_at(dim, x, y, z):
    try:
        return dim.get_block_at(x, y, z)
    except Exception:
        return None


def _highest_y(dim, x, z) -> Optional[int]:
    fn = getattr(dim, "get_highest_block_y_at", None)
    if callable(fn):
        try:
            return int(fn(x, z))
        except Exception:
            pass
    fn = getattr(dim, "get_highest_block_at", None)
    if callable(fn):
        try:
            return int(getattr(fn(x, z), "y"))
        except Exception:
            pass
    return None


def _short_id(btype: str) -> str:
    return btype.lower().split(":", 1)[-1]


def _is_open_air(btype: str) -> bool:
    return _short_id(btype) in OPEN_AIR_BLOCKS


def _is_rock(btype: str) -> bool:
    sid = _short_id(btype)
    return sid in ROCK_BLOCKS or sid.endswith("_ore")


def _collides(block, btype: str) -> bool:
    flag = getattr(block, "is_solid", None)
    if flag is not None:
        try:
            return bool(flag() if callable(flag) else flag)
        except Exception:
            pass
    return bool(btype) and btype.lower() not in NON_COLLIDING_BLOCKS


# ---------- permissions ----------

class ServerPermissions:
    def __init__(self, server, permission: str):
        self.server = server
        self.permission = permission

    def has_override(self, actor_id) -> bool:
        p = find_player(self.server, actor_id)
        if p is None:
            return False
        for meth in ("has_permission", "hasPermission"):
            fn = getattr(p, meth, None)
            if callable(fn):
                return bool(fn(self.permission))
        return False


# ---------- messaging ----------

class ChatMessenger:
    def __init__(self, server, lang):
        self.server = server
        self.lang = lang

    def notify(self, actor_id, message_key: str) -> None:
        p = find_player(self.server, actor_id)
        if p is None:
            return
        locale = getattr(p, "locale", None)
        p.send_message(f"§c{self.lang.get(message_key, locale)}")
