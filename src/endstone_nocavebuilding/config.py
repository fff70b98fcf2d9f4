# src/endstone_nocavebuilding/config.py
# Strict Endstone-friendly. No future annotations.

import logging
import math
from typing import Any, Callable, Dict, List, Tuple

from .restrictions import RestrictionRule, RestrictionType

PLUGIN_VERSION = "1.1.0"

KEY_VERSION = "Version"
KEY_EDITION = "Edition"
KEY_RADIUS = "Detection Radius"
KEY_CAVES = "Prevent Building In Caves"
KEY_FORMATIONS = "Prevent Building Under Rock Formations"
KEY_SCAN_STEP = "Block Scan Step"

BASELINE = "baseline"
EXTENDED = "extended"
DEFAULT_EDITION = EXTENDED

# Every placement scans this sphere on the main thread; keep it small.
MAX_RADIUS = 32.0

# 1.0.x shipped a fixed radius and cave check only; 1.1.x added formations.
EDITION_DEFAULTS: Dict[str, Dict[str, Any]] = {
    BASELINE: {
        KEY_RADIUS: 5.0,
        KEY_CAVES: True,
        KEY_FORMATIONS: False,
        KEY_SCAN_STEP: 2,
    },
    EXTENDED: {
        KEY_RADIUS: 10.0,
        KEY_CAVES: True,
        KEY_FORMATIONS: False,
        KEY_SCAN_STEP: 2,
    },
}

# Rule flag per restriction type, in priority order.
RULE_FLAGS: List[Tuple[RestrictionType, str]] = [
    (RestrictionType.CAVE, KEY_CAVES),
    (RestrictionType.FORMATION, KEY_FORMATIONS),
]


class ConfigError(ValueError):
    pass


# ── versions ─────────────────────────────────────────────────────────────────
def parse_version(raw) -> Tuple[int, int, int]:
    """'1.2.3' → (1, 2, 3). Missing parts are 0, anything unparsable is 0.0.0."""
    parts = str(raw or "").strip().lstrip("vV").split(".")
    out = []
    for p in parts[:3]:
        digits = ""
        for ch in p:
            if not ch.isdigit():
                break
            digits += ch
        if not digits:
            return (0, 0, 0)
        out.append(int(digits))
    while len(out) < 3:
        out.append(0)
    return (out[0], out[1], out[2])


def default_config(edition: str = DEFAULT_EDITION, version: str = PLUGIN_VERSION) -> Dict[str, Any]:
    if edition not in EDITION_DEFAULTS:
        raise ConfigError(f"Unknown edition: {edition!r}")
    cfg: Dict[str, Any] = {KEY_VERSION: version, KEY_EDITION: edition}
    cfg.update(EDITION_DEFAULTS[edition])
    return cfg


# ── migrations ───────────────────────────────────────────────────────────────
def _reset_pre_release(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return default_config(DEFAULT_EDITION)


def _add_formations(cfg: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(cfg)
    try:
        radius = float(out.get(KEY_RADIUS, 0))
    except (TypeError, ValueError):
        radius = 0.0
    if KEY_EDITION not in out:
        # 1.0.x kept the radius fixed at 5; anything else was hand-tuned
        fixed = EDITION_DEFAULTS[BASELINE][KEY_RADIUS]
        out[KEY_EDITION] = BASELINE if radius in (0.0, fixed) else EXTENDED
    out.setdefault(KEY_FORMATIONS, False)
    out.setdefault(KEY_SCAN_STEP, EDITION_DEFAULTS[BASELINE][KEY_SCAN_STEP])
    return out


# (target version, step). Steps run in order for configs older than their target.
MIGRATIONS: List[Tuple[Tuple[int, int, int], Callable[[Dict[str, Any]], Dict[str, Any]]]] = [
    ((1, 0, 0), _reset_pre_release),
    ((1, 1, 0), _add_formations),
]


def migrate(cfg: Dict[str, Any], target: str = PLUGIN_VERSION, logger=None) -> Tuple[Dict[str, Any], bool]:
    """
    Bring a raw config up to `target`. Returns (config, changed).
    """
    log = logger or logging.getLogger(__name__)
    current = parse_version(cfg.get(KEY_VERSION))
    goal = parse_version(target)
    if current >= goal:
        return cfg, False

    log.warning("Config changes detected! Updating...")
    out = dict(cfg)
    for step_version, step in MIGRATIONS:
        if current < step_version <= goal:
            out = step(out)
    old = cfg.get(KEY_VERSION) or "none"
    out[KEY_VERSION] = target
    log.warning(f"Config update complete! Updated from version {old} to {target}")
    return out, True


# ── validation ───────────────────────────────────────────────────────────────
def _as_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.strip().lower() in ("true", "false"):
        return v.strip().lower() == "true"
    raise ValueError(f"not a boolean: {v!r}")


def normalize(cfg: Dict[str, Any], logger=None) -> Dict[str, Any]:
    """Validate every key; invalid values fall back to the edition default."""
    log = logger or logging.getLogger(__name__)
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config must be a JSON object, got {type(cfg).__name__}")

    edition = str(cfg.get(KEY_EDITION, DEFAULT_EDITION)).strip().lower()
    if edition not in EDITION_DEFAULTS:
        log.warning(f"Invalid {KEY_EDITION} value ({cfg.get(KEY_EDITION)!r}), using default: {DEFAULT_EDITION}")
        edition = DEFAULT_EDITION
    defaults = EDITION_DEFAULTS[edition]

    out: Dict[str, Any] = dict(cfg)
    out[KEY_EDITION] = edition
    out.setdefault(KEY_VERSION, PLUGIN_VERSION)

    try:
        radius = float(cfg.get(KEY_RADIUS, defaults[KEY_RADIUS]))
        if not math.isfinite(radius) or radius <= 0:
            raise ValueError("must be a positive number")
        if radius > MAX_RADIUS:
            raise ValueError(f"must not exceed {MAX_RADIUS}")
    except (TypeError, ValueError):
        log.warning(f"Invalid {KEY_RADIUS} value ({cfg.get(KEY_RADIUS)!r}), using default: {defaults[KEY_RADIUS]}")
        radius = defaults[KEY_RADIUS]
    out[KEY_RADIUS] = radius

    for key in (KEY_CAVES, KEY_FORMATIONS):
        try:
            out[key] = _as_bool(cfg.get(key, defaults[key]))
        except ValueError:
            log.warning(f"Invalid {key} value ({cfg.get(key)!r}), using default: {defaults[key]}")
            out[key] = defaults[key]

    try:
        step = cfg.get(KEY_SCAN_STEP, defaults[KEY_SCAN_STEP])
        if (
            isinstance(step, bool)
            or not math.isfinite(float(step))
            or int(step) != float(step)
            or int(step) < 1
        ):
            raise ValueError("must be a whole number >= 1")
        out[KEY_SCAN_STEP] = int(step)
    except (TypeError, ValueError, OverflowError):
        log.warning(f"Invalid {KEY_SCAN_STEP} value ({cfg.get(KEY_SCAN_STEP)!r}), using default: {defaults[KEY_SCAN_STEP]}")
        out[KEY_SCAN_STEP] = defaults[KEY_SCAN_STEP]

    return out


def load_config(raw, logger=None) -> Tuple[Dict[str, Any], bool]:
    """
    Turn whatever was read from config.json into a usable config.
    Returns (config, needs_save).
    """
    if not isinstance(raw, dict) or not raw:
        return default_config(), True
    migrated, changed = migrate(raw, logger=logger)
    cfg = normalize(migrated, logger=logger)
    return cfg, changed or cfg != raw


def load_config_or_defaults(raw, logger=None) -> Tuple[Dict[str, Any], bool]:
    """load_config that never raises; an unusable file leaves the defaults in memory."""
    log = logger or logging.getLogger(__name__)
    try:
        return load_config(raw, logger=log)
    except Exception as e:
        log.error(f"Unusable config.json, using defaults: {e}")
        return default_config(), False


def build_rules(cfg: Dict[str, Any]) -> List[RestrictionRule]:
    """One rule per restriction type, in priority order."""
    radius = cfg[KEY_RADIUS]
    baseline = cfg.get(KEY_EDITION) == BASELINE
    rules = []
    for restriction, key in RULE_FLAGS:
        enabled = bool(cfg.get(key, False))
        if baseline and restriction is not RestrictionType.CAVE:
            enabled = False
        rules.append(RestrictionRule(restriction, radius, enabled))
    return rules
