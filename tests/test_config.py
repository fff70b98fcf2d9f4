import json
import logging

import pytest

from endstone_nocavebuilding.config import (
    BASELINE,
    EXTENDED,
    KEY_CAVES,
    KEY_EDITION,
    KEY_FORMATIONS,
    KEY_RADIUS,
    KEY_SCAN_STEP,
    KEY_VERSION,
    MAX_RADIUS,
    PLUGIN_VERSION,
    ConfigError,
    build_rules,
    default_config,
    load_config,
    load_config_or_defaults,
    migrate,
    normalize,
    parse_version,
)
from endstone_nocavebuilding.restrictions import RestrictionRule, RestrictionType


def test_parse_version() -> None:
    assert parse_version("1.1.0") == (1, 1, 0)
    assert parse_version("v2.3") == (2, 3, 0)
    assert parse_version("1.0.0-beta") == (1, 0, 0)
    assert parse_version(None) == (0, 0, 0)
    assert parse_version("garbage") == (0, 0, 0)


def test_edition_defaults_differ() -> None:
    ext = default_config()
    base = default_config(BASELINE)

    assert ext[KEY_EDITION] == EXTENDED
    assert ext[KEY_RADIUS] == 10.0
    assert ext[KEY_CAVES] is True
    assert ext[KEY_FORMATIONS] is False
    assert base[KEY_RADIUS] == 5.0
    assert ext[KEY_VERSION] == PLUGIN_VERSION

    with pytest.raises(ConfigError):
        default_config("deluxe")


def test_missing_config_uses_defaults() -> None:
    cfg, needs_save = load_config(None)
    assert cfg == default_config()
    assert needs_save is True


def test_current_config_is_kept() -> None:
    raw = default_config()
    raw[KEY_RADIUS] = 12.5
    raw[KEY_FORMATIONS] = True

    cfg, needs_save = load_config(dict(raw))

    assert cfg == raw
    assert needs_save is False


def test_pre_release_config_is_reset(caplog) -> None:
    raw = {KEY_VERSION: "0.9.0", KEY_RADIUS: 3.0, KEY_CAVES: False}

    with caplog.at_level(logging.WARNING):
        cfg, changed = migrate(raw)

    assert changed is True
    assert cfg[KEY_RADIUS] == 10.0
    assert cfg[KEY_CAVES] is True
    assert cfg[KEY_VERSION] == PLUGIN_VERSION
    assert "Config changes detected" in caplog.text


def test_baseline_config_gains_formation_flag() -> None:
    raw = {KEY_VERSION: "1.0.0", KEY_RADIUS: 5.0, KEY_CAVES: True}

    cfg, needs_save = load_config(raw)

    assert needs_save is True
    assert cfg[KEY_EDITION] == BASELINE
    assert cfg[KEY_RADIUS] == 5.0
    assert cfg[KEY_FORMATIONS] is False
    assert cfg[KEY_SCAN_STEP] == 2
    assert cfg[KEY_VERSION] == PLUGIN_VERSION


def test_tuned_1_0_config_becomes_extended() -> None:
    cfg, _ = migrate({KEY_VERSION: "1.0.2", KEY_RADIUS: 8.0, KEY_CAVES: True})
    assert cfg[KEY_EDITION] == EXTENDED
    assert cfg[KEY_RADIUS] == 8.0


def test_newer_config_is_not_migrated() -> None:
    raw = default_config(version="2.0.0")
    cfg, changed = migrate(raw)
    assert changed is False
    assert cfg is raw


@pytest.mark.parametrize("bad", [0, -3.5, "wide", None, float("nan")])
def test_non_positive_radius_is_rejected(bad) -> None:
    raw = default_config()
    raw[KEY_RADIUS] = bad

    cfg = normalize(raw)

    assert cfg[KEY_RADIUS] == 10.0


def test_invalid_values_fall_back_per_edition() -> None:
    raw = default_config(BASELINE)
    raw.update({KEY_RADIUS: -1, KEY_CAVES: "maybe", KEY_SCAN_STEP: 0})

    cfg = normalize(raw)

    assert cfg[KEY_RADIUS] == 5.0
    assert cfg[KEY_CAVES] is True
    assert cfg[KEY_SCAN_STEP] == 2


def test_unknown_edition_falls_back_to_extended() -> None:
    raw = default_config()
    raw[KEY_EDITION] = "deluxe"
    assert normalize(raw)[KEY_EDITION] == EXTENDED


def test_normalize_rejects_non_object() -> None:
    with pytest.raises(ConfigError):
        normalize(["not", "a", "dict"])


def test_build_rules_in_priority_order() -> None:
    cfg = default_config()
    cfg[KEY_FORMATIONS] = True

    rules = build_rules(cfg)

    assert rules == [
        RestrictionRule(RestrictionType.CAVE, 10.0, True),
        RestrictionRule(RestrictionType.FORMATION, 10.0, True),
    ]


def test_baseline_never_checks_formations() -> None:
    cfg = default_config(BASELINE)
    cfg[KEY_FORMATIONS] = True

    rules = build_rules(cfg)

    assert [(r.tag, r.enabled) for r in rules] == [("cave", True), ("formation", False)]


def test_rule_rejects_non_positive_radius() -> None:
    with pytest.raises(ValueError):
        RestrictionRule(RestrictionType.CAVE, 0)
    with pytest.raises(ValueError):
        RestrictionRule("cave", -1.0)
    with pytest.raises(ValueError):
        RestrictionRule("lava_lake", 5.0)


def test_restriction_type_from_tag() -> None:
    assert RestrictionType.from_tag(" Cave ") is RestrictionType.CAVE
    assert RestrictionType.FORMATION.message_key == "CannotBuildUnderRockFormation"


@pytest.mark.parametrize("bad", ["1e999", "Infinity", "-Infinity", "NaN"])
def test_infinite_scan_step_is_rejected(bad) -> None:
    raw = json.loads('{"Version": "1.1.0", "Block Scan Step": %s}' % bad)

    cfg, _ = load_config(raw)

    assert cfg[KEY_SCAN_STEP] == 2


@pytest.mark.parametrize("too_wide", [MAX_RADIUS + 0.5, 100000.0, "1e999"])
def test_radius_above_limit_is_rejected(too_wide) -> None:
    raw = default_config()
    raw[KEY_RADIUS] = float(too_wide)
    raw[KEY_SCAN_STEP] = 1

    cfg, _ = load_config(raw)

    assert cfg[KEY_RADIUS] == 10.0


def test_radius_at_limit_is_kept() -> None:
    raw = default_config()
    raw[KEY_RADIUS] = MAX_RADIUS
    assert normalize(raw)[KEY_RADIUS] == MAX_RADIUS


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("cannot render")


def test_load_config_or_defaults_never_raises(caplog) -> None:
    raw = {KEY_VERSION: PLUGIN_VERSION, KEY_EDITION: Unprintable()}

    with caplog.at_level(logging.ERROR):
        cfg, needs_save = load_config_or_defaults(raw)

    assert cfg == default_config()
    assert needs_save is False
    assert "Unusable config.json" in caplog.text


def test_load_config_or_defaults_passes_good_config_through() -> None:
    raw = default_config()
    assert load_config_or_defaults(raw) == load_config(raw)
