# src/endstone_nocavebuilding/lang.py
# Strict Endstone-friendly. No future annotations.

import json
import logging
import os
from typing import Dict, Optional

from .restrictions import RestrictionType

DEFAULT_LOCALE = "en"

DEFAULT_MESSAGES: Dict[str, str] = {
    RestrictionType.CAVE.message_key: "You cannot build inside caves.",
    RestrictionType.FORMATION.message_key: "You cannot build under rock formations.",
}


def _norm_locale(locale: Optional[str]) -> str:
    return str(locale or "").strip().replace("-", "_")


class Lang:
    """
    Localized messages.

    Files live in <folder>/<locale>.json as flat {key: text} objects.
    Lookup: exact locale → language prefix → en → the key itself.
    """

    def __init__(self, folder: Optional[str] = None, defaults: Optional[Dict[str, str]] = None, logger=None):
        self.folder = folder
        self.defaults = dict(defaults if defaults is not None else DEFAULT_MESSAGES)
        self.logger = logger or logging.getLogger(__name__)
        self.messages: Dict[str, Dict[str, str]] = {DEFAULT_LOCALE: dict(self.defaults)}

    # ---------- files ----------

    def load(self) -> None:
        """Write missing default keys to en.json, then read every locale file."""
        self.messages = {DEFAULT_LOCALE: dict(self.defaults)}
        if not self.folder:
            return
        try:
            os.makedirs(self.folder, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create lang folder {self.folder}: {e}")
            return

        en = self._read(DEFAULT_LOCALE)
        merged = dict(self.defaults)
        merged.update(en)
        if merged != en:
            self._write(DEFAULT_LOCALE, merged)

        for fn in sorted(os.listdir(self.folder)):
            if not fn.endswith(".json"):
                continue
            locale = _norm_locale(fn[:-5])
            table = self._read(locale)
            if locale == DEFAULT_LOCALE:
                table = merged
            self.messages[locale] = table

    def _path(self, locale: str) -> str:
        return os.path.join(self.folder, f"{locale}.json")

    def _read(self, locale: str) -> Dict[str, str]:
        try:
            with open(self._path(locale), "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable lang file {locale}.json: {e}")
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring lang file {locale}.json: expected an object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, locale: str, table: Dict[str, str]) -> bool:
        try:
            with open(self._path(locale), "w", encoding="utf-8") as f:
                json.dump(table, f, indent=2, ensure_ascii=False)
            return True
        except OSError as e:
            self.logger.error(f"Failed to save {locale}.json: {e}")
            return False

    # ---------- lookup ----------

    def get(self, key: str, locale: Optional[str] = None, *args) -> str:
        message = None
        loc = _norm_locale(locale)
        candidates = [loc, loc.split("_")[0], DEFAULT_LOCALE] if loc else [DEFAULT_LOCALE]
        for c in candidates:
            table = self.messages.get(c)
            if table and key in table:
                message = table[key]
                break
        if message is None:
            message = self.defaults.get(key, key)
        if args:
            try:
                message = message.format(*args)
            except (IndexError, KeyError, ValueError) as e:
                self.logger.warning(f"Bad format arguments for {key}: {e}")
        return message
