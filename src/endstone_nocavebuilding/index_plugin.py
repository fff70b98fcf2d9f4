# src/endstone_nocavebuilding/index_plugin.py
# Strict Endstone-friendly. No future annotations.

from typing import Any, Dict, List, Optional
import os, json

from endstone.plugin import Plugin
from endstone.command import Command, CommandSender
from endstone.event import event_handler, EventPriority, BlockPlaceEvent

from .checks import ListPool, RestrictionChecker
from .config import KEY_SCAN_STEP, PLUGIN_VERSION, build_rules, default_config, load_config_or_defaults
from .host import BlockScanQuery, ChatMessenger, ServerPermissions
from .lang import Lang
from .protection import BuildGate

PERM_IGNORE = "nocavebuilding.ignore"
PERM_RELOAD = "nocavebuilding.command.reload"


class NoCaveBuildingPlugin(Plugin):
    """
    pyproject.toml:
      [project.entry-points."endstone"]
      nocavebuilding = "endstone_nocavebuilding.index_plugin:NoCaveBuildingPlugin"
    """

    api_version = "0.10"
    version = PLUGIN_VERSION
    description = "Prevents players from building inside caves."

    commands = {
        "nocavebuilding": {
            "description": "Reload the No Cave Building config and messages.",
            "usages": ["/nocavebuilding reload"],
            "permissions": [PERM_RELOAD],
        },
    }

    permissions = {
        PERM_IGNORE: {
            "description": "Build inside caves and under rock formations",
            "default": "op",
        },
        PERM_RELOAD: {
            "description": "Use /nocavebuilding reload",
            "default": "op",
        },
    }

    def on_enable(self) -> None:
        self.logger.info("Loading No Cave Building...")

        self.settings: Dict[str, Any] = default_config()
        self.lang = Lang(os.path.join(self.data_dir(), "lang"), logger=self.logger)
        self.scanner = BlockScanQuery(self.server)
        self.gate = BuildGate(
            RestrictionChecker(self.scanner, ListPool()),
            ServerPermissions(self.server, PERM_IGNORE),
            ChatMessenger(self.server, self.lang),
            logger=self.logger,
        )
        self.gate.set_rules(build_rules(self.settings))
        try:
            self.reload()
        except Exception as e:
            self.logger.error(f"Failed to load config, running with defaults: {e}")

        try:
            self.register_events(self)
        except Exception as e:
            self.logger.error(f"Failed to register events: {e}")

        enabled = [r.tag for r in self.gate.rules if r.enabled]
        self.logger.info(
            f"Enabled (v{self.version}). Radius: {self.gate.rules[0].radius}, "
            f"checks: {', '.join(enabled) or 'none'}"
        )

    def on_disable(self) -> None:
        self.gate = None
        self.logger.info("No Cave Building disabled.")

    # ---------- config ----------

    def reload(self) -> None:
        raw = self.read_json("config.json")
        cfg, needs_save = load_config_or_defaults(raw, logger=self.logger)
        if needs_save:
            self.write_json("config.json", cfg)
        self.settings = cfg

        self.scanner.step = cfg[KEY_SCAN_STEP]
        self.gate.set_rules(build_rules(cfg))
        self.lang.load()

    # ---------- storage helpers ----------

    def data_dir(self) -> str:
        base = getattr(self, "data_folder", None) or getattr(
            self, "data_path", None
        )
        if not base:
            base = os.path.join(os.path.dirname(__file__), "data")
        base = str(base)
        os.makedirs(base, exist_ok=True)
        return base

    def write_json(self, filename: str, payload: dict) -> bool:
        try:
            path = os.path.join(self.data_dir(), filename)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            return True
        except Exception as e:
            self.logger.error(f"Failed to save {filename}: {e}")
            return False

    def read_json(self, filename: str) -> Optional[dict]:
        path = os.path.join(self.data_dir(), filename)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except Exception as e:
            self.logger.error(f"Failed to read {filename}: {e}")
            return None

    # ---------- command handling ----------

    def on_command(
        self, sender: CommandSender, command: Command, args: List[str]
    ) -> bool:
        name = (command.name or "").lower()
        if name != "nocavebuilding":
            return False

        sub = (args[0] if args else "").lower()
        if sub != "reload":
            sender.send_message("§7Usage: /nocavebuilding reload")
            return True

        try:
            self.reload()
            sender.send_message("§aNo Cave Building config reloaded.")
        except Exception as e:
            self.logger.error(f"/nocavebuilding reload error: {e}")
            sender.send_error_message("Reload failed. Check the server log.")
        return True

    # ---------- event routing ----------

    @event_handler(priority=EventPriority.HIGH)
    def on_block_place(self, event: BlockPlaceEvent):
        gate = getattr(self, "gate", None)
        if gate is None:
            return
        try:
            gate.handle_block_place(event)
        except Exception as e:
            self.logger.error(f"Placement check failed, allowing build: {e}")
