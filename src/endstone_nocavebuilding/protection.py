# src/endstone_nocavebuilding/protection.py
# Strict Endstone-friendly. No future annotations.

import logging
from typing import Iterable, List, Optional

from .checks import RestrictionChecker
from .ports import ALLOWED, Messaging, Permissions, PlacementRequest, Verdict
from .restrictions import RestrictionRule
from . import host


class BuildGate:
    """
    - Lets non-player placements through (no actor → nothing to check)
    - Override permission bypasses every rule before any world lookup
    - Rules are tried in configured order; the first hit denies the build
    - A denied player gets exactly one message for the rule that hit
    - Any port failure allows the build (fail-open)
    """

    def __init__(
        self,
        checker: RestrictionChecker,
        permissions: Permissions,
        messaging: Messaging,
        rules: Iterable[RestrictionRule] = (),
        logger=None,
    ):
        self.checker = checker
        self.permissions = permissions
        self.messaging = messaging
        self.rules: List[RestrictionRule] = list(rules)
        self.logger = logger or logging.getLogger(__name__)

    def set_rules(self, rules: Iterable[RestrictionRule]) -> None:
        self.rules = list(rules)

    # ---------- core ----------

    def evaluate(self, request: Optional[PlacementRequest]) -> Verdict:
        if request is None or request.actor_id is None:
            return ALLOWED

        actor = request.actor_id

        try:
            if self.permissions.has_override(actor):
                return ALLOWED
        except Exception as e:
            self.logger.warning(
                f"Permission lookup failed for {actor}, allowing build: {e}"
            )
            return ALLOWED

        matched: Optional[RestrictionRule] = None
        for rule in self.rules:
            if not rule.enabled:
                continue
            try:
                hit = self.checker.is_restricted(
                    request.target_point, rule.radius, rule.restriction
                )
            except Exception as e:
                self.logger.warning(
                    f"Spatial query failed ({rule.tag}), allowing build: {e}"
                )
                return ALLOWED
            if hit:
                matched = rule
                break

        if matched is None:
            return ALLOWED

        self.logger.debug(
            f"Denied build by {actor} at {request.target_point} ({matched.tag})"
        )
        try:
            self.messaging.notify(actor, matched.message_key)
        except Exception as e:
            self.logger.error(f"Failed to notify {actor}: {e}")
        return Verdict(allowed=False, matched_type=matched.tag)

    # ---------- event handler ----------

    def handle_block_place(self, event) -> Verdict:
        try:
            request = host.placement_request_from_event(event)
        except Exception as e:
            self.logger.warning(f"Could not read placement event: {e}")
            return ALLOWED
        verdict = self.evaluate(request)
        if not verdict.allowed:
            host.cancel_event(event)
        return verdict
