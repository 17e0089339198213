import ipaddress
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from tortoise.exceptions import IntegrityError

from secops.config import settings
from secops.core.store import bounded
from secops.errors import (
    ConflictError,
    EvaluationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from secops.models.ip_access import IPAccessRule, IPRuleType
from secops.models.user import User
from secops.services.audit import SecurityEvents, audit
from secops.services.metrics import record_ip_decision

logger = logging.getLogger(__name__)


def parse_ipv4(value: str | None) -> str:
    """Return the canonical dotted-quad form, or raise ValidationError."""
    if not value or not value.strip():
        raise ValidationError("IP address is required")
    try:
        # strict dotted quad; rejects "10.1", hex and octal-looking forms
        return str(ipaddress.IPv4Address(value.strip()))
    except ValueError:
        raise ValidationError(f"'{value}' is not a valid IPv4 address")


def parse_rule_type(value) -> IPRuleType:
    if isinstance(value, IPRuleType):
        return value
    try:
        return IPRuleType(str(value or "").strip().upper())
    except ValueError:
        raise ValidationError("Type must be ALLOWED or BLOCKED")


@dataclass
class AccessDecision:
    allowed: bool
    reason: str
    rule: Optional[IPAccessRule] = None

    def to_dict(self) -> dict:
        return {
            "allowed": self.allowed,
            "reason": self.reason,
            "rule": self.rule.to_dict() if self.rule else None,
        }


class IPAccessEvaluator:
    """Allow/block rule table and the decision used to gate protected entry points.

    ``default_policy`` decides addresses with no rule: "allow" is fail-open,
    "deny" is fail-closed.
    """

    def __init__(self, default_policy: str | None = None):
        self.default_policy = default_policy or settings.IP_DEFAULT_POLICY
        if self.default_policy not in ("allow", "deny"):
            raise ValueError("default_policy must be 'allow' or 'deny'")

    async def check(self, ip_address: str) -> AccessDecision:
        ip = parse_ipv4(ip_address)
        try:
            rule = await bounded(IPAccessRule.get_or_none(ip_address=ip), "look up IP rule")
        except PersistenceError as exc:
            record_ip_decision("error")
            raise EvaluationError(f"Could not evaluate access for {ip}: {exc.message}") from exc

        if rule is None:
            allowed = self.default_policy == "allow"
            decision = AccessDecision(
                allowed,
                "No rule found, default to allowed" if allowed else "No rule found, default to denied",
            )
        elif rule.type == IPRuleType.ALLOWED:
            decision = AccessDecision(True, "IP is explicitly allowed", rule)
        else:
            decision = AccessDecision(False, "IP is explicitly blocked", rule)

        record_ip_decision("allowed" if decision.allowed else "denied")
        return decision

    async def list_rules(self) -> List[IPAccessRule]:
        return await bounded(IPAccessRule.all().order_by("-created_at"), "list IP rules")

    async def _update(self, rule: IPAccessRule, rule_type: IPRuleType, description, actor_id) -> IPAccessRule:
        rule.type = rule_type
        rule.description = description
        rule.created_by_id = actor_id
        await bounded(rule.save(), "update IP rule")
        return rule

    async def upsert(
        self,
        ip_address: str,
        rule_type,
        description: str | None = None,
        actor_id: UUID | str | None = None,
    ) -> Tuple[IPAccessRule, bool]:
        """Create or overwrite the rule for ``ip_address``.

        Returns ``(rule, created)``; ``created`` is False when an existing rule
        was updated.
        """
        ip = parse_ipv4(ip_address)
        rtype = parse_rule_type(rule_type)
        description = description.strip() if description and description.strip() else None
        if actor_id is not None and not await bounded(User.exists(id=actor_id), "look up rule author"):
            raise ValidationError("Unknown rule author")

        existing = await bounded(IPAccessRule.get_or_none(ip_address=ip), "look up IP rule")
        if existing is not None:
            rule = await self._update(existing, rtype, description, actor_id)
            created = False
        else:
            try:
                rule = await bounded(
                    IPAccessRule.create(
                        ip_address=ip, type=rtype, description=description, created_by_id=actor_id
                    ),
                    "create IP rule",
                )
                created = True
            except IntegrityError:
                # A concurrent request inserted the same address first
                logger.info("Concurrent insert for %s; updating instead", ip)
                raced = await bounded(IPAccessRule.filter(ip_address=ip).first(), "look up IP rule")
                if raced is None:
                    raise ConflictError(f"Rule for {ip} changed concurrently")
                rule = await self._update(raced, rtype, description, actor_id)
                created = False

        await audit(
            SecurityEvents.IP_RULE_UPSERT,
            f"{'Created' if created else 'Updated'} {rtype.value} rule for {ip} by {actor_id}",
        )
        return rule, created

    async def remove(self, rule_id: UUID | str) -> None:
        deleted = await bounded(IPAccessRule.filter(id=rule_id).delete(), "delete IP rule")
        if not deleted:
            raise NotFoundError("IP rule not found")
        await audit(SecurityEvents.IP_RULE_DELETE, f"Deleted IP rule {rule_id}")
