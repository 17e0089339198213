# tests/test_ip_access.py
"""IP allow/block rules and the access decision"""

import uuid

import pytest
from hypothesis import given, strategies as st
from tortoise.exceptions import IntegrityError, OperationalError

from secops.errors import ConflictError, EvaluationError, NotFoundError, ValidationError
from secops.models.ip_access import IPAccessRule, IPRuleType
from secops.services.ip_access import IPAccessEvaluator, parse_ipv4


@given(st.ip_addresses(v=4))
def test_parse_ipv4_accepts_dotted_quads(ip):
    assert parse_ipv4(str(ip)) == str(ip)


@pytest.mark.parametrize("bad", ["", "  ", "10.0.0", "256.1.1.1", "10.0.0.1/24", "::1", "abc", "01.2.3.4"])
def test_parse_ipv4_rejects_garbage(bad):
    with pytest.raises(ValidationError):
        parse_ipv4(bad)


@pytest.mark.asyncio
async def test_no_rule_uses_default_allow(evaluator):
    decision = await evaluator.check("203.0.113.7")
    assert decision.allowed is True
    assert decision.reason == "No rule found, default to allowed"
    assert decision.rule is None


@pytest.mark.asyncio
async def test_no_rule_fail_closed(db):
    decision = await IPAccessEvaluator(default_policy="deny").check("203.0.113.7")
    assert decision.allowed is False
    assert "No rule found" in decision.reason


def test_unknown_default_policy_is_refused():
    with pytest.raises(ValueError):
        IPAccessEvaluator(default_policy="maybe")


@pytest.mark.asyncio
async def test_allowed_then_blocked(evaluator, admin):
    rule, created = await evaluator.upsert("10.0.0.5", "ALLOWED", "office", actor_id=admin.id)
    assert created
    assert rule.created_by_id == admin.id
    decision = await evaluator.check("10.0.0.5")
    assert decision.allowed is True
    assert decision.reason == "IP is explicitly allowed"

    await evaluator.upsert("10.0.0.5", IPRuleType.BLOCKED, "compromised", actor_id=admin.id)
    decision = await evaluator.check("10.0.0.5")
    assert decision.allowed is False
    assert decision.reason == "IP is explicitly blocked"
    assert decision.rule.description == "compromised"
    assert decision.to_dict()["rule"]["type"] == "BLOCKED"


@pytest.mark.asyncio
async def test_upsert_is_idempotent(evaluator):
    first, created_first = await evaluator.upsert("10.0.0.9", "BLOCKED", "scanner")
    second, created_second = await evaluator.upsert("10.0.0.9", "BLOCKED", "scanner")

    assert created_first is True
    assert created_second is False
    assert first.id == second.id
    assert await IPAccessRule.filter(ip_address="10.0.0.9").count() == 1
    stored = await IPAccessRule.get(ip_address="10.0.0.9")
    assert (stored.type, stored.description) == (IPRuleType.BLOCKED, "scanner")


@pytest.mark.asyncio
async def test_upsert_validates_before_touching_storage(evaluator):
    with pytest.raises(ValidationError):
        await evaluator.upsert("999.1.1.1", "BLOCKED")
    with pytest.raises(ValidationError):
        await evaluator.upsert("10.0.0.1", "MAYBE")
    assert await IPAccessRule.all().count() == 0


@pytest.mark.asyncio
async def test_concurrent_insert_turns_into_update(evaluator, monkeypatch):
    await IPAccessRule.create(ip_address="10.0.0.7", type=IPRuleType.ALLOWED)

    async def stale_lookup(*args, **kwargs):
        return None

    # Simulates losing the race: the lookup missed a row another request just inserted
    monkeypatch.setattr(IPAccessRule, "get_or_none", stale_lookup)
    rule, created = await evaluator.upsert("10.0.0.7", "BLOCKED", "raced")

    assert created is False
    assert rule.type == IPRuleType.BLOCKED
    assert await IPAccessRule.filter(ip_address="10.0.0.7").count() == 1


@pytest.mark.asyncio
async def test_upsert_rejects_unknown_author(evaluator):
    with pytest.raises(ValidationError):
        await evaluator.upsert("10.0.0.1", "BLOCKED", actor_id=uuid.uuid4())
    assert await IPAccessRule.all().count() == 0


@pytest.mark.asyncio
async def test_insert_conflict_without_a_surviving_row(evaluator, monkeypatch):
    async def conflicting_create(*args, **kwargs):
        raise IntegrityError("UNIQUE constraint failed: ip_access_rules.ip_address")

    # The competing row was inserted and removed again before the follow-up lookup
    monkeypatch.setattr(IPAccessRule, "create", conflicting_create)
    with pytest.raises(ConflictError):
        await evaluator.upsert("10.0.0.1", "BLOCKED")


@pytest.mark.asyncio
async def test_store_failure_is_an_evaluation_error(evaluator, monkeypatch):
    async def broken_lookup(*args, **kwargs):
        raise OperationalError("database is locked")

    monkeypatch.setattr(IPAccessRule, "get_or_none", broken_lookup)
    with pytest.raises(EvaluationError):
        await evaluator.check("10.0.0.1")


@pytest.mark.asyncio
async def test_remove(evaluator):
    rule, _ = await evaluator.upsert("10.0.0.8", "BLOCKED")
    await evaluator.remove(rule.id)
    assert await IPAccessRule.all().count() == 0

    with pytest.raises(NotFoundError):
        await evaluator.remove(rule.id)


@pytest.mark.asyncio
async def test_list_rules_newest_first(evaluator):
    await evaluator.upsert("10.0.0.1", "ALLOWED")
    await evaluator.upsert("10.0.0.2", "BLOCKED")
    rules = await evaluator.list_rules()
    assert [r.ip_address for r in rules] == ["10.0.0.2", "10.0.0.1"]
