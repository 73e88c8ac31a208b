"""Tests for computer-seat decisions and the advisory client."""

import asyncio
import json

import httpx
import pytest

from table.cards import Card
from table.errors import AdvisoryUnavailable
from table.strategy import (
    Action,
    AdvisoryClient,
    Decision,
    DecisionContext,
    DecisionPolicy,
    PlayStyle,
    local_decision,
)
from table.strategy.advisory import build_prompt, parse_advice

from conftest import cards


def context(
    labels: list[str],
    upcard: str = "10S",
    style: PlayStyle = PlayStyle.CONSERVATIVE,
    chips: int = 1000,
    bet: int = 50,
) -> DecisionContext:
    return DecisionContext(
        cards=tuple(cards(*labels)),
        dealer_upcard=Card.from_string(upcard),
        chips=chips,
        bet=bet,
        style=style,
        seat_name="Player 2",
    )


def aggressive(labels: list[str], **kwargs) -> DecisionContext:
    return context(labels, style=PlayStyle.AGGRESSIVE, **kwargs)


class TestDecisionContext:
    """Tests for derived decision inputs."""

    def test_can_double(self):
        assert context(["5S", "6H"]).can_double
        assert not context(["5S", "6H"], chips=40, bet=50).can_double
        assert context(["5S", "6H"], chips=50, bet=50).can_double
        assert not context(["5S", "3H", "3C"]).can_double

    def test_dealer_value(self):
        assert context(["5S"], upcard="AS").dealer_value == 11
        assert context(["5S"], upcard="QH").dealer_value == 10
        assert context(["5S"], upcard="6D").dealer_value == 6

    def test_action_parse(self):
        assert Action.parse(" double ") == Action.DOUBLE
        with pytest.raises(ValueError):
            Action.parse("SPLIT")


class TestAggressivePolicy:
    """Tests for the aggressive thresholds."""

    def test_double_on_11(self):
        assert local_decision(aggressive(["5S", "6H"])).action == Action.DOUBLE

    def test_double_on_10(self):
        assert local_decision(aggressive(["4S", "6H"])).action == Action.DOUBLE

    def test_hit_11_when_cannot_double(self):
        decision = local_decision(aggressive(["5S", "6H"], chips=10, bet=50))
        assert decision.action == Action.HIT

    def test_hit_soft_17(self):
        assert local_decision(aggressive(["AS", "6H"])).action == Action.HIT

    def test_hit_16(self):
        assert local_decision(aggressive(["10S", "6H"])).action == Action.HIT

    def test_stand_hard_17(self):
        assert local_decision(aggressive(["10S", "7H"])).action == Action.STAND

    def test_stand_soft_18(self):
        assert local_decision(aggressive(["AS", "7H"])).action == Action.STAND


class TestConservativePolicy:
    """Tests for the conservative thresholds."""

    def test_stand_16_against_10(self):
        assert local_decision(context(["10S", "6H"], upcard="KD")).action == Action.STAND

    def test_stand_12(self):
        assert local_decision(context(["10S", "2H"], upcard="AD")).action == Action.STAND

    @pytest.mark.parametrize("upcard", ["4S", "5S", "6S"])
    def test_double_11_against_weak_dealer(self, upcard):
        assert local_decision(context(["5S", "6H"], upcard=upcard)).action == Action.DOUBLE

    @pytest.mark.parametrize("upcard", ["3S", "7S", "AS"])
    def test_hit_11_against_other_dealer(self, upcard):
        assert local_decision(context(["5S", "6H"], upcard=upcard)).action == Action.HIT

    def test_hit_10_against_weak_dealer(self):
        assert local_decision(context(["4S", "6H"], upcard="5D")).action == Action.HIT

    def test_soft_hand_stands_at_12_plus(self):
        """Soft hands use the same totals."""
        assert local_decision(context(["AS", "2H"])).action == Action.STAND

    def test_hit_low_total(self):
        decision = local_decision(context(["2S", "3H"]))
        assert decision.action == Action.HIT
        assert decision.source == "local"
        assert decision.reason


class FakeAdvisor:
    """Advisor stand-in returning a fixed answer or raising."""

    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0

    async def advise(self, ctx):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class TestDecisionPolicy:
    """Tests for advisory use and fallback."""

    @pytest.mark.asyncio
    async def test_local_only(self):
        policy = DecisionPolicy()
        assert not policy.uses_advisor
        decision = await policy.decide(aggressive(["5S", "6H"]))
        assert decision.action == Action.DOUBLE

    @pytest.mark.asyncio
    async def test_uses_advice(self):
        advice = Decision(Action.STAND, "Dealer is weak", source="advisory")
        policy = DecisionPolicy(advisor=FakeAdvisor(result=advice))
        assert await policy.decide(context(["2S", "3H"])) == advice

    @pytest.mark.asyncio
    async def test_falls_back_when_unavailable(self):
        advisor = FakeAdvisor(error=AdvisoryUnavailable("boom"))
        policy = DecisionPolicy(advisor=advisor)
        decision = await policy.decide(context(["10S", "6H"]))
        assert advisor.calls == 1
        assert decision.action == Action.STAND
        assert decision.source == "local"

    @pytest.mark.asyncio
    async def test_falls_back_on_timeout(self):
        advice = Decision(Action.HIT, "Too late", source="advisory")
        policy = DecisionPolicy(advisor=FakeAdvisor(result=advice, delay=1.0), timeout=0.01)
        decision = await policy.decide(context(["10S", "6H"]))
        assert decision.source == "local"
        assert decision.action == Action.STAND

    @pytest.mark.asyncio
    async def test_rejects_illegal_double(self):
        advice = Decision(Action.DOUBLE, "Go big", source="advisory")
        policy = DecisionPolicy(advisor=FakeAdvisor(result=advice))
        decision = await policy.decide(context(["5S", "3H", "3C"]))
        assert decision.source == "local"
        assert decision.action == Action.HIT


def reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def advisory_client(handler) -> AdvisoryClient:
    transport = httpx.MockTransport(handler)
    return AdvisoryClient(
        api_key="test-key",
        url="https://advisor.test/{model}:generate",
        model="m1",
        client=httpx.AsyncClient(transport=transport),
    )


class TestAdvisoryClient:
    """Tests for the HTTP advisory client."""

    def test_parse_advice(self):
        decision = parse_advice("ACTION: double - REASON: Eleven vs six")
        assert decision.action == Action.DOUBLE
        assert decision.reason == "Eleven vs six"
        assert decision.source == "advisory"

    def test_parse_advice_without_reason(self):
        assert parse_advice("action: STAND").reason == "No reason given"

    def test_parse_advice_without_action(self):
        with pytest.raises(AdvisoryUnavailable):
            parse_advice("I would probably split here")

    def test_prompt_describes_state(self):
        prompt = build_prompt(aggressive(["AS", "6H"], upcard="9C"))
        assert "aggressive" in prompt
        assert "A♠, 6♥" in prompt
        assert "score 17 (soft)" in prompt
        assert "dealer 9♣" in prompt
        assert "ACTION: [HIT/STAND/DOUBLE]" in prompt

    @pytest.mark.asyncio
    async def test_advise(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=reply("ACTION: HIT - REASON: Sixteen is weak"))

        client = advisory_client(handler)
        decision = await client.advise(aggressive(["10S", "6H"]))

        assert decision == Decision(Action.HIT, "Sixteen is weak", source="advisory")
        assert seen["url"] == "https://advisor.test/m1:generate?key=test-key"
        assert seen["body"]["generationConfig"]["temperature"] == 0.9
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == 100

    @pytest.mark.asyncio
    async def test_conservative_temperature(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=reply("ACTION: STAND - REASON: Safe"))

        await advisory_client(handler).advise(context(["10S", "6H"]))
        assert seen["body"]["generationConfig"]["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_error_status(self):
        client = advisory_client(lambda request: httpx.Response(500, text="oops"))
        with pytest.raises(AdvisoryUnavailable):
            await client.advise(context(["10S", "6H"]))

    @pytest.mark.asyncio
    async def test_not_json(self):
        client = advisory_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(AdvisoryUnavailable):
            await client.advise(context(["10S", "6H"]))

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        client = advisory_client(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(AdvisoryUnavailable):
            await client.advise(context(["10S", "6H"]))

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        with pytest.raises(AdvisoryUnavailable):
            await advisory_client(handler).advise(context(["10S", "6H"]))

    @pytest.mark.asyncio
    async def test_policy_falls_back_on_garbage_reply(self):
        client = advisory_client(lambda request: httpx.Response(200, json=reply("no idea")))
        policy = DecisionPolicy(advisor=client)
        decision = await policy.decide(aggressive(["5S", "6H"]))
        assert decision == local_decision(aggressive(["5S", "6H"]))
