"""
Tests for inventory_advisor/recommendations/advisory.py.

All HTTP goes through ``httpx.MockTransport``; nothing touches the network.

What we test
------------
Pure helpers:
  - build_prompt() embeds every item and the requested minimum count.
  - build_request_body() wraps the prompt in contents/parts.
  - extract_json_array() takes the first '[' to the last ']'.
  - parse_advisory_text() rejects missing arrays, bad JSON, empty lists,
    invalid elements and duplicate ids.

AdvisoryClient.advise() / evaluate_via_advisory():
  - Success: validated recommendations, source "advisory"; request carries
    the API key header and hits the model's generateContent URL.
  - A transport that always fails → exactly the rule evaluator's output.
  - No key / disabled → no request at all, rules output.
  - Non-200, malformed envelope, non-JSON body, unusable payload → rules
    output with the matching warning tag.
  - Unexpected exceptions inside the transport → rules output.
  - asyncio.CancelledError propagates.
  - Malformed snapshot records still raise SnapshotValidationError.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from inventory_advisor.config import AdvisoryConfig
from inventory_advisor.models.inventory import SnapshotValidationError, load_snapshot
from inventory_advisor.recommendations.advisory import (
    AdvisoryClient,
    AdvisoryResponseError,
    build_prompt,
    build_request_body,
    evaluate_via_advisory,
    extract_json_array,
    parse_advisory_text,
)
from inventory_advisor.recommendations.evaluator import RuleEvaluator

_CONFIG = AdvisoryConfig(api_key="test-key")


def _rec_payload(rec_id: str = "ai-1", **overrides) -> dict:
    payload = {
        "id": rec_id,
        "itemId": 1,
        "itemName": "Widget",
        "type": "warning",
        "priority": "high",
        "message": "Reorder Widget this week.",
        "detail": "Stock covers two days of sales.",
        "actionRequired": True,
        "icon": "alert",
    }
    payload.update(overrides)
    return payload


def _envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _json_handler(body, status: int = 200, calls: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status, json=body)
    return handler


@pytest.fixture
def rules(as_of, never_nudge) -> RuleEvaluator:
    return RuleEvaluator(rng=never_nudge, as_of=as_of)


@pytest.fixture
def expected_rules_output(low_stock_snapshot, as_of, fixed_random):
    return RuleEvaluator(rng=fixed_random(0.99), as_of=as_of).evaluate(low_stock_snapshot)


# ── Pure helpers ──────────────────────────────────────────────────────────────


class TestPromptAndBody:
    def test_prompt_embeds_items(self, low_stock_snapshot) -> None:
        prompt = build_prompt(load_snapshot(low_stock_snapshot), min_recommendations=7)
        assert '"item_name": "Widget"' in prompt
        assert "at least 7" in prompt
        assert "actionRequired" in prompt

    def test_request_body_shape(self) -> None:
        assert build_request_body("hi") == {"contents": [{"parts": [{"text": "hi"}]}]}


class TestParsing:
    def test_extract_array_is_greedy(self) -> None:
        text = 'Sure: [{"a": [1]}] and also [2] done'
        assert extract_json_array(text) == '[{"a": [1]}] and also [2]'

    def test_extract_array_none(self) -> None:
        assert extract_json_array("no brackets here") is None

    def test_parse_with_surrounding_prose(self) -> None:
        text = "Here you go:\n```json\n" + json.dumps([_rec_payload()]) + "\n```"
        recs = parse_advisory_text(text)
        assert len(recs) == 1
        assert recs[0].item_id == 1

    @pytest.mark.parametrize(
        "text, reason",
        [
            ("nothing useful", "no_json_array"),
            ("[not json]", "json_decode_error"),
            ("[]", "empty_list"),
            (json.dumps([_rec_payload(type="critical")]), "invalid_recommendation"),
            (json.dumps([_rec_payload("a"), _rec_payload("a")]), "duplicate_id"),
        ],
    )
    def test_rejections(self, text, reason) -> None:
        with pytest.raises(AdvisoryResponseError) as exc_info:
            parse_advisory_text(text)
        assert exc_info.value.reason == reason


# ── Client ────────────────────────────────────────────────────────────────────


class TestAdvisoryClient:
    @pytest.mark.asyncio
    async def test_success(self, low_stock_snapshot, rules) -> None:
        calls: list[httpx.Request] = []
        body = _envelope(json.dumps([_rec_payload("ai-1"), _rec_payload("ai-2", priority="low")]))
        client = AdvisoryClient(
            _CONFIG, rules=rules,
            transport=httpx.MockTransport(_json_handler(body, calls=calls)),
        )

        outcome = await client.advise(low_stock_snapshot)

        assert outcome.source == "advisory"
        assert outcome.fallback_used is False
        assert [r.id for r in outcome.recommendations] == ["ai-1", "ai-2"]
        assert len(calls) == 1
        request = calls[0]
        assert request.method == "POST"
        assert request.headers["x-goog-api-key"] == "test-key"
        assert request.url.path.endswith("/models/gemini-pro:generateContent")
        sent = json.loads(request.content)
        assert "Widget" in sent["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_failing_transport_equals_rules(
        self, low_stock_snapshot, rules, expected_rules_output
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = AdvisoryClient(_CONFIG, rules=rules, transport=httpx.MockTransport(handler))
        recs = await client.evaluate_via_advisory(low_stock_snapshot)
        assert recs == expected_rules_output

    @pytest.mark.asyncio
    async def test_timeout_falls_back(self, low_stock_snapshot, rules) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = AdvisoryClient(_CONFIG, rules=rules, transport=httpx.MockTransport(handler))
        outcome = await client.advise(low_stock_snapshot)
        assert outcome.fallback_used
        assert outcome.warnings == ["transport_error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "config",
        [AdvisoryConfig(), AdvisoryConfig(api_key="k", enabled=False)],
    )
    async def test_unconfigured_makes_no_request(
        self, low_stock_snapshot, rules, expected_rules_output, config
    ) -> None:
        calls: list[httpx.Request] = []
        client = AdvisoryClient(
            config, rules=rules,
            transport=httpx.MockTransport(_json_handler({}, calls=calls)),
        )
        outcome = await client.advise(low_stock_snapshot)
        assert calls == []
        assert outcome.source == "rules"
        assert outcome.warnings == ["advisory_unavailable"]
        assert outcome.recommendations == expected_rules_output

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, status, reason",
        [
            (_envelope(json.dumps([_rec_payload()])), 500, "http_status"),
            ({"unexpected": True}, 200, "malformed_envelope"),
            (_envelope("I cannot help with that."), 200, "no_json_array"),
            (_envelope("[]"), 200, "empty_list"),
            (_envelope(json.dumps([{"id": "x"}])), 200, "invalid_recommendation"),
            (_envelope(json.dumps([_rec_payload("d"), _rec_payload("d")])), 200, "duplicate_id"),
        ],
    )
    async def test_bad_responses_fall_back(
        self, low_stock_snapshot, rules, expected_rules_output, body, status, reason
    ) -> None:
        client = AdvisoryClient(
            _CONFIG, rules=rules,
            transport=httpx.MockTransport(_json_handler(body, status=status)),
        )
        outcome = await client.advise(low_stock_snapshot)
        assert outcome.source == "rules"
        assert outcome.fallback_used is True
        assert outcome.warnings == [reason]
        assert outcome.recommendations == expected_rules_output

    @pytest.mark.asyncio
    async def test_non_json_body_falls_back(self, low_stock_snapshot, rules) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        client = AdvisoryClient(_CONFIG, rules=rules, transport=httpx.MockTransport(handler))
        outcome = await client.advise(low_stock_snapshot)
        assert outcome.warnings == ["malformed_envelope"]

    @pytest.mark.asyncio
    async def test_unexpected_error_falls_back(self, low_stock_snapshot, rules) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise ValueError("bug in transport")

        client = AdvisoryClient(_CONFIG, rules=rules, transport=httpx.MockTransport(handler))
        outcome = await client.advise(low_stock_snapshot)
        assert outcome.warnings == ["runtime_error"]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, low_stock_snapshot, rules) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            raise asyncio.CancelledError()

        client = AdvisoryClient(_CONFIG, rules=rules, transport=httpx.MockTransport(handler))
        with pytest.raises(asyncio.CancelledError):
            await client.advise(low_stock_snapshot)

    @pytest.mark.asyncio
    async def test_malformed_snapshot_raises(self, make_record, rules) -> None:
        client = AdvisoryClient(_CONFIG, rules=rules)
        with pytest.raises(SnapshotValidationError):
            await client.advise([make_record(price=-1)])

    @pytest.mark.asyncio
    async def test_fallback_logs_warning(self, low_stock_snapshot, rules, caplog) -> None:
        client = AdvisoryClient(
            _CONFIG, rules=rules,
            transport=httpx.MockTransport(_json_handler({}, status=503)),
        )
        with caplog.at_level("WARNING", logger="inventory_advisor.recommendations.advisory"):
            await client.advise(low_stock_snapshot)
        assert "http_status" in caplog.text


@pytest.mark.asyncio
async def test_module_level_shortcut(low_stock_snapshot, rules) -> None:
    body = _envelope(json.dumps([_rec_payload()]))
    recs = await evaluate_via_advisory(
        low_stock_snapshot, _CONFIG, rules=rules,
        transport=httpx.MockTransport(_json_handler(body)),
    )
    assert [r.id for r in recs] == ["ai-1"]


def test_outcome_to_dict(low_stock_snapshot, rules) -> None:
    outcome = asyncio.run(AdvisoryClient(AdvisoryConfig(), rules=rules).advise(low_stock_snapshot))
    data = outcome.to_dict()
    assert data["source"] == "rules"
    assert data["fallback_used"] is True
    assert data["recommendations"][0]["id"] == "restock-1"
