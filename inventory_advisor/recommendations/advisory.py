"""
Advisory adapter: asks an external text-generation endpoint for inventory
recommendations and falls back to the rule evaluator on any failure.

API:   Generative Language ``generateContent`` endpoint
       POST {base_url}/models/{model}:generateContent

Credential setup (.env, gitignored):
  INVENTORY_ADVISOR_ADVISORY_API_KEY=your_key_here

Without a key the adapter never makes a request and returns rule output.

Request / response
------------------
The snapshot is serialised into one free-text prompt::

    {"contents": [{"parts": [{"text": "<prompt>"}]}]}

sent with the key in the ``x-goog-api-key`` header. The reply text lives at
``candidates[0].content.parts[0].text``; the first ``[...]`` span in it
(first ``[`` to last ``]``) is parsed as JSON.

Validation
----------
The parsed array is validated element by element against
``Recommendation``. A non-list, an empty list, any invalid element or a
duplicate ``id`` counts as a failed response.

Fallback (single attempt, no retries)
-------------------------------------
Missing key, transport error or timeout, non-200 status, malformed
envelope, no array in the text, JSON decode error, validation failure:
all of them log a WARNING and return ``RuleEvaluator.evaluate(snapshot)``.
The adapter never raises to its caller, except ``asyncio.CancelledError``
when the caller abandons the request.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from inventory_advisor.config import AdvisoryConfig
from inventory_advisor.models.inventory import InventoryItem, SnapshotInput, load_snapshot
from inventory_advisor.models.recommendation import Recommendation
from inventory_advisor.recommendations.evaluator import RuleEvaluator

logger = logging.getLogger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")

_RECOMMENDATION_LIST = TypeAdapter(list[Recommendation])


class AdvisoryResponseError(RuntimeError):
    """Raised internally when the advisory reply cannot be used.

    Attributes:
        reason: Short machine-friendly tag, e.g. ``"no_json_array"``.
    """

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


@dataclass
class AdvisoryOutcome:
    """Recommendations plus where they came from.

    Attributes:
        recommendations: Validated recommendation list.
        source:          ``"advisory"`` or ``"rules"``.
        fallback_used:   ``True`` when the rule evaluator produced the list.
        warnings:        Tags describing why the fallback was taken.
    """

    recommendations: list[Recommendation]
    source: Literal["advisory", "rules"]
    fallback_used: bool
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "fallback_used": self.fallback_used,
            "warnings": self.warnings,
            "recommendations": [r.to_wire() for r in self.recommendations],
        }


# ── Prompt + parsing (pure) ───────────────────────────────────────────────────

def build_prompt(snapshot: Sequence[InventoryItem], min_recommendations: int = 5) -> str:
    """Serialise the snapshot into the advisory prompt text."""
    records = [item.model_dump(mode="json") for item in snapshot]
    return (
        "Analyze this inventory data and provide inventory management recommendations:\n"
        f"{json.dumps(records, indent=2)}\n\n"
        f"Provide at least {min_recommendations} specific, actionable recommendations "
        "as a JSON array of objects with these fields:\n"
        "- id: a unique identifier for the recommendation\n"
        "- itemId: the id of the item\n"
        "- itemName: the name of the item\n"
        "- type: one of [warning, info, success, danger]\n"
        "- priority: one of [high, medium, low]\n"
        "- message: a short recommendation message\n"
        "- detail: more detailed explanation\n"
        "- actionRequired: boolean indicating if action is needed\n"
        "- icon: suggested icon name (one of: alert, alert-triangle, chart-up, "
        "chart-down, clock, tag, users)"
    )


def build_request_body(prompt: str) -> dict[str, Any]:
    return {"contents": [{"parts": [{"text": prompt}]}]}


def extract_response_text(envelope: Any) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of the reply envelope.

    Raises:
        AdvisoryResponseError: If any level is missing or has the wrong type.
    """
    try:
        text = envelope["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AdvisoryResponseError(
            "malformed_envelope", f"Advisory envelope missing text: {exc!r}"
        ) from exc
    if not isinstance(text, str):
        raise AdvisoryResponseError(
            "malformed_envelope", "Advisory envelope text is not a string."
        )
    return text


def extract_json_array(text: str) -> Optional[str]:
    """Return the first ``[`` … last ``]`` span of ``text``, or ``None``."""
    match = _JSON_ARRAY_RE.search(text)
    return match.group(0) if match else None


def parse_advisory_recommendations(payload: Any) -> list[Recommendation]:
    """Validate a decoded advisory payload into recommendations.

    Args:
        payload: Result of ``json.loads`` on the extracted array.

    Returns:
        Non-empty list of ``Recommendation`` with unique ids.

    Raises:
        AdvisoryResponseError: On any shape or field violation.
    """
    if not isinstance(payload, list):
        raise AdvisoryResponseError("not_a_list", "Advisory payload is not a JSON array.")
    if not payload:
        raise AdvisoryResponseError("empty_list", "Advisory payload is an empty array.")

    try:
        recs = _RECOMMENDATION_LIST.validate_python(payload)
    except ValidationError as exc:
        raise AdvisoryResponseError(
            "invalid_recommendation",
            f"Advisory payload failed validation ({exc.error_count()} error(s)).",
        ) from exc

    ids = [r.id for r in recs]
    if len(set(ids)) != len(ids):
        raise AdvisoryResponseError(
            "duplicate_id", "Advisory payload contains duplicate recommendation ids."
        )
    return recs


def parse_advisory_text(text: str) -> list[Recommendation]:
    """Extract, decode and validate the recommendation array in ``text``."""
    raw = extract_json_array(text)
    if raw is None:
        raise AdvisoryResponseError(
            "no_json_array", "Could not find a JSON array in the advisory response."
        )
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AdvisoryResponseError(
            "json_decode_error", f"Advisory JSON array did not parse: {exc}"
        ) from exc
    return parse_advisory_recommendations(payload)


# ── Client ────────────────────────────────────────────────────────────────────

class AdvisoryClient:
    """Async advisory client with unconditional rule-based fallback.

    Usage::

        client = AdvisoryClient(config.advisory, rules=RuleEvaluator(config.rules))
        recs = await client.evaluate_via_advisory(snapshot)

    Attributes:
        config:    Endpoint, model, key and timeout.
        rules:     Evaluator used for every fallback.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: Optional[AdvisoryConfig] = None,
        *,
        rules: Optional[RuleEvaluator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or AdvisoryConfig()
        self.rules = rules or RuleEvaluator()
        self.transport = transport

    async def evaluate_via_advisory(self, snapshot: SnapshotInput) -> list[Recommendation]:
        """Return advisory recommendations, or rule output on any failure."""
        outcome = await self.advise(snapshot)
        return outcome.recommendations

    async def advise(self, snapshot: SnapshotInput) -> AdvisoryOutcome:
        """Like ``evaluate_via_advisory`` but reports the source and warnings.

        Raises:
            SnapshotValidationError: If a raw snapshot record is malformed
                (input errors are the caller's, not the advisory path's).
        """
        items = load_snapshot(snapshot)

        if not self.config.is_configured:
            logger.info("Advisory disabled or no API key configured; using rules.")
            return self._fallback(items, "advisory_unavailable")

        try:
            recs = await self._request_recommendations(items)
        except AdvisoryResponseError as exc:
            logger.warning("Advisory fallback (%s): %s", exc.reason, exc)
            return self._fallback(items, exc.reason)
        except httpx.HTTPError as exc:
            logger.warning("Advisory fallback (transport_error): %r", exc)
            return self._fallback(items, "transport_error")
        except Exception as exc:  # noqa: BLE001
            logger.warning("Advisory fallback (runtime_error): %r", exc)
            return self._fallback(items, "runtime_error")

        logger.info("Advisory returned %d recommendation(s).", len(recs))
        return AdvisoryOutcome(recommendations=recs, source="advisory", fallback_used=False)

    async def _request_recommendations(
        self,
        items: list[InventoryItem],
    ) -> list[Recommendation]:
        prompt = build_prompt(items, self.config.min_recommendations)
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=self.config.timeout_seconds,
        ) as client:
            resp = await client.post(
                self.config.generate_url,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.config.api_key or "",
                },
                json=build_request_body(prompt),
            )

        if resp.status_code != 200:
            raise AdvisoryResponseError(
                "http_status", f"Advisory endpoint returned HTTP {resp.status_code}."
            )
        try:
            envelope = resp.json()
        except ValueError as exc:
            raise AdvisoryResponseError(
                "malformed_envelope", f"Advisory response is not JSON: {exc}"
            ) from exc

        return parse_advisory_text(extract_response_text(envelope))

    def _fallback(self, items: list[InventoryItem], reason: str) -> AdvisoryOutcome:
        return AdvisoryOutcome(
            recommendations=self.rules.evaluate(items),
            source="rules",
            fallback_used=True,
            warnings=[reason],
        )


async def evaluate_via_advisory(
    snapshot: SnapshotInput,
    config: Optional[AdvisoryConfig] = None,
    *,
    rules: Optional[RuleEvaluator] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[Recommendation]:
    """Module-level shortcut around ``AdvisoryClient.evaluate_via_advisory``."""
    client = AdvisoryClient(config, rules=rules, transport=transport)
    return await client.evaluate_via_advisory(snapshot)
