"""Client for the external advisory service that suggests computer-seat plays."""

import re
from typing import Any

import httpx

from table.errors import AdvisoryUnavailable
from table.strategy.decision import Action, Decision, DecisionContext, PlayStyle

DEFAULT_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.0-flash"

_ACTION_RE = re.compile(r"ACTION:\s*(HIT|STAND|DOUBLE)", re.IGNORECASE)
_REASON_RE = re.compile(r"REASON:\s*(.+)", re.IGNORECASE)

_STYLE_BRIEFS = {
    PlayStyle.AGGRESSIVE: (
        "You are an aggressive blackjack player. Always hit if total is 16 or less. "
        "Hit on soft 17. Double frequently."
    ),
    PlayStyle.CONSERVATIVE: (
        "You are a safe blackjack player. Stand on 15+. Stand on 12+ vs strong dealer. "
        "Only double 10-11 vs weak dealer."
    ),
}

_TEMPERATURES = {
    PlayStyle.AGGRESSIVE: 0.9,
    PlayStyle.CONSERVATIVE: 0.3,
}


def build_prompt(context: DecisionContext) -> str:
    """Describe the seat's situation in plain language for the advisor."""
    hand = ", ".join(str(card) for card in context.cards)
    soft = " (soft)" if context.is_soft else ""
    can_double = "yes" if context.can_double else "no"
    return (
        f"{_STYLE_BRIEFS[context.style]} "
        f"Current: {context.seat_name} hand {hand}, score {context.score}{soft}, "
        f"dealer {context.dealer_upcard}, chips {context.chips}, bet {context.bet}, "
        f"can double {can_double}. "
        "Respond ONLY: ACTION: [HIT/STAND/DOUBLE] - REASON: [10 words max]"
    )


def parse_advice(text: str) -> Decision:
    """
    Parse an 'ACTION: ... - REASON: ...' reply into a decision.

    Raises:
        AdvisoryUnavailable: If the reply has no recognizable action
    """
    action_match = _ACTION_RE.search(text)
    if action_match is None:
        raise AdvisoryUnavailable(f"No action in advisory reply: {text[:80]!r}")

    reason_match = _REASON_RE.search(text)
    reason = reason_match.group(1).strip() if reason_match else ""
    return Decision(
        action=Action.parse(action_match.group(1)),
        reason=reason or "No reason given",
        source="advisory",
    )


def _reply_text(payload: Any) -> str:
    """Pull the generated text out of a generateContent response body."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AdvisoryUnavailable(f"Malformed advisory response: {exc!r}") from exc
    if not isinstance(text, str):
        raise AdvisoryUnavailable("Advisory response text is not a string")
    return text


class AdvisoryClient:
    """Asks a text-generation endpoint which action a computer seat should take."""

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = 8.0,
        max_output_tokens: int = 100,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Key passed as the ``key`` query parameter
            url: Endpoint URL, may contain a ``{model}`` placeholder
            model: Model name substituted into the URL
            timeout: HTTP timeout in seconds
            max_output_tokens: Cap on the length of the reply
            client: Shared HTTP client; a short-lived one is opened per
                request when omitted
        """
        self._api_key = api_key
        self._url = url.format(model=model)
        self._timeout = timeout
        self._max_output_tokens = max_output_tokens
        self._client = client

    @property
    def url(self) -> str:
        return self._url

    def _request_body(self, context: DecisionContext) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": build_prompt(context)}]}],
            "generationConfig": {
                "temperature": _TEMPERATURES[context.style],
                "maxOutputTokens": self._max_output_tokens,
            },
        }

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> Any:
        response = await client.post(
            self._url,
            params={"key": self._api_key},
            json=body,
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    async def advise(self, context: DecisionContext) -> Decision:
        """
        Request a decision for the given situation.

        Raises:
            AdvisoryUnavailable: On transport errors, error statuses, or an
                unparseable reply
        """
        body = self._request_body(context)
        try:
            if self._client is not None:
                payload = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient() as client:
                    payload = await self._post(client, body)
        except httpx.HTTPError as exc:
            raise AdvisoryUnavailable(f"Advisory request failed: {exc!r}") from exc
        except ValueError as exc:
            raise AdvisoryUnavailable(f"Advisory response is not JSON: {exc!r}") from exc

        return parse_advice(_reply_text(payload))
