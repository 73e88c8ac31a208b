"""Play policy for computer-controlled seats."""

import asyncio
import logging

from table.errors import AdvisoryUnavailable
from table.strategy.advisory import AdvisoryClient
from table.strategy.decision import Action, Decision, DecisionContext, PlayStyle

logger = logging.getLogger(__name__)


def local_decision(context: DecisionContext) -> Decision:
    """
    Decide an action from fixed per-style thresholds.

    Args:
        context: The seat's hand, the dealer upcard and the chip situation

    Returns:
        The decision, always legal for the given context
    """
    total = context.score

    if context.style == PlayStyle.AGGRESSIVE:
        if context.can_double and total in (10, 11):
            return Decision(Action.DOUBLE, "Double down!")
        if context.is_soft and total == 17:
            return Decision(Action.HIT, "Soft 17, hitting")
        if total <= 16:
            return Decision(Action.HIT, "Fortune favors the bold!")
        return Decision(Action.STAND, "Got a strong hand")

    if total >= 15:
        return Decision(Action.STAND, "Playing safe on 15+")
    if total >= 12:
        return Decision(Action.STAND, "Better safe than bust")
    if context.can_double and total == 11 and 4 <= context.dealer_value <= 6:
        return Decision(Action.DOUBLE, "Safe double against a weak dealer")
    if total <= 11:
        return Decision(Action.HIT, "Cannot bust")
    return Decision(Action.STAND, "Preserving total")


class DecisionPolicy:
    """
    Chooses actions for computer seats.

    Asks the advisory service first when one is configured. Whatever goes
    wrong with it (errors, garbage, slowness, illegal advice) the local
    thresholds answer instead.
    """

    def __init__(
        self,
        advisor: AdvisoryClient | None = None,
        timeout: float = 8.0,
    ) -> None:
        """
        Initialize the policy.

        Args:
            advisor: Advisory client, or None to use local rules only
            timeout: Seconds to wait for advice before falling back
        """
        self._advisor = advisor
        self._timeout = timeout

    @property
    def uses_advisor(self) -> bool:
        return self._advisor is not None

    async def decide(self, context: DecisionContext) -> Decision:
        """Return the action for the given situation."""
        if self._advisor is None:
            return local_decision(context)

        try:
            decision = await asyncio.wait_for(
                self._advisor.advise(context),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Advisory timed out after %.1fs for %s, using local policy",
                self._timeout,
                context.seat_name,
            )
            return local_decision(context)
        except AdvisoryUnavailable as exc:
            logger.warning(
                "Advisory unavailable for %s (%s), using local policy",
                context.seat_name,
                exc.message,
            )
            return local_decision(context)

        if decision.action == Action.DOUBLE and not context.can_double:
            logger.warning(
                "Advisory suggested DOUBLE for %s but doubling is not allowed",
                context.seat_name,
            )
            return local_decision(context)

        logger.debug("Advisory decision for %s: %s", context.seat_name, decision)
        return decision
