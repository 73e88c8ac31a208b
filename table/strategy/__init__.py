"""Computer-seat decision making."""

from table.strategy.decision import Action, Decision, DecisionContext, PlayStyle
from table.strategy.advisory import AdvisoryClient
from table.strategy.policy import DecisionPolicy, local_decision

__all__ = [
    "Action",
    "Decision",
    "DecisionContext",
    "PlayStyle",
    "AdvisoryClient",
    "DecisionPolicy",
    "local_decision",
]
