"""
Symlog Orchestration

Turn controller, phase state machine and the host-facing session.
"""

from symlog.orchestration.orchestrator import ConversationOrchestrator, PriorTurn, TurnResult
from symlog.orchestration.session import ConversationSession, TurnOutcome
from symlog.orchestration.state import Transition, TurnOutcomeKind, TurnSnapshot, transition

__all__ = [
    "ConversationOrchestrator",
    "PriorTurn",
    "TurnResult",
    "ConversationSession",
    "TurnOutcome",
    "Transition",
    "TurnOutcomeKind",
    "TurnSnapshot",
    "transition",
]
