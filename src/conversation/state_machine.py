"""Pure per-message transition function for the conversation router.

Rules are checked in precedence order; the first one that applies wins:

1. manual control: persist only, no reply
2. no session, or idle past the restart threshold: greet and stop
3. end keywords: finalize, unless a candidate is mid-flow
4. attendant request: hand off to a human
5. explicit classification keywords: enter that flow
6. still unclassified: ask the LLM classifier
7. otherwise: dispatch by the current classification
"""

from dataclasses import dataclass
from enum import Enum

from src.conversation.session import ConversationSession
from src.core.schemas import Classification
from src.pipeline import heuristics


class Action(str, Enum):
    PERSIST_ONLY = "persist_only"
    RESTART = "restart"
    END = "end"
    TRANSFER_TO_ATTENDANT = "transfer_to_attendant"
    ENTER_FLOW = "enter_flow"
    CLASSIFY = "classify"
    DISPATCH = "dispatch"


@dataclass(frozen=True)
class SessionView:
    """The slice of session state the transition rules look at."""

    exists: bool = False
    classification: Classification = Classification.UNCLASSIFIED
    is_under_manual_control: bool = False
    idle_ms: float = 0.0
    history_length: int = 0

    @classmethod
    def of(cls, session: ConversationSession | None, idle_ms: float = 0.0) -> "SessionView":
        if session is None:
            return cls()
        return cls(
            exists=True,
            classification=session.classification,
            is_under_manual_control=session.is_under_manual_control,
            idle_ms=idle_ms,
            history_length=session.history_length,
        )


@dataclass(frozen=True)
class Transition:
    action: Action
    classification: Classification | None = None
    changed: bool = False


def next_transition(
    view: SessionView,
    message: str,
    *,
    restart_threshold_ms: float,
    end_suppression_history: int,
) -> Transition:
    """Decide what to do with one inbound message. No side effects."""
    if view.exists and view.is_under_manual_control:
        return Transition(Action.PERSIST_ONLY)

    if not view.exists or view.idle_ms > restart_threshold_ms:
        return Transition(Action.RESTART)

    current = view.classification

    if heuristics.wants_to_end(message):
        mid_flow = (
            current is Classification.CANDIDATE
            and view.history_length > end_suppression_history
        )
        if not mid_flow:
            return Transition(Action.END)

    if heuristics.wants_attendant(message):
        return Transition(Action.TRANSFER_TO_ATTENDANT)

    unclassified = current is Classification.UNCLASSIFIED
    explicit = heuristics.detect_explicit_classification(message, exact=not unclassified)
    if explicit is not None:
        return Transition(Action.ENTER_FLOW, classification=explicit, changed=explicit is not current)

    if unclassified:
        return Transition(Action.CLASSIFY)

    return Transition(Action.DISPATCH, classification=current)
