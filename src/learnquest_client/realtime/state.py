"""Connection state machine for the notification push stream."""

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, auto


class ConnectionState(Enum):
    """States of the push-stream connection."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


class StateTransitionError(Exception):
    """Exception raised when a state transition is not allowed."""

    def __init__(
        self,
        message: str,
        from_state: ConnectionState | None = None,
        to_state: ConnectionState | None = None,
    ) -> None:
        """Initialize state transition error.

        Args:
            message: Error message
            from_state: Source state of the failed transition
            to_state: Target state of the failed transition
        """
        super().__init__(message)
        self.from_state: ConnectionState | None = from_state
        self.to_state: ConnectionState | None = to_state


@dataclass(slots=True, frozen=True)
class TransitionRecord:
    """One applied transition."""

    from_state: ConnectionState
    to_state: ConnectionState
    reason: str | None
    at: datetime


@dataclass
class StateContext:
    """Current state plus the transition history."""

    current_state: ConnectionState = ConnectionState.DISCONNECTED
    previous_state: ConnectionState | None = None
    last_error: str | None = None
    _history: list[TransitionRecord] = field(default_factory=list)

    def record(self, to_state: ConnectionState, reason: str | None) -> TransitionRecord:
        entry = TransitionRecord(self.current_state, to_state, reason, datetime.now(UTC))
        self.previous_state = self.current_state
        self.current_state = to_state
        self._history.append(entry)
        return entry

    def get_history(self) -> list[TransitionRecord]:
        return self._history.copy()


class StateTransition:
    """A permitted transition with an optional guard and action."""

    from_state: ConnectionState
    to_state: ConnectionState
    guard: Callable[[StateContext], bool] | None
    action: Callable[[StateContext], None] | None

    def __init__(
        self,
        from_state: ConnectionState,
        to_state: ConnectionState,
        guard: Callable[[StateContext], bool] | None = None,
        action: Callable[[StateContext], None] | None = None,
    ) -> None:
        self.from_state = from_state
        self.to_state = to_state
        self.guard = guard
        self.action = action

    def can_transition(self, context: StateContext) -> bool:
        if self.guard is None:
            return True
        return self.guard(context)

    def execute_action(self, context: StateContext) -> None:
        if self.action is not None:
            self.action(context)


def _clear_error(context: StateContext) -> None:
    context.last_error = None


DEFAULT_TRANSITIONS: tuple[StateTransition, ...] = (
    StateTransition(ConnectionState.DISCONNECTED, ConnectionState.CONNECTING),
    StateTransition(ConnectionState.CONNECTING, ConnectionState.CONNECTED, action=_clear_error),
    StateTransition(ConnectionState.CONNECTING, ConnectionState.DISCONNECTED),
    StateTransition(ConnectionState.CONNECTED, ConnectionState.DISCONNECTED),
)


class ConnectionStateMachine:
    """Guarded state machine over :class:`ConnectionState`.

    Only the transitions registered in the table are legal:
    ``DISCONNECTED -> CONNECTING -> CONNECTED`` and
    ``CONNECTING|CONNECTED -> DISCONNECTED``. Everything else, including a
    self-transition, raises :class:`StateTransitionError`.

    The machine runs on a single event loop and takes no locks.
    """

    def __init__(
        self,
        transitions: tuple[StateTransition, ...] = DEFAULT_TRANSITIONS,
        initial_state: ConnectionState = ConnectionState.DISCONNECTED,
    ) -> None:
        self.context: StateContext = StateContext(current_state=initial_state)
        self._transitions: dict[ConnectionState, list[StateTransition]] = defaultdict(list)
        for transition in transitions:
            self.add_transition(transition)

    @property
    def current_state(self) -> ConnectionState:
        return self.context.current_state

    @property
    def last_error(self) -> str | None:
        return self.context.last_error

    @property
    def history(self) -> list[TransitionRecord]:
        return self.context.get_history()

    def add_transition(self, transition: StateTransition) -> None:
        self._transitions[transition.from_state].append(transition)

    def get_transitions(self, from_state: ConnectionState) -> list[StateTransition]:
        return self._transitions[from_state].copy()

    def can_transition_to(self, to_state: ConnectionState) -> bool:
        return self._find(to_state) is not None

    def transition_to(
        self,
        to_state: ConnectionState,
        *,
        reason: str | None = None,
        error: str | None = None,
    ) -> TransitionRecord:
        """Move to ``to_state``.

        Args:
            to_state: Target state
            reason: Free-text note kept in the history
            error: Error to record as ``last_error`` (after the transition action)

        Returns:
            The history entry of the applied transition

        Raises:
            StateTransitionError: If the transition is not permitted
        """
        transition = self._find(to_state)
        if transition is None:
            current = self.context.current_state
            raise StateTransitionError(
                f"Cannot transition from {current.name} to {to_state.name}",
                from_state=current,
                to_state=to_state,
            )

        transition.execute_action(self.context)
        if error is not None:
            self.context.last_error = error
        return self.context.record(to_state, reason)

    def _find(self, to_state: ConnectionState) -> StateTransition | None:
        for transition in self._transitions[self.context.current_state]:
            if transition.to_state == to_state and transition.can_transition(self.context):
                return transition
        return None
