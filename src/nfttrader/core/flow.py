#!/usr/bin/env python3
"""
Interactive Flow State Machine

Provides the state set, the static transition table, and the Flow State
Manager that owns the state, accumulated context, and bounded navigation
history of one interactive CLI session (e.g. the listing wizard).
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from .errors import (
    IllegalLifecycleTransitionError,
    InvalidContextUpdateError,
    InvalidSerializationDataError,
    InvalidStateError,
    InvalidTargetStateError,
    InvalidTransitionError,
    MissingFieldError,
    TerminalStateTransitionError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY_SIZE = 20


class FlowState(str, Enum):
    """States of an interactive flow."""

    SELECT_COLLECTION = "select-collection"
    SELECT_NFT = "select-nft"
    SELECT_PRICING_METHOD = "select-pricing-method"
    INPUT_PRICING_VALUE = "input-pricing-value"
    CONFIRM = "confirm"
    DONE = "done"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


INITIAL_STATE = FlowState.SELECT_COLLECTION

TERMINAL_STATES: frozenset[FlowState] = frozenset({FlowState.DONE, FlowState.CANCELLED})

# Every intermediate state has one forward edge, one back edge, and cancel.
VALID_TRANSITIONS: Mapping[FlowState, frozenset[FlowState]] = MappingProxyType(
    {
        FlowState.SELECT_COLLECTION: frozenset({FlowState.SELECT_NFT, FlowState.CANCELLED}),
        FlowState.SELECT_NFT: frozenset(
            {FlowState.SELECT_PRICING_METHOD, FlowState.SELECT_COLLECTION, FlowState.CANCELLED}
        ),
        FlowState.SELECT_PRICING_METHOD: frozenset(
            {FlowState.INPUT_PRICING_VALUE, FlowState.SELECT_NFT, FlowState.CANCELLED}
        ),
        FlowState.INPUT_PRICING_VALUE: frozenset(
            {FlowState.CONFIRM, FlowState.SELECT_PRICING_METHOD, FlowState.CANCELLED}
        ),
        FlowState.CONFIRM: frozenset({FlowState.DONE, FlowState.INPUT_PRICING_VALUE, FlowState.CANCELLED}),
        FlowState.DONE: frozenset(),
        FlowState.CANCELLED: frozenset(),
    }
)

REQUIRED_SERIALIZED_FIELDS = ("currentState", "context", "history")

_MISSING = object()


def parse_state(value: Any) -> FlowState | None:
    """
    Coerce a state label into a FlowState.

    Args:
        value: FlowState member or its string value

    Returns:
        Matching FlowState, or None if the value is outside the closed set
    """
    if isinstance(value, FlowState):
        return value
    try:
        return FlowState(value)
    except (ValueError, TypeError):
        return None


def utc_timestamp() -> str:
    """Current instant as an ISO-8601 UTC string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def ordered_targets(state: FlowState) -> list[FlowState]:
    """Valid targets of a state in declaration order."""
    targets = VALID_TRANSITIONS[state]
    return [candidate for candidate in FlowState if candidate in targets]


@dataclass(frozen=True)
class HistoryEntry:
    """Snapshot of a state and its context taken before leaving it."""

    state: FlowState
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        """Plain-record form used by serialize()."""
        return {"state": self.state.value, "context": copy.deepcopy(self.context), "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Any) -> "HistoryEntry":
        """
        Rebuild an entry from its plain-record form.

        Raises:
            InvalidSerializationDataError: If the record is malformed
            InvalidStateError: If the record names an unknown state
        """
        if not isinstance(data, Mapping):
            raise InvalidSerializationDataError(f"Invalid history entry: {data!r}")
        for key in ("state", "context"):
            if key not in data:
                raise InvalidSerializationDataError(f"History entry missing field: {key}")
        state = parse_state(data["state"])
        if state is None:
            raise InvalidStateError(f"Invalid state in history: {data['state']}")
        if not isinstance(data["context"], Mapping):
            raise InvalidSerializationDataError("History entry context must be a mapping")
        return cls(
            state=state, context=copy.deepcopy(dict(data["context"])), timestamp=str(data.get("timestamp", ""))
        )


class FlowStateManager:
    """
    Manages interactive CLI flow state and navigation.

    Enforces the transition table, keeps a bounded history of
    (state, context) snapshots for exact back-navigation, and guards the
    terminal states. One instance backs exactly one interactive session.

    Example:
        manager = FlowStateManager()
        manager.transition(FlowState.SELECT_NFT, {"collectionId": "col123"})
        manager.back()
        manager.get_context()  # {}
    """

    def __init__(
        self,
        initial_state: FlowState | str = INITIAL_STATE,
        initial_context: Mapping[str, Any] | None = None,
        max_history_size: int = DEFAULT_MAX_HISTORY_SIZE,
    ):
        """
        Initialize the manager.

        Args:
            initial_state: State to start in (default: select-collection)
            initial_context: Context to start with
            max_history_size: History capacity, clamped to at least 1

        Raises:
            InvalidStateError: If initial_state is outside the closed state set
        """
        state = parse_state(initial_state)
        if state is None:
            raise InvalidStateError(f"Invalid initial state: {initial_state}")

        self.max_history_size = max(1, int(max_history_size))
        self._state = state
        self._context: dict[str, Any] = copy.deepcopy(dict(initial_context or {}))
        self._history: list[HistoryEntry] = []
        self._is_completed = False
        self._is_cancelled = False
        self._sync_flags()

        logger.debug(f"FlowStateManager initialized with state: {state}")

    @classmethod
    def from_serialized(
        cls, data: Any, max_history_size: int = DEFAULT_MAX_HISTORY_SIZE
    ) -> "FlowStateManager":
        """Create a manager and restore it from serialize() output."""
        manager = cls(max_history_size=max_history_size)
        manager.deserialize(data)
        return manager

    def get_current_state(self) -> FlowState:
        """Get the current flow state."""
        return self._state

    def get_context(self, key: str | None = None) -> Any:
        """
        Get context data.

        Args:
            key: Optional key to look up

        Returns:
            Deep copy of the full context, or of the value at key (None if absent)
        """
        if key is not None:
            return copy.deepcopy(self._context.get(key))
        return copy.deepcopy(self._context)

    def get_history(self) -> list[HistoryEntry]:
        """Get a deep copy of the navigation history, oldest first."""
        return [replace(entry, context=copy.deepcopy(entry.context)) for entry in self._history]

    def update_context(self, data: Any, value: Any = _MISSING) -> None:
        """
        Update context data without touching history.

        Accepts either a single key and value, or a mapping to merge.

        Raises:
            InvalidContextUpdateError: For any other argument shape
        """
        if isinstance(data, str) and value is not _MISSING:
            self._context[data] = copy.deepcopy(value)
        elif isinstance(data, Mapping) and value is _MISSING:
            self._context.update(copy.deepcopy(dict(data)))
        else:
            raise InvalidContextUpdateError("Invalid context update parameters")

        logger.debug(f"Context updated for state {self._state}")

    def transition(self, next_state: FlowState | str, context_data: Mapping[str, Any] | None = None) -> None:
        """
        Move to a new state, merging optional context data.

        Args:
            next_state: Target state
            context_data: Data to merge into the context after the move

        Raises:
            InvalidTargetStateError: If next_state is outside the closed state set
            TerminalStateTransitionError: If the current state is terminal
            InvalidTransitionError: If next_state is not reachable from the current state
            InvalidContextUpdateError: If context_data is not a mapping
        """
        target = parse_state(next_state)
        if target is None:
            raise InvalidTargetStateError(f"Invalid target state: {next_state}")

        if self._state in TERMINAL_STATES:
            raise TerminalStateTransitionError(f"Cannot transition from terminal state: {self._state}")

        if target not in VALID_TRANSITIONS[self._state]:
            valid = ", ".join(state.value for state in ordered_targets(self._state))
            raise InvalidTransitionError(
                f"Invalid transition from {self._state} to {target}. Valid transitions: {valid}"
            )

        if context_data is not None and not isinstance(context_data, Mapping):
            raise InvalidContextUpdateError("Transition context data must be a mapping")

        previous = self._state
        self._push_history()
        self._state = target
        if context_data:
            self._context.update(copy.deepcopy(dict(context_data)))
        self._sync_flags()

        logger.debug(f"Transitioned from {previous} to: {target}")

    def back(self) -> bool:
        """
        Navigate back to the most recent history snapshot.

        Restores state and context exactly (keys added after the snapshot
        are discarded).

        Returns:
            True if navigation happened, False if there is no history or the
            flow is terminal
        """
        if not self._history:
            logger.debug("No history available for navigation back")
            return False

        if self._state in TERMINAL_STATES:
            logger.debug(f"Cannot go back from terminal state: {self._state}")
            return False

        entry = self._history.pop()
        self._state = entry.state
        self._context = copy.deepcopy(entry.context)
        self._is_completed = False
        self._is_cancelled = False

        logger.debug(f"Navigated back to: {entry.state}")
        return True

    def cancel(self) -> None:
        """
        Cancel the flow.

        Raises:
            IllegalLifecycleTransitionError: If already cancelled or completed
        """
        if self._is_cancelled:
            raise IllegalLifecycleTransitionError("Flow is already cancelled")
        if self._is_completed:
            raise IllegalLifecycleTransitionError("Cannot cancel a completed flow")

        self._push_history()
        self._state = FlowState.CANCELLED
        self._sync_flags()

        logger.info("Flow cancelled by user")

    def complete(self) -> None:
        """
        Complete the flow successfully.

        Raises:
            IllegalLifecycleTransitionError: If already completed or cancelled
        """
        if self._is_completed:
            raise IllegalLifecycleTransitionError("Flow is already completed")
        if self._is_cancelled:
            raise IllegalLifecycleTransitionError("Cannot complete a cancelled flow")

        self._push_history()
        self._state = FlowState.DONE
        self._sync_flags()

        logger.info("Flow completed successfully")

    def is_flow_completed(self) -> bool:
        """True if the flow is in the done state."""
        return self._is_completed

    def is_flow_cancelled(self) -> bool:
        """True if the flow is in the cancelled state."""
        return self._is_cancelled

    def is_terminal(self) -> bool:
        """True if the flow is done or cancelled."""
        return self._state in TERMINAL_STATES

    def get_valid_transitions(self) -> list[FlowState]:
        """Get the states reachable from the current state."""
        return ordered_targets(self._state)

    def reset(self, state: FlowState | str = INITIAL_STATE, context: Mapping[str, Any] | None = None) -> None:
        """
        Reset for a new session, clearing history and both flags.

        Raises:
            InvalidStateError: If state is outside the closed state set
        """
        target = parse_state(state)
        if target is None:
            raise InvalidStateError(f"Invalid reset state: {state}")

        self._state = target
        self._context = copy.deepcopy(dict(context or {}))
        self._history = []
        self._is_completed = False
        self._is_cancelled = False
        self._sync_flags()

        logger.debug(f"Flow reset to state: {target}")

    def serialize(self) -> dict[str, Any]:
        """
        Serialize the flow for persistence.

        Returns:
            Plain record with currentState, context, history, isCompleted,
            isCancelled and the serialization timestamp
        """
        return {
            "currentState": self._state.value,
            "context": copy.deepcopy(self._context),
            "history": [entry.to_dict() for entry in self._history],
            "isCompleted": self._is_completed,
            "isCancelled": self._is_cancelled,
            "timestamp": utc_timestamp(),
        }

    def deserialize(self, data: Any) -> None:
        """
        Replace the flow with previously serialized data.

        The serialization timestamp is ignored.

        Raises:
            InvalidSerializationDataError: If data is not a mapping or is malformed
            MissingFieldError: Naming the first absent required field
            InvalidStateError: If data names an unknown state
        """
        if not isinstance(data, Mapping):
            raise InvalidSerializationDataError("Invalid serialization data")

        for field_name in REQUIRED_SERIALIZED_FIELDS:
            if field_name not in data:
                raise MissingFieldError(field_name)

        state = parse_state(data["currentState"])
        if state is None:
            raise InvalidStateError(f"Invalid state in data: {data['currentState']}")

        if not isinstance(data["context"], Mapping):
            raise InvalidSerializationDataError("Serialized context must be a mapping")
        if not isinstance(data["history"], list):
            raise InvalidSerializationDataError("Serialized history must be a list")

        history = [HistoryEntry.from_dict(item) for item in data["history"]]
        is_completed = bool(data.get("isCompleted", state == FlowState.DONE))
        is_cancelled = bool(data.get("isCancelled", state == FlowState.CANCELLED))
        if is_completed != (state == FlowState.DONE) or is_cancelled != (state == FlowState.CANCELLED):
            raise InvalidSerializationDataError(f"Completion flags do not match state: {state}")

        if len(history) > self.max_history_size:
            logger.debug(f"Trimming {len(history) - self.max_history_size} restored history entries")
            history = history[-self.max_history_size :]

        self._state = state
        self._context = copy.deepcopy(dict(data["context"]))
        self._history = history
        self._is_completed = is_completed
        self._is_cancelled = is_cancelled

        logger.debug(f"Flow deserialized to state: {state}")

    def _push_history(self) -> None:
        """Record the current snapshot, evicting from the oldest end."""
        self._history.append(HistoryEntry(state=self._state, context=copy.deepcopy(self._context)))
        while len(self._history) > self.max_history_size:
            self._history.pop(0)

    def _sync_flags(self) -> None:
        self._is_completed = self._state == FlowState.DONE
        self._is_cancelled = self._state == FlowState.CANCELLED
