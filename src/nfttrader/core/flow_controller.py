#!/usr/bin/env python3
"""
Flow Controller

Drives one interactive session to a terminal state by alternating between
asking the Flow State Manager which state the flow is in and running that
state's step handler. All state bookkeeping is delegated to the manager.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from .errors import InvalidStepOutcomeError, UnknownStepError
from .flow import VALID_TRANSITIONS, FlowState, FlowStateManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Forward:
    """Move to next_state, merging context_delta into the flow context."""

    next_state: FlowState
    context_delta: dict[str, Any] = field(default_factory=dict)
    kind: Literal["forward"] = field(default="forward", init=False)


@dataclass(frozen=True)
class Back:
    """Return to the previous step."""

    kind: Literal["back"] = field(default="back", init=False)


@dataclass(frozen=True)
class Cancel:
    """Abandon the flow."""

    kind: Literal["cancel"] = field(default="cancel", init=False)


StepOutcome = Forward | Back | Cancel


class StepHandler(Protocol):
    """Performs the work of one flow state and reports how to proceed."""

    def __call__(self, context: dict[str, Any], services: Any) -> StepOutcome: ...


@dataclass
class FlowOutcome:
    """Final result of a driven flow."""

    final_state: FlowState
    context: dict[str, Any]

    @property
    def completed(self) -> bool:
        return self.final_state == FlowState.DONE

    @property
    def cancelled(self) -> bool:
        return self.final_state == FlowState.CANCELLED


class FlowController:
    """
    Runs step handlers against a FlowStateManager until the flow terminates.

    Handler exceptions are not caught here; they propagate to the command
    layer that owns retry and display policy.
    """

    def __init__(
        self,
        manager: FlowStateManager,
        handlers: Mapping[FlowState, StepHandler],
        on_step: Callable[[FlowStateManager], None] | None = None,
    ):
        """
        Initialize the controller.

        Args:
            manager: Flow State Manager owning the session state
            handlers: Step handler for each non-terminal state
            on_step: Optional callback invoked after every applied outcome
        """
        self.manager = manager
        self.handlers = dict(handlers)
        self.on_step = on_step

    def run(self, services: Any = None) -> FlowOutcome:
        """
        Drive the flow to done or cancelled.

        Args:
            services: External collaborators passed through to every handler

        Returns:
            FlowOutcome with the terminal state and final context

        Raises:
            UnknownStepError: If no handler is registered for a state
            InvalidStepOutcomeError: If a handler returns an unknown outcome
        """
        while not self.manager.is_terminal():
            state = self.manager.get_current_state()
            handler = self.handlers.get(state)
            if handler is None:
                raise UnknownStepError(f"No step handler registered for state: {state}")

            logger.debug(f"Running step handler for {state}")
            outcome = handler(self.manager.get_context(), services)
            self._apply(state, outcome)

            if self.on_step is not None:
                self.on_step(self.manager)

        final_state = self.manager.get_current_state()
        logger.info(f"Flow finished in state: {final_state}")
        return FlowOutcome(final_state=final_state, context=self.manager.get_context())

    def _apply(self, state: FlowState, outcome: Any) -> None:
        """Feed one handler outcome back into the manager."""
        if isinstance(outcome, Forward):
            if outcome.next_state == FlowState.DONE and FlowState.DONE in VALID_TRANSITIONS[state]:
                # Completion from the last step goes through complete() so the
                # lifecycle guards apply.
                if outcome.context_delta:
                    self.manager.update_context(outcome.context_delta)
                self.manager.complete()
            else:
                self.manager.transition(outcome.next_state, outcome.context_delta)
        elif isinstance(outcome, Back):
            if not self.manager.back():
                logger.debug(f"No step before {state}, cancelling")
                self.manager.cancel()
        elif isinstance(outcome, Cancel):
            self.manager.cancel()
        else:
            raise InvalidStepOutcomeError(
                f"Step handler for {state} must return Forward, Back or Cancel, got {type(outcome).__name__}"
            )
