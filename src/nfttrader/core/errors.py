#!/usr/bin/env python3
"""
Error Types for NFT Trader

Exception hierarchy shared by the flow engine and the listing domain.

Flow State Manager errors are synchronous caller-misuse faults: they are
raised locally, never retried, and are distinct from step handler failures
(network or API errors), which propagate to the command layer untouched.
"""


class FlowStateError(ValueError):
    """Base class for all Flow State Manager misuse errors."""


class InvalidStateError(FlowStateError):
    """An unknown state label was supplied."""


class InvalidTargetStateError(InvalidStateError):
    """transition() was asked to move to a state outside the closed set."""


class InvalidTransitionError(FlowStateError):
    """The target state is not reachable from the current state."""


class TerminalStateTransitionError(InvalidTransitionError):
    """A transition was attempted from done or cancelled."""


class InvalidContextUpdateError(FlowStateError):
    """update_context() was called with a malformed argument shape."""


class InvalidSerializationDataError(FlowStateError):
    """deserialize() was given something that is not a serialized flow."""


class MissingFieldError(InvalidSerializationDataError):
    """A required field is absent from serialized flow data."""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class IllegalLifecycleTransitionError(FlowStateError):
    """cancel() or complete() was invoked on an already-terminal flow."""


class UnknownStepError(LookupError):
    """The flow controller has no step handler for the current state."""


class InvalidStepOutcomeError(TypeError):
    """A step handler returned something other than Forward, Back or Cancel."""


class ValidationError(ValueError):
    """User or command-line input failed a format check."""


class PricingError(ValueError):
    """A listing price could not be calculated."""


class ListingError(RuntimeError):
    """The listing wizard cannot proceed (e.g. no cached holdings)."""


class OpenSeaApiError(RuntimeError):
    """Raised when the OpenSea API is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
