"""
Core Package

Flow state machine, controller and persistence shared by interactive commands.

This package provides:
- FlowStateManager: validated transitions, bounded history, back navigation
- FlowController: drives step handlers until the flow terminates
- FlowSessionStore: JSON persistence for resumable sessions
- Configuration management for environment-specific settings
"""

from .config import Config, Environment, get_config, reload_config
from .errors import (
    FlowStateError,
    IllegalLifecycleTransitionError,
    InvalidContextUpdateError,
    InvalidSerializationDataError,
    InvalidStateError,
    InvalidTransitionError,
)
from .flow import INITIAL_STATE, TERMINAL_STATES, VALID_TRANSITIONS, FlowState, FlowStateManager, HistoryEntry
from .flow_controller import Back, Cancel, FlowController, FlowOutcome, Forward, StepOutcome
from .session_store import FlowSessionStore

__all__ = [
    # Configuration
    "Config",
    "Environment",
    "get_config",
    "reload_config",
    # Flow state machine
    "FlowState",
    "FlowStateManager",
    "HistoryEntry",
    "INITIAL_STATE",
    "TERMINAL_STATES",
    "VALID_TRANSITIONS",
    # Controller
    "Back",
    "Cancel",
    "FlowController",
    "FlowOutcome",
    "Forward",
    "StepOutcome",
    # Persistence
    "FlowSessionStore",
    # Errors
    "FlowStateError",
    "IllegalLifecycleTransitionError",
    "InvalidContextUpdateError",
    "InvalidSerializationDataError",
    "InvalidStateError",
    "InvalidTransitionError",
]
