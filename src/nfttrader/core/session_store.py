#!/usr/bin/env python3
"""
Flow Session Store - persistence for interrupted interactive flows.

Writes FlowStateManager.serialize() output to one JSON file per named
session and restores it through deserialize(). The store provides no
concurrent-writer protection; callers keep at most one writer per session.
"""

import json
import logging
import re
from datetime import datetime
from pathlib import Path

from .errors import InvalidSerializationDataError
from .flow import DEFAULT_MAX_HISTORY_SIZE, FlowStateManager
from .json_utils import read_json, write_json

logger = logging.getLogger(__name__)

_SESSION_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FlowSessionStore:
    """File-backed store of serialized flow sessions."""

    def __init__(self, session_dir: Path):
        """
        Initialize the store.

        Args:
            session_dir: Directory holding <name>.json session files
        """
        self.session_dir = Path(session_dir)

    def _session_path(self, name: str) -> Path:
        if not _SESSION_NAME_PATTERN.match(name):
            raise ValueError(f"Invalid session name: {name!r}")
        return self.session_dir / f"{name}.json"

    def exists(self, name: str) -> bool:
        """Check if a session file exists."""
        return self._session_path(name).exists()

    def save(self, name: str, manager: FlowStateManager) -> Path:
        """
        Persist the manager's serialized state.

        Returns:
            Path of the written session file
        """
        path = self._session_path(name)
        write_json(path, manager.serialize())
        logger.debug(f"Saved session {name} in state {manager.get_current_state()}")
        return path

    def load_raw(self, name: str) -> dict | None:
        """
        Load the serialized record without restoring it.

        Raises:
            InvalidSerializationDataError: If the file is not valid JSON
        """
        path = self._session_path(name)
        if not path.exists():
            return None
        try:
            return read_json(path)
        except json.JSONDecodeError as e:
            raise InvalidSerializationDataError(f"Corrupt session file {path}: {e}") from e

    def load(self, name: str, max_history_size: int = DEFAULT_MAX_HISTORY_SIZE) -> FlowStateManager | None:
        """
        Restore a session into a new manager.

        Returns:
            Restored FlowStateManager, or None if the session does not exist

        Raises:
            InvalidSerializationDataError: If the stored data is corrupt
            InvalidStateError: If the stored data names an unknown state
        """
        data = self.load_raw(name)
        if data is None:
            logger.debug(f"No stored session named {name}")
            return None

        manager = FlowStateManager.from_serialized(data, max_history_size=max_history_size)
        logger.info(f"Resumed session {name} at state {manager.get_current_state()}")
        return manager

    def clear(self, name: str) -> bool:
        """
        Delete a session file.

        Returns:
            True if a file was removed, False if there was none
        """
        path = self._session_path(name)
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Cleared session {name}")
        return True

    def list_sessions(self) -> list[str]:
        """Names of all stored sessions, sorted."""
        if not self.session_dir.exists():
            return []
        return sorted(path.stem for path in self.session_dir.glob("*.json"))

    def last_modified(self, name: str) -> datetime | None:
        """Modification time of a session file, or None if absent."""
        path = self._session_path(name)
        if not path.exists():
            return None
        return datetime.fromtimestamp(path.stat().st_mtime)

    def age_days(self, name: str) -> int | None:
        """Days since a session was last saved, or None if absent."""
        modified = self.last_modified(name)
        if modified is None:
            return None
        return (datetime.now() - modified).days

    def summary_text(self, name: str) -> str:
        """Human-readable one-line description of a stored session."""
        data = self.load_raw(name)
        if data is None:
            return f"No session named {name}"
        if not isinstance(data, dict):
            return f"{name}: unreadable session data"
        state = data.get("currentState", "unknown")
        steps = len(data.get("history", []))
        age = self.age_days(name)
        age_str = "today" if not age else f"{age} days ago"
        return f"{name}: at '{state}' after {steps} step(s), saved {age_str}"
