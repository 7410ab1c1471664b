#!/usr/bin/env python3
"""Unit tests for the file-backed flow session store."""

import json

import pytest

from nfttrader.core.errors import InvalidSerializationDataError, InvalidStateError
from nfttrader.core.flow import FlowState, FlowStateManager
from nfttrader.core.session_store import FlowSessionStore


@pytest.fixture
def store(temp_dir):
    return FlowSessionStore(temp_dir / "sessions")


@pytest.fixture
def walked_manager():
    manager = FlowStateManager()
    manager.transition(FlowState.SELECT_NFT, {"collectionSlug": "cool-cats"})
    manager.transition(FlowState.SELECT_PRICING_METHOD, {"tokenId": "7"})
    return manager


class TestFlowSessionStore:
    """Test saving, loading and clearing sessions."""

    def test_save_and_load_round_trip(self, store, walked_manager):
        path = store.save("wizard", walked_manager)

        assert path.exists()
        restored = store.load("wizard")
        assert restored.get_current_state() == FlowState.SELECT_PRICING_METHOD
        assert restored.get_context() == walked_manager.get_context()
        assert restored.get_history() == walked_manager.get_history()

    def test_saved_file_is_serialized_record(self, store, walked_manager):
        path = store.save("wizard", walked_manager)

        data = json.loads(path.read_text())
        assert data["currentState"] == "select-pricing-method"
        assert data["isCompleted"] is False

    def test_restored_manager_can_go_back(self, store, walked_manager):
        store.save("wizard", walked_manager)

        restored = store.load("wizard")

        assert restored.back() is True
        assert restored.get_context() == {"collectionSlug": "cool-cats"}

    def test_load_missing_returns_none(self, store):
        assert store.load("missing") is None
        assert store.load_raw("missing") is None

    def test_load_applies_history_capacity(self, store, walked_manager):
        store.save("wizard", walked_manager)

        restored = store.load("wizard", max_history_size=1)

        assert len(restored.get_history()) == 1

    def test_corrupt_file_raises(self, store):
        store.session_dir.mkdir(parents=True)
        (store.session_dir / "broken.json").write_text("{not json")

        with pytest.raises(InvalidSerializationDataError, match="Corrupt session file"):
            store.load("broken")

    def test_unknown_state_raises(self, store):
        store.session_dir.mkdir(parents=True)
        (store.session_dir / "odd.json").write_text(
            json.dumps({"currentState": "teleport", "context": {}, "history": []})
        )

        with pytest.raises(InvalidStateError):
            store.load("odd")

    def test_clear(self, store, walked_manager):
        store.save("wizard", walked_manager)

        assert store.clear("wizard") is True
        assert not store.exists("wizard")
        assert store.clear("wizard") is False

    def test_list_sessions_sorted(self, store, walked_manager):
        assert store.list_sessions() == []

        store.save("b-session", walked_manager)
        store.save("a-session", walked_manager)

        assert store.list_sessions() == ["a-session", "b-session"]

    @pytest.mark.parametrize("name", ["../escape", "with space", "", "a/b"])
    def test_invalid_session_names_rejected(self, store, name):
        with pytest.raises(ValueError, match="Invalid session name"):
            store.exists(name)

    def test_summary_text(self, store, walked_manager):
        store.save("wizard", walked_manager)

        summary = store.summary_text("wizard")

        assert "wizard" in summary
        assert "select-pricing-method" in summary
        assert "2 step(s)" in summary
        assert "today" in summary

    def test_summary_text_for_missing_session(self, store):
        assert store.summary_text("nope") == "No session named nope"

    def test_age_days(self, store, walked_manager):
        assert store.age_days("wizard") is None

        store.save("wizard", walked_manager)

        assert store.age_days("wizard") == 0
