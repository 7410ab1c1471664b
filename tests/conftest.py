"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import time
from pathlib import Path
from typing import Any

import pytest

from nfttrader.core import config as config_module
from nfttrader.core.json_utils import write_json

WALLET = "0x" + "a" * 40
CONTRACT_A = "0x" + "1" * 40
CONTRACT_B = "0x" + "2" * 40


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data
    monkeypatch.setenv('NFTTRADER_ENV', 'test')
    monkeypatch.setenv('NFTTRADER_DATA_DIR', str(tmp_path / 'data'))
    monkeypatch.delenv('CACHE_DIR', raising=False)
    monkeypatch.delenv('DEFAULT_CHAIN', raising=False)
    monkeypatch.delenv('FLOW_MAX_HISTORY', raising=False)

    # Mock sensitive environment variables
    monkeypatch.setenv('OPENSEA_API_KEY', 'test-api-key')

    # Drop any configuration cached by a previous test
    monkeypatch.setattr(config_module, '_config', None)


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    """Temporary directory for test files."""
    return tmp_path


@pytest.fixture
def sample_cached_nfts() -> list[dict[str, Any]]:
    """Cached holdings across two collections."""
    return [
        {
            'contract': CONTRACT_A,
            'tokenId': '1',
            'name': 'Cool Cat #1',
            'collectionSlug': 'cool-cats',
            'collectionName': 'Cool Cats',
        },
        {
            'contract': CONTRACT_B,
            'tokenId': '77',
            'name': None,
            'collectionSlug': 'doodles',
            'collectionName': 'Doodles',
        },
        {
            'contract': CONTRACT_A,
            'tokenId': '2',
            'name': 'Cool Cat #2',
            'collectionSlug': 'cool-cats',
            'collectionName': 'Cool Cats',
        },
    ]


@pytest.fixture
def write_holdings_cache():
    """Write a holdings cache file the way the cache command does."""

    def _write(cache_dir: Path, nfts: list[dict[str, Any]], wallet: str = WALLET, chain: str = 'base',
               timestamp_ms: float | None = None) -> Path:
        path = Path(cache_dir) / 'nfts' / f'{wallet}_{chain}.json'
        write_json(path, {
            'metadata': {
                'walletAddress': wallet,
                'chain': chain,
                'timestamp': time.time() * 1000 if timestamp_ms is None else timestamp_ms,
                'count': len(nfts),
            },
            'nfts': nfts,
        })
        return path

    return _write


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "flow: Tests for the interactive flow state machine"
    )
    config.addinivalue_line(
        "markers", "cli: Tests for command-line commands"
    )
