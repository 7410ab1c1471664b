#!/usr/bin/env python3
"""
NFT Cache - local copy of wallet holdings.

The holdings cache is written by `nfttrader cache refresh` as one JSON file
per wallet and chain:

    <cache_dir>/nfts/<wallet>_<chain>.json
        {"metadata": {"walletAddress", "chain", "timestamp" (ms), "count",
                      "filteredCount"},
         "nfts": [{"contract", "tokenId", "name", "collectionSlug",
                   "collectionName"}, ...]}

Collections listed in <cache_dir>/filters/ignored_collections.json are
hidden from the listing wizard and left out of refreshed caches.
"""

import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.json_utils import read_json, write_json

logger = logging.getLogger(__name__)

DEFAULT_CACHE_EXPIRY_HOURS = 24


@dataclass(frozen=True)
class CachedCollection:
    """A collection the wallet holds at least one NFT of."""

    slug: str
    name: str
    nft_count: int


@dataclass(frozen=True)
class CachedNft:
    """A single cached NFT holding."""

    contract: str
    token_id: str
    name: str | None
    collection_slug: str

    @property
    def display_name(self) -> str:
        return f"#{self.token_id} - {self.name or 'Unnamed'}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CachedNft":
        return cls(
            contract=str(data.get("contract", "")),
            token_id=str(data.get("tokenId", "")),
            name=data.get("name"),
            collection_slug=str(data.get("collectionSlug", "")),
        )


@dataclass(frozen=True)
class CacheStatus:
    """Summary of one wallet/chain cache file."""

    exists: bool
    wallet_address: str
    chain: str
    count: int = 0
    filtered_count: int = 0
    last_updated: datetime | None = None
    expired: bool = False


class NftCache:
    """Reads and writes cached wallet holdings for the listing wizard."""

    def __init__(self, cache_dir: Path, expiry_hours: int = DEFAULT_CACHE_EXPIRY_HOURS):
        self.cache_dir = Path(cache_dir)
        self.expiry_hours = expiry_hours
        self.nfts_dir = self.cache_dir / "nfts"
        self.filter_file = self.cache_dir / "filters" / "ignored_collections.json"

    def cache_file_path(self, wallet_address: str, chain: str) -> Path:
        return self.nfts_dir / f"{wallet_address}_{chain}.json"

    def is_expired(self, timestamp_ms: float) -> bool:
        """Check if a cache written at timestamp_ms (epoch milliseconds) is stale."""
        expiry_ms = timestamp_ms + self.expiry_hours * 60 * 60 * 1000
        return time.time() * 1000 > expiry_ms

    def load_ignored_collections(self) -> list[dict[str, Any]]:
        """
        Load the ignored collections filter.

        Returns:
            Filter entries; empty if the filter file is missing or unreadable
        """
        if not self.filter_file.exists():
            logger.debug("Ignored collections file not found, returning empty list")
            return []
        try:
            data = read_json(self.filter_file)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to load ignored collections: {e}")
            return []

        entries = data.get("ignoredCollections") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def _ignored_slugs(self) -> set[str]:
        return {entry.get("collectionSlug") for entry in self.load_ignored_collections()}

    def load_cache(self, wallet_address: str, chain: str) -> dict[str, Any] | None:
        """
        Load cached holdings.

        Entries of the nfts list that are not objects are dropped.

        Returns:
            Cache data, or None if missing, expired or corrupt
        """
        path = self.cache_file_path(wallet_address, chain)
        if not path.exists():
            logger.debug(f"Cache file not found for {wallet_address} on {chain}")
            return None

        try:
            data = read_json(path)
            timestamp = data["metadata"]["timestamp"]
            nfts = data["nfts"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Failed to load cache {path}: {e}")
            return None

        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or not isinstance(nfts, list):
            logger.error(f"Failed to load cache {path}: malformed metadata or nfts")
            return None

        if self.is_expired(timestamp):
            logger.debug(f"Cache expired for {wallet_address} on {chain}")
            return None

        valid_nfts = [nft for nft in nfts if isinstance(nft, dict)]
        if len(valid_nfts) != len(nfts):
            logger.warning(f"Dropped {len(nfts) - len(valid_nfts)} malformed entries from {path}")
        data["nfts"] = valid_nfts

        logger.debug(f"Loaded {len(valid_nfts)} NFTs from cache for {wallet_address} on {chain}")
        return data

    def save_cache(self, wallet_address: str, chain: str, nfts: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Write holdings, leaving out ignored collections.

        Returns:
            The cache data written
        """
        ignored = self._ignored_slugs()
        kept = [nft for nft in nfts if nft.get("collectionSlug") not in ignored]
        cache_data = {
            "metadata": {
                "walletAddress": wallet_address,
                "chain": chain,
                "timestamp": int(time.time() * 1000),
                "count": len(kept),
                "filteredCount": len(nfts) - len(kept),
            },
            "nfts": kept,
        }

        write_json(self.cache_file_path(wallet_address, chain), cache_data)
        logger.info(
            f"Cached {len(kept)} NFTs for {wallet_address} on {chain} (filtered {len(nfts) - len(kept)})"
        )
        return cache_data

    def clear_cache(self, wallet_address: str, chain: str) -> bool:
        """
        Delete one cache file.

        Returns:
            True if a file was removed, False if there was none
        """
        path = self.cache_file_path(wallet_address, chain)
        if not path.exists():
            return False
        path.unlink()
        logger.info(f"Cleared cache for {wallet_address} on {chain}")
        return True

    def clear_all_caches(self) -> int:
        """Delete every cache file, returning how many were removed."""
        if not self.nfts_dir.exists():
            return 0
        files = list(self.nfts_dir.glob("*.json"))
        for path in files:
            path.unlink()
        logger.info(f"Cleared {len(files)} cache files")
        return len(files)

    def cache_status(self, wallet_address: str, chain: str) -> CacheStatus:
        """Describe the cache of one wallet and chain; expired caches still report their counts."""
        path = self.cache_file_path(wallet_address, chain)
        try:
            data = read_json(path) if path.exists() else None
            metadata = data["metadata"] if data is not None else None
            timestamp = metadata["timestamp"] if metadata is not None else None
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.error(f"Failed to read cache status {path}: {e}")
            data = None

        if data is None or isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            return CacheStatus(exists=False, wallet_address=wallet_address, chain=chain)

        return CacheStatus(
            exists=True,
            wallet_address=wallet_address,
            chain=chain,
            count=int(metadata.get("count", 0) or 0),
            filtered_count=int(metadata.get("filteredCount", 0) or 0),
            last_updated=datetime.fromtimestamp(timestamp / 1000),
            expired=self.is_expired(timestamp),
        )

    def _visible_nfts(self, wallet_address: str, chain: str) -> list[dict[str, Any]]:
        data = self.load_cache(wallet_address, chain)
        if data is None:
            return []

        ignored = self._ignored_slugs()
        nfts = [nft for nft in data["nfts"] if nft.get("collectionSlug") not in ignored]
        filtered_count = len(data["nfts"]) - len(nfts)
        if filtered_count:
            logger.debug(f"Filtered out {filtered_count} NFTs from ignored collections")
        return nfts

    def get_cached_collections(self, wallet_address: str, chain: str) -> list[CachedCollection]:
        """Collections held by the wallet, in first-seen order."""
        grouped: OrderedDict[str, dict[str, Any]] = OrderedDict()
        for nft in self._visible_nfts(wallet_address, chain):
            slug = nft.get("collectionSlug")
            if not slug:
                continue
            entry = grouped.setdefault(slug, {"name": nft.get("collectionName") or slug, "count": 0})
            entry["count"] += 1

        return [
            CachedCollection(slug=slug, name=entry["name"], nft_count=entry["count"])
            for slug, entry in grouped.items()
        ]

    def get_cached_nfts(self, collection_slug: str, wallet_address: str, chain: str) -> list[CachedNft]:
        """NFTs of one collection held by the wallet."""
        return [
            CachedNft.from_dict(nft)
            for nft in self._visible_nfts(wallet_address, chain)
            if nft.get("collectionSlug") == collection_slug
        ]
