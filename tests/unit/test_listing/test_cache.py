#!/usr/bin/env python3
"""Unit tests for the cached holdings store."""

import time

import pytest

from nfttrader.core.json_utils import read_json, write_json
from nfttrader.listing.cache import CachedCollection, CachedNft, NftCache

WALLET = "0x" + "a" * 40


@pytest.fixture
def reader(temp_dir):
    return NftCache(temp_dir / "cache", expiry_hours=24)


class TestNftCacheReading:
    """Test reading, filtering and expiring cached holdings."""

    def test_cache_file_path(self, reader):
        assert reader.cache_file_path(WALLET, "base").name == f"{WALLET}_base.json"

    def test_collections_grouped_in_first_seen_order(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)

        collections = reader.get_cached_collections(WALLET, "base")

        assert collections == [
            CachedCollection(slug="cool-cats", name="Cool Cats", nft_count=2),
            CachedCollection(slug="doodles", name="Doodles", nft_count=1),
        ]

    def test_collection_name_falls_back_to_slug(self, reader, write_holdings_cache):
        write_holdings_cache(reader.cache_dir, [{"contract": "0x1", "tokenId": "1", "collectionSlug": "mystery"}])

        assert reader.get_cached_collections(WALLET, "base")[0].name == "mystery"

    def test_nfts_without_collection_are_skipped(self, reader, write_holdings_cache):
        write_holdings_cache(reader.cache_dir, [{"contract": "0x1", "tokenId": "1"}])

        assert reader.get_cached_collections(WALLET, "base") == []

    def test_get_cached_nfts(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)

        nfts = reader.get_cached_nfts("cool-cats", WALLET, "base")

        assert [nft.token_id for nft in nfts] == ["1", "2"]
        assert nfts[0].display_name == "#1 - Cool Cat #1"

    def test_unnamed_display_name(self):
        nft = CachedNft.from_dict({"contract": "0x1", "tokenId": 77, "collectionSlug": "doodles"})

        assert nft.token_id == "77"
        assert nft.display_name == "#77 - Unnamed"

    def test_ignored_collections_filtered(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)
        write_json(reader.filter_file, {"ignoredCollections": [{"collectionSlug": "doodles"}]})

        slugs = [collection.slug for collection in reader.get_cached_collections(WALLET, "base")]

        assert slugs == ["cool-cats"]
        assert reader.get_cached_nfts("doodles", WALLET, "base") == []

    def test_corrupt_filter_file_ignored(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)
        reader.filter_file.parent.mkdir(parents=True, exist_ok=True)
        reader.filter_file.write_text("not json")

        assert reader.load_ignored_collections() == []
        assert len(reader.get_cached_collections(WALLET, "base")) == 2

    def test_missing_cache(self, reader):
        assert reader.load_cache(WALLET, "base") is None
        assert reader.get_cached_collections(WALLET, "base") == []

    def test_other_chain_not_read(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts, chain="ethereum")

        assert reader.get_cached_collections(WALLET, "base") == []

    def test_expired_cache(self, reader, write_holdings_cache, sample_cached_nfts):
        two_days_ago = (time.time() - 48 * 3600) * 1000
        write_holdings_cache(reader.cache_dir, sample_cached_nfts, timestamp_ms=two_days_ago)

        assert reader.load_cache(WALLET, "base") is None

    def test_is_expired(self, reader):
        now_ms = time.time() * 1000

        assert not reader.is_expired(now_ms)
        assert reader.is_expired(now_ms - 25 * 3600 * 1000)

    @pytest.mark.parametrize("content", ["{broken", '{"nfts": []}', '{"metadata": {}}'])
    def test_corrupt_cache(self, reader, content):
        path = reader.cache_file_path(WALLET, "base")
        path.parent.mkdir(parents=True)
        path.write_text(content)

        assert reader.load_cache(WALLET, "base") is None


class TestMalformedCache:
    """Test that well-formed JSON with the wrong shapes never crashes the reader."""

    def _write_raw(self, reader, data):
        write_json(reader.cache_file_path(WALLET, "base"), data)

    @pytest.mark.parametrize("timestamp", ["2024-01-01T00:00:00Z", None, True, [1], {"ms": 1}])
    def test_non_numeric_timestamp_rejected(self, reader, timestamp):
        self._write_raw(reader, {"metadata": {"timestamp": timestamp}, "nfts": []})

        assert reader.load_cache(WALLET, "base") is None
        assert reader.get_cached_collections(WALLET, "base") == []

    @pytest.mark.parametrize("nfts", [{"a": 1}, "x", None, 5])
    def test_non_list_nfts_rejected(self, reader, nfts):
        self._write_raw(reader, {"metadata": {"timestamp": time.time() * 1000}, "nfts": nfts})

        assert reader.load_cache(WALLET, "base") is None

    def test_non_dict_entries_dropped(self, reader, sample_cached_nfts):
        self._write_raw(
            reader,
            {"metadata": {"timestamp": time.time() * 1000}, "nfts": ["x", 7, None, sample_cached_nfts[0]]},
        )

        data = reader.load_cache(WALLET, "base")

        assert data["nfts"] == [sample_cached_nfts[0]]
        assert [c.slug for c in reader.get_cached_collections(WALLET, "base")] == ["cool-cats"]
        assert [n.token_id for n in reader.get_cached_nfts("cool-cats", WALLET, "base")] == ["1"]

    def test_only_non_dict_entries(self, reader):
        self._write_raw(reader, {"metadata": {"timestamp": time.time() * 1000}, "nfts": ["x"]})

        assert reader.get_cached_collections(WALLET, "base") == []

    @pytest.mark.parametrize(
        "content,visible",
        [
            ({"ignoredCollections": ["doodles", 3, None, {"collectionSlug": "doodles"}]}, 1),
            ({"ignoredCollections": "doodles"}, 2),
            (["doodles"], 2),
        ],
    )
    def test_malformed_ignore_filter(self, reader, write_holdings_cache, sample_cached_nfts, content, visible):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)
        write_json(reader.filter_file, content)

        ignored = reader.load_ignored_collections()

        assert all(isinstance(entry, dict) for entry in ignored)
        assert len(reader.get_cached_collections(WALLET, "base")) == visible

    def test_malformed_ignore_filter_keeps_valid_entries(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts)
        write_json(reader.filter_file, {"ignoredCollections": ["junk", {"collectionSlug": "doodles"}]})

        assert reader.load_ignored_collections() == [{"collectionSlug": "doodles"}]
        assert [c.slug for c in reader.get_cached_collections(WALLET, "base")] == ["cool-cats"]


class TestNftCacheWriting:
    """Test writing, clearing and summarizing holdings caches."""

    def test_save_then_load(self, reader, sample_cached_nfts):
        reader.save_cache(WALLET, "base", sample_cached_nfts)

        data = read_json(reader.cache_file_path(WALLET, "base"))
        assert data["metadata"]["walletAddress"] == WALLET
        assert data["metadata"]["chain"] == "base"
        assert data["metadata"]["count"] == 3
        assert data["metadata"]["filteredCount"] == 0
        assert isinstance(data["metadata"]["timestamp"], int)
        assert data["nfts"] == sample_cached_nfts
        assert [c.slug for c in reader.get_cached_collections(WALLET, "base")] == ["cool-cats", "doodles"]

    def test_save_leaves_out_ignored_collections(self, reader, sample_cached_nfts):
        write_json(reader.filter_file, {"ignoredCollections": [{"collectionSlug": "doodles"}]})

        cache_data = reader.save_cache(WALLET, "base", sample_cached_nfts)

        assert cache_data["metadata"]["count"] == 2
        assert cache_data["metadata"]["filteredCount"] == 1
        assert {nft["collectionSlug"] for nft in read_json(reader.cache_file_path(WALLET, "base"))["nfts"]} == {
            "cool-cats"
        }

    def test_save_overwrites_previous_cache(self, reader, sample_cached_nfts):
        reader.save_cache(WALLET, "base", sample_cached_nfts)
        reader.save_cache(WALLET, "base", sample_cached_nfts[:1])

        assert len(reader.load_cache(WALLET, "base")["nfts"]) == 1

    def test_clear_cache(self, reader, sample_cached_nfts):
        reader.save_cache(WALLET, "base", sample_cached_nfts)

        assert reader.clear_cache(WALLET, "base") is True
        assert not reader.cache_file_path(WALLET, "base").exists()
        assert reader.clear_cache(WALLET, "base") is False

    def test_clear_all_caches(self, reader, sample_cached_nfts):
        assert reader.clear_all_caches() == 0
        reader.save_cache(WALLET, "base", sample_cached_nfts)
        reader.save_cache(WALLET, "ethereum", sample_cached_nfts)

        assert reader.clear_all_caches() == 2
        assert reader.load_cache(WALLET, "ethereum") is None

    def test_status_of_missing_cache(self, reader):
        status = reader.cache_status(WALLET, "base")

        assert status.exists is False
        assert status.count == 0

    def test_status_reports_expired_cache(self, reader, write_holdings_cache, sample_cached_nfts):
        write_holdings_cache(reader.cache_dir, sample_cached_nfts, timestamp_ms=(time.time() - 48 * 3600) * 1000)

        status = reader.cache_status(WALLET, "base")

        assert status.exists is True
        assert status.expired is True
        assert status.count == 3
        assert status.last_updated is not None

    def test_status_of_malformed_cache(self, reader):
        write_json(reader.cache_file_path(WALLET, "base"), {"metadata": {"timestamp": "yesterday"}, "nfts": []})

        assert reader.cache_status(WALLET, "base").exists is False
