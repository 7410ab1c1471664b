"""Minimal OpenSea REST client for the reads used when listing.

Covers resolving a contract to its collection, collection floor price, an
NFT's last sale price and the wallet holdings used to fill the local cache.
Order construction and signing live elsewhere. Transient failures (429 and
5xx responses, dropped connections) are retried by the session's transport
adapter, so callers (the flow engine included) never implement retry policy
themselves.
"""

import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any

import requests
from requests import RequestException
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..core.errors import OpenSeaApiError

logger = logging.getLogger(__name__)

WEI_DECIMALS = 18
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
WALLET_PAGE_SIZE = 200


class OpenSeaClient:
    """Thin typed wrapper over the OpenSea v2 REST API."""

    def __init__(
        self,
        api_key: str | None,
        chain: str,
        base_url: str = "https://api.opensea.io",
        timeout: int = 60,
        retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        """
        Args:
            api_key: OpenSea API key (sent as X-API-KEY when set)
            chain: Chain name used in chain-scoped endpoints
            base_url: API root
            timeout: Per-request timeout in seconds
            retries: Total attempts per request, at least 1
            retry_delay: Backoff factor between attempts in seconds
        """
        self.chain = chain
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(1, retries)
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        if api_key:
            self._session.headers["X-API-KEY"] = api_key

        retry_strategy = Retry(
            total=self.retries - 1,
            backoff_factor=retry_delay,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=frozenset(["GET"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        """GET a path, returning parsed JSON or None for 404."""
        url = f"{self.base_url}{path}"
        logger.debug(f"OpenSea GET {url} params={params}")

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except RequestException as e:
            raise OpenSeaApiError(f"OpenSea request to {url} failed after {self.retries} attempts: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code == 401:
            raise OpenSeaApiError("Invalid OpenSea API key", status_code=401)
        if not response.ok:
            raise OpenSeaApiError(
                f"OpenSea API error {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise OpenSeaApiError(f"Malformed JSON from {url}") from e

    def get_collection_by_contract(self, contract_address: str) -> dict[str, Any] | None:
        """Resolve a contract to its collection record (contains the slug)."""
        return self._get(f"/api/v2/chain/{self.chain}/contract/{contract_address}")

    def get_collection_stats(self, collection_slug: str) -> dict[str, Any] | None:
        """Fetch collection statistics."""
        return self._get(f"/api/v2/collections/{collection_slug}/stats")

    def get_floor_price(self, contract_address: str) -> Decimal | None:
        """Floor price in ETH of the collection a contract belongs to."""
        collection = self.get_collection_by_contract(contract_address)
        if not collection or not collection.get("collection"):
            logger.debug(f"No collection found for contract {contract_address}")
            return None

        stats = self.get_collection_stats(collection["collection"])
        floor_price = ((stats or {}).get("total") or {}).get("floor_price")
        if not floor_price:
            return None
        return Decimal(str(floor_price))

    def get_nft_last_sale_price(self, contract_address: str, token_id: str) -> Decimal | None:
        """Price in ETH of the most recent sale of an NFT."""
        events = self._get(
            f"/api/v2/events/chain/{self.chain}/contract/{contract_address}/nfts/{token_id}",
            params={"event_type": "sale", "limit": 1},
        )
        asset_events = (events or {}).get("asset_events") or []
        if not asset_events:
            return None

        payment = asset_events[0].get("payment") or {}
        quantity = payment.get("quantity")
        if quantity is None:
            return None
        decimals = int(payment.get("decimals", WEI_DECIMALS))
        return Decimal(str(quantity)) / (Decimal(10) ** decimals)

    def get_wallet_nfts(
        self,
        wallet_address: str,
        on_page: Callable[[int, int, int, bool], None] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch every NFT a wallet holds on this chain, following pagination.

        Args:
            wallet_address: Wallet to read
            on_page: Optional progress callback (page, page_count, total_count, has_more)

        Returns:
            NFT records in cache form: contract, tokenId, name, collectionSlug,
            collectionName
        """
        nfts: list[dict[str, Any]] = []
        cursor: str | None = None
        page = 0

        while True:
            params: dict[str, Any] = {"limit": WALLET_PAGE_SIZE}
            if cursor:
                params["next"] = cursor
            data = self._get(f"/api/v2/chain/{self.chain}/account/{wallet_address}/nfts", params=params) or {}

            page_items = [item for item in data.get("nfts") or [] if isinstance(item, dict)]
            nfts.extend(
                {
                    "contract": str(item.get("contract", "")).lower(),
                    "tokenId": str(item.get("identifier", "")),
                    "name": item.get("name"),
                    "collectionSlug": item.get("collection"),
                    "collectionName": item.get("collection"),
                }
                for item in page_items
            )

            page += 1
            cursor = data.get("next") or None
            if on_page is not None:
                on_page(page, len(page_items), len(nfts), cursor is not None)
            if cursor is None:
                break

        logger.debug(f"Fetched {len(nfts)} NFTs for {wallet_address} on {self.chain} in {page} page(s)")
        return nfts
