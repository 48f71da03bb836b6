"""Metadata providers: OpenSea, Art Blocks token API, Alchemy NFT API.

Each provider splits into a pure `parse_*` function over the decoded JSON
and a thin async adapter that fetches it. Adapters treat every transport or
decoding failure as "no data" and return None.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from nft_salesbot.http import HttpProvider
from nft_salesbot.metadata.heuristics import (
    artist_from_trait_values,
    artist_from_traits,
    clean,
    find_by_artist,
    find_nested,
    slug_to_title,
    split_name_by_artist,
    strip_edition_suffix,
)
from nft_salesbot.models.sales import ProviderMetadata
from nft_salesbot.opensea.client import OpenSeaClient

log = logging.getLogger(__name__)

_PROJECT_KEYS = ("project_name", "projectName", "collection_name", "collectionName")
_ARTIST_KEYS = ("artist", "artist_name", "artistName")


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


# ── OpenSea ──────────────────────────────────────────────────


def parse_opensea_nft(
    nft: dict[str, Any], collection_name: str | None = None
) -> ProviderMetadata:
    """Normalize an OpenSea v2 `nft` object.

    `collection_name` is the structured name from the collection endpoint,
    when it was available.
    """
    project, artist = split_name_by_artist(collection_name)
    slug_title, slug_artist = slug_to_title(clean(nft.get("collection")) or "")
    if not project:
        project = slug_title
    if not project and clean(nft.get("name")):
        project = strip_edition_suffix(clean(nft.get("name")))

    traits = _list(nft.get("traits"))
    description = clean(nft.get("description"))
    artist = (
        artist_from_traits(traits)
        or artist
        or slug_artist
        or artist_from_trait_values(traits)
        or find_by_artist(description)
    )
    return ProviderMetadata("opensea", project or None, artist, description)


class OpenSeaMetadataProvider:
    """Marketplace token metadata, with the collection name looked up once per slug."""

    name = "opensea"

    def __init__(self, client: OpenSeaClient) -> None:
        self._client = client
        self._collection_names: dict[str, str | None] = {}

    async def _collection_name(self, slug: str) -> str | None:
        if slug not in self._collection_names:
            try:
                collection = await self._client.get_collection(slug)
            except (httpx.HTTPError, ValueError) as exc:
                log.warning("OpenSea collection %s lookup failed: %s", slug, exc)
                return None
            self._collection_names[slug] = clean(_dict(collection).get("name"))
        return self._collection_names[slug]

    async def fetch(self, contract_address: str, token_id: int) -> ProviderMetadata | None:
        try:
            nft = await self._client.get_nft(contract_address, token_id)
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("OpenSea metadata for %s/%d failed: %s", contract_address, token_id, exc)
            return None
        if not nft:
            return None
        slug = clean(nft.get("collection"))
        collection_name = await self._collection_name(slug) if slug else None
        return parse_opensea_nft(nft, collection_name)


# ── Art Blocks token API ─────────────────────────────────────


def parse_artblocks_token(data: dict[str, Any]) -> ProviderMetadata:
    """Normalize an Art Blocks token-API document.

    Known top-level fields are tried first, then the nested object graph.
    """
    project = None
    artist = clean(data.get("artist")) or clean(data.get("artist_name"))
    for key in _PROJECT_KEYS:
        name, name_artist = split_name_by_artist(clean(data.get(key)))
        if name:
            project = name
            artist = artist or name_artist
            break
    if not project and clean(data.get("name")):
        project = strip_edition_suffix(clean(data.get("name")))

    if not project:
        nested, nested_artist = split_name_by_artist(find_nested(data, _PROJECT_KEYS))
        project = nested
        artist = artist or nested_artist
    artist = artist or find_nested(data, _ARTIST_KEYS)

    description = clean(data.get("description"))
    if not artist:
        artist = find_by_artist(description)
    return ProviderMetadata("artblocks", project, artist, description)


class ArtBlocksMetadataProvider(HttpProvider):
    """Collection-native token API: `GET {base}/{contract}/{token_id}`."""

    name = "artblocks"

    def __init__(
        self,
        base_url: str = "https://token.artblocks.io",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)

    async def fetch(self, contract_address: str, token_id: int) -> ProviderMetadata | None:
        try:
            data = await self._get_json(f"/{contract_address}/{token_id}")
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("Art Blocks metadata for %s/%d failed: %s", contract_address, token_id, exc)
            return None
        if not isinstance(data, dict):
            return None
        return parse_artblocks_token(data)


# ── Alchemy NFT API ──────────────────────────────────────────


def parse_alchemy_nft(data: dict[str, Any]) -> ProviderMetadata:
    """Normalize an Alchemy getNFTMetadata response (v3 or legacy v2 shape)."""
    raw_meta = _dict(_dict(data.get("raw")).get("metadata")) or _dict(data.get("metadata"))
    contract = _dict(data.get("contract")) or _dict(data.get("contractMetadata"))
    opensea = _dict(contract.get("openSeaMetadata")) or _dict(contract.get("openSea"))
    traits = _list(raw_meta.get("attributes")) or _list(raw_meta.get("traits"))

    collection_title, collection_artist = split_name_by_artist(
        clean(opensea.get("collectionName"))
    )
    project = None
    for candidate in (
        clean(raw_meta.get("collection_name")),
        clean(raw_meta.get("project_name")),
    ):
        project, _ = split_name_by_artist(candidate)
        if project:
            break
    if not project:
        item_name = clean(data.get("name")) or clean(data.get("title")) or clean(raw_meta.get("name"))
        project = strip_edition_suffix(item_name) if item_name else None
    project = project or collection_title

    description = (
        clean(data.get("description"))
        or clean(raw_meta.get("description"))
        or clean(opensea.get("description"))
    )
    artist = (
        artist_from_traits(traits)
        or artist_from_traits(traits, loose=True)
        or clean(raw_meta.get("artist"))
        or clean(raw_meta.get("creator"))
        or collection_artist
        or find_by_artist(clean(opensea.get("description")))
        or find_by_artist(clean(contract.get("name")))
    )
    return ProviderMetadata("alchemy", project, artist, description)


class AlchemyMetadataProvider(HttpProvider):
    """Chain-indexing NFT API. `base_url` embeds the API key, so errors are
    logged without the request URL."""

    name = "alchemy"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, transport=transport)

    async def fetch(self, contract_address: str, token_id: int) -> ProviderMetadata | None:
        try:
            data = await self._get_json(
                "/getNFTMetadata",
                params={
                    "contractAddress": contract_address,
                    "tokenId": str(token_id),
                    "refreshCache": "false",
                },
            )
        except httpx.HTTPStatusError as exc:
            log.warning(
                "Alchemy metadata for %s/%d failed: HTTP %d",
                contract_address, token_id, exc.response.status_code,
            )
            return None
        except (httpx.HTTPError, ValueError) as exc:
            log.warning(
                "Alchemy metadata for %s/%d failed: %s",
                contract_address, token_id, type(exc).__name__,
            )
            return None
        if not isinstance(data, dict):
            return None
        return parse_alchemy_nft(data)
