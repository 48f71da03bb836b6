"""Metadata resolver - canonical TokenMetadata from an ordered provider chain."""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from nft_salesbot.interfaces.metadata import MetadataProvider
from nft_salesbot.metadata.heuristics import find_by_artist, is_address, split_name_by_artist
from nft_salesbot.models.config import DEFAULT_EDITION_SIZE, ContractConfig, MetadataConfig
from nft_salesbot.models.sales import TokenMetadata

log = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"


class MetadataResolver:
    """Resolves and caches token metadata.

    Providers are consulted in order until both project name and artist are
    known. Later providers only fill gaps; they never overwrite a value an
    earlier provider supplied. Whatever is still missing afterwards gets a
    deterministic fallback, so `resolve` always returns a complete record.
    """

    def __init__(
        self,
        providers: Sequence[MetadataProvider],
        config: MetadataConfig,
        contracts: Sequence[ContractConfig] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._providers = list(providers)
        self._config = config
        self._contracts = {c.address: c for c in contracts}
        self._clock = clock
        self._overrides = {k.lower(): v for k, v in config.artist_overrides.items()}
        self._known = {k.lower(): v for k, v in config.known_collections.items()}
        self._cache: dict[tuple[str, int], tuple[TokenMetadata, float]] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear(self, contract_address: str | None = None, token_id: int | None = None) -> int:
        """Drop one cached token, or everything when no token is given.

        Returns the number of entries removed.
        """
        if contract_address is None or token_id is None:
            removed = len(self._cache)
            self._cache.clear()
            return removed
        return 1 if self._cache.pop((contract_address.lower(), token_id), None) else 0

    async def resolve(self, contract_address: str, token_id: int) -> TokenMetadata:
        contract_address = contract_address.lower()
        key = (contract_address, token_id)
        now = self._clock()

        cached = self._cache.get(key)
        if cached and now - cached[1] < self._config.cache_ttl:
            return cached[0]

        metadata = await self._build(contract_address, token_id)
        self._cache[key] = (metadata, now)
        return metadata

    async def _build(self, contract_address: str, token_id: int) -> TokenMetadata:
        contract = self._contracts.get(contract_address)
        label = contract.label if contract else self._config.default_label
        edition_size = contract.edition_size if contract else DEFAULT_EDITION_SIZE
        project_id, edition_number = divmod(token_id, edition_size)

        project: str | None = None
        artist: str | None = None
        artist_address: str | None = None
        description: str | None = None
        sources: list[str] = []

        for provider in self._providers:
            if project and artist:
                break
            try:
                result = await provider.fetch(contract_address, token_id)
            except Exception as exc:
                log.warning("Metadata provider %s raised for %s/%d: %s",
                            provider.name, contract_address, token_id, exc)
                continue
            if result is None or result.empty:
                log.debug("Metadata provider %s had nothing for %s/%d",
                          provider.name, contract_address, token_id)
                continue

            contributed = False
            if not project and result.project_name:
                project, contributed = result.project_name, True
            if not artist and result.artist_name:
                if not is_address(result.artist_name):
                    artist, contributed = result.artist_name, True
                elif not artist_address:
                    # wallet credits only count when no provider names the artist
                    artist_address, contributed = result.artist_name, True
            if not description and result.description:
                description, contributed = result.description, True
            if contributed:
                sources.append(provider.name)

        project = project or f"{label} Project #{project_id}"
        if not artist and artist_address:
            artist = self._replace_address(artist_address, project, description)
        elif not artist:
            artist = self._fallback_artist(project, description)

        metadata = TokenMetadata(
            contract_address=contract_address,
            token_id=token_id,
            project_id=project_id,
            edition_number=edition_number,
            project_name=project,
            artist_name=artist,
            description=description or "",
            canonical_url=self._config.token_url_template.format(
                contract=contract_address, token_id=token_id,
            ),
            sources=tuple(sources),
        )
        log.info("Resolved %s/%d: %s by %s (%s)", contract_address, token_id,
                 project, artist, ", ".join(sources) or "fallback")
        return metadata

    def _fallback_artist(self, project: str, description: str | None) -> str:
        return (
            self._known.get(project.lower())
            or split_name_by_artist(project)[1]
            or find_by_artist(description)
            or UNKNOWN_ARTIST
        )

    def _replace_address(self, address: str, project: str, description: str | None) -> str:
        override = self._overrides.get(address.lower())
        if override:
            return override
        hint = (
            split_name_by_artist(project)[1]
            or self._known.get(project.lower())
            or find_by_artist(description)
        )
        return hint or address
