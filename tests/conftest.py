"""Shared fixtures for nft_salesbot tests."""

from __future__ import annotations

import pytest

from nft_salesbot.chain.price import SalePriceExtractor
from nft_salesbot.daemon import SalesBotDaemon
from nft_salesbot.identity.resolver import IdentityResolver
from nft_salesbot.ingest.dedup import DedupRegistry
from nft_salesbot.ingest.pipeline import SalePipeline
from nft_salesbot.metadata.resolver import MetadataResolver
from nft_salesbot.models.config import BotConfig, FeedConfig, PublicationConfig
from nft_salesbot.pricing.oracle import PriceOracle
from nft_salesbot.publish.queue import PublicationQueue

from tests.mocks import (
    MockChainClient,
    MockMetadataProvider,
    MockNameLookup,
    MockPriceProvider,
    MockPublisher,
    MockSaleFeed,
    MockSubscription,
)
from tests.factories import BUYER, make_provider_metadata


class FakeClock:
    """Manual clock; `sleep` advances it instead of waiting."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_test_config(**overrides) -> BotConfig:
    """Build a BotConfig suitable for testing (no credentials, no network)."""
    defaults = dict(
        error_backoff=1,
        feed=FeedConfig(collections=["chromie-squiggle-by-snowfro"], poll_interval=1),
        publication=PublicationConfig(enabled=False, announce_on_start=False),
    )
    defaults.update(overrides)
    return BotConfig(**defaults)


@pytest.fixture
def test_config():
    """Default BotConfig for tests."""
    return make_test_config()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_publisher():
    return MockPublisher()


@pytest.fixture
def mock_chain():
    return MockChainClient()


@pytest.fixture
def mock_feed():
    return MockSaleFeed()


@pytest.fixture
def mock_price_provider():
    return MockPriceProvider()


@pytest.fixture
def mock_metadata_provider():
    return MockMetadataProvider("opensea", make_provider_metadata())


@pytest.fixture
def mock_name_lookup():
    return MockNameLookup("ens", {BUYER: "collector.eth"})


@pytest.fixture
def queue(mock_publisher, clock):
    """Live queue with zero quiet period."""
    cfg = PublicationConfig(enabled=True, startup_quiet_period=0)
    return PublicationQueue(mock_publisher, cfg, clock=clock, sleep=clock.sleep)


@pytest.fixture
def pipeline(test_config, queue, mock_chain, mock_metadata_provider,
             mock_price_provider, mock_name_lookup, clock):
    """SalePipeline wired to mocks."""
    return SalePipeline(
        registry=DedupRegistry(clock=clock),
        extractor=SalePriceExtractor(),
        metadata=MetadataResolver([mock_metadata_provider], test_config.metadata,
                                  test_config.contracts, clock=clock),
        identity=IdentityResolver([mock_name_lookup]),
        oracle=PriceOracle([mock_price_provider], clock=clock),
        queue=queue,
        chain=mock_chain,
    )


@pytest.fixture
def daemon(test_config, mock_publisher, mock_feed, mock_chain,
           mock_metadata_provider, mock_price_provider, mock_name_lookup, clock):
    """Fully wired SalesBotDaemon with mocked collaborators."""
    return SalesBotDaemon(
        test_config,
        publisher=mock_publisher,
        feed=mock_feed,
        chain=mock_chain,
        subscription=MockSubscription(),
        metadata_providers=[mock_metadata_provider],
        price_providers=[mock_price_provider],
        name_lookups=[mock_name_lookup],
        clock=clock,
        sleep=clock.sleep,
    )
