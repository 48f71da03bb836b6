"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from decimal import Decimal
from pathlib import Path

from nft_salesbot.models.config import BotConfig, ContractConfig

_TRUE = {"1", "true", "yes", "on"}


def _bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "NFT_SALESBOT_",
) -> BotConfig:
    """Load bot configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (NFT_SALESBOT_ALCHEMY_API_KEY, etc.)
        2. TOML config file
        3. Defaults from BotConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = BotConfig()

    # ── Bot section ────────────────────────────────────────
    bot = raw.get("bot", {})
    if v := bot.get("log_level"):
        cfg.log_level = str(v)
    if v := bot.get("error_backoff"):
        cfg.error_backoff = int(v)
    if v := bot.get("http_timeout"):
        cfg.http_timeout = float(v)

    # ── Endpoints section ──────────────────────────────────
    endpoints = raw.get("endpoints", {})
    if v := endpoints.get("alchemy_network"):
        cfg.alchemy_network = str(v)
    if v := endpoints.get("opensea_api_url"):
        cfg.opensea_api_url = str(v)
    if v := endpoints.get("opensea_chain"):
        cfg.opensea_chain = str(v)
    if v := endpoints.get("ens_api_url"):
        cfg.ens_api_url = str(v)
    if v := endpoints.get("twitter_api_url"):
        cfg.twitter_api_url = str(v)

    # ── Contracts ([[contracts]] array of tables) ──────────
    if contracts := raw.get("contracts"):
        cfg.contracts = [
            ContractConfig(
                address=str(c["address"]),
                label=str(c.get("label", "Art Blocks")),
                edition_size=int(c.get("edition_size", 1_000_000)),
            )
            for c in contracts
        ]

    # ── Feed section ───────────────────────────────────────
    feed = raw.get("feed", {})
    if (v := feed.get("enabled")) is not None:
        cfg.feed.enabled = _bool(v)
    if v := feed.get("collections"):
        cfg.feed.collections = [str(s) for s in v]
    if v := feed.get("poll_interval"):
        cfg.feed.poll_interval = int(v)
    if v := feed.get("page_limit"):
        cfg.feed.page_limit = int(v)
    if v := feed.get("initial_lookback"):
        cfg.feed.initial_lookback = int(v)

    # ── Monitor section ────────────────────────────────────
    monitor = raw.get("monitor", {})
    if (v := monitor.get("enabled")) is not None:
        cfg.monitor.enabled = _bool(v)
    if v := monitor.get("subscription"):
        cfg.monitor.subscription = str(v)
    if (v := monitor.get("marketplace_addresses")) is not None:
        cfg.monitor.marketplace_addresses = [str(a).lower() for a in v]
    if v := monitor.get("reconnect_delay"):
        cfg.monitor.reconnect_delay = int(v)
    if (v := monitor.get("receipt_retries")) is not None:
        cfg.monitor.receipt_retries = int(v)
    if v := monitor.get("receipt_delay"):
        cfg.monitor.receipt_delay = float(v)

    # ── Pricing section ────────────────────────────────────
    pricing = raw.get("pricing", {})
    if v := pricing.get("providers"):
        cfg.pricing.providers = [str(p) for p in v]
    if v := pricing.get("fiat"):
        cfg.pricing.fiat = str(v).lower()
    if v := pricing.get("cache_ttl"):
        cfg.pricing.cache_ttl = int(v)
    if v := pricing.get("fallback_price"):
        cfg.pricing.fallback_price = Decimal(str(v))

    # ── Metadata section ───────────────────────────────────
    metadata = raw.get("metadata", {})
    if v := metadata.get("cache_ttl"):
        cfg.metadata.cache_ttl = int(v)
    if v := metadata.get("default_label"):
        cfg.metadata.default_label = str(v)
    if v := metadata.get("token_url_template"):
        cfg.metadata.token_url_template = str(v)
    if v := metadata.get("artblocks_token_api"):
        cfg.metadata.artblocks_token_api = str(v)
    if v := metadata.get("artist_overrides"):
        cfg.metadata.artist_overrides.update({str(k).lower(): str(n) for k, n in v.items()})
    if v := metadata.get("known_collections"):
        cfg.metadata.known_collections.update({str(k).lower(): str(n) for k, n in v.items()})

    # ── Sales section ──────────────────────────────────────
    sales = raw.get("sales", {})
    if v := sales.get("min_price"):
        cfg.sales.min_price = Decimal(str(v))
    if v := sales.get("materiality_threshold"):
        cfg.sales.materiality_threshold = Decimal(str(v))
    if v := sales.get("weth_address"):
        cfg.sales.weth_address = str(v).lower()
    if v := sales.get("dedup_retention"):
        cfg.sales.dedup_retention = int(v)
    if v := sales.get("dedup_max_entries"):
        cfg.sales.dedup_max_entries = int(v)

    # ── Publication section ────────────────────────────────
    publication = raw.get("publication", {})
    pub = cfg.publication
    if (v := publication.get("enabled")) is not None:
        pub.enabled = _bool(v)
    if (v := publication.get("announce_on_start")) is not None:
        pub.announce_on_start = _bool(v)
    for key in ("startup_quiet_period", "min_interval", "rate_limit_cooldown",
                "failure_delay_step", "max_failure_delay", "max_retries", "max_length"):
        if (v := publication.get(key)) is not None:
            setattr(pub, key, int(v))
    for key in ("rearm_delay", "failure_rearm_delay"):
        if (v := publication.get(key)) is not None:
            setattr(pub, key, float(v))

    # ── Credentials (TOML, normally left to env) ───────────
    creds = raw.get("credentials", {})
    for key in ("alchemy_api_key", "opensea_api_key", "twitter_consumer_key",
                "twitter_consumer_secret", "twitter_access_token", "twitter_access_secret"):
        if v := creds.get(key):
            setattr(cfg.credentials, key, str(v))

    # ── Environment variable overrides (highest priority) ──
    for key in ("alchemy_api_key", "opensea_api_key", "twitter_consumer_key",
                "twitter_consumer_secret", "twitter_access_token", "twitter_access_secret"):
        if v := os.environ.get(f"{env_prefix}{key.upper()}"):
            setattr(cfg.credentials, key, v)
    if (publish := os.environ.get(f"{env_prefix}PUBLISH")) is not None:
        cfg.publication.enabled = _bool(publish)
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    return cfg
