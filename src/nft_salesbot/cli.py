"""CLI entry point for the nft_salesbot daemon."""

from __future__ import annotations

import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation

import click

from nft_salesbot.config import load_config
from nft_salesbot.daemon import SalesBotDaemon, run_daemon
from nft_salesbot.models.config import BotConfig


def _load(ctx: click.Context) -> BotConfig:
    cfg = load_config(ctx.obj["config_path"])
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    return cfg


def _require_alchemy(cfg: BotConfig) -> None:
    """Exit with error if no Alchemy key is configured."""
    if not cfg.credentials.alchemy_api_key:
        click.echo("Error: No Alchemy API key configured.", err=True)
        click.echo("Set NFT_SALESBOT_ALCHEMY_API_KEY.", err=True)
        sys.exit(1)


def _secret(value: str) -> str:
    return "***configured***" if value else "(not set)"


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """nft_salesbot - NFT sale announcements for tracked contracts."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the sales bot."""
    cfg = _load(ctx)
    mode = "live" if cfg.publication.enabled and cfg.credentials.has_twitter else "dry-run"
    click.echo(f"Starting nft_salesbot ({mode}, {len(cfg.contracts)} contracts)")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show bot configuration."""
    cfg = _load(ctx)
    creds = cfg.credentials
    click.echo(f"Publication: {'enabled' if cfg.publication.enabled else 'dry-run'}")
    click.echo(f"Network:     {cfg.alchemy_network}")
    click.echo(f"Feed:        {', '.join(cfg.feed.collections) or '(no collections)'}")
    click.echo(f"Monitor:     {cfg.monitor.subscription if cfg.monitor.enabled else 'disabled'}")
    click.echo(f"Min price:   {cfg.sales.min_price} ETH")
    click.echo(f"Interval:    {cfg.publication.min_interval}s between posts")
    click.echo(f"Alchemy:     {_secret(creds.alchemy_api_key)}")
    click.echo(f"OpenSea:     {_secret(creds.opensea_api_key)}")
    click.echo(f"Twitter:     {'***configured***' if creds.has_twitter else '(not set)'}")
    click.echo("Contracts:")
    for c in cfg.contracts:
        click.echo(f"  {c.address}  {c.label}")


@cli.command()
@click.argument("contract")
@click.argument("token_id", type=int)
@click.pass_context
def metadata(ctx: click.Context, contract: str, token_id: int) -> None:
    """Resolve display metadata for one token."""
    cfg = _load(ctx)

    async def _metadata():
        daemon = SalesBotDaemon(cfg)
        meta = await daemon.resolve_metadata_for_token(contract, token_id)
        click.echo(f"Project:  {meta.project_name} (#{meta.project_id})")
        click.echo(f"Edition:  {meta.edition_number}")
        click.echo(f"Artist:   {meta.artist_name}")
        click.echo(f"URL:      {meta.canonical_url}")
        click.echo(f"Sources:  {', '.join(meta.sources) or '(fallback)'}")

    asyncio.run(_metadata())


@cli.command()
@click.pass_context
def price(ctx: click.Context) -> None:
    """Show the current ETH price."""
    cfg = _load(ctx)

    async def _price():
        daemon = SalesBotDaemon(cfg)
        quote = await daemon.oracle.get_quote()
        click.echo(f"ETH/{cfg.pricing.fiat.upper()}: {quote.value} ({quote.source})")

    asyncio.run(_price())


# ── Testing ────────────────────────────────────────────


@cli.command()
@click.argument("tx_hash")
@click.pass_context
def preview(ctx: click.Context, tx_hash: str) -> None:
    """Show the post a transaction would produce."""
    cfg = _load(ctx)
    _require_alchemy(cfg)

    async def _preview():
        daemon = SalesBotDaemon(cfg)
        text = await daemon.preview_transaction(tx_hash)
        if text is None:
            click.echo("No publishable sale found in this transaction.")
            sys.exit(1)
        click.echo(text)

    asyncio.run(_preview())


@cli.command()
@click.argument("contract")
@click.argument("token_id", type=int)
@click.argument("price_eth")
@click.argument("buyer")
@click.pass_context
def simulate(ctx: click.Context, contract: str, token_id: int, price_eth: str, buyer: str) -> None:
    """Run a synthetic sale through the pipeline (never published)."""
    cfg = _load(ctx)
    try:
        amount = Decimal(price_eth)
    except InvalidOperation:
        click.echo(f"Error: invalid price {price_eth!r}", err=True)
        sys.exit(1)

    async def _simulate():
        daemon = SalesBotDaemon(cfg)
        daemon.set_publication_enabled(False)
        if not await daemon.simulate_sale(contract, token_id, amount, buyer):
            click.echo("Sale was not queued (below the price floor?).")
            sys.exit(1)
        click.echo(daemon.queue.pending[-1].text)

    asyncio.run(_simulate())
