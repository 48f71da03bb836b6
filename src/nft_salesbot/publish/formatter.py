"""Post formatting and X/Twitter weighted length."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from nft_salesbot.models.sales import TokenMetadata

URL_WEIGHT = 23  # t.co wraps every link to a fixed length
MIN_FIELD_LENGTH = 8
ELLIPSIS = "…"

_URL_RE = re.compile(r"https?://\S+")


def weighted_length(text: str) -> int:
    """Length as the platform counts it: each URL costs URL_WEIGHT."""
    urls = _URL_RE.findall(text)
    return len(_URL_RE.sub("", text)) + URL_WEIGHT * len(urls)


def shorten(value: str, length: int) -> str:
    if len(value) <= length:
        return value
    return value[: max(length - 1, 1)].rstrip() + ELLIPSIS


def format_eth(value: Decimal) -> str:
    """2 decimals from 1 ETH up, otherwise up to 4 with trailing zeros trimmed."""
    if value >= 1:
        return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"
    text = f"{value.quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP):f}".rstrip("0")
    whole, _, frac = text.partition(".")
    return f"{whole}.{frac.ljust(2, '0')}"


def format_fiat(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"


def _render(project: str, edition: int, artist: str, price: str,
            fiat: str | None, buyer: str, url: str) -> str:
    price_line = f"sold for {price} ETH" + (f" (${fiat})" if fiat else "")
    return f"{project} #{edition} by {artist}\n{price_line}\nto {buyer}\n\n{url}"


def format_sale_message(
    metadata: TokenMetadata,
    price_eth: Decimal,
    fiat_value: Decimal | None,
    buyer: str,
    max_length: int = 280,
) -> str:
    """Render a sale post, shortening project and artist names to fit."""
    price = format_eth(price_eth)
    fiat = format_fiat(fiat_value) if fiat_value is not None else None
    project, artist = metadata.project_name, metadata.artist_name

    def render() -> str:
        return _render(project, metadata.edition_number, artist, price, fiat,
                       buyer, metadata.canonical_url)

    text = render()
    while weighted_length(text) > max_length:
        longest = max(len(project), len(artist))
        if longest <= MIN_FIELD_LENGTH:
            break
        if len(project) >= len(artist):
            project = shorten(project, len(project) - 1)
        else:
            artist = shorten(artist, len(artist) - 1)
        text = render()

    if weighted_length(text) > max_length:
        overflow = weighted_length(text) - max_length
        buyer = shorten(buyer, max(len(buyer) - overflow, MIN_FIELD_LENGTH))
        text = render()
    return text


def format_status_message(label: str, contract_count: int, now: datetime | None = None) -> str:
    """Fixed announcement used for startup and test publications."""
    now = now or datetime.now(timezone.utc)
    return (
        f"{label} sales bot is monitoring sales for {contract_count} contracts! "
        f"({now.strftime('%H:%M:%S')} UTC)"
    )
