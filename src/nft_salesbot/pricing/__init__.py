"""ETH to fiat price oracle and its providers."""

from nft_salesbot.pricing.oracle import PriceOracle
from nft_salesbot.pricing.providers import (
    CoinbasePriceProvider,
    CoinGeckoPriceProvider,
    build_price_providers,
)

__all__ = [
    "PriceOracle",
    "CoinbasePriceProvider",
    "CoinGeckoPriceProvider",
    "build_price_providers",
]
