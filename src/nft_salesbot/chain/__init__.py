"""On-chain evidence: log decoding, price extraction, RPC and live monitoring."""

from nft_salesbot.chain.monitor import ChainMonitor, candidate_from_evidence
from nft_salesbot.chain.price import SalePriceExtractor
from nft_salesbot.chain.rpc import AlchemyRpcClient, RpcError, fetch_evidence
from nft_salesbot.chain.subscription import AlchemyTransactionSubscription

__all__ = [
    "ChainMonitor", "candidate_from_evidence",
    "SalePriceExtractor",
    "AlchemyRpcClient", "RpcError", "fetch_evidence",
    "AlchemyTransactionSubscription",
]
