"""Event deduplication and the sale pipeline."""

from nft_salesbot.ingest.dedup import DedupRegistry
from nft_salesbot.ingest.pipeline import EvidenceUnavailable, SalePipeline

__all__ = ["DedupRegistry", "EvidenceUnavailable", "SalePipeline"]
