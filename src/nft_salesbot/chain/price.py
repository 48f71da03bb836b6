"""Sale price extraction from a transaction and its receipt logs."""

from __future__ import annotations

import logging
from decimal import Decimal

from nft_salesbot.chain.logs import (
    ORDER_FULFILLED_TOPIC,
    TRANSFER_TOPIC,
    ItemType,
    OrderFulfilled,
    decode_order_fulfilled,
    hex_to_int,
    sniff_zero_address_amount,
)
from nft_salesbot.models.config import WETH_ADDRESS
from nft_salesbot.models.sales import WEI_PER_ETH, LogEntry, Receipt, Transaction

log = logging.getLogger(__name__)

# Upper bound for amounts read by the byte-sniffing fallback
MAX_SNIFFED_WEI = 100_000 * WEI_PER_ETH


class SalePriceExtractor:
    """Determines what the buyer paid, in ETH.

    Heuristics, in order:
      1. Seaport OrderFulfilled present and tx value is material: tx value.
      2. Decoded OrderFulfilled payment (native consideration, else
         native/WETH offer, else WETH consideration). Payloads that do not
         decode fall back to zero-address byte sniffing.
      3. First WETH Transfer log amount.
      4. tx value if material.
      5. Zero, meaning "do not publish".
    """

    def __init__(
        self,
        weth_address: str = WETH_ADDRESS,
        materiality_threshold: Decimal = Decimal("0.01"),
    ) -> None:
        self._weth = weth_address.lower()
        self._material_wei = int(materiality_threshold * WEI_PER_ETH)

    def extract_price(
        self,
        transaction: Transaction,
        receipt: Receipt,
        nft: tuple[str, int] | None = None,
    ) -> Decimal:
        return Decimal(self.extract_price_wei(transaction, receipt, nft)) / WEI_PER_ETH

    def extract_price_wei(
        self,
        transaction: Transaction,
        receipt: Receipt,
        nft: tuple[str, int] | None = None,
    ) -> int:
        """Price in wei. `nft` narrows multi-order receipts to the order
        that moved that (contract, token id)."""
        material_value = transaction.value > self._material_wei
        settlements = [e for e in receipt.logs if e.topics and e.topics[0] == ORDER_FULFILLED_TOPIC]

        if settlements:
            if material_value:
                log.debug("%s: OrderFulfilled with material value", transaction.hash)
                return transaction.value
            amount = self._settlement_amount(settlements, nft)
            if amount > 0:
                log.debug("%s: price %d wei from OrderFulfilled", transaction.hash, amount)
                return amount

        for entry in receipt.logs:
            if entry.address == self._weth and entry.topics and entry.topics[0] == TRANSFER_TOPIC:
                amount = hex_to_int(entry.data)
                log.debug("%s: price %d wei from WETH transfer", transaction.hash, amount)
                return amount

        if material_value:
            return transaction.value

        log.debug("%s: no price evidence", transaction.hash)
        return 0

    def _settlement_amount(
        self, settlements: list[LogEntry], nft: tuple[str, int] | None
    ) -> int:
        orders: list[OrderFulfilled] = []
        for entry in settlements:
            try:
                orders.append(decode_order_fulfilled(entry.data))
            except ValueError as exc:
                log.debug("OrderFulfilled decode failed: %s", exc)

        if not orders:
            amount = sniff_zero_address_amount(settlements[0].data)
            if amount > MAX_SNIFFED_WEI:
                log.warning("Ignoring implausible sniffed amount %d wei", amount)
                return 0
            return amount

        order = orders[0]
        if nft is not None:
            for candidate in orders:
                if self._moves_token(candidate, nft):
                    order = candidate
                    break
        return self._order_payment(order)

    @staticmethod
    def _moves_token(order: OrderFulfilled, nft: tuple[str, int]) -> bool:
        contract, token_id = nft[0].lower(), nft[1]
        return any(
            item.token == contract and item.identifier == token_id
            for item in order.offer + order.consideration
            if item.item_type in (ItemType.ERC721, ItemType.ERC1155)
        )

    def _order_payment(self, order: OrderFulfilled) -> int:
        native = sum(i.amount for i in order.consideration if i.item_type == ItemType.NATIVE)
        if native:
            return native
        # Accepted bid: the bidder's offer carries the payment
        offered = sum(
            i.amount for i in order.offer
            if i.item_type == ItemType.NATIVE
            or (i.item_type == ItemType.ERC20 and i.token == self._weth)
        )
        if offered:
            return offered
        return sum(
            i.amount for i in order.consideration
            if i.item_type == ItemType.ERC20 and i.token == self._weth
        )
