import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from storefront.domain.models.cart import CheckoutReceipt
from storefront.domain.services.cart_svc import CartError, CartLedger, order_totals
from storefront.domain.services.constants import SHIPPING_FLAT_RATE, TAX_RATE
from storefront.domain.services.notifications import LEVEL_ERROR, LEVEL_SUCCESS, Notifier

logger = logging.getLogger(__name__)


class CheckoutError(CartError):
    """Checkout refused before payment was attempted."""


class EmptyCartError(CheckoutError):
    pass


async def simulate_checkout(
    ledger: CartLedger,
    notifier: Notifier,
    *,
    is_authenticated: bool,
    user_id: Optional[str] = None,
    delay_s: float = 2.0,
    shipping_rate: float = SHIPPING_FLAT_RATE,
    tax_rate: float = TAX_RATE,
) -> CheckoutReceipt:
    """
    Price the cart, wait `delay_s` to stand in for payment, then clear the cart.
    The cart is left untouched when checkout is refused or cancelled.
    """
    if not is_authenticated:
        notifier.notify("Please login to checkout", LEVEL_ERROR)
        raise CheckoutError("Please login to checkout")
    if len(ledger) == 0:
        raise EmptyCartError("Cart is empty")

    t0 = time.perf_counter()
    items = ledger.items
    totals = order_totals(ledger.get_total(), shipping_rate=shipping_rate, tax_rate=tax_rate)
    logger.info("checkout start user_id=%s lines=%s total=%.2f", user_id, len(items), totals.total)

    await asyncio.sleep(delay_s)

    ledger.clear()
    receipt = CheckoutReceipt(
        order_id=uuid.uuid4().hex,
        user_id=user_id,
        items=items,
        totals=totals,
        placed_at=datetime.now(timezone.utc),
    )
    notifier.notify("Order placed successfully!", LEVEL_SUCCESS)
    logger.info("checkout done order_id=%s time=%.3fs", receipt.order_id, time.perf_counter() - t0)
    return receipt
