# storefront/domain/services/cart_svc.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from storefront.domain.models.cart import CartLineItem, CartSnapshot, OrderTotals
from storefront.domain.models.product import Product
from storefront.domain.services.constants import SHIPPING_FLAT_RATE, TAX_RATE

logger = logging.getLogger(__name__)

ProductResolver = Callable[[str], Optional[Product]]


class CartError(Exception):
    """Base error for cart operations."""


def coerce_quantity(value: Any, default: int = 1) -> int:
    """
    Parse a user supplied quantity, falling back to `default` when it is not numeric.
    Floats and numeric strings are truncated toward zero; bools are not quantities.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return default


class CartLedger:
    """
    Ordered line items, one per product id.

    The ledger only keeps ids and quantities. Prices are resolved at
    read time through `resolve`, or through the latest product snapshot
    handed to add_item() when no resolver is given.
    """

    def __init__(self, resolve: Optional[ProductResolver] = None, items: Iterable[CartLineItem] = ()):
        self._resolve = resolve
        self._known: Dict[str, Product] = {}
        self._lines: Dict[str, int] = {}
        for item in items:
            if item.quantity >= 1:
                self._lines[item.product_id] = self._lines.get(item.product_id, 0) + item.quantity

    # ----- mutations ---------------------------------------------------------

    def add_item(self, product: Product, quantity: Any = 1) -> None:
        qty = max(1, coerce_quantity(quantity))
        pid = product.product_id
        self._known[pid] = product
        self._lines[pid] = self._lines.get(pid, 0) + qty

    def update_quantity(self, product_id: str, new_quantity: Any) -> None:
        if product_id not in self._lines:
            return
        qty = coerce_quantity(new_quantity)
        if qty <= 0:
            self.remove_item(product_id)
            return
        self._lines[product_id] = qty

    def remove_item(self, product_id: str) -> None:
        self._lines.pop(product_id, None)
        self._known.pop(product_id, None)

    def clear(self) -> None:
        self._lines.clear()
        self._known.clear()

    # ----- reads -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._lines

    @property
    def items(self) -> List[CartLineItem]:
        return [CartLineItem(product_id=pid, quantity=q) for pid, q in self._lines.items()]

    def quantity_of(self, product_id: str) -> int:
        return self._lines.get(product_id, 0)

    def resolve(self, product_id: str) -> Optional[Product]:
        if self._resolve is not None:
            return self._resolve(product_id)
        return self._known.get(product_id)

    def get_total(self) -> float:
        """Subtotal at current prices. Unresolvable lines count as 0."""
        total = 0.0
        for pid, qty in self._lines.items():
            product = self.resolve(pid)
            if product is None:
                logger.warning("cart line product_id=%s could not be resolved, priced at 0", pid)
                continue
            total += product.price * qty
        return total

    def get_count(self) -> int:
        return sum(self._lines.values())

    def totals(self, **rates) -> OrderTotals:
        return order_totals(self.get_total(), **rates)

    # ----- persistence shape -------------------------------------------------

    def snapshot(self, session_id: str) -> CartSnapshot:
        return CartSnapshot(session_id=session_id, items=self.items)

    @classmethod
    def from_snapshot(cls, snapshot: Optional[CartSnapshot], resolve: Optional[ProductResolver] = None) -> "CartLedger":
        return cls(resolve=resolve, items=snapshot.items if snapshot else ())


def order_totals(
    subtotal: float,
    shipping_rate: float = SHIPPING_FLAT_RATE,
    tax_rate: float = TAX_RATE,
) -> OrderTotals:
    """Flat shipping (free for an empty cart) plus flat tax. No rounding here."""
    shipping = shipping_rate if subtotal > 0 else 0.0
    tax = subtotal * tax_rate
    return OrderTotals(subtotal=subtotal, shipping=shipping, tax=tax, total=subtotal + shipping + tax)
