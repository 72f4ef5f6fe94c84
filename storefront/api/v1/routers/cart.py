# storefront/api/v1/routers/cart.py
from typing import Dict, Optional, Tuple
import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import cart_store, notifier, product_repo
from storefront.api.v1.schemas.storefront import AddItemIn, CartLineOut, CartOut, CheckoutOut, UpdateQuantityIn
from storefront.core.config import Settings, get_settings
from storefront.core.security import current_user_id
from storefront.domain.models.product import Product
from storefront.domain.repositories.cart_repo import CartStore
from storefront.domain.repositories.product_repo import ProductRepo
from storefront.domain.services.cart_svc import CartLedger, coerce_quantity
from storefront.domain.services.catalog_svc import get_product, resolve_products
from storefront.domain.services.checkout_svc import CheckoutError, EmptyCartError, simulate_checkout
from storefront.domain.services.notifications import LEVEL_ERROR, LEVEL_INFO, LEVEL_SUCCESS, RecordingNotifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/carts", tags=["cart"])


async def _load(
    session_id: str,
    store: CartStore,
    repo: Optional[ProductRepo],
) -> Tuple[CartLedger, Dict[str, Product]]:
    """Ledger for the session with prices resolved from the current catalog."""
    snapshot = await store.load_cart(session_id)
    ids = [it.product_id for it in snapshot.items] if snapshot else []
    products = await resolve_products(repo, ids)
    return CartLedger.from_snapshot(snapshot, resolve=products.get), products


def _line_out(product_id: str, quantity: int, products: Dict[str, Product]) -> CartLineOut:
    p = products.get(product_id)
    if p is None:
        return CartLineOut(product_id=product_id, quantity=quantity)
    return CartLineOut(
        product_id=product_id,
        quantity=quantity,
        name=p.name,
        image=p.image,
        unit_price=p.price,
        line_total=round(p.price * quantity, 2),
        stock=p.stock,
    )


def _cart_out(
    session_id: str,
    ledger: CartLedger,
    products: Dict[str, Product],
    settings: Settings,
    notes: RecordingNotifier,
) -> CartOut:
    totals = ledger.totals(shipping_rate=settings.SHIPPING_FLAT_RATE, tax_rate=settings.TAX_RATE)
    return CartOut(
        session_id=session_id,
        items=[_line_out(it.product_id, it.quantity, products) for it in ledger.items],
        count=ledger.get_count(),
        totals=totals.for_display(),
        notifications=notes.messages,
    )


@router.get("/{session_id}", response_model=CartOut)
async def read_cart(
    session_id: str,
    store: CartStore = Depends(cart_store),
    repo: Optional[ProductRepo] = Depends(product_repo),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    ledger, products = await _load(session_id, store, repo)
    return _cart_out(session_id, ledger, products, settings, notes)


@router.post("/{session_id}/items", response_model=CartOut)
async def add_cart_item(
    session_id: str,
    body: AddItemIn,
    store: CartStore = Depends(cart_store),
    repo: Optional[ProductRepo] = Depends(product_repo),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    """
    Add to cart. The requested quantity is clamped to [1, stock] here,
    before it reaches the ledger, as the product page does.
    """
    product = await get_product(repo, body.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if not product.in_stock:
        raise HTTPException(status_code=400, detail="Product is out of stock")

    ledger, products = await _load(session_id, store, repo)
    qty = max(1, min(coerce_quantity(body.quantity), product.stock))
    products[product.product_id] = product
    ledger.add_item(product, qty)
    await store.save_cart(ledger.snapshot(session_id))

    notes.notify(f"{product.name} added to cart!", LEVEL_SUCCESS)
    logger.info("cart add session_id=%s product_id=%s qty=%s count=%s", session_id, product.product_id, qty, ledger.get_count())
    return _cart_out(session_id, ledger, products, settings, notes)


@router.patch("/{session_id}/items/{product_id}", response_model=CartOut)
async def update_cart_item(
    session_id: str,
    product_id: str,
    body: UpdateQuantityIn,
    store: CartStore = Depends(cart_store),
    repo: Optional[ProductRepo] = Depends(product_repo),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    ledger, products = await _load(session_id, store, repo)
    if product_id in ledger:
        ledger.update_quantity(product_id, body.quantity)
        await store.save_cart(ledger.snapshot(session_id))
        if product_id not in ledger:
            notes.notify("Item removed from cart", LEVEL_INFO)
    logger.info("cart update session_id=%s product_id=%s qty=%s", session_id, product_id, ledger.quantity_of(product_id))
    return _cart_out(session_id, ledger, products, settings, notes)


@router.delete("/{session_id}/items/{product_id}", response_model=CartOut)
async def remove_cart_item(
    session_id: str,
    product_id: str,
    store: CartStore = Depends(cart_store),
    repo: Optional[ProductRepo] = Depends(product_repo),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    ledger, products = await _load(session_id, store, repo)
    if product_id in ledger:
        ledger.remove_item(product_id)
        await store.save_cart(ledger.snapshot(session_id))
        notes.notify("Item removed from cart", LEVEL_INFO)
    return _cart_out(session_id, ledger, products, settings, notes)


@router.delete("/{session_id}", response_model=CartOut)
async def clear_cart(
    session_id: str,
    store: CartStore = Depends(cart_store),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    await store.delete_cart(session_id)
    notes.notify("Cart cleared", LEVEL_INFO)
    return _cart_out(session_id, CartLedger(), {}, settings, notes)


@router.post("/{session_id}/checkout", response_model=CheckoutOut)
async def checkout(
    session_id: str,
    user_id: Optional[str] = Depends(current_user_id),
    store: CartStore = Depends(cart_store),
    repo: Optional[ProductRepo] = Depends(product_repo),
    notes: RecordingNotifier = Depends(notifier),
    settings: Settings = Depends(get_settings),
):
    """Simulated payment: fixed delay, then the cart is cleared."""
    t0 = time.perf_counter()
    ledger, products = await _load(session_id, store, repo)
    try:
        receipt = await simulate_checkout(
            ledger,
            notes,
            is_authenticated=user_id is not None,
            user_id=user_id,
            delay_s=settings.CHECKOUT_DELAY_S,
            shipping_rate=settings.SHIPPING_FLAT_RATE,
            tax_rate=settings.TAX_RATE,
        )
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CheckoutError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except Exception:
        notes.notify("Checkout failed. Please try again.", LEVEL_ERROR)
        logger.exception("checkout failed session_id=%s", session_id)
        raise

    await store.delete_cart(session_id)
    logger.info(
        "Response: checkout session_id=%s order_id=%s total=%.2f elapsed_time=%.4fs",
        session_id, receipt.order_id, receipt.totals.total, time.perf_counter() - t0,
    )
    return CheckoutOut(
        order_id=receipt.order_id,
        user_id=receipt.user_id,
        items=[_line_out(it.product_id, it.quantity, products) for it in receipt.items],
        totals=receipt.totals.for_display(),
        placed_at=receipt.placed_at,
        notifications=notes.messages,
    )
