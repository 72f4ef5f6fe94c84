import asyncio

import pytest

from conftest import make_product
from storefront.domain.models.product import discount_percent
from storefront.domain.services.cart_svc import CartLedger
from storefront.domain.services.checkout_svc import CheckoutError, EmptyCartError, simulate_checkout
from storefront.domain.services.notifications import RecordingNotifier


def run(coro):
    return asyncio.run(coro)


def test_checkout_clears_cart_and_returns_totals():
    ledger = CartLedger()
    ledger.add_item(make_product("a", price=50.0), 2)
    notes = RecordingNotifier()

    receipt = run(simulate_checkout(ledger, notes, is_authenticated=True, user_id="u1", delay_s=0))

    assert len(ledger) == 0
    assert receipt.user_id == "u1"
    assert [(i.product_id, i.quantity) for i in receipt.items] == [("a", 2)]
    assert receipt.totals.total == pytest.approx(139.99)
    assert notes.messages == [{"level": "success", "message": "Order placed successfully!"}]


def test_checkout_requires_login_and_keeps_cart():
    ledger = CartLedger()
    ledger.add_item(make_product("a"))
    notes = RecordingNotifier()

    with pytest.raises(CheckoutError):
        run(simulate_checkout(ledger, notes, is_authenticated=False, delay_s=0))

    assert len(ledger) == 1
    assert notes.messages[0]["level"] == "error"


def test_checkout_of_empty_cart_is_refused():
    with pytest.raises(EmptyCartError):
        run(simulate_checkout(CartLedger(), RecordingNotifier(), is_authenticated=True, delay_s=0))


def test_cancelled_checkout_leaves_cart_intact():
    ledger = CartLedger()
    ledger.add_item(make_product("a"))

    async def scenario():
        task = asyncio.create_task(
            simulate_checkout(ledger, RecordingNotifier(), is_authenticated=True, delay_s=10)
        )
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    run(scenario())
    assert len(ledger) == 1


def test_notifier_suppresses_rapid_duplicates():
    now = [100.0]
    notes = RecordingNotifier(clock=lambda: now[0])
    assert notes.notify("Added", "success") is True
    assert notes.notify("Added", "success") is False
    assert notes.notify("Added", "error") is True
    now[0] += 2.5
    assert notes.notify("Added", "success") is True
    assert len(notes.messages) == 3


@pytest.mark.parametrize("price,original,expected", [
    (80.0, 100.0, 20),
    (100.0, None, None),
    (100.0, 0.0, None),
    (120.0, 100.0, None),
    (100.0, 100.0, None),
    (66.0, 99.0, 33),
])
def test_discount_percent(price, original, expected):
    assert discount_percent(make_product("d", price=price, original_price=original)) == expected
