from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime, timezone


class CartLineItem(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


class CartSnapshot(BaseModel):
    """Serialised cart as kept by the key-value store."""
    session_id: str
    items: List[CartLineItem] = []
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class OrderTotals(BaseModel):
    subtotal: float
    shipping: float
    tax: float
    total: float
    model_config = {"frozen": True}

    def for_display(self) -> dict:
        """Two-decimal amounts; only ever applied when leaving the service."""
        return {k: round(v, 2) for k, v in self.model_dump().items()}


class CheckoutReceipt(BaseModel):
    order_id: str
    user_id: Optional[str] = None
    items: List[CartLineItem]
    totals: OrderTotals
    placed_at: datetime
