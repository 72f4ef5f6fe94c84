# storefront/api/v1/schemas/storefront.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from storefront.domain.models.product import Product, discount_percent


class ProductOut(BaseModel):
    product_id: str
    name: str
    brand: Optional[str] = None
    model: Optional[str] = None
    category: str
    description: str
    price: float
    price_aed: Optional[float] = None
    original_price: Optional[float] = None
    discount_percent: Optional[int] = None
    image: Optional[str] = None
    images: List[str] = []
    stock: int
    in_stock: bool
    rating: float
    reviews: int
    featured: bool
    date_added: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_product(cls, p: Product) -> "ProductOut":
        return cls(**p.model_dump(), discount_percent=discount_percent(p), in_stock=p.in_stock)


class ProductListOut(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    source: str
    data: List[ProductOut]


class AddItemIn(BaseModel):
    product_id: str
    # loose on purpose, normalised by the ledger (non-numeric -> 1)
    quantity: Any = 1


class UpdateQuantityIn(BaseModel):
    quantity: Any


class CartLineOut(BaseModel):
    product_id: str
    quantity: int
    name: Optional[str] = None
    image: Optional[str] = None
    unit_price: Optional[float] = None
    line_total: Optional[float] = None
    stock: Optional[int] = None


class CartOut(BaseModel):
    session_id: str
    items: List[CartLineOut]
    count: int
    totals: Dict[str, float]
    notifications: List[Dict[str, str]] = Field(default_factory=list)


class CheckoutOut(BaseModel):
    order_id: str
    user_id: Optional[str] = None
    items: List[CartLineOut]
    totals: Dict[str, float]
    placed_at: datetime
    notifications: List[Dict[str, str]] = Field(default_factory=list)
