from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime, timezone

Category = Literal["Men", "Women"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(BaseModel):
    product_id: str
    name: str
    brand: Optional[str] = None
    model: Optional[str] = None
    # Read side tolerates legacy values; writes go through ProductIn
    category: str
    description: str = ""
    price: float = Field(ge=0)
    price_aed: Optional[float] = None
    original_price: Optional[float] = None
    image: Optional[str] = None
    images: List[str] = []
    stock: int = 0
    rating: float = 0
    reviews: int = 0
    featured: bool = False
    date_added: datetime = Field(default_factory=_utcnow)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True}  # immutable inside the core

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


def discount_percent(product: Product) -> Optional[int]:
    """
    Whole-percent discount implied by original_price, or None when there is none to show.
    originalPrice of 0 or below price yields None instead of raising or going negative.
    """
    original = product.original_price
    if not original or original <= 0:
        return None
    pct = round((original - product.price) / original * 100)
    return pct if pct > 0 else None


class ProductIn(BaseModel):
    """Admin create payload."""
    name: str = Field(..., min_length=1)
    category: Category
    brand: str = Field(..., min_length=1)
    model: Optional[str] = None
    price: float = Field(..., ge=0)
    price_aed: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    image: str
    images: List[str] = []
    description: str = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    featured: bool = False
    date_added: Optional[datetime] = None


NULLABLE_UPDATE_FIELDS = frozenset({"model", "price_aed", "original_price", "image"})


class ProductUpdate(BaseModel):
    """Admin partial update; unset fields are left untouched."""
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[Category] = None
    brand: Optional[str] = Field(None, min_length=1)
    model: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    price_aed: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    image: Optional[str] = None
    images: Optional[List[str]] = None
    description: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None
    date_added: Optional[datetime] = None

    @model_validator(mode="after")
    def _no_null_required_fields(self):
        # Explicit null is only meaningful for fields Product itself allows to be None
        nulled = sorted(f for f in self.model_fields_set - NULLABLE_UPDATE_FIELDS if getattr(self, f) is None)
        if nulled:
            raise ValueError(f"fields cannot be null: {', '.join(nulled)}")
        return self
