import logging
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any, List

from .models import Product

logger = logging.getLogger(__name__)

# Request schemas and record helpers shared by the handlers and the store.

class ProductIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    category: Optional[str] = ""
    brand: Optional[str] = ""
    image: Optional[str] = ""
    stock: Optional[int] = Field(0, ge=0)
    id: Optional[int] = None

class StockUpdateIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stock: int = Field(ge=0)

class ChatIn(BaseModel):
    message: str = Field(min_length=1)

class PreferenceItemIn(BaseModel):
    # cart entries from the storefront carry extra fields (id, image, brand...)
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = "Item"
    price: float = Field(0, ge=0)
    quantity: int = Field(1, ge=1)

    # a null, empty or zero entry falls back to the default like a missing one
    @field_validator("title", "price", "quantity", mode="before")
    @classmethod
    def _falsy_to_default(cls, v, info):
        if v is None or v == "" or (v == 0 and info.field_name == "quantity"):
            return cls.model_fields[info.field_name].default
        return v

class PreferenceIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str = Field(min_length=1)
    price: float = Field(gt=0)
    quantity: int = Field(ge=1)
    items: Optional[List[PreferenceItemIn]] = None
    payer_email: Optional[str] = Field(None, alias="payerEmail")

def _make_product_dict(product_id: int, p: ProductIn) -> Dict[str, Any]:
    return Product(
        id=product_id,
        name=p.name,
        price=p.price,
        category=p.category or "",
        brand=p.brand or "",
        image=p.image or "",
        stock=p.stock or 0,
    ).model_dump()

def _coerce_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None

def normalize_seed_product(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Coerce one fixture entry into a stored product record.
    Returns None when the entry has no usable id.
    """
    pid = _coerce_id(raw.get("id"))
    if pid is None:
        logger.warning("Skipping seed product without a numeric id: %r", raw.get("id"))
        return None
    try:
        price = float(raw.get("price") or 0)
        stock = int(raw.get("stock") or 0)
    except (TypeError, ValueError):
        logger.warning("Skipping seed product %s with invalid price/stock", pid)
        return None
    return {
        "id": pid,
        "name": str(raw.get("name") or "Producto"),
        "price": price,
        "category": str(raw.get("category") or ""),
        "brand": str(raw.get("brand") or ""),
        "image": str(raw.get("image") or ""),
        "stock": stock,
    }

def find_product_index(products: List[Dict[str, Any]], product_id: int) -> int:
    for idx, p in enumerate(products):
        if isinstance(p, dict) and _coerce_id(p.get("id")) == product_id:
            return idx
    return -1

def next_product_id(products: List[Dict[str, Any]]) -> int:
    ids = [i for i in (_coerce_id(p.get("id")) for p in products if isinstance(p, dict)) if i is not None]
    return max(ids, default=0) + 1
