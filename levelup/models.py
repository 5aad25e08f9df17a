# levelup/models.py
from pydantic import BaseModel, Field

class Product(BaseModel):
    id: int
    name: str
    price: float = Field(ge=0)
    category: str = ""
    brand: str = ""
    image: str = ""
    stock: int = Field(0, ge=0)
