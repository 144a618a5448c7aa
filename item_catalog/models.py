# item_catalog/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ItemCreate(BaseModel):
    # Payloads are stored as sent; keys we do not know about are kept.
    model_config = ConfigDict(extra="allow")

    name: str = ""
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None


class Item(ItemCreate):
    id: int
