"""
Order Request
─────────────
Body of POST /api/pdf: the customer block plus the cart lines the client
collected. Parsing is lenient: missing or junk numbers become 0, a
non-list ``items`` is an empty cart.
"""
import math
from typing import Annotated, Any, List

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _to_text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)


def _to_number(v: Any) -> float:
    if v is None or v == "":
        return 0.0
    try:
        number = float(v)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_mapping(v: Any) -> Any:
    return v if isinstance(v, dict) else {}


def _to_item_list(v: Any) -> Any:
    if not isinstance(v, list):
        return []
    return [item if isinstance(item, dict) else {} for item in v]


Text = Annotated[str, BeforeValidator(_to_text)]
Number = Annotated[float, BeforeValidator(_to_number)]


class Customer(BaseModel):
    name: Text = ""
    phone: Text = ""
    note: Text = ""


class OrderItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    barcode: Text = ""
    stock_code: Text = Field("", alias="stockCode")
    name: Text = ""
    qty: Number = 0.0
    price: Number = 0.0
    currency: Text = "TRY"

    @property
    def line_total(self) -> float:
        return self.qty * self.price


class OrderRequest(BaseModel):
    customer: Annotated[Customer, BeforeValidator(_to_mapping)] = Field(default_factory=Customer)
    items: Annotated[List[OrderItem], BeforeValidator(_to_item_list)] = Field(default_factory=list)
