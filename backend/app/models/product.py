"""
Normalized Product
──────────────────
The stable product record returned to the browser client, independent of
how T-Soft happened to name its fields. Serialised with camelCase keys
(``stockCode``, ``imageUrl``) because that is what the client reads.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NormalizedProduct(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    barcode: str
    stock_code: str
    name: str
    price: float
    stock: int
    image_url: str
    currency: str

    def to_public(self) -> dict:
        return self.model_dump(by_alias=True)
