from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.config.settings import Settings, settings
from app.errors import NotFoundError, ValidationError
from app.models.product import NormalizedProduct
from app.services.product_mapper import ImageHosts, map_product
from app.services.tsoft_service import TSoftService, tsoft_service
from app.utils.logger import get_logger

logger = get_logger(__name__)

BY_BARCODE_PATH   = "/product/getProductByBarcode"
PRODUCT_LIST_PATH = "/product/getProducts"


@dataclass(frozen=True)
class LookupAttempt:
    method: str
    api_path: str
    barcode_field: str
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def params_for(self, barcode: str) -> Dict[str, Any]:
        return {self.barcode_field: barcode, **self.extra_params}


# Store integrations disagree on how "lookup by barcode" is spelled, so the
# known variants are tried in this order until one returns a product.
LOOKUP_ATTEMPTS: List[LookupAttempt] = [
    LookupAttempt("POST", BY_BARCODE_PATH, "barcode"),
    LookupAttempt("POST", BY_BARCODE_PATH, "Barcode"),
    LookupAttempt(
        "POST",
        PRODUCT_LIST_PATH,
        "Barcode",
        {"Page": 1, "PageSize": 1, "FetchImageUrls": "true"},
    ),
    LookupAttempt("GET", BY_BARCODE_PATH, "barcode"),
]


# ── Response shapes ───────────────────────────────────────────────────────────

def _first_of_products(container: Any) -> Optional[Mapping[str, Any]]:
    products = container.get("Products") if isinstance(container, Mapping) else None
    if isinstance(products, list) and products and isinstance(products[0], Mapping):
        return products[0]
    return None


def _is_products_wrapper(record: Mapping[str, Any]) -> bool:
    return isinstance(record.get("Products"), list)


def pick_first_product(payload: Any) -> Optional[Mapping[str, Any]]:
    """Find the product record in one of the response shapes T-Soft is known to use.

    Shapes, checked in order:
      1. {"data": [ {<product>}, ... ]}
      2. {"data": [ {"Products": [ {<product>}, ... ]} ]}
      3. {"data": {"Products": [ {<product>}, ... ]}}

    Returns None for anything else, including an empty Products list.
    """
    if not isinstance(payload, Mapping):
        return None
    data = payload.get("data")

    if isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, Mapping) and not _is_products_wrapper(first):
            return first
        nested = _first_of_products(first)
        if nested is not None:
            return nested

    return _first_of_products(data)


# ── Resolver ──────────────────────────────────────────────────────────────────

class ProductService:
    def __init__(
        self,
        tsoft: TSoftService = tsoft_service,
        config: Settings = settings,
        attempts: Optional[List[LookupAttempt]] = None,
    ):
        self.tsoft = tsoft
        self.hosts = ImageHosts.from_settings(config)
        self.attempts = attempts if attempts is not None else LOOKUP_ATTEMPTS

    async def resolve(self, barcode: str) -> NormalizedProduct:
        """
        Look a barcode up on T-Soft and return the normalised product.

        Raises NotFoundError when every attempt comes back empty. Transport or
        auth failures propagate straight away; the remaining attempts are skipped.
        """
        barcode = (barcode or "").strip()
        if not barcode:
            raise ValidationError("barcode gerekli")

        for idx, attempt in enumerate(self.attempts, start=1):
            logger.debug(
                "resolve — barcode=%s attempt %d/%d: %s %s (%s)",
                barcode, idx, len(self.attempts), attempt.method, attempt.api_path, attempt.barcode_field,
            )
            payload = await self.tsoft.call(attempt.method, attempt.api_path, attempt.params_for(barcode))
            raw = pick_first_product(payload)
            if raw is not None:
                logger.info(
                    "Product found — barcode=%s via %s %s (%s)",
                    barcode, attempt.method, attempt.api_path, attempt.barcode_field,
                )
                return map_product(raw, barcode, self.hosts)

        logger.info("Product not found — barcode=%s after %d attempts", barcode, len(self.attempts))
        raise NotFoundError(f"No product for barcode {barcode}")


product_service = ProductService()
