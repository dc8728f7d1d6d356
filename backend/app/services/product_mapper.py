"""
Product Mapper
──────────────
Turns a raw T-Soft product record into a NormalizedProduct.

T-Soft field names differ between store integrations, so every output
field is read from an ordered table of candidate names. The tables are
plain data; the rules that walk them are the small helpers below.
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from app.config.settings import Settings, settings
from app.models.product import NormalizedProduct
from app.utils.money import round_money

# ── Field tables (highest priority first) ─────────────────────────────────────

NAME_FIELDS       = ("ProductName", "Name", "Title", "productName")
STOCK_CODE_FIELDS = ("StockCode", "Stockcode", "Sku", "Code", "ProductCode")
BARCODE_FIELDS    = ("Barcode", "ProductBarcode")
STOCK_FIELDS      = ("Stock", "Quantity", "TotalStock")
CURRENCY_FIELDS   = ("Currency",)

# VAT-included before VAT-excluded, selling price before generic price
PRICE_FIELDS = (
    "VatIncludedSellingPrice",
    "VatIncludedSalePrice",
    "VatIncludedPrice",
    "SalePriceVatIncluded",
    "SellingPriceVatIncluded",
    "SalePrice",
    "Price",
    "SellingPrice",
)

IMAGE_LIST_FIELDS = ("ImageUrls", "Images", "ProductImages", "ProductPictures", "Pictures")
IMAGE_OBJECT_KEYS = (
    "ImageUrl",
    "ImagePath",
    "Path",
    "Url",
    "BigImageUrl",
    "BigImagePath",
    "OriginalImageUrl",
    "OriginalImagePath",
)
IMAGE_SINGLE_FIELDS = (
    "ImageUrl",
    "Image",
    "PictureUrl",
    "Picture",
    "BigImageUrl",
    "BigImage",
    "MainImageUrl",
    "MainImage",
)

DEFAULT_NAME     = "Ürün"
DEFAULT_CURRENCY = "TRY"
CURRENCY_ALIASES = {"TL": "TRY"}

IMAGE_EXT_RE    = re.compile(r"\.(jpg|jpeg|png|webp)$", re.IGNORECASE)
ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
CDN_IMAGE_DIR   = "Data/B/"


# ── Extraction rules ──────────────────────────────────────────────────────────

def first_truthy(raw: Mapping[str, Any], fields: Iterable[str]) -> Any:
    """First value that is not None, empty or zero."""
    for field in fields:
        value = raw.get(field)
        if value:
            return value
    return None


def first_defined(raw: Mapping[str, Any], fields: Iterable[str]) -> Any:
    """First value that is present and not None (0 and "" count as present)."""
    for field in fields:
        value = raw.get(field)
        if value is not None:
            return value
    return None


def _to_number(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, str) and not value.strip():
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def pick_price(raw: Mapping[str, Any]) -> float:
    number = _to_number(first_defined(raw, PRICE_FIELDS))
    if not math.isfinite(number) or number < 0:
        return 0.0
    return round_money(number)


def pick_stock(raw: Mapping[str, Any]) -> int:
    number = _to_number(first_defined(raw, STOCK_FIELDS))
    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def normalize_currency(value: Any) -> str:
    code = str(value or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
    return CURRENCY_ALIASES.get(code, code)


def _text_or(raw: Mapping[str, Any], fields: Iterable[str], default: str) -> str:
    value = first_truthy(raw, fields)
    return str(value) if value else default


# Output field -> extraction rule. Barcode and image URL need more context
# than the raw record alone and are handled in map_product.
FIELD_RULES: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
    "name":       lambda raw: _text_or(raw, NAME_FIELDS, DEFAULT_NAME),
    "stock_code": lambda raw: _text_or(raw, STOCK_CODE_FIELDS, ""),
    "price":      pick_price,
    "stock":      pick_stock,
    "currency":   lambda raw: normalize_currency(first_truthy(raw, CURRENCY_FIELDS)),
}


# ── Image URL resolution ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageHosts:
    cdn_url: str
    web_url: str
    placeholder_url: str

    @classmethod
    def from_settings(cls, config: Settings) -> "ImageHosts":
        return cls(
            cdn_url=config.ts_cdn_url.rstrip("/"),
            web_url=config.ts_web_url if config.ts_web_url.endswith("/") else f"{config.ts_web_url}/",
            placeholder_url=config.placeholder_image_url,
        )


def _values_from_object(item: Mapping[str, Any]) -> List[Any]:
    return [item.get(key) for key in IMAGE_OBJECT_KEYS]


def collect_image_candidates(raw: Mapping[str, Any]) -> List[str]:
    """Every image-looking value on the record, in discovery order, trimmed."""
    found: List[Any] = []

    for field in IMAGE_LIST_FIELDS:
        items = raw.get(field)
        if not isinstance(items, list):
            continue
        for item in items:
            if not item:
                continue
            if isinstance(item, str):
                found.append(item)
            elif isinstance(item, Mapping):
                found.extend(_values_from_object(item))

    for field in IMAGE_SINGLE_FIELDS:
        value = raw.get(field)
        if isinstance(value, Mapping):
            found.extend(_values_from_object(value))
        elif not isinstance(value, list):
            found.append(value)

    cleaned = [str(value).strip() for value in found if value]
    return [value for value in cleaned if value]


def has_image_extension(url: str) -> bool:
    return bool(IMAGE_EXT_RE.search(url))


def choose_image_candidate(candidates: List[str]) -> str:
    for candidate in candidates:
        if has_image_extension(candidate):
            return candidate
    return candidates[0] if candidates else ""


def to_cdn_url(url: str, hosts: ImageHosts) -> str:
    """Route relative paths and primary-host URLs onto the image CDN."""
    if url and not ABSOLUTE_URL_RE.match(url):
        path = url.lstrip("/")
        # Some integrations already send "Data/B/D22/3836.jpg", others only "D22/3836.jpg"
        if path.lower().startswith("data/"):
            url = f"{hosts.cdn_url}/{path}"
        else:
            url = f"{hosts.cdn_url}/{CDN_IMAGE_DIR}{path}"

    if url.startswith(hosts.web_url):
        url = f"{hosts.cdn_url}/{CDN_IMAGE_DIR}{url[len(hosts.web_url):]}"
    return url


def resolve_image_url(raw: Mapping[str, Any], hosts: ImageHosts) -> str:
    url = to_cdn_url(choose_image_candidate(collect_image_candidates(raw)), hosts)

    # SEO slug without an extension: the CDN usually serves it with ".jpg".
    # No HEAD check here; the client swaps in the placeholder on a broken link.
    if url and not has_image_extension(url):
        with_jpg = f"{url}.jpg"
        url = with_jpg if has_image_extension(with_jpg) else ""

    return url or hosts.placeholder_url


# ── Entry point ───────────────────────────────────────────────────────────────

def map_product(
    raw: Mapping[str, Any],
    barcode_fallback: str,
    hosts: Optional[ImageHosts] = None,
) -> NormalizedProduct:
    hosts = hosts or ImageHosts.from_settings(settings)
    fields = {name: rule(raw) for name, rule in FIELD_RULES.items()}
    barcode = first_truthy(raw, BARCODE_FIELDS) or barcode_fallback or ""
    return NormalizedProduct(
        barcode=str(barcode),
        image_url=resolve_image_url(raw, hosts),
        **fields,
    )
