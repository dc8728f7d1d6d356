from fastapi import APIRouter, Depends, Query

from app.errors import ValidationError
from app.services.product_service import ProductService, product_service
from app.utils.logger import get_logger

router = APIRouter(prefix="/api", tags=["product"])
logger = get_logger(__name__)


def get_product_service() -> ProductService:
    return product_service


@router.get("/product")
async def get_product(
    barcode: str = Query(""),
    service: ProductService = Depends(get_product_service),
):
    """
    Resolve a scanned or typed barcode against T-Soft.

    200 → {"source": "tsoft", "product": {...}}
    400 → barcode missing, 404 → not found, 502 → upstream failure
    """
    barcode = barcode.strip()
    if not barcode:
        logger.warning("get_product rejected — empty barcode")
        raise ValidationError("barcode gerekli")

    product = await service.resolve(barcode)
    return {"source": "tsoft", "product": product.to_public()}
