from typing import Optional

from fastapi import APIRouter, Body
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from app.models.order import OrderRequest
from app.services.order_pdf_service import FILENAME, render_order_pdf

router = APIRouter(prefix="/api", tags=["order"])


@router.post("/pdf", response_class=Response)
async def create_order_pdf(order: Optional[OrderRequest] = Body(None)):
    """Render the cart into the printable order form."""
    order = order or OrderRequest()
    # reportlab is synchronous; keep it off the event loop
    content = await run_in_threadpool(render_order_pdf, order)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{FILENAME}"'},
    )
