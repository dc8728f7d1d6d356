"""
lookup_barcode.py
─────────────────
Resolve one barcode against T-Soft from the command line and print the
normalised product. Handy for checking credentials and upstream shape
changes without the browser client.

Usage:
    python lookup_barcode.py 8690000000001
    python lookup_barcode.py 8690000000001 --raw      # also dump each upstream response
"""
import argparse
import asyncio
import json
import logging
import os
import sys

# Add the project root to the python path so we can import app modules
sys.path.append(os.path.join(os.path.dirname(__file__)))

from app.errors import AppError
from app.services.product_service import LOOKUP_ATTEMPTS, pick_first_product, product_service


async def dump_attempts(barcode: str) -> None:
    for attempt in LOOKUP_ATTEMPTS:
        payload = await product_service.tsoft.call(attempt.method, attempt.api_path, attempt.params_for(barcode))
        matched = pick_first_product(payload) is not None
        print(f"--- {attempt.method} {attempt.api_path} ({attempt.barcode_field}) matched={matched}")
        print(json.dumps(payload, indent=4, ensure_ascii=False, default=str))


async def main(barcode: str, raw: bool) -> int:
    try:
        if raw:
            await dump_attempts(barcode)
        product = await product_service.resolve(barcode)
    except AppError as e:
        print(f"Error ({e.status_code}): {e.public_message} — {e}")
        return 1

    print(json.dumps(product.to_public(), indent=4, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Look up a barcode on T-Soft")
    parser.add_argument("barcode")
    parser.add_argument("--raw", action="store_true", help="print every upstream response as well")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main(args.barcode, args.raw)))
