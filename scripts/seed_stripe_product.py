"""
Seed script to create the Full Site Audit Report product and price in Stripe.
Run this script once to set up the product:
  STRIPE_SECRET_KEY=sk_test_... python scripts/seed_stripe_product.py
"""

import logging
import os
import sys

import stripe

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.stripe_client import load_stripe_config

logger = logging.getLogger(__name__)

PRODUCT_NAME = "Full Site Audit Report"
UNIT_AMOUNT = int(os.getenv("REPORT_PRICE_CENTS", "2900"))


def create_report_product() -> str:
    """Create (or reuse) the one-time report product and its price. Returns the price id."""
    load_stripe_config(require_checkout=False)

    print(f"Checking for existing {PRODUCT_NAME} product...")
    products = stripe.Product.search(query=f"name:'{PRODUCT_NAME}'")

    if products.data:
        product = products.data[0]
        print(f"Found existing product: {product.id}")
    else:
        print("Creating new product...")
        product = stripe.Product.create(
            name=PRODUCT_NAME,
            description="Full punch list, category breakdown and PDF export for one audited website.",
            metadata={
                "type": "full_site_audit_report",
                "audit_type": "one_time"
            }
        )
        print(f"Created product: {product.id}")

    print("Checking for existing price...")
    prices = stripe.Price.list(product=product.id, active=True)

    if prices.data:
        price = prices.data[0]
        print(f"Found existing price: {price.id} (${price.unit_amount / 100:.2f})")
    else:
        print("Creating new price...")
        price = stripe.Price.create(
            product=product.id,
            unit_amount=UNIT_AMOUNT,
            currency="usd",
            metadata={
                "type": "full_site_audit_report"
            }
        )
        print(f"Created price: {price.id} (${UNIT_AMOUNT / 100:.2f})")

    print("\n" + "=" * 60)
    print("STRIPE SETUP COMPLETE")
    print("=" * 60)
    print(f"\nProduct ID: {product.id}")
    print(f"Price ID:   {price.id}")
    print("\nSet this environment variable:")
    print(f"  STRIPE_PRICE_ID={price.id}")
    print("=" * 60)

    return price.id


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        create_report_product()
    except Exception as e:
        logger.error("Stripe setup failed: %s", e)
        raise
