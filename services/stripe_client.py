"""
Stripe Client for Quick Site Audit
Creates one-time Checkout Sessions for the full report and verifies them on return.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import stripe

from services.config import DEFAULT_REPORT_PATH

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("STRIPE_SECRET_KEY", "STRIPE_PRICE_ID", "SITE_URL")


class StripeConfigError(ValueError):
    """Raised when Stripe settings are missing. Not retryable."""
    pass


@dataclass
class StripeConfig:
    api_key: str
    price_id: Optional[str] = None
    site_url: Optional[str] = None


def load_stripe_config(require_checkout: bool = True) -> StripeConfig:
    """
    Load Stripe configuration from environment variables.
    With require_checkout=False only the secret key is needed (session lookups).
    """
    names = REQUIRED_SETTINGS if require_checkout else ("STRIPE_SECRET_KEY",)
    missing = [name for name in names if not os.getenv(name)]
    if missing:
        raise StripeConfigError(f"Missing Stripe settings: {', '.join(missing)}.")

    api_key = os.environ["STRIPE_SECRET_KEY"]
    stripe.api_key = api_key

    site_url = os.getenv("SITE_URL")
    return StripeConfig(
        api_key=api_key,
        price_id=os.getenv("STRIPE_PRICE_ID"),
        site_url=site_url.rstrip("/") if site_url else None,
    )


def sanitize_return_path(return_to: Optional[str]) -> str:
    """Only same-origin relative paths are allowed back; anything else goes to the report."""
    if (
        isinstance(return_to, str)
        and return_to.startswith("/")
        and not return_to.startswith("//")
        and "\\" not in return_to
    ):
        return return_to
    return DEFAULT_REPORT_PATH


def build_return_urls(site_url: str, return_to: Optional[str]) -> Tuple[str, str]:
    """Return (success_url, cancel_url); success carries the session id placeholder."""
    path = sanitize_return_path(return_to)
    joiner = "&" if "?" in path else "?"
    base = site_url.rstrip("/")
    success_url = f"{base}{path}{joiner}session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}{path}"
    return success_url, cancel_url


async def create_checkout_session(return_to: Optional[str] = None) -> stripe.checkout.Session:
    """
    Create a Stripe Checkout session for a one-time full report payment.
    Raises StripeConfigError when settings are missing.
    """
    config = load_stripe_config()
    success_url, cancel_url = build_return_urls(config.site_url, return_to)

    session = stripe.checkout.Session.create(
        mode="payment",
        line_items=[{
            "price": config.price_id,
            "quantity": 1
        }],
        success_url=success_url,
        cancel_url=cancel_url,
        # people can check out without creating an account
        allow_promotion_codes=True,
        metadata={
            "product": "full_site_audit_report"
        }
    )
    logger.info("Created checkout session %s", session.id)
    return session


async def verify_checkout_session(session_id: str) -> Dict[str, object]:
    """
    Look up a Checkout Session and report whether it is paid.
    Lookup failures come back as {"paid": False, "error": ...}; only a missing
    secret key raises (StripeConfigError).
    """
    load_stripe_config(require_checkout=False)

    if not session_id:
        return {"paid": False, "error": "Missing session_id"}

    try:
        session = stripe.checkout.Session.retrieve(session_id)
    except Exception as e:
        logger.warning("Could not verify checkout session %s: %s", session_id, e)
        return {"paid": False, "error": str(e) or "Unable to verify session"}

    return {"paid": session.payment_status == "paid"}
