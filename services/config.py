"""
Configuration module for Quick Site Audit services.
Centralizes environment variable access and feature flags.
"""

import os


OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
OPENAI_TEMPERATURE = 0.4
# the summary rides in the session cookie, which browsers cap at 4096 bytes
OPENAI_MAX_TOKENS = 250
MAX_SUMMARY_CHARS = 900

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
PAGESPEED_STRATEGY = "mobile"

SESSION_SECRET = os.getenv("SESSION_SECRET")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

SITE_TITLE = os.getenv("SITE_TITLE", "Quick Site Audit")
SITE_TAGLINE = os.getenv(
    "SITE_TAGLINE",
    "Paste a link. Get a clear punch-list that helps you get more leads.",
)
SITE_THEME = os.getenv("SITE_THEME", "dark")

DEFAULT_REPORT_PATH = "/report"
PREVIEW_FINDINGS = 3


def get_openai_api_key():
    return os.getenv("OPENAI_API_KEY") or None


def get_pagespeed_api_key():
    return os.getenv("PAGESPEED_API_KEY") or None


def is_openai_enabled() -> bool:
    """Check if OpenAI API is configured."""
    return bool(get_openai_api_key())


def is_stripe_configured() -> bool:
    """Check if every Stripe setting needed for checkout is present."""
    return all(os.getenv(name) for name in ("STRIPE_SECRET_KEY", "STRIPE_PRICE_ID", "SITE_URL"))


def get_enabled_integrations() -> list:
    """Get list of optional integrations that are switched on."""
    integrations = []
    if is_openai_enabled():
        integrations.append("openai_summary")
    if get_pagespeed_api_key():
        integrations.append("pagespeed_key")
    if is_stripe_configured():
        integrations.append("stripe_checkout")
    return integrations
