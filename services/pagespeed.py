"""
Google PageSpeed Insights client for Quick Site Audit.
One request per audit, mobile strategy, no retries and no internal timeout.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from services.config import PAGESPEED_ENDPOINT, PAGESPEED_STRATEGY

logger = logging.getLogger(__name__)

PSI_CATEGORIES: List[str] = ["performance", "accessibility", "best-practices", "seo"]

ERROR_BODY_LIMIT = 300


class PageSpeedError(Exception):
    """Raised when PageSpeed answers with a non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = (body or "")[:ERROR_BODY_LIMIT]
        super().__init__(f"PageSpeed error ({status_code}): {self.body}")


def build_params(url: str, categories: Sequence[str], api_key: Optional[str] = None) -> List[tuple]:
    params = [("url", url), ("strategy", PAGESPEED_STRATEGY)]
    for category in categories:
        params.append(("category", category))
    if api_key:
        params.append(("key", api_key))
    return params


async def fetch_pagespeed(
    url: str,
    categories: Sequence[str] = PSI_CATEGORIES,
    api_key: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Run a PageSpeed analysis for `url` and return the raw JSON response.

    Args:
        url: Absolute page URL to analyze
        categories: Lighthouse categories to request
        api_key: Optional PageSpeed API key
        client: Optional preconfigured httpx client (tests inject a mock transport)

    Raises:
        PageSpeedError: on any non-2xx response
        httpx.HTTPError: on network failures
    """
    params = build_params(url, categories, api_key)

    if client is None:
        async with httpx.AsyncClient(timeout=None) as owned:
            response = await owned.get(PAGESPEED_ENDPOINT, params=params)
    else:
        response = await client.get(PAGESPEED_ENDPOINT, params=params)

    if not response.is_success:
        logger.warning("PageSpeed returned %s for %s", response.status_code, url)
        raise PageSpeedError(response.status_code, response.text)

    return response.json()
