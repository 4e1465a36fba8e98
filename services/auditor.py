"""
Audit orchestration: PageSpeed fetch, scoring, summary with template fallback.
"""

import logging
from typing import Awaitable, Callable, Optional

from services.config import get_pagespeed_api_key
from services.models import AuditResult, CategoryScores
from services.pagespeed import PSI_CATEGORIES, fetch_pagespeed
from services.scoring import score, scores_from_lighthouse
from services.summary import SummaryWriter, get_summary_writer

logger = logging.getLogger(__name__)


def fallback_summary(overall: int, scores: CategoryScores) -> str:
    """Deterministic summary used whenever the LLM is off or fails."""
    text = (
        f"Your site scored {overall}/100 on a mobile-first check. "
        "The biggest lead-leaks are usually speed and clarity. "
    )
    if scores.performance < 75:
        text += "Speed needs attention first, especially images and heavy scripts. "
    else:
        text += "Speed looks solid, so focus on messaging and conversion clarity. "
    if scores.seo < 75:
        text += "SEO basics can be tightened so people can actually find you. "
    else:
        text += "SEO foundation is decent. "
    text += "Fix the first screen (hero) so visitors instantly know what you do and how to book."
    return text


async def run_audit(
    url: str,
    fetcher: Optional[Callable[..., Awaitable[dict]]] = None,
    writer: Optional[SummaryWriter] = None,
) -> AuditResult:
    """
    Run one complete audit for `url`.
    Errors from the PageSpeed fetch propagate; the summary step never fails the audit.
    """
    fetcher = fetcher or fetch_pagespeed
    psi = await fetcher(url, PSI_CATEGORIES, get_pagespeed_api_key())

    lighthouse = (psi or {}).get("lighthouseResult") or {}
    scores = scores_from_lighthouse(lighthouse.get("categories") or {})
    overall, findings = score(scores)
    logger.info("Audit for %s scored %s/100", url, overall)

    writer = writer or get_summary_writer()
    summary = await writer.summarize(url, overall, scores, findings)

    return AuditResult(
        url=url,
        scores=scores,
        overall=overall,
        findings=findings,
        plain_english=summary or fallback_summary(overall, scores),
    )
