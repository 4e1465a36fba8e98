"""
Scoring engine for Quick Site Audit.
Turns PageSpeed category scores into an overall score and an ordered punch list.
Pure functions only: no I/O, same input always gives the same output.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Any, Dict, List, Mapping, Tuple, Union

from services.models import CategoryScores, Finding


# Weighted toward what usually affects leads most for small businesses.
WEIGHTS: Dict[str, Decimal] = {
    "performance": Decimal("0.45"),
    "seo": Decimal("0.30"),
    "best_practices": Decimal("0.15"),
    "accessibility": Decimal("0.10"),
}

WARN_THRESHOLD = 75
BAD_THRESHOLD = 50

CLARITY_FINDING = Finding(
    level="warn",
    title="Make the first screen say the offer instantly",
    detail=(
        "Your homepage should answer: what you do, who it's for, and how to book, "
        "in 5 seconds or less. If it doesn't, rewrite the hero."
    ),
)

CTA_FINDING = Finding(
    level="warn",
    title="One clear call-to-action",
    detail=(
        "If you have multiple competing buttons, visitors stall. "
        "Pick one primary action and make it obvious."
    ),
)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_number(value: Any):
    """Return a finite Decimal for real numbers, None for anything else."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return Decimal(str(value))


def to_pct(score0to1: Any) -> int:
    """
    Convert a PageSpeed fraction (0..1) into an integer percentage.
    Non-numeric input gives 0; out-of-range input is clamped into 0..100.
    """
    number = _as_number(score0to1)
    if number is None:
        return 0
    number = max(Decimal(0), min(Decimal(1), number))
    return _round_half_up(number * 100)


def clamp_pct(value: Any) -> int:
    """Same guard as to_pct for values that are already percentages."""
    number = _as_number(value)
    if number is None:
        return 0
    return _round_half_up(max(Decimal(0), min(Decimal(100), number)))


def _coerce_scores(scores: Union[CategoryScores, Mapping[str, Any]]) -> CategoryScores:
    if isinstance(scores, CategoryScores):
        return scores
    best_practices = scores.get("bestPractices", scores.get("best_practices"))
    return CategoryScores(
        performance=clamp_pct(scores.get("performance")),
        accessibility=clamp_pct(scores.get("accessibility")),
        best_practices=clamp_pct(best_practices),
        seo=clamp_pct(scores.get("seo")),
    )


def scores_from_lighthouse(categories: Mapping[str, Any]) -> CategoryScores:
    """Map `lighthouseResult.categories` from a PageSpeed response onto CategoryScores."""
    categories = categories if isinstance(categories, Mapping) else {}

    def _score(name: str) -> int:
        category = categories.get(name)
        if not isinstance(category, Mapping):
            return 0
        return to_pct(category.get("score"))

    return CategoryScores(
        performance=_score("performance"),
        accessibility=_score("accessibility"),
        best_practices=_score("best-practices"),
        seo=_score("seo"),
    )


def weighted_overall(scores: Union[CategoryScores, Mapping[str, Any]]) -> int:
    scores = _coerce_scores(scores)
    total = sum(
        (Decimal(getattr(scores, name)) * weight for name, weight in WEIGHTS.items()),
        Decimal(0),
    )
    return _round_half_up(total)


def build_findings(scores: Union[CategoryScores, Mapping[str, Any]]) -> List[Finding]:
    scores = _coerce_scores(scores)
    findings: List[Finding] = []

    if scores.performance < BAD_THRESHOLD:
        findings.append(Finding(
            level="bad",
            title="Site is slow on real devices",
            detail=(
                "Slow pages bleed visitors. Fix images, reduce heavy scripts, "
                "and tighten the first screen so it loads fast."
            ),
        ))
    elif scores.performance < WARN_THRESHOLD:
        findings.append(Finding(
            level="warn",
            title="Speed is decent but not sharp",
            detail=(
                "You're close. Compress images, lazy-load media, "
                "and avoid giant background videos on mobile."
            ),
        ))
    else:
        findings.append(Finding(
            level="ok",
            title="Speed is solid",
            detail="Load time looks healthy. Don't break this when you add new media.",
        ))

    if scores.seo < BAD_THRESHOLD:
        findings.append(Finding(
            level="bad",
            title="SEO basics are missing",
            detail=(
                "Search engines may not understand the page. Add clear titles, "
                "meta descriptions, and structured headings (H1/H2)."
            ),
        ))
    elif scores.seo < WARN_THRESHOLD:
        findings.append(Finding(
            level="warn",
            title="SEO is okay but leaving reach on the table",
            detail=(
                "Tighten the page title, add more relevant page text, "
                "and make sure each page has a unique description."
            ),
        ))
    else:
        findings.append(Finding(
            level="ok",
            title="SEO foundation is strong",
            detail="Good baseline. Next gains come from content + local listings + backlinks.",
        ))

    # universal conversion checks, no crawling needed
    findings.append(CLARITY_FINDING)
    findings.append(CTA_FINDING)

    return findings


def score(scores: Union[CategoryScores, Mapping[str, Any]]) -> Tuple[int, List[Finding]]:
    """Return (overall, findings) for a set of category percentages."""
    scores = _coerce_scores(scores)
    return weighted_overall(scores), build_findings(scores)
