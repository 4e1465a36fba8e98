"""
Plain-English summary writer for Quick Site Audit.
Uses OpenAI when OPENAI_API_KEY is set; otherwise the disabled writer answers
None without touching the network and the caller falls back to its template.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from services.config import (
    MAX_SUMMARY_CHARS,
    OPENAI_MAX_TOKENS,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
    get_openai_api_key,
)
from services.models import CategoryScores, Finding

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You write concise, blunt but helpful website audit summaries for small businesses. "
    "No hype. No buzzwords. Plain English. 5-7 sentences max."
)


def build_messages(
    url: str,
    overall: int,
    scores: CategoryScores,
    findings: List[Finding],
) -> List[Dict[str, str]]:
    scores_json = json.dumps(scores.model_dump(by_alias=True))
    findings_json = json.dumps([f.model_dump() for f in findings])
    user_content = (
        f"Website: {url}\n"
        f"Overall score: {overall}/100\n"
        f"Scores: {scores_json}\n"
        f"Findings: {findings_json}\n\n"
        "Write a short summary that explains what's hurting leads most and what to do first. "
        "End with one confident next step."
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_content},
    ]


def clip_summary(text: str, limit: int = MAX_SUMMARY_CHARS) -> str:
    """Cut overlong text back to the last full sentence that fits."""
    if len(text) <= limit:
        return text
    head = text[:limit]
    end = head.rfind(". ")
    if end > 0:
        return head[:end + 1]
    return head.rstrip() + "..."


class SummaryWriter:
    """Base writer. `summarize` returns prose or None."""

    enabled = False

    async def summarize(
        self,
        url: str,
        overall: int,
        scores: CategoryScores,
        findings: List[Finding],
    ) -> Optional[str]:
        raise NotImplementedError


class DisabledSummaryWriter(SummaryWriter):
    """Used when no LLM credential is configured."""

    async def summarize(self, url, overall, scores, findings) -> Optional[str]:
        return None


class OpenAISummaryWriter(SummaryWriter):
    enabled = True

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client: Any = None):
        self.model = model or OPENAI_MODEL
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def summarize(self, url, overall, scores, findings) -> Optional[str]:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=build_messages(url, overall, scores, findings),
                temperature=OPENAI_TEMPERATURE,
                max_tokens=OPENAI_MAX_TOKENS,
            )
        except Exception as e:
            logger.warning("OpenAI summary call failed: %s", e, exc_info=True)
            return None

        choices = getattr(resp, "choices", None)
        choice = choices[0] if choices else None
        message = getattr(choice, "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            logger.warning("OpenAI summary response had no usable content")
            return None
        return clip_summary(content.strip())


def get_summary_writer() -> SummaryWriter:
    """Pick the writer that matches the configured credentials."""
    api_key = get_openai_api_key()
    if not api_key:
        logger.info("OpenAI is disabled (no API key). Using template summaries.")
        return DisabledSummaryWriter()
    return OpenAISummaryWriter(api_key=api_key)
