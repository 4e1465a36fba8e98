import asyncio

from services.auditor import fallback_summary, run_audit
from services.models import CategoryScores, is_absolute_url, normalize_url
from services.summary import SummaryWriter

from conftest import psi_payload


class StaticWriter(SummaryWriter):
    enabled = True

    def __init__(self, text):
        self.text = text
        self.calls = []

    async def summarize(self, url, overall, scores, findings):
        self.calls.append((url, overall, scores, findings))
        return self.text


def fetcher_for(payload):
    async def fetch(url, categories, api_key=None):
        return payload
    return fetch


def test_llm_summary_is_used_when_available():
    writer = StaticWriter("Speed is the problem. Fix images first.")
    result = asyncio.run(run_audit("https://example.com", fetcher=fetcher_for(psi_payload()), writer=writer))

    assert result.plain_english == "Speed is the problem. Fix images first."
    url, overall, scores, findings = writer.calls[0]
    assert (url, overall) == ("https://example.com", 67)
    assert findings == result.findings


def test_template_used_when_writer_returns_nothing():
    payload = psi_payload(performance=0.90, seo=0.60)
    result = asyncio.run(run_audit("https://example.com", fetcher=fetcher_for(payload), writer=StaticWriter(None)))

    assert result.plain_english == fallback_summary(result.overall, result.scores)
    assert "Speed looks solid" in result.plain_english
    assert "SEO basics can be tightened" in result.plain_english


def test_missing_categories_score_zero():
    result = asyncio.run(run_audit("https://example.com", fetcher=fetcher_for({}), writer=StaticWriter(None)))
    assert result.scores == CategoryScores()
    assert result.overall == 0
    assert result.findings[0].level == "bad"


def test_pagespeed_key_is_passed_through(monkeypatch):
    monkeypatch.setenv("PAGESPEED_API_KEY", "psi-key")
    seen = {}

    async def fetch(url, categories, api_key=None):
        seen["api_key"] = api_key
        seen["categories"] = list(categories)
        return psi_payload()

    asyncio.run(run_audit("https://example.com", fetcher=fetch, writer=StaticWriter(None)))
    assert seen == {"api_key": "psi-key", "categories": ["performance", "accessibility", "best-practices", "seo"]}


def test_url_helpers():
    assert normalize_url("  example.com ") == "https://example.com"
    assert normalize_url("http://example.com") == "http://example.com"
    assert is_absolute_url("https://example.com/path?q=1")
    assert not is_absolute_url("ftp://example.com")
    assert not is_absolute_url("/relative")
