from types import SimpleNamespace

import pytest
import stripe
from fastapi.testclient import TestClient

import services.auditor
from main import app

ENV_VARS = (
    "OPENAI_API_KEY",
    "PAGESPEED_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_PRICE_ID",
    "SITE_URL",
)


def psi_payload(performance=0.40, accessibility=0.95, best_practices=0.90, seo=0.85):
    return {
        "lighthouseResult": {
            "categories": {
                "performance": {"score": performance},
                "accessibility": {"score": accessibility},
                "best-practices": {"score": best_practices},
                "seo": {"score": seo},
            }
        }
    }


def audit_json(url="https://example.com", findings=5, overall=67):
    return {
        "url": url,
        "generatedAt": "2026-01-01T12:00:00.000Z",
        "scores": {"performance": 40, "accessibility": 95, "bestPractices": 90, "seo": 85},
        "overall": overall,
        "findings": [
            {"level": "warn", "title": f"Finding {i}", "detail": f"Detail {i}"}
            for i in range(1, findings + 1)
        ],
        "plainEnglish": "Speed first.",
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def stripe_env(monkeypatch):
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_PRICE_ID", "price_123")
    monkeypatch.setenv("SITE_URL", "https://audit.example/")


@pytest.fixture
def fake_stripe(monkeypatch):
    """Replaces Checkout Session create/retrieve; sessions starting with cs_paid are paid."""
    calls = {"create": [], "retrieve": []}

    def create(**kwargs):
        calls["create"].append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    def retrieve(session_id, **kwargs):
        calls["retrieve"].append(session_id)
        if session_id.startswith("cs_paid"):
            return SimpleNamespace(id=session_id, payment_status="paid")
        if session_id.startswith("cs_unpaid"):
            return SimpleNamespace(id=session_id, payment_status="unpaid")
        raise stripe.InvalidRequestError(f"No such checkout.session: '{session_id}'", "id")

    monkeypatch.setattr(stripe.checkout.Session, "create", create)
    monkeypatch.setattr(stripe.checkout.Session, "retrieve", retrieve)
    return calls


@pytest.fixture
def fake_pagespeed(monkeypatch):
    """Serves a fixed PageSpeed payload and records the requested URLs."""
    requested = []
    state = {"payload": psi_payload()}

    async def fetch(url, categories, api_key=None):
        requested.append(url)
        return state["payload"]

    monkeypatch.setattr(services.auditor, "fetch_pagespeed", fetch)
    state["requested"] = requested
    return state


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
