"""
Quick Site Audit - paste a link, get a scored punch list
FastAPI application: JSON API plus the landing and report pages
"""

import logging
import os
import secrets
from io import BytesIO
from typing import Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from starlette.middleware.sessions import SessionMiddleware

from services.auditor import run_audit
from services.config import DEFAULT_REPORT_PATH, LOG_LEVEL, SESSION_SECRET, get_enabled_integrations
from services.models import AuditRequest, AuditResult, is_absolute_url, normalize_url
from services.report_view import ClientStore, LandingCopy, LocalBackend, ReportPresenter, ReportState
from services.reporting import build_audit_pdf
from services.stripe_client import StripeConfigError, create_checkout_session, verify_checkout_session

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

app = FastAPI()

# max_age=None keeps the cookie for the browser session only
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET or secrets.token_hex(32),
    max_age=None,
    same_site="lax",
)

app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))

COPY = LandingCopy()

CHECKOUT_ERRORS = {
    "checkout_unavailable": "Checkout isn't set up yet. Please try again later.",
    "checkout_failed": "Checkout failed. Please try again.",
}


@app.on_event("startup")
async def startup():
    logger.info("[STARTUP] Enabled integrations: %s", get_enabled_integrations() or "none")
    if not SESSION_SECRET:
        logger.warning("[STARTUP] SESSION_SECRET not set; sessions reset on every restart")


def get_store(request: Request) -> ClientStore:
    return ClientStore(request.session)


def get_backend():
    return LocalBackend()


# =============================================================================
# JSON API
# =============================================================================

@app.post("/api/audit")
async def api_audit(request: Request):
    """Run PageSpeed, score it, summarize it. All-or-nothing."""
    try:
        body = await request.json()
        audit_request = AuditRequest.model_validate(body)
    except ValidationError:
        return JSONResponse({"error": "A valid absolute URL is required."}, status_code=400)
    except ValueError:
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    try:
        result = await run_audit(audit_request.url)
    except Exception as e:
        logger.exception("Audit failed for %s", audit_request.url)
        return JSONResponse({"error": str(e) or "Unknown error"}, status_code=400)

    return JSONResponse(result.to_json())


@app.post("/api/checkout")
async def api_checkout(request: Request):
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    try:
        session = await create_checkout_session(body.get("returnTo"))
    except StripeConfigError as e:
        logger.error("Checkout misconfigured: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)
    except Exception:
        logger.exception("Checkout session creation failed")
        return JSONResponse({"error": "Checkout failed. Please try again."}, status_code=502)

    return JSONResponse({"url": session.url})


@app.get("/api/verify")
async def api_verify(session_id: Optional[str] = None):
    try:
        outcome = await verify_checkout_session(session_id or "")
    except StripeConfigError as e:
        logger.error("Verification misconfigured: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)

    if outcome.get("error"):
        return JSONResponse(outcome, status_code=400)
    return JSONResponse(outcome)


# =============================================================================
# PAGES
# =============================================================================

@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"copy": COPY, "error": None, "url": get_store(request).load_url()},
    )


@app.post("/", response_class=HTMLResponse)
async def start_audit(request: Request, url: str = Form("")):
    normalized = normalize_url(url)
    if not is_absolute_url(normalized):
        return templates.TemplateResponse(
            request,
            "index.html",
            {"copy": COPY, "error": "That doesn't look like a website address.", "url": url},
            status_code=400,
        )

    store = get_store(request)
    store.save_url(normalized)
    store.clear_result()
    return RedirectResponse(url=DEFAULT_REPORT_PATH, status_code=303)


@app.get("/report", response_class=HTMLResponse)
async def report(request: Request, session_id: Optional[str] = None, error: Optional[str] = None):
    store = get_store(request)
    url = store.load_url()
    if not url:
        return RedirectResponse(url="/", status_code=302)

    presenter = ReportPresenter(get_backend(), store)
    view = await presenter.load(url, session_id=session_id)

    if session_id and view.state == ReportState.DONE and view.paid:
        # drop the session id from the address bar; the paid flag is stored now
        return RedirectResponse(url=DEFAULT_REPORT_PATH, status_code=303)

    return templates.TemplateResponse(
        request,
        "report.html",
        {"copy": COPY, "view": view, "checkout_error": CHECKOUT_ERRORS.get(error or "")},
    )


@app.post("/report/rerun")
async def report_rerun(request: Request):
    get_store(request).clear_result()
    return RedirectResponse(url=DEFAULT_REPORT_PATH, status_code=303)


@app.post("/report/unlock")
async def report_unlock(request: Request):
    try:
        session = await create_checkout_session(DEFAULT_REPORT_PATH)
    except StripeConfigError as e:
        logger.error("Checkout misconfigured: %s", e)
        return RedirectResponse(url=f"{DEFAULT_REPORT_PATH}?error=checkout_unavailable", status_code=303)
    except Exception:
        logger.exception("Checkout session creation failed")
        return RedirectResponse(url=f"{DEFAULT_REPORT_PATH}?error=checkout_failed", status_code=303)

    return RedirectResponse(url=session.url, status_code=303)


@app.get("/report/export.pdf")
async def report_export(request: Request):
    store = get_store(request)
    url = store.load_url()
    if not url or not store.is_paid(url):
        return JSONResponse({"error": "Unlock the full report to export it."}, status_code=403)

    data = store.load_result(url)
    if data is None:
        return JSONResponse({"error": "No audit found yet. Run an audit first."}, status_code=404)

    try:
        result = AuditResult.model_validate(data)
    except ValidationError:
        return JSONResponse({"error": "Report data was corrupted. Please run the audit again."}, status_code=400)

    pdf_bytes = build_audit_pdf(result, site_title=COPY.title)
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": 'attachment; filename="site_audit_report.pdf"'
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
