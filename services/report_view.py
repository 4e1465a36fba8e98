"""
Report presentation for Quick Site Audit.

The browser keeps the only copy of an audit: the last result and a per-URL
paid flag live in a client-scoped key-value store (the signed session cookie
in production, a plain dict in tests). ReportPresenter drives the
idle -> loading -> done/error flow on top of that store and applies the paywall.

The paid flag is client-controlled state, not a security boundary.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, MutableMapping, Optional

from pydantic import ValidationError

from services import config
from services.auditor import run_audit
from services.models import AuditResult, Finding
from services.stripe_client import verify_checkout_session

logger = logging.getLogger(__name__)

URL_KEY = "audit:url"
LAST_RESULT_KEY = "audit:last"
PAID_KEY_PREFIX = "audit:paid:"


class ClientStore:
    """Key schema over a browser-scoped mapping."""

    def __init__(self, backing: Optional[MutableMapping[str, Any]] = None):
        self.backing = backing if backing is not None else {}

    @staticmethod
    def paid_key(url: str) -> str:
        return f"{PAID_KEY_PREFIX}{url}"

    def save_url(self, url: str) -> None:
        self.backing[URL_KEY] = url

    def load_url(self) -> str:
        return (self.backing.get(URL_KEY) or "").strip()

    def save_result(self, result: Dict[str, Any]) -> None:
        # stored as a dict; the session middleware does the JSON encoding
        self.backing[LAST_RESULT_KEY] = result

    def load_result(self, url: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Last stored result, optionally only if it belongs to `url`. Corrupt blobs read as None."""
        data = self.backing.get(LAST_RESULT_KEY)
        if not data:
            return None
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                logger.warning("Stored report data was corrupted; ignoring it")
                return None
        if not isinstance(data, dict):
            return None
        if url is not None and data.get("url") != url:
            return None
        return data

    def clear_result(self) -> None:
        self.backing.pop(LAST_RESULT_KEY, None)

    def is_paid(self, url: str) -> bool:
        return bool(self.backing.get(self.paid_key(url)))

    def mark_paid(self, url: str) -> None:
        self.backing[self.paid_key(url)] = True


class ReportState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    DONE = "done"
    ERROR = "error"


@dataclass
class ReportView:
    state: ReportState
    url: str = ""
    result: Optional[AuditResult] = None
    paid: bool = False
    findings: List[Finding] = field(default_factory=list)
    locked_count: int = 0
    show_unlock: bool = False
    show_breakdown: bool = False
    can_export: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None


@dataclass
class LandingCopy:
    """Copy and theme shared by the landing and report pages."""
    title: str = config.SITE_TITLE
    tagline: str = config.SITE_TAGLINE
    theme: str = config.SITE_THEME
    unlock_label: str = "Unlock full report"


def apply_paywall(
    result: AuditResult,
    paid: bool,
    preview_count: int = config.PREVIEW_FINDINGS,
    notice: Optional[str] = None,
) -> ReportView:
    """Free tier sees the first `preview_count` findings; paid sees everything."""
    if paid:
        return ReportView(
            state=ReportState.DONE,
            url=result.url,
            result=result,
            paid=True,
            findings=list(result.findings),
            show_breakdown=True,
            can_export=True,
            notice=notice,
        )
    visible = list(result.findings[:preview_count])
    return ReportView(
        state=ReportState.DONE,
        url=result.url,
        result=result,
        paid=False,
        findings=visible,
        locked_count=len(result.findings) - len(visible),
        show_unlock=True,
        notice=notice,
    )


class LocalBackend:
    """Calls the audit and verification services in-process."""

    async def audit(self, url: str) -> Dict[str, Any]:
        result = await run_audit(url)
        return result.to_json()

    async def verify(self, session_id: str) -> Dict[str, Any]:
        return await verify_checkout_session(session_id)


class ReportPresenter:
    """
    idle -> loading -> done | error.

    Every load() is an attempt; when a newer attempt starts, the older one's
    results are dropped so a slow response never overwrites a newer report.
    The web routes build one presenter per request, so there the guard only
    covers loads within that request; across page loads the browser drops the
    abandoned navigation.
    """

    def __init__(self, backend: Any, store: ClientStore, preview_count: int = config.PREVIEW_FINDINGS):
        self.backend = backend
        self.store = store
        self.preview_count = preview_count
        self.state = ReportState.IDLE
        self.view: Optional[ReportView] = None
        self._attempt = 0

    def _superseded(self, attempt: int) -> bool:
        return attempt != self._attempt

    async def load(self, url: str, session_id: Optional[str] = None, refresh: bool = False) -> Optional[ReportView]:
        self._attempt += 1
        attempt = self._attempt
        self.state = ReportState.LOADING

        notice = None
        try:
            data = None if refresh else self.store.load_result(url)
            fetched = data is None
            if fetched:
                data = await self.backend.audit(url)
                if self._superseded(attempt):
                    return None
            result = AuditResult.model_validate(data)
            if fetched:
                self.store.save_result(data)

            paid = self.store.is_paid(url)
            if session_id:
                verification = await self.backend.verify(session_id)
                if verification.get("paid"):
                    self.store.mark_paid(url)
                    paid = True
                elif verification.get("error"):
                    notice = "We couldn't confirm that payment. If you were charged, contact us with your receipt."
                if self._superseded(attempt):
                    return None
        except ValidationError:
            if self._superseded(attempt):
                return None
            logger.warning("Audit response for %s was malformed", url)
            return self._fail(url, "Report data was corrupted. Please run the audit again.")
        except Exception as e:
            if self._superseded(attempt):
                return None
            logger.warning("Report load failed for %s: %s", url, e)
            return self._fail(url, str(e) or "Something went wrong.")

        self.view = apply_paywall(result, paid, self.preview_count, notice=notice)
        self.state = ReportState.DONE
        return self.view

    def _fail(self, url: str, message: str) -> ReportView:
        self.state = ReportState.ERROR
        self.view = ReportView(state=ReportState.ERROR, url=url, error=message)
        return self.view
