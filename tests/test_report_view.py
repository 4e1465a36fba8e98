import asyncio

from services.models import AuditResult
from services.report_view import (
    LAST_RESULT_KEY,
    ClientStore,
    ReportPresenter,
    ReportState,
    apply_paywall,
)

from conftest import audit_json


class FakeBackend:
    def __init__(self, paid_sessions=(), audit_error=None):
        self.paid_sessions = set(paid_sessions)
        self.audit_error = audit_error
        self.audits = []
        self.verifications = []

    async def audit(self, url):
        self.audits.append(url)
        if self.audit_error:
            raise self.audit_error
        return audit_json(url)

    async def verify(self, session_id):
        self.verifications.append(session_id)
        if session_id in self.paid_sessions:
            return {"paid": True}
        return {"paid": False, "error": "No such checkout.session"}


def load(presenter, *args, **kwargs):
    return asyncio.run(presenter.load(*args, **kwargs))


def test_store_key_schema():
    backing = {}
    store = ClientStore(backing)
    store.save_url("https://example.com")
    store.save_result(audit_json())
    store.mark_paid("https://example.com")

    assert set(backing) == {"audit:url", "audit:last", "audit:paid:https://example.com"}
    assert backing["audit:last"] == audit_json()
    assert store.load_result("https://other.example") is None


def test_store_ignores_corrupt_blob():
    store = ClientStore({LAST_RESULT_KEY: "{not json"})
    assert store.load_result() is None


def test_paywall_preview_shows_three_findings_and_unlock():
    view = apply_paywall(AuditResult.model_validate(audit_json()), paid=False)
    assert [f.title for f in view.findings] == ["Finding 1", "Finding 2", "Finding 3"]
    assert view.locked_count == 2
    assert view.show_unlock
    assert not view.show_breakdown
    assert not view.can_export


def test_paywall_paid_shows_everything():
    view = apply_paywall(AuditResult.model_validate(audit_json()), paid=True)
    assert len(view.findings) == 5
    assert not view.show_unlock
    assert view.show_breakdown
    assert view.can_export


def test_presenter_moves_from_idle_to_done():
    presenter = ReportPresenter(FakeBackend(), ClientStore())
    assert presenter.state == ReportState.IDLE

    view = load(presenter, "https://example.com")

    assert presenter.state == ReportState.DONE
    assert view.state == ReportState.DONE
    assert not view.paid


def test_presenter_reports_errors_in_plain_language():
    backend = FakeBackend(audit_error=RuntimeError("PageSpeed error (500): boom"))
    presenter = ReportPresenter(backend, ClientStore())

    view = load(presenter, "https://example.com")

    assert presenter.state == ReportState.ERROR
    assert view.error == "PageSpeed error (500): boom"


def test_presenter_reuses_stored_result_until_refresh():
    backend = FakeBackend()
    store = ClientStore()
    load(ReportPresenter(backend, store), "https://example.com")
    load(ReportPresenter(backend, store), "https://example.com")
    assert backend.audits == ["https://example.com"]

    load(ReportPresenter(backend, store), "https://example.com", refresh=True)
    assert len(backend.audits) == 2


def test_unlock_flow_persists_per_url():
    backend = FakeBackend(paid_sessions={"cs_paid_1"})
    backing = {}

    locked = load(ReportPresenter(backend, ClientStore(backing)), "https://example.com")
    assert len(locked.findings) == 3 and locked.show_unlock

    unlocked = load(ReportPresenter(backend, ClientStore(backing)), "https://example.com", session_id="cs_paid_1")
    assert len(unlocked.findings) == 5 and not unlocked.show_unlock

    # a page reload without the session id stays unlocked for the same URL
    reloaded = load(ReportPresenter(backend, ClientStore(backing)), "https://example.com")
    assert reloaded.paid and len(reloaded.findings) == 5
    assert backend.verifications == ["cs_paid_1"]

    other = load(ReportPresenter(backend, ClientStore(backing)), "https://other.example")
    assert not other.paid and len(other.findings) == 3


def test_failed_verification_keeps_paywall_with_notice():
    backend = FakeBackend()
    store = ClientStore()

    view = load(ReportPresenter(backend, store), "https://example.com", session_id="cs_bogus")

    assert view.state == ReportState.DONE
    assert not view.paid
    assert view.notice
    assert not store.is_paid("https://example.com")


def test_superseded_attempt_is_ignored():
    class SlowFirstBackend(FakeBackend):
        async def audit(self, url):
            if url == "https://old.example":
                await self.release.wait()
            return await super().audit(url)

    async def scenario():
        backend = SlowFirstBackend()
        backend.release = asyncio.Event()
        store = ClientStore()
        presenter = ReportPresenter(backend, store)

        first = asyncio.create_task(presenter.load("https://old.example"))
        await asyncio.sleep(0)
        second = await presenter.load("https://new.example")
        backend.release.set()
        stale = await first
        return presenter, store, stale, second

    presenter, store, stale, second = asyncio.run(scenario())

    assert stale is None
    assert second.url == "https://new.example"
    assert presenter.view.url == "https://new.example"
    assert presenter.state == ReportState.DONE
    assert store.load_result()["url"] == "https://new.example"
