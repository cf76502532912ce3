"""
Campaign controller and campaign route tests.
"""

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from hackwknd.core import logger as app_logger
from hackwknd.modules.campaigns.controller import (
    CampaignController, CampaignStateError, CampaignValidationError,
    CANCELLED, COMPLETED, COMPLETED_WITH_FAILURES, CONFIRMING, EDITING, FAILED, NOTHING_TO_SEND,
)
from hackwknd.modules.campaigns.recipients import RecipientResolutionError, resolve_recipients
from hackwknd.modules.email.email_service import email_service
from hackwknd.modules.hackathons.models import HackathonStoreError
from hackwknd.modules.registrations.models import RegistrationStoreError

EVENT = {"id": 7, "title": "HackWknd Samarahan"}


def _recipients(n):
    return [
        {"id": i, "name": f"Person {i}", "email": f"p{i}@example.com", "hackathon_id": 7,
         "partnership_logos": []}
        for i in range(1, n + 1)
    ]


def _controller(n=3, **kwargs):
    return CampaignController(EVENT, resolver=lambda hid, status: _recipients(n), batch_size=5, **kwargs)


def _ok(req):
    return {"success": True, "id": f"msg-{req['id']}", "error": None}


def _messages(controller):
    return [n["message"] for n in controller.notifications]


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

def test_happy_path_transitions():
    controller = _controller(3)
    controller.resolve()
    assert controller.state == EDITING
    assert controller.subject == "Important Information for HackWknd Samarahan"

    controller.edit(body="Hi {{name}}, see you soon.")
    controller.confirm()
    assert controller.state == CONFIRMING

    report = controller.send(_ok)
    assert controller.state == COMPLETED
    assert report.sent == 3
    assert "Successfully sent 3 emails" in _messages(controller)


def test_requests_are_personalised():
    controller = _controller(2)
    controller.resolve()
    controller.edit(subject="For {{name}}", body="Dear {{name}} <{{email}}>")
    requests = controller.build_requests()

    assert requests[1]["to"] == "p2@example.com"
    assert requests[1]["data"]["customSubject"] == "For Person 2"
    assert requests[1]["data"]["customContent"] == "Dear Person 2 <p2@example.com>"
    assert requests[1]["data"]["isCustomEmail"] is True
    assert requests[1]["data"]["hackathonTitle"] == "HackWknd Samarahan"


def test_partial_failure_reports_both_counts():
    controller = _controller(13)
    controller.resolve()
    controller.edit(body="Hello")
    controller.confirm()

    def every_fourth_fails(req):
        if req["id"] % 4 == 0:
            return {"success": False, "id": None, "error": "bounced"}
        return _ok(req)

    controller.send(every_fourth_fails)
    assert controller.state == COMPLETED_WITH_FAILURES
    assert controller.to_dict()["report"] == {
        "batches": 3, "sent": 10, "failed": 3, "total": 13, "status": "partial",
    }
    assert "Successfully sent 10 emails" in _messages(controller)
    assert "3 emails failed to send" in _messages(controller)
    assert [m for m in _messages(controller) if m.startswith("Batch ")] == [
        "Batch 1/3: 4 sent, 1 failed",
        "Batch 2/3: 4 sent, 1 failed",
        "Batch 3/3: 2 sent, 1 failed",
    ]


def test_blank_content_blocks_confirm_and_nothing_is_sent():
    controller = _controller(2)
    controller.resolve()
    controller.edit(subject="Hello", body="   ")

    with pytest.raises(CampaignValidationError):
        controller.confirm()
    assert controller.state == EDITING
    assert "Please provide both subject and content for your email" in _messages(controller)

    calls = []
    with pytest.raises(CampaignStateError):
        controller.send(lambda req: calls.append(req))
    assert calls == []


def test_empty_selection_is_nothing_to_send():
    controller = _controller(0)
    assert controller.resolve() == []
    assert controller.state == NOTHING_TO_SEND
    with pytest.raises(CampaignStateError):
        controller.edit(body="x")


def test_resolution_failure_sends_nothing():
    def broken(hackathon_id, status):
        raise RecipientResolutionError("database is locked")

    controller = CampaignController(EVENT, resolver=broken, batch_size=5)
    with pytest.raises(RecipientResolutionError):
        controller.resolve()
    assert controller.state == FAILED
    assert controller.notifications[-1]["level"] == "error"


def test_cancel():
    controller = _controller(2)
    controller.resolve()
    controller.cancel()
    assert controller.state == CANCELLED
    assert "Email campaign cancelled" in _messages(controller)

    with pytest.raises(CampaignStateError):
        controller.cancel()


def test_cannot_cancel_after_completion():
    controller = _controller(1)
    controller.resolve()
    controller.edit(body="Hello")
    controller.confirm()
    controller.send(_ok)
    with pytest.raises(CampaignStateError):
        controller.cancel()


def test_presets_and_preview():
    controller = _controller(2)
    controller.resolve()
    controller.apply_preset("reminder")
    assert controller.subject == "Reminder: HackWknd Samarahan is Coming Soon!"

    assert controller.toggle_preview() is True
    preview = controller.preview()
    assert preview["to"] == "p1@example.com"
    assert "Hello Person 1," in preview["html"]

    with pytest.raises(KeyError):
        controller.apply_preset("nope")


# ---------------------------------------------------------------------------
# Recipient resolution
# ---------------------------------------------------------------------------

def test_resolve_pending_includes_unset(app, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending", None, "confirmed"])
    recipients = resolve_recipients(hackathon["id"], "pending")

    assert len(recipients) == 2
    assert recipients[0]["partnership_logos"] == [{"name": "SDEC", "url": "https://cdn.test/sdec.png"}]


def test_resolve_unknown_filter(app, hackathon):
    with pytest.raises(ValueError):
        resolve_recipients(hackathon["id"], "waitlisted")


def test_resolve_store_failure(app, hackathon):
    with patch(
        "hackwknd.modules.campaigns.recipients.list_registrations",
        side_effect=RegistrationStoreError("database is locked"),
    ):
        with pytest.raises(RecipientResolutionError):
            resolve_recipients(hackathon["id"], "all")


def test_resolve_fails_when_hackathon_cannot_be_read(app, hackathon):
    with patch(
        "hackwknd.modules.campaigns.recipients.fetch_hackathon",
        side_effect=HackathonStoreError("unable to open database file"),
    ):
        with pytest.raises(RecipientResolutionError, match="Could not load hackathon"):
            resolve_recipients(hackathon["id"], "all")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_campaign_routes_require_session(client):
    assert client.post("/admin/campaigns/send", json={}).status_code == 401
    assert client.get("/admin/campaigns/recipients?hackathon_id=1").status_code == 401


def test_send_campaign_with_email_disabled(app, admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending"] * 6 + ["confirmed"])

    resp = admin_client.post("/admin/campaigns/send", json={
        "hackathon_id": hackathon["id"],
        "status": "pending",
        "subject": "News for {{name}}",
        "body": "Hello {{name}}",
    })
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["state"] == "completed"
    assert data["report"] == {"batches": 2, "sent": 6, "failed": 0, "total": 6, "status": "completed"}

    with app.app_context():
        logs = email_service.recent_logs()
    assert len(logs) == 6
    assert {log["message_id"] for log in logs} == {"email_disabled"}
    assert logs[0]["subject"].startswith("News for Participant")


def test_send_campaign_requires_content(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending"])
    resp = admin_client.post("/admin/campaigns/send", json={
        "hackathon_id": hackathon["id"], "subject": "Hi", "body": "",
    })
    assert resp.status_code == 400
    assert resp.get_json()["state"] == "editing"


def test_send_campaign_nothing_to_send(admin_client, hackathon):
    resp = admin_client.post("/admin/campaigns/send", json={
        "hackathon_id": hackathon["id"], "subject": "Hi", "body": "There",
    })
    assert resp.status_code == 200
    assert resp.get_json()["state"] == "nothing_to_send"


def test_send_campaign_errors(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending"])
    missing = admin_client.post("/admin/campaigns/send", json={"hackathon_id": 999})
    bad_filter = admin_client.post("/admin/campaigns/send", json={
        "hackathon_id": hackathon["id"], "status": "maybe",
    })
    bad_transport = admin_client.post("/admin/campaigns/send", json={
        "hackathon_id": hackathon["id"], "body": "x", "transport": "pigeon",
    })
    assert missing.status_code == 404
    assert bad_filter.status_code == 400
    assert bad_transport.status_code == 400


def test_recipients_store_failure_returns_503(admin_client, hackathon):
    with patch(
        "hackwknd.modules.campaigns.recipients.list_registrations",
        side_effect=RegistrationStoreError("database is locked"),
    ):
        resp = admin_client.get(f"/admin/campaigns/recipients?hackathon_id={hackathon['id']}")
    assert resp.status_code == 503


def test_preview_route(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["confirmed"])
    resp = admin_client.post("/admin/campaigns/preview", json={
        "hackathon_id": hackathon["id"], "preset": "confirmation",
    })
    assert resp.status_code == 200
    preview = resp.get_json()["preview"]
    assert preview["subject"] == "Your HackWknd Samarahan Registration is Confirmed!"
    assert "Hello Participant 1," in preview["html"]
    assert "In partnership with" in preview["html"]


def test_presets_route(admin_client, hackathon):
    resp = admin_client.get(f"/admin/campaigns/presets?hackathon_id={hackathon['id']}")
    keys = [p["key"] for p in resp.get_json()["presets"]]
    assert keys == ["custom", "confirmation", "reminder", "update"]


def test_unreadable_hackathon_store_returns_503(app, admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending"])
    broken = MagicMock()
    broken.connect.side_effect = sqlite3.OperationalError("unable to open database file")

    with patch("hackwknd.modules.hackathons.models.Database", broken):
        sent = admin_client.post("/admin/campaigns/send", json={
            "hackathon_id": hackathon["id"], "subject": "Hi", "body": "There",
        })
        listed = admin_client.get(f"/admin/campaigns/recipients?hackathon_id={hackathon['id']}")

    assert sent.status_code == 503
    assert sent.get_json()["error"] == "Could not load recipients"
    assert listed.status_code == 503

    entries = app_logger.recent(source="campaigns")
    assert entries[0]["message"] == "Recipient resolution failed"
    assert "unable to open database file" in entries[0]["details"]
    with app.app_context():
        assert email_service.recent_logs() == []
