"""
Registration management and public registration tests.
"""

from unittest.mock import patch

import pytest

from hackwknd.core import Database
from hackwknd.modules.registrations.models import (
    RegistrationStoreError, bulk_update_status, list_registrations
)


def _statuses(app, hackathon_id):
    with app.app_context():
        with Database.connect(Database.get_db_path()) as conn:
            rows = conn.execute(
                "SELECT id, status FROM registrations WHERE hackathon_id = ? ORDER BY id", (hackathon_id,)
            ).fetchall()
            return {row["id"]: row["status"] for row in rows}


# Five pending, two never set, three confirmed, two rejected
TWELVE = ["pending"] * 5 + [None] * 2 + ["confirmed"] * 3 + ["rejected"] * 2


# ---------------------------------------------------------------------------
# Admin list and counts
# ---------------------------------------------------------------------------

def test_admin_routes_require_session(client):
    """Every admin registration route answers 401 JSON without a session."""
    assert client.get("/admin/registrations/").status_code == 401
    assert client.post("/admin/registrations/bulk-status", json={}).status_code == 401
    assert client.post("/admin/registrations/confirm-pending", json={}).status_code == 401
    assert client.get("/admin/registrations/export").status_code == 401


def test_list_counts_treat_unset_status_as_pending(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], TWELVE)

    resp = admin_client.get(f"/admin/registrations/?hackathon_id={hackathon['id']}&status=pending")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["counts"] == {"all": 12, "pending": 7, "confirmed": 3, "rejected": 2}
    assert len(data["registrations"]) == 7


def test_list_search_matches_hackathon_title(admin_client, make_hackathon, seed_registrations):
    first = make_hackathon("Borneo Build")
    second = make_hackathon("Kuching Code")
    seed_registrations(first["id"], ["pending"] * 2)
    seed_registrations(second["id"], ["pending"] * 3)

    resp = admin_client.get("/admin/registrations/?search=kuching")
    assert len(resp.get_json()["registrations"]) == 3


def test_list_rejects_unknown_filter(admin_client):
    resp = admin_client.get("/admin/registrations/?status=maybe")
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Bulk status updates
# ---------------------------------------------------------------------------

def test_confirm_all_pending_twelve_registrations(app, admin_client, hackathon, seed_registrations):
    """7 pending (incl. unset) of 12 become confirmed; the pending badge drops 7 -> 0."""
    ids = seed_registrations(hackathon["id"], TWELVE)

    before = admin_client.get(f"/admin/registrations/?hackathon_id={hackathon['id']}").get_json()
    assert before["counts"]["pending"] == 7

    resp = admin_client.post("/admin/registrations/confirm-pending", json={"hackathon_id": hackathon["id"]})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["updated"] == 7
    assert data["counts"] == {"all": 12, "pending": 0, "confirmed": 10, "rejected": 2}

    stored = _statuses(app, hackathon["id"])
    assert [stored[i] for i in ids[:7]] == ["confirmed"] * 7
    assert [stored[i] for i in ids[7:10]] == ["confirmed"] * 3
    assert [stored[i] for i in ids[10:]] == ["rejected"] * 2


def test_confirm_pending_with_nothing_pending(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["confirmed", "rejected"])
    resp = admin_client.post("/admin/registrations/confirm-pending", json={"hackathon_id": hackathon["id"]})
    assert resp.status_code == 200
    assert resp.get_json()["updated"] == 0


def test_bulk_status_changes_only_selected(app, admin_client, hackathon, seed_registrations):
    ids = seed_registrations(hackathon["id"], ["pending"] * 4)

    resp = admin_client.post("/admin/registrations/bulk-status", json={
        "hackathon_id": hackathon["id"], "ids": ids[:2], "status": "rejected",
    })
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["updated"] == 2
    assert data["counts"]["rejected"] == 2
    assert data["counts"]["pending"] == 2

    stored = _statuses(app, hackathon["id"])
    assert [stored[i] for i in ids] == ["rejected", "rejected", "pending", "pending"]


def test_bulk_status_ignores_other_events(app, admin_client, make_hackathon, seed_registrations):
    """Ids belonging to another event are not touched."""
    mine = make_hackathon("Mine")
    other = make_hackathon("Other")
    other_ids = seed_registrations(other["id"], ["pending"])

    resp = admin_client.post("/admin/registrations/bulk-status", json={
        "hackathon_id": mine["id"], "ids": other_ids, "status": "confirmed",
    })
    assert resp.get_json()["updated"] == 0
    assert _statuses(app, other["id"])[other_ids[0]] == "pending"


def test_bulk_status_validation(admin_client, hackathon, seed_registrations):
    ids = seed_registrations(hackathon["id"], ["pending"])
    bad_status = admin_client.post("/admin/registrations/bulk-status", json={
        "hackathon_id": hackathon["id"], "ids": ids, "status": "approved",
    })
    no_ids = admin_client.post("/admin/registrations/bulk-status", json={
        "hackathon_id": hackathon["id"], "ids": [], "status": "confirmed",
    })
    assert bad_status.status_code == 400
    assert no_ids.status_code == 400


def test_bulk_status_rejects_unparseable_ids(app, admin_client, hackathon, seed_registrations):
    ids = seed_registrations(hackathon["id"], ["pending"])
    for bad in ([None], ["abc"], [ids[0], {"id": 1}]):
        resp = admin_client.post("/admin/registrations/bulk-status", json={
            "hackathon_id": hackathon["id"], "ids": bad, "status": "confirmed",
        })
        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid registration id"}

    assert _statuses(app, hackathon["id"]) == {ids[0]: "pending"}


def test_bulk_status_store_failure_returns_error(admin_client, hackathon, seed_registrations):
    ids = seed_registrations(hackathon["id"], ["pending"])
    with patch(
        "hackwknd.modules.registrations.routes.bulk_update_status",
        side_effect=RegistrationStoreError("disk I/O error"),
    ):
        resp = admin_client.post("/admin/registrations/bulk-status", json={
            "hackathon_id": hackathon["id"], "ids": ids, "status": "confirmed",
        })
    assert resp.status_code == 500
    assert "registrations" not in resp.get_json()


def test_bulk_update_status_rejects_invalid_status(app, hackathon):
    with pytest.raises(ValueError):
        bulk_update_status(hackathon["id"], [1], "approved")


def test_single_status_update(admin_client, hackathon, seed_registrations):
    ids = seed_registrations(hackathon["id"], [None])
    resp = admin_client.put(f"/admin/registrations/{ids[0]}/status", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert resp.get_json()["registration"]["status"] == "confirmed"

    missing = admin_client.put("/admin/registrations/9999/status", json={"status": "confirmed"})
    assert missing.status_code == 404


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def test_export_csv(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending", None, "confirmed"])

    resp = admin_client.get(f"/admin/registrations/export?hackathon_id={hackathon['id']}")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "registrations-hackwknd-samarahan-" in resp.headers["Content-Disposition"]

    lines = resp.get_data(as_text=True).strip().split("\n")
    assert len(lines) == 4
    assert lines[0] == '"Name","Email","Phone","Hackathon","Status","Registration Date"'


def test_export_respects_status_filter(admin_client, hackathon, seed_registrations):
    seed_registrations(hackathon["id"], ["pending", None, "confirmed"])
    resp = admin_client.get(f"/admin/registrations/export?hackathon_id={hackathon['id']}&status=confirmed")
    assert len(resp.get_data(as_text=True).strip().split("\n")) == 2


def test_export_with_no_rows_returns_notice(admin_client, hackathon):
    resp = admin_client.get(f"/admin/registrations/export?hackathon_id={hackathon['id']}")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "No registrations to export"}


# ---------------------------------------------------------------------------
# Public registration
# ---------------------------------------------------------------------------

PARTICIPANT = {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "0123456789"}


def test_register_by_slug(app, client, hackathon):
    resp = client.post(f"/api/hackathon/{hackathon['slug']}/register", json=PARTICIPANT)
    assert resp.status_code == 201
    registration = resp.get_json()["registration"]
    assert registration["status"] == "pending"
    assert registration["hackathon_id"] == hackathon["id"]

    with app.app_context():
        assert len(list_registrations(hackathon_id=hackathon["id"])) == 1


def test_register_duplicate_email_or_phone(client, hackathon):
    client.post(f"/api/hackathon/{hackathon['slug']}/register", json=PARTICIPANT)

    same_email = client.post(f"/api/hackathon/{hackathon['slug']}/register",
                             json={**PARTICIPANT, "phone": "0199999999"})
    same_phone = client.post(f"/api/hackathon/{hackathon['slug']}/register",
                             json={**PARTICIPANT, "email": "other@example.com"})
    assert same_email.status_code == 409
    assert same_phone.status_code == 409


def test_same_person_can_join_two_events(client, make_hackathon):
    first = make_hackathon("First Event")
    second = make_hackathon("Second Event")
    assert client.post(f"/api/hackathon/{first['slug']}/register", json=PARTICIPANT).status_code == 201
    assert client.post(f"/api/hackathon/{second['slug']}/register", json=PARTICIPANT).status_code == 201


def test_register_validation(client, make_hackathon):
    open_event = make_hackathon("Open Event")
    finished = make_hackathon("Past Event", event_status="finished")
    draft = make_hackathon("Secret Event", event_status="draft")

    missing = client.post(f"/api/hackathon/{open_event['slug']}/register", json={"name": "Ada"})
    closed = client.post(f"/api/hackathon/{finished['slug']}/register", json=PARTICIPANT)
    hidden = client.post(f"/api/hackathon/{draft['slug']}/register", json=PARTICIPANT)

    assert missing.status_code == 400
    assert closed.status_code == 400
    assert hidden.status_code == 404


def test_register_accepts_numeric_phone(app, client, hackathon):
    resp = client.post(f"/api/hackathon/{hackathon['slug']}/register", json={
        "name": "Ada", "email": "ada@example.com", "phone": 60123456789,
    })
    assert resp.status_code == 201
    assert resp.get_json()["registration"]["phone"] == "60123456789"

    assert client.post("/api/check-registration", json={"phone": 60123456789}).get_json() is True


def test_register_rejects_non_text_email(client, hackathon):
    resp = client.post(f"/api/hackathon/{hackathon['slug']}/register",
                       json={**PARTICIPANT, "email": ["ada@example.com"]})
    assert resp.status_code == 400


def test_register_after_deadline_is_rejected(client, make_hackathon):
    event = make_hackathon("Late Event", registration_end_date="2000-01-01")
    resp = client.post(f"/api/hackathon/{event['slug']}/register", json=PARTICIPANT)
    assert resp.status_code == 400


def test_register_for_active_hackathon(client, make_hackathon):
    make_hackathon("Later Event", date="2031-05-01")
    soonest = make_hackathon("Sooner Event", date="2030-01-10")
    resp = client.post("/api/registrations", json=PARTICIPANT)
    assert resp.status_code == 201
    assert resp.get_json()["registration"]["hackathon_id"] == soonest["id"]


def test_register_without_open_event(client):
    assert client.post("/api/registrations", json=PARTICIPANT).status_code == 400


def test_confirmation_email_failure_does_not_fail_registration(client, hackathon):
    failed = {"success": False, "id": None, "error": "provider down"}
    with patch(
        "hackwknd.modules.registrations.routes.email_service.send_registration_confirmation",
        return_value=failed,
    ) as send:
        resp = client.post(f"/api/hackathon/{hackathon['slug']}/register", json=PARTICIPANT)
    assert resp.status_code == 201
    send.assert_called_once()


def test_check_registration(client, hackathon):
    client.post(f"/api/hackathon/{hackathon['slug']}/register", json=PARTICIPANT)

    assert client.post("/api/check-registration", json={"email": "ADA@example.com"}).get_json() is True
    assert client.post("/api/check-registration", json={"phone": "0123456789"}).get_json() is True
    assert client.post("/api/check-registration", json={"email": "nobody@example.com"}).get_json() is False
    assert client.post("/api/check-registration", json={}).status_code == 400
