"""
Admin registration view state and CSV export -- pure functions, no app needed.
"""

from datetime import date

import pytest

from hackwknd.modules.registrations.export import (
    registrations_to_csv, export_filename, short_date
)
from hackwknd.modules.registrations.view import RegistrationView


def _reg(id, status, hackathon_id=1, **extra):
    return {
        "id": id,
        "name": f"Person {id}",
        "email": f"person{id}@example.com",
        "phone": f"01{id:08d}",
        "status": status,
        "hackathon_id": hackathon_id,
        "hackathon_title": "HackWknd Samarahan" if hackathon_id == 1 else "Other Event",
        "created_at": "2024-12-06 09:30:00",
        **extra,
    }


@pytest.fixture
def view():
    regs = [
        _reg(1, "pending"),
        _reg(2, None),
        _reg(3, "confirmed"),
        _reg(4, "rejected"),
        _reg(5, "pending", hackathon_id=2),
    ]
    return RegistrationView(registrations=regs)


# ---------------------------------------------------------------------------
# RegistrationView
# ---------------------------------------------------------------------------

def test_counts_treat_unset_as_pending(view):
    assert view.counts() == {"all": 5, "pending": 3, "confirmed": 1, "rejected": 1}
    scoped = view.filtered(hackathon_id=1)
    assert scoped.counts() == {"all": 4, "pending": 2, "confirmed": 1, "rejected": 1}


def test_visible_applies_event_status_and_search(view):
    assert [r["id"] for r in view.filtered(status_filter="pending").visible()] == [1, 2, 5]
    assert [r["id"] for r in view.filtered(hackathon_id=1, status_filter="pending").visible()] == [1, 2]
    assert [r["id"] for r in view.filtered(search="OTHER EVENT").visible()] == [5]
    assert [r["id"] for r in view.filtered(search="person3@").visible()] == [3]
    assert [r["id"] for r in view.filtered(search="0100000004").visible()] == [4]


def test_with_status_changes_exactly_the_given_ids(view):
    updated = view.with_status([1, 2], "confirmed")

    assert [r["status"] for r in updated.registrations] == [
        "confirmed", "confirmed", "confirmed", "rejected", "pending"
    ]
    # The original view is left as it was
    assert view.registrations[1]["status"] is None
    assert updated.hackathon_id == view.hackathon_id


def test_with_status_rejects_unknown_status(view):
    with pytest.raises(ValueError):
        view.with_status([1], "approved")


def test_pending_ids_per_event(view):
    assert view.pending_ids(1) == [1, 2]
    assert view.pending_ids(2) == [5]
    assert view.with_status(view.pending_ids(1), "confirmed").pending_ids(1) == []


def test_unknown_filter_rejected():
    with pytest.raises(ValueError):
        RegistrationView(status_filter="waitlisted")


def test_view_is_immutable(view):
    with pytest.raises(Exception):
        view.search = "x"


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

def test_csv_has_header_plus_one_line_per_row():
    rows = [_reg(i, "confirmed") for i in range(1, 4)]
    text = registrations_to_csv(rows)
    lines = text.strip().split("\n")

    assert len(lines) == 4
    assert lines[0] == '"Name","Email","Phone","Hackathon","Status","Registration Date"'
    assert lines[1] == '"Person 1","person1@example.com","0100000001","HackWknd Samarahan","confirmed","12/6/2024"'


def test_csv_defaults_and_quoting():
    row = _reg(1, None, hackathon_title=None, name='Ada "The Countess" Lovelace, Esq.')
    line = registrations_to_csv([row]).strip().split("\n")[1]

    assert '"N/A"' in line
    assert '"pending"' in line
    assert '"Ada ""The Countess"" Lovelace, Esq."' in line


def test_csv_empty_input_returns_none():
    assert registrations_to_csv([]) is None


def test_short_date_formats():
    assert short_date("2024-01-05 08:00:00") == "1/5/2024"
    assert short_date("2024-11-30T23:10:00Z") == "11/30/2024"
    assert short_date("") == ""
    assert short_date("not a date") == "not a date"


def test_export_filename():
    today = date(2025, 3, 9)
    assert export_filename(today) == "registrations-2025-03-09.csv"
    assert export_filename(today, "HackWknd Samarahan 2024!") == "registrations-hackwknd-samarahan-2024-2025-03-09.csv"
