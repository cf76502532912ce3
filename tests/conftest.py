"""
Shared fixtures for the HackWknd test suite.

Run with: pytest -v

NOTE: pytest and pytest-flask are listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask

from hackwknd import HackWknd
from hackwknd.core import Database


def build_app(db_dir, **overrides):
    """Flask app with every HackWknd module registered against db_dir."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = db_dir
    app.config["HACKWKND_DB"] = os.path.join(db_dir, "hackwknd.db")
    app.config["LOGS_DB"] = os.path.join(db_dir, "app_logs.db")
    # No provider calls unless a test opts in
    app.config["EMAIL_ENABLED"] = False
    app.config["CAMPAIGN_TRANSPORT"] = "direct"
    app.config.update(overrides)
    HackWknd(app)
    return app


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="hackwknd-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app(tmp_db_dir):
    return build_app(tmp_db_dir)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client carrying an admin session."""
    with client.session_transaction() as sess:
        sess["admin_id"] = 1
        sess["admin_email"] = "admin@hackwknd.test"
    return client


@pytest.fixture
def make_hackathon(app):
    """Factory creating hackathon records."""
    from hackwknd.modules.hackathons.models import create_hackathon

    def _make(title="HackWknd Samarahan", **fields):
        data = {
            "title": title,
            "theme": "AI for Education",
            "date": "2030-12-06",
            "location": "UNIMAS",
            "event_status": "upcoming",
            **fields,
        }
        with app.app_context():
            return create_hackathon(data)
    return _make


@pytest.fixture
def hackathon(make_hackathon):
    return make_hackathon(partnership_logos=[{"name": "SDEC", "url": "https://cdn.test/sdec.png"}])


@pytest.fixture
def seed_registrations(app):
    """Insert registrations directly, allowing NULL statuses.

    Takes a hackathon id and a list of statuses; returns the new ids in order.
    """
    def _seed(hackathon_id, statuses):
        ids = []
        with app.app_context():
            with Database.connect(Database.get_db_path()) as conn:
                for n, status in enumerate(statuses, start=1):
                    cursor = conn.execute(
                        "INSERT INTO registrations (name, email, phone, status, hackathon_id, created_at) "
                        "VALUES (?, ?, ?, ?, ?, ?)",
                        (f"Participant {n}", f"p{n}.{hackathon_id}@example.com", f"01{hackathon_id:02d}{n:06d}",
                         status, hackathon_id, f"2030-11-{n:02d} 10:00:00"),
                    )
                    ids.append(cursor.lastrowid)
                conn.commit()
        return ids
    return _seed
