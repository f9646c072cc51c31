import json

import pytest
from werkzeug.security import generate_password_hash

from opendatacensus import create_app, load_config

YES = {key: "Yes" for key in (
    "exists", "digital", "public", "free", "online",
    "machinereadable", "bulk", "openlicense", "uptodate",
)}

CENSUS_DATA = {
    "places": [
        {"id": "zeta", "name": "Zeta"},
        {"id": "beta", "name": "Beta"},
        {"id": "alpha", "name": "alpha"},
    ],
    "datasets": [
        {"id": "budget", "title": "Government Budget"},
        {"id": "spending", "title": "Government Spending"},
    ],
    "entries": [
        {"place": "beta", "dataset": "budget", "answers": YES, "timestamp": "2014-01-02T00:00:00+00:00"},
        {"place": "alpha", "dataset": "budget", "answers": YES, "timestamp": "2014-01-01T00:00:00+00:00"},
        {"place": "zeta", "dataset": "spending", "answers": dict(YES, openlicense="No"), "timestamp": ""},
        {"place": "zeta", "dataset": "budget", "answers": YES},
    ],
}

AUTH_USER = "admin"
AUTH_PASSWORD = "s3cret"


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "census.json"
    path.write_text(json.dumps(CENSUS_DATA), encoding="utf-8")
    return str(path)


@pytest.fixture
def make_config(tmp_path, data_file):
    def _make(**overrides):
        settings = {
            "testing": True,
            "data_path": data_file,
            "submissions_path": str(tmp_path / "submissions.json"),
            "session_secret": "test-secret",
            "google_client_id": "",
            "google_client_secret": "",
            "title": {"en": "Open Data Census", "fr": "Recensement"},
            "locales": ["en", "fr", "de"],
        }
        settings.update(overrides)
        return load_config(path=str(tmp_path / "missing-settings.json"), overrides=settings)

    return _make


@pytest.fixture
def make_app(make_config):
    def _make(**overrides):
        return create_app(make_config(**overrides))

    return _make


@pytest.fixture
def census_app(make_app):
    return make_app(reviewers=["anonymous:Reviewer"])


@pytest.fixture
def readonly_app(make_app):
    return make_app(readonly=True)


@pytest.fixture
def gated_config():
    return {
        "auth_on": True,
        "auth_user": AUTH_USER,
        "auth_passhash": generate_password_hash(AUTH_PASSWORD, method="pbkdf2:sha256"),
    }


@pytest.fixture
def client(census_app):
    return census_app.test_client()


@pytest.fixture
def readonly_client(readonly_app):
    return readonly_app.test_client()


def login(client, name):
    return client.post("/login", data={"displayname": name})
