import random
from urllib.parse import parse_qs, urlparse

import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from secretsanta.backend.api import create_app
from secretsanta.backend.codec import decode_share_token
from secretsanta.backend.config import BackendSettings, load_settings
from secretsanta.backend.engine import PairingGenerator
from secretsanta.backend.store import InMemorySantaStore


class _RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, phone: str, message: str) -> None:
        self.sent.append((phone, message))


def _settings(max_attempts: int = 100) -> BackendSettings:
    return BackendSettings(
        database_url=None,
        host="127.0.0.1",
        port=8000,
        public_url="https://santa.example/",
        max_attempts=max_attempts,
        log_level="WARNING",
    )


def _client(notifier: _RecordingNotifier | None = None, max_attempts: int = 100) -> TestClient:
    app = create_app(
        store=InMemorySantaStore(),
        settings=_settings(max_attempts),
        notifier=notifier or _RecordingNotifier(),
        generator=PairingGenerator(max_attempts=max_attempts, rng=random.Random(7)),
    )
    return TestClient(app)


def _add_people(client: TestClient, *names: str) -> None:
    for name in names:
        response = client.post("/api/participants", json={"name": name})
        assert response.status_code == 200


def test_post_participants_keeps_order_and_rejects_duplicates() -> None:
    client = _client()

    _add_people(client, "Ann", "Bob")
    duplicate = client.post("/api/participants", json={"name": "Ann"})
    listed = client.get("/api/participants")

    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "A participant with this name already exists."
    assert [p["name"] for p in listed.json()["participants"]] == ["Ann", "Bob"]


def test_post_participants_validates_name_and_phone() -> None:
    client = _client()

    blank = client.post("/api/participants", json={"name": "   "})
    bad_phone = client.post("/api/participants", json={"name": "Ann", "phone": "call me"})
    good_phone = client.post("/api/participants", json={"name": "Ann", "phone": "+1 555-123-4567"})

    assert blank.status_code == 422
    assert bad_phone.status_code == 422
    assert good_phone.status_code == 200


def test_history_endpoints_enforce_registry_rules() -> None:
    client = _client()
    _add_people(client, "Ann", "Bob", "Cleo")

    added = client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})
    duplicate = client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})
    self_pair = client.post("/api/history", json={"giver": "Cleo", "receiver": "Cleo"})
    unknown = client.post("/api/history", json={"giver": "Ann", "receiver": "Zed"})
    missing = client.delete("/api/history", params={"giver": "Bob", "receiver": "Ann"})

    assert added.status_code == 200
    assert added.json()["previousPairings"] == {"Ann": ["Bob"]}
    assert duplicate.status_code == 409
    assert self_pair.status_code == 422
    assert unknown.status_code == 422
    assert missing.status_code == 404

    removed = client.delete("/api/history", params={"giver": "Ann", "receiver": "Bob"})
    assert removed.status_code == 200
    assert removed.json()["previousPairings"] == {}


def test_delete_participant_prunes_history() -> None:
    client = _client()
    _add_people(client, "Ann", "Bob", "Cleo")
    client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})
    client.post("/api/history", json={"giver": "Cleo", "receiver": "Ann"})
    client.post("/api/history", json={"giver": "Cleo", "receiver": "Bob"})

    response = client.delete("/api/participants/Ann")

    assert response.status_code == 200
    assert [p["name"] for p in response.json()["participants"]] == ["Bob", "Cleo"]
    assert client.get("/api/history").json()["previousPairings"] == {"Cleo": ["Bob"]}
    assert client.delete("/api/participants/Ann").status_code == 404


def test_generate_requires_two_participants() -> None:
    client = _client()
    _add_people(client, "Solo")

    response = client.post("/api/assignments", json={})

    assert response.status_code == 400


def test_generate_returns_valid_assignment_and_notifies_givers() -> None:
    notifier = _RecordingNotifier()
    client = _client(notifier=notifier)
    client.post("/api/participants", json={"name": "Ann", "phone": "555-000-1111"})
    _add_people(client, "Bob", "Cleo", "Dan")
    client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})

    response = client.post(
        "/api/assignments",
        json={"title": "Office Party", "date": "2024-12-20", "maxAmount": "25"},
    )

    assert response.status_code == 200
    record = response.json()
    assert record["title"] == "Office Party"
    assert record["maxAmount"] == "25"
    pairs = [(pair["giver"], pair["receiver"]) for pair in record["results"]]
    assert [giver for giver, _ in pairs] == ["Ann", "Bob", "Cleo", "Dan"]
    assert sorted(receiver for _, receiver in pairs) == ["Ann", "Bob", "Cleo", "Dan"]
    assert all(giver != receiver for giver, receiver in pairs)
    assert ("Ann", "Bob") not in pairs

    assert len(notifier.sent) == 1
    assert notifier.sent[0][0] == "555-000-1111"
    assert client.get("/api/assignments/latest").json() == record


def test_generate_reports_infeasible_constraints_without_saving() -> None:
    client = _client(max_attempts=3)
    _add_people(client, "Ann", "Bob")
    client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})

    response = client.post("/api/assignments", json={"title": "Blocked"})

    assert response.status_code == 409
    assert "Unable to generate valid Secret Santa pairings" in response.json()["detail"]
    assert client.get("/api/assignments/latest").status_code == 404


def test_generate_uses_default_title_when_blank() -> None:
    client = _client()
    _add_people(client, "Ann", "Bob")

    record = client.post("/api/assignments", json={"title": ""}).json()

    assert record["title"] == "Secret Santa"
    assert record["results"] == [{"giver": "Ann", "receiver": "Bob"}, {"giver": "Bob", "receiver": "Ann"}]


def test_export_latest_returns_plain_text() -> None:
    client = _client()
    _add_people(client, "A", "B")
    client.post("/api/assignments", json={"title": "Office Party", "date": "2024-12-20", "maxAmount": "25"})

    response = client.get("/api/assignments/latest/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    lines = response.text.splitlines()
    assert lines[0] == "Office Party"
    assert "A → B" in lines
    assert any("Budget" in line and "25" in line for line in lines)


def test_share_latest_builds_r_link_that_view_decodes() -> None:
    client = _client()
    _add_people(client, "Ann", "Bob", "Cleo")
    record = client.post("/api/assignments", json={"title": "Family"}).json()

    share = client.post("/api/assignments/latest/share").json()
    token = share["token"]
    query = parse_qs(urlparse(share["url"]).query)

    assert share["url"].startswith("https://santa.example/?r=")
    assert query["r"] == [token]
    assert decode_share_token(token).shared is True

    view = client.get("/api/view", params={"r": token})
    assert view.status_code == 200
    body = view.json()
    assert body["mode"] == "shared"
    assert body["shared"] is True
    assert body["actions"] == ["share"]
    assert body["results"] == record


def test_view_for_organizer_link_offers_regenerate() -> None:
    client = _client()
    payload = {
        "results": {"title": "Mine", "results": [{"giver": "A", "receiver": "B"}, {"giver": "B", "receiver": "A"}]},
        "shared": False,
    }

    share = client.post("/api/share", json=payload)
    view = client.get("/api/view", params={"r": share.json()["token"]}).json()

    assert share.status_code == 200
    assert view["mode"] == "shared"
    assert view["shared"] is False
    assert view["actions"] == ["share", "regenerate"]
    assert view["results"]["title"] == "Mine"


def test_view_falls_back_to_form_for_missing_or_invalid_token() -> None:
    client = _client()
    _add_people(client, "Ann", "Bob")
    client.post("/api/history", json={"giver": "Ann", "receiver": "Bob"})

    invalid = client.get("/api/view", params={"r": "not-a-token!!"})
    absent = client.get("/api/view")

    for response in (invalid, absent):
        assert response.status_code == 200
        body = response.json()
        assert body["mode"] == "form"
        assert body["results"] is None
        assert body["actions"] == ["generate"]
        assert [p["name"] for p in body["participants"]] == ["Ann", "Bob"]
        assert body["previousPairings"] == {"Ann": ["Bob"]}


def test_latest_endpoints_return_404_before_generation() -> None:
    client = _client()

    assert client.get("/api/assignments/latest").status_code == 404
    assert client.get("/api/assignments/latest/export").status_code == 404
    assert client.post("/api/assignments/latest/share").status_code == 404


def test_share_url_from_default_settings_opens_shared_view(monkeypatch) -> None:
    for name in ("SECRETSANTA_DATABASE_URL", "SECRETSANTA_PUBLIC_URL", "SECRETSANTA_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    client = TestClient(create_app(store=InMemorySantaStore(), settings=load_settings(), notifier=_RecordingNotifier()))
    _add_people(client, "Ann", "Bob")
    record = client.post("/api/assignments", json={"title": "Default"}).json()

    url = urlparse(client.post("/api/assignments/latest/share").json()["url"])
    view = client.get(url.path, params=parse_qs(url.query))

    assert view.status_code == 200
    assert view.json()["mode"] == "shared"
    assert view.json()["results"] == record


def test_failed_regenerate_clears_previous_result() -> None:
    client = _client(max_attempts=3)
    _add_people(client, "A", "B", "C")
    assert client.post("/api/assignments", json={"title": "First"}).status_code == 200

    client.delete("/api/participants/C")
    client.post("/api/history", json={"giver": "A", "receiver": "B"})
    failed = client.post("/api/assignments", json={"title": "Second"})

    assert failed.status_code == 409
    assert client.get("/api/assignments/latest").status_code == 404
    assert client.get("/api/assignments/latest/export").status_code == 404
    assert client.post("/api/assignments/latest/share").status_code == 404


def test_names_with_slashes_can_be_removed() -> None:
    client = _client()
    _add_people(client, "Ann/Bob", "Cleo", "Dan")
    client.post("/api/history", json={"giver": "Ann/Bob", "receiver": "Cleo"})
    client.post("/api/history", json={"giver": "Cleo", "receiver": "Ann/Bob"})

    pairing = client.delete("/api/history", params={"giver": "Cleo", "receiver": "Ann/Bob"})
    participant = client.delete("/api/participants/Ann/Bob")

    assert pairing.status_code == 200
    assert pairing.json()["previousPairings"] == {"Ann/Bob": ["Cleo"]}
    assert participant.status_code == 200
    assert [p["name"] for p in participant.json()["participants"]] == ["Cleo", "Dan"]
    assert client.get("/api/history").json()["previousPairings"] == {}
