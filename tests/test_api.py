import pytest
from fastapi.testclient import TestClient

from conftest import NOW, SETTINGS, FakeApi, FakeAuth, FakeClock, make_token, playing
from spotistatus.api.app import app
from spotistatus.api.state import AppState, get_state
from spotistatus.core.errors import UpstreamError
from spotistatus.core.kvstore import MemoryKVStore

HEADERS = {"Mattermost-User-ID": "u1"}


@pytest.fixture
def api():
    return FakeApi(
        playback=playing("album", "alb1", "https://open.spotify.com/album/alb1"),
        album={"name": "Geogaddi", "artists": [{"name": "Boards of Canada"}]},
        current_user={"email": "a@example.com"},
    )


@pytest.fixture
def state(api):
    return AppState(
        kv=MemoryKVStore(clock=FakeClock()),
        settings=lambda: SETTINGS,
        auth_factory=FakeAuth(api=api),
        clock=lambda: NOW,
    )


@pytest.fixture
def client(state):
    app.dependency_overrides[get_state] = lambda: state
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_requires_user_header(client):
    assert client.get("/api/v1/me").status_code == 401


def test_own_status_resolves(client, state):
    state.tokens.put("u1", make_token())
    resp = client.get("/api/v1/status/u1", headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json() == {
        "IsConnected": True,
        "IsPlaying": True,
        "PlaybackType": "Album",
        "PlaybackURL": "https://open.spotify.com/album/alb1",
        "PlaybackName": "Geogaddi - Boards of Canada",
    }


def test_other_user_status_is_cache_only(client, state, api):
    state.tokens.put("u2", make_token())
    resp = client.get("/api/v1/status/u2", headers=HEADERS)

    assert resp.status_code == 200
    assert resp.json()["IsConnected"] is False
    assert api.calls == []

    client.get("/api/v1/me", headers={"Mattermost-User-ID": "u2"})
    assert client.get("/api/v1/status/u2", headers=HEADERS).json()["PlaybackName"] == "Geogaddi - Boards of Canada"


def test_me_without_token_is_disconnected(client):
    resp = client.get("/api/v1/me", headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["IsConnected"] is False


def test_refresh_re_resolves(client, state, api):
    state.tokens.put("u1", make_token())
    client.get("/api/v1/me", headers=HEADERS)
    client.post("/api/v1/status/refresh", headers=HEADERS)
    assert [c for c, _ in api.calls].count("current_playback") == 2


def test_upstream_failure_is_502(client, state, api):
    api.errors["current_playback"] = UpstreamError("down", status_code=503)
    state.tokens.put("u1", make_token())
    assert client.get("/api/v1/me", headers=HEADERS).status_code == 502


def test_not_configured_is_503(api):
    from spotistatus.config import Settings

    state = AppState(kv=MemoryKVStore(), settings=lambda: Settings(), auth_factory=FakeAuth(api=api))
    app.dependency_overrides[get_state] = lambda: state
    try:
        assert TestClient(app).get("/api/v1/me", headers=HEADERS).status_code == 503
    finally:
        app.dependency_overrides.clear()


def test_enable_then_callback_flow(client, state):
    resp = client.post("/api/v1/command", json={"command": "/spotify enable a@example.com"}, headers=HEADERS)
    assert resp.status_code == 200
    assert "state=spotistatus" in resp.json()["goto_location"]

    resp = client.get("/callback", params={"state": SETTINGS.oauth_state, "code": "c1"})
    assert resp.status_code == 200
    assert "Successfully connected" in resp.text
    assert state.tokens.get("u1") is not None


def test_callback_unregistered_is_403(client):
    resp = client.get("/callback", params={"state": SETTINGS.oauth_state, "code": "c1"})
    assert resp.status_code == 403


def test_callback_bad_state_is_403(client):
    assert client.get("/callback", params={"state": "nope", "code": "c1"}).status_code == 403


def test_callback_missing_code_is_400(client):
    assert client.get("/callback", params={"state": SETTINGS.oauth_state}).status_code == 400


def test_auth_url(client):
    resp = client.get("/api/v1/auth-url", headers=HEADERS)
    assert resp.json() == {"auth_url": "https://accounts.spotify.com/authorize?state=spotistatus"}
