import asyncio
import json
import os
import threading

import pytest
from spotipy.exceptions import SpotifyException

import themesify.server as server
from themesify.config import Settings
from themesify.errors import AuthorizationError
from themesify.logger import event_log_path
from themesify.spotify import SpotifySession

from conftest import api_track, saved_pages

REDIRECT = "http://127.0.0.1:8080/callback"


@pytest.fixture
def app(tmp_path, client, monkeypatch):
    settings = Settings(
        client_id="abc",
        redirect_uri=REDIRECT,
        token_cache=str(tmp_path / ".cache-themesify"),
        log_dir=str(tmp_path / "logs"),
    )

    def factory(token):
        if not token:
            raise AuthorizationError("No Spotify login found. Connect with Spotify first.")
        return SpotifySession(token=token, client=client)

    a = server.ThemesifyApp(settings, session_factory=factory)
    monkeypatch.setattr(server, "_app", a)
    return a


@pytest.fixture
def logged_in(app):
    server.auth_complete(f"{REDIRECT}#access_token=secret-token-xyz&token_type=Bearer")
    return app


@pytest.fixture
def library(client):
    client.current_user_saved_tracks.side_effect = saved_pages(3)
    client.audio_features.side_effect = lambda tracks: [
        {"id": i, "energy": 0.8, "valence": 0.9, "tempo": 128.0, "danceability": 0.8} for i in tracks
    ]
    client.me.return_value = {"id": "user1", "display_name": "Test User"}
    client.user_playlist_create.return_value = {"id": "pl1", "external_urls": {"spotify": "https://x/pl1"}}
    return client


def test_ping_and_info(app):
    assert server.ping() == {"ok": True}
    info = server.server_info()
    assert info["name"] == "themesify"
    assert info["logged_in"] is False


def test_auth_flow(app):
    begin = server.auth_begin()
    assert begin["authorize_url"].startswith("https://accounts.spotify.com/authorize?")

    done = server.auth_complete(f"{REDIRECT}#access_token=tok&token_type=Bearer")
    assert done["severity"] == "success"
    assert done["redirect_url"] == REDIRECT
    assert app.store.get() == "tok"
    assert server.server_info()["logged_in"] is True


def test_auth_complete_error(app):
    out = server.auth_complete(f"{REDIRECT}#error=access_denied")
    assert out["severity"] == "error"
    assert "access_denied" in out["message"]


def test_analyze_requires_login(app):
    out = asyncio.run(server.analyze_library())
    assert out["severity"] == "error"


def test_analyze_and_publish(logged_in, library):
    out = asyncio.run(server.analyze_library())
    assert out["severity"] == "success"
    assert out["analyzed"] == 3
    counts = {m["mood"]: m["count"] for m in out["moods"]}
    assert counts["happy"] == 3
    assert counts["melancholic"] == 0

    status = server.pipeline_status()
    assert status["state"] == "ready"

    pub = asyncio.run(server.publish_mood("happy"))
    assert pub["severity"] == "success"
    assert pub["playlist_id"] == "pl1"
    assert pub["added"] == 3


def test_publish_before_analysis(logged_in, library):
    out = asyncio.run(server.publish_mood("happy"))
    assert out["severity"] == "error"
    library.user_playlist_create.assert_not_called()


def test_publish_unknown_mood(logged_in):
    out = asyncio.run(server.publish_mood("grumpy"))
    assert out["severity"] == "error"


def test_publish_empty_bucket(logged_in, library):
    asyncio.run(server.analyze_library())
    out = asyncio.run(server.publish_mood("melancholic"))
    assert out["severity"] == "error"
    library.user_playlist_create.assert_not_called()


def test_authorization_failure_clears_token(logged_in, client):
    client.current_user_saved_tracks.side_effect = SpotifyException(401, -1, "expired")
    out = asyncio.run(server.analyze_library())
    assert out["severity"] == "error"
    assert logged_in.store.get() is None
    assert not os.path.exists(logged_in.settings.token_cache)


def test_whoami(logged_in, library):
    out = asyncio.run(server.whoami())
    assert out["authed"] is True
    assert out["id"] == "user1"


def test_whoami_logged_out(app):
    assert asyncio.run(server.whoami())["authed"] is False


def test_sign_out(logged_in):
    out = server.sign_out()
    assert out["severity"] == "info"
    assert logged_in.store.get() is None


def test_cancel_without_run(app):
    assert server.cancel_analysis()["message"] == "No analysis in progress."


def test_list_moods(app):
    moods = server.list_moods()["moods"]
    happy = next(m for m in moods if m["mood"] == "happy")
    assert happy["characteristics"] == {"energy": {"min": 0.6}, "valence": {"min": 0.7}}


def test_events_logged_without_token(logged_in):
    with open(event_log_path(logged_in.settings.log_dir), encoding="utf-8") as f:
        lines = [json.loads(line) for line in f]
    assert lines[-1]["tool"] == "auth_complete"
    assert "secret-token-xyz" not in json.dumps(lines)


def test_cancel_while_analysis_runs(logged_in, library):
    started, release = threading.Event(), threading.Event()
    pages = saved_pages(3)

    def slow_page(limit, offset):
        started.set()
        release.wait(5)
        return pages(limit, offset)

    library.current_user_saved_tracks.side_effect = slow_page

    async def scenario():
        run = asyncio.create_task(server.analyze_library())
        while not started.is_set():
            await asyncio.sleep(0.01)

        assert server.pipeline_status()["state"] == "fetching"
        busy = await server.analyze_library()
        cancelled = server.cancel_analysis()
        assert server.pipeline_status()["state"] == "idle"

        release.set()
        return busy, cancelled, await run

    busy, cancelled, result = asyncio.run(scenario())

    assert busy["severity"] == "info"
    assert cancelled["message"] == "Analysis cancelled."
    assert result["severity"] == "info"
    assert result["message"] == "Analysis was cancelled."
    assert server.pipeline_status()["state"] == "idle"
    library.audio_features.assert_not_called()


@pytest.mark.parametrize(
    "page",
    [
        {"items": [], "total": "lots"},
        {"items": ["x"], "total": 1},
        {"items": [{"track": api_track(1)}, {"track": 7}], "total": 2},
    ],
)
def test_malformed_page_reports_failure(logged_in, client, page):
    client.current_user_saved_tracks.return_value = page
    out = asyncio.run(server.analyze_library())
    assert out["severity"] == "error"
    assert server.pipeline_status()["state"] == "failed"
