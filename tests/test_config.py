from themesify.config import load_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for k in ("SPOTIFY_CLIENT_ID", "SPOTIFY_REDIRECT_URI", "THEMESIFY_TOKEN_CACHE",
              "THEMESIFY_LOG_DIR", "THEMESIFY_FAIL_CLOSED"):
        monkeypatch.delenv(k, raising=False)
    s = load_settings()
    assert s.client_id == ""
    assert s.redirect_uri == "http://127.0.0.1:8080/callback"
    assert s.token_cache == ".cache-themesify"
    assert s.fail_closed is False


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "abc")
    monkeypatch.setenv("SPOTIFY_REDIRECT_URI", "http://localhost:3000/cb")
    monkeypatch.setenv("THEMESIFY_TOKEN_CACHE", "/tmp/tok")
    monkeypatch.setenv("THEMESIFY_FAIL_CLOSED", "true")
    s = load_settings()
    assert s.client_id == "abc"
    assert s.redirect_uri == "http://127.0.0.1:3000/cb"
    assert s.token_cache == "/tmp/tok"
    assert s.fail_closed is True
