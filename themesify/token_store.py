# token_store.py
import logging
import os
from typing import NamedTuple, Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from spotipy.cache_handler import CacheFileHandler

from .config import AUTHORIZE_URL, SCOPE_STR, Settings
from .errors import AuthorizationError

TOKEN_KEY = "access_token"


class TokenResponse(NamedTuple):
    access_token: str
    token_type: str
    expires_in: Optional[int] = None


def build_authorize_url(settings: Settings) -> str:
    if not settings.client_id:
        raise AuthorizationError("Missing SPOTIFY_CLIENT_ID")
    q = urlencode({
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "scope": SCOPE_STR,
        "response_type": "token",
        "show_dialog": "true",
    })
    return f"{AUTHORIZE_URL}?{q}"


def parse_redirect(url: str):
    """Read the implicit-grant fragment of ``url``.

    Returns ``(TokenResponse, clean_url)`` where ``clean_url`` is ``url``
    without its fragment, so the token is consumed once and not left visible.
    """
    parts = urlsplit(url or "")
    clean_url = urlunsplit(parts._replace(fragment=""))
    params = {k: v[0] for k, v in parse_qs(parts.fragment).items()}

    if "error" in params:
        raise AuthorizationError(f"Spotify authorization failed: {params['error']}")
    token = params.get("access_token")
    if not token:
        raise AuthorizationError("No access_token in the redirect URL.")
    token_type = params.get("token_type", "")
    if token_type.lower() != "bearer":
        raise AuthorizationError(f"Invalid token type received: {token_type or '-'}")

    expires_in = params.get("expires_in")
    return TokenResponse(token, "Bearer", int(expires_in) if expires_in and expires_in.isdigit() else None), clean_url


class TokenStore:
    """Pass-through holder for the current bearer token.

    When ``cache_path`` is set the token is also saved there through
    spotipy's cache handler (plain JSON) so a restart does not need a new
    login. Anyone who can read that file can act as the user until the token
    expires.
    """

    def __init__(self, cache_path: Optional[str] = None):
        self.cache_path = cache_path
        self.cache_handler = CacheFileHandler(cache_path=cache_path) if cache_path else None
        self._token: Optional[str] = None
        self._load()

    def _load(self):
        if self.cache_handler is None:
            return
        token_info = self.cache_handler.get_cached_token()
        if token_info is None:
            return
        if not isinstance(token_info, dict):
            logging.warning("ignoring malformed token cache %s", self.cache_path)
            return
        token = token_info.get(TOKEN_KEY)
        self._token = token if isinstance(token, str) and token else None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str):
        if not token:
            raise ValueError("empty token")
        self._token = token
        if self.cache_handler is not None:
            self.cache_handler.save_token_to_cache({TOKEN_KEY: token, "token_type": "Bearer"})
            if os.path.exists(self.cache_path):
                os.chmod(self.cache_path, 0o600)

    def clear(self):
        self._token = None
        if self.cache_path:
            try:
                os.remove(self.cache_path)
            except FileNotFoundError:
                pass

    def accept_redirect(self, url: str) -> str:
        resp, clean_url = parse_redirect(url)
        self.set(resp.access_token)
        return clean_url
