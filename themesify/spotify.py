# spotify.py
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Type

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from .errors import AuthorizationError, ThemesifyError


@dataclass
class SpotifySession:
    """A user client bound to one bearer token.

    Every network operation takes the session explicitly; nothing reads the
    credential from module state.
    """

    token: str
    client: spotipy.Spotify

    @classmethod
    def from_token(cls, token, requests_timeout: int = 10, retries: int = 3) -> "SpotifySession":
        if not token:
            raise AuthorizationError("No Spotify login found. Connect with Spotify first.")
        sp = spotipy.Spotify(auth=token, requests_timeout=requests_timeout, retries=retries)
        return cls(token=token, client=sp)


def is_rate_limited(e: BaseException) -> bool:
    return isinstance(e, SpotifyException) and e.http_status == 429


@contextmanager
def translate_errors(error_cls: Type[ThemesifyError], action: str):
    """Turn spotipy/requests failures into the matching ThemesifyError."""
    try:
        yield
    except ThemesifyError:
        raise
    except SpotifyException as e:
        status = getattr(e, "http_status", None)
        logging.warning("%s failed (%s): %s", action, status, getattr(e, "msg", e))
        if status in (401, 403):
            raise AuthorizationError(
                f"Spotify refused the request while {action} (HTTP {status}). Please log in again.",
                http_status=status,
            ) from e
        raise error_cls(f"Spotify error while {action}: {getattr(e, 'msg', e)}", http_status=status) from e
    except requests.RequestException as e:
        logging.warning("%s network error: %s", action, e)
        raise error_cls(f"Network error while {action}: {e}") from e
