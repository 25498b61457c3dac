# config.py
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"

SCOPES = [
    "user-library-read",
    "playlist-modify-public",
    "playlist-modify-private",
]
SCOPE_STR = " ".join(SCOPES)

PAGE_SIZE = 50        # max permitted by /me/tracks
FEATURE_BATCH = 50
PLAYLIST_CAP = 100    # max permitted by a single add-items call


class Settings(BaseModel):
    client_id: str = ""
    redirect_uri: str = "http://127.0.0.1:8080/callback"
    token_cache: str = ".cache-themesify"
    log_dir: str = "logs"
    fail_closed: bool = False
    version: str = "0.1.0"
    scopes: List[str] = SCOPES


def _flag(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    load_dotenv()
    load_dotenv(Path.cwd() / ".env")

    redir = os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8080/callback")
    # Spotify no longer accepts "localhost" redirect URIs
    redir = redir.replace("localhost", "127.0.0.1")

    return Settings(
        client_id=os.getenv("SPOTIFY_CLIENT_ID", ""),
        redirect_uri=redir,
        token_cache=os.getenv("THEMESIFY_TOKEN_CACHE", ".cache-themesify"),
        log_dir=os.getenv("THEMESIFY_LOG_DIR", "logs"),
        fail_closed=_flag("THEMESIFY_FAIL_CLOSED"),
        version=os.getenv("APP_VERSION", "0.1.0"),
    )
