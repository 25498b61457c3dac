# server.py
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional

import anyio
from mcp.server.fastmcp import FastMCP

from .config import Settings, load_settings
from .errors import AuthorizationError, ThemesifyError
from .logger import log_event, setup_logging
from .models import Notice
from .moods import MOOD_TABLE, bucket_summary, get_mood
from .pipeline import MoodPipeline
from .publisher import publish
from .spotify import SpotifySession, translate_errors
from .token_store import TokenStore, build_authorize_url


class ThemesifyApp:
    """Token store + pipeline shared by the MCP tools of one server process."""

    def __init__(self, settings: Optional[Settings] = None,
                 session_factory: Callable[[str], SpotifySession] = SpotifySession.from_token):
        self.settings = settings or load_settings()
        self.store = TokenStore(self.settings.token_cache)
        self.pipeline = MoodPipeline(MOOD_TABLE, fail_closed=self.settings.fail_closed)
        self.session_factory = session_factory

    def session(self) -> SpotifySession:
        return self.session_factory(self.store.get())

    def fail(self, tool: str, e: ThemesifyError) -> Dict[str, Any]:
        if isinstance(e, AuthorizationError):
            self.store.clear()
        logging.warning("%s: %s", tool, e.message)
        return self.reply(tool, Notice(severity=e.severity, message=e.message))

    def reply(self, tool: str, notice: Notice, **data) -> Dict[str, Any]:
        out = {**notice.model_dump(), **data}
        log_event({"event": "tool", "tool": tool, "severity": notice.severity,
                   "message": notice.message}, self.settings.log_dir)
        return out


mcp = FastMCP("themesify")
_app: Optional[ThemesifyApp] = None


def app() -> ThemesifyApp:
    global _app
    if _app is None:
        _app = ThemesifyApp()
    return _app


@mcp.tool()
def ping() -> dict:
    """Simple healthcheck."""
    return {"ok": True}


@mcp.tool()
def server_info() -> dict:
    s = app().settings
    return {
        "name": "themesify",
        "version": s.version,
        "scopes": s.scopes,
        "logged_in": app().store.get() is not None,
        "fail_closed": s.fail_closed,
    }


@mcp.tool()
def auth_begin() -> dict:
    """URL the user opens to connect their Spotify account."""
    try:
        url = build_authorize_url(app().settings)
    except ThemesifyError as e:
        return app().fail("auth_begin", e)
    return app().reply("auth_begin", Notice(severity="info", message="Open the URL to connect with Spotify."),
                       authorize_url=url)


@mcp.tool()
def auth_complete(redirect_url: str) -> dict:
    """Store the token carried in the fragment of the redirect URL."""
    try:
        clean_url = app().store.accept_redirect(redirect_url)
    except ThemesifyError as e:
        return app().fail("auth_complete", e)
    return app().reply("auth_complete", Notice(severity="success", message="Connected to Spotify."),
                       redirect_url=clean_url)


@mcp.tool()
def sign_out() -> dict:
    app().pipeline.cancel()
    app().store.clear()
    return app().reply("sign_out", Notice(severity="info", message="Signed out."))


@mcp.tool()
async def whoami() -> dict:
    try:
        sess = app().session()
        with translate_errors(ThemesifyError, "looking up your Spotify account"):
            me = await anyio.to_thread.run_sync(sess.client.me) or {}
    except ThemesifyError as e:
        out = app().fail("whoami", e)
        out["authed"] = False
        return out
    return app().reply("whoami", Notice(severity="info", message=f"Logged in as {me.get('display_name') or me.get('id')}."),
                       authed=True, id=me.get("id"), display_name=me.get("display_name"))


@mcp.tool()
def list_moods() -> dict:
    return {
        "moods": [
            {
                "mood": m.key,
                "name": m.name,
                "accent": m.accent,
                "characteristics": {k: p.model_dump(exclude_none=True) for k, p in m.characteristics.items()},
            }
            for m in app().pipeline.moods
        ]
    }


@mcp.tool()
async def analyze_library() -> dict:
    """Fetch every liked song and sort them into mood buckets.

    The run happens on a worker thread so status and cancel calls are served
    while Spotify is being paged through.
    """
    a = app()
    try:
        buckets = await anyio.to_thread.run_sync(a.pipeline.run, a.session())
    except ThemesifyError as e:
        return a.fail("analyze_library", e)
    if buckets is None:
        return a.reply("analyze_library", Notice(severity="info", message="Analysis was cancelled."))
    return a.reply("analyze_library", a.pipeline.notice, analyzed=a.pipeline.analyzed,
                   moods=[s.model_dump() for s in bucket_summary(buckets, a.pipeline.moods)])


@mcp.tool()
def pipeline_status() -> dict:
    p = app().pipeline
    out = {"state": p.state.value, "notice": p.notice.model_dump() if p.notice else None}
    if p.buckets is not None:
        out["moods"] = [s.model_dump() for s in bucket_summary(p.buckets, p.moods)]
    return out


@mcp.tool()
def cancel_analysis() -> dict:
    if app().pipeline.cancel():
        return app().reply("cancel_analysis", Notice(severity="info", message="Analysis cancelled."))
    return app().reply("cancel_analysis", Notice(severity="info", message="No analysis in progress."))


@mcp.tool()
async def publish_mood(mood: str, public: bool = False) -> dict:
    """Create a Spotify playlist from one analyzed mood bucket."""
    a = app()
    try:
        m = get_mood(mood, a.pipeline.moods)
    except KeyError as e:
        return a.reply("publish_mood", Notice(severity="error", message=str(e.args[0])))
    try:
        tracks = a.pipeline.bucket(m.key)
        ref = await anyio.to_thread.run_sync(partial(publish, a.session(), m, tracks, public=public))
    except ThemesifyError as e:
        return a.fail("publish_mood", e)
    return a.reply("publish_mood", Notice(severity="success", message=f"{m.name} playlist created with {ref.added} songs."),
                   **ref.model_dump())


def main():
    setup_logging()
    logging.info("starting themesify MCP server")
    mcp.run()


if __name__ == "__main__":
    main()
