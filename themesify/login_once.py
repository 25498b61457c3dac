# login_once.py
import sys

from .config import load_settings
from .errors import ThemesifyError
from .spotify import SpotifySession, translate_errors
from .token_store import TokenStore, build_authorize_url


def main(argv=None):
    settings = load_settings()
    store = TokenStore(settings.token_cache)
    try:
        print("Open this URL and approve access:\n")
        print(build_authorize_url(settings))
        redirect_url = input("\nPaste the full URL you were redirected to: ").strip()
        store.accept_redirect(redirect_url)

        sp = SpotifySession.from_token(store.get()).client
        with translate_errors(ThemesifyError, "checking the new token"):
            me = sp.me() or {}
    except ThemesifyError as e:
        store.clear()
        print(f"Login failed: {e.message}", file=sys.stderr)
        return 1

    print("Authenticated as:", me.get("display_name") or me.get("id"))
    print(f"Token saved in plain text to {settings.token_cache}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
