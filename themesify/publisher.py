# publisher.py
import logging
from typing import List, Sequence

from .config import PLAYLIST_CAP
from .errors import PublishError
from .models import MoodDefinition, PlaylistRef, Track
from .spotify import SpotifySession, translate_errors


def playlist_name(mood: MoodDefinition) -> str:
    return f"{mood.name} Playlist by Themesify"


def playlist_description(mood: MoodDefinition) -> str:
    return f"Auto-generated {mood.name.lower()} playlist from your liked songs"


def _usable(uri) -> bool:
    # local files carry spotify:local: URIs, which the API will not add
    return isinstance(uri, str) and uri.startswith("spotify:track:")


def select_uris(tracks: Sequence[Track], cap: int = PLAYLIST_CAP) -> List[str]:
    return [t.uri for t in tracks if _usable(t.uri)][:cap]


def publish(session: SpotifySession, mood: MoodDefinition, tracks: Sequence[Track],
            max_tracks: int = PLAYLIST_CAP, public: bool = False) -> PlaylistRef:
    """Create a playlist for ``mood`` holding the first ``max_tracks`` usable tracks.

    Nothing is created when no track has a usable URI. A playlist that was
    created before a later step failed is left on the account as is.
    """
    uris = select_uris(tracks, max_tracks)
    if not uris:
        raise PublishError(f"No playable tracks to add to the {mood.name} playlist.")

    sp = session.client
    with translate_errors(PublishError, "looking up your Spotify account"):
        me = sp.me()
    user_id = (me or {}).get("id")
    if not user_id:
        raise PublishError("Could not resolve the current Spotify user.")

    with translate_errors(PublishError, "creating the playlist"):
        pl = sp.user_playlist_create(user_id, name=playlist_name(mood), public=public,
                                     description=playlist_description(mood))
    if not (pl or {}).get("id"):
        raise PublishError("Spotify did not return the new playlist.")

    with translate_errors(PublishError, "adding tracks to the playlist"):
        sp.playlist_add_items(pl["id"], uris)

    url = ((pl.get("external_urls") or {}).get("spotify")) or f"https://open.spotify.com/playlist/{pl['id']}"
    logging.info("published %s playlist %s with %d tracks", mood.key, pl["id"], len(uris))
    return PlaylistRef(playlist_id=pl["id"], url=url, added=len(uris))
