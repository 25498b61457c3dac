# library.py
import logging
from typing import List

from pydantic import ValidationError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .config import FEATURE_BATCH, PAGE_SIZE
from .errors import FeatureLookupError, FetchError
from .models import FEATURE_KEYS, AnalyzedTrack, Track
from .spotify import SpotifySession, is_rate_limited, translate_errors

# Only 429s are retried; any other failure aborts the whole fetch.
_rate_limit_retry = retry(
    retry=retry_if_exception(is_rate_limited),
    wait=wait_exponential(multiplier=0.5, max=4),
    stop=stop_after_attempt(3),
    reraise=True,
)


@_rate_limit_retry
def _saved_tracks_page(sp, limit: int, offset: int):
    return sp.current_user_saved_tracks(limit=limit, offset=offset)


@_rate_limit_retry
def _audio_features(sp, ids: List[str]):
    return sp.audio_features(tracks=ids)


def _page_total(page, offset: int) -> int:
    total = page.get("total")
    if total is None:
        return 0
    if isinstance(total, bool) or not isinstance(total, (int, float, str)):
        raise FetchError(f"Malformed saved-tracks total at offset {offset}: {total!r}")
    try:
        return int(total)
    except ValueError:
        raise FetchError(f"Malformed saved-tracks total at offset {offset}: {total!r}") from None


def fetch_saved_tracks(session: SpotifySession, page_size: int = PAGE_SIZE) -> List[Track]:
    """All of the user's liked songs, in the order Spotify lists them.

    Pages are requested one after another at offsets 0, page_size, ... until
    the ``total`` reported by the first page is covered. A failing page
    discards everything fetched so far.
    """
    tracks: List[Track] = []
    offset, total = 0, None
    with translate_errors(FetchError, "loading your liked songs"):
        while total is None or offset < total:
            page = _saved_tracks_page(session.client, page_size, offset)
            if not isinstance(page, dict) or not isinstance(page.get("items"), list):
                raise FetchError(f"Malformed saved-tracks page at offset {offset}")
            if total is None:
                total = _page_total(page, offset)
            for it in page["items"]:
                if it is None:
                    continue
                t = it.get("track") if isinstance(it, dict) else it
                if t is None:
                    continue
                if not isinstance(t, dict):
                    raise FetchError(f"Malformed saved-track entry at offset {offset}")
                try:
                    tracks.append(Track.from_api(t))
                except (AttributeError, ValidationError):
                    raise FetchError(f"Malformed saved-track entry at offset {offset}") from None
            offset += page_size
    logging.info("fetched %d saved tracks (total=%s)", len(tracks), total)
    return tracks


def lookup_audio_features(session: SpotifySession, tracks: List[Track],
                          batch_size: int = FEATURE_BATCH) -> List[AnalyzedTrack]:
    ids = list(dict.fromkeys(t.id for t in tracks if t.id))
    fm = {}
    with translate_errors(FeatureLookupError, "analyzing audio features"):
        for i in range(0, len(ids), batch_size):
            batch = ids[i:i + batch_size]
            feats = _audio_features(session.client, batch)
            if not isinstance(feats, list):
                raise FeatureLookupError(f"Malformed audio-features response for {len(batch)} tracks")
            for f in feats:
                if not f:
                    continue
                if not isinstance(f, dict):
                    raise FeatureLookupError("Malformed audio-features entry")
                if f.get("id"):
                    fm[f["id"]] = {k: f[k] for k in FEATURE_KEYS if k in f}
    missing = sum(1 for t in tracks if t.id not in fm)
    if missing:
        logging.info("%d of %d tracks have no audio features", missing, len(tracks))
    return [AnalyzedTrack(track=t, features=fm.get(t.id)) for t in tracks]


def fetch_all_saved_tracks(session: SpotifySession, page_size: int = PAGE_SIZE,
                           batch_size: int = FEATURE_BATCH) -> List[AnalyzedTrack]:
    return lookup_audio_features(session, fetch_saved_tracks(session, page_size), batch_size)
