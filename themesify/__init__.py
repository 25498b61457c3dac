"""Sort your Spotify liked songs into mood playlists."""

from .errors import (
    AuthorizationError,
    FeatureLookupError,
    FetchError,
    NotAnalyzedError,
    PipelineBusyError,
    PublishError,
    ThemesifyError,
)
from .library import fetch_all_saved_tracks, fetch_saved_tracks, lookup_audio_features
from .models import AnalyzedTrack, Exact, MoodDefinition, Notice, PlaylistRef, Range, Track
from .moods import MOOD_TABLE, bucket_summary, classify, get_mood, matches
from .pipeline import MoodPipeline, PipelineState
from .publisher import publish
from .spotify import SpotifySession
from .token_store import TokenStore, build_authorize_url, parse_redirect

__all__ = [
    "AuthorizationError",
    "FeatureLookupError",
    "FetchError",
    "NotAnalyzedError",
    "PipelineBusyError",
    "PublishError",
    "ThemesifyError",
    "fetch_all_saved_tracks",
    "fetch_saved_tracks",
    "lookup_audio_features",
    "AnalyzedTrack",
    "Exact",
    "MoodDefinition",
    "Notice",
    "PlaylistRef",
    "Range",
    "Track",
    "MOOD_TABLE",
    "bucket_summary",
    "classify",
    "get_mood",
    "matches",
    "MoodPipeline",
    "PipelineState",
    "publish",
    "SpotifySession",
    "TokenStore",
    "build_authorize_url",
    "parse_redirect",
]
