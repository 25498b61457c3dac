from unittest.mock import Mock

import pytest

from themesify.models import AnalyzedTrack, Track
from themesify.spotify import SpotifySession


def make_track(i, uri=True):
    return Track(
        id=f"id{i}",
        uri=f"spotify:track:id{i}" if uri else None,
        name=f"Song {i}",
        artists=[{"name": "Test Artist"}],
    )


def api_track(i):
    return {"id": f"id{i}", "uri": f"spotify:track:id{i}", "name": f"Song {i}",
            "artists": [{"name": "Test Artist"}]}


def saved_pages(total, page_size=50):
    """side_effect for current_user_saved_tracks serving ``total`` items."""
    def page(limit, offset):
        n = max(0, min(limit, total - offset))
        return {"items": [{"track": api_track(offset + k)} for k in range(n)],
                "limit": limit, "offset": offset, "total": total}
    return page


def analyzed(i, **features):
    return AnalyzedTrack(track=make_track(i), features=features)


@pytest.fixture
def client():
    return Mock()


@pytest.fixture
def session(client):
    return SpotifySession(token="test-token", client=client)
