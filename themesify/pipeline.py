# pipeline.py
import logging
import threading
from enum import Enum
from typing import List, Optional, Sequence

from .config import FEATURE_BATCH, PAGE_SIZE
from .errors import FetchError, NotAnalyzedError, PipelineBusyError, ThemesifyError
from .library import fetch_saved_tracks, lookup_audio_features
from .models import MoodBucket, MoodDefinition, Notice, Track
from .moods import MOOD_TABLE, classify, get_mood
from .spotify import SpotifySession


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    READY = "ready"
    FAILED = "failed"


IN_FLIGHT = (PipelineState.FETCHING, PipelineState.CLASSIFYING)


class MoodPipeline:
    """Fetch -> analyze -> classify, one run at a time.

    ``run`` refuses to start while another run is outstanding. ``cancel``
    moves an in-flight run straight to IDLE; whatever that run produces when
    its current network call returns is thrown away.
    """

    def __init__(self, moods: Sequence[MoodDefinition] = MOOD_TABLE, page_size: int = PAGE_SIZE,
                 batch_size: int = FEATURE_BATCH, fail_closed: bool = False):
        self.moods = list(moods)
        self.page_size = page_size
        self.batch_size = batch_size
        self.fail_closed = fail_closed
        self.state = PipelineState.IDLE
        self.buckets: Optional[MoodBucket] = None
        self.notice: Optional[Notice] = None
        self.analyzed = 0
        self._lock = threading.Lock()
        self._generation = 0

    def _stale(self, gen: int) -> bool:
        return gen != self._generation

    def _enter(self, state: PipelineState):
        logging.info("pipeline %s -> %s", self.state.value, state.value)
        self.state = state

    def run(self, session: SpotifySession) -> Optional[MoodBucket]:
        if not self._lock.acquire(blocking=False):
            raise PipelineBusyError("Your library is already being analyzed. Please wait.")
        gen = self._generation
        try:
            self.buckets = None
            self.notice = None
            self._enter(PipelineState.FETCHING)
            tracks = fetch_saved_tracks(session, self.page_size)
            if self._stale(gen):
                return None

            self._enter(PipelineState.CLASSIFYING)
            analyzed = lookup_audio_features(session, tracks, self.batch_size)
            if self._stale(gen):
                return None
            buckets = classify(analyzed, self.moods, self.batch_size, self.fail_closed)

            self.buckets = buckets
            self.analyzed = len(analyzed)
            self.notice = Notice(
                severity="success",
                message=f"Analyzed {len(analyzed)} liked songs into {len(self.moods)} moods.",
            )
            self._enter(PipelineState.READY)
            return buckets
        except ThemesifyError as e:
            if self._stale(gen):
                logging.info("dropping failure of cancelled run: %s", e.message)
                return None
            self.notice = Notice(severity="error", message=e.message)
            self._enter(PipelineState.FAILED)
            raise
        except Exception as e:
            if self._stale(gen):
                logging.info("dropping failure of cancelled run: %s", e)
                return None
            logging.exception("analysis failed unexpectedly")
            err = FetchError(f"Unexpected error while analyzing your library: {e}")
            self.notice = Notice(severity="error", message=err.message)
            self._enter(PipelineState.FAILED)
            raise err from e
        finally:
            self._lock.release()

    def cancel(self) -> bool:
        self._generation += 1
        if self.state not in IN_FLIGHT:
            return False
        self._enter(PipelineState.IDLE)
        self.buckets = None
        self.notice = Notice(severity="info", message="Analysis cancelled.")
        return True

    def bucket(self, mood_key: str) -> List[Track]:
        mood = get_mood(mood_key, self.moods)
        if self.state != PipelineState.READY or self.buckets is None:
            raise NotAnalyzedError("Your library has not been analyzed yet.")
        return list(self.buckets[mood.key])
