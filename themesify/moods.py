# moods.py
from numbers import Real
from typing import Iterable, List, Optional, Sequence

from .config import FEATURE_BATCH
from .models import (
    AnalyzedTrack,
    AudioFeatures,
    Exact,
    MoodBucket,
    MoodDefinition,
    MoodSummary,
    Predicate,
    Range,
)

MOOD_TABLE: List[MoodDefinition] = [
    MoodDefinition(
        key="happy", name="Happy", accent="#FFD166",
        characteristics={"energy": Range(min=0.6), "valence": Range(min=0.7)},
    ),
    MoodDefinition(
        key="chill", name="Chill", accent="#06D6A0",
        characteristics={
            "energy": Range(max=0.5),
            "valence": Range(min=0.3, max=0.7),
            "tempo": Range(max=110),
        },
    ),
    MoodDefinition(
        key="energetic", name="Energetic", accent="#EF476F",
        characteristics={"energy": Range(min=0.8), "tempo": Range(min=120)},
    ),
    MoodDefinition(
        key="melancholic", name="Melancholic", accent="#118AB2",
        characteristics={
            "valence": Range(max=0.35),
            "energy": Range(max=0.5),
            "mode": Exact(value=0),
        },
    ),
    MoodDefinition(
        key="focused", name="Focused", accent="#8338EC",
        characteristics={
            "instrumentalness": Range(min=0.5),
            "speechiness": Range(max=0.1),
            "energy": Range(min=0.3, max=0.7),
        },
    ),
    MoodDefinition(
        key="party", name="Party", accent="#FF6B35",
        characteristics={
            "danceability": Range(min=0.7),
            "energy": Range(min=0.7),
            "valence": Range(min=0.5),
        },
    ),
    MoodDefinition(
        key="romantic", name="Romantic", accent="#F15BB5",
        characteristics={
            "valence": Range(min=0.4, max=0.8),
            "energy": Range(max=0.6),
            "acousticness": Range(min=0.3),
            "mode": Exact(value=1),
        },
    ),
]

MOODS_BY_KEY = {m.key: m for m in MOOD_TABLE}


def get_mood(key: str, moods: Optional[Sequence[MoodDefinition]] = None) -> MoodDefinition:
    table = MOODS_BY_KEY if moods is None else {m.key: m for m in moods}
    try:
        return table[key.strip().lower()]
    except KeyError:
        raise KeyError(f"unknown mood {key!r}; expected one of {', '.join(table)}") from None


def _numeric(x) -> bool:
    return isinstance(x, Real) and not isinstance(x, bool)


def _holds(value, pred: Predicate, fail_closed: bool) -> bool:
    if not _numeric(value):
        # absent or malformed dimension: lenient unless asked otherwise
        return not fail_closed
    if isinstance(pred, Exact):
        return value == pred.value
    if pred.min is not None and value < pred.min:
        return False
    if pred.max is not None and value > pred.max:
        return False
    return True


def matches(features: Optional[AudioFeatures], mood: MoodDefinition, fail_closed: bool = False) -> bool:
    """True iff every characteristic of ``mood`` holds for ``features``.

    Bounds are inclusive. A dimension missing from ``features`` or holding a
    non-numeric value counts as satisfied, unless ``fail_closed`` is set. A
    track without any features never matches.
    """
    if features is None:
        return False
    return all(_holds(features.get(dim), pred, fail_closed) for dim, pred in mood.characteristics.items())


def _batches(items: Sequence, size: int) -> Iterable[Sequence]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def classify(tracks: Sequence[AnalyzedTrack], moods: Sequence[MoodDefinition] = MOOD_TABLE,
             batch_size: int = FEATURE_BATCH, fail_closed: bool = False) -> MoodBucket:
    """Partition analyzed tracks into mood buckets.

    A track lands in every mood it matches, so buckets overlap. Each bucket
    keeps scan order, and every mood key is present even when empty.
    """
    buckets: MoodBucket = {m.key: [] for m in moods}
    for batch in _batches(list(tracks), max(1, batch_size)):
        for at in batch:
            if at.features is None:
                continue
            for m in moods:
                if matches(at.features, m, fail_closed):
                    buckets[m.key].append(at.track)
    return buckets


def bucket_summary(buckets: MoodBucket, moods: Sequence[MoodDefinition] = MOOD_TABLE) -> List[MoodSummary]:
    return [
        MoodSummary(mood=m.key, name=m.name, accent=m.accent, count=len(buckets.get(m.key, [])))
        for m in moods
    ]
