# models.py
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Artist(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class Track(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    uri: Optional[str] = None
    name: str = ""
    artists: List[Artist] = []

    @classmethod
    def from_api(cls, t: Dict[str, Any]) -> "Track":
        return cls(
            id=t.get("id"),
            uri=t.get("uri"),
            name=t.get("name") or "",
            artists=[{"name": a.get("name") or ""} for a in (t.get("artists") or []) if a],
        )


# Values are kept as Spotify sent them; the classifier decides what a
# non-numeric value means.
AudioFeatures = Dict[str, Any]

FEATURE_KEYS = (
    "danceability", "energy", "valence", "tempo", "acousticness",
    "speechiness", "instrumentalness", "liveness", "loudness", "mode",
)


class AnalyzedTrack(BaseModel):
    track: Track
    features: Optional[AudioFeatures] = None


class Exact(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float


class Range(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: Optional[float] = None
    max: Optional[float] = None

    @model_validator(mode="after")
    def _has_bound(self):
        if self.min is None and self.max is None:
            raise ValueError("range needs a min or a max")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"empty range [{self.min}, {self.max}]")
        return self


Predicate = Union[Exact, Range]


class MoodDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    accent: str = "#1DB954"
    characteristics: Dict[str, Predicate]

    @field_validator("characteristics", mode="before")
    @classmethod
    def _coerce(cls, v):
        # shorthand: {"mode": 1, "energy": {"min": 0.6}}
        if isinstance(v, dict):
            return {
                k: {"value": p} if isinstance(p, (int, float)) and not isinstance(p, bool) else p
                for k, p in v.items()
            }
        return v

    @field_validator("characteristics")
    @classmethod
    def _non_empty(cls, v):
        if not v:
            raise ValueError("a mood needs at least one characteristic")
        return v


MoodBucket = Dict[str, List[Track]]


class MoodSummary(BaseModel):
    mood: str
    name: str
    accent: str
    count: int


class PlaylistRef(BaseModel):
    playlist_id: str
    url: str
    added: int


class Notice(BaseModel):
    severity: Literal["error", "success", "info"]
    message: str
