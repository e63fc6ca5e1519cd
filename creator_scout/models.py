"""Data models for YouTube channels, videos and related-channel discovery"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_count(value: Any) -> int:
    """Parse a YouTube statistic (usually a decimal string) into an int, 0 if unusable"""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    try:
        return max(int(str(value).strip()), 0)
    except ValueError:
        return 0


class IdentifierType(str, Enum):
    """Lexical kind of a channel identifier"""

    ID = "id"
    HANDLE = "handle"
    USERNAME = "username"


class Thumbnails(BaseModel):
    """Thumbnail URLs (empty string when YouTube omits a size)"""

    model_config = ConfigDict(frozen=True)

    default: str = ""
    medium: str = ""
    high: str = ""

    @classmethod
    def from_api(cls, thumbnails: Optional[dict]) -> "Thumbnails":
        thumbnails = thumbnails or {}
        return cls(
            default=thumbnails.get("default", {}).get("url", ""),
            medium=thumbnails.get("medium", {}).get("url", ""),
            high=thumbnails.get("high", {}).get("url", ""),
        )


class ChannelSummary(BaseModel):
    """YouTube channel metadata"""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    title: str
    description: str = ""
    custom_url: str = ""
    thumbnails: Thumbnails = Field(default_factory=Thumbnails)
    banner_url: str = ""

    # Statistics
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0

    uploads_playlist_id: str = ""

    @field_validator("subscriber_count", "video_count", "view_count", mode="before")
    @classmethod
    def _parse_count(cls, value: Any) -> int:
        return to_count(value)

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/channel/{self.channel_id}"


class VideoSummary(BaseModel):
    """YouTube video metadata"""

    model_config = ConfigDict(frozen=True)

    video_id: str
    title: str
    description: str = ""
    published_at: Optional[datetime] = None

    # Channel info
    channel_id: str = ""
    channel_title: str = ""

    thumbnails: Thumbnails = Field(default_factory=Thumbnails)
    duration: str = "PT0S"  # ISO 8601
    duration_seconds: int = Field(default=0, ge=0)

    # Statistics
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0

    tags: list[str] = Field(default_factory=list)

    @field_validator("view_count", "like_count", "comment_count", mode="before")
    @classmethod
    def _parse_count(cls, value: Any) -> int:
        return to_count(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> list[str]:
        return list(value or [])

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"


class SearchHit(BaseModel):
    """Channel that published a video matching a keyword search"""

    model_config = ConfigDict(frozen=True)

    channel_id: str
    channel_title: str = ""


class CandidateTally(BaseModel):
    """How many keyword searches surfaced a channel, and the last title seen for it"""

    count: int = 0
    title: str = ""


class RankedCandidate(ChannelSummary):
    """A related-channel candidate with its match score"""

    # Occurrence count (keyword search) or model similarity score (LLM analysis)
    match_score: Union[int, float] = 0

    # Only set by the LLM similarity pipeline
    category: str = ""
    notes: str = ""


class ParsedRecord(BaseModel):
    """One row of a model-generated similarity table"""

    model_config = ConfigDict(frozen=True)

    rank: int
    name: str
    category: str
    score: float
    notes: str = ""


class DiscoveryStatus(str, Enum):
    """Outcome of a related-channel discovery run"""

    OK = "ok"
    NO_CANDIDATES = "no_candidates"  # try a different channel
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"  # try again later
    CONFIGURATION_MISSING = "configuration_missing"
    DEMO_DATA = "demo_data"


class DiscoveryResult(BaseModel):
    """Ranked related channels plus the context the caller needs to present them"""

    status: DiscoveryStatus
    channels: list[RankedCandidate] = Field(default_factory=list)
    records: list[ParsedRecord] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    raw_response: str = ""

    @property
    def found(self) -> bool:
        return bool(self.channels)


class ContentIdea(BaseModel):
    """AI-generated video idea"""

    title: str
    description: str = ""
    target_audience: str = ""
    inspired_by: list[str] = Field(default_factory=list)
    estimated_interest: str = ""

    @field_validator("inspired_by", mode="before")
    @classmethod
    def _parse_inspired_by(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return [str(part) for part in value]
