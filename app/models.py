"""Pydantic models describing catalog, history and upload payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .utils import parse_int

# A stored video reference: a raw URL, raw iframe markup, a JSON string
# holding a descriptor, or the descriptor object itself.
VideoRef = Union[str, dict[str, Any]]

MediaKind = Literal["image", "video"]


class Episode(BaseModel):
    """A single episode owned by a title."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    episode: int | float | str | None = None
    video_url: VideoRef | None = Field(
        default=None,
        validation_alias=AliasChoices("videoUrl", "video_url"),
        serialization_alias="videoUrl",
    )

    @property
    def number(self) -> int | None:
        """Return the parsed episode number, ``None`` when not numeric."""

        return parse_int(self.episode)


class Title(BaseModel):
    """Represents one anime series in the catalog."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str
    description: str | None = None
    genre: str | None = None
    language: str | None = None
    thumbnail: str | None = None
    total_episodes: int | float | str | None = Field(
        default=None,
        validation_alias=AliasChoices("totalEpisodes", "total_episodes"),
        serialization_alias="totalEpisodes",
    )
    video_url: VideoRef | None = Field(
        default=None,
        validation_alias=AliasChoices("videoUrl", "video_url"),
        serialization_alias="videoUrl",
    )
    episodes: list[Episode] = Field(default_factory=list)
    views: int = Field(default=0, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("views", mode="before")
    @classmethod
    def _coerce_views(cls, value: object) -> object:
        if value is None or value == "":
            return 0
        return value

    @field_validator("episodes", mode="before")
    @classmethod
    def _coerce_episodes(cls, value: object) -> object:
        if value is None:
            return []
        return value

    def find_episode(self, number: int | None) -> Episode | None:
        """Return the first episode whose parsed number equals ``number``."""

        if number is None:
            return None
        for entry in self.episodes:
            if entry.number == number:
                return entry
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class WatchHistoryEntry(BaseModel):
    """The latest viewing position recorded for a title."""

    model_config = ConfigDict(populate_by_name=True)

    title_id: str = Field(
        validation_alias=AliasChoices("titleId", "animeId", "title_id"),
        serialization_alias="titleId",
    )
    episode: int
    progress: float = Field(ge=0, le=100)
    last_watched: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        validation_alias=AliasChoices("lastWatched", "last_watched"),
        serialization_alias="lastWatched",
    )

    @field_validator("title_id", mode="before")
    @classmethod
    def _coerce_title_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("episode", mode="before")
    @classmethod
    def _parse_episode(cls, value: object) -> int:
        parsed = parse_int(value)
        if parsed is None:
            raise ValueError("Episode must be an integer")
        return parsed

    @field_validator("progress", mode="before")
    @classmethod
    def _clamp_progress(cls, value: object) -> float:
        try:
            progress = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("Progress must be a number") from exc
        if progress != progress:
            raise ValueError("Progress must be a number")
        return min(100.0, max(0.0, progress))

    @field_validator("last_watched")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ProgressReport(BaseModel):
    """Playback position reported by the player."""

    model_config = ConfigDict(populate_by_name=True)

    title_id: str = Field(validation_alias=AliasChoices("titleId", "title_id"))
    episode: int = Field(ge=0)
    current_time: float = Field(
        ge=0, validation_alias=AliasChoices("currentTime", "current_time")
    )
    duration: float = Field(ge=0)

    @property
    def progress(self) -> float | None:
        """Elapsed percentage, ``None`` while the duration is unknown."""

        if self.duration <= 0:
            return None
        return min(100.0, self.current_time / self.duration * 100)


class UploadResult(BaseModel):
    """Outcome of a stored upload."""

    url: str
    original_name: str
    size_bytes: int
    detected_episode_number: int | None = None

    def to_payload(self, kind: MediaKind) -> dict[str, Any]:
        return {
            "success": True,
            "message": f"{kind.capitalize()} uploaded successfully",
            "fileUrl": self.url,
            "fileName": self.original_name,
            "fileSize": self.size_bytes,
            "episodeNumber": self.detected_episode_number,
        }


class StoredFile(BaseModel):
    """A file present in the upload directory."""

    url: str
    name: str
    type: MediaKind
    size: int
