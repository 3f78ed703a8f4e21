"""Pydantic models for pageinsights data structures."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from . import errors
from .config import config


DATE_PRESETS = frozenset({
    "today",
    "yesterday",
    "this_month",
    "last_month",
    "this_quarter",
    "last_3d",
    "last_7d",
    "last_14d",
    "last_28d",
    "last_30d",
    "last_90d",
    "this_year",
    "last_year",
})


class Session(BaseModel):
    """Authenticated Facebook user, persisted between visits."""

    subject_id: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    avatar_url: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


class Page(BaseModel):
    """A Facebook Page the user administers."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    access_token: Optional[str] = None


class Window(BaseModel):
    """Date range, explicit or relative, that insights are aggregated over."""

    model_config = ConfigDict(frozen=True)

    since: Optional[date] = None
    until: Optional[date] = None
    preset: Optional[str] = None

    @model_validator(mode="after")
    def _check_form(self) -> "Window":
        explicit = self.since is not None or self.until is not None
        if explicit and self.preset is not None:
            raise ValueError("use either since/until or a preset, not both")
        if explicit:
            if self.since is None or self.until is None:
                raise ValueError("both since and until are required")
            if self.since > self.until:
                raise ValueError("since must not be after until")
        elif self.preset is None:
            raise ValueError("a date range or a preset is required")
        elif self.preset not in DATE_PRESETS:
            raise ValueError(f"unknown date preset {self.preset!r}")
        return self

    @classmethod
    def explicit(cls, since: date, until: date) -> "Window":
        return cls._build(since=since, until=until)

    @classmethod
    def relative(cls, preset: str) -> "Window":
        return cls._build(preset=preset)

    @classmethod
    def default(cls) -> "Window":
        return cls.relative(config.DEFAULT_DATE_PRESET)

    @classmethod
    def parse(cls, since_text: str, until_text: str) -> "Window":
        """Build an explicit window from two ISO dates (YYYY-MM-DD)."""
        try:
            since = date.fromisoformat(since_text.strip())
            until = date.fromisoformat(until_text.strip())
        except (AttributeError, TypeError, ValueError) as e:
            raise errors.ValidationError(f"Invalid date range: {e}") from e
        return cls.explicit(since, until)

    @classmethod
    def _build(cls, **fields) -> "Window":
        try:
            return cls(**fields)
        except pydantic.ValidationError as e:
            reason = e.errors()[0].get("msg", str(e))
            raise errors.ValidationError(f"Invalid date range: {reason}") from e

    def query_params(self) -> dict[str, str]:
        if self.preset is not None:
            return {"date_preset": self.preset}
        return {"since": self.since.isoformat(), "until": self.until.isoformat()}

    def describe(self) -> str:
        if self.preset is not None:
            return self.preset
        return f"{self.since.isoformat()} – {self.until.isoformat()}"


class MetricName(str, Enum):
    REACTIONS = "reactions"
    LIKES = "likes"
    FOLLOWERS = "followers"
    ENGAGEMENT = "engagement"
    IMPRESSIONS = "impressions"


class MetricSet(BaseModel):
    """Aggregated metrics for one (page, window) pair.

    A value of None marks a metric the API reported no data for, which is
    different from a count of zero.
    """

    model_config = ConfigDict(frozen=True)

    page_id: str
    window: Window
    values: dict[MetricName, Optional[int]]
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get(self, name: MetricName) -> Optional[int]:
        return self.values.get(name)

    def is_available(self, name: MetricName) -> bool:
        return self.values.get(name) is not None


class Idle(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["idle"] = "idle"


class Loading(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["loading"] = "loading"
    page_id: str


class Ready(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["ready"] = "ready"
    metrics: MetricSet


class Failed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    message: str
    kind: Literal["auth", "fetch", "validation"]


LoadState = Union[Idle, Loading, Ready, Failed]
