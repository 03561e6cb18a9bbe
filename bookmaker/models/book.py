"""Book data model."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Book(BaseModel):
    """One reading of a title.

    Re-reads are separate records that share a trimmed title. A book with a
    non-empty ``finished_at`` is finished; everything else is in progress.
    Fields accept the camelCase keys used by exported data (``finishedAt``,
    ``reviewText``...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = ""
    author: str = ""
    started_at: str = ""  # YYYY-MM-DD or ""
    finished_at: str = ""  # YYYY-MM-DD or ""
    review_text: str = ""
    one_liner: str = ""
    rating: int | None = Field(default=None, ge=1, le=5)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator(
        "title", "author", "started_at", "finished_at", "review_text", "one_liner",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("started_at", "finished_at")
    @classmethod
    def _strip_dates(cls, value: str) -> str:
        return value.strip()

    @field_validator("rating", mode="before")
    @classmethod
    def _unrated_as_none(cls, value: Any) -> Any:
        # 0 and "" both mean "no rating" in stored data
        if value in (None, "", 0):
            return None
        return value

    @property
    def is_finished(self) -> bool:
        return bool(self.finished_at)

    @property
    def title_key(self) -> str:
        return self.title.strip()

    @property
    def author_key(self) -> str:
        return self.author.strip()
