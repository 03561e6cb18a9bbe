"""User activity models: action counters and the triggering event."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bookmaker.models.book import Book


class EventType:
    SAVE = "save"
    EDIT = "edit"
    DELETE = "delete"
    SEARCH = "search"
    BACKUP = "backup"
    RESTORE = "restore"
    SETTINGS = "settings"
    RATE = "rate"


class CounterName:
    SEARCH = "searchCount"
    EXPORT = "exportCount"
    IMPORT = "importCount"
    DELETE = "deleteCount"
    RATE = "rateCount"
    SETTINGS_SAVED = "settingsSaved"


class Counters(BaseModel):
    """Action counters that cannot be derived from book records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    actions: dict[str, int] = Field(default_factory=dict)
    edit_counts: dict[str, int] = Field(default_factory=dict)  # book id -> edits

    def count(self, name: str) -> int:
        return self.actions.get(name, 0)


class LastEvent(BaseModel):
    """The user action that triggered an evaluation pass."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str
    book: Book | None = None
    duration_sec: float | None = None
