"""Achievement catalog loader supporting JSON and YAML files."""

import json
import logging
from pathlib import Path
from typing import Any

import chardet
import yaml
from pydantic import ValidationError

from bookmaker.errors import CatalogLoadError
from bookmaker.models.achievement import AchievementDefinition

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "achievements.json"

# Supported file extensions mapped to format identifiers
SUPPORTED_FORMATS: dict[str, str] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class CatalogLoader:
    """Loads achievement definitions once per session and caches them.

    The cache lives on the loader instance. ``reload()`` re-reads the file and
    ``invalidate()`` drops the cache so the next ``load()`` reads again.

    Args:
        path: Catalog file. Defaults to the catalog bundled with the package.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else DEFAULT_CATALOG_PATH
        self._cache: tuple[AchievementDefinition, ...] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_loaded(self) -> bool:
        return self._cache is not None

    def load(self) -> tuple[AchievementDefinition, ...]:
        """Return the catalog, reading it on first use.

        Raises:
            CatalogLoadError: If the file is missing, unreadable or invalid.
        """
        if self._cache is None:
            self._cache = self._read()
        return self._cache

    def reload(self) -> tuple[AchievementDefinition, ...]:
        """Re-read the catalog file, replacing the cached definitions."""
        self._cache = self._read()
        return self._cache

    def invalidate(self) -> None:
        self._cache = None

    def _read(self) -> tuple[AchievementDefinition, ...]:
        path = self._path
        if not path.exists():
            raise CatalogLoadError(f"Catalog not found: {path}", path=str(path))

        file_format = self._detect_format(path)
        dispatch = {
            "json": self._parse_json,
            "yaml": self._parse_yaml,
        }
        text = self._read_text(path)
        try:
            raw = dispatch[file_format](text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise CatalogLoadError(f"Cannot parse catalog {path}: {exc}", path=str(path)) from exc

        definitions = self._build_definitions(raw, path)
        logger.info("Loaded %d achievement definitions from %s", len(definitions), path)
        return definitions

    def _detect_format(self, file_path: Path) -> str:
        """Determine catalog format from extension.

        Raises:
            CatalogLoadError: If extension is not supported.
        """
        ext = file_path.suffix.lower()
        if ext not in SUPPORTED_FORMATS:
            raise CatalogLoadError(
                f"Unsupported catalog format: '{ext}'. "
                f"Supported: {', '.join(SUPPORTED_FORMATS.keys())}",
                path=str(file_path),
            )
        return SUPPORTED_FORMATS[ext]

    def _read_text(self, file_path: Path) -> str:
        """Read the catalog file with encoding detection.

        Tries UTF-8 first, then uses chardet for hand-edited catalogs saved
        in a legacy encoding such as Shift_JIS.
        """
        try:
            return file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            pass
        except OSError as exc:
            raise CatalogLoadError(f"Cannot read catalog {file_path}: {exc}", path=str(file_path)) from exc

        raw_bytes = file_path.read_bytes()
        detected = chardet.detect(raw_bytes)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence", 0)

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                file_path,
                encoding,
                confidence * 100,
            )

        try:
            return raw_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise CatalogLoadError(
                f"Cannot decode catalog {file_path} as {encoding}", path=str(file_path)
            ) from exc

    def _parse_json(self, text: str) -> Any:
        return json.loads(text)

    def _parse_yaml(self, text: str) -> Any:
        return yaml.safe_load(text)

    def _build_definitions(self, raw: Any, path: Path) -> tuple[AchievementDefinition, ...]:
        """Validate raw entries, keeping file order.

        Accepts either a top-level list or ``{"achievements": [...]}``.
        """
        if isinstance(raw, dict):
            raw = raw.get("achievements")
        if not isinstance(raw, list):
            raise CatalogLoadError(
                f"Catalog {path} must be a list of achievements", path=str(path)
            )

        definitions: list[AchievementDefinition] = []
        seen: set[str] = set()
        for index, entry in enumerate(raw):
            try:
                definition = AchievementDefinition.model_validate(entry)
            except ValidationError as exc:
                raise CatalogLoadError(
                    f"Invalid achievement #{index} in {path}: {exc}", path=str(path)
                ) from exc
            if definition.id in seen:
                raise CatalogLoadError(
                    f"Duplicate achievement id '{definition.id}' in {path}", path=str(path)
                )
            if definition.rule.kind is None:
                logger.warning(
                    "Achievement %s uses unknown rule type %r and can never unlock",
                    definition.id,
                    definition.rule.type,
                )
            seen.add(definition.id)
            definitions.append(definition)

        return tuple(definitions)
