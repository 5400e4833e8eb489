"""Country table and region resolution.

The country table maps lower-cased ISO 3166-1 alpha-2 codes to the country
names the Last.fm geo API expects ("in" -> "India"). A table is immutable
once built; reloading builds a new table and swaps the resolver's reference,
so concurrent requests always see either the old or the new table in full.
"""

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from core.exceptions import ConfigurationError, ValidationError
from core.sanitize import sanitize_text

logger = logging.getLogger(__name__)

EMPTY_COUNTRY_MESSAGE = "`country` parameter is invalid"
UNKNOWN_COUNTRY_MESSAGE = (
    "`country` not found in our database. Please check the country input param, "
    "it should follow the ISO 3166-1-Alpha-2 code format"
)


class CountryTable(Mapping[str, str]):
    """Read-only mapping of lower-cased alpha-2 code to canonical country name."""

    def __init__(self, entries: Mapping[str, str], source: str = "<memory>"):
        self._entries = MappingProxyType({k.lower(): v for k, v in entries.items()})
        self.source = source

    @classmethod
    def from_mapping(cls, data: object, source: str = "<memory>") -> "CountryTable":
        """Build a table from decoded JSON, validating its shape.

        Names must come out of the markup sanitizer unchanged, so a code always
        resolves to exactly the name stored for it.

        Raises:
            ConfigurationError: If ``data`` is not an object of string to string,
                or a name contains markup or escapable characters
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Country table {source} must be a JSON object")

        bad_keys = [k for k, v in data.items() if not isinstance(v, str) or not v]
        if bad_keys:
            raise ConfigurationError(
                f"Country table {source} has invalid entries",
                details={"keys": bad_keys[:10]},
            )

        unsafe_keys = [k for k, v in data.items() if sanitize_text(v) != v]
        if unsafe_keys:
            raise ConfigurationError(
                f"Country table {source} has names altered by sanitization",
                details={"keys": unsafe_keys[:10]},
            )

        return cls(data, source=source)

    @classmethod
    def from_file(cls, path: Path) -> "CountryTable":
        """Load a table from a JSON file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or malformed
        """
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to load country table {path}: {e}") from e

        table = cls.from_mapping(data, source=str(path))
        logger.info(f"Loaded {len(table)} countries from {path}")
        return table

    def __getitem__(self, code: str) -> str:
        return self._entries[code]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class CountryResolver:
    """Validates user-supplied region codes against the current country table."""

    def __init__(self, table: CountryTable):
        self._table = table

    @property
    def table(self) -> CountryTable:
        return self._table

    def normalize(self, raw: str) -> str:
        """Resolve an alpha-2 code to its canonical country name.

        Args:
            raw: User-supplied region code, any case

        Returns:
            Canonical country name, passed through the markup sanitizer

        Raises:
            ValidationError: If ``raw`` is empty or not a known code
        """
        if not raw:
            raise ValidationError(EMPTY_COUNTRY_MESSAGE)

        table = self._table
        country = table.get(raw.lower())
        if country is None:
            raise ValidationError(UNKNOWN_COUNTRY_MESSAGE, details={"country": sanitize_text(raw)})

        return sanitize_text(country)

    def reload(self, path: Path) -> CountryTable:
        """Load a fresh table from ``path`` and swap it in.

        The current table stays in place if loading fails.

        Raises:
            ConfigurationError: If the new table cannot be loaded
        """
        table = CountryTable.from_file(path)
        self._table = table
        logger.info(f"Country table reloaded from {path} ({len(table)} entries)")
        return table
