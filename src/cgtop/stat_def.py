"""Stat definitions: compile a declarative string into a value extractor.

A definition names a pseudo-file relative to some base directory and how to
pull a value out of it:

    memory.current              first line of the file
    memory.stat/=/1/anon/2      column 2 of the first line whose column 1 is "anon"
    cgroup.procs/#              number of lines in the file

Column numbers are 1-based.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ExtractError(Exception):
    """Base class for failures while extracting a value from a file."""


class StatIOError(ExtractError):
    """The file could not be opened or read."""

    def __init__(self, error: OSError) -> None:
        super().__init__(error.strerror or str(error))
        self.error = error


class ValueNotFound(ExtractError):
    """The file was readable but did not contain the requested value."""

    def __init__(self) -> None:
        super().__init__("No value found")


class StatParseError(ExtractError):
    """The value was found but is not an unsigned integer."""

    def __init__(self, value: str) -> None:
        if value:
            message = f"Invalid number {value!r}"
        else:
            message = "Empty value"
        super().__init__(message)
        self.value = value


class ExtractMode(Enum):
    """How a value is pulled out of a file."""

    SINGLE = "single"
    KEYED = "keyed"
    COUNT = "count"


def parse_unsigned(value: str) -> int:
    """Parse a plain decimal unsigned integer, raising StatParseError otherwise."""
    if not value.isascii() or not value.isdigit():
        raise StatParseError(value)
    return int(value)


@dataclass(slots=True, frozen=True)
class StatDefinition:
    """Immutable, parsed stat definition."""

    file: str
    mode: ExtractMode = ExtractMode.SINGLE
    match_col: int = 0
    match_val: str = ""
    ret_col: int = 0

    @classmethod
    def single(cls, file: str) -> "StatDefinition":
        return cls(file)

    @classmethod
    def keyed(cls, file: str, match_col: int, match_val: str, ret_col: int) -> "StatDefinition":
        return cls(file, ExtractMode.KEYED, match_col, match_val, ret_col)

    @classmethod
    def count(cls, file: str) -> "StatDefinition":
        return cls(file, ExtractMode.COUNT)

    def get_value(self, base_dir: Path) -> str:
        """
        Extract the raw string value from ``base_dir / self.file``.

        Raises:
            StatIOError: The file is missing or unreadable.
            ValueNotFound: The file holds no matching value.
        """
        path = Path(base_dir) / self.file
        try:
            with open(path, encoding="utf-8", errors="replace") as fh:
                if self.mode is ExtractMode.SINGLE:
                    return self._first_line(fh)
                if self.mode is ExtractMode.KEYED:
                    return self._keyed_value(fh)
                return str(sum(1 for _ in fh))
        except OSError as e:
            raise StatIOError(e) from e

    def get_stat(self, base_dir: Path) -> int:
        """Extract the value and parse it as an unsigned integer."""
        return parse_unsigned(self.get_value(base_dir))

    @staticmethod
    def _first_line(fh) -> str:
        line = fh.readline()
        if not line:
            raise ValueNotFound()
        return line.rstrip("\n").rstrip("\r")

    def _keyed_value(self, fh) -> str:
        for line in fh:
            columns = line.split()
            if len(columns) < self.match_col:
                continue
            if columns[self.match_col - 1] != self.match_val:
                continue
            if self.ret_col > len(columns):
                raise ValueNotFound()
            return columns[self.ret_col - 1]
        raise ValueNotFound()

    def __str__(self) -> str:
        if self.mode is ExtractMode.KEYED:
            return f"{self.file}/=/{self.match_col}/{self.match_val}/{self.ret_col}"
        if self.mode is ExtractMode.COUNT:
            return f"{self.file}/#"
        return self.file


def _parse_column(text: str) -> int | None:
    if not text.isascii() or not text.isdigit():
        return None
    return int(text) or None


def parse(definition: str) -> StatDefinition | None:
    """
    Parse a stat definition string.

    Returns None for anything that is not one of the recognised shapes.
    """
    parts = definition.split("/")

    if not parts[0]:
        return None

    if len(parts) == 1:
        return StatDefinition.single(parts[0])

    if parts[1] == "=":
        if len(parts) != 5 or not parts[3]:
            return None
        match_col = _parse_column(parts[2])
        ret_col = _parse_column(parts[4])
        if match_col is None or ret_col is None:
            return None
        return StatDefinition.keyed(parts[0], match_col, parts[3], ret_col)

    if parts[1] == "#" and len(parts) == 2:
        return StatDefinition.count(parts[0])

    return None
