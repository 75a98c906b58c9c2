"""Human-readable, colour-banded number formatting."""

from rich.text import Text

POWERS = [" ", "k", "M", "G", "T", "P", "E"]
COLOURS = [
    "bright_green",
    "bright_blue",
    "bright_yellow",
    "bright_red",
    "bright_red",
    "bright_red",
    "bright_red",
]


def _integer_digits(value: float) -> int:
    digits = 1
    while value >= 10:
        value /= 10
        digits += 1
    return digits


def _scale(value: int, base: int) -> tuple[float, int]:
    scaled = float(value)
    power = 0
    while power < len(POWERS) - 1 and scaled >= base:
        power += 1
        scaled /= base
    return scaled, power


def format_mem_qty(size: int) -> Text:
    """Format a byte count as e.g. ``"  512 k"`` or ``"1.250 G"``."""
    scaled, power = _scale(size, 1024)
    dp = 4 - _integer_digits(scaled) if power > 1 else 0
    return Text(f"{scaled:>5.{dp}f} {POWERS[power]}", style=COLOURS[power])


def format_qty(qty: int) -> Text:
    """Format a plain count with 1000-based suffixes, e.g. ``"  42  "`` or ``"1.50 k"``."""
    scaled, power = _scale(qty, 1000)
    dp = 3 - _integer_digits(scaled) if power > 0 else 0
    return Text(f"{scaled:>4.{dp}f} {POWERS[power]}", style=COLOURS[power])
