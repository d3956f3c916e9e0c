"""RGBA colours with 8-bit channels."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Color:
    """An RGBA colour; each channel is an integer in 0..255."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 255

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 0 <= value <= 255:
                raise ValueError(f"channel {name} must be an integer in 0..255, got {value!r}")

    def describe(self) -> str:
        """Return a multi-line description of the channels."""
        return (
            "Color:\n"
            f"        R: {self.r}\n"
            f"        G: {self.g}\n"
            f"        B: {self.b}\n"
            f"        A: {self.a}\n"
        )


def print_color(color: Color) -> None:
    """Print the channels of ``color`` to standard output."""
    print(color.describe(), end="")