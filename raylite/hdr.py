"""Radiance RGBE (.hdr) encoder for linear floating-point pixel data."""

from __future__ import annotations

import math
from typing import Iterator, Sequence

from raylite.png import PathLike

_HEADER = b"#?RADIANCE\n# Written by raylite\nFORMAT=32-bit_rle_rgbe\n"
_MAX_DUMP = 128
_MAX_RUN = 127


def linear_to_rgbe(red: float, green: float, blue: float) -> bytes:
    """Convert one linear RGB triple to its four-byte shared-exponent form."""
    max_component = max(red, green, blue)
    if max_component < 1e-32:
        return bytes(4)
    mantissa, exponent = math.frexp(max_component)
    normalize = mantissa * 256.0 / max_component
    return bytes(
        (
            int(red * normalize) & 0xFF,
            int(green * normalize) & 0xFF,
            int(blue * normalize) & 0xFF,
            (exponent + 128) & 0xFF,
        )
    )


def _scanline_rgbe(
    data: Sequence[float], start: int, width: int, components: int
) -> Iterator[bytes]:
    for x in range(width):
        offset = start + x * components
        if components >= 3:
            red, green, blue = data[offset], data[offset + 1], data[offset + 2]
        else:
            red = green = blue = data[offset]
        yield linear_to_rgbe(red, green, blue)


def _rle_component(values: bytes) -> bytes:
    """Run-length encode one component plane of a scanline."""
    width = len(values)
    out = bytearray()
    x = 0
    while x < width:
        r = x
        while r + 2 < width:
            if values[r] == values[r + 1] == values[r + 2]:
                break
            r += 1
        if r + 2 >= width:
            r = width
        while x < r:
            length = min(r - x, _MAX_DUMP)
            out.append(length)
            out += values[x:x + length]
            x += length
        if r + 2 < width:
            while r < width and values[r] == values[x]:
                r += 1
            while x < r:
                length = min(r - x, _MAX_RUN)
                out.append(length + 128)
                out.append(values[x])
                x += length
    return bytes(out)


def _encode_scanline(data: Sequence[float], start: int, width: int, components: int) -> bytes:
    pixels = list(_scanline_rgbe(data, start, width, components))
    if width < 8 or width >= 32768:
        return b"".join(pixels)
    out = bytearray((2, 2, (width & 0xFF00) >> 8, width & 0x00FF))
    for channel in range(4):
        out += _rle_component(bytes(pixel[channel] for pixel in pixels))
    return bytes(out)


def encode_hdr(
    data: Sequence[float], width: int, height: int, components: int, flip: bool = False
) -> bytes:
    """Encode interleaved linear float pixels as a Radiance HDR file in memory.

    Alpha, if present, is dropped; grey values are replicated to all three
    colour channels. Scanlines of width 8..32767 are run-length encoded.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"dimensions must be positive, got {width}x{height}")
    if components not in (1, 2, 3, 4):
        raise ValueError(f"components must be 1..4, got {components}")
    if data is None or len(data) < width * height * components:
        raise ValueError("pixel data is shorter than the image requires")

    out = bytearray(_HEADER)
    out += f"EXPOSURE=          1.0000000000000\n\n-Y {height} +X {width}\n".encode("ascii")
    row_len = width * components
    for i in range(height):
        row = height - 1 - i if flip else i
        out += _encode_scanline(data, row * row_len, width, components)
    return bytes(out)


def write_hdr(
    path: PathLike, width: int, height: int, components: int, data: Sequence[float]
) -> None:
    """Encode the pixels as Radiance HDR and write them to ``path``."""
    encoded = encode_hdr(data, width, height, components)
    with open(path, "wb") as handle:
        handle.write(encoded)