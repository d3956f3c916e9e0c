"""BMP and TGA encoders for 8-bit interleaved pixel data."""

from __future__ import annotations

from typing import Iterator, Sequence

from raylite.png import PathLike

_FIELD_SIZES = {"1": 1, "2": 2, "4": 4}


def _fields(layout: str, values: Sequence[int]) -> bytes:
    """Pack little-endian fields; each layout digit is a byte width, spaces are ignored."""
    widths = [_FIELD_SIZES[ch] for ch in layout if ch != " "]
    if len(widths) != len(values):
        raise ValueError("layout and values differ in length")
    out = bytearray()
    for width, value in zip(widths, values):
        out += (value & ((1 << (8 * width)) - 1)).to_bytes(width, "little")
    return bytes(out)


def _validate(data: bytes, width: int, height: int, components: int) -> bytes:
    if components not in (1, 2, 3, 4):
        raise ValueError(f"components must be 1..4, got {components}")
    if width < 0 or height < 0:
        raise ValueError(f"dimensions must be non-negative, got {width}x{height}")
    data = bytes(data)
    if len(data) < width * height * components:
        raise ValueError("pixel data is shorter than the image requires")
    return data


def _row_order(height: int, bottom_up: bool, flip: bool) -> range:
    if bottom_up != flip:
        return range(height - 1, -1, -1)
    return range(height)


def _pixels(data: bytes, row: int, width: int, components: int) -> Iterator[bytes]:
    start = row * width * components
    for i in range(width):
        offset = start + i * components
        yield data[offset:offset + components]


def _encode_pixel(pixel: bytes, components: int, write_alpha: bool, expand_mono: bool) -> bytes:
    """Encode one pixel with colour channels in BGR order."""
    if components <= 2:
        grey = pixel[0]
        body = bytes((grey, grey, grey)) if expand_mono else bytes((grey,))
    else:
        body = bytes((pixel[2], pixel[1], pixel[0]))
    if write_alpha:
        body += bytes((pixel[components - 1],))
    return body


def encode_bmp(
    data: bytes, width: int, height: int, components: int, flip: bool = False
) -> bytes:
    """Encode pixels as a BMP file in memory.

    Images with four channels become 32-bit BGRA bitmaps with a V4 header;
    all others become 24-bit bitmaps, with grey expanded to RGB and any
    grey alpha dropped. Rows are stored bottom-up unless ``flip`` is set.
    """
    data = _validate(data, width, height, components)
    out = bytearray()
    if components != 4:
        pad = (-width * 3) & 3
        out += _fields(
            "11 4 22 4" "4 44 22 444444",
            (
                ord("B"), ord("M"), 14 + 40 + (width * 3 + pad) * height, 0, 0, 14 + 40,
                40, width, height, 1, 24, 0, 0, 0, 0, 0, 0,
            ),
        )
        write_alpha = False
    else:
        pad = 0
        out += _fields(
            "11 4 22 4" "4 44 22 444444 4444 4 444 444 444 444",
            (
                ord("B"), ord("M"), 14 + 108 + width * height * 4, 0, 0, 14 + 108,
                108, width, height, 1, 32, 3, 0, 0, 0, 0, 0,
                0xFF0000, 0xFF00, 0xFF, 0xFF000000, 0,
                0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
            ),
        )
        write_alpha = True

    for row in _row_order(height, bottom_up=True, flip=flip):
        for pixel in _pixels(data, row, width, components):
            out += _encode_pixel(pixel, components, write_alpha, expand_mono=True)
        out += bytes(pad)
    return bytes(out)


def write_bmp(path: PathLike, width: int, height: int, components: int, data: bytes) -> None:
    """Encode the pixels as BMP and write them to ``path``."""
    encoded = encode_bmp(data, width, height, components)
    with open(path, "wb") as handle:
        handle.write(encoded)


def _rle_row(data: bytes, row: int, width: int, components: int, has_alpha: bool) -> bytes:
    pixels = list(_pixels(data, row, width, components))
    out = bytearray()
    i = 0
    while i < width:
        begin = pixels[i]
        diff = True
        length = 1
        if i < width - 1:
            length += 1
            diff = begin != pixels[i + 1]
            k = i + 2
            if diff:
                # Each candidate is compared with the pixel two places before it.
                prev = i
                while k < width and length < 128:
                    if pixels[prev] != pixels[k]:
                        prev += 1
                        length += 1
                    else:
                        length -= 1
                        break
                    k += 1
            else:
                while k < width and length < 128:
                    if pixels[k] == begin:
                        length += 1
                    else:
                        break
                    k += 1

        if diff:
            out.append((length - 1) & 0xFF)
            for pixel in pixels[i:i + length]:
                out += _encode_pixel(pixel, components, has_alpha, expand_mono=False)
        else:
            out.append((length - 129) & 0xFF)
            out += _encode_pixel(begin, components, has_alpha, expand_mono=False)
        i += length
    return bytes(out)


def encode_tga(
    data: bytes,
    width: int,
    height: int,
    components: int,
    rle: bool = True,
    flip: bool = False,
) -> bytes:
    """Encode pixels as a TGA file in memory, run-length encoded when ``rle`` is set.

    Colour images are stored as BGR(A), grey images as Y(A). Rows are stored
    bottom-up unless ``flip`` is set.
    """
    data = _validate(data, width, height, components)
    has_alpha = components in (2, 4)
    color_bytes = components - 1 if has_alpha else components
    image_type = 3 if color_bytes < 2 else 2
    if rle:
        image_type += 8

    out = bytearray(
        _fields(
            "111 221 2222 11",
            (
                0, 0, image_type, 0, 0, 0, 0, 0, width, height,
                (color_bytes + int(has_alpha)) * 8, int(has_alpha) * 8,
            ),
        )
    )
    for row in _row_order(height, bottom_up=True, flip=flip):
        if rle:
            out += _rle_row(data, row, width, components, has_alpha)
        else:
            for pixel in _pixels(data, row, width, components):
                out += _encode_pixel(pixel, components, has_alpha, expand_mono=False)
    return bytes(out)


def write_tga(path: PathLike, width: int, height: int, components: int, data: bytes) -> None:
    """Encode the pixels as run-length encoded TGA and write them to ``path``."""
    encoded = encode_tga(data, width, height, components)
    with open(path, "wb") as handle:
        handle.write(encoded)