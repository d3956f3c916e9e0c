"""PNG encoding with a small built-in deflate compressor."""

from __future__ import annotations

import os
import struct
import zlib
from typing import Union

PathLike = Union[str, "os.PathLike[str]"]

PNG_SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))

# Colour type for 1 (grey), 2 (grey+alpha), 3 (RGB) and 4 (RGBA) channels.
_COLOR_TYPES = {1: 0, 2: 4, 3: 2, 4: 6}

_LENGTH_BASE = (
    3, 4, 5, 6, 7, 8, 9, 10, 11, 13, 15, 17, 19, 23, 27, 31, 35, 43, 51, 59,
    67, 83, 99, 115, 131, 163, 195, 227, 258, 259,
)
_LENGTH_EXTRA = (
    0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3, 4, 4, 4, 4,
    5, 5, 5, 5, 0,
)
_DIST_BASE = (
    1, 2, 3, 4, 5, 7, 9, 13, 17, 25, 33, 49, 65, 97, 129, 193, 257, 385, 513,
    769, 1025, 1537, 2049, 3073, 4097, 6145, 8193, 12289, 16385, 24577, 32768,
)
_DIST_EXTRA = (
    0, 0, 0, 0, 1, 1, 2, 2, 3, 3, 4, 4, 5, 5, 6, 6, 7, 7, 8, 8, 9, 9, 10, 10,
    11, 11, 12, 12, 13, 13,
)

_HASH_SIZE = 16384
_MAX_MATCH = 258
_MAX_STORED_BLOCK = 32767
_MASK32 = 0xFFFFFFFF


def _bitrev(code: int, bits: int) -> int:
    result = 0
    for _ in range(bits):
        result = (result << 1) | (code & 1)
        code >>= 1
    return result


class _BitWriter:
    """Least-significant-bit-first bit packer for deflate streams."""

    def __init__(self, prefix: bytes) -> None:
        self.out = bytearray(prefix)
        self._buffer = 0
        self._count = 0

    def add(self, code: int, bits: int) -> None:
        self._buffer |= code << self._count
        self._count += bits
        while self._count >= 8:
            self.out.append(self._buffer & 0xFF)
            self._buffer >>= 8
            self._count -= 8

    def huff(self, symbol: int) -> None:
        """Write ``symbol`` with the fixed Huffman code."""
        if symbol <= 143:
            self.add(_bitrev(0x30 + symbol, 8), 8)
        elif symbol <= 255:
            self.add(_bitrev(0x190 + symbol - 144, 9), 9)
        elif symbol <= 279:
            self.add(_bitrev(symbol - 256, 7), 7)
        else:
            self.add(_bitrev(0xC0 + symbol - 280, 8), 8)

    def pad(self) -> None:
        while self._count:
            self.add(0, 1)


def _zhash(data: bytes, i: int) -> int:
    h = data[i] + (data[i + 1] << 8) + (data[i + 2] << 16)
    h ^= (h << 3) & _MASK32
    h = (h + (h >> 5)) & _MASK32
    h ^= (h << 4) & _MASK32
    h = (h + (h >> 17)) & _MASK32
    h ^= (h << 25) & _MASK32
    h = (h + (h >> 6)) & _MASK32
    return h


def _match_length(data: bytes, a: int, b: int, limit: int) -> int:
    limit = min(limit, _MAX_MATCH)
    k = 0
    while k < limit and data[a + k] == data[b + k]:
        k += 1
    return k


def zlib_compress(data: bytes, quality: int = 8) -> bytes:
    """Compress ``data`` into a zlib stream using fixed Huffman codes.

    ``quality`` bounds the length of each hash chain (minimum 5). If the
    compressed form would be larger than storing the data, stored blocks are
    emitted instead.
    """
    data = bytes(data)
    n = len(data)
    quality = max(quality, 5)

    writer = _BitWriter(b"\x78\x5e")
    writer.add(1, 1)  # final block
    writer.add(1, 2)  # fixed Huffman

    table: dict[int, list[int]] = {}
    i = 0
    while i < n - 3:
        h = _zhash(data, i) & (_HASH_SIZE - 1)
        best = 3
        best_loc: int | None = None
        chain = table.setdefault(h, [])
        for pos in chain:
            if pos > i - 32768:
                length = _match_length(data, pos, i, n - i)
                if length >= best:
                    best, best_loc = length, pos
        if len(chain) == 2 * quality:
            del chain[:quality]
        chain.append(i)

        if best_loc is not None:
            # Lazy matching: prefer a literal if the next byte starts a longer match.
            h_next = _zhash(data, i + 1) & (_HASH_SIZE - 1)
            for pos in table.get(h_next, ()):
                if pos > i - 32767 and _match_length(data, pos, i + 1, n - i - 1) > best:
                    best_loc = None
                    break

        if best_loc is not None:
            distance = i - best_loc
            j = 0
            while best > _LENGTH_BASE[j + 1] - 1:
                j += 1
            writer.huff(j + 257)
            if _LENGTH_EXTRA[j]:
                writer.add(best - _LENGTH_BASE[j], _LENGTH_EXTRA[j])
            j = 0
            while distance > _DIST_BASE[j + 1] - 1:
                j += 1
            writer.add(_bitrev(j, 5), 5)
            if _DIST_EXTRA[j]:
                writer.add(distance - _DIST_BASE[j], _DIST_EXTRA[j])
            i += best
        else:
            writer.huff(data[i])
            i += 1

    for byte in data[i:]:
        writer.huff(byte)
    writer.huff(256)
    writer.pad()

    out = writer.out
    stored_limit = n + 2 + ((n + _MAX_STORED_BLOCK - 1) // _MAX_STORED_BLOCK) * 5
    if len(out) > stored_limit:
        del out[2:]
        start = 0
        while start < n:
            block = data[start:start + _MAX_STORED_BLOCK]
            size = len(block)
            out.append(1 if n - start == size else 0)
            out += struct.pack("<HH", size, ~size & 0xFFFF)
            out += block
            start += size

    out += struct.pack(">I", zlib.adler32(data) & _MASK32)
    return bytes(out)


def crc32(data: bytes) -> int:
    """Return the CRC-32 used by PNG chunks."""
    return zlib.crc32(data) & _MASK32


def paeth(a: int, b: int, c: int) -> int:
    """Return the Paeth predictor of left ``a``, up ``b`` and upper-left ``c``."""
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a & 0xFF
    if pb <= pc:
        return b & 0xFF
    return c & 0xFF


def _filter_line(
    data: bytes, stride: int, width: int, height: int, y: int, n: int, filter_type: int, flip: bool
) -> bytes:
    # Row 0 has no prior row: up becomes none, average and Paeth use only the left byte.
    kind = filter_type if y != 0 else (0, 1, 0, 5, 6)[filter_type]
    row_start = stride * (height - 1 - y if flip else y)
    length = width * n
    row = data[row_start:row_start + length]
    if kind == 0:
        return bytes(row)

    prior: bytes = b""
    if kind in (2, 3, 4):
        prior_start = row_start + (stride if flip else -stride)
        prior = data[prior_start:prior_start + length]

    out = bytearray(length)
    for i in range(min(n, length)):
        if kind == 2:
            out[i] = (row[i] - prior[i]) & 0xFF
        elif kind == 3:
            out[i] = (row[i] - (prior[i] >> 1)) & 0xFF
        elif kind == 4:
            out[i] = (row[i] - paeth(0, prior[i], 0)) & 0xFF
        else:
            out[i] = row[i]
    for i in range(n, length):
        left = row[i - n]
        if kind == 1:
            pred = left
        elif kind == 2:
            pred = prior[i]
        elif kind == 3:
            pred = (left + prior[i]) >> 1
        elif kind == 4:
            pred = paeth(left, prior[i], prior[i - n])
        elif kind == 5:
            pred = left >> 1
        else:
            pred = paeth(left, 0, 0)
        out[i] = (row[i] - pred) & 0xFF
    return bytes(out)


def _line_cost(line: bytes) -> int:
    return sum(b if b < 128 else 256 - b for b in line)


def _chunk(tag: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", len(payload)) + tag + payload + struct.pack(">I", crc32(tag + payload))


def encode_png(
    data: bytes,
    width: int,
    height: int,
    components: int,
    stride_bytes: int = 0,
    force_filter: int = -1,
    compression_level: int = 8,
    flip: bool = False,
) -> bytes:
    """Encode 8-bit interleaved pixel rows as a PNG file in memory.

    ``stride_bytes`` of 0 means rows are packed. ``force_filter`` in 0..4
    selects one filter for every row; any other value picks the filter per
    row with the smallest estimated cost.
    """
    if components not in _COLOR_TYPES:
        raise ValueError(f"components must be 1..4, got {components}")
    if width < 0 or height < 0:
        raise ValueError(f"dimensions must be non-negative, got {width}x{height}")
    data = bytes(data)
    row_len = width * components
    if stride_bytes == 0:
        stride_bytes = row_len
    if height > 0 and len(data) < stride_bytes * (height - 1) + row_len:
        raise ValueError("pixel data is shorter than the image requires")
    if force_filter >= 5:
        force_filter = -1

    filtered = bytearray()
    for y in range(height):
        if force_filter > -1:
            chosen = force_filter
            line = _filter_line(data, stride_bytes, width, height, y, components, chosen, flip)
        else:
            chosen, line = 0, b""
            best_cost = None
            for filter_type in range(5):
                candidate = _filter_line(
                    data, stride_bytes, width, height, y, components, filter_type, flip
                )
                cost = _line_cost(candidate)
                if best_cost is None or cost < best_cost:
                    best_cost, chosen, line = cost, filter_type, candidate
        filtered.append(chosen)
        filtered += line

    compressed = zlib_compress(bytes(filtered), compression_level)
    header = struct.pack(">IIBBBBB", width, height, 8, _COLOR_TYPES[components], 0, 0, 0)
    return (
        PNG_SIGNATURE
        + _chunk(b"IHDR", header)
        + _chunk(b"IDAT", compressed)
        + _chunk(b"IEND", b"")
    )


def write_png(
    path: PathLike, width: int, height: int, components: int, data: bytes, stride_bytes: int = 0
) -> None:
    """Encode the pixels as PNG and write them to ``path``."""
    png = encode_png(data, width, height, components, stride_bytes)
    with open(path, "wb") as handle:
        handle.write(png)