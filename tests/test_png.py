import random
import struct
import zlib

import pytest

from raylite.png import crc32, encode_png, paeth, write_png, zlib_compress

SIGNATURE = bytes((137, 80, 78, 71, 13, 10, 26, 10))


def _chunks(png):
    assert png[:8] == SIGNATURE
    pos = 8
    chunks = []
    while pos < len(png):
        (length,) = struct.unpack(">I", png[pos:pos + 4])
        tag = png[pos + 4:pos + 8]
        payload = png[pos + 8:pos + 8 + length]
        (crc,) = struct.unpack(">I", png[pos + 8 + length:pos + 12 + length])
        assert crc == zlib.crc32(tag + payload)
        chunks.append((tag, payload))
        pos += 12 + length
    return chunks


def _predict(left, up, upleft):
    p = left + up - upleft
    pa, pb, pc = abs(p - left), abs(p - up), abs(p - upleft)
    if pa <= pb and pa <= pc:
        return left
    if pb <= pc:
        return up
    return upleft


def _decode(png):
    chunks = _chunks(png)
    assert chunks[0][0] == b"IHDR"
    assert chunks[-1] == (b"IEND", b"")
    width, height, depth, ctype, _, _, _ = struct.unpack(">IIBBBBB", chunks[0][1])
    n = {0: 1, 4: 2, 2: 3, 6: 4}[ctype]
    raw = zlib.decompress(b"".join(p for t, p in chunks if t == b"IDAT"))
    stride = width * n
    prev = bytearray(stride)
    rows = []
    pos = 0
    for _ in range(height):
        ftype = raw[pos]
        line = bytearray(raw[pos + 1:pos + 1 + stride])
        pos += 1 + stride
        for k in range(stride):
            left = line[k - n] if k >= n else 0
            up = prev[k]
            upleft = prev[k - n] if k >= n else 0
            pred = (0, left, up, (left + up) // 2, _predict(left, up, upleft))[ftype]
            line[k] = (line[k] + pred) & 0xFF
        rows.append(bytes(line))
        prev = line
    return width, height, depth, n, b"".join(rows)


def _image(width, height, n, seed=1):
    rng = random.Random(seed)
    # Mix smooth gradients with noise so every filter gets exercised.
    return bytes(
        (x * 7 + y * 13 + c * 31 + rng.randrange(4)) & 0xFF
        for y in range(height)
        for x in range(width)
        for c in range(n)
    )


def test_header_fields():
    png = encode_png(_image(5, 3, 4), 5, 3, 4)
    tag, header = _chunks(png)[0]
    assert tag == b"IHDR"
    assert struct.unpack(">IIBBBBB", header) == (5, 3, 8, 6, 0, 0, 0)


@pytest.mark.parametrize("components", [1, 2, 3, 4])
@pytest.mark.parametrize("force_filter", [-1, 0, 1, 2, 3, 4, 7])
def test_round_trip(components, force_filter):
    data = _image(6, 5, components)
    png = encode_png(data, 6, 5, components, force_filter=force_filter)
    assert _decode(png) == (6, 5, 8, components, data)


def test_flip_reverses_rows():
    width, height, n = 4, 3, 3
    data = _image(width, height, n)
    rows = [data[i * width * n:(i + 1) * width * n] for i in range(height)]
    png = encode_png(data, width, height, n, flip=True)
    assert _decode(png)[4] == b"".join(reversed(rows))


def test_stride_skips_padding():
    width, height, n = 3, 4, 2
    packed = _image(width, height, n)
    row = width * n
    padded = b"".join(packed[i * row:(i + 1) * row] + b"\xee\xee" for i in range(height))
    png = encode_png(padded, width, height, n, stride_bytes=row + 2)
    assert _decode(png)[4] == packed


def test_uniform_image_compresses_well():
    data = bytes([200, 10, 30, 255]) * (64 * 64)
    png = encode_png(data, 64, 64, 4)
    assert len(png) < len(data) // 10
    assert _decode(png)[4] == data


def test_bad_components_rejected():
    with pytest.raises(ValueError):
        encode_png(b"\x00" * 25, 1, 1, 5)


def test_short_data_rejected():
    with pytest.raises(ValueError):
        encode_png(b"\x00" * 10, 2, 2, 4)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        encode_png(b"", -1, 2, 4)


def test_write_png_matches_encoder(tmp_path):
    data = _image(3, 3, 4)
    path = tmp_path / "out.png"
    write_png(path, 3, 3, 4, data, 12)
    assert path.read_bytes() == encode_png(data, 3, 3, 4, 12)


def test_zlib_header_bytes():
    out = zlib_compress(b"hello hello hello")
    assert out[:2] == b"\x78\x5e"


@pytest.mark.parametrize(
    "payload",
    [b"", b"a", b"abc", b"abcd", b"abc" * 1000, bytes(range(256)) * 20, b"\x00" * 5000],
)
def test_zlib_round_trip(payload):
    out = zlib_compress(payload)
    if payload:
        assert zlib.decompress(out) == payload
    assert out[-4:] == struct.pack(">I", zlib.adler32(payload))


def test_zlib_repetitive_is_small():
    payload = b"abc" * 1000
    assert len(zlib_compress(payload)) < 100


def test_zlib_falls_back_to_stored_block():
    payload = random.Random(7).randbytes(1000)
    out = zlib_compress(payload)
    assert len(out) <= len(payload) + 2 + 5 + 4
    assert out[2] == 1
    assert zlib.decompress(out) == payload


def test_zlib_stored_blocks_over_window():
    payload = random.Random(11).randbytes(40000)
    out = zlib_compress(payload)
    assert zlib.decompress(out) == payload
    assert len(out) <= len(payload) + 2 + 2 * 5 + 4


def test_zlib_low_quality_is_clamped():
    payload = (b"the quick brown fox " * 50) + bytes(range(200))
    assert zlib_compress(payload, 1) == zlib_compress(payload, 5)


def test_crc32_of_end_tag():
    assert crc32(b"IEND") == 0xAE426082
    assert crc32(b"") == 0


def test_crc32_agrees_with_chunks():
    png = encode_png(b"\x01\x02\x03", 1, 1, 3)
    ihdr_payload = png[16:29]
    assert crc32(b"IHDR" + ihdr_payload) == struct.unpack(">I", png[29:33])[0]


def test_paeth_picks_a_neighbour():
    for a in range(0, 256, 37):
        for b in range(0, 256, 41):
            for c in range(0, 256, 43):
                assert paeth(a, b, c) in (a, b, c)


def test_paeth_equal_inputs():
    assert paeth(9, 9, 9) == 9
    assert paeth(77, 0, 0) == 77