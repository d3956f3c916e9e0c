# raylite

An RGBA colour type and self-contained image writers for PNG, BMP, TGA and
Radiance HDR. Everything is written in plain Python and needs nothing outside
the standard library.

## Installing

    pip install .

## Pixel data

The PNG, BMP and TGA writers take pixel data as bytes. The bytes are laid out
row by row, starting with the top-left pixel. Each pixel has 1 to 4 interleaved
8-bit channels: Y, YA, RGB or RGBA. The HDR writer takes a sequence of linear
floats in the same layout. Every encoder raises `ValueError` for these inputs:

- a channel count outside 1..4
- a bad size: negative for PNG, BMP and TGA, or not positive for HDR
- data that is shorter than the image needs

## Example

    from raylite.color import Color
    from raylite.png import encode_png, write_png
    from raylite.bmptga import write_bmp, write_tga
    from raylite.hdr import write_hdr

    width, height = 64, 32
    red = Color(255, 0, 0)
    pixels = bytearray()
    for y in range(height):
        for x in range(width):
            pixels += bytes((red.r * x // width, red.g, red.b, red.a))

    write_png("gradient.png", width, height, 4, bytes(pixels))
    write_bmp("gradient.bmp", width, height, 4, bytes(pixels))
    write_tga("gradient.tga", width, height, 4, bytes(pixels))
    png_bytes = encode_png(bytes(pixels), width, height, 4, flip=True)

    floats = [x / width for y in range(height) for x in range(width)]
    write_hdr("gradient.hdr", width, height, 1, floats)

## Modules

### `raylite.color`

- `Color(r=0, g=0, b=0, a=255)` is a frozen dataclass. Each channel must be an
  integer in 0..255; any other value raises `ValueError`.
- `Color.describe()` returns a multi-line listing of the channels.
- `print_color(color)` prints that listing.

### `raylite.png`

- `encode_png(data, width, height, components, stride_bytes=0, force_filter=-1, compression_level=8, flip=False)`
  returns a complete PNG file as bytes.
  - A `stride_bytes` of 0 means the rows are packed with no gaps.
  - A `force_filter` of 0 to 4 uses that PNG filter on every row. Any other
    value picks, for each row, the filter with the smallest estimated cost.
  - With `flip` set, the rows are written bottom-up.
- `write_png(path, width, height, components, data, stride_bytes=0)` encodes
  the image and writes it to `path`.
- `zlib_compress(data, quality=8)` compresses data into a zlib stream, using
  fixed Huffman codes and hash chains whose length is bounded by `quality`
  (at least 5). If stored blocks would be smaller, it emits stored blocks
  instead.
- `crc32(data)` returns the CRC-32 that PNG chunks use.
- `paeth(a, b, c)` returns the Paeth predictor.

### `raylite.bmptga`

- `encode_bmp(data, width, height, components, flip=False)` returns a BMP file.
  - Four-channel images become 32-bit BGRA bitmaps with a V4 header.
  - Other images become 24-bit bitmaps. Grey is expanded to RGB, and grey
    alpha is dropped.
- `write_bmp(path, width, height, components, data)` writes a BMP to `path`.
- `encode_tga(data, width, height, components, rle=True, flip=False)` returns a
  TGA file. When `rle` is set, it is run-length encoded.
- `write_tga(path, width, height, components, data)` writes a run-length
  encoded TGA to `path`.

Both formats store rows bottom-up unless `flip` is set.

### `raylite.hdr`

- `linear_to_rgbe(red, green, blue)` converts one linear triple to its four
  RGBE bytes.
- `encode_hdr(data, width, height, components, flip=False)` returns a Radiance
  HDR file.
  - Alpha is dropped.
  - Grey is copied to all three colour channels.
  - Scanlines 8 to 32767 pixels wide are run-length encoded.
- `write_hdr(path, width, height, components, data)` writes an HDR file to
  `path`.

## What it does not do

This package contains no renderer. It has no scene, camera, light or sphere
types, and no ray tracing. It also has no command-line program, so nothing
renders frames to disk for you: you supply the pixels yourself. It does not
write JPEG files, and it reads no image format at all.

## Running the tests

    pip install .[test]
    pytest