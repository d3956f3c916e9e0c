[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "raylite"
version = "0.1.0"
description = "RGBA colours and pure-Python PNG, BMP, TGA and Radiance HDR image writers"
requires-python = ">=3.10"
dependencies = []
keywords = ["png", "bmp", "tga", "hdr", "rgbe", "deflate", "image writer", "color"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["raylite"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
