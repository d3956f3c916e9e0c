"""RGBA colours and pure-Python PNG, BMP, TGA and Radiance HDR image writers."""

__version__ = "0.1.0"