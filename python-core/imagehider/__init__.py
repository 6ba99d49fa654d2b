"""
imagehider - Hide a grayscale image inside another image.

The luminance of every hidden pixel is split into four 2-bit fields which
replace the low bits of the carrier's alpha, red, green and blue channels.

Modules:
    pixels: PixelBuffer, the in-memory ARGB pixel grid
    codec: Luminance, modulo rounding, embed and extract transforms
    image: File handling around the codec (ImageHider)

Usage:
    >>> from imagehider import ImageHider
    >>> hider = ImageHider()
    >>> hider.hide("carrier.png", "secret.jpg", "encoded.png")
    >>> hider.reveal("encoded.png", "revealed.png")
"""

from .pixels import PixelBuffer, PixelBufferError, Pixel
from .codec import (
    ChannelOrder,
    luminance,
    round_to_match_modulo,
    split_luminance,
    join_fields,
    embed,
    extract,
)
from .image import (
    ImageHider,
    HideResult,
    ImageHiderError,
    InvalidExtensionError,
    ImageReadError,
    ImageDecodeError,
    ImageWriteError,
    has_valid_extension,
    load_pixels,
    save_pixels,
)

__all__ = [
    "PixelBuffer",
    "PixelBufferError",
    "Pixel",
    "ChannelOrder",
    "luminance",
    "round_to_match_modulo",
    "split_luminance",
    "join_fields",
    "embed",
    "extract",
    "ImageHider",
    "HideResult",
    "ImageHiderError",
    "InvalidExtensionError",
    "ImageReadError",
    "ImageDecodeError",
    "ImageWriteError",
    "has_valid_extension",
    "load_pixels",
    "save_pixels",
]

__version__ = "1.0.0"
