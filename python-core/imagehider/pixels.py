"""
Pixel Buffer Module.

This module provides the in-memory pixel representation exchanged between
the image decoder, the hide/reveal transforms and the image encoder.

A PixelBuffer stores four 8-bit channels per pixel in the order
alpha, red, green, blue, backed by a numpy array of shape
(height, width, 4). Buffers never share memory: every constructor copies
its input and every transform allocates a fresh output.
"""

import logging
from typing import NamedTuple, Optional, Tuple, Dict, Any

import numpy as np
from PIL import Image


logger = logging.getLogger(__name__)


# Channel indices in the last axis of a PixelBuffer array
ALPHA = 0
RED = 1
GREEN = 2
BLUE = 3

CHANNELS = (ALPHA, RED, GREEN, BLUE)

# 16-bit grayscale modes Pillow uses for 16-bit PNGs
_WIDE_GRAY_MODES = frozenset({"I", "I;16", "I;16B", "I;16L"})


class PixelBufferError(Exception):
    """Exception raised for malformed pixel buffers."""

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"PixelBufferError: {self.message}"
        if self.code:
            base += f" (Code: {self.code})"
        return base


class Pixel(NamedTuple):
    """A single pixel with its four channel values."""

    alpha: int
    red: int
    green: int
    blue: int


class PixelBuffer:
    """
    A width x height grid of ARGB pixels.

    Attributes:
        array: Read-only view of the underlying uint8 array, shape (height, width, 4)
        width: Number of columns
        height: Number of rows

    Example:
        >>> buf = PixelBuffer.blank(2, 2, (255, 0, 0, 0))
        >>> buf.pixel(1, 0)
        Pixel(alpha=255, red=0, green=0, blue=0)
    """

    def __init__(self, array: np.ndarray):
        """
        Wrap a copy of an ARGB array.

        Args:
            array: Array of shape (height, width, 4) with values in [0, 255]

        Raises:
            PixelBufferError: If the array has the wrong shape, a non-integer dtype or out-of-range values
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 4:
            raise PixelBufferError(
                f"Expected array of shape (height, width, 4), got {array.shape}",
                code=1001,
                details={"shape": tuple(array.shape)}
            )
        if not np.issubdtype(array.dtype, np.integer):
            raise PixelBufferError(
                f"Channel values must be integers, got dtype {array.dtype}",
                code=1004,
                details={"dtype": str(array.dtype)}
            )
        if array.dtype != np.uint8:
            if array.size and (array.min() < 0 or array.max() > 255):
                raise PixelBufferError(
                    "Channel values must be within [0, 255]",
                    code=1002,
                )
            array = array.astype(np.uint8)
        else:
            array = array.copy()

        array.setflags(write=False)
        self._array = array

    @classmethod
    def blank(cls, width: int, height: int, fill: Tuple[int, int, int, int] = (255, 0, 0, 0)) -> "PixelBuffer":
        """Create a buffer filled with a single ARGB color."""
        if width < 0 or height < 0:
            raise PixelBufferError(f"Invalid dimensions {width}x{height}", code=1003)
        array = np.empty((height, width, 4), dtype=np.uint8)
        array[:, :] = fill
        return cls(array)

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        """
        Build a buffer from a PIL image.

        The image is converted to RGBA first, so palette, grayscale and RGB
        images all come out fully described; images without alpha get an
        opaque alpha channel. 16-bit grayscale images are scaled down to
        8 bits rather than clipped.

        Args:
            image: Decoded PIL image

        Returns:
            PixelBuffer holding the image's pixels
        """
        if image.mode in _WIDE_GRAY_MODES:
            wide = np.clip(np.array(image, dtype=np.int64), 0, 0xFFFF)
            image = Image.fromarray((wide >> 8).astype(np.uint8))

        if image.mode != "RGBA":
            logger.debug(f"Converting image from mode {image.mode} to RGBA")
            image = image.convert("RGBA")

        rgba = np.array(image, dtype=np.uint8).reshape(image.size[1], image.size[0], 4)
        # RGBA -> ARGB
        return cls(rgba[:, :, [3, 0, 1, 2]])

    def to_image(self, mode: str = "RGBA") -> Image.Image:
        """
        Convert the buffer to a PIL image.

        Args:
            mode: Target PIL mode ("RGBA", "RGB" or "L")

        Returns:
            New PIL image
        """
        rgba = np.ascontiguousarray(self._array[:, :, [1, 2, 3, 0]])
        image = Image.fromarray(rgba, "RGBA")
        if mode != "RGBA":
            image = image.convert(mode)
        return image

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def width(self) -> int:
        return self._array.shape[1]

    @property
    def height(self) -> int:
        return self._array.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), matching PIL's convention."""
        return self.width, self.height

    def pixel(self, col: int, row: int) -> Pixel:
        """Return the pixel at column `col`, row `row`."""
        if not (0 <= col < self.width and 0 <= row < self.height):
            raise IndexError(f"Pixel ({col}, {row}) outside {self.width}x{self.height} buffer")
        a, r, g, b = (int(v) for v in self._array[row, col])
        return Pixel(a, r, g, b)

    def channel(self, index: int) -> np.ndarray:
        """Return one channel as a (height, width) array."""
        return self._array[:, :, index]

    def copy_array(self) -> np.ndarray:
        """Return a writable copy of the underlying array."""
        return self._array.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self._array.shape == other._array.shape and bool(np.array_equal(self._array, other._array))

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"
