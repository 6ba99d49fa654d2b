"""
Image File Module.

This module wraps the hiding codec with file handling: extension checks,
decoding with Pillow, encoding the result and reporting what was done.

All failures are raised as subclasses of ImageHiderError carrying a numeric
code, so callers can tell a rejected filename from an unreadable file or a
failed write without parsing messages. A transform only runs after both of
its inputs decoded successfully, and output is written only after the
transform has completed.
"""

import hashlib
import logging
import os
import threading
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from .codec import ChannelOrder, FACTOR, embed, extract, luminance_array
from .pixels import PixelBuffer, ALPHA, RED, GREEN, BLUE


logger = logging.getLogger(__name__)


# Extensions accepted for input images
SUPPORTED_EXTENSIONS = frozenset({"bmp", "gif", "jpeg", "jpg", "png", "wpng"})

# Pillow format name for each accepted extension
_SAVE_FORMATS = {
    "bmp": "BMP",
    "gif": "GIF",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "png": "PNG",
    "wpng": "PNG",
}

# Formats that cannot hold an alpha channel; revealed images are written as L
_GRAYSCALE_FORMATS = frozenset({"GIF", "JPEG"})

# Errors Pillow raises for content it cannot decode
_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


class ImageHiderError(Exception):
    """Base exception for image hiding failures."""

    def __init__(self, message: str, code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        base = f"{type(self).__name__}: {self.message}"
        if self.code:
            base += f" (Code: {self.code})"
        return base


class InvalidExtensionError(ImageHiderError):
    """Raised when an input or output filename has an unusable extension."""


class ImageReadError(ImageHiderError):
    """Raised when an image file is missing or cannot be read."""


class ImageDecodeError(ImageHiderError):
    """Raised when a file's contents are not a decodable image."""


class ImageWriteError(ImageHiderError):
    """Raised when the output image cannot be encoded or written."""


@dataclass
class HideResult:
    """
    Result of a hide or reveal operation.

    Attributes:
        success: Whether the output was written
        output_path: Path of the written image
        message: Human-readable summary
        width: Output width in pixels
        height: Output height in pixels
        covered: Number of pixels carrying hidden data
        checksum: SHA-256 of the written file
    """

    success: bool
    output_path: Optional[str]
    message: str
    width: int
    height: int
    covered: int
    checksum: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert the result to a JSON-serializable dictionary."""
        return {
            "success": self.success,
            "output_path": self.output_path,
            "message": self.message,
            "width": self.width,
            "height": self.height,
            "covered": self.covered,
            "checksum": self.checksum,
        }


def get_extension(filename: str) -> str:
    """Return the lower-cased text after the last dot of `filename`."""
    return filename.rsplit(".", 1)[-1].lower()


def has_valid_extension(filename: str) -> bool:
    """Return True if `filename` ends with an accepted image extension."""
    return "." in filename and get_extension(filename) in SUPPORTED_EXTENSIONS


def load_pixels(path: str) -> PixelBuffer:
    """
    Decode an image file into a PixelBuffer.

    Args:
        path: Image file to read

    Returns:
        Decoded pixels

    Raises:
        ImageDecodeError: If the file is not a recognizable image
        ImageReadError: If the file cannot be opened or read
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise ImageReadError(
            f"Cannot read image {path}: {e}",
            code=2002,
            details={"path": path}
        ) from e

    with f:
        try:
            with Image.open(f) as img:
                img.load()
                buffer = PixelBuffer.from_image(img)
        except _DECODE_ERRORS as e:
            raise ImageDecodeError(
                f"Cannot decode image {path}: {e}",
                code=2003,
                details={"path": path, "reason": str(e)}
            ) from e

    logger.debug(f"Loaded {path}: {buffer.width}x{buffer.height}")
    return buffer


def save_pixels(buffer: PixelBuffer, path: str, grayscale: bool = False) -> str:
    """
    Encode a PixelBuffer to `path`, choosing the format from the extension.

    Args:
        buffer: Pixels to write
        path: Destination file
        grayscale: Write a single luminance channel where the format needs it

    Returns:
        SHA-256 hex digest of the written file

    Raises:
        InvalidExtensionError: If the extension has no known format
        ImageWriteError: If encoding or writing fails
    """
    extension = get_extension(path)
    fmt = _SAVE_FORMATS.get(extension)
    if fmt is None:
        raise InvalidExtensionError(
            f"No image format for extension '{extension}'",
            code=2001,
            details={"path": path}
        )

    mode = "L" if grayscale and fmt in _GRAYSCALE_FORMATS else "RGBA"
    if mode == "RGBA" and fmt == "JPEG":
        mode = "RGB"

    try:
        buffer.to_image(mode).save(path, format=fmt)
        with open(path, "rb") as f:
            checksum = hashlib.sha256(f.read()).hexdigest()
    except (OSError, ValueError) as e:
        raise ImageWriteError(
            f"Cannot write image {path}: {e}",
            code=2004,
            details={"path": path, "format": fmt}
        ) from e

    logger.debug(f"Wrote {path} as {fmt} ({mode})")
    return checksum


class ImageHider:
    """
    File-level interface for hiding and revealing images.

    Attributes:
        channel_order: Channel pairing used by reveal and by output verification

    Example:
        >>> hider = ImageHider()
        >>> result = hider.hide("carrier.png", "secret.jpg", "encoded.png")
        >>> hider.reveal("encoded.png", "revealed.png")
    """

    DEFAULT_SETTINGS = {
        "channel_order": ChannelOrder.LEGACY,
        # Hide output must survive bit-exact; only PNG keeps alpha losslessly
        "hide_output_format": "png",
        "verify_output": False,
    }

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        """
        Initialize the hider.

        Args:
            settings: Overrides for DEFAULT_SETTINGS. channel_order may be
                      given as a ChannelOrder or its string value.
        """
        merged = dict(self.DEFAULT_SETTINGS)
        merged.update(settings or {})
        merged["channel_order"] = ChannelOrder(merged["channel_order"])
        self._settings = merged
        self._lock = threading.Lock()

        logger.info(f"ImageHider initialized with channel_order={merged['channel_order'].value}")

    @property
    def channel_order(self) -> ChannelOrder:
        return self._settings["channel_order"]

    @property
    def settings(self) -> Dict[str, Any]:
        return dict(self._settings)

    def _require_input_extension(self, path: str) -> None:
        if not has_valid_extension(path):
            raise InvalidExtensionError(
                f"Invalid file extension for {path}. "
                f"Use only {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
                code=2001,
                details={"path": path, "allowed": sorted(SUPPORTED_EXTENSIONS)}
            )

    def coverage(self, carrier_path: str, hidden_path: str) -> Tuple[int, int]:
        """
        Return the (width, height) region of the carrier that will hold data.

        Raises:
            InvalidExtensionError, ImageReadError, ImageDecodeError
        """
        self._require_input_extension(carrier_path)
        self._require_input_extension(hidden_path)
        carrier = load_pixels(carrier_path)
        hidden = load_pixels(hidden_path)
        return min(carrier.width, hidden.width), min(carrier.height, hidden.height)

    def hide(self, carrier_path: str, hidden_path: str, output_path: str, **kwargs) -> HideResult:
        """
        Hide the grayscale version of one image inside another.

        Args:
            carrier_path: Image to alter
            hidden_path: Image to conceal
            output_path: Destination, must use the lossless output format
            **kwargs: Per-call overrides for verify_output

        Returns:
            HideResult describing the written file

        Raises:
            InvalidExtensionError: If any filename is rejected
            ImageReadError, ImageDecodeError: If an input cannot be loaded
            ImageWriteError: If the output cannot be written or fails verification;
                             a file that fails verification is removed
        """
        self._require_input_extension(carrier_path)
        self._require_input_extension(hidden_path)
        output_format = self._settings["hide_output_format"]
        if get_extension(output_path) != output_format:
            raise InvalidExtensionError(
                f"Output must be a .{output_format} file, got {output_path}",
                code=2001,
                details={"path": output_path, "allowed": [output_format]}
            )
        verify = kwargs.get("verify_output", self._settings["verify_output"])

        with self._lock:
            carrier = load_pixels(carrier_path)
            hidden = load_pixels(hidden_path)

            encoded = embed(carrier, hidden)
            checksum = save_pixels(encoded, output_path)

            width = min(carrier.width, hidden.width)
            height = min(carrier.height, hidden.height)
            if verify:
                try:
                    self._verify_written(output_path, hidden, width, height)
                except ImageHiderError:
                    os.remove(output_path)
                    raise

        logger.info(f"Hid {hidden_path} in {carrier_path} -> {output_path}")
        return HideResult(
            success=True,
            output_path=output_path,
            message=f"Image hidden successfully ({width}x{height} pixels encoded)",
            width=encoded.width,
            height=encoded.height,
            covered=width * height,
            checksum=checksum,
        )

    def reveal(self, encoded_path: str, output_path: str) -> HideResult:
        """
        Recover the hidden grayscale image from an encoded file.

        Args:
            encoded_path: Image produced by hide
            output_path: Destination, any accepted extension

        Returns:
            HideResult describing the written file

        Raises:
            InvalidExtensionError: If either filename is rejected
            ImageReadError, ImageDecodeError: If the input cannot be loaded
            ImageWriteError: If the output cannot be written
        """
        self._require_input_extension(encoded_path)
        self._require_input_extension(output_path)

        with self._lock:
            encoded = load_pixels(encoded_path)
            revealed = extract(encoded, self.channel_order)
            checksum = save_pixels(revealed, output_path, grayscale=True)

        logger.info(f"Revealed {encoded_path} -> {output_path}")
        return HideResult(
            success=True,
            output_path=output_path,
            message="Image revealed successfully",
            width=revealed.width,
            height=revealed.height,
            covered=revealed.width * revealed.height,
            checksum=checksum,
        )

    def _verify_written(self, output_path: str, hidden: PixelBuffer, width: int, height: int) -> None:
        """Check that the written file decodes to the embedded fields."""
        written = load_pixels(output_path).array[:height, :width].astype(np.int32)
        region = hidden.array[:height, :width]
        lum = luminance_array(region[:, :, RED], region[:, :, GREEN], region[:, :, BLUE]).astype(np.int32)

        for channel, shift in ((ALPHA, 6), (RED, 4), (GREEN, 2), (BLUE, 0)):
            expected = (lum >> shift) & 3
            if not np.array_equal(written[:, :, channel] % FACTOR, expected):
                raise ImageWriteError(
                    f"Verification of {output_path} failed",
                    code=2005,
                    details={"path": output_path, "channel": channel}
                )
        logger.debug(f"Verified {width * height} pixels in {output_path}")
