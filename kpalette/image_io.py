# kpalette/image_io.py
from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageCms, ImageOps, UnidentifiedImageError

from .core_types import DecodeError, InvalidInput, Raster, as_raster_3d
from .utils import warn

"""
Image decode / encode for the host side: RGBA in sRGB in, PNG out.
"""

_DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def _convert_to_srgb_rgba(im: Image.Image) -> Image.Image:
    im = ImageOps.exif_transpose(im)
    icc_bytes = im.info.get("icc_profile")

    if icc_bytes:
        try:
            src_prof = ImageCms.ImageCmsProfile(io.BytesIO(icc_bytes))
            dst_prof = ImageCms.createProfile("sRGB")
            im2 = ImageCms.profileToProfile(
                im,
                src_prof,
                dst_prof,
                renderingIntent=ImageCms.Intent.PERCEPTUAL,
                outputMode="RGBA",
            )
            if im2 is not None:
                return im2
        except (ImageCms.PyCMSError, OSError) as e:
            warn(f"ignoring unusable ICC profile ({e})")

    return im.convert("RGBA")


def _decode(source: Union[Path, io.BytesIO], label: str) -> Raster:
    try:
        with Image.open(source) as im0:
            im0.load()
            im = _convert_to_srgb_rgba(im0)
            return np.array(im, dtype=np.uint8)
    except _DECODE_ERRORS as e:
        raise DecodeError(f"cannot decode {label}: {e}") from e


def decode_image(data: bytes) -> Raster:
    """Decode encoded image bytes into an RGBA uint8 (H, W, 4) array."""
    return _decode(io.BytesIO(data), "image bytes")


def load_image(path: Path) -> Raster:
    """Load an image file into an RGBA uint8 (H, W, 4) array."""
    path = Path(path)
    if not path.is_file():
        raise DecodeError(f"cannot decode {path}: not a file")
    return _decode(path, str(path))


def _to_pil(raster: Raster) -> Image.Image:
    arr = as_raster_3d(raster)
    if arr.dtype != np.uint8:
        raise InvalidInput(f"PNG encoding expects uint8 samples, got {arr.dtype}")
    C = arr.shape[2]
    if C == 1:
        return Image.fromarray(np.ascontiguousarray(arr[..., 0]))
    if C == 2:
        return Image.merge(
            "LA", [Image.fromarray(np.ascontiguousarray(arr[..., c])) for c in range(2)]
        )
    if C in (3, 4):
        return Image.fromarray(np.ascontiguousarray(arr))
    raise InvalidInput(f"PNG encoding supports 1-4 channels, got {C}")


def encode_png(raster: Raster) -> bytes:
    """Encode a uint8 raster as PNG bytes."""
    buf = io.BytesIO()
    _to_pil(raster).save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(raster: Raster) -> str:
    """PNG data URL suitable for embedding in HTML."""
    return "data:image/png;base64," + base64.b64encode(encode_png(raster)).decode("ascii")


def save_image(path: Path, raster: Raster) -> Path:
    """Write raster as PNG, forcing a .png suffix. Returns the written path."""
    path = Path(path)
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    path.write_bytes(encode_png(raster))
    return path


__all__ = [
    "decode_image",
    "load_image",
    "encode_png",
    "to_data_url",
    "save_image",
]
