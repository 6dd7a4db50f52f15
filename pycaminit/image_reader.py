# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Image header and EXIF access.

ImageReader is the seam between the camera initialization logic and the
image files: format probing, header reading, EXIF extraction and stable view
identifiers. The default implementation relies on Pillow, tests replace it
with a subclass serving canned values.
"""

import hashlib
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from PIL import ExifTags as PilExifTags
from PIL import Image, UnidentifiedImageError

from .constants import kIMAGE_HEIGHT_KEY, kIMAGE_WIDTH_KEY, kUNKNOWN

logger = logging.getLogger(__name__)

# EXIF tag ids
kEXIF_IFD = 0x8769
kTAG_MAKE = 271
kTAG_MODEL = 272
kTAG_IMAGE_UNIQUE_ID = 42016
kTAG_BODY_SERIAL_NUMBER = 42033
kTAG_LENS_SERIAL_NUMBER = 42037
kTAG_FOCAL_LENGTH = 37386
kTAG_DATE_TIME_ORIGINAL = 36867
kTAG_SUBSEC_TIME_ORIGINAL = 37521
kTAG_PIXEL_X_DIMENSION = 40962
kTAG_PIXEL_Y_DIMENSION = 40963


@dataclass(frozen=True)
class ExifTags:
    """Camera related EXIF tags of one image."""
    brand: str = ''
    model: str = ''
    serial_number: str = ''
    lens_serial_number: str = ''
    image_unique_id: str = ''
    date_time_original: str = ''
    sub_sec_time_original: str = ''
    focal_length_mm: float = kUNKNOWN
    stated_width: int = 0
    stated_height: int = 0
    has_exif: bool = False
    raw: Dict[str, str] = field(default_factory=dict)


def _to_text(value) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='ignore').strip('\x00 ').strip()
    return str(value).strip('\x00 ').strip()


def _to_float(value, default: float) -> float:
    # 0/0 rationals read as nan
    try:
        value = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return default
    return value if math.isfinite(value) else default


def _to_int(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class ImageReader:
    """Pillow based access to image headers and EXIF metadata."""

    def read_format(self, image_path: str) -> Optional[str]:
        """
        Probe the image format.

        Returns:
            Format name (e.g. "JPEG"), or None if the format is unknown
        """
        try:
            with Image.open(image_path) as image:
                return image.format
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Unknown image format '{image_path}': {e}")
            return None

    def read_header(self, image_path: str) -> Optional[Tuple[int, int]]:
        """
        Read image dimensions without decoding the pixels.

        Returns:
            (width, height), or None if the header can't be read
        """
        try:
            with Image.open(image_path) as image:
                return image.size
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Can't read image header '{image_path}': {e}")
            return None

    def read_exif(self, image_path: str) -> ExifTags:
        """
        Extract the camera related EXIF tags.

        Images without EXIF, or that can't be opened, give an empty ExifTags
        with has_exif set to False.
        """
        try:
            with Image.open(image_path) as image:
                exif = image.getexif()
                exif_ifd = dict(exif.get_ifd(kEXIF_IFD))
                base_ifd = dict(exif)
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Can't read EXIF of '{image_path}': {e}")
            return ExifTags()

        if not base_ifd and not exif_ifd:
            return ExifTags()

        tags = {**base_ifd, **exif_ifd}
        raw = {}
        for tag_id, value in tags.items():
            if tag_id == kEXIF_IFD:
                continue
            name = PilExifTags.TAGS.get(tag_id, str(tag_id))
            raw[name] = _to_text(value)

        stated_width = _to_int(tags.get(kTAG_PIXEL_X_DIMENSION))
        stated_height = _to_int(tags.get(kTAG_PIXEL_Y_DIMENSION))
        if stated_width > 0:
            raw[kIMAGE_WIDTH_KEY] = str(stated_width)
        if stated_height > 0:
            raw[kIMAGE_HEIGHT_KEY] = str(stated_height)

        return ExifTags(
            brand=_to_text(tags.get(kTAG_MAKE, '')),
            model=_to_text(tags.get(kTAG_MODEL, '')),
            serial_number=_to_text(tags.get(kTAG_BODY_SERIAL_NUMBER, '')),
            lens_serial_number=_to_text(tags.get(kTAG_LENS_SERIAL_NUMBER, '')),
            image_unique_id=_to_text(tags.get(kTAG_IMAGE_UNIQUE_ID, '')),
            date_time_original=_to_text(tags.get(kTAG_DATE_TIME_ORIGINAL, '')),
            sub_sec_time_original=_to_text(tags.get(kTAG_SUBSEC_TIME_ORIGINAL, '')),
            focal_length_mm=_to_float(tags.get(kTAG_FOCAL_LENGTH), kUNKNOWN),
            stated_width=stated_width,
            stated_height=stated_height,
            has_exif=True,
            raw=raw)

    def compute_view_id(self, exif: ExifTags, image_path: str) -> int:
        """
        Compute a stable view identifier from EXIF content and path.

        Unique id and serial numbers identify the device, the file name is
        used when none is available. The original capture time is used when
        available, the full path otherwise.

        Returns:
            Non-negative 31-bit integer
        """
        parts = []
        if exif.image_unique_id or exif.serial_number or exif.lens_serial_number:
            parts += [exif.image_unique_id, exif.serial_number,
                      exif.lens_serial_number]
        else:
            parts.append(os.path.basename(image_path))

        if exif.date_time_original:
            parts += [exif.date_time_original, exif.sub_sec_time_original]
        else:
            parts.append(os.path.normpath(os.path.abspath(image_path)))

        parts += [str(exif.stated_width), str(exif.stated_height)]

        digest = hashlib.sha1('\x1f'.join(parts).encode('utf-8')).digest()
        return int.from_bytes(digest[:4], 'big') & 0x7FFFFFFF
