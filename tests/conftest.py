# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures: an ImageReader serving canned headers and EXIF tags."""

from dataclasses import dataclass, field
from typing import Dict, Optional

import pytest

from pycaminit.image_reader import ExifTags, ImageReader


@dataclass
class FakeImage:
    width: int = 4000
    height: int = 3000
    exif: ExifTags = field(default_factory=ExifTags)
    format: Optional[str] = 'JPEG'
    readable: bool = True


class FakeImageReader(ImageReader):
    """ImageReader answering from a path -> FakeImage mapping."""

    def __init__(self, images: Optional[Dict[str, FakeImage]] = None):
        self.images = dict(images or {})

    def add(self, path: str, **kwargs) -> str:
        self.images[path] = FakeImage(**kwargs)
        return path

    def read_format(self, image_path):
        image = self.images.get(image_path)
        return image.format if image else None

    def read_header(self, image_path):
        image = self.images.get(image_path)
        if image is None or not image.readable:
            return None
        return image.width, image.height

    def read_exif(self, image_path):
        image = self.images.get(image_path)
        return image.exif if image else ExifTags()


def camera_exif(brand='Canon', model='Canon EOS 5D', focal_length_mm=50.0,
                stated_width=0, stated_height=0, serial_number='',
                date_time_original='') -> ExifTags:
    return ExifTags(brand=brand,
                    model=model,
                    serial_number=serial_number,
                    date_time_original=date_time_original,
                    focal_length_mm=focal_length_mm,
                    stated_width=stated_width,
                    stated_height=stated_height,
                    has_exif=True,
                    raw={'Make': brand, 'Model': model})


@pytest.fixture
def reader():
    return FakeImageReader()
