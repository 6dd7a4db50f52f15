# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Camera intrinsic inference from image metadata.

Given one representative image of a camera, its decoded dimensions and the
user overrides, infer the initial intrinsic hypothesis:

1. Reconcile the EXIF brand/model/focal length (synthesize a "Custom" camera
   when they are missing)
2. Detect resized images by comparing EXIF and decoded dimensions
3. Apply the user overrides (K matrix, focal length, sensor width, model)
4. Look up the sensor width and convert the focal length to pixels
5. Choose the camera model and seed known distortions
"""

import logging
import os
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .constants import (
    kCUSTOM_CAMERA_BRAND, kDEFAULT_FOCAL_LENGTH_MM,
    kFISHEYE_FOCAL_LENGTH_THRESHOLD_MM, kGOPRO_BRAND, kGOPRO_FISHEYE1_DISTORTION,
    kGOPRO_FISHEYE4_DISTORTION, kSENSOR_WIDTH_KEY, kUNKNOWN)
from .exceptions import ConfigurationError
from .image_reader import ExifTags
from .intrinsics import (
    CameraModelKind, IntrinsicEstimate, format_optional, parse_k_matrix)
from .sensor_database import SensorDatabase

logger = logging.getLogger(__name__)

kDEFAULT_CAMERA_MODEL = CameraModelKind.RADIAL3


@dataclass(frozen=True)
class UserOverrides:
    """User provided values taking precedence over the image metadata."""
    k_matrix: str = ''
    focal_length_px: float = kUNKNOWN
    sensor_width: float = kUNKNOWN
    camera_model: Optional[CameraModelKind] = None


class InferenceResult(NamedTuple):
    estimate: IntrinsicEstimate
    # Valid metadata, but no sensor width to compute the focal length
    unknown_sensor: bool


class ImageMetadataBuilder:
    """
    Accumulates the metadata of one image and yields an IntrinsicEstimate.

    The builder is created from immutable inputs, the overrides are applied
    in a fixed order by build() so that a builder is never shared half
    configured between images.
    """

    def __init__(self, image_path: str, width: int, height: int, exif: ExifTags):
        self.image_path = image_path
        self.width = width
        self.height = height

        self.ppx = width / 2.0
        self.ppy = height / 2.0
        self.focal_length_px = kUNKNOWN
        self.sensor_width = kUNKNOWN
        self.model_kind: Optional[CameraModelKind] = None

        self.camera_brand = exif.brand
        self.camera_model = exif.model
        self.serial_number = exif.serial_number + exif.lens_serial_number
        self.focal_length_mm = exif.focal_length_mm

        self.has_valid_metadata = bool(
            exif.has_exif and exif.brand and exif.model)
        self.metadata = dict(exif.raw) if self.has_valid_metadata else {}

        image_name = os.path.basename(image_path)
        if not exif.has_exif:
            logger.warning(f"No Exif metadata for image '{image_name}'")
        elif not exif.brand or not exif.model:
            logger.warning(f"No Brand/Model in Exif metadata for image '{image_name}'")

        if not self.camera_brand or not self.camera_model:
            self.camera_brand = kCUSTOM_CAMERA_BRAND
            self.camera_model = kDEFAULT_CAMERA_MODEL.value
            self.focal_length_mm = kDEFAULT_FOCAL_LENGTH_MM

        self.metadata_width, self.metadata_height = self._metadata_dimensions(exif)
        self.is_resized = (self.metadata_width != width or
                           self.metadata_height != height)
        if self.is_resized:
            logger.warning(
                f"Resized image detected '{image_name}':\n"
                f"\t- real image size: {width}x{height}\n"
                f"\t- image size from metadata is: "
                f"{self.metadata_width}x{self.metadata_height}")

    def _metadata_dimensions(self, exif: ExifTags) -> Tuple[int, int]:
        """Image size stated by valid metadata, the real size otherwise."""
        if not self.has_valid_metadata:
            return self.width, self.height

        metadata_width = exif.stated_width if exif.stated_width > 0 else self.width
        metadata_height = exif.stated_height if exif.stated_height > 0 else self.height

        # rotated image
        if metadata_width == self.height and metadata_height == self.width:
            return self.width, self.height
        return metadata_width, metadata_height

    def set_k_matrix(self, k_matrix: str):
        self.focal_length_px, self.ppx, self.ppy = parse_k_matrix(k_matrix)

    def set_focal_length_px(self, focal_length_px: float):
        self.focal_length_px = focal_length_px

    def set_sensor_width(self, sensor_width: float):
        self.sensor_width = sensor_width
        self.metadata[kSENSOR_WIDTH_KEY] = f'{sensor_width:f}'

    def set_model_kind(self, model_kind: CameraModelKind):
        self.model_kind = model_kind

    def compute_sensor_width(self, database: SensorDatabase) -> bool:
        """
        Look up the sensor width of the camera.

        Returns:
            True if the camera has been found in the database
        """
        sensor_width = database.lookup(self.camera_brand, self.camera_model)
        if sensor_width is None:
            return False
        self.set_sensor_width(sensor_width)
        return True

    def _choose_model_kind(self) -> CameraModelKind:
        if self.camera_brand == kCUSTOM_CAMERA_BRAND:
            try:
                return CameraModelKind.from_string(self.camera_model)
            except ConfigurationError:
                logger.warning(
                    f"Camera model '{self.camera_model}' of a '{kCUSTOM_CAMERA_BRAND}' "
                    f"camera is not a known model, use '{kDEFAULT_CAMERA_MODEL.value}'")
                return kDEFAULT_CAMERA_MODEL
        if self.is_resized:
            # a resized image is assumed to be undistorted
            return CameraModelKind.PINHOLE
        if 0 < self.focal_length_mm < kFISHEYE_FOCAL_LENGTH_THRESHOLD_MM:
            return CameraModelKind.FISHEYE4
        return kDEFAULT_CAMERA_MODEL

    def _distortion_params(self, model_kind: CameraModelKind) -> Tuple[float, ...]:
        if self.camera_brand == kGOPRO_BRAND:
            if model_kind == CameraModelKind.FISHEYE4:
                return kGOPRO_FISHEYE4_DISTORTION
            if model_kind == CameraModelKind.FISHEYE1:
                return kGOPRO_FISHEYE1_DISTORTION
        return model_kind.default_distortion()

    def compute_intrinsic(self) -> IntrinsicEstimate:
        """Build the intrinsic estimate from the accumulated metadata."""
        image_name = os.path.basename(self.image_path)

        focal_length_px = self.focal_length_px
        if focal_length_px == kUNKNOWN:
            if self.focal_length_mm <= 0:
                logger.warning(
                    f"Image '{image_name}' focal length (in mm) metadata is missing.\n"
                    f"Can't compute focal length (in px).")
            elif self.sensor_width > 0:
                focal_length_px = (max(self.metadata_width, self.metadata_height) *
                                   self.focal_length_mm / self.sensor_width)

        model_kind = self.model_kind or self._choose_model_kind()

        if focal_length_px <= 0 or self.ppx <= 0 or self.ppy <= 0:
            logger.warning(
                f"No intrinsics for '{image_name}':\n"
                f"\t- width: {self.width}\n"
                f"\t- height: {self.height}\n"
                f"\t- camera brand: {self.camera_brand or 'unknown'}\n"
                f"\t- camera model: {self.camera_model or 'unknown'}\n"
                f"\t- sensor width: {format_optional(self.sensor_width)}\n"
                f"\t- focal length (mm): {format_optional(self.focal_length_mm)}\n"
                f"\t- focal length (px): {format_optional(focal_length_px)}\n"
                f"\t- ppx: {format_optional(self.ppx)}\n"
                f"\t- ppy: {format_optional(self.ppy)}")

        return IntrinsicEstimate(
            camera_brand=self.camera_brand,
            camera_model=self.camera_model,
            width=self.width,
            height=self.height,
            ppx=self.ppx,
            ppy=self.ppy,
            model_kind=model_kind,
            focal_length_px=focal_length_px,
            focal_length_mm=self.focal_length_mm,
            sensor_width=self.sensor_width,
            distortion_params=self._distortion_params(model_kind),
            serial_number=self.serial_number if self.has_valid_metadata else '',
            has_valid_metadata=self.has_valid_metadata,
            is_resized=self.is_resized,
            metadata=dict(self.metadata))

    def build(self, overrides: UserOverrides,
              database: SensorDatabase) -> InferenceResult:
        """
        Apply the overrides in order and compute the intrinsic.

        Args:
            overrides: User provided values
            database: Sensor width database

        Returns:
            InferenceResult
        """
        if overrides.camera_model is not None:
            self.set_model_kind(overrides.camera_model)

        if overrides.k_matrix:
            self.set_k_matrix(overrides.k_matrix)

        if overrides.focal_length_px != kUNKNOWN:
            self.set_focal_length_px(overrides.focal_length_px)

        unknown_sensor = False
        if overrides.sensor_width != kUNKNOWN:
            self.set_sensor_width(overrides.sensor_width)
        elif not self.compute_sensor_width(database):
            unknown_sensor = (self.has_valid_metadata and
                              self.focal_length_px == kUNKNOWN)

        return InferenceResult(self.compute_intrinsic(), unknown_sensor)


def infer_intrinsic(image_path: str,
                    width: int,
                    height: int,
                    overrides: UserOverrides,
                    exif: ExifTags,
                    database: SensorDatabase) -> InferenceResult:
    """
    Infer the initial intrinsic of the camera that took an image.

    Args:
        image_path: Path of the image
        width: Decoded image width
        height: Decoded image height
        overrides: User provided values
        exif: EXIF tags of the image
        database: Sensor width database

    Returns:
        InferenceResult with the estimate and whether the sensor is unknown
    """
    builder = ImageMetadataBuilder(image_path, width, height, exif)
    return builder.build(overrides, database)
