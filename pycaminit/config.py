# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Camera initialization options.

Options can be given in a YAML file, command line arguments take precedence:

    image_directory: /data/images
    sensor_database: /data/cameraSensors.db
    output_dir: /data/out
    default_camera_model: radial3
    group_camera_model: 1
"""

import logging
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Dict, Optional

import yaml

from .constants import kUNKNOWN
from .exceptions import ConfigurationError
from .image_metadata import UserOverrides
from .intrinsics import CameraModelKind, parse_k_matrix

logger = logging.getLogger(__name__)


class GroupCameraModel(IntEnum):
    # each view has its own camera intrinsic parameters
    NONE = 0
    # views share intrinsics based on metadata, without metadata each view
    # has its own intrinsic
    METADATA = 1
    # views share intrinsics based on metadata, without metadata they are
    # grouped by folder
    FOLDER = 2


@dataclass
class CameraInitOptions:
    image_directory: str = ''
    manifest_file: str = ''
    sensor_database: str = ''
    output_dir: str = ''
    default_focal_length_pix: float = kUNKNOWN
    default_sensor_width: float = kUNKNOWN
    default_intrinsics: str = ''
    default_camera_model: str = ''
    group_camera_model: int = int(GroupCameraModel.METADATA)
    verbose_level: str = 'info'

    def update(self, values: Dict):
        """Overwrite options with the non None values of a dictionary."""
        known = {f.name for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                logger.warning(f"Unknown option '{key}' ignored")
                continue
            if value is not None:
                setattr(self, key, value)

    def validate(self) -> UserOverrides:
        """
        Check the options for conflicts before any image is read.

        Returns:
            UserOverrides for the intrinsic inference

        Raises:
            ConfigurationError: If the options are conflicting or malformed
        """
        if self.image_directory and self.manifest_file:
            raise ConfigurationError(
                "Cannot combine image directory and manifest file options")
        if not self.image_directory and not self.manifest_file:
            raise ConfigurationError(
                "An image directory or a manifest file is required")

        if self.default_intrinsics and self.default_focal_length_pix != kUNKNOWN:
            raise ConfigurationError(
                "Cannot combine default focal length and default intrinsics options")

        if self.default_intrinsics:
            parse_k_matrix(self.default_intrinsics)

        camera_model = None
        if self.default_camera_model:
            camera_model = CameraModelKind.from_string(self.default_camera_model)

        try:
            GroupCameraModel(int(self.group_camera_model))
        except ValueError:
            raise ConfigurationError(
                f"Invalid group camera model {self.group_camera_model}, "
                f"expected 0, 1 or 2")

        return UserOverrides(
            k_matrix=self.default_intrinsics,
            focal_length_px=float(self.default_focal_length_pix),
            sensor_width=float(self.default_sensor_width),
            camera_model=camera_model)

    @property
    def group_policy(self) -> GroupCameraModel:
        return GroupCameraModel(int(self.group_camera_model))


def load_yaml_config(config_path: str,
                     options: Optional[CameraInitOptions] = None) -> CameraInitOptions:
    """
    Load options from a YAML config file.

    Args:
        config_path: Path to YAML config file
        options: Options to update, new default options if None

    Returns:
        CameraInitOptions

    Raises:
        ConfigurationError: If the file is not a YAML mapping
    """
    with open(config_path, 'r') as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}")

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Config file {config_path} must hold a mapping of options")

    options = options or CameraInitOptions()
    options.update(config)
    return options
