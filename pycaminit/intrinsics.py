# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Camera intrinsic models.

Defines the closed set of supported camera models, the immutable
IntrinsicEstimate produced by the inference engine and the helpers to parse a
user provided K matrix.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import numpy as np

from .constants import kUNKNOWN
from .exceptions import ConfigurationError


class CameraModelKind(Enum):
    """Supported camera models, valued by their user facing name."""
    PINHOLE = 'pinhole'
    RADIAL1 = 'radial1'
    RADIAL3 = 'radial3'
    BROWN = 'brown'
    FISHEYE4 = 'fisheye4'
    FISHEYE1 = 'fisheye1'

    @classmethod
    def from_string(cls, name: str) -> 'CameraModelKind':
        """
        Parse a camera model name (case insensitive).

        Args:
            name: Camera model name, e.g. "radial3"

        Returns:
            The matching CameraModelKind

        Raises:
            ConfigurationError: If the name is not a supported model
        """
        normalized = name.strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise ConfigurationError(
            f"Unknown camera model '{name}', expected one of: "
            f"{', '.join(kind.value for kind in cls)}")

    def default_distortion(self) -> Tuple[float, ...]:
        """Zero distortion parameters for this model."""
        return (0.0,) * _DISTORTION_PARAM_COUNT[self]


# radial1: k1, radial3: k1 k2 k3, brown: k1 k2 k3 t1 t2, fisheye4: k1 k2 k3 k4
_DISTORTION_PARAM_COUNT = {
    CameraModelKind.PINHOLE: 0,
    CameraModelKind.RADIAL1: 1,
    CameraModelKind.RADIAL3: 3,
    CameraModelKind.BROWN: 5,
    CameraModelKind.FISHEYE4: 4,
    CameraModelKind.FISHEYE1: 1,
}


def parse_k_matrix(k_matrix: str) -> Tuple[float, float, float]:
    """
    Parse a K matrix string like "f;0;ppx;0;f;ppy;0;0;1".

    Args:
        k_matrix: Row-major 3x3 matrix, values separated by ';'

    Returns:
        Tuple (focal_length_px, ppx, ppy)

    Raises:
        ConfigurationError: If the string doesn't hold 9 valid numbers
    """
    values = k_matrix.split(';')
    if len(values) != 9:
        raise ConfigurationError(
            f"Invalid K matrix '{k_matrix}': expected 9 values separated by ';', "
            f"got {len(values)}")

    try:
        matrix = np.array([float(value) for value in values]).reshape(3, 3)
    except ValueError:
        raise ConfigurationError(
            f"Invalid K matrix '{k_matrix}': contains a value that is not a number")

    if not np.all(np.isfinite(matrix)):
        raise ConfigurationError(
            f"Invalid K matrix '{k_matrix}': contains a non finite value")

    return float(matrix[0, 0]), float(matrix[0, 2]), float(matrix[1, 2])


@dataclass(frozen=True)
class IntrinsicEstimate:
    """Initial intrinsic hypothesis for one camera."""
    camera_brand: str
    camera_model: str
    width: int
    height: int
    ppx: float
    ppy: float
    model_kind: CameraModelKind
    focal_length_px: float = kUNKNOWN
    focal_length_mm: float = kUNKNOWN
    sensor_width: float = kUNKNOWN
    distortion_params: Tuple[float, ...] = ()
    serial_number: str = ''
    has_valid_metadata: bool = False
    is_resized: bool = False
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        """True if focal length and principal point are known."""
        return self.focal_length_px > 0 and self.ppx > 0 and self.ppy > 0

    def k_matrix(self) -> np.ndarray:
        """3x3 camera matrix, focal length is -1 when unknown."""
        return np.array([
            [self.focal_length_px, 0.0, self.ppx],
            [0.0, self.focal_length_px, self.ppy],
            [0.0, 0.0, 1.0],
        ])

    def signature(self) -> Tuple:
        """Values that must match for two intrinsics to be shared."""
        return (self.model_kind, self.width, self.height,
                self.focal_length_px, self.ppx, self.ppy,
                self.distortion_params, self.serial_number)

    def to_dict(self) -> Dict:
        return {
            'type': self.model_kind.value,
            'width': self.width,
            'height': self.height,
            'serialNumber': self.serial_number,
            'pxInitialFocalLength': self.focal_length_px,
            'pxFocalLength': self.focal_length_px,
            'principalPoint': [self.ppx, self.ppy],
            'distortionParams': list(self.distortion_params),
            'cameraBrand': self.camera_brand,
            'cameraModel': self.camera_model,
            'sensorWidth': self.sensor_width,
        }


def format_optional(value: Optional[float]) -> str:
    """Format a diagnostic value, non-positive or NaN values are unknown."""
    if value is None or math.isnan(value) or value <= 0:
        return 'unknown'
    return f'{value:g}'
