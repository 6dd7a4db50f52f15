# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""Exceptions raised by the camera initialization pipeline.

Every fatal condition derives from CameraInitError so that the command line
entry point can report it and exit with a failure status. Recoverable
per-image problems are never raised, they are logged and the image skipped.
"""

from typing import List, Tuple


class CameraInitError(Exception):
    """Base class for fatal camera initialization errors."""


class ConfigurationError(CameraInitError):
    """Conflicting or malformed user options."""


class ResolutionError(CameraInitError):
    """The input images cannot be resolved."""


class ManifestError(ResolutionError):
    """The manifest file is missing or not well-formed."""


class ManifestResolutionError(ResolutionError):
    """One or more manifest paths cannot be resolved."""

    def __init__(self, manifest_path: str, offending_paths: List[str]):
        self.manifest_path = manifest_path
        self.offending_paths = list(offending_paths)
        details = '\n'.join(f"\t- '{path}'" for path in self.offending_paths)
        super().__init__(
            f"Can't retrieve image paths in '{manifest_path}':\n{details}")


class EmptyInputError(ResolutionError):
    """No image path has been found in the input."""


class RigError(CameraInitError):
    """Inconsistent rig structure."""


class RigFrameCountError(RigError):
    """Cameras of the same rig have a different number of images."""

    def __init__(self, group_id: int, frame_counts: List[int]):
        self.group_id = group_id
        self.frame_counts = list(frame_counts)
        super().__init__(
            f"Each camera of a rig must have the same number of images "
            f"(rig group {group_id}, images per camera: {self.frame_counts})")


class RigDimensionError(RigError):
    """Images of the same rig camera have different dimensions."""

    def __init__(self, image_path: str, expected: Tuple[int, int],
                 actual: Tuple[int, int]):
        self.image_path = image_path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Rig camera images don't have the same dimensions: "
            f"'{image_path}' is {actual[0]}x{actual[1]}, "
            f"expected {expected[0]}x{expected[1]}")


class UnknownSensorError(CameraInitError):
    """Sensor width is missing from the database for some cameras."""

    def __init__(self, unknown_sensors: List[Tuple[str, str, str]]):
        # (image_path, brand, model)
        self.unknown_sensors = list(unknown_sensors)
        lines = [
            f"image: '{path}'\n\t- camera brand: {brand}\n\t- camera model: {model}"
            for path, brand, model in self.unknown_sensors
        ]
        super().__init__(
            "Sensor width doesn't exist in the database for image(s):\n" +
            '\n'.join(lines) +
            "\nPlease add camera model(s) and sensor width(s) in the database.")


class NoIntrinsicError(CameraInitError):
    """No view has a usable intrinsic."""
