# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Camera initialization runner.

Resolves the input images, infers one intrinsic per camera, assigns views,
poses and rigs, and writes sfm_data.json once every check has passed.
"""

import logging
from typing import Optional

from .assignment import CameraInitAssigner
from .config import CameraInitOptions, GroupCameraModel
from .diagnostics import CameraInitReport, Diagnostics
from .exceptions import EmptyInputError
from .image_reader import ImageReader
from .resource_resolver import ResourceTree, resolve_directory, resolve_manifest
from .sensor_database import SensorDatabase
from .sfm_data import SfMData, save_sfm_data
from .shared_intrinsics import group_shared_intrinsics

kVERBOSE_LEVELS = {
    'fatal': logging.CRITICAL,
    'error': logging.ERROR,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
    'trace': logging.DEBUG,
}


def setup_logger(verbose_level='info'):
    """Setup the package logger if it hasn't been configured yet."""
    logger = logging.getLogger('pycaminit')

    # Only configure if no handlers exist (avoid duplicate configuration)
    if not logger.handlers:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s'
        )
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(kVERBOSE_LEVELS.get(str(verbose_level).lower(), logging.INFO))
    return logger


logger = logging.getLogger(__name__)


class CameraInitRunner:
    """Create the description of an input image dataset."""

    def __init__(self,
                 options: CameraInitOptions,
                 image_reader: Optional[ImageReader] = None):
        self.options = options
        self.image_reader = image_reader or ImageReader()
        self.diagnostics = Diagnostics()
        self.report: Optional[CameraInitReport] = None

        # Configuration errors are reported before any image is read
        self.overrides = options.validate()
        self.group_policy = options.group_policy

    def load_sensor_database(self) -> SensorDatabase:
        if not self.options.sensor_database:
            logger.warning("No sensor database given, focal lengths can only "
                           "come from user options")
            return SensorDatabase()
        return SensorDatabase.from_file(self.options.sensor_database)

    def resolve_resources(self) -> ResourceTree:
        if self.options.image_directory:
            tree = resolve_directory(self.options.image_directory)
        else:
            tree = resolve_manifest(self.options.manifest_file)

        summary = tree.count_summary()
        logger.info(f"Retrieve:\n"
                    f"\t- # single image(s): {summary.nb_single_images}\n"
                    f"\t- # intrinsic group(s): {summary.nb_intrinsic_groups}\n"
                    f"\t- # rig(s): {summary.nb_rigs}")
        return tree

    def run(self) -> SfMData:
        """
        Resolve the inputs, assign views and intrinsics, check the result.

        Returns:
            SfMData

        Raises:
            CameraInitError: On any fatal error
        """
        sensor_database = self.load_sensor_database()
        tree = self.resolve_resources()

        assigner = CameraInitAssigner(
            image_reader=self.image_reader,
            sensor_database=sensor_database,
            overrides=self.overrides,
            group_policy=self.group_policy,
            diagnostics=self.diagnostics)
        sfm_data = assigner.assign(tree)

        self.diagnostics.log_no_metadata_images()
        self.diagnostics.check_unknown_sensors()

        if not sfm_data.views:
            raise EmptyInputError("No readable image in the input")

        # group cameras sharing common properties, faster and more stable BA
        if self.group_policy != GroupCameraModel.NONE:
            group_shared_intrinsics(sfm_data)

        self.report = self.diagnostics.report(
            sfm_data, tree.count_summary().nb_images)
        return sfm_data

    def run_all(self) -> SfMData:
        """Run and save sfm_data.json in the output directory."""
        sfm_data = self.run()
        if self.options.output_dir:
            save_sfm_data(sfm_data, self.options.output_dir)
        else:
            logger.warning("No output directory given, sfm_data is not saved")
        return sfm_data
