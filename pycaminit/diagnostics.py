# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""Run wide warnings and the final pass/fail decision."""

import logging
from collections import OrderedDict
from typing import List, NamedTuple, Tuple

from .exceptions import NoIntrinsicError, UnknownSensorError
from .sfm_data import SfMData

logger = logging.getLogger(__name__)


class CameraInitReport(NamedTuple):
    nb_input_images: int
    nb_views: int
    nb_views_without_intrinsic: int
    nb_views_with_incomplete_intrinsic: int
    nb_intrinsics: int


class Diagnostics:
    """Collects the warnings of one camera initialization run."""

    def __init__(self):
        # path -> None, insertion ordered
        self._no_metadata_images = OrderedDict()
        # (brand, model) -> first image path
        self._unknown_sensors = OrderedDict()

    @property
    def no_metadata_images(self) -> List[str]:
        return list(self._no_metadata_images)

    @property
    def unknown_sensors(self) -> List[Tuple[str, str, str]]:
        """List of (image_path, brand, model), one per camera brand/model."""
        return [(path, brand, model)
                for (brand, model), path in self._unknown_sensors.items()]

    def add_no_metadata_image(self, image_path: str):
        self._no_metadata_images.setdefault(image_path, None)

    def add_unknown_sensor(self, image_path: str, brand: str, model: str):
        self._unknown_sensors.setdefault((brand, model), image_path)

    def log_no_metadata_images(self):
        if not self._no_metadata_images:
            return
        lines = '\n'.join(f"\t- '{path}'" for path in self._no_metadata_images)
        logger.warning(f"No metadata in image(s):\n{lines}")

    def check_unknown_sensors(self):
        """
        Raises:
            UnknownSensorError: If a camera with metadata has no sensor width
        """
        if self._unknown_sensors:
            error = UnknownSensorError(self.unknown_sensors)
            logger.error(str(error))
            raise error

    def report(self, sfm_data: SfMData, nb_input_images: int) -> CameraInitReport:
        """
        Summarize the run and check that some views have an intrinsic.

        A view has no intrinsic when its intrinsic id doesn't resolve. An
        intrinsic without focal length or principal point is kept and only
        reported, it is refined later by the reconstruction.

        Raises:
            NoIntrinsicError: If no view has an intrinsic
        """
        nb_views_without_intrinsic = 0
        nb_views_with_incomplete_intrinsic = 0
        for view in sfm_data.views.values():
            intrinsic = sfm_data.intrinsics.get(view.intrinsic_id)
            if intrinsic is None:
                nb_views_without_intrinsic += 1
            elif not intrinsic.is_complete:
                nb_views_with_incomplete_intrinsic += 1

        report = CameraInitReport(
            nb_input_images=nb_input_images,
            nb_views=len(sfm_data.views),
            nb_views_without_intrinsic=nb_views_without_intrinsic,
            nb_views_with_incomplete_intrinsic=nb_views_with_incomplete_intrinsic,
            nb_intrinsics=len(sfm_data.intrinsics))

        logger.info(
            f"Camera initialization report:\n"
            f"\t- # input image path(s): {report.nb_input_images}\n"
            f"\t- # view(s) listed in sfm_data: {report.nb_views}\n"
            f"\t- # view(s) listed in sfm_data without intrinsic: "
            f"{report.nb_views_without_intrinsic}\n"
            f"\t- # view(s) listed in sfm_data with an incomplete intrinsic: "
            f"{report.nb_views_with_incomplete_intrinsic}\n"
            f"\t- # intrinsic(s) listed in sfm_data: {report.nb_intrinsics}")

        if report.nb_views_without_intrinsic == report.nb_views:
            raise NoIntrinsicError("No metadata in all images.")
        if report.nb_views_without_intrinsic > 0:
            logger.warning(
                f"{report.nb_views_without_intrinsic} views without metadata. "
                f"It may fail the reconstruction.")
        if report.nb_views_with_incomplete_intrinsic > 0:
            logger.warning(
                f"{report.nb_views_with_incomplete_intrinsic} views without "
                f"initial focal length. It may fail the reconstruction.")

        return report
