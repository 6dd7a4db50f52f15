# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Assignment of views, poses, rigs and intrinsics.

Walks a ResourceTree in order and builds the SfMData registries:

- one intrinsic id per camera, inferred from the first readable frame
- one view per accepted frame, duplicates are skipped
- one pose per view, except for rigs where the frames captured at the same
  time by the cameras of the rig share their pose
- one rig per group of more than one camera
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Optional

from .config import GroupCameraModel
from .constants import kNO_METADATA_INTRINSIC_GROUP_SERIAL, kNO_METADATA_RIG_SERIAL
from .diagnostics import Diagnostics
from .exceptions import RigDimensionError, RigFrameCountError
from .image_metadata import UserOverrides, infer_intrinsic
from .image_reader import ImageReader
from .intrinsics import IntrinsicEstimate
from .resource_resolver import Camera, ResourceTree
from .sensor_database import SensorDatabase
from .sfm_data import Rig, SfMData, View

logger = logging.getLogger(__name__)


@dataclass
class AssignmentContext:
    """Id counters of one assignment pass."""
    rig_id: int = 0
    pose_id: int = 0
    intrinsic_id: int = 0
    nb_processed_images: int = 0
    nb_total_images: int = 0

    def next_intrinsic_id(self) -> int:
        intrinsic_id = self.intrinsic_id
        self.intrinsic_id += 1
        return intrinsic_id

    def next_pose_id(self) -> int:
        pose_id = self.pose_id
        self.pose_id += 1
        return pose_id

    def finish_rig(self, nb_frames: int):
        """Move past the poses of the rig, one pose per frame index."""
        self.rig_id += 1
        self.pose_id += nb_frames


def check_rig_frame_counts(tree: ResourceTree):
    """
    Check that every camera of every rig has the same number of images.

    Raises:
        RigFrameCountError: On the first inconsistent rig
    """
    for group_id, group in enumerate(tree):
        if len(group) < 2:
            continue
        frame_counts = [len(camera) for camera in group]
        if len(set(frame_counts)) != 1:
            error = RigFrameCountError(group_id, frame_counts)
            logger.error(str(error))
            raise error


class CameraInitAssigner:
    """Builds the SfMData registries from a ResourceTree."""

    def __init__(self,
                 image_reader: ImageReader,
                 sensor_database: SensorDatabase,
                 overrides: UserOverrides,
                 group_policy: GroupCameraModel = GroupCameraModel.METADATA,
                 diagnostics: Optional[Diagnostics] = None):
        self.image_reader = image_reader
        self.sensor_database = sensor_database
        self.overrides = overrides
        self.group_policy = group_policy
        self.diagnostics = diagnostics or Diagnostics()

    def assign(self, tree: ResourceTree) -> SfMData:
        """
        Create the views, intrinsics and rigs of a ResourceTree.

        Args:
            tree: Resolved input images

        Returns:
            SfMData

        Raises:
            RigFrameCountError: If the cameras of a rig have different image counts
            RigDimensionError: If the images of a rig camera have different sizes
        """
        check_rig_frame_counts(tree)

        sfm_data = SfMData(root_path=tree.root_path)
        context = AssignmentContext(nb_total_images=tree.count_summary().nb_images)

        for group_id, group in enumerate(tree):
            is_rig = len(group) > 1
            if is_rig:
                sfm_data.rigs[context.rig_id] = Rig(len(group))

            for camera_id, camera in enumerate(group):
                self._assign_camera(sfm_data, context, camera,
                                    group_id, camera_id, is_rig, len(group))

            if is_rig:
                context.finish_rig(len(group[0]))

        return sfm_data

    def _disambiguate(self, intrinsic: IntrinsicEstimate, image_path: str,
                      group_id: int, camera_id: int, is_rig: bool,
                      is_group: bool) -> IntrinsicEstimate:
        """Tag intrinsics without metadata so they are not merged by mistake."""
        if intrinsic.has_valid_metadata:
            return intrinsic

        if self.group_policy == GroupCameraModel.FOLDER:
            # images extracted from a video, fixed intrinsic per folder
            serial_number = os.path.dirname(os.path.abspath(image_path))
        elif is_rig:
            serial_number = kNO_METADATA_RIG_SERIAL.format(
                group_id=group_id, camera_id=camera_id)
        elif is_group:
            serial_number = kNO_METADATA_INTRINSIC_GROUP_SERIAL.format(
                group_id=group_id)
        else:
            return intrinsic

        return dataclasses.replace(intrinsic, serial_number=serial_number)

    def _read_dimensions(self, image_path: str):
        image_name = os.path.basename(image_path)

        if self.image_reader.read_format(image_path) is None:
            logger.warning(f"Unknown image file format '{image_name}'. Skip image.")
            return None

        header = self.image_reader.read_header(image_path)
        if header is None:
            logger.warning(f"Can't read image header '{image_name}'. Skip image.")
            return None

        width, height = header
        if width <= 0 or height <= 0:
            logger.warning(
                f"Image size is invalid '{image_path}'.\n"
                f"\t- width: {width}\n"
                f"\t- height: {height}\n"
                f"Skip image.")
            return None

        return width, height

    def _assign_camera(self, sfm_data: SfMData, context: AssignmentContext,
                       camera: Camera, group_id: int, camera_id: int,
                       is_rig: bool, nb_cameras: int):
        # intrinsic and metadata are assumed constant over time
        intrinsic_id = context.next_intrinsic_id()
        intrinsic = None
        camera_dimensions = None
        is_group = len(camera) > 1

        for frame_id, image_path in enumerate(camera):
            if is_rig:
                logger.debug(
                    f"[{context.nb_processed_images + 1}/{context.nb_total_images}] "
                    f"rig [{camera_id + 1}/{nb_cameras}] "
                    f"file: '{os.path.basename(image_path)}'")
            else:
                logger.debug(
                    f"[{context.nb_processed_images + 1}/{context.nb_total_images}] "
                    f"image file: '{os.path.basename(image_path)}'")

            dimensions = self._read_dimensions(image_path)
            if dimensions is None:
                continue
            width, height = dimensions

            exif = self.image_reader.read_exif(image_path)

            if intrinsic is None:
                camera_dimensions = dimensions
                result = infer_intrinsic(image_path, width, height, self.overrides,
                                         exif, self.sensor_database)
                if result.unknown_sensor:
                    self.diagnostics.add_unknown_sensor(
                        image_path, result.estimate.camera_brand,
                        result.estimate.camera_model)

                intrinsic = self._disambiguate(result.estimate, image_path,
                                               group_id, camera_id, is_rig, is_group)
                sfm_data.intrinsics[intrinsic_id] = intrinsic
            elif is_rig and dimensions != camera_dimensions:
                error = RigDimensionError(image_path, camera_dimensions, dimensions)
                logger.error(str(error))
                raise error

            view_id = self.image_reader.compute_view_id(exif, image_path)
            if view_id in sfm_data.views:
                logger.warning(
                    f"View identifier already used, duplicated image in input "
                    f"({image_path}). Skip image.")
                continue

            if is_rig:
                pose_id = context.pose_id + frame_id
            else:
                pose_id = context.next_pose_id()

            view = View(image_path=image_path,
                        view_id=view_id,
                        intrinsic_id=intrinsic_id,
                        pose_id=pose_id,
                        width=width,
                        height=height,
                        metadata=dict(intrinsic.metadata))
            if is_rig:
                view.set_rig_and_sub_pose_id(context.rig_id, camera_id)
            sfm_data.views[view_id] = view

            if not intrinsic.has_valid_metadata:
                self.diagnostics.add_no_metadata_image(image_path)

            context.nb_processed_images += 1
