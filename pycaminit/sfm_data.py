# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Dataset description produced by camera initialization.

SfMData holds three registries keyed by id: views, intrinsics and rigs.
Each registry can be serialized on its own.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .constants import kSFM_DATA_FILE
from .intrinsics import IntrinsicEstimate

logger = logging.getLogger(__name__)


@dataclass
class View:
    """One accepted image bound to an intrinsic and a pose."""
    image_path: str
    view_id: int
    intrinsic_id: int
    pose_id: int
    width: int
    height: int
    metadata: Dict[str, str] = field(default_factory=dict)
    rig_id: Optional[int] = None
    sub_pose_id: Optional[int] = None

    @property
    def is_part_of_rig(self) -> bool:
        return self.rig_id is not None

    def set_rig_and_sub_pose_id(self, rig_id: int, sub_pose_id: int):
        self.rig_id = rig_id
        self.sub_pose_id = sub_pose_id

    def to_dict(self) -> Dict:
        view = {
            'viewId': self.view_id,
            'poseId': self.pose_id,
            'intrinsicId': self.intrinsic_id,
            'path': self.image_path,
            'width': self.width,
            'height': self.height,
            'metadata': dict(self.metadata),
        }
        if self.is_part_of_rig:
            view['rigId'] = self.rig_id
            view['subPoseId'] = self.sub_pose_id
        return view


@dataclass(frozen=True)
class Rig:
    nb_sub_poses: int

    def to_dict(self) -> Dict:
        return {'nbSubPoses': self.nb_sub_poses}


@dataclass
class SfMData:
    views: Dict[int, View] = field(default_factory=dict)
    intrinsics: Dict[int, IntrinsicEstimate] = field(default_factory=dict)
    rigs: Dict[int, Rig] = field(default_factory=dict)
    root_path: str = ''

    def views_to_dict(self) -> Dict:
        return {str(view_id): view.to_dict() for view_id, view in self.views.items()}

    def intrinsics_to_dict(self) -> Dict:
        return {str(intrinsic_id): intrinsic.to_dict()
                for intrinsic_id, intrinsic in self.intrinsics.items()}

    def rigs_to_dict(self) -> Dict:
        return {str(rig_id): rig.to_dict() for rig_id, rig in self.rigs.items()}

    def to_dict(self) -> Dict:
        return {
            'rootPath': self.root_path,
            'views': self.views_to_dict(),
            'intrinsics': self.intrinsics_to_dict(),
            'rigs': self.rigs_to_dict(),
        }


def save_sfm_data(sfm_data: SfMData, output_dir: str) -> str:
    """
    Write the dataset description to <output_dir>/sfm_data.json.

    Args:
        sfm_data: Dataset description
        output_dir: Output directory, created if needed

    Returns:
        Path of the written file
    """
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, kSFM_DATA_FILE)

    logger.info(f"Writing output to {output_path}...")
    with open(output_path, 'w') as f:
        json.dump(sfm_data.to_dict(), f, indent=2)

    return output_path
