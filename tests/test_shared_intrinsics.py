# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for grouping of intrinsics shared by several cameras.
"""

from pycaminit.intrinsics import CameraModelKind, IntrinsicEstimate
from pycaminit.sfm_data import SfMData, View
from pycaminit.shared_intrinsics import group_shared_intrinsics


def make_intrinsic(serial_number, focal_length_px=5000.0):
    return IntrinsicEstimate(camera_brand='Canon', camera_model='EOS 5D',
                             width=6000, height=4000, ppx=3000.0, ppy=2000.0,
                             model_kind=CameraModelKind.RADIAL3,
                             focal_length_px=focal_length_px,
                             distortion_params=(0.0, 0.0, 0.0),
                             serial_number=serial_number)


def make_sfm_data(intrinsics):
    views = {
        view_id: View(image_path=f'/images/{view_id}.jpg', view_id=view_id,
                      intrinsic_id=intrinsic_id, pose_id=view_id,
                      width=6000, height=4000)
        for view_id, intrinsic_id in enumerate(sorted(intrinsics))
    }
    return SfMData(views=views, intrinsics=dict(intrinsics))


class TestGroupSharedIntrinsics:

    def test_same_camera_merged(self):
        sfm_data = make_sfm_data({
            0: make_intrinsic('123'),
            1: make_intrinsic('456'),
            2: make_intrinsic('123'),
        })

        assert group_shared_intrinsics(sfm_data) == 1

        assert sorted(sfm_data.intrinsics) == [0, 1]
        assert [view.intrinsic_id for view in sfm_data.views.values()] == [0, 1, 0]

    def test_different_focal_not_merged(self):
        sfm_data = make_sfm_data({
            0: make_intrinsic('123', focal_length_px=5000.0),
            1: make_intrinsic('123', focal_length_px=2500.0),
        })

        assert group_shared_intrinsics(sfm_data) == 0
        assert sorted(sfm_data.intrinsics) == [0, 1]

    def test_empty_serial_never_merged(self):
        """Cameras without serial number can't be told apart."""
        sfm_data = make_sfm_data({0: make_intrinsic(''), 1: make_intrinsic('')})

        assert group_shared_intrinsics(sfm_data) == 0
        assert [view.intrinsic_id for view in sfm_data.views.values()] == [0, 1]
