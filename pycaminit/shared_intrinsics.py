# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""Merge intrinsics that describe the same physical camera."""

import dataclasses
import logging

from .sfm_data import SfMData

logger = logging.getLogger(__name__)


def group_shared_intrinsics(sfm_data: SfMData) -> int:
    """
    Merge intrinsics with the same calibration signature.

    Intrinsics are merged into the lowest id sharing their signature and the
    views are remapped. Intrinsics without a serial number can't be told
    apart from another camera and are never merged.

    Args:
        sfm_data: Dataset description, updated in place

    Returns:
        Number of removed intrinsics
    """
    signature_to_id = {}
    remap = {}

    for intrinsic_id in sorted(sfm_data.intrinsics):
        intrinsic = sfm_data.intrinsics[intrinsic_id]
        if not intrinsic.serial_number:
            continue

        signature = intrinsic.signature()
        if signature in signature_to_id:
            remap[intrinsic_id] = signature_to_id[signature]
        else:
            signature_to_id[signature] = intrinsic_id

    if not remap:
        return 0

    for view_id, view in sfm_data.views.items():
        if view.intrinsic_id in remap:
            sfm_data.views[view_id] = dataclasses.replace(
                view, intrinsic_id=remap[view.intrinsic_id])

    for intrinsic_id in remap:
        del sfm_data.intrinsics[intrinsic_id]

    logger.info(f"Grouped {len(remap)} intrinsic(s) sharing camera properties, "
                f"{len(sfm_data.intrinsics)} intrinsic(s) left")
    return len(remap)
