# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Constants used throughout the camera initialization package.

This module contains standardized file names, manifest keys and inference
thresholds to ensure consistency across the codebase. Always import and use
these constants instead of hardcoding them.
"""

# File name constants
kSFM_DATA_FILE = 'sfm_data.json'

# Manifest constants
kRESOURCES_KEY = 'resources'
kYAML_MANIFEST_EXTENSIONS = ('.yaml', '.yml')

# Supported image extensions (lower case, compared case-insensitively)
kSUPPORTED_IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.tif', '.tiff')

# Camera brand used when the metadata has no brand or model
kCUSTOM_CAMERA_BRAND = 'Custom'

# Focal length (mm) used with kCUSTOM_CAMERA_BRAND
kDEFAULT_FOCAL_LENGTH_MM = 1.2

# Under this focal length (mm) a fisheye model is assumed
kFISHEYE_FOCAL_LENGTH_THRESHOLD_MM = 15.0

# Unknown value sentinel for focal lengths and sensor width
kUNKNOWN = -1.0

# Factory calibrated distortion for GoPro cameras
kGOPRO_BRAND = 'GoPro'
kGOPRO_FISHEYE4_DISTORTION = (0.0524, 0.0094, -0.0037, -0.0004)
kGOPRO_FISHEYE1_DISTORTION = (1.04,)

# Serial number prefixes for intrinsics without metadata
kNO_METADATA_RIG_SERIAL = 'no_metadata_rig_{group_id}_{camera_id}'
kNO_METADATA_INTRINSIC_GROUP_SERIAL = 'no_metadata_intrinsic_group_{group_id}'

# Metadata keys
kSENSOR_WIDTH_KEY = 'sensor_width'
kIMAGE_WIDTH_KEY = 'image_width'
kIMAGE_HEIGHT_KEY = 'image_height'
