# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import sys

from .camera_init import CameraInitRunner, kVERBOSE_LEVELS, setup_logger
from .config import CameraInitOptions, load_yaml_config
from .exceptions import CameraInitError

logger = logging.getLogger(__name__)


def print_params(params, indent=4):
    """Print parameters in a pretty format.

    Args:
        params: Dictionary of parameters
        indent: Number of spaces for indentation
    """
    print("Parameters:")
    for key, value in sorted(params.items()):
        print(f"{' ' * indent}{key}: {value}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Create the description of an input image dataset: '
        'views, camera intrinsics and rigs')

    parser.add_argument(
        '-i', '--image_directory',
        default=None,
        help='Input images folder')
    parser.add_argument(
        '-j', '--manifest_file',
        default=None,
        help='Input manifest (JSON or YAML) with a "resources" list, '
        'can be used instead of an image folder to describe rigs and '
        'intrinsic groups')
    parser.add_argument(
        '-s', '--sensor_database',
        default=None,
        help='Camera sensor width database path')
    parser.add_argument(
        '-o', '--output',
        dest='output_dir',
        default=None,
        help='Output directory for the new sfm_data.json file')
    parser.add_argument(
        '--config',
        default=None,
        help='YAML config file, command line options take precedence')
    parser.add_argument(
        '--default_focal_length_pix',
        type=float,
        default=None,
        help='Focal length in pixels')
    parser.add_argument(
        '--default_sensor_width',
        type=float,
        default=None,
        help='Sensor width in mm')
    parser.add_argument(
        '--default_intrinsics',
        default=None,
        help='Intrinsics K matrix "f;0;ppx;0;f;ppy;0;0;1"')
    parser.add_argument(
        '--default_camera_model',
        default=None,
        help='Camera model type (pinhole, radial1, radial3, brown, fisheye4, fisheye1)')
    parser.add_argument(
        '--group_camera_model',
        type=int,
        choices=[0, 1, 2],
        default=None,
        help='0: each view has its own camera intrinsic parameters. '
        '1: views share camera intrinsic parameters based on metadata, '
        'if no metadata each view has its own camera intrinsic parameters. '
        '2: views share camera intrinsic parameters based on metadata, '
        'if no metadata they are grouped by folder')
    parser.add_argument(
        '-v', '--verbose_level',
        default=None,
        choices=sorted(kVERBOSE_LEVELS),
        help='Verbosity level')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    options = CameraInitOptions()
    try:
        if args.config:
            load_yaml_config(args.config, options)
        options.update({key: value for key, value in vars(args).items()
                        if key != 'config'})
    except (OSError, CameraInitError) as e:
        setup_logger()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logger(options.verbose_level)
    print_params(options.__dict__)

    try:
        runner = CameraInitRunner(options)
        runner.run_all()
    except CameraInitError as e:
        logger.error(f"Camera initialization failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
