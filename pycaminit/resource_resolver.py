# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Resolve the input images into a ResourceTree.

Two input modes are supported:

1. An image directory: every supported image is a single image.
2. A manifest file (JSON, or YAML with a .yaml/.yml extension):

    {
      "resources": [
        "/path/to/single_image.jpg",             # single image
        "/path/to/folder_of_single_images",      # one single image per file
        ["/path/to/video_frames_folder"],        # intrinsic group
        [["/rig/cam0/frames"], ["/rig/cam1/frames"]]   # rig with two cameras
      ]
    }

A ResourceTree is a list of groups, a group a list of cameras and a camera a
list of image paths (frames).
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, NamedTuple

import yaml

from .constants import (
    kRESOURCES_KEY, kSUPPORTED_IMAGE_EXTENSIONS, kYAML_MANIFEST_EXTENSIONS)
from .exceptions import EmptyInputError, ManifestError, ManifestResolutionError

logger = logging.getLogger(__name__)

Camera = List[str]
Group = List[Camera]


class ResourceSummary(NamedTuple):
    nb_single_images: int
    nb_intrinsic_groups: int
    nb_rigs: int
    nb_images: int


@dataclass
class ResourceTree:
    groups: List[Group] = field(default_factory=list)
    root_path: str = ''

    def __len__(self):
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups)

    def count_summary(self) -> ResourceSummary:
        """Count single images, intrinsic groups, rigs and input images."""
        nb_single_images = 0
        nb_intrinsic_groups = 0
        nb_rigs = 0
        nb_images = 0

        for group in self.groups:
            if len(group) > 1:
                nb_rigs += 1
                nb_images += sum(len(camera) for camera in group)
            elif len(group[0]) > 1:
                nb_intrinsic_groups += 1
                nb_images += len(group[0])
            else:
                nb_single_images += 1
                nb_images += len(group[0])

        return ResourceSummary(nb_single_images, nb_intrinsic_groups,
                               nb_rigs, nb_images)


class ManifestEntryKind(Enum):
    PATH = 'path'                        # top level file or folder
    INTRINSIC_GROUP = 'intrinsic_group'  # path shared by one camera over time
    RIG_CAMERA = 'rig_camera'            # frame paths of one rig camera


@dataclass(frozen=True)
class ManifestEntry:
    kind: ManifestEntryKind
    paths: List[str]


def is_supported_image(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in kSUPPORTED_IMAGE_EXTENSIONS


def list_files(folder_or_file: str, resources: List[str]) -> List[str]:
    """
    Recursively list the supported images of a file or folder path.

    Args:
        folder_or_file: A file or folder path
        resources: Output list, supported image paths are appended

    Returns:
        List of offending paths (not a file or folder, or empty folder)
    """
    if os.path.isfile(folder_or_file):
        if is_supported_image(folder_or_file):
            resources.append(folder_or_file)
        return []

    if os.path.isdir(folder_or_file):
        items = sorted(os.listdir(folder_or_file))
        if not items:
            logger.error(f"Folder '{os.path.basename(folder_or_file)}' is empty.")
            return [folder_or_file]

        offending_paths = []
        for item in items:
            offending_paths += list_files(os.path.join(folder_or_file, item),
                                          resources)
        return offending_paths

    logger.error(f"'{folder_or_file}' is not a valid folder or file path.")
    return [folder_or_file]


def resolve_directory(image_directory: str) -> ResourceTree:
    """
    Build a ResourceTree of single images from a directory.

    Args:
        image_directory: Directory containing the images

    Returns:
        ResourceTree, the root path is the image directory

    Raises:
        EmptyInputError: If the directory doesn't exist or has no image
    """
    if not os.path.isdir(image_directory):
        raise EmptyInputError(
            f"The input directory doesn't exist: '{image_directory}'")

    filenames = sorted(
        filename for filename in os.listdir(image_directory)
        if os.path.isfile(os.path.join(image_directory, filename)) and
        is_supported_image(filename))

    if not filenames:
        raise EmptyInputError(f"Can't find image paths in '{image_directory}'")

    groups = [[[os.path.join(image_directory, filename)]]
              for filename in filenames]
    return ResourceTree(groups=groups, root_path=image_directory)


def load_manifest(manifest_path: str) -> List[Any]:
    """
    Load the manifest and return its 'resources' sequence.

    Raises:
        ManifestError: If the file is missing, malformed or has no
            'resources' sequence
    """
    if not os.path.isfile(manifest_path):
        raise ManifestError(f"File '{manifest_path}' does not exist.")

    with open(manifest_path, 'r', encoding='utf-8') as f:
        try:
            if manifest_path.lower().endswith(kYAML_MANIFEST_EXTENSIONS):
                document = yaml.safe_load(f)
            else:
                document = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ManifestError(
                f"File '{manifest_path}' is not a well-formed document: {e}")

    if not isinstance(document, dict):
        raise ManifestError(f"File '{manifest_path}' is not in json format.")
    if kRESOURCES_KEY not in document:
        raise ManifestError(
            f"No member '{kRESOURCES_KEY}' in manifest '{manifest_path}'")

    resources = document[kRESOURCES_KEY]
    if not isinstance(resources, list):
        raise ManifestError(
            f"Member '{kRESOURCES_KEY}' in manifest '{manifest_path}' isn't an array")
    return resources


def parse_manifest_resources(resources: List[Any]):
    """
    Classify the manifest entries once.

    Returns:
        Tuple (entries, invalid_entries) where entries is a list whose items
        are either a single PATH ManifestEntry or a list of INTRINSIC_GROUP /
        RIG_CAMERA ManifestEntry (a group), and invalid_entries the string
        representation of the entries that are neither paths nor sequences
    """
    entries = []
    invalid_entries = []

    for item in resources:
        if isinstance(item, str):
            entries.append(ManifestEntry(ManifestEntryKind.PATH, [item]))
        elif isinstance(item, list):
            group_entries = []
            for camera_item in item:
                if isinstance(camera_item, str):
                    group_entries.append(
                        ManifestEntry(ManifestEntryKind.INTRINSIC_GROUP, [camera_item]))
                elif isinstance(camera_item, list):
                    frame_paths = []
                    for frame_item in camera_item:
                        if isinstance(frame_item, str):
                            frame_paths.append(frame_item)
                        else:
                            invalid_entries.append(repr(frame_item))
                    group_entries.append(
                        ManifestEntry(ManifestEntryKind.RIG_CAMERA, frame_paths))
                else:
                    invalid_entries.append(repr(camera_item))
            entries.append(group_entries)
        else:
            invalid_entries.append(repr(item))

    return entries, invalid_entries


def resolve_manifest(manifest_path: str) -> ResourceTree:
    """
    Build a ResourceTree from a manifest file.

    Every entry is resolved before failing so that all the offending paths
    are reported at once.

    Args:
        manifest_path: Path to the manifest file

    Returns:
        ResourceTree with an empty root path

    Raises:
        ManifestError: If the manifest is not well-formed
        ManifestResolutionError: If some paths can't be resolved
        EmptyInputError: If no image has been found
    """
    resources = load_manifest(manifest_path)
    entries, offending_paths = parse_manifest_resources(resources)
    for invalid_entry in offending_paths:
        logger.error(f"Invalid manifest entry {invalid_entry}, "
                     f"expected a path or a list of paths.")

    groups = []
    for entry in entries:
        if isinstance(entry, ManifestEntry):
            image_paths = []
            offending_paths += list_files(entry.paths[0], image_paths)
            groups += [[[path]] for path in image_paths]
            continue

        group = []
        intrinsic_image_paths = []
        for camera_entry in entry:
            if camera_entry.kind == ManifestEntryKind.INTRINSIC_GROUP:
                offending_paths += list_files(camera_entry.paths[0],
                                              intrinsic_image_paths)
            else:
                rig_image_paths = []
                for path in camera_entry.paths:
                    offending_paths += list_files(path, rig_image_paths)
                group.append(rig_image_paths)

        if intrinsic_image_paths:
            group.append(intrinsic_image_paths)

        if any(group):
            groups.append(group)
        else:
            logger.warning(f"Skip empty group {len(groups)} in manifest '{manifest_path}'")

    if offending_paths:
        raise ManifestResolutionError(manifest_path, offending_paths)

    if not groups:
        raise EmptyInputError(f"No image paths given in '{manifest_path}'")

    return ResourceTree(groups=groups, root_path='')
