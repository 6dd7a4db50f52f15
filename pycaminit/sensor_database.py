# SPDX-FileCopyrightText: 2025 NVIDIA CORPORATION & AFFILIATES
#
# SPDX-License-Identifier: Apache-2.0

"""
Camera sensor width database.

The database is a text file with one camera per line:

    brand;model;sensor_width_mm[;reference_url]

Example:
    Canon;Canon EOS 5D Mark III;36
    GoPro;HERO4 Silver;6.17

Blank lines and lines starting with '#' are ignored.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Datasheet:
    brand: str
    model: str
    sensor_width: float

    def matches(self, brand: str, model: str) -> bool:
        """
        Check if a camera brand/model refers to this datasheet.

        One token of the brand must equal the datasheet brand and every token
        of the model must appear in the datasheet model, ignoring case.
        """
        datasheet_brand = self.brand.lower()
        if not any(token == datasheet_brand for token in brand.lower().split()):
            return False

        datasheet_model_tokens = set(self.model.lower().split())
        model_tokens = model.lower().split()
        return bool(model_tokens) and all(
            token in datasheet_model_tokens for token in model_tokens)


class SensorDatabase:
    """Brand/model to sensor width lookup."""

    def __init__(self, datasheets: Optional[List[Datasheet]] = None):
        self.datasheets = list(datasheets or [])

    def __len__(self):
        return len(self.datasheets)

    @classmethod
    def from_file(cls, database_path: str) -> 'SensorDatabase':
        """
        Load a sensor database file.

        Args:
            database_path: Path to the database file

        Returns:
            SensorDatabase

        Raises:
            ConfigurationError: If the file doesn't exist or a line is malformed
        """
        if not os.path.isfile(database_path):
            raise ConfigurationError(
                f"Invalid input database '{database_path}', please specify a valid file.")

        datasheets = []
        with open(database_path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue

                fields = line.split(';')
                if len(fields) < 3:
                    raise ConfigurationError(
                        f"Invalid input database '{database_path}', line {line_number}: "
                        f"expected 'brand;model;sensor_width', got '{line}'")
                try:
                    sensor_width = float(fields[2])
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid input database '{database_path}', line {line_number}: "
                        f"sensor width '{fields[2]}' is not a number")

                datasheets.append(
                    Datasheet(fields[0].strip(), fields[1].strip(), sensor_width))

        logger.info(f"Loaded {len(datasheets)} camera sensors from {database_path}")
        return cls(datasheets)

    def lookup(self, brand: str, model: str) -> Optional[float]:
        """
        Find the sensor width of a camera.

        Returns:
            Sensor width in mm, or None if the camera is not in the database
        """
        for datasheet in self.datasheets:
            if datasheet.matches(brand, model):
                return datasheet.sensor_width
        return None
