"""
qf_calculator/ingestion/data_provider.py — Raw JSON loading.

A DataProvider turns a (description, relative path) pair into parsed JSON.
The description names the dataset in error messages ("votes", "rounds", ...).
FileSystemDataProvider reads from a directory tree; tests substitute their
own provider serving in-memory fixtures.
"""

import abc
import json
import logging
import os
from decimal import Decimal
from typing import Any

from qf_calculator.errors import DataSourceUnavailableError

logger = logging.getLogger(__name__)


class DataProvider(abc.ABC):
    """Interface for loading one JSON document of a round's data."""

    @abc.abstractmethod
    def load_file(self, description: str, path: str) -> Any:
        """
        Return the parsed JSON stored at `path`.

        Raises:
            DataSourceUnavailableError: If the document does not exist or
                cannot be decoded.
        """


class FileSystemDataProvider(DataProvider):
    """
    Load JSON documents from a base directory.

    JSON floats are parsed as Decimal so amounts never pass through binary
    floating point. Integers stay int and are converted at the parse layer.
    A file that is not valid UTF-8 JSON is reported the same way as a
    missing one.

    Args:
        base_path: Directory that relative paths are resolved against.
    """

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path

    def load_file(self, description: str, path: str) -> Any:
        full_path = os.path.join(self.base_path, path)
        if not os.path.isfile(full_path):
            logger.warning("Missing %s file: %s", description, full_path)
            raise DataSourceUnavailableError(description)

        logger.debug("Loading %s from %s", description, full_path)
        try:
            with open(full_path, "r", encoding="utf-8") as fh:
                return json.load(fh, parse_float=Decimal)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Unreadable %s file %s: %s", description, full_path, exc)
            raise DataSourceUnavailableError(description) from exc
