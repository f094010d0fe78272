"""
Desktop-shell storage service.

Keeps the planner snapshot in one JSON file on behalf of the UI. The document
is stored verbatim; shape upgrades happen in the reader.
"""

import json
import logging
import os
from typing import Any, Optional

from common.data import get_planner_data_file

logger = logging.getLogger(__name__)


class ShellStorageError(Exception):
    """Raised when the data file cannot be written or removed."""

    pass


class ShellStorage:
    """Whole-file read/write of the planner snapshot."""

    def __init__(self, data_file: Optional[str] = None):
        self.data_file = data_file or get_planner_data_file()

    def read(self) -> Any:
        """
        Read the stored document.

        Returns:
            The decoded JSON document, or None when the file is missing or unreadable
        """
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            logger.info(f"Data file read from {self.data_file}")
            return data
        except FileNotFoundError:
            logger.info(f"No data file at {self.data_file}")
            return None
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read data file {self.data_file}: {e}")
            return None

    def write(self, document: Any) -> None:
        """Replace the stored document."""
        try:
            directory = os.path.dirname(self.data_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.data_file, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write data file {self.data_file}: {e}")
            raise ShellStorageError(str(e)) from e
        logger.info(f"Data saved to {self.data_file}")

    def clear(self) -> None:
        try:
            os.remove(self.data_file)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Failed to remove data file {self.data_file}: {e}")
            raise ShellStorageError(str(e)) from e
        logger.info(f"Data cleared at {self.data_file}")
