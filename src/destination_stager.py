"""
Destination Staging for EPIC Image Acquisition

Prepares '<root_folder>/<YYYY-MM-DD>' before any image is written. An
existing subfolder is only reused after the injected confirmation callback
agrees; reuse overwrites same-named files in place and leaves the rest.
"""

import logging
import os
from datetime import date
from pathlib import Path
from typing import Callable, Union

from logging_utils import AbortedByUserError, DirectoryCreateError, RootNotWritableError

logger = logging.getLogger(__name__)

# rwxr-xr-x, applied to every directory created during staging
SUBFOLDER_MODE = 0o755


class DestinationStager:
    """
    Create or reuse the date subfolder for a run.

    Attributes:
        confirm_overwrite (Callable[[], bool]): Asked only when the subfolder
            already exists; True reuses it, False aborts the run
    """

    def __init__(self, confirm_overwrite: Callable[[], bool]):
        self.confirm_overwrite = confirm_overwrite

    def stage(self, root_folder: Union[str, Path], effective_date: date) -> Path:
        """
        Ensure the date subfolder exists and may be written to.

        Args:
            root_folder: Existing, writable folder holding the date subfolders
            effective_date: Date used as the subfolder name

        Returns:
            Path: The date subfolder

        Raises:
            RootNotWritableError: root_folder is missing or not writable
            AbortedByUserError: Subfolder exists and overwrite was declined
            DirectoryCreateError: Subfolder could not be created
        """
        root_folder = Path(root_folder)

        if not root_folder.is_dir() or not os.access(root_folder, os.W_OK):
            raise RootNotWritableError(
                "Please make sure the directory exists and you have the necessary permissions.",
                {'root_folder': str(root_folder)}
            )

        subfolder = root_folder / effective_date.strftime('%Y-%m-%d')

        if subfolder.is_dir():
            if not self.confirm_overwrite():
                raise AbortedByUserError(
                    "The process was aborted by user.",
                    {'subfolder': str(subfolder)}
                )
            logger.info(f"Overwriting the folder {subfolder}")
            return subfolder

        try:
            subfolder.mkdir(mode=SUBFOLDER_MODE, parents=True)
        except OSError as e:
            raise DirectoryCreateError(
                f"Failed to create folder {subfolder}: {e}",
                {'subfolder': str(subfolder)}
            ) from e

        logger.debug(f"Created folder {subfolder}")
        return subfolder
