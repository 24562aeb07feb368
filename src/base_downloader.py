#!/usr/bin/env python3
"""
Base Downloader Abstract Class for EPIC Image Acquisition

Provides the common interface and bookkeeping for downloaders that write
remote files into a local folder: per-file attempt records and failure
tracking.
"""

import os
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional
import logging


class BaseDownloader(ABC):
    """
    Abstract base class for downloaders writing into a single folder.

    The folder itself is prepared by the caller (see DestinationStager);
    downloaders only write files into it.
    """

    def __init__(self, output_dir: str):
        """
        Initialize base downloader with output directory.

        Args:
            output_dir: Directory receiving the downloaded files
        """
        self.output_dir = str(output_dir)

        # Track download operations for status reporting
        self.download_history = []
        self.failed_downloads = []

        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def download_data(self, **kwargs) -> Dict[str, Any]:
        """
        Download data from the specific data source.

        Returns:
            dict: Download results with status information and file paths
        """
        pass

    def get_download_status(self) -> Dict[str, Any]:
        """
        Get status information about download operations.

        Returns:
            dict: Status information including successful and failed downloads
        """
        return {
            'total_downloads_attempted': len(self.download_history),
            'successful_downloads': [d for d in self.download_history if d['status'] == 'success'],
            'failed_downloads': self.failed_downloads,
            'output_directory': self.output_dir,
        }

    def _record_download_attempt(self, filename: str, status: str, error_message: Optional[str] = None) -> None:
        """
        Record information about a download attempt for status tracking.

        Args:
            filename: Name of file being downloaded
            status: 'success' or 'failed'
            error_message: Error message if download failed
        """
        download_record = {
            'filename': filename,
            'status': status,
            'timestamp': time.time(),
            'output_path': os.path.join(self.output_dir, filename)
        }

        if error_message:
            download_record['error'] = error_message

        self.download_history.append(download_record)

        if status == 'failed':
            self.failed_downloads.append(download_record)

    def _failed_filenames(self) -> List[str]:
        return [record['filename'] for record in self.failed_downloads]
