"""
Error Handling and Logging Infrastructure for EPIC Image Acquisition

This module provides standardized logging and error handling capabilities
for EPIC download runs. It includes run progress tracking, the exception
hierarchy shared by every component, and JSON session summaries.
"""

import logging
import sys
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List


def setup_epic_logging(log_level: str = "INFO",
                       log_file: Optional[str] = None,
                       console_output: bool = True) -> logging.Logger:
    """
    Setup standardized logging for EPIC acquisition runs.

    Args:
        log_level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Optional path to log file
        console_output: Whether to output logs to console

    Returns:
        Configured logger instance
    """
    # Root logger, so every module logger shares these handlers
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper()))

    # Clear any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, log_level.upper()))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)  # File logs capture everything
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


class ProcessingLogger:
    """
    Tracks the progress of a single acquisition run.

    Counts images saved, failed saves and errors so the run can be summarized
    at the end, either in the log or as a JSON session summary.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize processing logger.

        Args:
            logger: Logger instance to use. If None, uses the package logger.
        """
        self.logger = logger or logging.getLogger('epic_downloader')
        self.processing_start_time = None
        self.current_workflow = None
        self.completion_stats = {}
        self.processing_stats = {
            'images_saved': 0,
            'images_failed': 0,
            'errors_encountered': 0,
        }

    def log_processing_start(self, workflow_type: str, parameters: Dict[str, Any]) -> None:
        """
        Log start of a run.

        Args:
            workflow_type: Type of workflow being started
            parameters: Run parameters dictionary
        """
        self.processing_start_time = datetime.now()
        self.current_workflow = workflow_type

        self.logger.info("=" * 60)
        self.logger.info(f"Starting EPIC {workflow_type}")
        self.logger.info(f"Start time: {self.processing_start_time.isoformat()}")
        self.logger.info("Run parameters:")

        for param_name, param_value in parameters.items():
            self.logger.info(f"  {param_name}: {param_value}")

        self.logger.info("=" * 60)

    def log_data_download(self, source: str, files_downloaded: List[str]) -> None:
        """
        Log successful image downloads.

        Args:
            source: Description of where the images came from
            files_downloaded: List of saved file paths
        """
        num_files = len(files_downloaded)
        self.processing_stats['images_saved'] += num_files

        self.logger.info(f"Successfully saved {num_files} images from {source}")

        for file_path in files_downloaded:
            self.logger.debug(f"  Saved: {file_path}")

        if num_files > 5:
            self.logger.info("  (See debug logs for complete file list)")

    def log_failed_images(self, image_ids: List[str]) -> None:
        """Log images that were fetched or saved unsuccessfully."""
        self.processing_stats['images_failed'] += len(image_ids)
        for image_id in image_ids:
            self.logger.warning(f"  Not saved: {image_id}")

    def log_processing_error(self, error_type: str, error_details: str, context: Optional[Dict] = None) -> None:
        """
        Log run errors with context.

        Args:
            error_type: Type/category of error
            error_details: Detailed error description
            context: Optional context dictionary with additional information
        """
        self.processing_stats['errors_encountered'] += 1

        self.logger.error(f"Processing error ({error_type}): {error_details}")

        if context:
            self.logger.error("Error context:")
            for key, value in context.items():
                self.logger.error(f"  {key}: {value}")

    def log_processing_complete(self, summary_stats: Optional[Dict] = None) -> None:
        """
        Log completion of a run with summary statistics.

        Args:
            summary_stats: Optional additional statistics dictionary
        """
        if self.processing_start_time:
            processing_duration = datetime.now() - self.processing_start_time
            self.logger.info("=" * 60)
            self.logger.info(f"EPIC {self.current_workflow} completed")
            self.logger.info(f"Total processing time: {processing_duration}")
        else:
            self.logger.info("Processing completed")

        self.logger.info("Processing statistics:")
        for stat_name, stat_value in self.processing_stats.items():
            self.logger.info(f"  {stat_name}: {stat_value}")

        self.completion_stats = dict(summary_stats or {})

        if summary_stats:
            self.logger.info("Additional statistics:")
            for stat_name, stat_value in summary_stats.items():
                self.logger.info(f"  {stat_name}: {stat_value}")

        self.logger.info("=" * 60)

    def get_processing_summary(self) -> Dict[str, Any]:
        """
        Get summary of current processing session.

        Returns:
            Dictionary with processing summary information
        """
        summary = {
            'workflow_type': self.current_workflow,
            'start_time': self.processing_start_time.isoformat() if self.processing_start_time else None,
            'current_time': datetime.now().isoformat(),
            'processing_stats': self.processing_stats.copy(),
            'completion_stats': self.completion_stats.copy(),
        }

        if self.processing_start_time:
            duration = datetime.now() - self.processing_start_time
            summary['elapsed_time'] = str(duration)

        return summary


class EpicError(Exception):
    """Base exception class for EPIC acquisition errors"""

    def __init__(self, message: str, context: Optional[Dict] = None):
        """
        Initialize EPIC error.

        Args:
            message: Error message
            context: Optional context dictionary with additional information
        """
        super().__init__(message)
        self.context = context or {}
        self.timestamp = datetime.now()

    def get_full_error_info(self) -> Dict[str, Any]:
        """Get complete error information including context"""
        return {
            'error_type': self.__class__.__name__,
            'message': str(self),
            'timestamp': self.timestamp.isoformat(),
            'context': self.context
        }


class ConfigurationError(EpicError):
    """Error in configuration or setup"""
    pass


class InvalidDateFormatError(EpicError):
    """Requested date is not a valid YYYY-MM-DD calendar date"""
    pass


class FetchFailedError(EpicError):
    """Manifest or image fetch from the EPIC API failed"""
    pass


class NoDataAvailableError(EpicError):
    """Date fallback exhausted its lookback without finding images"""
    pass


class RootNotWritableError(EpicError):
    """Target root folder is missing or not writable"""
    pass


class DirectoryCreateError(EpicError):
    """Date subfolder could not be created"""
    pass


class AbortedByUserError(EpicError):
    """User declined to overwrite an existing date subfolder"""
    pass


class SaveFailedError(EpicError):
    """Image bytes could not be written to disk"""
    pass


def save_processing_session_summary(summary: Dict[str, Any], output_path: str) -> None:
    """
    Save processing session summary to JSON file.

    Args:
        summary: Processing summary dictionary
        output_path: Path for output summary file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump(summary, f, indent=2, default=str)

    logging.getLogger('epic_downloader').info(f"Processing summary saved: {output_path}")
