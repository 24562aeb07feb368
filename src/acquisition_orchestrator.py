#!/usr/bin/env python3
"""
EPIC Image Acquisition Orchestrator

Runs one end-to-end acquisition:

    Start -> DateResolved -> Staged -> Downloading -> Done

Every component raises EpicError subclasses; this module is the boundary
where they become an AcquisitionResult. Nothing domain-related is raised
past run().
"""

import logging
from datetime import date
from typing import Callable, Optional

from acquisition_types import AcquisitionRequest, AcquisitionResult, FETCH_FAILED, SAVE_FAILED
from date_resolver import DateResolver
from destination_stager import DestinationStager
from image_batch_downloader import ImageBatchDownloader
from logging_utils import EpicError, ProcessingLogger

logger = logging.getLogger(__name__)


class AcquisitionOrchestrator:
    """
    Compose date resolution, staging and batch download into one run.

    Attributes:
        api_client: Object providing fetch_manifest(date), build_image_url(entry)
            and fetch_image_bytes(url), normally an EpicApiClient
        date_resolver (DateResolver): Picks the effective date and manifest
        destination_stager (DestinationStager): Prepares the date subfolder
        processing_logger (ProcessingLogger): Run statistics and banners
    """

    def __init__(
        self,
        api_client,
        confirm_overwrite: Callable[[], bool],
        max_lookback_days: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
        processing_logger: Optional[ProcessingLogger] = None,
    ):
        self.api_client = api_client
        self.date_resolver = DateResolver(api_client.fetch_manifest, max_lookback_days, today)
        self.destination_stager = DestinationStager(confirm_overwrite)
        self.processing_logger = processing_logger or ProcessingLogger()

    def run(self, request: AcquisitionRequest) -> AcquisitionResult:
        """
        Download one day of EPIC images into request.root_folder.

        Args:
            request: Root folder and optional 'YYYY-MM-DD' date

        Returns:
            AcquisitionResult: success with the saved count and effective date,
                no_data when an explicit date has no images, failure otherwise
        """
        self.processing_logger.log_processing_start('image acquisition', {
            'root_folder': request.root_folder,
            'requested_date': request.requested_date or 'latest available',
        })

        try:
            effective_date, manifest = self.date_resolver.resolve(request.requested_date)
        except EpicError as e:
            return self._failure('Date resolution failed', e)

        if request.requested_date is None:
            logger.info(f"Pictures from the last available day are from {effective_date.isoformat()}")

        if not manifest:
            logger.info(f"There are no pictures for this point in time ({effective_date.isoformat()}).")
            self.processing_logger.log_processing_complete({'result': 'no_data'})
            return AcquisitionResult.no_data(effective_date)

        try:
            subfolder = self.destination_stager.stage(request.root_folder, effective_date)
        except EpicError as e:
            return self._failure('Staging the target folder failed', e, effective_date=effective_date)

        downloader = ImageBatchDownloader(
            subfolder,
            self.api_client.fetch_image_bytes,
            self.api_client.build_image_url,
        )
        download_result = downloader.download_data(manifest=manifest, effective_date=effective_date)
        outcomes = download_result['outcomes']
        download_stats = {
            'downloads_attempted': download_result['download_status']['total_downloads_attempted'],
            'failed_files': download_result['failed_files'],
        }

        saved = [outcome for outcome in outcomes if outcome.is_saved]
        self.processing_logger.log_data_download(
            f"EPIC archive {effective_date.isoformat()}",
            [str(outcome.path) for outcome in saved],
        )
        self.processing_logger.log_failed_images(
            [outcome.image_id for outcome in outcomes if outcome.status == SAVE_FAILED]
        )

        fetch_failure = next((o for o in outcomes if o.status == FETCH_FAILED), None)
        if fetch_failure is not None:
            reason = (
                f"Image download aborted at {fetch_failure.image_id}: {fetch_failure.reason} "
                f"({len(saved)} of {len(manifest)} images saved)"
            )
            self.processing_logger.log_processing_error('FetchFailedError', reason)
            self.processing_logger.log_processing_complete({'result': 'failure', **download_stats})
            return AcquisitionResult.failure(
                reason,
                saved_count=len(saved),
                effective_date=effective_date,
                outcomes=tuple(outcomes),
                error_type='FetchFailedError',
            )

        self.processing_logger.log_processing_complete({
            'result': 'success',
            'effective_date': effective_date.isoformat(),
            **download_stats,
        })
        return AcquisitionResult.success(len(saved), effective_date, tuple(outcomes))

    def _failure(self, step: str, error: EpicError,
                 effective_date: Optional[date] = None) -> AcquisitionResult:
        """Log a failed step and build the matching failure result."""
        self.processing_logger.log_processing_error(type(error).__name__, str(error), error.context)
        self.processing_logger.log_processing_complete({'result': 'failure'})
        return AcquisitionResult.failure(
            f"{step}: {error}",
            effective_date=effective_date,
            error_type=type(error).__name__,
        )
