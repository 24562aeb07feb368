#!/usr/bin/env python3
"""
EPIC Image Batch Downloader

Fetches every image in a resolved manifest and writes it into the staged
date subfolder, producing one DownloadOutcome per attempted entry.

Failure handling is asymmetric:
- a fetch error or an empty response body stops the whole batch
- a write error is recorded for that image and the batch continues
"""

from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from acquisition_types import DownloadOutcome, ImageManifestEntry
from base_downloader import BaseDownloader
from logging_utils import EpicError, SaveFailedError

ImageFetcher = Callable[[str], bytes]
ImageUrlBuilder = Callable[[ImageManifestEntry], str]


class ImageBatchDownloader(BaseDownloader):
    """
    Download the images of one manifest into one folder, sequentially.

    Attributes:
        fetch_image_bytes (Callable[[str], bytes]): Returns the body for an
            image URL; raises EpicError (normally FetchFailedError) on failure
        image_url_builder (Callable[[ImageManifestEntry], str]): Builds the
            fully qualified archive URL of an entry
    """

    def __init__(self, subfolder, fetch_image_bytes: ImageFetcher, image_url_builder: ImageUrlBuilder):
        super().__init__(subfolder)
        self.subfolder = Path(subfolder)
        self.fetch_image_bytes = fetch_image_bytes
        self.image_url_builder = image_url_builder

    def download_data(self, **kwargs) -> Dict[str, Any]:
        """
        Run download_all and report in the BaseDownloader result format.

        Args:
            manifest: Sequence of ImageManifestEntry
            effective_date: Date the manifest belongs to

        Returns:
            dict: 'status', 'outcomes', 'failed_files' and 'download_status'
        """
        outcomes = self.download_all(kwargs['manifest'], kwargs['effective_date'])
        complete = len(outcomes) == len(kwargs['manifest']) and all(o.is_saved for o in outcomes)
        return {
            'status': 'success' if complete else 'failed',
            'outcomes': outcomes,
            'failed_files': self._failed_filenames(),
            'download_status': self.get_download_status(),
        }

    def download_all(self, manifest: Sequence[ImageManifestEntry], effective_date: date) -> List[DownloadOutcome]:
        """
        Fetch and save every manifest entry in order.

        Args:
            manifest: Entries to download
            effective_date: Date the manifest belongs to, used for reporting

        Returns:
            List[DownloadOutcome]: Outcomes up to and including the first
                fetch failure, or one per entry when no fetch failed
        """
        self.logger.info(f"Downloading {len(manifest)} images from {effective_date.isoformat()}")
        outcomes = []

        for position, entry in enumerate(manifest, start=1):
            url = self.image_url_builder(entry)
            self.logger.debug(f"[{position}/{len(manifest)}] GET {entry.date_subpath}/png/{entry.filename}")

            try:
                image_bytes = self.fetch_image_bytes(url)
            except EpicError as e:
                outcomes.append(self._fetch_failed(entry, str(e)))
                break

            if not image_bytes:
                outcomes.append(self._fetch_failed(entry, "Empty response body"))
                break

            outcomes.append(self._save_image(entry, image_bytes))

        return outcomes

    def _fetch_failed(self, entry: ImageManifestEntry, reason: str) -> DownloadOutcome:
        self.logger.error(f"Failed to fetch image {entry.image_id}: {reason}. Aborting remaining downloads.")
        self._record_download_attempt(entry.filename, 'failed', reason)
        return DownloadOutcome.fetch_failed(entry.image_id, reason)

    def _save_image(self, entry: ImageManifestEntry, image_bytes: bytes) -> DownloadOutcome:
        """Write one image; a SaveFailedError becomes a save_failed outcome."""
        try:
            target_path = self._write_image(entry, image_bytes)
        except SaveFailedError as e:
            self.logger.error(str(e))
            self._record_download_attempt(entry.filename, 'failed', str(e))
            return DownloadOutcome.save_failed(entry.image_id, str(e))

        self._record_download_attempt(entry.filename, 'success')
        self.logger.info(f"-> Successfully saved image {entry.filename}")
        return DownloadOutcome.saved(entry.image_id, target_path)

    def _write_image(self, entry: ImageManifestEntry, image_bytes: bytes) -> Path:
        target_path = self.subfolder / entry.filename

        try:
            # Identifiers containing '-' map to nested paths
            target_path.parent.mkdir(parents=True, exist_ok=True)
            target_path.write_bytes(image_bytes)
        except OSError as e:
            raise SaveFailedError(
                f"Failed to save image {entry.filename}: {e}",
                {'image_id': entry.image_id, 'path': str(target_path)}
            ) from e

        return target_path
