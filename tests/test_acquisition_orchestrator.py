#!/usr/bin/env python3
"""
End-to-end tests for the acquisition orchestrator.

The EPIC API is replaced by an in-memory client; staging and saving run
against a temporary directory.
"""

import os
import shutil
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import sys
sys.path.append(str(Path(__file__).parent.parent / "src"))

from acquisition_orchestrator import AcquisitionOrchestrator
from acquisition_types import AcquisitionRequest, ImageManifestEntry, SUCCESS, NO_DATA, FAILURE
from logging_utils import FetchFailedError


def make_manifest(day, count):
    return [
        ImageManifestEntry(f"{day.isoformat()} 0{i}:31:45", f"epic_1b_{day:%Y%m%d}0{i}3633")
        for i in range(count)
    ]


class FakeEpicClient:
    """In-memory stand-in for EpicApiClient."""

    def __init__(self, manifests=None, failing_images=(), manifest_error=None):
        self.manifests = manifests or {}
        self.failing_images = set(failing_images)
        self.manifest_error = manifest_error
        self.manifest_calls = []
        self.image_calls = []

    def fetch_manifest(self, day):
        self.manifest_calls.append(day)
        if self.manifest_error:
            raise self.manifest_error
        return list(self.manifests.get(day, []))

    def build_image_url(self, entry):
        return f"https://archive.test/natural/{entry.date_subpath}/png/{entry.filename}?api_key=test"

    def fetch_image_bytes(self, url):
        self.image_calls.append(url)
        if any(f"/{image_id}.png" in url for image_id in self.failing_images):
            raise FetchFailedError("Failed to fetch from the API. Status code: 500")
        return b'\x89PNG' + url.encode()


class TestAcquisitionOrchestrator(unittest.TestCase):
    """Test the end-to-end acquisition run."""

    def setUp(self):
        """Set up test environment."""
        self.root = Path(tempfile.mkdtemp())

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.root, ignore_errors=True)

    def run_acquisition(self, client, requested_date, confirm=None, **kwargs):
        orchestrator = AcquisitionOrchestrator(client, confirm or MagicMock(return_value=True), **kwargs)
        return orchestrator.run(AcquisitionRequest(self.root, requested_date))

    def test_explicit_date_downloads_all_images(self):
        """Three images for 2023-11-15 end up as three files."""
        day = date(2023, 11, 15)
        client = FakeEpicClient({day: make_manifest(day, 3)})

        result = self.run_acquisition(client, '2023-11-15')

        self.assertEqual(result.status, SUCCESS)
        self.assertEqual(result.saved_count, 3)
        self.assertEqual(result.effective_date, day)
        self.assertEqual(len(list((self.root / '2023-11-15').glob('*.png'))), 3)

    def test_explicit_date_without_images_is_no_data(self):
        """An empty day yields no_data and no subfolder."""
        client = FakeEpicClient()
        confirm = MagicMock(return_value=True)

        result = self.run_acquisition(client, '2013-11-20', confirm)

        self.assertEqual(result.status, NO_DATA)
        self.assertEqual(result.effective_date, date(2013, 11, 20))
        self.assertFalse((self.root / '2013-11-20').exists())
        self.assertEqual(client.manifest_calls, [date(2013, 11, 20)])
        confirm.assert_not_called()

    def test_malformed_date_fails_before_any_io(self):
        """Invalid dates fail without network or filesystem activity."""
        client = FakeEpicClient()

        result = self.run_acquisition(client, 'invalid-date-format')

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'InvalidDateFormatError')
        self.assertIn('Invalid date format. Please use the format YYYY-MM-DD.', result.reason)
        self.assertEqual(client.manifest_calls, [])
        self.assertEqual(os.listdir(self.root), [])

    def test_latest_available_day_is_used_without_date(self):
        """Without a date the run falls back to the last day with images."""
        available = date(2023, 11, 15)
        client = FakeEpicClient({available: make_manifest(available, 2)})

        result = self.run_acquisition(client, None, today=lambda: date(2023, 11, 17))

        self.assertEqual(result.status, SUCCESS)
        self.assertEqual(result.effective_date, available)
        self.assertEqual(client.manifest_calls, [date(2023, 11, 17), date(2023, 11, 16), available])
        self.assertTrue((self.root / '2023-11-15').is_dir())
        self.assertFalse((self.root / '2023-11-17').exists())

    def test_exhausted_lookback_is_failure(self):
        """A capped search with no images reports failure."""
        client = FakeEpicClient()

        result = self.run_acquisition(client, None, max_lookback_days=3, today=lambda: date(2023, 11, 17))

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'NoDataAvailableError')
        self.assertEqual(len(client.manifest_calls), 4)
        self.assertEqual(os.listdir(self.root), [])

    def test_manifest_fetch_failure(self):
        """A failing date listing ends the run as a failure."""
        client = FakeEpicClient(manifest_error=FetchFailedError("Failed to fetch from the API. Status code: 503"))

        result = self.run_acquisition(client, '2023-11-15')

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'FetchFailedError')
        self.assertTrue(result.reason.startswith('Date resolution failed'))
        self.assertEqual(os.listdir(self.root), [])

    def test_declined_overwrite_leaves_folder_unchanged(self):
        """Declining the overwrite aborts and keeps existing contents."""
        day = date(2021, 11, 3)
        existing = self.root / '2021-11-03'
        existing.mkdir()
        (existing / 'old.png').write_bytes(b'old')
        client = FakeEpicClient({day: make_manifest(day, 2)})

        result = self.run_acquisition(client, '2021-11-03', MagicMock(return_value=False))

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'AbortedByUserError')
        self.assertIn('The process was aborted by user.', result.reason)
        self.assertEqual(os.listdir(existing), ['old.png'])
        self.assertEqual((existing / 'old.png').read_bytes(), b'old')
        self.assertEqual(client.image_calls, [])

    def test_confirmed_overwrite_adds_files_and_keeps_others(self):
        """Confirming the overwrite keeps non-colliding files."""
        day = date(2022, 11, 20)
        existing = self.root / '2022-11-20'
        existing.mkdir()
        (existing / 'old.png').write_bytes(b'old')
        manifest = make_manifest(day, 2)
        (existing / manifest[0].filename).write_bytes(b'stale')
        client = FakeEpicClient({day: manifest})

        result = self.run_acquisition(client, '2022-11-20', MagicMock(return_value=True))

        self.assertEqual(result.status, SUCCESS)
        self.assertEqual(result.saved_count, 2)
        self.assertEqual((existing / 'old.png').read_bytes(), b'old')
        self.assertNotEqual((existing / manifest[0].filename).read_bytes(), b'stale')
        self.assertEqual(len(os.listdir(existing)), 3)

    def test_unwritable_root_fails_without_subfolder(self):
        """An unwritable root is a failure and nothing is created."""
        day = date(2023, 5, 1)
        client = FakeEpicClient({day: make_manifest(day, 1)})

        with patch('destination_stager.os.access', return_value=False):
            result = self.run_acquisition(client, '2023-05-01')

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'RootNotWritableError')
        self.assertFalse((self.root / '2023-05-01').exists())
        self.assertEqual(client.image_calls, [])

    def test_image_fetch_failure_reports_saved_count(self):
        """A failed image fetch aborts the run and reports images saved so far."""
        day = date(2023, 11, 15)
        manifest = make_manifest(day, 3)
        client = FakeEpicClient({day: manifest}, failing_images=[manifest[1].image_id])

        result = self.run_acquisition(client, '2023-11-15')

        self.assertEqual(result.status, FAILURE)
        self.assertEqual(result.error_type, 'FetchFailedError')
        self.assertEqual(result.saved_count, 1)
        self.assertEqual(result.effective_date, day)
        self.assertIn('1 of 3 images saved', result.reason)
        self.assertEqual(len(client.image_calls), 2)
        self.assertEqual(len(result.outcomes), 2)

    def test_save_failure_still_succeeds(self):
        """Save failures are recorded but do not turn the run into a failure."""
        day = date(2023, 11, 15)
        manifest = make_manifest(day, 3)
        subfolder = self.root / '2023-11-15'
        subfolder.mkdir()
        (subfolder / manifest[0].filename).mkdir()
        client = FakeEpicClient({day: manifest})

        result = self.run_acquisition(client, '2023-11-15', MagicMock(return_value=True))

        self.assertEqual(result.status, SUCCESS)
        self.assertEqual(result.saved_count, 2)
        self.assertEqual(len(client.image_calls), 3)

    def test_result_serializes_for_summary(self):
        """to_dict gives a JSON-friendly view of the run."""
        day = date(2023, 11, 15)
        client = FakeEpicClient({day: make_manifest(day, 1)})

        summary = self.run_acquisition(client, '2023-11-15').to_dict()

        self.assertEqual(summary['status'], 'success')
        self.assertEqual(summary['effective_date'], '2023-11-15')
        self.assertEqual(summary['outcomes'][0]['status'], 'saved')


if __name__ == '__main__':
    unittest.main(verbosity=2)
