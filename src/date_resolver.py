"""
Effective Date Resolution for EPIC Image Acquisition

Decides which day's images to download. An explicit date is validated and
queried once. Without one, the search starts today and walks back one
calendar day at a time until the EPIC API returns a non-empty manifest.

EPIC images are published with a lag of one or more days, so "today" is
frequently empty and the fallback is the normal path for unpinned runs.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from acquisition_types import ImageManifestEntry
from logging_utils import InvalidDateFormatError, NoDataAvailableError

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'
_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

ManifestFetcher = Callable[[date], List[ImageManifestEntry]]


def parse_requested_date(date_text: str) -> date:
    """
    Parse a user supplied 'YYYY-MM-DD' date.

    Args:
        date_text: Raw date string

    Returns:
        date: Parsed calendar date

    Raises:
        InvalidDateFormatError: If the string is not a valid calendar date
            in exactly the 'YYYY-MM-DD' form
    """
    if not isinstance(date_text, str) or not _DATE_PATTERN.match(date_text):
        raise InvalidDateFormatError(
            "Invalid date format. Please use the format YYYY-MM-DD.",
            {'requested_date': date_text}
        )

    try:
        return datetime.strptime(date_text, DATE_FORMAT).date()
    except ValueError as e:
        raise InvalidDateFormatError(
            "Invalid date format. Please use the format YYYY-MM-DD.",
            {'requested_date': date_text, 'detail': str(e)}
        ) from e


class DateResolver:
    """
    Resolve the effective date of a run and fetch its manifest.

    Attributes:
        fetch_manifest (Callable): Returns the manifest entries for a date.
            Transport failures surface as FetchFailedError and abort resolution.
        max_lookback_days (Optional[int]): Maximum number of days to step back
            when no date is requested. None searches without limit.
        today (Callable): Source of the starting date, local clock by default
    """

    def __init__(
        self,
        fetch_manifest: ManifestFetcher,
        max_lookback_days: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        if max_lookback_days is not None and max_lookback_days < 0:
            raise ValueError(f"max_lookback_days must be non-negative. Got: {max_lookback_days}")

        self.fetch_manifest = fetch_manifest
        self.max_lookback_days = max_lookback_days
        self.today = today or date.today

    def resolve(self, requested_date: Optional[str] = None) -> Tuple[date, List[ImageManifestEntry]]:
        """
        Produce the effective date and its manifest.

        Args:
            requested_date: 'YYYY-MM-DD' string, or None for today with fallback

        Returns:
            Tuple[date, List[ImageManifestEntry]]: Effective date and its
                manifest. For an explicit date the manifest may be empty.

        Raises:
            InvalidDateFormatError: Malformed explicit date (no fetch is made)
            FetchFailedError: A manifest request failed
            NoDataAvailableError: Fallback exceeded max_lookback_days
        """
        if requested_date is not None:
            effective_date = parse_requested_date(requested_date)
            logger.info(f"Fetching manifest for requested date {effective_date.isoformat()}")
            return effective_date, list(self.fetch_manifest(effective_date))

        return self._resolve_latest_available()

    def _resolve_latest_available(self) -> Tuple[date, List[ImageManifestEntry]]:
        """Walk back from today until a day with images is found."""
        start_date = self.today()
        candidate = start_date
        days_back = 0

        while True:
            logger.debug(f"Checking {candidate.isoformat()} for images")
            manifest = list(self.fetch_manifest(candidate))
            if manifest:
                if days_back:
                    logger.info(
                        f"No images for the {days_back} most recent day(s), "
                        f"using {candidate.isoformat()}"
                    )
                return candidate, manifest

            if self.max_lookback_days is not None and days_back >= self.max_lookback_days:
                raise NoDataAvailableError(
                    f"No pictures found in the last {days_back + 1} day(s) "
                    f"(searched back to {candidate.isoformat()})",
                    {'start_date': start_date.isoformat(), 'max_lookback_days': self.max_lookback_days}
                )

            candidate -= timedelta(days=1)
            days_back += 1
