"""
NASA EPIC API Client

Thin HTTP transport for the two EPIC endpoints used by the downloader:
the per-date image listing and the PNG archive.

    GET <api-base>/<category>/date/<YYYY-MM-DD>?api_key=<key>
    GET <archive-base>/<category>/<YYYY>/<MM>/<DD>/png/<image>.png?api_key=<key>

References:
- EPIC API documentation: https://epic.gsfc.nasa.gov/about/api
- api.nasa.gov gateway: https://api.nasa.gov/

Security:
- The API key is injected by the caller (see EpicConfig), never read here
"""

import logging
from datetime import date
from typing import List, Optional

import requests

from acquisition_types import ImageManifestEntry
from logging_utils import FetchFailedError

logger = logging.getLogger(__name__)

EPIC_API_BASE_URL = 'https://api.nasa.gov/EPIC/api'
EPIC_ARCHIVE_BASE_URL = 'https://api.nasa.gov/EPIC/archive'
DEFAULT_IMAGE_CATEGORY = 'natural'
IMAGE_CATEGORIES = ('natural', 'enhanced', 'aerosol', 'cloud')


class EpicApiClient:
    """
    Blocking client for the EPIC date listing and image archive.

    Attributes:
        api_key (str): api.nasa.gov key appended to every request
        api_base_url (str): Base of the listing endpoint
        archive_base_url (str): Base of the image archive
        image_category (str): One of 'natural', 'enhanced', 'aerosol', 'cloud'
        timeout_seconds (Optional[float]): Per-request timeout, None waits forever
        session (requests.Session): Shared HTTP session
    """

    def __init__(
        self,
        api_key: str,
        api_base_url: str = EPIC_API_BASE_URL,
        archive_base_url: str = EPIC_ARCHIVE_BASE_URL,
        image_category: str = DEFAULT_IMAGE_CATEGORY,
        timeout_seconds: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        if image_category not in IMAGE_CATEGORIES:
            raise ValueError(f"Unknown image category: {image_category}. Available: {list(IMAGE_CATEGORIES)}")

        self.api_key = str(api_key) if api_key is not None else None
        self.api_base_url = api_base_url.rstrip('/')
        self.archive_base_url = archive_base_url.rstrip('/')
        self.image_category = image_category
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> 'EpicApiClient':
        """Build a client from the 'api' section of an EpicConfig."""
        api_config = config.get_api_config()
        return cls(
            api_key=api_config['api_key'],
            api_base_url=api_config['base_url'],
            archive_base_url=api_config['archive_base_url'],
            image_category=api_config['image_category'],
            timeout_seconds=api_config.get('timeout_seconds'),
            session=session,
        )

    def manifest_url(self, day: date) -> str:
        return f"{self.api_base_url}/{self.image_category}/date/{day.strftime('%Y-%m-%d')}"

    def build_image_url(self, entry: ImageManifestEntry) -> str:
        """
        Fully qualified archive URL of one image.

        Example:
            >>> entry = ImageManifestEntry('2023-11-15 00:31:45', 'epic_1b_20231115003633')
            >>> client.build_image_url(entry)
            'https://api.nasa.gov/EPIC/archive/natural/2023/11/15/png/epic_1b_20231115003633.png?api_key=...'
        """
        return (
            f"{self.archive_base_url}/{self.image_category}/"
            f"{entry.date_subpath}/png/{entry.filename}?api_key={self.api_key}"
        )

    def fetch_manifest(self, day: date) -> List[ImageManifestEntry]:
        """
        Fetch the image listing for one day.

        Args:
            day: Date to list

        Returns:
            List[ImageManifestEntry]: Entries in API order, empty when the day
                has no images

        Raises:
            FetchFailedError: Transport error, non-2xx status or a body that
                is not a JSON array of image records
        """
        url = self.manifest_url(day)
        logger.debug(f"Requesting manifest {url}")

        response = self._get(url, params={'api_key': self.api_key})

        try:
            records = response.json()
        except ValueError as e:
            raise FetchFailedError(
                f"Failed to fetch images from the API: invalid JSON for {day.isoformat()}",
                {'url': url}
            ) from e

        if not isinstance(records, list):
            raise FetchFailedError(
                f"Failed to fetch images from the API: expected a list for {day.isoformat()}",
                {'url': url, 'body_type': type(records).__name__}
            )

        return [ImageManifestEntry.from_api_record(record) for record in records]

    def fetch_image_bytes(self, url: str) -> bytes:
        """
        Fetch the raw body of an image URL.

        Raises:
            FetchFailedError: Transport error or non-2xx status
        """
        return self._get(url).content

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            raise FetchFailedError(
                f"HTTP error occurred: {self._redact(str(e))}",
                {'url': self._redact(url)}
            ) from e

        if not 200 <= response.status_code < 300:
            raise FetchFailedError(
                f"Failed to fetch from the API. Status code: {response.status_code}",
                {'url': self._redact(url), 'status_code': response.status_code}
            )

        return response

    def _redact(self, url: str) -> str:
        if self.api_key:
            return url.replace(self.api_key, '***')
        return url
