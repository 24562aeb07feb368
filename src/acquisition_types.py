"""
Data Model for EPIC Image Acquisition

Immutable records passed between the acquisition components: the incoming
request, manifest entries returned by the EPIC API, per-image download
outcomes and the tri-state result of a run.

All records live for a single invocation only. The date subfolder on disk
is the only durable artifact of a run.
"""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from logging_utils import FetchFailedError

# Download outcome statuses
SAVED = 'saved'
SAVE_FAILED = 'save_failed'
FETCH_FAILED = 'fetch_failed'

# Acquisition result statuses
SUCCESS = 'success'
NO_DATA = 'no_data'
FAILURE = 'failure'


@dataclass(frozen=True)
class AcquisitionRequest:
    """
    A single download request.

    Attributes:
        root_folder (Path): Folder under which the date subfolder is created
        requested_date (Optional[str]): Raw 'YYYY-MM-DD' string, or None to
            use today with fallback to earlier days
    """

    root_folder: Path
    requested_date: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'root_folder', Path(self.root_folder))


@dataclass(frozen=True)
class ImageManifestEntry:
    """
    One image descriptor from the EPIC API date listing.

    The identifier is opaque and used verbatim, apart from the '-' to '/'
    substitution the EPIC archive uses for its paths.
    """

    capture_timestamp: str
    image_id: str

    @classmethod
    def from_api_record(cls, record: Mapping[str, Any]) -> 'ImageManifestEntry':
        """
        Build an entry from one element of the API's JSON array.

        Raises:
            FetchFailedError: If the record lacks the 'date' or 'image' field
        """
        try:
            return cls(capture_timestamp=str(record['date']), image_id=str(record['image']))
        except (KeyError, TypeError) as e:
            raise FetchFailedError(
                f"Malformed manifest record, missing field {e}",
                {'record': record}
            ) from e

    @property
    def date_subpath(self) -> str:
        """Archive sub-path for the capture day, e.g. '2023/11/15'."""
        return self.capture_timestamp[:10].replace('-', '/')

    @property
    def filename(self) -> str:
        """Local and remote file name, e.g. 'epic_1b_20231115003633.png'."""
        return f"{self.image_id}.png".replace('-', '/')


@dataclass(frozen=True)
class DownloadOutcome:
    """Result of fetching and saving a single manifest entry."""

    status: str
    image_id: str
    path: Optional[Path] = None
    reason: Optional[str] = None

    @classmethod
    def saved(cls, image_id: str, path: Path) -> 'DownloadOutcome':
        return cls(SAVED, image_id, path=Path(path))

    @classmethod
    def save_failed(cls, image_id: str, reason: str) -> 'DownloadOutcome':
        return cls(SAVE_FAILED, image_id, reason=reason)

    @classmethod
    def fetch_failed(cls, image_id: str, reason: str) -> 'DownloadOutcome':
        return cls(FETCH_FAILED, image_id, reason=reason)

    @property
    def is_saved(self) -> bool:
        return self.status == SAVED


@dataclass(frozen=True)
class AcquisitionResult:
    """
    Tri-state outcome of an acquisition run.

    Attributes:
        status (str): 'success', 'no_data' or 'failure'
        saved_count (int): Number of images written to disk
        effective_date (Optional[date]): Date actually queried, when known
        reason (Optional[str]): One-line description of a failure
        outcomes (Tuple[DownloadOutcome, ...]): Per-image outcomes, in order
        error_type (Optional[str]): Exception class name behind a failure
    """

    status: str
    saved_count: int = 0
    effective_date: Optional[date] = None
    reason: Optional[str] = None
    outcomes: Tuple[DownloadOutcome, ...] = field(default_factory=tuple)
    error_type: Optional[str] = None

    @classmethod
    def success(cls, saved_count: int, effective_date: date,
                outcomes: Tuple[DownloadOutcome, ...] = ()) -> 'AcquisitionResult':
        return cls(SUCCESS, saved_count, effective_date, outcomes=tuple(outcomes))

    @classmethod
    def no_data(cls, effective_date: date) -> 'AcquisitionResult':
        return cls(NO_DATA, 0, effective_date)

    @classmethod
    def failure(cls, reason: str, saved_count: int = 0,
                effective_date: Optional[date] = None,
                outcomes: Tuple[DownloadOutcome, ...] = (),
                error_type: Optional[str] = None) -> 'AcquisitionResult':
        return cls(FAILURE, saved_count, effective_date, reason, tuple(outcomes), error_type)

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used for session summaries."""
        return {
            'status': self.status,
            'saved_count': self.saved_count,
            'effective_date': self.effective_date.isoformat() if self.effective_date else None,
            'reason': self.reason,
            'error_type': self.error_type,
            'outcomes': [
                {
                    'status': outcome.status,
                    'image_id': outcome.image_id,
                    'path': str(outcome.path) if outcome.path else None,
                    'reason': outcome.reason,
                }
                for outcome in self.outcomes
            ],
        }
