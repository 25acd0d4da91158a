"""
Enrollments Module - Enrollment and waitlist history lookups.
=============================================================

Fetches the enrollment history of a single class section from the
class schedule service. Inputs are validated before any request is made
and failures are returned, not raised.
"""

import re
from typing import Any, Optional

from pydantic import ValidationError

from cora_analyzer.network.http_client import RetryingHttpClient
from cora_analyzer.shared.config import get_settings
from cora_analyzer.shared.logging import get_logger
from cora_analyzer.shared.schemas import EnrollmentResult, EnrollmentSnapshot

logger = get_logger(__name__)

ENROLLMENTS_PATH = "/ClassSchedule/_GetLatestClassEnrollments"

_TERM_CODE_PATTERN = re.compile(r"^\d{4}$")
_CLASS_NUMBER_PATTERN = re.compile(r"^\d{5}$")


def _parse_snapshots(payload: Any) -> list[EnrollmentSnapshot]:
    """
    Map raw {enrolled, waitlist, t} entries to snapshots.

    Non-object entries are skipped.

    Raises:
        ValueError: If the payload is not a list or an entry has non-numeric counts
    """
    if not isinstance(payload, list):
        raise ValueError("Expected array of enrollment data")

    snapshots = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        snapshots.append(
            EnrollmentSnapshot(
                enrolled=item.get("enrolled") or 0,
                waitlist=item.get("waitlist") or 0,
                timestamp=item.get("t"),
            )
        )
    return snapshots


class EnrollmentClient:
    """
    Client for the enrollment history endpoint.

    Example:
        >>> client = EnrollmentClient()
        >>> result = await client.get_class_enrollments("1248", "12345")
        >>> if result.success:
        ...     print(result.data[-1].enrolled)
    """

    def __init__(
        self,
        http: Optional[RetryingHttpClient] = None,
        base_url: Optional[str] = None,
    ):
        settings = get_settings()
        self.http = http or RetryingHttpClient(config=settings.http)
        self.base_url = (base_url or settings.enrollments.base_url).rstrip("/")

    async def get_class_enrollments(self, term_code: str, class_number: str) -> EnrollmentResult:
        """
        Fetch enrollment history for one class section.

        Args:
            term_code: Four-digit term code (e.g., "1248")
            class_number: Five-digit class number

        Returns:
            EnrollmentResult with success flag, snapshots or error
        """
        term_code = str(term_code).strip()
        class_number = str(class_number).strip()

        if not _TERM_CODE_PATTERN.match(term_code):
            return EnrollmentResult(
                success=False,
                term_code=term_code,
                class_number=class_number,
                error="Invalid term code: expected 4 digits",
            )
        if not _CLASS_NUMBER_PATTERN.match(class_number):
            return EnrollmentResult(
                success=False,
                term_code=term_code,
                class_number=class_number,
                error="Invalid class number: expected 5 digits",
            )

        url = f"{self.base_url}{ENROLLMENTS_PATH}"
        logger.info(f"Fetching enrollments for term {term_code}, class {class_number}")

        result = await self.http.request(
            url,
            params={"termCode": term_code, "classNumber": class_number},
            headers={"Accept": "application/json"},
        )
        if not result.success:
            return EnrollmentResult(
                success=False,
                term_code=term_code,
                class_number=class_number,
                error=result.error or "Request failed",
            )

        try:
            payload = result.json()
        except ValueError as e:
            logger.warning(f"Enrollment response was not JSON: {e}")
            return EnrollmentResult(
                success=False,
                term_code=term_code,
                class_number=class_number,
                error=f"Invalid JSON response: {e}",
            )

        try:
            snapshots = _parse_snapshots(payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Failed to parse enrollment data: {e}")
            return EnrollmentResult(
                success=False,
                term_code=term_code,
                class_number=class_number,
                error=f"Failed to parse enrollment data: {e}",
            )

        logger.debug(f"Parsed {len(snapshots)} enrollment snapshots")
        return EnrollmentResult(
            success=True,
            term_code=term_code,
            class_number=class_number,
            data=snapshots,
        )
