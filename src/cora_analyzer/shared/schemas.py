"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the analysis pipeline:
- Course identity
- Search, extraction and summary records
- The final rating artifact and its cache entry
- Run bookkeeping, progress events and audit log entries
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class RatingSource(str, Enum):
    """Where the numeric scores of a FinalRating came from."""

    EXTERNAL_AGGREGATOR = "EXTERNAL_AGGREGATOR"
    MODEL_RUBRIC = "MODEL_RUBRIC"


class RunStatus(str, Enum):
    """Coarse status of an analysis run."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class RunStage(str, Enum):
    """Pipeline stage of an analysis run."""

    PENDING = "PENDING"
    SEARCHING = "SEARCHING"
    SCRAPING = "SCRAPING"
    SUMMARIZING = "SUMMARIZING"
    RATING = "RATING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class AuditEntryType(str, Enum):
    """Audit log entry kinds."""

    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"


# ─────────────────────────────────────────────────────────────────────────────
# Identity
# ─────────────────────────────────────────────────────────────────────────────


class CourseIdentity(BaseModel):
    """
    The course/professor pair being analyzed.

    Frozen: once handed to the pipeline it cannot change.
    """

    model_config = ConfigDict(frozen=True)

    course_number: str = Field(default="", description="Course number (e.g., 'CS 2130')")
    course_name: str = Field(default="", description="Course title")
    professor_name: Optional[str] = Field(default=None, description="Instructor name")
    section: Optional[str] = Field(default=None, description="Section number")
    term: Optional[str] = Field(default=None, description="Academic term (e.g., 'Fall 2024')")

    @property
    def has_professor(self) -> bool:
        """Whether an instructor is known."""
        return bool(self.professor_name and self.professor_name.strip())

    def display_name(self) -> str:
        """Short human-readable label."""
        label = self.course_number or self.course_name or "Unknown course"
        if self.has_professor:
            return f"{label} with {self.professor_name}"
        return label


# ─────────────────────────────────────────────────────────────────────────────
# Search and Extraction
# ─────────────────────────────────────────────────────────────────────────────


class SearchResult(BaseModel):
    """A single hit returned by the search provider."""

    title: str = ""
    url: str
    snippet: str = ""
    display_site: str = ""


class SiteSearchOutcome(BaseModel):
    """Search outcome for one site; failures are reported, not raised."""

    site: str
    success: bool
    results: list[SearchResult] = Field(default_factory=list)
    error: Optional[str] = None


class ScrapeTask(BaseModel):
    """One page to extract, flattened from the search results."""

    site: str
    url: str
    title: str = ""
    snippet: str = ""


class EmbeddedRating(BaseModel):
    """A numeric score found directly in an aggregator page."""

    overall: float
    difficulty: Optional[float] = None
    source_label: str = ""
    source_url: str


class PageExtract(BaseModel):
    """Plain text extracted from a fetched page."""

    url: str
    site: str = ""
    title: str = ""
    raw_content: str = ""
    success: bool
    error: Optional[str] = None
    embedded_rating: Optional[EmbeddedRating] = None
    scraped_at: datetime = Field(default_factory=utc_now)


class PageSummary(BaseModel):
    """Model write-up of one relevant page."""

    source: str
    url: str
    title: str = ""
    summary_text: Optional[str] = None
    success: bool
    error: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Final Rating
# ─────────────────────────────────────────────────────────────────────────────


class SourceLink(BaseModel):
    """Attribution for a page that contributed to a rating."""

    title: str = ""
    url: str
    source: str = ""


class FinalRating(BaseModel):
    """
    The terminal artifact of an analysis.

    Stored in the result cache and returned to the caller. Unparsable
    fields are None; full_analysis always holds the raw model text.
    """

    overall_rating: Optional[float] = None
    difficulty_rating: Optional[float] = None
    course_summary: Optional[str] = None
    professor_summary: Optional[str] = None
    rating_source: RatingSource = RatingSource.MODEL_RUBRIC
    rating_source_label: str = "Cora Rubric"
    rating_source_url: Optional[str] = None
    sources: list[SourceLink] = Field(default_factory=list)
    full_analysis: str = ""
    generated_at: datetime = Field(default_factory=utc_now)


# ─────────────────────────────────────────────────────────────────────────────
# Cache Models
# ─────────────────────────────────────────────────────────────────────────────


class CacheEntry(BaseModel):
    """A stored analysis result with its lifetime."""

    key: str
    created_at: datetime
    expires_at: datetime
    identity: CourseIdentity
    result: FinalRating

    def is_expired(self, now: datetime) -> bool:
        """Check whether the entry has outlived its TTL."""
        return now > self.expires_at


class CacheStats(BaseModel):
    """Snapshot of cache contents and hit/miss counters."""

    total_entries: int = 0
    active_entries: int = 0
    expired_entries: int = 0
    oldest_age_seconds: Optional[float] = None
    newest_age_seconds: Optional[float] = None
    approx_size_bytes: int = 0
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Run Models
# ─────────────────────────────────────────────────────────────────────────────


class ProgressEvent(BaseModel):
    """A progress notification emitted during a run."""

    message: str
    step: int
    total_steps: int
    completed: bool = False


class StageResults(BaseModel):
    """Intermediate outputs kept for inspection of a run."""

    search: dict[str, SiteSearchOutcome] = Field(default_factory=dict)
    extracts: list[PageExtract] = Field(default_factory=list)
    summaries: list[PageSummary] = Field(default_factory=list)


class AnalysisRun(BaseModel):
    """Transient record of one orchestration call. Never persisted."""

    identity: CourseIdentity
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = None
    status: RunStatus = RunStatus.PROCESSING
    stage: RunStage = RunStage.PENDING
    from_cache: bool = False
    stage_results: StageResults = Field(default_factory=StageResults)
    final_rating: Optional[FinalRating] = None
    error: Optional[str] = None
    error_stack: Optional[str] = None


class AnalysisFailure(BaseModel):
    """Error result returned to the caller instead of a FinalRating."""

    identity: CourseIdentity
    message: str
    stack: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Audit Log
# ─────────────────────────────────────────────────────────────────────────────


class AuditLogEntry(BaseModel):
    """One line of the model request audit log."""

    id: str
    request_id: str
    type: AuditEntryType
    timestamp: datetime = Field(default_factory=utc_now)

    # REQUEST
    request_type: Optional[str] = None
    model: Optional[str] = None
    max_output_tokens: Optional[int] = None
    reasoning_effort: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None

    # RESPONSE
    duration_ms: Optional[float] = None
    content: Optional[str] = None
    usage: dict[str, Any] = Field(default_factory=dict)

    # ERROR
    error: Optional[str] = None
    stack: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Enrollment Models
# ─────────────────────────────────────────────────────────────────────────────


class EnrollmentSnapshot(BaseModel):
    """Enrollment and waitlist counts at one point in time."""

    enrolled: int = 0
    waitlist: int = 0
    timestamp: Any = None


class EnrollmentResult(BaseModel):
    """Outcome of an enrollment history lookup."""

    success: bool
    term_code: str = ""
    class_number: str = ""
    data: Optional[list[EnrollmentSnapshot]] = None
    error: Optional[str] = None
    fetched_at: datetime = Field(default_factory=utc_now)
