"""
Custom Exceptions

Two families under one root:

- SourceError: an upstream (PubMed, Cochrane, ClinicalTrials.gov, a guideline
  publisher) misbehaved. Raised inside an adapter and caught at its search
  boundary, so a degraded source yields no results instead of an error.
- CallerError: the request cannot produce a meaningful search. Always
  propagates to the caller; the API maps it to 4xx.
"""
from typing import Optional, Sequence


class EvidenceEngineError(Exception):
    """Base exception for all application errors."""


# === Upstream source failures ===

class SourceError(EvidenceEngineError):
    """An upstream source could not be queried or understood."""

    def __init__(self, source_name: str, message: str):
        self.source_name = source_name
        self.message = message
        super().__init__(f"{source_name}: {message}")


class SourceTimeoutError(SourceError):
    def __init__(self, source_name: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(source_name, f"no response within {timeout_seconds:g}s")


class SourceRateLimitError(SourceError):
    """The upstream answered 429 despite the adapter's cooldown."""

    def __init__(self, source_name: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        suffix = f" (retry after {retry_after}s)" if retry_after else ""
        super().__init__(source_name, f"upstream rate limit hit{suffix}")


class SourceHTTPError(SourceError):
    def __init__(self, source_name: str, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        message = f"HTTP {status_code}" + (f" {detail}" if detail else "")
        super().__init__(source_name, message)


class SourceParseError(SourceError):
    """Response body was not the JSON or XML the adapter expects."""

    def __init__(self, source_name: str, detail: Optional[str] = None):
        super().__init__(source_name, f"unreadable response{': ' + detail if detail else ''}")


class RecordProcessingError(SourceError):
    """One raw record could not be normalized or scored; the rest still count."""

    def __init__(self, source_name: str, record_id: Optional[str], detail: str):
        self.record_id = record_id
        super().__init__(source_name, f"record {record_id or '<unknown>'} skipped: {detail}")


# === Caller mistakes ===

class CallerError(EvidenceEngineError):
    """The request itself cannot produce a meaningful search."""


class EmptyQueryError(CallerError):
    def __init__(self):
        super().__init__("At least one non-blank keyword is required")


class NoSourcesRequestedError(CallerError):
    def __init__(self):
        super().__init__("At least one source must be requested")


class UnknownPublisherError(CallerError):
    """Guideline lookup named an organization with no configured endpoint."""

    def __init__(self, organization: str):
        self.organization = organization
        super().__init__(f"Unknown guideline organization: {organization}")


class NoSourcesAvailableError(EvidenceEngineError):
    """None of the requested source names resolved to an adapter."""

    def __init__(self, requested: Sequence[str]):
        self.requested = list(requested)
        super().__init__(f"No usable source among: {', '.join(self.requested) or '<none>'}")
