# ABOUTME: Error taxonomy shared by the fetch, extraction, download and orchestration layers
# ABOUTME: Item-level errors are converted to outcomes at the pipeline boundary; SetupError aborts the run


class HarvestError(Exception):
    """Base exception for all harvest errors.

    Args:
        details: Human readable description of the failure
        entry_id: Id of the source entry being processed, when known
    """

    kind = "harvest"

    def __init__(self, details: str, entry_id: str | None = None):
        self.details = details
        self.entry_id = entry_id
        prefix = f"{self.kind.upper()} ({entry_id})" if entry_id else self.kind.upper()
        super().__init__(f"{prefix}: {details}")


class NetworkError(HarvestError):
    """Raised when a remote fetch or asset download fails."""

    kind = "network"

    def __init__(self, details: str, entry_id: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(details, entry_id)


class ExtractionError(HarvestError):
    """Raised when a required sub-structure is absent from a payload."""

    kind = "extraction"


class ValidationError(HarvestError):
    """Structural invariant violation.

    Validation itself never raises; this type exists so invalid records can be
    reported with the same shape as the other failures.
    """

    kind = "validation"


class SecurityError(HarvestError):
    """Raised when a URL or destination path violates the download policy."""

    kind = "security"


class FileSystemError(HarvestError):
    """Raised when writing or deleting a local file fails."""

    kind = "filesystem"


class SetupError(Exception):
    """Raised for fatal setup problems (bad configuration, unusable entry list)."""

    pass


class SuccessRateError(Exception):
    """Raised by callers when a run's success rate is below the required threshold."""

    def __init__(self, failed_ids: list[str], total: int, success_rate: float, minimum: float):
        self.failed_ids = failed_ids
        self.total = total
        self.success_rate = success_rate
        self.minimum = minimum
        super().__init__(
            f"{len(failed_ids)}/{total} entries failed: success rate {success_rate:.0%} is below {minimum:.0%}"
        )
