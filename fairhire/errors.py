class FairHireError(Exception):
    """Base class for errors raised by the scoring core and its job board."""


class ParseError(FairHireError):
    """The uploaded document is unsupported, unreadable, or has no usable text."""


class JobDescriptionError(FairHireError, ValueError):
    """A job description failed validation at creation time."""


class UnknownJobError(FairHireError, KeyError):
    def __init__(self, job_id: str) -> None:
        super().__init__(job_id)
        self.job_id = job_id

    def __str__(self) -> str:
        return f"No job description with id {self.job_id!r}"


class CandidateLimitError(FairHireError):
    def __init__(self, job_id: str, limit: int) -> None:
        super().__init__(f"Job {job_id!r} already has the maximum of {limit} candidates.")
        self.job_id = job_id
        self.limit = limit
