"""Exception types raised by reflector services."""

from dataclasses import dataclass


class ReflectorError(Exception):
    """Base class for reflector errors."""


class ExternalAPIError(ReflectorError):
    """Raised when the external batch API rejects a call."""


class TransientExternalError(ExternalAPIError):
    """Raised when the external batch API is unreachable or overloaded.

    Never changes job state; the next scheduled invocation retries.
    """


class TerminalExternalFailure(ExternalAPIError):
    """The external API reported a batch as failed, expired or cancelled.

    Recorded on the job and reported once; never retried.
    """

    def __init__(self, batch_id: str, external_status: str):
        super().__init__(f"OpenAI batch {external_status}")
        self.batch_id = batch_id
        self.external_status = external_status


class BatchJobNotFound(ReflectorError):
    """Raised when a batch job record does not exist."""

    def __init__(self, batch_id: str):
        super().__init__(f"Batch job {batch_id} not found")
        self.batch_id = batch_id


class BatchNotReady(ReflectorError):
    """Raised when a batch is asked to be consumed before it has completed."""

    def __init__(self, batch_id: str, external_status: str):
        super().__init__(f"Batch {batch_id} is not completed (status: {external_status})")
        self.batch_id = batch_id
        self.external_status = external_status


class PermissionDenied(ReflectorError):
    """Raised when a caller is not the configured administrator."""


class InvalidArgument(ReflectorError):
    """Raised when a caller supplies a malformed argument."""


@dataclass(frozen=True)
class PerRecordError:
    """One user's failure inside an otherwise successful batch."""

    record_id: str
    message: str

    def to_dict(self) -> dict:
        return {"record_id": self.record_id, "message": self.message}
