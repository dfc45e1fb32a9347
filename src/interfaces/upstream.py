"""Tagged result type returned by every upstream collaborator.

Collaborators never hand raw JSON to the services.  Each call returns an
:class:`UpstreamResponse` in exactly one of three shapes:

    OK              payload validated, ready to use
    UPSTREAM_ERROR  transport failure or non-success HTTP status
    MALFORMED       the upstream answered 2xx but the body had the wrong shape

Services branch on ``status`` and degrade errors to empty results at the
smallest scope they control (one page, one song, one artist).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class UpstreamStatus(str, Enum):  # noqa: UP042 - StrEnum requires Python 3.11+
    OK = "ok"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class UpstreamResponse(Generic[T]):
    """Outcome of one upstream call.

    Attributes
    ----------
    status:
        Which of the three variants this is.
    payload:
        The validated payload; only set when ``status`` is ``OK``.
    error:
        Human-readable reason for the two failure variants.
    status_code:
        HTTP status from upstream, when there was one.
    """

    status: UpstreamStatus
    payload: T | None = None
    error: str | None = None
    status_code: int | None = None

    @classmethod
    def ok(cls, payload: T) -> UpstreamResponse[T]:
        return cls(status=UpstreamStatus.OK, payload=payload)

    @classmethod
    def upstream_error(cls, error: str, status_code: int | None = None) -> UpstreamResponse[T]:
        return cls(status=UpstreamStatus.UPSTREAM_ERROR, error=error, status_code=status_code)

    @classmethod
    def malformed(cls, error: str) -> UpstreamResponse[T]:
        return cls(status=UpstreamStatus.MALFORMED, error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is UpstreamStatus.OK
