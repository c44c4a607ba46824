"""Exception types shared by the gateway client, orchestration and proxy."""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for failures talking to the upstream aggregator."""


class UpstreamError(GatewayError):
    """Non-2xx response or transport failure from the upstream aggregator.

    ``status_code`` is ``None`` when no HTTP response was received (network
    error); ``body`` then holds the transport error text.
    """

    def __init__(self, message: str, *, status_code: int | None, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        status = self.status_code if self.status_code is not None else "no response"
        return f"{self.args[0]} ({status}): {self.body}"


class MalformedResponseError(GatewayError):
    """A 2xx upstream response lacked an expected field or was not valid JSON."""


class OnboardingError(Exception):
    """A fatal step of the onboarding flow failed.

    ``step`` is one of ``"create"``, ``"location"`` or ``"otc"``; ``cause``
    carries the underlying exception when there is one.
    """

    def __init__(self, step: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.step = step
        self.cause = cause

    @property
    def details(self) -> str:
        if isinstance(self.cause, UpstreamError):
            return self.cause.body
        return str(self.cause) if self.cause is not None else ""


__all__ = [
    "GatewayError",
    "MalformedResponseError",
    "OnboardingError",
    "UpstreamError",
]
