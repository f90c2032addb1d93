"""Response envelope returned by every dispatch call."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.ports.errors import FailureKind, FaultKind

__all__ = ["NO_CONNECTION_MESSAGE", "ResponseEnvelope"]

NO_CONNECTION_MESSAGE = "no internet connection"


@dataclass(slots=True, frozen=True)
class ResponseEnvelope:
    """Normalized outcome of one dispatch call.

    Attributes:
        success: True iff the server answered with a 2xx status.
        status_code: HTTP status, None when no response was received.
        url: Resolved request URL.
        data: Parsed payload on success; the server's error payload on a
            non-2xx response; None when offline or on a transport fault.
        request_params: Query parameters as sent.
        request_body: Body as sent.
        message: Failure reason; always set when success is False.
        failure: Failure category, None on success.
    """

    success: bool
    status_code: int | None = None
    url: str | None = None
    data: Any = None
    request_params: Mapping[str, Any] | None = None
    request_body: Any = None
    message: str | None = None
    failure: FailureKind | None = None

    @property
    def is_success(self) -> bool:
        return self.success

    @classmethod
    def ok(
        cls,
        *,
        status_code: int,
        url: str,
        data: Any,
        request_params: Mapping[str, Any] | None = None,
        request_body: Any = None,
    ) -> ResponseEnvelope:
        return cls(
            success=True,
            status_code=status_code,
            url=url,
            data=data,
            request_params=request_params,
            request_body=request_body,
        )

    @classmethod
    def offline(
        cls,
        *,
        url: str,
        request_params: Mapping[str, Any] | None = None,
        request_body: Any = None,
    ) -> ResponseEnvelope:
        return cls(
            success=False,
            url=url,
            request_params=request_params,
            request_body=request_body,
            message=NO_CONNECTION_MESSAGE,
            failure=FailureKind.OFFLINE,
        )

    @classmethod
    def http_error(
        cls,
        *,
        status_code: int,
        url: str,
        message: str,
        data: Any = None,
        request_params: Mapping[str, Any] | None = None,
        request_body: Any = None,
    ) -> ResponseEnvelope:
        return cls(
            success=False,
            status_code=status_code,
            url=url,
            data=data,
            request_params=request_params,
            request_body=request_body,
            message=message,
            failure=FailureKind.HTTP_STATUS,
        )

    @classmethod
    def fault(
        cls,
        kind: FaultKind,
        *,
        url: str,
        request_params: Mapping[str, Any] | None = None,
        request_body: Any = None,
    ) -> ResponseEnvelope:
        return cls(
            success=False,
            url=url,
            request_params=request_params,
            request_body=request_body,
            message=kind.description,
            failure=FailureKind.TRANSPORT_FAULT,
        )

    def __str__(self) -> str:
        """Return one-line summary for logs.

        Returns:
            Formatted envelope string.
        """
        status = self.status_code if self.status_code is not None else "-"
        outcome = "ok" if self.success else "failed"
        text = f"{outcome} | url={self.url} | status={status}"
        if self.message:
            text += f" | message={self.message}"
        return text
