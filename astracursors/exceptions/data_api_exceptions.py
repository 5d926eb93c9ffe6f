# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from astracursors.exceptions.error_descriptors import (
    DataAPIErrorDescriptor,
    DataAPIWarningDescriptor,
)

TIMEOUT_TYPES: list[tuple[type[httpx.TimeoutException], str]] = [
    (httpx.ConnectTimeout, "connect"),
    (httpx.ReadTimeout, "read"),
    (httpx.WriteTimeout, "write"),
    (httpx.PoolTimeout, "pool"),
]


def _summarize_errors(error_descriptors: list[DataAPIErrorDescriptor]) -> str:
    summaries = [descriptor.summary() for descriptor in error_descriptors]
    if len(summaries) <= 1:
        return "".join(summaries)
    numbered = "; ".join(
        f"[{index}] {summary}" for index, summary in enumerate(summaries, start=1)
    )
    return f"[{len(summaries)} errors collected] {numbered}"


class DataAPIException(Exception):
    """
    Root of the exceptions raised by this package when talking to the Data API
    or consuming its results. Plain network failures from httpx are not
    wrapped and propagate as they are.
    """

    pass


@dataclass
class DataAPIResponseException(DataAPIException):
    """
    A command came back with HTTP 200 but its response body lists errors.

    Attributes:
        text: a text message about the exception.
        command: the command payload whose response carried the errors.
        raw_response: the whole response body, as a dict.
        error_descriptors: one DataAPIErrorDescriptor for each entry
            of the response "errors" list.
        warning_descriptors: one DataAPIWarningDescriptor for each entry
            of the response "status.warnings" list.
    """

    text: str | None
    command: dict[str, Any] | None
    raw_response: dict[str, Any]
    error_descriptors: list[DataAPIErrorDescriptor]
    warning_descriptors: list[DataAPIWarningDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        command: dict[str, Any] | None,
        raw_response: dict[str, Any],
        error_descriptors: list[DataAPIErrorDescriptor],
        warning_descriptors: list[DataAPIWarningDescriptor],
    ) -> None:
        super().__init__(text)
        self.text = text
        self.command = command
        self.raw_response = raw_response
        self.error_descriptors = error_descriptors
        self.warning_descriptors = warning_descriptors

    @classmethod
    def from_response(
        cls,
        *,
        command: dict[str, Any] | None,
        raw_response: dict[str, Any],
    ) -> DataAPIResponseException:
        """Build the exception out of a response body that lists errors."""

        status = raw_response.get("status") or {}
        error_descriptors = [
            DataAPIErrorDescriptor(error_dict)
            for error_dict in raw_response.get("errors") or []
        ]
        return cls(
            _summarize_errors(error_descriptors),
            command=command,
            raw_response=raw_response,
            error_descriptors=error_descriptors,
            warning_descriptors=[
                DataAPIWarningDescriptor(warning_dict)
                for warning_dict in status.get("warnings") or []
            ],
        )


@dataclass
class DataAPIHttpException(DataAPIException, httpx.HTTPStatusError):
    """
    The Data API answered with an HTTP 4xx or 5xx status.

    Being also an `httpx.HTTPStatusError`, it exposes the request and the
    response as usual; any errors listed in a JSON response body are parsed
    into descriptors.

    Attributes:
        text: a text message about the exception.
        error_descriptors: the DataAPIErrorDescriptor objects parsed
            from the response body, possibly none.
    """

    text: str | None
    error_descriptors: list[DataAPIErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        error_descriptors: list[DataAPIErrorDescriptor],
    ) -> None:
        DataAPIException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.error_descriptors = error_descriptors

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
    ) -> DataAPIHttpException:
        """Wrap a httpx status error, parsing the response body if it is JSON."""

        try:
            body = httpx_error.response.json()
        except ValueError:
            body = None
        error_list = body.get("errors") if isinstance(body, dict) else None
        error_descriptors = [
            DataAPIErrorDescriptor(error_dict) for error_dict in error_list or []
        ]
        text = str(httpx_error)
        if error_descriptors:
            text = f"{error_descriptors[0].message}. {text}"
        return cls(
            text,
            httpx_error=httpx_error,
            error_descriptors=error_descriptors,
        )


@dataclass
class DataAPITimeoutException(DataAPIException):
    """
    An HTTP request to the Data API did not complete within its timeout.

    Attributes:
        text: a textual description of the error.
        timeout_type: the phase of the request that timed out: one of
            "connect", "read", "write", "pool", or "generic" if unknown.
        endpoint: the URL of the request, when available.
        raw_payload: the request body as a string, when available.
    """

    text: str
    timeout_type: str
    endpoint: str | None
    raw_payload: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint
        self.raw_payload = raw_payload

    @classmethod
    def from_httpx_timeout(
        cls,
        httpx_timeout: httpx.TimeoutException,
        *,
        timeout_ms: int | None = None,
        timeout_label: str | None = None,
    ) -> DataAPITimeoutException:
        """
        Wrap a httpx timeout error.

        Args:
            httpx_timeout: the error raised by httpx.
            timeout_ms: the timeout that was in force for the request, if any.
            timeout_label: the name of the setting `timeout_ms` comes from,
                quoted in the message to help users find what to adjust.

        Returns:
            a DataAPITimeoutException.
        """

        text = str(httpx_timeout) or "timed out"
        if timeout_ms:
            honoured = (
                f"{timeout_label} = {timeout_ms}" if timeout_label else str(timeout_ms)
            )
            text = f"{text} (timeout honoured: {honoured} ms)"
        timeout_type = next(
            (
                type_name
                for timeout_class, type_name in TIMEOUT_TYPES
                if isinstance(httpx_timeout, timeout_class)
            ),
            "generic",
        )
        # httpx raises RuntimeError on .request if no request was attached
        try:
            request: httpx.Request | None = httpx_timeout.request
        except RuntimeError:
            request = None
        endpoint: str | None = None
        raw_payload: str | None = None
        if request is not None:
            endpoint = str(request.url)
            if isinstance(request.content, bytes):
                raw_payload = request.content.decode()
        return cls(
            text,
            timeout_type=timeout_type,
            endpoint=endpoint,
            raw_payload=raw_payload,
        )


@dataclass
class UnexpectedDataAPIResponseException(DataAPIException):
    """
    A Data API response could not be understood: the body is not JSON,
    or it lacks fields that the command is expected to return.

    Attributes:
        text: a text message about the exception.
        raw_response: what the API returned, as a dict.
    """

    text: str
    raw_response: dict[str, Any] | None

    def __init__(
        self,
        text: str,
        raw_response: dict[str, Any] | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response
