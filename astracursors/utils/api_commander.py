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

import json
import logging
from typing import Any, Iterable

import httpx

from astracursors.exceptions import (
    DataAPIHttpException,
    DataAPIResponseException,
    DataAPITimeoutException,
    UnexpectedDataAPIResponseException,
)
from astracursors.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)

logger = logging.getLogger(__name__)


class APICommander:
    """
    Sends JSON commands, with HTTP POST, to a single Data API URL and returns
    the parsed responses.

    Error statuses, timeouts and unparseable bodies are raised as exceptions
    of the `DataAPIException` family, and so are responses listing errors.
    Warnings found in a response are logged.
    """

    client = httpx.Client()

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        self.api_endpoint = api_endpoint.rstrip("/")
        self.path = path.lstrip("/")
        self.headers = headers
        self.redacted_header_names = set(redacted_header_names or [])
        self.url = f"{self.api_endpoint}/{self.path}".rstrip("/")
        self.request_headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.request_headers.update(
            {name: value for name, value in headers.items() if value is not None}
        )
        # header names are case-insensitive
        hidden_names = {
            name.lower()
            for name in self.redacted_header_names | DEFAULT_REDACTED_HEADER_NAMES
        }
        self.loggable_headers = {
            name: FIXED_SECRET_PLACEHOLDER if name.lower() in hidden_names else value
            for name, value in self.request_headers.items()
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(api_endpoint={self.api_endpoint}, "
            f"path={self.path})"
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, APICommander):
            return False
        return (
            self.api_endpoint,
            self.path,
            self.headers,
            self.redacted_header_names,
        ) == (
            other.api_endpoint,
            other.path,
            other.headers,
            other.redacted_header_names,
        )

    def _parse_response(
        self,
        response: httpx.Response,
        *,
        command: dict[str, Any],
        command_name: str,
    ) -> dict[str, Any]:
        try:
            response_json = response.json()
        except ValueError:
            response_json = None
        if not isinstance(response_json, dict):
            raise UnexpectedDataAPIResponseException(
                text=f"Unparseable response from API '{command_name}' command.",
                raw_response={"raw_response": response.text},
            )

        for warning in (response_json.get("status") or {}).get("warnings") or []:
            logger.warning(f"The Data API returned a warning: {warning}")
        if "errors" in response_json:
            logger.warning(
                f"API '{command_name}' command returned errors: "
                f"{response_json['errors']}"
            )
            raise DataAPIResponseException.from_response(
                command=command,
                raw_response=response_json,
            )
        return response_json

    def request(
        self,
        *,
        payload: dict[str, Any],
        timeout_ms: int | None = None,
        timeout_label: str | None = None,
    ) -> dict[str, Any]:
        """
        Send a command and return its response.

        Args:
            payload: the command, such as `{"find": {"filter": {...}}}`.
            timeout_ms: a timeout, in milliseconds, for the HTTP request.
                None or zero mean no timeout.
            timeout_label: the name of the setting `timeout_ms` comes from,
                quoted in the error message if the timeout is hit.

        Returns:
            the response body as a dict, once checked for errors.
        """

        command_name = "/".join(sorted(payload.keys())) or "(none)"
        body = json.dumps(
            payload,
            allow_nan=False,
            separators=(",", ":"),
            ensure_ascii=False,
        )
        logger.debug(f"Request: POST {self.url}, command '{command_name}'")
        logger.debug(f"Request headers: '{self.loggable_headers}'")
        logger.debug(f"Request payload: '{body}'")
        logger.debug(f"Request timeout: {timeout_ms or '(unset)'} ms")

        try:
            response = self.client.post(
                self.url,
                content=body.encode(),
                headers=self.request_headers,
                timeout=httpx.Timeout(timeout_ms / 1000) if timeout_ms else None,
            )
            response.raise_for_status()
        except httpx.TimeoutException as timeout_exc:
            raise DataAPITimeoutException.from_httpx_timeout(
                timeout_exc,
                timeout_ms=timeout_ms,
                timeout_label=timeout_label,
            )
        except httpx.HTTPStatusError as http_exc:
            raise DataAPIHttpException.from_httpx_error(http_exc)

        logger.debug(f"Response status code: {response.status_code}")
        logger.debug(f"Response text: '{response.text}'")
        return self._parse_response(
            response, command=payload, command_name=command_name
        )
