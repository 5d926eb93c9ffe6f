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


@dataclass
class DataAPIErrorDescriptor:
    """
    A single error as found in the "errors" list of a Data API response,
    typically with an error code and a text message.

    Attributes:
        error_code: the API error's "errorCode" field.
        message: the API error's "message" field.
        title: the API error's "title" field.
        family: the API error's "family" field.
        scope: the API error's "scope" field.
        id: the API error's "id" field.
        attributes: a dict with any further key-value pairs returned by the API.
    """

    title: str | None
    error_code: str | None
    message: str | None
    family: str | None
    scope: str | None
    id: str | None
    attributes: dict[str, Any]

    _known_dict_fields = {
        "title",
        "errorCode",
        "message",
        "family",
        "scope",
        "id",
    }

    def __init__(self, error_dict: dict[str, str] | str) -> None:
        _error_dict: dict[str, Any] = (
            {"message": error_dict} if isinstance(error_dict, str) else error_dict
        )
        self.title = _error_dict.get("title")
        self.error_code = _error_dict.get("errorCode")
        self.message = _error_dict.get("message")
        self.family = _error_dict.get("family")
        self.scope = _error_dict.get("scope")
        self.id = _error_dict.get("id")
        self.attributes = {
            k: v for k, v in _error_dict.items() if k not in self._known_dict_fields
        }

    def __repr__(self) -> str:
        pieces = [
            f"{self.title.__repr__()}" if self.title else None,
            f"error_code={self.error_code.__repr__()}" if self.error_code else None,
            f"message={self.message.__repr__()}" if self.message else None,
            f"attributes={self.attributes.__repr__()}" if self.attributes else None,
        ]
        return f"{self.__class__.__name__}({', '.join(pc for pc in pieces if pc)})"

    def __str__(self) -> str:
        return self.summary()

    def summary(self) -> str:
        """A succinct one-line description of the error, depending on which fields are set."""

        text_parts = [part for part in (self.title, self.message) if part]
        text = ": ".join(text_parts)
        if self.error_code:
            return f"{text} ({self.error_code})" if text else self.error_code
        return text


@dataclass
class DataAPIWarningDescriptor(DataAPIErrorDescriptor):
    """
    A single warning as found in the "status.warnings" list of a Data API response.
    It has the same structure as `DataAPIErrorDescriptor`.
    """

    def __init__(self, warning_dict: dict[str, str] | str) -> None:
        DataAPIErrorDescriptor.__init__(self, error_dict=warning_dict)
