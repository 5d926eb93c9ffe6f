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
from typing import Iterable

from astracursors.settings.defaults import (
    DEFAULT_API_PATH,
    DEFAULT_API_VERSION,
    DEFAULT_REQUEST_TIMEOUT_MS,
    FIXED_SECRET_PLACEHOLDER,
)
from astracursors.utils.unset import _UNSET, UnsetType


@dataclass
class TimeoutOptions:
    """
    The group of settings for the API Options concerning timeouts.

    All timeout values are integers expressed in milliseconds. A timeout of zero
    signifies that no timeout is imposed at all.

    Cursors impose no timeout of their own: each page fetch is a single
    HTTP request and obeys `request_timeout_ms`.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request.
            Defaults to 10 s.
    """

    request_timeout_ms: int | UnsetType = _UNSET


@dataclass
class FullTimeoutOptions(TimeoutOptions):
    """
    The "full" version of `TimeoutOptions`, with all members defined.
    This is what Database, Collection and Table hold in their `.api_options`.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request.
    """

    request_timeout_ms: int

    def __init__(self, *, request_timeout_ms: int) -> None:
        TimeoutOptions.__init__(self, request_timeout_ms=request_timeout_ms)

    def with_override(self, other: TimeoutOptions) -> FullTimeoutOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        return FullTimeoutOptions(
            request_timeout_ms=(
                other.request_timeout_ms
                if not isinstance(other.request_timeout_ms, UnsetType)
                else self.request_timeout_ms
            ),
        )


@dataclass
class DataAPIURLOptions:
    """
    The group of settings for the API Options that determines the URL used to
    reach the Data API.

    Attributes:
        api_path: path to append to the API Endpoint. Defaults to "/api/json".
        api_version: version specifier to append to the API path.
            Defaults to "v1".
    """

    api_path: str | None | UnsetType = _UNSET
    api_version: str | None | UnsetType = _UNSET


@dataclass
class FullDataAPIURLOptions(DataAPIURLOptions):
    """
    The "full" version of `DataAPIURLOptions`, with all members defined.

    Attributes:
        api_path: path to append to the API Endpoint.
        api_version: version specifier to append to the API path.
    """

    api_path: str | None
    api_version: str | None

    def __init__(
        self,
        *,
        api_path: str | None,
        api_version: str | None,
    ) -> None:
        DataAPIURLOptions.__init__(
            self,
            api_path=api_path,
            api_version=api_version,
        )

    def with_override(self, other: DataAPIURLOptions) -> FullDataAPIURLOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        return FullDataAPIURLOptions(
            api_path=(
                other.api_path
                if not isinstance(other.api_path, UnsetType)
                else self.api_path
            ),
            api_version=(
                other.api_version
                if not isinstance(other.api_version, UnsetType)
                else self.api_version
            ),
        )


@dataclass
class APIOptions:
    """
    The collection of settings determining how requests to the Data API are
    issued by the data source objects (Database, Collection, Table) and,
    through them, by the cursors they create.

    Each object inherits the options of the object that spawned it, and can
    override any of them: only the attributes explicitly set on an APIOptions
    take effect in the override.

    Attributes:
        database_additional_headers: free-form dictionary of additional headers
            to send with each request. A None value removes a header.
        redacted_header_names: names of headers whose values are masked when
            requests are logged. The authentication header is always redacted.
        timeout_options: a `TimeoutOptions` object.
        data_api_url_options: a `DataAPIURLOptions` object.

    Example:
        >>> from astracursors.utils.api_options import APIOptions, TimeoutOptions
        >>> my_options = APIOptions(
        ...     timeout_options=TimeoutOptions(request_timeout_ms=2500),
        ... )
        >>> database = Database(api_endpoint, token=token, api_options=my_options)
    """

    database_additional_headers: dict[str, str | None] | UnsetType = _UNSET
    redacted_header_names: Iterable[str] | UnsetType = _UNSET
    timeout_options: TimeoutOptions | UnsetType = _UNSET
    data_api_url_options: DataAPIURLOptions | UnsetType = _UNSET

    def __repr__(self) -> str:
        # redacted header values must not leak into the repr
        _database_additional_headers: dict[str, str | None] | UnsetType
        if isinstance(self.database_additional_headers, UnsetType):
            _database_additional_headers = _UNSET
        else:
            _redacted = set(
                []
                if isinstance(self.redacted_header_names, UnsetType)
                else self.redacted_header_names
            )
            _database_additional_headers = {
                k: v if k not in _redacted else FIXED_SECRET_PLACEHOLDER
                for k, v in self.database_additional_headers.items()
            }
        non_unset_pieces = [
            (k, v)
            for k, v in (
                ("database_additional_headers", _database_additional_headers),
                ("redacted_header_names", self.redacted_header_names),
                ("timeout_options", self.timeout_options),
                ("data_api_url_options", self.data_api_url_options),
            )
            if not isinstance(v, UnsetType)
        ]
        inner_desc = ", ".join(f"{k}={v}" for k, v in non_unset_pieces)
        return f"{self.__class__.__name__}({inner_desc})"


@dataclass
class FullAPIOptions(APIOptions):
    """
    The "full" version of `APIOptions`, with all members defined.
    This is the class found in the `.api_options` attribute of data source objects.

    Attributes:
        database_additional_headers: free-form dictionary of additional headers.
        redacted_header_names: names of headers masked in logs.
        timeout_options: a `FullTimeoutOptions` object.
        data_api_url_options: a `FullDataAPIURLOptions` object.
    """

    database_additional_headers: dict[str, str | None]
    redacted_header_names: set[str]
    timeout_options: FullTimeoutOptions
    data_api_url_options: FullDataAPIURLOptions

    def __init__(
        self,
        *,
        database_additional_headers: dict[str, str | None],
        redacted_header_names: Iterable[str],
        timeout_options: FullTimeoutOptions,
        data_api_url_options: FullDataAPIURLOptions,
    ) -> None:
        APIOptions.__init__(
            self,
            database_additional_headers=database_additional_headers,
            redacted_header_names=set(redacted_header_names),
            timeout_options=timeout_options,
            data_api_url_options=data_api_url_options,
        )

    def __repr__(self) -> str:
        return APIOptions.__repr__(self)

    def with_override(self, other: APIOptions | None | UnsetType) -> FullAPIOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Headers are merged (the override winning on conflicts), redacted header
        names are united, option groups are overridden attribute by attribute.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence. Passing None or _UNSET returns a copy.
        """

        if other is None or isinstance(other, UnsetType):
            return self.with_override(APIOptions())

        database_additional_headers: dict[str, str | None]
        if isinstance(other.database_additional_headers, UnsetType):
            database_additional_headers = dict(self.database_additional_headers)
        else:
            database_additional_headers = {
                **self.database_additional_headers,
                **other.database_additional_headers,
            }
        redacted_header_names: set[str] = set(self.redacted_header_names)
        if not isinstance(other.redacted_header_names, UnsetType):
            redacted_header_names |= set(other.redacted_header_names)
        timeout_options = (
            self.timeout_options.with_override(other.timeout_options)
            if not isinstance(other.timeout_options, UnsetType)
            else self.timeout_options
        )
        data_api_url_options = (
            self.data_api_url_options.with_override(other.data_api_url_options)
            if not isinstance(other.data_api_url_options, UnsetType)
            else self.data_api_url_options
        )

        return FullAPIOptions(
            database_additional_headers=database_additional_headers,
            redacted_header_names=redacted_header_names,
            timeout_options=timeout_options,
            data_api_url_options=data_api_url_options,
        )


defaultTimeoutOptions = FullTimeoutOptions(
    request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
)
defaultDataAPIURLOptions = FullDataAPIURLOptions(
    api_path=DEFAULT_API_PATH,
    api_version=DEFAULT_API_VERSION,
)


def defaultAPIOptions() -> FullAPIOptions:
    return FullAPIOptions(
        database_additional_headers={},
        redacted_header_names=set(),
        timeout_options=defaultTimeoutOptions,
        data_api_url_options=defaultDataAPIURLOptions,
    )
