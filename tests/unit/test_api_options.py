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

import pytest

from astracursors.utils.api_options import (
    APIOptions,
    DataAPIURLOptions,
    FullAPIOptions,
    TimeoutOptions,
    defaultAPIOptions,
)
from astracursors.utils.unset import _UNSET


class TestAPIOptions:
    @pytest.mark.describe("test of API options defaults")
    def test_api_options_defaults(self) -> None:
        opts = defaultAPIOptions()
        assert isinstance(opts, FullAPIOptions)
        assert opts.timeout_options.request_timeout_ms == 10000
        assert opts.data_api_url_options.api_path == "/api/json"
        assert opts.data_api_url_options.api_version == "v1"
        assert opts.database_additional_headers == {}
        assert opts.with_override(None) == opts
        assert opts.with_override(_UNSET) == opts

    @pytest.mark.describe("test of API options override logic")
    def test_api_options_override(self) -> None:
        base = defaultAPIOptions().with_override(
            APIOptions(
                database_additional_headers={"h1": "v1", "h2": "v2"},
                redacted_header_names=["h1"],
            )
        )
        overridden = base.with_override(
            APIOptions(
                database_additional_headers={"h2": "new", "h3": None},
                redacted_header_names=["h2"],
                timeout_options=TimeoutOptions(request_timeout_ms=500),
                data_api_url_options=DataAPIURLOptions(api_version="v2"),
            )
        )
        assert overridden.database_additional_headers == {
            "h1": "v1",
            "h2": "new",
            "h3": None,
        }
        assert overridden.redacted_header_names == {"h1", "h2"}
        assert overridden.timeout_options.request_timeout_ms == 500
        assert overridden.data_api_url_options.api_version == "v2"
        assert overridden.data_api_url_options.api_path == "/api/json"
        # the base is unchanged
        assert base.database_additional_headers == {"h1": "v1", "h2": "v2"}
        assert base.timeout_options.request_timeout_ms == 10000

    @pytest.mark.describe("test of API options repr redacting headers")
    def test_api_options_repr(self) -> None:
        opts = APIOptions(
            database_additional_headers={"Secret-Header": "s3cr3t", "Plain": "p"},
            redacted_header_names=["Secret-Header"],
        )
        assert "s3cr3t" not in repr(opts)
        assert "'Plain': 'p'" in repr(opts)
        full_opts = defaultAPIOptions().with_override(opts)
        assert "s3cr3t" not in repr(full_opts)
        assert repr(APIOptions()) == "APIOptions()"
