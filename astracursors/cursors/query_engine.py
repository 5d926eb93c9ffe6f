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

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic

from typing_extensions import override

from astracursors.constants import ProjectionType
from astracursors.cursors.cursor import TRAW, _ensure_vector
from astracursors.cursors.pagination import Page
from astracursors.cursors.query_spec import QuerySpec
from astracursors.exceptions import UnexpectedDataAPIResponseException
from astracursors.utils.api_commander import APICommander

logger = logging.getLogger(__name__)


class PageFetcher(ABC, Generic[TRAW]):
    """
    The source of pages for a cursor.

    An implementation runs the query described by a QuerySpec and returns
    exactly one page of results. It must resume from `spec.page_state` when
    this is set, return a `next_page_state` whenever more results exist, and
    honour `spec.limit` and `spec.skip`.

    Errors (network failures, API errors, malformed responses) are raised
    as they are: cursors propagate them unchanged and perform no retries.
    """

    @abstractmethod
    def find_page(self, spec: QuerySpec) -> Page[TRAW]:
        """Run a query for one page and return it."""
        ...


def _projection_to_dict(
    projection: ProjectionType | None,
) -> dict[str, Any] | None:
    # a list of field names stands for an inclusion projection
    if not projection:
        return None
    if isinstance(projection, dict):
        return projection
    return {field: True for field in projection}


def _build_find_payload(spec: QuerySpec) -> dict[str, Any]:
    f_r_subpayload = {
        k: v
        for k, v in {
            "filter": spec.filter,
            "projection": _projection_to_dict(spec.projection),
            "sort": spec.sort,
        }.items()
        if v is not None
    }
    f_options = {
        k: v
        for k, v in {
            "limit": spec.limit or None,
            "skip": spec.skip,
            "includeSimilarity": spec.include_similarity or None,
            "includeSortVector": spec.include_sort_vector or None,
            "pageState": spec.page_state or None,
        }.items()
        if v is not None
    }
    return {
        "find": {
            **f_r_subpayload,
            **({"options": f_options} if f_options else {}),
        },
    }


class FindCommandPageFetcher(Generic[TRAW], PageFetcher[TRAW]):
    """
    A page fetcher running the Data API `find` command against a collection,
    through an APICommander targeting the collection URL.

    Args:
        api_commander: the APICommander issuing the HTTP requests.
        source_name: the name of the collection, for logging purposes.
        request_timeout_ms: a timeout, in milliseconds, for each page request.
            Zero or None mean no timeout.
    """

    api_commander: APICommander
    source_name: str
    request_timeout_ms: int | None

    def __init__(
        self,
        *,
        api_commander: APICommander,
        source_name: str,
        request_timeout_ms: int | None = None,
    ) -> None:
        self.api_commander = api_commander
        self.source_name = source_name
        self.request_timeout_ms = request_timeout_ms

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}("{self.source_name}")'

    def _check_response(self, f_response: dict[str, Any]) -> None:
        if "documents" not in (f_response.get("data") or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from find API command (no 'documents').",
                raw_response=f_response,
            )

    @override
    def find_page(self, spec: QuerySpec) -> Page[TRAW]:
        f_payload = _build_find_payload(spec)

        _page_str = spec.page_state if spec.page_state else "(empty page state)"
        logger.info(f"cursor fetching a page: {_page_str} from {self.source_name}")
        f_response = self.api_commander.request(
            payload=f_payload,
            timeout_ms=self.request_timeout_ms,
            timeout_label="request_timeout_ms",
        )
        logger.info(
            f"cursor finished fetching a page: {_page_str} from {self.source_name}"
        )

        self._check_response(f_response)
        return Page(
            results=f_response["data"]["documents"],
            next_page_state=f_response["data"].get("nextPageState"),
            sort_vector=_ensure_vector(
                (f_response.get("status") or {}).get("sortVector")
            ),
        )


class TableFindPageFetcher(Generic[TRAW], FindCommandPageFetcher[TRAW]):
    """
    A page fetcher running the Data API `find` command against a table.

    Table responses must describe the returned columns in a
    `status.projectionSchema` field, which this fetcher checks for.
    """

    @override
    def _check_response(self, f_response: dict[str, Any]) -> None:
        if "documents" not in (f_response.get("data") or {}):
            raise UnexpectedDataAPIResponseException(
                text="Response from find API command missing 'documents'.",
                raw_response=f_response,
            )
        if "projectionSchema" not in (f_response.get("status") or {}):
            raise UnexpectedDataAPIResponseException(
                text="Response from find API command missing 'projectionSchema'.",
                raw_response=f_response,
            )
