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

"""
Main conftest for shared fixtures.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

import pytest
from typing_extensions import override

from astracursors.cursors import Page, PageFetcher, QuerySpec


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "describe(text): human-readable test label")


class InMemoryPageFetcher(PageFetcher[Any]):
    """
    A page fetcher serving a fixed list of pages. The continuation token
    of page i is the string index of page i+1; the last page has none.

    If `fail_at_calls` is given, the corresponding (1-based) calls to
    `find_page` raise a RuntimeError instead of returning a page.
    """

    def __init__(
        self,
        pages: Iterable[list[Any]],
        *,
        sort_vector: list[float] | None = None,
        fail_at_calls: Iterable[int] = (),
    ) -> None:
        self.pages = [list(page) for page in pages]
        self.sort_vector = sort_vector
        self.fail_at_calls = set(fail_at_calls)
        self.received_specs: list[QuerySpec] = []

    @property
    def call_count(self) -> int:
        return len(self.received_specs)

    @override
    def find_page(self, spec: QuerySpec) -> Page[Any]:
        self.received_specs.append(spec)
        if self.call_count in self.fail_at_calls:
            raise RuntimeError(f"Simulated failure at call {self.call_count}")
        page_index = int(spec.page_state) if spec.page_state else 0
        next_page_state = (
            str(page_index + 1) if page_index + 1 < len(self.pages) else None
        )
        return Page(
            results=list(self.pages[page_index]) if self.pages else [],
            next_page_state=next_page_state,
            sort_vector=self.sort_vector,
        )


@pytest.fixture
def make_fetcher() -> Callable[..., InMemoryPageFetcher]:
    return InMemoryPageFetcher
