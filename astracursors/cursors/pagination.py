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
from typing import Generic

from astracursors.cursors.cursor import TRAW


@dataclass(frozen=True)
class Page(Generic[TRAW]):
    """
    A whole pageful of results, as returned by a single request to the API.
    This is what page fetchers return, and what cursors progressively
    append to their buffer.

    Attributes:
        results: the list of raw items obtained on the retrieved page,
            in the order they were returned by the API.
        next_page_state: a string encoding the pagination state. If the query
            does not admit any further page, this is None. Otherwise, its value
            can be used to resume consuming the results, possibly on another
            cursor instantiated independently later on.
        sort_vector: if the query was run with the "include sort vector" flag
            and the sort criterion is a vector sorting, this contains the query
            vector used for the search as a list of floats. Otherwise None.
    """

    results: list[TRAW]
    next_page_state: str | None = None
    sort_vector: list[float] | None = None

    def __repr__(self) -> str:
        pieces = [
            pc
            for pc in (
                f"results=<{len(self.results)} entries>",
                "next_page_state=..." if self.next_page_state else None,
                "sort_vector=..." if self.sort_vector else None,
            )
            if pc is not None
        ]
        return f"{self.__class__.__name__}({', '.join(pieces)})"

    @property
    def has_next_page(self) -> bool:
        """Whether the query admits a further page after this one."""

        return self.next_page_state is not None
