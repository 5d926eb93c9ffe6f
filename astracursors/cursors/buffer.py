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

from collections import deque
from typing import Generic, Iterable, Iterator

from astracursors.cursors.cursor import TRAW


class CursorBuffer(Generic[TRAW]):
    """
    The client-side FIFO queue holding the raw items fetched by a cursor
    and not consumed yet.

    Items are appended at the back, one whole page at a time, and drained
    strictly from the front: the buffer order is always the order in which
    the API returned the items, pages concatenated.
    """

    def __init__(self, items: Iterable[TRAW] = ()) -> None:
        self._items: deque[TRAW] = deque(items)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(<{len(self._items)} items>)"

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return len(self._items) > 0

    def __iter__(self) -> Iterator[TRAW]:
        return iter(self._items)

    def extend(self, items: Iterable[TRAW]) -> None:
        self._items.extend(items)

    def popleft(self) -> TRAW:
        """Remove and return the item at the front. Raises IndexError if empty."""

        return self._items.popleft()

    def drain(self, n: int | None = None) -> list[TRAW]:
        """
        Remove and return up to `n` items from the front (all of them if `n`
        is None). Fewer items are returned, without errors, if fewer are buffered.
        """

        if n is None:
            n = len(self._items)
        if n < 0:
            raise ValueError("A negative amount of items was requested.")
        return [self._items.popleft() for _ in range(min(n, len(self._items)))]

    def clear(self) -> None:
        self._items.clear()
