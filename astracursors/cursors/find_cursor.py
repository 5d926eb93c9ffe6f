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

from types import TracebackType
from typing import Any, Callable, Generic, cast

from astracursors.constants import FilterType, ProjectionType, SortType
from astracursors.cursors.buffer import CursorBuffer
from astracursors.cursors.cursor import TNEW, TRAW, CursorState, T
from astracursors.cursors.pagination import Page
from astracursors.cursors.query_engine import PageFetcher
from astracursors.cursors.query_spec import QuerySpec
from astracursors.event_observers import (
    ObservableEvent,
    ObservablePageFetched,
    ObservableStateChange,
    Observer,
)
from astracursors.exceptions import (
    CursorException,
    CursorStateError,
    EndOfCursorError,
)


def _make_mapping_step(
    mapper: Callable[[Any], TNEW],
    target_type: type | None,
) -> Callable[[Any], TNEW]:
    if target_type is None:
        return mapper

    def _step(item: Any) -> TNEW:
        if isinstance(item, target_type):
            return cast(TNEW, item)
        return mapper(item)

    return _step


class Cursor(Generic[TRAW, T]):
    """
    A cursor over the results of a find query, fetched page by page from
    a page fetcher (typically a Collection or a Table, through their `find`
    method). A cursor can be iterated over, materialized into a list,
    and queried/manipulated in various ways.

    A cursor has two type parameters: TRAW and T. The first is the type of the "raw"
    items as they are obtained from the API, the second is the type of the
    items after the optional mapping function (see the `.map()` method). If there is
    no mapping, TRAW = T. Mapping is applied lazily, one item at a time as items
    are consumed: items fetched but never consumed are never mapped.

    A cursor starts in the IDLE state, where its query can be configured with
    the `filter`, `project`, `sort`, `limit`, `skip`, `include_similarity`,
    `include_sort_vector` and `map` methods. None of these modify the cursor:
    each returns a new IDLE cursor, with the same page fetcher and an independent
    query specification, so that a base query can be branched freely. Once
    consumption starts (state STARTED), configuration is refused with a
    `CursorStateError`. The cursor becomes CLOSED when exhausted or when
    `close()` is called.

    A cursor is not thread-safe: clone it instead of sharing it among threads.

    Example:
        >>> cursor = collection.find(
        ...     {},
        ...     projection={"seq": True, "_id": False},
        ...     limit=5,
        ... )
        >>> for document in cursor:
        ...     print(document)
        ...
        {'seq': 1}
        {'seq': 4}
        {'seq': 15}
        {'seq': 22}
        {'seq': 11}
    """

    _source: PageFetcher[TRAW]
    _spec: QuerySpec
    _mapper: Callable[[TRAW], T] | None
    _observer: Observer | None
    _state: CursorState
    _buffer: CursorBuffer[TRAW]
    _current_page: Page[TRAW] | None
    _pages_retrieved: int
    _consumed: int

    def __init__(
        self,
        *,
        source: PageFetcher[TRAW],
        spec: QuerySpec | None = None,
        mapper: Callable[[TRAW], T] | None = None,
        target_type: type | None = None,
        observer: Observer | None = None,
    ) -> None:
        self._source = source
        self._spec = spec if spec is not None else QuerySpec()
        self._mapper = (
            _make_mapping_step(mapper, target_type) if mapper is not None else None
        )
        self._observer = observer
        self._state = CursorState.IDLE
        self._buffer = CursorBuffer()
        self._current_page = None
        self._pages_retrieved = 0
        self._consumed = 0

    def _copy(
        self,
        *,
        mapper: Callable[[TRAW], TNEW] | None = None,
        **spec_changes: Any,
    ) -> Cursor[TRAW, Any]:
        return Cursor(
            source=self._source,
            spec=self._spec.replace(**spec_changes),
            mapper=mapper if mapper is not None else self._mapper,
            observer=self._observer,
        )

    def _notify(self, event: ObservableEvent) -> None:
        if self._observer is not None:
            self._observer.receive(event, sender=self)

    def _set_state(self, new_state: CursorState) -> None:
        if new_state != self._state:
            old_state = self._state
            self._state = new_state
            self._notify(
                ObservableStateChange(
                    old_state=old_state.value,
                    new_state=new_state.value,
                )
            )

    def _ensure_idle(self) -> None:
        if self._state != CursorState.IDLE:
            raise CursorStateError(
                text="Cursor is not idle anymore.",
                cursor_state=self._state.value,
            )

    def _fetch_next_page(self) -> Page[TRAW] | None:
        """
        Fetch the next page, if there is one, appending its results to the buffer.

        The very first call runs the query as configured; further calls resume
        from the continuation token of the last page. If the last page has no
        continuation token the results are exhausted and nothing happens.
        The cursor is modified only once the fetcher has returned successfully.

        Returns:
            the newly-fetched page, or None if there are no more pages.
        """

        if self._current_page is None:
            fetch_spec = self._spec
        elif self._current_page.next_page_state is not None:
            fetch_spec = self._spec.replace(
                page_state=self._current_page.next_page_state
            )
        else:
            return None
        try:
            page = self._source.find_page(fetch_spec)
        except StopIteration as exc:
            raise RuntimeError("The page fetcher raised StopIteration.") from exc
        self._current_page = page
        self._pages_retrieved += 1
        self._buffer.extend(page.results)
        self._notify(
            ObservablePageFetched(
                page_number=self._pages_retrieved,
                results_count=len(page.results),
                has_next_page=page.has_next_page,
            )
        )
        return page

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self._source!r}, "
            f"{self._state.value}, "
            f"consumed so far: {self._consumed})"
        )

    def __iter__(self) -> Cursor[TRAW, T]:
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise EndOfCursorError(
                text="No more items in the cursor.",
                cursor_state=self._state.value,
            )
        traw0 = self._buffer.popleft()
        self._consumed += 1
        if self._mapper is None:
            return cast(T, traw0)
        try:
            return self._mapper(traw0)
        except StopIteration as exc:
            raise RuntimeError(
                "The cursor mapping function raised StopIteration."
            ) from exc

    def __enter__(self) -> Cursor[TRAW, T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    @property
    def state(self) -> CursorState:
        """
        The current state of this cursor.

        Returns:
            a value in `astracursors.cursors.CursorState`.
        """

        return self._state

    @property
    def spec(self) -> QuerySpec:
        """The query specification this cursor was configured with."""

        return self._spec

    @property
    def data_source(self) -> PageFetcher[TRAW]:
        """The page fetcher this cursor draws its results from."""

        return self._source

    @property
    def current_page(self) -> Page[TRAW] | None:
        """The last page fetched by this cursor, if any."""

        return self._current_page

    @property
    def consumed(self) -> int:
        """
        The number of items the cursors has yielded, i.e. how many items
        have been already read by the code consuming the cursor.
        """

        return self._consumed

    @property
    def pages_retrieved(self) -> int:
        """The number of pages fetched so far."""

        return self._pages_retrieved

    @property
    def cursor_id(self) -> int:
        """An integer uniquely identifying this cursor."""

        return id(self)

    @property
    def buffered_count(self) -> int:
        """
        The number of items currently stored in the client-side buffer of this
        cursor. Reading this property never triggers new API calls.
        """

        return len(self._buffer)

    def has_next(self) -> bool:
        """
        Whether the cursor actually has more items to return.

        On an IDLE cursor this starts the consumption, moving it to STARTED.
        If the buffer is empty, this method fetches new pages until there is
        something to return or the results are exhausted: in the latter case,
        the cursor is closed.

        `has_next` can be called on any cursor, but on a CLOSED cursor it
        always returns False without fetching anything.

        Returns:
            True if there is at least one further item available to consume.
        """

        if self._state == CursorState.CLOSED:
            return False
        if self._state == CursorState.IDLE:
            self._set_state(CursorState.STARTED)
        while not self._buffer:
            if self._fetch_next_page() is None:
                self.close()
                return False
        return True

    def fetch_next_page(self) -> Page[TRAW] | None:
        """
        Explicitly fetch the next page of results into the buffer, regardless
        of how many items are still buffered.

        On an IDLE cursor this starts the consumption, moving it to STARTED.
        On a CLOSED cursor this does nothing.

        Returns:
            the page just fetched, or None if the results are exhausted
            (or the cursor is closed).
        """

        if self._state == CursorState.CLOSED:
            return None
        if self._state == CursorState.IDLE:
            self._set_state(CursorState.STARTED)
        return self._fetch_next_page()

    def close(self) -> None:
        """
        Close the cursor, regardless of its state. A cursor can be closed at any
        time, possibly discarding the portion of results that has not yet been
        consumed, if any. Closing a closed cursor has no effect.

        This is an in-place modification of the cursor.
        """

        self._set_state(CursorState.CLOSED)
        self._buffer.clear()

    def consume_buffer(self, n: int | None = None) -> list[TRAW]:
        """
        Consume (return) up to the requested number of buffered raw items.
        The returned items are marked as consumed, meaning that subsequently consuming
        the cursor will start after those items. No mapping is applied.

        This method only concerns the local buffer: it never triggers fetching
        of new pages, and never changes the cursor state.

        Args:
            n: amount of items to return. If omitted, the whole buffer is returned.

        Returns:
            a list of raw items. If fewer than requested are buffered, the whole
                buffer is returned without errors (possibly an empty list).
        """

        returned = self._buffer.drain(n)
        self._consumed += len(returned)
        return returned

    def clone(self) -> Cursor[TRAW, T]:
        """
        Create a copy of this cursor with the same settings (page fetcher,
        query, mapping, observer), in its pristine IDLE state.
        This can be called in any state.

        Returns:
            a new Cursor, which will run the query from the start.

        Example:
            >>> cursor = collection.find({}, limit=2).map(lambda doc: doc["seq"])
            >>> cursor.to_list()
            [1, 4]
            >>> cursor.clone().to_list()
            [1, 4]
        """

        return self._copy()

    def filter(self, filter: FilterType | None) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new filter setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            filter: a new filter setting to apply to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `filter` which is the provided value.
        """

        self._ensure_idle()
        return self._copy(filter=filter)

    def project(self, projection: ProjectionType | None) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new projection setting.
        This operation is allowed only if the cursor state is still IDLE and if
        no mapping has been set on it.

        Args:
            projection: a new projection setting to apply to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `projection` which is the provided value.
        """

        self._ensure_idle()
        if self._mapper is not None:
            raise CursorException(
                text="Cannot set projection after map.",
                cursor_state=self._state.value,
            )
        return self._copy(projection=projection)

    def sort(self, sort: SortType | None) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new sort setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            sort: a new sort setting to apply to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `sort` which is the provided value.
        """

        self._ensure_idle()
        return self._copy(sort=sort)

    def limit(self, limit: int | None) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new limit setting.
        This operation is allowed only if the cursor state is still IDLE.

        The limit is enforced by the API, not re-counted by the cursor.

        Args:
            limit: a new limit setting to apply to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `limit` which is the provided value.
        """

        self._ensure_idle()
        return self._copy(limit=limit)

    def skip(self, skip: int | None) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new skip setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            skip: a new skip setting to apply to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `skip` which is the provided value.
        """

        self._ensure_idle()
        return self._copy(skip=skip)

    def include_similarity(self, include_similarity: bool = True) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new include_similarity setting.
        This operation is allowed only if the cursor state is still IDLE and if
        no mapping has been set on it.

        Args:
            include_similarity: a new include_similarity setting to apply
                to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `include_similarity` which is the provided value.
        """

        self._ensure_idle()
        if self._mapper is not None:
            raise CursorException(
                text="Cannot set include_similarity after map.",
                cursor_state=self._state.value,
            )
        return self._copy(include_similarity=include_similarity)

    def include_sort_vector(
        self, include_sort_vector: bool = True
    ) -> Cursor[TRAW, T]:
        """
        Return a copy of this cursor with a new include_sort_vector setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            include_sort_vector: a new include_sort_vector setting to apply
                to the returned new cursor.

        Returns:
            a new Cursor with the same settings as this one,
                except for `include_sort_vector` which is the provided value.
        """

        self._ensure_idle()
        return self._copy(include_sort_vector=include_sort_vector)

    def map(
        self,
        mapper: Callable[[T], TNEW],
        *,
        target_type: type | None = None,
    ) -> Cursor[TRAW, TNEW]:
        """
        Return a copy of this cursor with a mapping function to transform
        the returned items. Calling this method on a cursor with a mapping
        already set results in the mapping functions being composed.

        This operation is allowed only if the cursor state is still IDLE.

        Args:
            mapper: a function transforming the objects returned by the cursor
                into something else (i.e. a function T => TNEW). It is invoked
                once for each item actually consumed.
            target_type: if provided, items that already are instances of this
                type are returned as they are, skipping the mapper.

        Returns:
            a new Cursor with a new mapping function on the results,
                possibly composed with any pre-existing mapping function.

        Example:
            >>> cursor_mapped = collection.find(
            ...     {},
            ...     projection={"seq": True, "_id": False},
            ...     limit=2,
            ... ).map(lambda doc: doc["seq"])
            >>> for value in cursor_mapped:
            ...     print(value)
            ...
            1
            4
        """

        self._ensure_idle()
        new_step = _make_mapping_step(mapper, target_type)
        composite_mapper: Callable[[TRAW], TNEW]
        if self._mapper is not None:
            old_mapper = self._mapper

            def _composite(document: TRAW) -> TNEW:
                return new_step(old_mapper(document))

            composite_mapper = _composite
        else:
            composite_mapper = cast(Callable[[TRAW], TNEW], new_step)
        return self._copy(mapper=composite_mapper)

    def for_each(self, function: Callable[[T], bool | None]) -> None:
        """
        Consume the remaining items in the cursor, invoking a provided callback
        function on each of them.

        The callback function can return any value. The return value is generally
        discarded, with the following exception: if the function returns the boolean
        `False`, it is taken to signify that the method should quit early, leaving the
        cursor half-consumed (STARTED state). If this does not occur, this method
        results in the cursor entering CLOSED state once it is exhausted.
        If the callback raises an exception, the cursor is closed and the
        exception propagates.

        Args:
            function: a callback function whose only parameter is of the type returned
                by the cursor. This callback is invoked once per each item yielded
                by the cursor.

        Example:
            >>> def printer(doc):
            ...     print(f"-> {doc['seq']}")
            ...
            >>> collection.find({}, limit=3).for_each(printer)
            -> 1
            -> 4
            -> 15
        """

        completed = False
        try:
            for item in self:
                if function(item) is False:
                    break
            completed = True
        finally:
            if not completed:
                self.close()

    def to_list(self) -> list[T]:
        """
        Materialize all items that remain to be consumed from a cursor into a list,
        then close the cursor (also when an error occurs midway).

        If the cursor is IDLE, the result will be the whole set of items returned
        by the query; otherwise, the items already consumed by the cursor
        will not be in the resulting list. A CLOSED cursor gives an empty list.

        Calling this method is not recommended if a huge list of results is
        anticipated: lazily iterating over the cursor is to be preferred.

        Returns:
            a list of items (or other values depending on the mapping
                function, if one is set).

        Example:
            >>> collection.find({}, projection={"_id": False}, limit=3).to_list()
            [{'seq': 1}, {'seq': 4}, {'seq': 15}]
        """

        try:
            return [item for item in self]
        finally:
            self.close()

    def get_sort_vector(self) -> list[float] | None:
        """
        Return the query vector used in the vector (ANN) search that originated
        this cursor, if applicable. If this is not an ANN search, or it was invoked
        without the `include_sort_vector` flag, return None.

        If no page has been fetched yet, this triggers the first page fetch,
        thereby starting the cursor. On a CLOSED cursor, the sort vector of the
        last fetched page (if any) is returned.

        Returns:
            the query vector used in the search, as a list of floats, or None.
        """

        if self._current_page is None:
            self.fetch_next_page()
        if self._current_page is not None:
            return self._current_page.sort_vector
        return None
