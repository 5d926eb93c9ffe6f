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
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable

from astracursors.constants import DOC, FilterType, ProjectionType, SortType
from astracursors.cursors.distinct import (
    DistinctProjector,
    _reduce_distinct_key_to_safe,
)
from astracursors.cursors.find_cursor import Cursor
from astracursors.cursors.pagination import Page
from astracursors.cursors.query_engine import FindCommandPageFetcher
from astracursors.cursors.query_spec import QuerySpec
from astracursors.event_observers import Observer
from astracursors.settings.defaults import DEFAULT_DATA_API_AUTH_HEADER
from astracursors.utils.api_commander import APICommander
from astracursors.utils.api_options import FullAPIOptions

if TYPE_CHECKING:
    from astracursors.database import Database


logger = logging.getLogger(__name__)


class Collection(Generic[DOC]):
    """
    A Data API collection, the object to run find queries on documents
    through cursors. It is not meant to be directly instantiated by the user:
    obtain it with the `get_collection` method of a `Database`.

    Args:
        database: a Database object, instantiated earlier.
        name: the collection name.
        keyspace: the keyspace for the collection. If None is given,
            the one of the database is used.
        api_options: the complete API Options for this collection.

    Example:
        >>> my_coll = database.get_collection("my_collection")
        >>> my_coll
        Collection(name="my_collection", keyspace="default_keyspace", ...)
    """

    def __init__(
        self,
        *,
        database: Database,
        name: str,
        keyspace: str | None,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self._name = name
        self._database = database
        self._keyspace = keyspace if keyspace is not None else database.keyspace
        self._commander_headers = {
            **{DEFAULT_DATA_API_AUTH_HEADER: database.token},
            **self.api_options.database_additional_headers,
        }
        self._api_commander = self._get_api_commander()

    def __repr__(self) -> str:
        _db_desc = f'database.api_endpoint="{self._database.api_endpoint}"'
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'keyspace="{self.keyspace}", {_db_desc}, '
            f"api_options={self.api_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return all(
                [
                    self._name == other._name,
                    self._keyspace == other._keyspace,
                    self._database == other._database,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        base_path_components = [
            comp
            for comp in (
                ncomp.strip("/")
                for ncomp in (
                    self.api_options.data_api_url_options.api_path,
                    self.api_options.data_api_url_options.api_version,
                    self._keyspace,
                    self._name,
                )
                if ncomp is not None
            )
            if comp != ""
        ]
        base_path = f"/{'/'.join(base_path_components)}"
        return APICommander(
            api_endpoint=self._database.api_endpoint,
            path=base_path,
            headers=self._commander_headers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _get_page_fetcher(
        self, request_timeout_ms: int | None
    ) -> FindCommandPageFetcher[DOC]:
        _request_timeout_ms = (
            request_timeout_ms
            if request_timeout_ms is not None
            else self.api_options.timeout_options.request_timeout_ms
        )
        return FindCommandPageFetcher(
            api_commander=self._api_commander,
            source_name=self._name,
            request_timeout_ms=_request_timeout_ms,
        )

    @property
    def database(self) -> Database:
        """The Database this collection belongs to."""

        return self._database

    @property
    def keyspace(self) -> str:
        """The keyspace this collection is in."""

        return self._keyspace

    @property
    def name(self) -> str:
        """The name of this collection."""

        return self._name

    @property
    def full_name(self) -> str:
        """The fully-qualified collection name, "keyspace.name"."""

        return f"{self.keyspace}.{self.name}"

    def find(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        limit: int | None = None,
        skip: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        initial_page_state: str | None = None,
        mapper: Callable[[DOC], Any] | None = None,
        target_type: type | None = None,
        observer: Observer | None = None,
        request_timeout_ms: int | None = None,
    ) -> Cursor[DOC, Any]:
        """
        Find documents on the collection, matching a certain provided filter.

        The method returns a Cursor that can then be iterated over. Depending
        on the method call pattern, the iteration over all documents can reflect
        collection mutations occurred since the `find` method was called, or not.
        In cases where the cursor reflects mutations in real-time, it will iterate
        over cursors in an approximate way (i.e. exhibiting occasional skipped
        or duplicate documents). This happens when making use of the `sort`
        option in a non-vector-search manner.

        No API call is made by this method: pages are fetched as the returned
        cursor is consumed.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax. Examples are:
                    {}
                    {"name": "John"}
                    {"price": {"$lt": 100}}
                    {"$and": [{"name": "John"}, {"price": {"$lt": 100}}]}
            projection: it controls which parts of the document are returned.
                It can be an allow-list: `{"f1": True, "f2": True}`,
                or a deny-list: `{"fx": False, "fy": False}`, but not a mixture.
                An iterable over field names is taken as an allow-list.
            sort: with this dictionary parameter one can control the order
                the documents are returned. See the Note about sorting,
                as well as the one about upper bounds, for details.
                Vector-based ANN sorting is achieved by providing a "$vector"
                or a "$vectorize" key in `sort`.
            limit: this (integer) parameter sets a limit over how many documents
                are returned. Once `limit` is reached (or the cursor is exhausted
                for lack of matching documents), nothing more is returned.
            skip: with this integer parameter, what would be the first `skip`
                documents returned by the query are discarded, and the results
                start from the (skip+1)-th document.
                This parameter can be used only in conjunction with an explicit
                `sort` criterion of the ascending/descending type (i.e. it cannot
                be used when not sorting, nor with vector-based ANN search).
            include_similarity: a boolean to request the numeric value of the
                similarity to be returned as an added "$similarity" key in each
                returned document. It can be used meaningfully only in a vector
                search (see `sort`).
            include_sort_vector: a boolean to request the search query vector.
                If set to True (and if the invocation is a vector search), calling
                the `get_sort_vector` method on the returned cursor will yield
                the vector used for the ANN search.
            initial_page_state: a continuation token, as found in the
                `next_page_state` of a Page, to resume a query from.
            mapper: a function to apply to each returned document,
                lazily as documents are consumed.
            target_type: if provided along with `mapper`, documents that are
                already instances of this type bypass the mapper.
            observer: an Observer receiving the events of the returned cursor.
            request_timeout_ms: a timeout, in milliseconds, for each single
                HTTP request issued while consuming the cursor.
                If not passed, the collection-level setting is used instead.

        Returns:
            a Cursor object, that can be iterated over (and manipulated
            in several ways).

        Examples:
            >>> cursor = my_coll.find({"seq": {"$gte": 10}}, limit=3)
            >>> [doc["seq"] for doc in cursor]
            [15, 22, 11]
            >>>
            >>> my_coll.find({}, limit=2).map(lambda doc: doc["seq"]).to_list()
            [1, 4]

        Note:
            The following are example values for the `sort` parameter.
            When no particular order is required:
                sort={}  # (default when parameter not provided)
            When sorting by a certain value in ascending/descending order:
                sort={"field": 1}
                sort={"field": -1}
            When sorting first by "field" and then by "subfield"
            (while modern Python versions preserve the order of dictionaries,
            it is suggested for clarity to employ a `collections.OrderedDict`
            in these cases):
                sort={
                    "field": 1,
                    "subfield": 1,
                }
            When running a vector similarity (ANN) search:
                sort={"$vector": [0.4, 0.15, -0.5]}
        """

        return Cursor(
            source=self._get_page_fetcher(request_timeout_ms),
            spec=QuerySpec(
                filter=filter,
                projection=projection,
                sort=sort,
                limit=limit,
                skip=skip,
                include_similarity=bool(include_similarity),
                include_sort_vector=bool(include_sort_vector),
                page_state=initial_page_state,
            ),
            mapper=mapper,
            target_type=target_type,
            observer=observer,
        )

    def find_page(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        limit: int | None = None,
        skip: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        page_state: str | None = None,
        request_timeout_ms: int | None = None,
    ) -> Page[DOC]:
        """
        Run a find query for a single page of results, with explicit
        control over pagination.

        The parameters have the same meaning as for the `find` method.
        To get the following page, call this method again with the same
        parameters and `page_state` set to the `next_page_state` of the
        returned page.

        Returns:
            a `Page` with the documents, the continuation token
            (None if this is the last page) and possibly the sort vector.

        Example:
            >>> page = my_coll.find_page({}, projection={"seq": True})
            >>> len(page.results), page.has_next_page
            (20, True)
            >>> page2 = my_coll.find_page(
            ...     {}, projection={"seq": True}, page_state=page.next_page_state
            ... )
        """

        logger.info(f"calling find_page on '{self.name}'")
        page = self._get_page_fetcher(request_timeout_ms).find_page(
            QuerySpec(
                filter=filter,
                projection=projection,
                sort=sort,
                limit=limit,
                skip=skip,
                include_similarity=bool(include_similarity),
                include_sort_vector=bool(include_sort_vector),
                page_state=page_state,
            )
        )
        logger.info(f"finished calling find_page on '{self.name}'")
        return page

    def distinct(
        self,
        key: str | Iterable[str | int],
        *,
        filter: FilterType | None = None,
        observer: Observer | None = None,
        request_timeout_ms: int | None = None,
    ) -> DistinctProjector[DOC]:
        """
        Return an iterator over the distinct values of a certain key among
        the documents that match a given filter, in order of first appearance.

        Args:
            key: the name of the field whose value is inspected across documents.
                Keys can be just field names (as is often the case), but
                the dot-notation is also accepted to mean subkeys or indices
                within lists (for example, "map_field.subkey" or "list_field.2").
                If a field has literal dots or ampersands in its name, this
                parameter must be escaped to be treated properly.
                The key can also be a list of strings and numbers, in which case
                no escape is necessary: each item in the list is a field name/index,
                for example ["map_field", "subkey"] or ["list_field", 2].
                If lists are encountered and no numeric index is specified,
                all items in the list are visited.
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            observer: an Observer receiving the events of the underlying cursor.
            request_timeout_ms: a timeout, in milliseconds, for each single
                HTTP request.

        Returns:
            a DistinctProjector yielding the distinct values.

        Example:
            >>> # the collection holds these two documents:
            >>> #   {"name": "Marco", "food": ["apple", "orange"], "city": "Helsinki"}
            >>> #   {"name": "Emma", "food": {"likes_fruit": True, "allergies": []}}
            >>> my_coll.distinct("name").to_list()
            ['Marco', 'Emma']
            >>> my_coll.distinct("city").to_list()
            ['Helsinki']
            >>> my_coll.distinct("food").to_list()
            ['apple', 'orange', {'likes_fruit': True, 'allergies': []}]
            >>> my_coll.distinct("food.1").to_list()
            ['orange']

        Note:
            `distinct` is a client-side operation, which effectively browses
            all required documents using the logic of the `find` method and
            collects the unique values found for `key`. As such, there may be
            performance, latency and ultimately billing implications if the
            amount of matching documents is large.
        """

        _key_path = key if isinstance(key, str) else list(key)
        _key = _reduce_distinct_key_to_safe(_key_path)
        logger.info(f"preparing distinct on '{self.name}' (projecting '{_key}')")
        f_cursor = self.find(
            filter,
            projection={_key: True},
            observer=observer,
            request_timeout_ms=request_timeout_ms,
        )
        return DistinctProjector(f_cursor, _key_path)
