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

from astracursors.constants import ROW, FilterType, ProjectionType, SortType
from astracursors.cursors.distinct import (
    DistinctProjector,
    _reduce_distinct_key_to_shallow_safe,
)
from astracursors.cursors.find_cursor import Cursor
from astracursors.cursors.pagination import Page
from astracursors.cursors.query_engine import TableFindPageFetcher
from astracursors.cursors.query_spec import QuerySpec
from astracursors.event_observers import Observer
from astracursors.settings.defaults import DEFAULT_DATA_API_AUTH_HEADER
from astracursors.utils.api_commander import APICommander
from astracursors.utils.api_options import FullAPIOptions

if TYPE_CHECKING:
    from astracursors.database import Database


logger = logging.getLogger(__name__)


class Table(Generic[ROW]):
    """
    A Data API table, the object to run find queries on rows through cursors.
    It is not meant to be directly instantiated by the user:
    obtain it with the `get_table` method of a `Database`.

    Args:
        database: a Database object, instantiated earlier.
        name: the table name.
        keyspace: the keyspace for the table. If None is given,
            the one of the database is used.
        api_options: the complete API Options for this table.
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
        if isinstance(other, Table):
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

    def _get_page_fetcher(self, request_timeout_ms: int | None) -> TableFindPageFetcher[ROW]:
        _request_timeout_ms = (
            request_timeout_ms
            if request_timeout_ms is not None
            else self.api_options.timeout_options.request_timeout_ms
        )
        return TableFindPageFetcher(
            api_commander=self._api_commander,
            source_name=self._name,
            request_timeout_ms=_request_timeout_ms,
        )

    @property
    def database(self) -> Database:
        return self._database

    @property
    def keyspace(self) -> str:
        return self._keyspace

    @property
    def name(self) -> str:
        return self._name

    @property
    def full_name(self) -> str:
        """The fully-qualified table name, "keyspace.name"."""

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
        mapper: Callable[[ROW], Any] | None = None,
        target_type: type | None = None,
        observer: Observer | None = None,
        request_timeout_ms: int | None = None,
    ) -> Cursor[ROW, Any]:
        """
        Find rows on the table matching the provided filters
        and according to sorting criteria including vector similarity.

        The returned Cursor fetches pages lazily and can be iterated over,
        materialized into a list or reconfigured while still idle.
        The parameters have the same meaning as in `Collection.find`:
        in particular `projection` selects columns, and a vector (ANN)
        search is requested by a sort clause on a vector column,
        e.g. `sort={"embedding": [0.1, 0.2, 0.3]}`.

        Returns:
            a Cursor over the rows.

        Example:
            >>> my_table.find(
            ...     {"match_id": "fight4"},
            ...     projection={"winner": True},
            ...     limit=2,
            ... ).to_list()
            [{'winner': 'Victor'}, {'winner': 'Adam Zuul'}]
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
    ) -> Page[ROW]:
        """
        Run a find query for a single page of rows. See `Collection.find_page`.
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
    ) -> DistinctProjector[ROW]:
        """
        Return an iterator over the distinct values of a certain key among
        the rows that match a given filter, in order of first appearance.

        The key has the same syntax as in `Collection.distinct`. Only the
        column it starts with is projected in the underlying query: deeper
        selection, e.g. within map or list columns, is done client-side.

        Returns:
            a DistinctProjector yielding the distinct values.

        Example:
            >>> my_table.distinct("winner", filter={"match_id": "challenge6"}).to_list()
            ['Donna', 'Erick', 'Fiona']
        """

        _key_path = key if isinstance(key, str) else list(key)
        _key = _reduce_distinct_key_to_shallow_safe(_key_path)
        logger.info(f"preparing distinct on '{self.name}' (projecting '{_key}')")
        f_cursor = self.find(
            filter,
            projection={_key: True},
            observer=observer,
            request_timeout_ms=request_timeout_ms,
        )
        return DistinctProjector(f_cursor, _key_path)
