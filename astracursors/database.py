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
from typing import Any

from astracursors.collection import Collection
from astracursors.constants import DefaultDocumentType, DefaultRowType
from astracursors.settings.defaults import DEFAULT_KEYSPACE, FIXED_SECRET_PLACEHOLDER
from astracursors.table import Table
from astracursors.utils.api_options import APIOptions, FullAPIOptions, defaultAPIOptions

logger = logging.getLogger(__name__)


class Database:
    """
    A Data API database: the entry point to obtain the Collection and Table
    objects whose `find` methods produce cursors.

    Args:
        api_endpoint: the full "API Endpoint" string used to reach the Data API,
            e.g. "https://<database_id>-<region>.apps.astra.datastax.com".
        token: the authentication token, sent in the "Token" header
            with each request. It never appears in logs or reprs.
        keyspace: the keyspace where collections and tables are to be found.
            Defaults to "default_keyspace".
        api_options: an `APIOptions` object overriding the default settings
            (timeouts, URL path, additional headers).

    Example:
        >>> from astracursors import Database
        >>> database = Database(
        ...     "https://01234567-...-us-east1.apps.astra.datastax.com",
        ...     token="AstraCS:...",
        ... )
        >>> my_coll = database.get_collection("my_collection")
    """

    api_options: FullAPIOptions

    def __init__(
        self,
        api_endpoint: str,
        *,
        token: str | None = None,
        keyspace: str | None = None,
        api_options: APIOptions | None = None,
    ) -> None:
        self.api_options = defaultAPIOptions().with_override(api_options)
        self.api_endpoint = api_endpoint.strip("/")
        self.token = token
        self._using_keyspace = keyspace if keyspace is not None else DEFAULT_KEYSPACE

    def __repr__(self) -> str:
        token_desc = "" if self.token is None else f', token="{FIXED_SECRET_PLACEHOLDER}"'
        return (
            f'{self.__class__.__name__}(api_endpoint="{self.api_endpoint}"'
            f'{token_desc}, keyspace="{self.keyspace}", '
            f"api_options={self.api_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Database):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.token == other.token,
                    self.keyspace == other.keyspace,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    @property
    def keyspace(self) -> str:
        """The keyspace this database uses for its collections and tables."""

        return self._using_keyspace

    def get_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        spawn_api_options: APIOptions | None = None,
    ) -> Collection[DefaultDocumentType]:
        """
        Spawn a `Collection` object instance representing a collection
        on this database. No API call is made: the collection is not checked
        for existence.

        Args:
            name: the name of the collection.
            keyspace: the keyspace containing the collection. If no keyspace
                is specified, the one of this database is used.
            spawn_api_options: a specification, complete or partial, of the
                API Options to override the defaults inherited from the Database.

        Returns:
            a `Collection` instance.

        Example:
            >>> my_coll = database.get_collection("my_collection")
            >>> my_coll.find({}, limit=1).to_list()
            [{'_id': '...', 'seq': 1}]
        """

        return Collection(
            database=self,
            name=name,
            keyspace=keyspace,
            api_options=self.api_options.with_override(spawn_api_options),
        )

    def get_table(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        spawn_api_options: APIOptions | None = None,
    ) -> Table[DefaultRowType]:
        """
        Spawn a `Table` object instance representing a table on this database.
        No API call is made.

        Args:
            name: the name of the table.
            keyspace: the keyspace containing the table. If no keyspace
                is specified, the one of this database is used.
            spawn_api_options: a specification, complete or partial, of the
                API Options to override the defaults inherited from the Database.

        Returns:
            a `Table` instance.
        """

        return Table(
            database=self,
            name=name,
            keyspace=keyspace,
            api_options=self.api_options.with_override(spawn_api_options),
        )
