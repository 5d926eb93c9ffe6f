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
from pytest_httpserver import HTTPServer

from astracursors import CursorState, Database
from astracursors.cursors import FindCommandPageFetcher, TableFindPageFetcher
from astracursors.exceptions import (
    DataAPIResponseException,
    UnexpectedDataAPIResponseException,
)
from astracursors.utils.api_options import APIOptions, TimeoutOptions

COLLECTION_PATH = "/api/json/v1/default_keyspace/my_coll"
TABLE_PATH = "/api/json/v1/ks/my_table"


def _database(httpserver: HTTPServer, **kwargs: object) -> Database:
    return Database(httpserver.url_for("/"), token="AstraCS:tok", **kwargs)  # type: ignore[arg-type]


class TestCollectionCursors:
    @pytest.mark.describe("test of collection find paginating over HTTP")
    def test_collection_find_pages(self, httpserver: HTTPServer) -> None:
        collection = _database(httpserver).get_collection("my_coll")
        httpserver.expect_ordered_request(
            COLLECTION_PATH,
            method="POST",
            headers={"Token": "AstraCS:tok"},
            json={
                "find": {
                    "filter": {"tag": "x"},
                    "projection": {"seq": True},
                    "sort": {"seq": 1},
                    "options": {"limit": 3},
                }
            },
        ).respond_with_json(
            {"data": {"documents": [{"seq": 1}, {"seq": 2}], "nextPageState": "PS1"}}
        )
        httpserver.expect_ordered_request(
            COLLECTION_PATH,
            method="POST",
            json={
                "find": {
                    "filter": {"tag": "x"},
                    "projection": {"seq": True},
                    "sort": {"seq": 1},
                    "options": {"limit": 3, "pageState": "PS1"},
                }
            },
        ).respond_with_json({"data": {"documents": [{"seq": 3}]}})

        cursor = collection.find(
            {"tag": "x"}, projection=["seq"], sort={"seq": 1}, limit=3
        ).map(lambda doc: doc["seq"])
        assert isinstance(cursor.data_source, FindCommandPageFetcher)
        assert cursor.to_list() == [1, 2, 3]
        assert cursor.state == CursorState.CLOSED
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection find_page and sort vector")
    def test_collection_find_page(self, httpserver: HTTPServer) -> None:
        collection = _database(httpserver).get_collection("my_coll")
        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            json={
                "find": {
                    "sort": {"$vector": [0.5, 0.5]},
                    "options": {
                        "includeSimilarity": True,
                        "includeSortVector": True,
                        "pageState": "PS9",
                    },
                }
            },
        ).respond_with_json(
            {
                "data": {"documents": [{"_id": "a", "$similarity": 0.9}]},
                "status": {"sortVector": [0.5, 0.5]},
            }
        )
        page = collection.find_page(
            sort={"$vector": [0.5, 0.5]},
            include_similarity=True,
            include_sort_vector=True,
            page_state="PS9",
        )
        assert page.results == [{"_id": "a", "$similarity": 0.9}]
        assert page.next_page_state is None
        assert not page.has_next_page
        assert page.sort_vector == [0.5, 0.5]

    @pytest.mark.describe("test of collection distinct over HTTP")
    def test_collection_distinct(self, httpserver: HTTPServer) -> None:
        collection = _database(httpserver).get_collection("my_coll")
        httpserver.expect_ordered_request(
            COLLECTION_PATH,
            json={"find": {"filter": {"f": 1}, "projection": {"food": True}}},
        ).respond_with_json(
            {
                "data": {
                    "documents": [
                        {"food": ["apple", "orange"]},
                        {"food": ["apple"]},
                    ],
                    "nextPageState": "N",
                }
            }
        )
        httpserver.expect_ordered_request(
            COLLECTION_PATH,
            json={
                "find": {
                    "filter": {"f": 1},
                    "projection": {"food": True},
                    "options": {"pageState": "N"},
                }
            },
        ).respond_with_json({"data": {"documents": [{"food": ["pear", "orange"]}]}})

        projector = collection.distinct("food.1", filter={"f": 1})
        assert projector.to_list() == ["orange"]
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection distinct with a one-shot key iterable")
    def test_collection_distinct_key_generator(self, httpserver: HTTPServer) -> None:
        collection = _database(httpserver).get_collection("my_coll")
        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            json={"find": {"projection": {"food": True}}},
        ).respond_with_json(
            {"data": {"documents": [{"food": ["apple", "orange"]}, {"food": ["pear"]}]}}
        )
        projector = collection.distinct(segment for segment in ["food", 1])
        assert projector.key == ["food", 1]
        assert projector.to_list() == ["orange"]
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection cursor surfacing API errors")
    def test_collection_find_errors(self, httpserver: HTTPServer) -> None:
        collection = _database(httpserver).get_collection("my_coll")
        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"errors": [{"errorCode": "INVALID_FILTER", "message": "bad filter"}]}
        )
        cursor = collection.find({"$bogus": 1})
        with pytest.raises(DataAPIResponseException) as exc:
            cursor.to_list()
        assert exc.value.error_descriptors[0].error_code == "INVALID_FILTER"
        assert cursor.state == CursorState.CLOSED

        httpserver.expect_oneshot_request(COLLECTION_PATH).respond_with_json(
            {"data": {"something": "else"}}
        )
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.find_page()

    @pytest.mark.describe("test of collection-level API options")
    def test_collection_api_options(self, httpserver: HTTPServer) -> None:
        database = _database(
            httpserver,
            api_options=APIOptions(
                timeout_options=TimeoutOptions(request_timeout_ms=1234),
            ),
        )
        collection = database.get_collection(
            "my_coll",
            spawn_api_options=APIOptions(
                database_additional_headers={"X-Extra": "e"},
            ),
        )
        assert collection.full_name == "default_keyspace.my_coll"
        assert collection.api_options.timeout_options.request_timeout_ms == 1234
        fetcher = collection.find().data_source
        assert isinstance(fetcher, FindCommandPageFetcher)
        assert fetcher.request_timeout_ms == 1234
        other_fetcher = collection.find(request_timeout_ms=50).data_source
        assert isinstance(other_fetcher, FindCommandPageFetcher)
        assert other_fetcher.request_timeout_ms == 50
        assert "AstraCS:tok" not in repr(database)

        httpserver.expect_oneshot_request(
            COLLECTION_PATH,
            headers={"X-Extra": "e", "Token": "AstraCS:tok"},
        ).respond_with_json({"data": {"documents": []}})
        assert collection.find().to_list() == []
        httpserver.check_assertions()


class TestTableCursors:
    @pytest.mark.describe("test of table find over HTTP")
    def test_table_find(self, httpserver: HTTPServer) -> None:
        table = _database(httpserver, keyspace="ks").get_table("my_table")
        httpserver.expect_ordered_request(
            TABLE_PATH,
            json={"find": {"filter": {"match_id": "m1"}}},
        ).respond_with_json(
            {
                "data": {"documents": [{"winner": "A"}], "nextPageState": "T1"},
                "status": {"projectionSchema": {"winner": {"type": "text"}}},
            }
        )
        httpserver.expect_ordered_request(
            TABLE_PATH,
            json={"find": {"filter": {"match_id": "m1"}, "options": {"pageState": "T1"}}},
        ).respond_with_json(
            {
                "data": {"documents": [{"winner": "B"}]},
                "status": {"projectionSchema": {"winner": {"type": "text"}}},
            }
        )
        cursor = table.find({"match_id": "m1"})
        assert isinstance(cursor.data_source, TableFindPageFetcher)
        assert cursor.to_list() == [{"winner": "A"}, {"winner": "B"}]
        httpserver.check_assertions()

    @pytest.mark.describe("test of table find requiring a projection schema")
    def test_table_find_no_schema(self, httpserver: HTTPServer) -> None:
        table = _database(httpserver, keyspace="ks").get_table("my_table")
        httpserver.expect_oneshot_request(TABLE_PATH).respond_with_json(
            {"data": {"documents": []}}
        )
        with pytest.raises(UnexpectedDataAPIResponseException):
            table.find().to_list()

    @pytest.mark.describe("test of table distinct over HTTP")
    def test_table_distinct(self, httpserver: HTTPServer) -> None:
        table = _database(httpserver, keyspace="ks").get_table("my_table")
        httpserver.expect_oneshot_request(
            TABLE_PATH,
            json={"find": {"projection": {"scores": True}}},
        ).respond_with_json(
            {
                "data": {
                    "documents": [
                        {"scores": {"a": 1, "b": 2}},
                        {"scores": {"a": 1}},
                        {"scores": {"a": 3}},
                    ]
                },
                "status": {"projectionSchema": {"scores": {"type": "map"}}},
            }
        )
        assert table.distinct("scores.a").to_list() == [1, 3]
