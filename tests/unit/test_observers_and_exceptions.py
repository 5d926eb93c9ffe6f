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

from typing import Any

import httpx
import pytest

from astracursors.event_observers import (
    ObservableEvent,
    ObservableEventType,
    ObservablePageFetched,
    ObservableStateChange,
    Observer,
)
from astracursors.exceptions import (
    CursorException,
    CursorStateError,
    DataAPIErrorDescriptor,
    DataAPIException,
    DataAPIResponseException,
    DataAPITimeoutException,
    EndOfCursorError,
)

EVT_PAGE = ObservablePageFetched(page_number=1, results_count=20, has_next_page=True)
EVT_STATE = ObservableStateChange(old_state="idle", new_state="started")


class TestEventObservers:
    @pytest.mark.describe("test of observer from event list")
    def test_observer_from_event_list(self) -> None:
        events: list[ObservableEvent] = []
        observer = Observer.from_event_list(events)
        observer.receive(EVT_PAGE)
        observer.receive(EVT_STATE, sender="someone")
        assert events == [EVT_PAGE, EVT_STATE]

        filtered: list[ObservableEvent] = []
        observer_f = Observer.from_event_list(
            filtered, event_types=[ObservableEventType.STATE_CHANGE]
        )
        observer_f.receive(EVT_PAGE)
        observer_f.receive(EVT_STATE)
        assert filtered == [EVT_STATE]

    @pytest.mark.describe("test of observer from event dict")
    def test_observer_from_event_dict(self) -> None:
        received: dict[ObservableEventType, list[ObservableEvent]] = {}
        observer = Observer.from_event_dict(received)
        observer.receive(EVT_PAGE)
        observer.receive(EVT_STATE)
        observer.receive(EVT_PAGE)
        assert received == {
            ObservableEventType.PAGE_FETCHED: [EVT_PAGE, EVT_PAGE],
            ObservableEventType.STATE_CHANGE: [EVT_STATE],
        }

    @pytest.mark.describe("test of custom observer")
    def test_custom_observer(self) -> None:
        class CountingObserver(Observer):
            def __init__(self) -> None:
                self.count = 0

            def receive(self, event: ObservableEvent, sender: Any = None) -> None:
                self.count += 1

        observer = CountingObserver()
        observer.receive(EVT_PAGE)
        observer.receive(EVT_STATE)
        assert observer.count == 2


class TestExceptions:
    @pytest.mark.describe("test of cursor exception hierarchy")
    def test_cursor_exceptions(self) -> None:
        exc = EndOfCursorError("done", cursor_state="closed")
        assert isinstance(exc, CursorException)
        assert isinstance(exc, StopIteration)
        assert isinstance(exc, DataAPIException)
        assert exc.text == "done"
        assert exc.cursor_state == "closed"
        assert issubclass(CursorStateError, CursorException)

    @pytest.mark.describe("test of response exception from a raw response")
    def test_response_exception(self) -> None:
        exc = DataAPIResponseException.from_response(
            command={"find": {}},
            raw_response={"errors": [{"errorCode": "C", "message": "M"}]},
        )
        assert exc.error_descriptors == [
            DataAPIErrorDescriptor({"errorCode": "C", "message": "M"})
        ]
        assert exc.warning_descriptors == []
        assert exc.text is not None
        assert "M" in exc.text

    @pytest.mark.describe("test of timeout exception conversion")
    def test_timeout_conversion(self) -> None:
        request = httpx.Request("POST", "http://x/y", content=b'{"find":{}}')
        exc = DataAPITimeoutException.from_httpx_timeout(
            httpx.ReadTimeout("read took too long", request=request),
            timeout_ms=100,
            timeout_label="request_timeout_ms",
        )
        assert exc.timeout_type == "read"
        assert exc.endpoint == "http://x/y"
        assert exc.raw_payload == '{"find":{}}'
        assert "request_timeout_ms = 100 ms" in exc.text

        exc_g = DataAPITimeoutException.from_httpx_timeout(
            httpx.TimeoutException("generic"),
        )
        assert exc_g.timeout_type == "generic"
        assert exc_g.endpoint is None
        assert exc_g.text == "generic"
