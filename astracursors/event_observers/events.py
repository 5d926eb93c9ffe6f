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

from abc import ABC
from dataclasses import dataclass
from enum import Enum


class ObservableEventType(Enum):
    """
    Enum for the possible values of the event type for observable events
    """

    PAGE_FETCHED = "page_fetched"
    STATE_CHANGE = "state_change"


@dataclass
class ObservableEvent(ABC):
    """
    Class that represents the most general 'event' that is sent to observers.

    Attributes:
        event_type: the type of the event.
    """

    event_type: ObservableEventType


@dataclass
class ObservablePageFetched(ObservableEvent):
    """
    An event dispatched by a cursor each time a page of results has been
    received from its page fetcher and appended to the cursor buffer.

    Attributes:
        event_type: it has value ObservableEventType.PAGE_FETCHED in this case.
        page_number: the 1-based count of pages fetched so far by the cursor.
        results_count: the number of raw items in the page.
        has_next_page: whether the page carries a continuation token.
    """

    page_number: int
    results_count: int
    has_next_page: bool

    def __init__(
        self,
        *,
        page_number: int,
        results_count: int,
        has_next_page: bool,
    ) -> None:
        self.event_type = ObservableEventType.PAGE_FETCHED
        self.page_number = page_number
        self.results_count = results_count
        self.has_next_page = has_next_page


@dataclass
class ObservableStateChange(ObservableEvent):
    """
    An event dispatched by a cursor when its lifecycle state changes.

    Attributes:
        event_type: it has value ObservableEventType.STATE_CHANGE in this case.
        old_state: the state value before the change, e.g. "idle".
        new_state: the state value after the change, e.g. "started".
    """

    old_state: str
    new_state: str

    def __init__(self, *, old_state: str, new_state: str) -> None:
        self.event_type = ObservableEventType.STATE_CHANGE
        self.old_state = old_state
        self.new_state = new_state
