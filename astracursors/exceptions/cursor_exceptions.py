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

from astracursors.exceptions.data_api_exceptions import DataAPIException


@dataclass
class CursorException(DataAPIException):
    """
    A cursor (or a projector built on a cursor) was used in a way that its
    current state does not allow.

    Attributes:
        text: a text message about the exception.
        cursor_state: a string description of the current state
            of the cursor. See `astracursors.cursors.CursorState`.
    """

    text: str
    cursor_state: str

    def __init__(
        self,
        text: str,
        *,
        cursor_state: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_state = cursor_state


class CursorStateError(CursorException):
    """
    A configuration method (filter, sort, limit, ...) was called on a cursor
    that is not IDLE anymore.

    The cursor is left untouched: the caller can start over from any IDLE
    cursor, for instance one obtained through `clone()`.
    """

    pass


class EndOfCursorError(CursorException, StopIteration):
    """
    An item was requested from a cursor with no items left.

    This is a `StopIteration`, hence it ends `for` loops and `list(...)`
    over a cursor normally.
    """

    pass
