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

from decimal import Decimal
from enum import Enum
from typing import Iterable, TypeVar

# A cursor reads TRAW from DB and maps them to T if any mapping.
# A new cursor returned by .map will map to TNEW
TRAW = TypeVar("TRAW")
T = TypeVar("T")
TNEW = TypeVar("TNEW")


def _ensure_vector(
    fvector: Iterable[float | Decimal] | None,
) -> list[float] | None:
    """
    The sort vector echoed by the API in a find response may be parsed as
    a list of Decimal or int instances. Make it a plain list of floats.
    """
    if fvector is None:
        return None
    return [float(x) for x in fvector]


class CursorState(Enum):
    """
    This enum expresses the possible states for a `Cursor`.

    The lifecycle is strictly IDLE -> STARTED -> CLOSED: a cursor never goes back
    to IDLE. Configuration methods, which are allowed only on IDLE cursors,
    return new IDLE cursors instead.

    Values:
        IDLE: Iteration over results has not started yet (alive=T, started=F)
        STARTED: Iteration has started, *can* still yield results (alive=T, started=T)
        CLOSED: Finished/forcibly stopped. Won't return more items (alive=F)
    """

    IDLE = "idle"
    STARTED = "started"
    CLOSED = "closed"
