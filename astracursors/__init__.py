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

import importlib.metadata


def get_version() -> str:
    try:
        return importlib.metadata.version(__package__ or "astracursors")
    # the package may be used without being installed
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


__version__: str = get_version()


import astracursors.constants  # noqa: E402
import astracursors.cursors  # noqa: E402
from astracursors.collection import Collection  # noqa: E402
from astracursors.cursors import (  # noqa: E402
    Cursor,
    CursorState,
    DistinctProjector,
    Page,
    PageFetcher,
    QuerySpec,
)

# Database imports Collection and Table, hence it comes last:
from astracursors.database import Database  # noqa: E402
from astracursors.table import Table  # noqa: E402

__all__ = [
    "Collection",
    "Cursor",
    "CursorState",
    "Database",
    "DistinctProjector",
    "Page",
    "PageFetcher",
    "QuerySpec",
    "Table",
    "__version__",
]


__pdoc__ = {
    "settings": False,
    "utils": False,
}
