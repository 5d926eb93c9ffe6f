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

import hashlib
import json
import logging
from collections import deque
from types import TracebackType
from typing import Any, Callable, Generic, Iterable, Optional, Tuple

from astracursors.cursors.cursor import TRAW, CursorState
from astracursors.cursors.find_cursor import Cursor
from astracursors.exceptions import EndOfCursorError
from astracursors.utils.document_paths import escape_field_names, unescape_field_path

logger = logging.getLogger(__name__)

IndexPairType = Tuple[Optional[str], Optional[int]]

ERROR_NO_EMPTY_SAFE_KEYSTART = (
    "The 'key' parameter for distinct cannot be empty or start with a list index."
)
ERROR_NO_EMPTY_KEYPATH = (
    "Field path specification cannot be empty or have empty segments"
)


def _maybe_valid_list_index(key_block: str) -> int | None:
    # '0', '1' is good. '00', '01', '-30' are not.
    if key_block.isdecimal() and key_block == str(int(key_block)):
        return int(key_block)
    return None


def _create_document_key_extractor(
    key: str | Iterable[str | int],
) -> Callable[[dict[str, Any]], Iterable[Any]]:
    """
    Build a function that, given a document, yields all values found at `key`.

    A string key is a dot-notation path (with "&" escaping): each of its
    number-looking segments may act either as a dict key or as a list index.
    A key given as a list of segments disambiguates: strings only address
    dict keys, integers only address list indexes.
    Lists met along the path, or found at its end, are unrolled.
    """

    key_blocks0: list[IndexPairType]
    if isinstance(key, str):
        key_blocks0 = [
            (kb_str, _maybe_valid_list_index(kb_str))
            for kb_str in unescape_field_path(key)
        ]
    else:
        key_blocks0 = [
            (k_segment, None) if isinstance(k_segment, str) else (None, k_segment)
            for k_segment in key
        ]
    if key_blocks0 == [] or any(kb[0] == "" for kb in key_blocks0):
        raise ValueError(ERROR_NO_EMPTY_KEYPATH)

    def _extract_with_key_blocks(
        key_blocks: list[IndexPairType], value: Any
    ) -> Iterable[Any]:
        if key_blocks == []:
            if isinstance(value, list):
                yield from value
            else:
                yield value
            return
        k_str, k_int = key_blocks[0]
        rest_key_blocks = key_blocks[1:]
        if isinstance(value, dict):
            if k_str is not None and k_str in value:
                yield from _extract_with_key_blocks(rest_key_blocks, value[k_str])
        elif isinstance(value, list):
            if k_int is not None:
                if len(value) > k_int:
                    yield from _extract_with_key_blocks(rest_key_blocks, value[k_int])
            else:
                # auto-unroll of lists
                for item in value:
                    yield from _extract_with_key_blocks(key_blocks, item)
        # scalars deeper than the path: nothing to extract

    def _item_extractor(document: dict[str, Any]) -> Iterable[Any]:
        return _extract_with_key_blocks(key_blocks=key_blocks0, value=document)

    return _item_extractor


def _split_distinct_key_to_safe_blocks(
    distinct_key: str | Iterable[str | int],
) -> list[str]:
    blocks: Iterable[str | int] = (
        unescape_field_path(distinct_key)
        if isinstance(distinct_key, str)
        else distinct_key
    )
    valid_portion: list[str] = []
    for block in blocks:
        if not isinstance(block, str) or _maybe_valid_list_index(block) is not None:
            break
        valid_portion.append(block)
    return valid_portion


def _reduce_distinct_key_to_safe(
    distinct_key: str | Iterable[str | int],
) -> str:
    """
    In light of the twofold interpretation of "0" as index and dict key
    in selection (for distinct), and the auto-unroll of lists, it is not
    safe to project beyond the first number-looking segment. See this example:
        document = {'x': [{'y': 'Y', '0': 'ZERO'}]}
        key = "x.0"
    With full key as projection, we would lose the `"y": "Y"` part (mistakenly).
    """

    valid_portion = _split_distinct_key_to_safe_blocks(distinct_key)
    if valid_portion == []:
        raise ValueError(ERROR_NO_EMPTY_SAFE_KEYSTART)
    if valid_portion[0] == "":
        raise ValueError(ERROR_NO_EMPTY_KEYPATH)
    return escape_field_names(valid_portion)


def _reduce_distinct_key_to_shallow_safe(
    distinct_key: str | Iterable[str | int],
) -> str:
    """
    For Tables, the "safe" key always stops at the first level,
    columns being the maximum resolution in projecting.
    """

    valid_portion = _split_distinct_key_to_safe_blocks(distinct_key)
    if valid_portion == []:
        raise ValueError(ERROR_NO_EMPTY_SAFE_KEYSTART)
    if valid_portion[0] == "":
        raise ValueError(ERROR_NO_EMPTY_KEYPATH)
    return valid_portion[0]


def _normalize_for_hash(value: Any) -> Any:
    # JSON-native scalars stand for themselves, anything else is type-tagged
    if value is None or isinstance(value, (str, int, float)):
        return value
    if isinstance(value, dict):
        return {"$d": {str(k): _normalize_for_hash(v) for k, v in value.items()}}
    if isinstance(value, list):
        return [_normalize_for_hash(v) for v in value]
    if isinstance(value, tuple):
        return {"$t": "tuple", "$v": [_normalize_for_hash(v) for v in value]}
    return {"$t": type(value).__qualname__, "$v": str(value)}


def _hash_value(value: Any) -> str:
    _normalized_json = json.dumps(
        _normalize_for_hash(value), sort_keys=True, separators=(",", ":")
    )
    return hashlib.md5(_normalized_json.encode()).hexdigest()


class DistinctProjector(Generic[TRAW]):
    """
    A lazy iterator over the distinct values found at a given key in the
    results of a cursor. Values are emitted in order of first appearance,
    and each of them exactly once, however many pages the query spans.

    The projector pulls pages from the wrapped cursor only when it has no
    values left to emit. A page whose values were all seen before does not
    end the stream, as long as the query has further pages.
    The wrapped cursor's mapping function, if any, is bypassed: the key is
    extracted from the raw items.

    Values already emitted are remembered (as hashes) for the whole life of
    the projector: memory grows with the number of distinct values.

    Args:
        cursor: the cursor to read from. It is best supplied in IDLE state
            and should not be consumed by anyone else afterwards.
        key: the path to the values, either in dot-notation (e.g.
            "field.subfield.0") or as a list of segments (e.g.
            ["field", "subfield", 0]). See `_create_document_key_extractor`.

    Example:
        >>> projector = collection.distinct("category", filter={"price": {"$gt": 2}})
        >>> for value in projector:
        ...     print(value)
        ...
        fruit
        vegetable
    """

    _cursor: Cursor[TRAW, Any]
    _key: str | list[str | int]
    _extractor: Callable[[dict[str, Any]], Iterable[Any]]
    _seen: set[str]
    _pending: deque[tuple[str, Any]]
    _state: CursorState
    _consumed: int

    def __init__(
        self,
        cursor: Cursor[TRAW, Any],
        key: str | Iterable[str | int],
    ) -> None:
        self._cursor = cursor
        self._key = key if isinstance(key, str) else list(key)
        self._extractor = _create_document_key_extractor(self._key)
        self._seen = set()
        self._pending = deque()
        self._state = CursorState.IDLE
        self._consumed = 0

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(key={self._key!r}, "
            f"{self._state.value}, "
            f"consumed so far: {self._consumed})"
        )

    def __iter__(self) -> DistinctProjector[TRAW]:
        return self

    def __next__(self) -> Any:
        if not self.has_next():
            raise EndOfCursorError(
                text="No more distinct values.",
                cursor_state=self._state.value,
            )
        value_hash, value = self._pending.popleft()
        self._seen.add(value_hash)
        self._consumed += 1
        return value

    def __enter__(self) -> DistinctProjector[TRAW]:
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
        return self._state

    @property
    def key(self) -> str | list[str | int]:
        return self._key

    @property
    def consumed(self) -> int:
        """The number of distinct values emitted so far."""

        return self._consumed

    @property
    def seen_count(self) -> int:
        """The number of distinct values remembered so far."""

        return len(self._seen)

    def _enqueue_new_values(self, raw_items: list[TRAW]) -> None:
        batch_hashes: set[str] = set()
        for raw_item in raw_items:
            for value in self._extractor(raw_item):  # type: ignore[arg-type]
                value_hash = _hash_value(value)
                if value_hash not in self._seen and value_hash not in batch_hashes:
                    batch_hashes.add(value_hash)
                    self._pending.append((value_hash, value))

    def has_next(self) -> bool:
        """
        Whether there is at least one more distinct value to emit.

        This may fetch further pages through the wrapped cursor, until either
        a new value is found or the results are exhausted (which closes
        the projector).
        """

        if self._state == CursorState.CLOSED:
            return False
        if self._state == CursorState.IDLE:
            logger.info(f"starting distinct on key {self._key!r}")
            self._state = CursorState.STARTED
        while not self._pending:
            raw_items = self._cursor.consume_buffer()
            if raw_items:
                self._enqueue_new_values(raw_items)
            elif self._cursor.fetch_next_page() is None:
                logger.info(f"finished distinct on key {self._key!r}")
                self.close()
                return False
        return True

    def close(self) -> None:
        """
        Close the projector and the wrapped cursor. Values not yet emitted
        are discarded. Closing a closed projector has no effect.
        """

        self._state = CursorState.CLOSED
        self._pending.clear()
        self._cursor.close()

    def to_list(self) -> list[Any]:
        """
        Materialize all remaining distinct values into a list, then close
        the projector (also when an error occurs midway).
        """

        try:
            return list(self)
        finally:
            self.close()
