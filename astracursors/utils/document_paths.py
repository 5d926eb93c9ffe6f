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

from typing import Iterable

FIELD_NAME_ESCAPE_CHAR = "&"
FIELD_NAME_SEGMENT_SEPARATOR = "."
FIELD_NAME_ESCAPED_CHARS = {FIELD_NAME_ESCAPE_CHAR, FIELD_NAME_SEGMENT_SEPARATOR}
ILLEGAL_ESCAPE_ERROR_MESSAGE_TEMPLATE = (
    "Illegal escape sequence found while parsing field path "
    "specification '{field_path}': '{escape_sequence}'"
)
UNTERMINATED_ESCAPE_ERROR_MESSAGE_TEMPLATE = (
    "Unterminated escape sequence found at end of path specification '{field_path}'"
)


def escape_field_names(field_names: Iterable[str | int]) -> str:
    """
    Compose literal path segments into a single dot-notation field path,
    escaping dots and ampersands found in the segments.

    Example:
        >>> escape_field_names(["f", 123, "tom&jerry"])
        'f.123.tom&&jerry'
        >>> escape_field_names(["a.b", "c"])
        'a&.b.c'
    """

    return FIELD_NAME_SEGMENT_SEPARATOR.join(
        "".join(
            f"{FIELD_NAME_ESCAPE_CHAR}{char}"
            if char in FIELD_NAME_ESCAPED_CHARS
            else char
            for char in f"{field_name}"
        )
        for field_name in field_names
    )


def unescape_field_path(field_path: str) -> list[str]:
    """
    Split a dot-notation field path into its literal segments, resolving
    the escape sequences ("&." and "&&").

    Number-looking segments such as "0" are returned as strings: interpreting
    them as list indexes is up to the caller.

    Example:
        >>> unescape_field_path("a.b")
        ['a', 'b']
        >>> unescape_field_path("a&.b.c&&d")
        ['a.b', 'c&d']
    """

    if field_path == "":
        return []

    segments: list[str] = []
    current = ""
    chars = iter(field_path)
    for char in chars:
        if char == FIELD_NAME_SEGMENT_SEPARATOR:
            segments.append(current)
            current = ""
        elif char == FIELD_NAME_ESCAPE_CHAR:
            escaped = next(chars, None)
            if escaped is None:
                raise ValueError(
                    UNTERMINATED_ESCAPE_ERROR_MESSAGE_TEMPLATE.format(
                        field_path=field_path,
                    )
                )
            if escaped not in FIELD_NAME_ESCAPED_CHARS:
                raise ValueError(
                    ILLEGAL_ESCAPE_ERROR_MESSAGE_TEMPLATE.format(
                        field_path=field_path,
                        escape_sequence=f"{FIELD_NAME_ESCAPE_CHAR}{escaped}",
                    )
                )
            current += escaped
        else:
            current += char
    segments.append(current)
    return segments
