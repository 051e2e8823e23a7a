"""Split one downloaded delta into lines."""

from __future__ import annotations

LINE_TERMINATOR = "\r\n"


def split_lines(text: str, terminator: str = LINE_TERMINATOR) -> list[str]:
    """Return the lines of ``text`` in order.

    Exactly one trailing terminator is dropped so a terminator-ending delta
    never yields a trailing empty line.  A delta that ends mid-line yields
    that fragment as its last element; fragments are not joined with the
    next delta.
    """
    if not text:
        return []
    if text.endswith(terminator):
        text = text[: -len(terminator)]
    return text.split(terminator)
