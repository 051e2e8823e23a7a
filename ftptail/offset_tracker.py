"""
Offset reconciliation for the tail loop.

Given the offset already consumed and the freshly observed remote size,
decide whether there is nothing to do, whether the file grew, or whether
it was rotated/truncated and the tail window must be re-read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Decision:
    """Outcome of :func:`reconcile`.

    ``start_offset`` is None exactly when ``skip`` is True.
    ``rewound`` marks a first observation or a rotation.
    """
    skip: bool
    start_offset: Optional[int] = None
    rewound: bool = False


def reconcile(previous_offset: Optional[int], current_size: int, tail_window_bytes: int) -> Decision:
    """Decide what to download for this iteration.

    A size equal to the previous offset always means "no new data", even
    if bytes were rewritten in place without changing the length.
    """
    if previous_offset is None or current_size < previous_offset:
        return Decision(skip=False, start_offset=max(0, current_size - tail_window_bytes), rewound=True)
    if current_size == previous_offset:
        return Decision(skip=True)
    return Decision(skip=False, start_offset=previous_offset)
