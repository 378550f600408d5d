"""Run indicators: per-run flags shared by the executor and its continuations.

One RunIndicators belongs to exactly one run. The executor and the run's
aborter write to it; awaitable/generator continuations only read it to
decide whether a late completion is still relevant.
"""

from __future__ import annotations


class RunIndicators:
    """Mutable flags for a single run.

    fulfilled: the producer reached a terminal value (success or error).
    aborted:   the run was interrupted before it was fulfilled.
    cleared:   the run's aborter has fired; on_abort callbacks have run.
    """

    __slots__ = ("fulfilled", "aborted", "cleared")

    def __init__(self) -> None:
        self.fulfilled = False
        self.aborted = False
        self.cleared = False

    @property
    def settled(self) -> bool:
        """No continuation of this run may commit anymore."""
        return self.fulfilled or self.aborted

    def __repr__(self) -> str:
        flags = [name for name in self.__slots__ if getattr(self, name)]
        return f"RunIndicators({', '.join(flags) or 'running'})"
