"""Scoped ownership for OpenCL objects.

``ResourceArena`` records every object a run acquires and releases them in
reverse acquisition order when the ``with`` block exits, whether it exits
normally or through an exception. A failure while releasing one object is
logged and does not stop the remaining releases; the original exception, if
any, still propagates.
"""
from __future__ import annotations

from contextlib import ExitStack
from typing import Any, List, Tuple, TypeVar

from ..utils.logging import get_logger as _get_logger

_log = _get_logger("aplusb.opencl.resources")

T = TypeVar("T")


def _is_scoped(obj: Any) -> bool:
    return callable(getattr(obj, "__enter__", None)) and callable(getattr(obj, "__exit__", None))


def _release(label: str, obj: Any) -> None:
    release = getattr(obj, "release", None)
    if callable(release):
        # Queues drain before release so no command still references a buffer.
        finish = getattr(obj, "finish", None)
        if callable(finish):
            finish()
        release()
    elif _is_scoped(obj):
        # pyopencl.CommandQueue has no release(); its __exit__ finishes and finalizes it.
        obj.__exit__(None, None, None)
    _log.debug("released %s", label)


class ResourceArena:
    def __init__(self):
        self._stack = ExitStack()
        self._held: List[Tuple[str, Any]] = []

    def __enter__(self) -> "ResourceArena":
        self._stack.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb):
        return self._stack.__exit__(exc_type, exc, tb)

    def adopt(self, label: str, obj: T) -> T:
        """Take ownership of ``obj`` and return it unchanged.

        Objects without ``release()`` that are context managers are entered
        here and exited on release.
        """
        if not callable(getattr(obj, "release", None)) and _is_scoped(obj):
            obj.__enter__()
        self._held.append((label, obj))
        self._stack.callback(self._release_one, label, obj)
        return obj

    def _release_one(self, label: str, obj: Any) -> None:
        try:
            _release(label, obj)
        except Exception as e:
            _log.warning("failed to release %s: %s", label, e)
        finally:
            self._held = [(lbl, o) for lbl, o in self._held if o is not obj]

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self._held]

    def __len__(self) -> int:
        return len(self._held)


__all__ = ["ResourceArena"]
