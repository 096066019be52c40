"""Base class for augmented Playwright handles.

Playwright's ``Browser``, ``Page``, ``Frame`` and ``ElementHandle`` are useful
but low level. Each wrapper in this package layers a fixed set of convenience
operations over exactly one underlying handle and forwards an explicitly
enumerated pass-through surface unchanged.

Resolution order for ``wrapper.name``:

1. An operation defined on the wrapper class (method or property) wins.
2. Otherwise, if ``name`` is listed in the class's ``PASSTHROUGH`` set, the
   underlying handle's own member is returned untouched (same bound
   coroutine method, same property value).
3. Anything else raises ``AttributeError``; ``wrapper.raw`` reaches the
   engine object directly.

Every member whose result is itself a handle is an operation on the wrapper,
so results are re-wrapped and augmentation composes across the object graph
reachable from one root browser.

Example::

    class ButtonWrapper(HandleWrapper):
        kind = "button"
        PASSTHROUGH = frozenset({"click", "is_visible"})

        async def label(self) -> str:
            return (await self._handle.inner_text()).strip()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from sitescrape.exceptions import HandleContractError


def _is_operation(attr: Any) -> bool:
    return callable(attr) or isinstance(attr, (property, staticmethod, classmethod))


class HandleWrapper:
    """An augmented view over one engine handle.

    Subclasses set ``kind`` and ``PASSTHROUGH``. Defining a plain (non-callable)
    class attribute whose name is in ``PASSTHROUGH`` would hide the engine's
    member behind a value; that is rejected with :class:`HandleContractError`
    when the subclass is created.
    """

    kind: ClassVar[str] = "handle"
    PASSTHROUGH: ClassVar[frozenset[str]] = frozenset()

    __slots__ = ("_handle",)

    def __init__(self, handle: Any) -> None:
        if isinstance(handle, HandleWrapper):
            raise HandleContractError(f"{type(self).__name__} refuses to wrap an already augmented {handle.kind}")
        self._handle = handle

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for name in cls.PASSTHROUGH:
            for klass in cls.__mro__:
                if name in vars(klass):
                    if not _is_operation(vars(klass)[name]):
                        raise HandleContractError(
                            f"{cls.__name__}.{name} is a plain attribute but {name!r} is a pass-through "
                            f"member of the underlying {cls.kind}; is the wrapper accidentally hiding it?"
                        )
                    break

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup on the wrapper fails.
        if name == "_handle" or name.startswith("__"):
            raise AttributeError(name)
        if name in type(self).PASSTHROUGH:
            return getattr(self._handle, name)
        raise AttributeError(
            f"{type(self).__name__} has no attribute {name!r}; use .raw for direct access to the {self.kind}"
        )

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | type(self).PASSTHROUGH)

    @property
    def raw(self) -> Any:
        """The underlying engine handle."""
        return self._handle

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HandleWrapper):
            return self._handle is other._handle
        return self._handle is other

    def __hash__(self) -> int:
        return hash(self._handle)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._handle!r}>"


def unwrap(value: Any) -> Any:
    """Replace wrappers with their raw handles, recursing into lists, tuples and dicts.

    Used before handing arguments to engine calls such as ``evaluate``.
    """
    if isinstance(value, HandleWrapper):
        return value.raw
    if isinstance(value, list):
        return [unwrap(v) for v in value]
    if isinstance(value, tuple):
        return tuple(unwrap(v) for v in value)
    if isinstance(value, Mapping):
        return {k: unwrap(v) for k, v in value.items()}
    return value
