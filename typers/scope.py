from typing import Dict, Generic, Iterable, Optional, Protocol, Tuple, TypeVar

from errors import UndefinedNameError

ValueType = TypeVar("ValueType")


class Named(Protocol):
    value: str


class Scope(Generic[ValueType]):
    """
    The names visible at some point in a program, along with a value
    (usually a type) for each one.

    A scope never changes after it is made. Entering a new binding
    construct means making a child with `down` whose names shadow the
    ones in its ancestors, and leaving it means going back `up`.

    Attributes
    ----------
    _names: Dict[str, ValueType]
        The names bound at this level.
    _outer: Optional[Scope[ValueType]]
        The enclosing scope, or `None` at the top level.
    """

    def __init__(self, outer: Optional["Scope[ValueType]"] = None) -> None:
        self._names: Dict[str, ValueType] = {}
        self._outer: Optional[Scope[ValueType]] = outer

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[Tuple[str, ValueType]],
        outer: Optional["Scope[ValueType]"] = None,
    ) -> "Scope[ValueType]":
        """
        Make a scope out of `(name, value)` pairs. If a name appears
        more than once, its first value is used.
        """
        scope = cls(outer)
        for name, value in pairs:
            scope._names.setdefault(name, value)
        return scope

    def down(self, pairs: Iterable[Tuple[str, ValueType]] = ()) -> "Scope[ValueType]":
        """Make a child of this scope that binds `pairs`."""
        return Scope.from_pairs(pairs, self)

    def up(self) -> "Scope[ValueType]":
        """Go back to the enclosing scope (or stay put at the top)."""
        return self if self._outer is None else self._outer

    def __getitem__(self, name: Named) -> ValueType:
        current: Optional[Scope[ValueType]] = self
        while current is not None:
            if name.value in current._names:
                return current._names[name.value]
            current = current._outer
        raise UndefinedNameError(name)
