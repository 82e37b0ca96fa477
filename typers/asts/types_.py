# pylint: disable=R0903, C0115
from abc import ABC, abstractmethod
from itertools import count
from threading import Lock
from typing import Sequence

_counter = count(1)
_counter_lock = Lock()


def next_var() -> int:
    """
    Get a type var id that has never been handed out before.

    Notes
    -----
    - The counter is shared by the whole process so access to it is
      serialised. This keeps ids unique even when several inference
      runs happen at the same time.
    """
    with _counter_lock:
        return next(_counter)


class Type(ABC):
    """
    This is the base class for the program's representation of types in
    the type system.

    Warnings
    --------
    - This class should not be used directly, instead use one of its
      subclasses.
    """

    __slots__ = ()

    @abstractmethod
    def __eq__(self, other) -> bool:
        ...

    @abstractmethod
    def __contains__(self, value) -> bool:
        ...


class FuncType(Type):
    __slots__ = ("param", "result")

    def __init__(self, param: Type, result: Type) -> None:
        self.param: Type = param
        self.result: Type = result

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, FuncType)
            and self.param == other.param
            and self.result == other.result
        )

    def __contains__(self, value) -> bool:
        return value in self.param or value in self.result

    def __hash__(self) -> int:
        return hash((self.param, self.result))

    def __repr__(self) -> str:
        return f"({self.param!r} -> {self.result!r})"


class SumType(Type):
    """A single labelled arm of a variant type."""

    __slots__ = ("label", "payload")

    def __init__(self, label: str, payload: Type) -> None:
        self.label: str = label
        self.payload: Type = payload

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, SumType)
            and self.label == other.label
            and self.payload == other.payload
        )

    def __contains__(self, value) -> bool:
        return value in self.payload

    def __hash__(self) -> int:
        return hash((self.label, self.payload))

    def __repr__(self) -> str:
        return f"{self.label}[{self.payload!r}]"


class TupleType(Type):
    __slots__ = ("elements",)

    def __init__(self, elements: Sequence[Type]) -> None:
        self.elements: Sequence[Type] = tuple(elements)

    def __eq__(self, other) -> bool:
        return isinstance(other, TupleType) and self.elements == other.elements

    def __contains__(self, value) -> bool:
        return any(value in elem for elem in self.elements)

    def __hash__(self) -> int:
        return hash(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __repr__(self) -> str:
        return f"({', '.join(map(repr, self.elements))})"


class TypeName(Type):
    __slots__ = ("value",)

    def __init__(self, value: str) -> None:
        self.value: str = value

    @classmethod
    def int_(cls):
        return cls("Int")

    @classmethod
    def unit(cls):
        return cls("Unit")

    def __eq__(self, other) -> bool:
        return isinstance(other, TypeName) and self.value == other.value

    def __contains__(self, value) -> bool:
        return False

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return self.value


class TypeVar(Type):
    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        self.value: int = value

    @classmethod
    def unknown(cls):
        """Make a type var with a brand new id."""
        return cls(next_var())

    def __eq__(self, other) -> bool:
        return isinstance(other, TypeVar) and self.value == other.value

    def __contains__(self, value) -> bool:
        return isinstance(value, TypeVar) and self.value == value.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"@{self.value}"
