from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from . import base

_ResultType = TypeVar("_ResultType", covariant=True)


class BaseASTVisitor(Generic[_ResultType], ABC):
    """
    Walks an expression tree from `asts.base`, producing a value of
    `_ResultType` for each node. Every node kind has an abstract
    `visit_*` method so subclasses must handle all of them.
    """

    def run(self, node: base.ASTNode) -> _ResultType:
        """Visit the tree whose root is `node`."""
        return node.visit(self)

    @abstractmethod
    def visit_apply(self, node: base.Apply) -> _ResultType:
        ...

    @abstractmethod
    def visit_binop(self, node: base.BinOp) -> _ResultType:
        ...

    @abstractmethod
    def visit_cond(self, node: base.Cond) -> _ResultType:
        ...

    @abstractmethod
    def visit_constructor(self, node: base.Constructor) -> _ResultType:
        ...

    @abstractmethod
    def visit_function(self, node: base.Function) -> _ResultType:
        ...

    @abstractmethod
    def visit_let(self, node: base.Let) -> _ResultType:
        ...

    @abstractmethod
    def visit_match(self, node: base.Match) -> _ResultType:
        ...

    @abstractmethod
    def visit_name(self, node: base.Name) -> _ResultType:
        ...

    @abstractmethod
    def visit_pattern(self, node: base.Pattern) -> _ResultType:
        ...

    @abstractmethod
    def visit_scalar(self, node: base.Scalar) -> _ResultType:
        ...

    @abstractmethod
    def visit_tuple(self, node: base.Tuple) -> _ResultType:
        ...

    @abstractmethod
    def visit_unit(self, node: base.Unit) -> _ResultType:
        ...
