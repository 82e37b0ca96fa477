from abc import ABC, abstractmethod
from typing import final, Sequence, Tuple as _Tuple

Span = _Tuple[int, int]
Case = _Tuple["Pattern", "ASTNode"]


class ASTNode(ABC):
    """
    The base of all the nodes used in the AST.

    Attributes
    ----------
    span: Span
        The position in the source text that this AST node came from.
    """

    def __init__(self, span: Span) -> None:
        self.span: Span = span

    @abstractmethod
    def visit(self, visitor):
        """Run `visitor` on this node by selecting the correct node."""

    def __bool__(self) -> bool:
        return True


class Apply(ASTNode):
    __slots__ = ("arg", "func", "span")

    def __init__(self, span: Span, func: ASTNode, arg: ASTNode) -> None:
        super().__init__(span)
        self.func: ASTNode = func
        self.arg: ASTNode = arg

    def visit(self, visitor):
        return visitor.visit_apply(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Apply):
            return self.func == other.func and self.arg == other.arg
        return NotImplemented

    __hash__ = object.__hash__


class BinOp(ASTNode):
    __slots__ = ("left", "operator", "right", "span")

    def __init__(
        self, span: Span, operator: str, left: ASTNode, right: ASTNode
    ) -> None:
        super().__init__(span)
        self.operator: str = operator
        self.left: ASTNode = left
        self.right: ASTNode = right

    def visit(self, visitor):
        return visitor.visit_binop(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, BinOp):
            return (
                self.operator == other.operator
                and self.left == other.left
                and self.right == other.right
            )
        return NotImplemented

    __hash__ = object.__hash__


class Cond(ASTNode):
    __slots__ = ("cons", "else_", "pred", "span")

    def __init__(
        self, span: Span, pred: ASTNode, cons: ASTNode, else_: ASTNode
    ) -> None:
        super().__init__(span)
        self.pred: ASTNode = pred
        self.cons: ASTNode = cons
        self.else_: ASTNode = else_

    def visit(self, visitor):
        return visitor.visit_cond(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Cond):
            return (
                self.pred == other.pred
                and self.cons == other.cons
                and self.else_ == other.else_
            )
        return NotImplemented

    __hash__ = object.__hash__


class Constructor(ASTNode):
    """A variant constructor applied to its only argument."""

    __slots__ = ("arg", "label", "span")

    def __init__(self, span: Span, label: str, arg: ASTNode) -> None:
        super().__init__(span)
        self.label: str = label
        self.arg: ASTNode = arg

    def visit(self, visitor):
        return visitor.visit_constructor(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Constructor):
            return self.label == other.label and self.arg == other.arg
        return NotImplemented

    __hash__ = object.__hash__


class Function(ASTNode):
    __slots__ = ("body", "param", "span")

    def __init__(self, span: Span, param: "Pattern", body: ASTNode) -> None:
        super().__init__(span)
        self.param: Pattern = param
        self.body: ASTNode = body

    def visit(self, visitor):
        return visitor.visit_function(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Function):
            return self.param == other.param and self.body == other.body
        return NotImplemented

    __hash__ = object.__hash__


class Let(ASTNode):
    """
    A `let pattern = value in body` expression.

    Notes
    -----
    - The names bound by `target` are visible inside `value` as well as
      `body` so every definition can refer to itself.
    """

    __slots__ = ("body", "span", "target", "value")

    def __init__(
        self, span: Span, target: "Pattern", value: ASTNode, body: ASTNode
    ) -> None:
        super().__init__(span)
        self.target: Pattern = target
        self.value: ASTNode = value
        self.body: ASTNode = body

    def visit(self, visitor):
        return visitor.visit_let(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Let):
            return (
                self.target == other.target
                and self.value == other.value
                and self.body == other.body
            )
        return NotImplemented

    __hash__ = object.__hash__


class Match(ASTNode):
    __slots__ = ("cases", "span", "subject")

    def __init__(self, span: Span, subject: ASTNode, cases: Sequence[Case]) -> None:
        super().__init__(span)
        self.subject: ASTNode = subject
        self.cases: Sequence[Case] = cases

    def visit(self, visitor):
        return visitor.visit_match(self)

    def __eq__(self, other):
        return (
            isinstance(other, Match)
            and self.subject == other.subject
            and len(self.cases) == len(other.cases)
            and all(
                self_case == other_case
                for self_case, other_case in zip(self.cases, other.cases)
            )
        )

    __hash__ = object.__hash__


class Name(ASTNode):
    __slots__ = ("span", "value")

    def __init__(self, span: Span, value: str) -> None:
        if value is None:
            raise TypeError("`value` is supposed to be a string, not None.")

        super().__init__(span)
        self.value: str = value

    def visit(self, visitor):
        return visitor.visit_name(self)

    def __eq__(self, other):
        if isinstance(other, str):
            return self.value == other
        if isinstance(other, Name):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)


class Scalar(ASTNode):
    __slots__ = ("span", "value")

    def __init__(self, span: Span, value: int) -> None:
        super().__init__(span)
        self.value: int = value

    def visit(self, visitor):
        return visitor.visit_scalar(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Scalar):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)


class Tuple(ASTNode):
    __slots__ = ("elements", "span")

    def __init__(self, span: Span, elements: Sequence[ASTNode]) -> None:
        super().__init__(span)
        self.elements: Sequence[ASTNode] = elements

    def visit(self, visitor):
        return visitor.visit_tuple(self)

    def __eq__(self, other) -> bool:
        if isinstance(other, Tuple):
            return len(self.elements) == len(other.elements) and all(
                self_elem == other_elem
                for self_elem, other_elem in zip(self.elements, other.elements)
            )
        return NotImplemented

    __hash__ = object.__hash__


class Unit(ASTNode):
    __slots__ = ("span",)

    def visit(self, visitor):
        return visitor.visit_unit(self)

    def __eq__(self, other) -> bool:
        return isinstance(other, Unit)

    def __hash__(self) -> int:
        return 0


class Pattern(ASTNode):
    @final
    def visit(self, visitor):
        return visitor.visit_pattern(self)


class ConstructorPattern(Pattern):
    def __init__(self, span: Span, label: str, arg: Pattern) -> None:
        super().__init__(span)
        self.label: str = label
        self.arg: Pattern = arg

    def __eq__(self, other) -> bool:
        if isinstance(other, ConstructorPattern):
            return self.label == other.label and self.arg == other.arg
        return NotImplemented


class FreeName(Pattern):
    def __init__(self, span: Span, value: str) -> None:
        super().__init__(span)
        self.value: str = value

    def __eq__(self, other) -> bool:
        if isinstance(other, FreeName):
            return self.value == other.value
        return NotImplemented


class ScalarPattern(Pattern):
    def __init__(self, span: Span, value: int) -> None:
        super().__init__(span)
        self.value: int = value

    def __eq__(self, other) -> bool:
        if isinstance(other, ScalarPattern):
            return self.value == other.value
        return NotImplemented


class TuplePattern(Pattern):
    def __init__(self, span: Span, elements: Sequence[Pattern]) -> None:
        super().__init__(span)
        self.elements: Sequence[Pattern] = elements

    def __eq__(self, other) -> bool:
        if isinstance(other, TuplePattern):
            return list(self.elements) == list(other.elements)
        return NotImplemented


class UnitPattern(Pattern):
    def __eq__(self, other) -> bool:
        return isinstance(other, UnitPattern)


class WildcardPattern(Pattern):
    def __eq__(self, other) -> bool:
        return isinstance(other, WildcardPattern)
