from typing import MutableMapping, Optional, Sequence

from asts import base, visitor
from asts.types_ import FuncType, SumType, TupleType, Type, TypeName, TypeVar

USABLE_LETTERS: Sequence[str] = "abcdefghijklmnopqrstuvwxyz"
MAX_LETTER_INDEX: int = len(USABLE_LETTERS)


def show_type_var(type_var: TypeVar, var_names: MutableMapping[int, str]) -> str:
    """
    Name a type var with the next unused letter. Once the alphabet runs
    out, letters are reused with a number after them (`a1`, `b1`, ...).

    `var_names` holds the names already given out and gets the new one
    added to it.
    """
    if type_var.value not in var_names:
        index = len(var_names)
        letter = USABLE_LETTERS[index % MAX_LETTER_INDEX]
        var_names[type_var.value] = (
            letter
            if index < MAX_LETTER_INDEX
            else f"{letter}{index // MAX_LETTER_INDEX}"
        )
    return var_names[type_var.value]


def show_type(
    type_: Type,
    bracket: bool = False,
    var_names: Optional[MutableMapping[int, str]] = None,
) -> str:
    """
    Render `type_` the way it is shown to users.

    Parameters
    ----------
    type_: Type
        The type to render.
    bracket: bool = False
        Whether a function type should be wrapped in parentheses. It
        is used for function types on the left of an arrow.
    var_names: Optional[MutableMapping[int, str]] = None
        Names already given to type vars. Passing the same mapping to
        several calls keeps their type var names consistent.

    Returns
    -------
    str
        The rendered type.
    """
    var_names = {} if var_names is None else var_names
    if isinstance(type_, FuncType):
        param = show_type(type_.param, True, var_names)
        result = f"{param} -> {show_type(type_.result, False, var_names)}"
        return f"({result})" if bracket else result
    if isinstance(type_, SumType):
        return f"{type_.label}[{show_type(type_.payload, False, var_names)}]"
    if isinstance(type_, TupleType):
        elems = [show_type(elem, False, var_names) for elem in type_.elements]
        return f"({elems[0]},)" if len(elems) == 1 else f"({', '.join(elems)})"
    if isinstance(type_, TypeName):
        return type_.value
    if isinstance(type_, TypeVar):
        return show_type_var(type_, var_names)
    raise TypeError(f"Unable to render a {type(type_).__name__} as a type.")


def show_pattern(pattern: base.Pattern) -> str:
    """Render `pattern` in the surface syntax."""
    if isinstance(pattern, base.ConstructorPattern):
        arg = show_pattern(pattern.arg)
        if isinstance(pattern.arg, base.ConstructorPattern):
            return f"{pattern.label} ({arg})"
        return f"{pattern.label} {arg}"
    if isinstance(pattern, base.FreeName):
        return pattern.value
    if isinstance(pattern, base.ScalarPattern):
        return repr(pattern.value)
    if isinstance(pattern, base.TuplePattern):
        return f"({', '.join(map(show_pattern, pattern.elements))})"
    if isinstance(pattern, base.UnitPattern):
        return "()"
    if isinstance(pattern, base.WildcardPattern):
        return "_"
    raise TypeError(f"Unable to render a {type(pattern).__name__} as a pattern.")


class ASTPrinter(visitor.BaseASTVisitor[str]):
    """Renders a whole expression tree, one `let` body per line."""

    def __init__(self) -> None:
        self.indent_level: int = 0
        self.indent_char: str = "  "

    def visit_apply(self, node: base.Apply) -> str:
        return f"{node.func.visit(self)} ({node.arg.visit(self)})"

    def visit_binop(self, node: base.BinOp) -> str:
        return f"({node.left.visit(self)} {node.operator} {node.right.visit(self)})"

    def visit_cond(self, node: base.Cond) -> str:
        pred = node.pred.visit(self)
        cons = node.cons.visit(self)
        else_ = node.else_.visit(self)
        return f"if {pred} then {cons} else {else_}"

    def visit_constructor(self, node: base.Constructor) -> str:
        return f"{node.label} ({node.arg.visit(self)})"

    def visit_function(self, node: base.Function) -> str:
        return f"\\{node.param.visit(self)} -> {node.body.visit(self)}"

    def visit_let(self, node: base.Let) -> str:
        self.indent_level += 1
        value = node.value.visit(self)
        self.indent_level -= 1
        body = node.body.visit(self)
        preface = f"\n{self.indent_char * self.indent_level}"
        return f"let {node.target.visit(self)} = {value} in{preface}{body}"

    def visit_match(self, node: base.Match) -> str:
        self.indent_level += 1
        preface = f"\n{self.indent_char * self.indent_level}"
        cases = "".join(
            f"{preface}| {pattern.visit(self)} -> {body.visit(self)}"
            for pattern, body in node.cases
        )
        self.indent_level -= 1
        return f"match {node.subject.visit(self)} with{cases}"

    def visit_name(self, node: base.Name) -> str:
        return node.value

    def visit_pattern(self, node: base.Pattern) -> str:
        return show_pattern(node)

    def visit_scalar(self, node: base.Scalar) -> str:
        return repr(node.value)

    def visit_tuple(self, node: base.Tuple) -> str:
        return f"({', '.join(elem.visit(self) for elem in node.elements)})"

    def visit_unit(self, node: base.Unit) -> str:
        return "()"
