from typing import Iterable, List, MutableMapping, NamedTuple, Optional, Set, Tuple

from asts import base
from asts.base import Span
from asts.types_ import FuncType, SumType, TupleType, Type, TypeName, TypeVar
from errors import (
    ArityMismatchError,
    CircularTypeError,
    DuplicateBindingError,
    LabelMismatchError,
    TypeMismatchError,
)
from log import logger

Bindings = List[Tuple[str, Type]]
Substitution = MutableMapping[int, Type]


class Equation(NamedTuple):
    """Two types that have to end up being the same type."""

    left: Type
    right: Type


Constraint = Equation


def empty() -> Substitution:
    """Create a substitution without any replacements in it."""
    return {}


def substitute(type_: Type, substitution: Substitution) -> Type:
    """
    Replace the type vars in `type_` with what they are mapped to in
    `substitution`, following each replacement until nothing more can
    be replaced.

    Parameters
    ----------
    type_: Type
        The type containing type vars to replace.
    substitution: Substitution
        The mapping from type var ids to types.

    Returns
    -------
    Type
        The same type but with every known type var replaced. Type vars
        that `substitution` doesn't know about are left as they are.
    """
    if isinstance(type_, TypeName):
        return type_
    if isinstance(type_, TypeVar):
        replacement = substitution.get(type_.value)
        return type_ if replacement is None else substitute(replacement, substitution)
    if isinstance(type_, FuncType):
        return FuncType(
            substitute(type_.param, substitution),
            substitute(type_.result, substitution),
        )
    if isinstance(type_, TupleType):
        return TupleType([substitute(elem, substitution) for elem in type_.elements])
    if isinstance(type_, SumType):
        return SumType(type_.label, substitute(type_.payload, substitution))
    raise TypeError(f"{type_} is an invalid subtype of Type.")


def unify(
    substitution: Substitution,
    constraints: Iterable[Constraint],
    span: Optional[Span] = None,
) -> None:
    """
    Extend `substitution` so that both sides of every constraint become
    the same type or fail if that is impossible.

    Notes
    -----
    - `substitution` is updated in place, one constraint at a time, so
      the later constraints see the replacements from the earlier ones.
      If a constraint fails, the ones before it stay in `substitution`.

    Parameters
    ----------
    substitution: Substitution
        The substitution that will be updated.
    constraints: Iterable[Constraint]
        The `(left, right)` pairs of types to be unified, in order.
    span: Optional[Span] = None
        The position of the expression that the constraints came from.
        It is only used for error reporting.

    Raises
    ------
    TypeMismatchError
        The error thrown when two types have different shapes.
    ArityMismatchError
        The error thrown when two tuple types have different lengths.
    LabelMismatchError
        The error thrown when two variants have different labels.
    CircularTypeError
        The error thrown when a type var would be bound to a type that
        contains itself.
    """
    for left, right in constraints:
        _unify_equation(
            substitution,
            substitute(left, substitution),
            substitute(right, substitution),
            span,
        )
        logger.debug("(%r) ~ (%r)", left, right)


def _unify_equation(
    substitution: Substitution, left: Type, right: Type, span: Optional[Span]
) -> None:
    if isinstance(left, TypeVar):
        if isinstance(right, TypeVar) and left.value == right.value:
            return
        if left in right:
            logger.fatal("Circularity detected in (%r) ~ (%r)", left, right)
            raise CircularTypeError(left, right, span)
        substitution[left.value] = right
        return
    if isinstance(right, TypeVar):
        _unify_equation(substitution, right, left, span)
        return
    if isinstance(left, TypeName) and left == right:
        return
    if isinstance(left, FuncType) and isinstance(right, FuncType):
        unify(
            substitution,
            (Equation(left.param, right.param), Equation(left.result, right.result)),
            span,
        )
        return
    if isinstance(left, TupleType) and isinstance(right, TupleType):
        if len(left) != len(right):
            logger.fatal("Tuple sizes differ in (%r) ~ (%r)", left, right)
            raise ArityMismatchError(left, right, span)
        unify(substitution, map(Equation, left.elements, right.elements), span)
        return
    if isinstance(left, SumType) and isinstance(right, SumType):
        if left.label != right.label:
            logger.fatal("Variant labels differ in (%r) ~ (%r)", left, right)
            raise LabelMismatchError(left, right, span)
        unify(substitution, (Equation(left.payload, right.payload),), span)
        return
    logger.fatal("Cannot unify: (%r) ~ (%r)", left, right)
    raise TypeMismatchError(left, right, span)


def pattern_infer(pattern: base.Pattern) -> Tuple[Type, Bindings]:
    """
    Generate a type based on the pattern that is to be matched against
    a value. The function also generates the names which are introduced
    by the pattern.

    Parameters
    ----------
    pattern: base.Pattern
        This is the pattern that values will be matched against.

    Raises
    ------
    DuplicateBindingError
        The error thrown when the same name is bound twice inside of
        `pattern`.

    Returns
    -------
    Tuple[Type, Bindings]
        The inferred type of the values matching against `pattern` and
        the `(name, type)` pairs introduced by `pattern` in the order
        that they appear.
    """
    return _pattern_infer(pattern, set())


def _pattern_infer(pattern: base.Pattern, seen: Set[str]) -> Tuple[Type, Bindings]:
    if isinstance(pattern, base.UnitPattern):
        return TypeName.unit(), []
    if isinstance(pattern, base.ScalarPattern):
        return TypeName.int_(), []
    if isinstance(pattern, base.WildcardPattern):
        return TypeVar.unknown(), []
    if isinstance(pattern, base.FreeName):
        if pattern.value in seen:
            logger.fatal("The name %s is bound twice in one pattern", pattern.value)
            raise DuplicateBindingError(pattern)
        seen.add(pattern.value)
        type_ = TypeVar.unknown()
        return type_, [(pattern.value, type_)]
    if isinstance(pattern, base.ConstructorPattern):
        arg_type, bindings = _pattern_infer(pattern.arg, seen)
        return SumType(pattern.label, arg_type), bindings
    if isinstance(pattern, base.TuplePattern):
        types: List[Type] = []
        all_bindings: Bindings = []
        for elem in pattern.elements:
            elem_type, bindings = _pattern_infer(elem, seen)
            types.append(elem_type)
            all_bindings += bindings
        return TupleType(types), all_bindings
    assert False
