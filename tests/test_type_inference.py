# pylint: disable=C0116
from concurrent.futures import ThreadPoolExecutor

from pytest import mark, raises

from context import base, errors, scope, types, type_inference

span = (0, 0)
# NOTE: This is a dummy value to pass into to AST constructors.

int_type = types.TypeName.int_()
unit_type = types.TypeName.unit()

_int = lambda value: base.Scalar(span, value)
_name = lambda value: base.Name(span, value)
_var_pat = lambda value: base.FreeName(span, value)
_add = lambda left, right: base.BinOp(span, "+", left, right)

var_a = types.TypeVar.unknown()
var_b = types.TypeVar.unknown()
var_c = types.TypeVar.unknown()


@mark.type_inference
@mark.parametrize(
    "tree,expected_type",
    (
        (base.Unit(span), unit_type),
        (_int(42), int_type),
        (_add(_int(1), _int(2)), int_type),
        (base.Cond(span, _int(1), _int(2), _int(3)), int_type),
        (
            base.Tuple(span, [_int(1), base.Unit(span)]),
            types.TupleType([int_type, unit_type]),
        ),
        (base.Tuple(span, []), types.TupleType([])),
        (
            base.Let(span, _var_pat("x"), _int(1), _add(_name("x"), _int(2))),
            int_type,
        ),
        (
            base.Function(span, _var_pat("x"), _add(_name("x"), _int(1))),
            types.FuncType(int_type, int_type),
        ),
        (
            base.Apply(
                span,
                base.Function(span, _var_pat("x"), _add(_name("x"), _int(1))),
                _int(2),
            ),
            int_type,
        ),
        (
            base.Let(
                span,
                base.TuplePattern(span, [_var_pat("a"), _var_pat("b")]),
                base.Tuple(span, [_int(1), base.Unit(span)]),
                base.Tuple(span, [_name("b"), _name("a")]),
            ),
            types.TupleType([unit_type, int_type]),
        ),
        (
            base.Constructor(span, "Some", _int(1)),
            types.SumType("Some", int_type),
        ),
        (
            base.Match(
                span,
                base.Constructor(span, "Some", _int(5)),
                [
                    (
                        base.ConstructorPattern(span, "Some", _var_pat("x")),
                        _add(_name("x"), _int(1)),
                    )
                ],
            ),
            int_type,
        ),
        (
            base.Match(
                span,
                _int(1),
                [
                    (base.ScalarPattern(span, 0), base.Unit(span)),
                    (base.WildcardPattern(span), base.Unit(span)),
                ],
            ),
            unit_type,
        ),
        (
            base.Apply(
                span,
                base.Function(
                    span,
                    base.ConstructorPattern(span, "Box", _var_pat("x")),
                    _name("x"),
                ),
                base.Constructor(span, "Box", _int(3)),
            ),
            int_type,
        ),
        (
            base.Let(
                span,
                _var_pat("fact"),
                base.Function(
                    span,
                    _var_pat("n"),
                    base.Cond(
                        span,
                        _name("n"),
                        base.BinOp(
                            span,
                            "*",
                            _name("n"),
                            base.Apply(
                                span,
                                _name("fact"),
                                base.BinOp(span, "-", _name("n"), _int(1)),
                            ),
                        ),
                        _int(1),
                    ),
                ),
                base.Apply(span, _name("fact"), _int(5)),
            ),
            int_type,
        ),
        (
            base.Let(
                span,
                _var_pat("x"),
                _int(1),
                base.Let(span, _var_pat("x"), base.Unit(span), _name("x")),
            ),
            unit_type,
        ),
    ),
)
def test_infer_type(tree, expected_type):
    assert expected_type == type_inference.infer_type(tree)


@mark.type_inference
@mark.parametrize(
    "env,expected_type",
    (
        ([("x", int_type)], int_type),
        ([("x", unit_type), ("x", int_type)], unit_type),
        (
            [("y", unit_type), ("x", types.SumType("A", int_type))],
            types.SumType("A", int_type),
        ),
    ),
)
def test_infer_type_uses_env(env, expected_type):
    assert expected_type == type_inference.infer_type(_name("x"), env)


@mark.type_inference
def test_infer_type_recursive_self_application():
    tree = base.Let(
        span,
        _var_pat("f"),
        base.Function(
            span, _var_pat("x"), base.Apply(span, _name("f"), _name("x"))
        ),
        _name("f"),
    )
    actual = type_inference.infer_type(tree)
    assert isinstance(actual, types.FuncType)
    assert isinstance(actual.param, types.TypeVar)
    assert isinstance(actual.result, types.TypeVar)
    assert actual.param != actual.result


@mark.type_inference
def test_infer_type_identity_function():
    actual = type_inference.infer_type(
        base.Function(span, _var_pat("x"), _name("x"))
    )
    assert isinstance(actual, types.FuncType)
    assert isinstance(actual.param, types.TypeVar)
    assert actual.param == actual.result


@mark.type_inference
def test_infer_type_leaves_unconstrained_wildcard():
    actual = type_inference.infer_type(
        base.Function(span, base.WildcardPattern(span), _int(1))
    )
    assert isinstance(actual, types.FuncType)
    assert isinstance(actual.param, types.TypeVar)
    assert actual.result == int_type


@mark.type_inference
@mark.parametrize(
    "tree,error",
    (
        (
            base.Cond(span, _int(1), _int(2), base.Tuple(span, [])),
            errors.TypeMismatchError,
        ),
        (base.Apply(span, _int(1), _int(2)), errors.TypeMismatchError),
        (_add(_int(1), base.Unit(span)), errors.TypeMismatchError),
        (base.Cond(span, base.Unit(span), _int(1), _int(2)), errors.TypeMismatchError),
        (_name("y"), errors.UndefinedNameError),
        (
            base.Function(
                span,
                base.TuplePattern(span, [_var_pat("x"), _var_pat("x")]),
                _name("x"),
            ),
            errors.DuplicateBindingError,
        ),
        (
            base.Let(
                span,
                base.TuplePattern(span, [_var_pat("a"), _var_pat("b")]),
                base.Tuple(span, [_int(1), _int(2), _int(3)]),
                _name("a"),
            ),
            errors.ArityMismatchError,
        ),
        (
            base.Match(
                span,
                base.Constructor(span, "A", _int(1)),
                [
                    (base.ConstructorPattern(span, "A", _var_pat("x")), _name("x")),
                    (
                        base.ConstructorPattern(span, "B", base.WildcardPattern(span)),
                        _int(0),
                    ),
                ],
            ),
            errors.LabelMismatchError,
        ),
        (
            base.Function(
                span, _var_pat("x"), base.Apply(span, _name("x"), _name("x"))
            ),
            errors.CircularTypeError,
        ),
        (
            base.Let(
                span,
                _var_pat("id"),
                base.Function(span, _var_pat("x"), _name("x")),
                base.Tuple(
                    span,
                    [
                        base.Apply(span, _name("id"), _int(1)),
                        base.Apply(span, _name("id"), base.Unit(span)),
                    ],
                ),
            ),
            errors.TypeMismatchError,
        ),
        (base.Match(span, _int(1), []), errors.FatalInternalError),
    ),
)
def test_infer_type_raises(tree, error):
    with raises(error):
        type_inference.infer_type(tree)


@mark.type_inference
def test_infer_type_cond_branch_mismatch():
    with raises(errors.TypeMismatchError) as info:
        type_inference.infer_type(
            base.Cond((0, 24), _int(1), _int(2), base.Unit((21, 23)))
        )
    assert info.value.left == int_type
    assert info.value.right == unit_type
    assert info.value.span == (0, 24)


@mark.type_inference
def test_infer_type_error_has_apply_span():
    tree = base.Let(
        (0, 30),
        _var_pat("x"),
        _int(1),
        base.Apply((20, 25), _name("x"), _int(2)),
    )
    with raises(errors.TypeMismatchError) as info:
        type_inference.infer_type(tree)
    assert info.value.span == (20, 25)


@mark.type_inference
def test_infer_type_undefined_name_span():
    with raises(errors.UndefinedNameError) as info:
        type_inference.infer_type(_add(_int(1), base.Name((4, 7), "foo")))
    assert info.value.value == "foo"
    assert info.value.span == (4, 7)


@mark.type_inference
@mark.parametrize(
    "second_label,error",
    (("A", None), ("B", errors.LabelMismatchError)),
)
def test_infer_type_match_labels(second_label, error):
    tree = base.Match(
        span,
        _name("s"),
        [
            (base.ConstructorPattern(span, "A", _var_pat("x")), _name("x")),
            (
                base.ConstructorPattern(span, second_label, base.WildcardPattern(span)),
                _int(0),
            ),
        ],
    )
    env = [("s", types.SumType("A", int_type))]
    if error is None:
        assert int_type == type_inference.infer_type(tree, env)
    else:
        with raises(error):
            type_inference.infer_type(tree, env)


@mark.type_inference
def test_type_inferer_starts_with_empty_substitution():
    inferer = type_inference.TypeInferer(scope.Scope())
    assert not inferer.substitution


@mark.type_inference
def test_pattern_infer_tuple_bindings():
    actual_type, bindings = type_inference.pattern_infer(
        base.TuplePattern(span, [_var_pat("x"), _var_pat("y")])
    )
    assert [name for name, _ in bindings] == ["x", "y"]
    x_type, y_type = (type_ for _, type_ in bindings)
    assert isinstance(x_type, types.TypeVar)
    assert isinstance(y_type, types.TypeVar)
    assert x_type != y_type
    assert actual_type == types.TupleType([x_type, y_type])


@mark.type_inference
@mark.parametrize(
    "pattern",
    (
        base.TuplePattern(span, [_var_pat("x"), _var_pat("x")]),
        base.TuplePattern(
            span,
            [_var_pat("x"), base.ConstructorPattern(span, "A", _var_pat("x"))],
        ),
        base.TuplePattern(
            span,
            [
                _var_pat("x"),
                base.TuplePattern(span, [_var_pat("y"), _var_pat("x")]),
            ],
        ),
    ),
)
def test_pattern_infer_raises_duplicate_binding_error(pattern):
    with raises(errors.DuplicateBindingError) as info:
        type_inference.pattern_infer(pattern)
    assert info.value.value == "x"


@mark.type_inference
@mark.parametrize(
    "pattern,expected_type",
    (
        (base.UnitPattern(span), unit_type),
        (base.ScalarPattern(span, 12), int_type),
        (
            base.ConstructorPattern(span, "Nothing", base.UnitPattern(span)),
            types.SumType("Nothing", unit_type),
        ),
        (
            base.TuplePattern(
                span, [base.ScalarPattern(span, 0), base.UnitPattern(span)]
            ),
            types.TupleType([int_type, unit_type]),
        ),
    ),
)
def test_pattern_infer_without_bindings(pattern, expected_type):
    actual_type, bindings = type_inference.pattern_infer(pattern)
    assert expected_type == actual_type
    assert bindings == []


@mark.type_inference
def test_pattern_infer_wildcards_are_distinct():
    actual_type, bindings = type_inference.pattern_infer(
        base.TuplePattern(
            span, [base.WildcardPattern(span), base.WildcardPattern(span)]
        )
    )
    first, second = actual_type.elements
    assert isinstance(first, types.TypeVar)
    assert isinstance(second, types.TypeVar)
    assert first != second
    assert bindings == []


@mark.type_inference
def test_pattern_infer_constructor_with_bindings():
    actual_type, bindings = type_inference.pattern_infer(
        base.ConstructorPattern(
            span,
            "Pair",
            base.TuplePattern(
                span,
                [
                    _var_pat("a"),
                    base.TuplePattern(span, [_var_pat("b"), _var_pat("c")]),
                ],
            ),
        )
    )
    assert [name for name, _ in bindings] == ["a", "b", "c"]
    a_type, b_type, c_type = (type_ for _, type_ in bindings)
    assert actual_type == types.SumType(
        "Pair", types.TupleType([a_type, types.TupleType([b_type, c_type])])
    )


@mark.type_inference
@mark.parametrize(
    "constraint,expected",
    (
        (type_inference.Equation(var_a, var_a), {}),
        (type_inference.Equation(var_a, int_type), {var_a.value: int_type}),
        (type_inference.Equation(int_type, var_a), {var_a.value: int_type}),
        (
            type_inference.Equation(types.FuncType(var_b, int_type), var_c),
            {var_c.value: types.FuncType(var_b, int_type)},
        ),
        (
            type_inference.Equation(
                types.FuncType(var_a, var_b), types.FuncType(int_type, unit_type)
            ),
            {var_a.value: int_type, var_b.value: unit_type},
        ),
        (
            type_inference.Equation(
                types.TupleType([var_a, var_b]), types.TupleType([int_type, int_type])
            ),
            {var_a.value: int_type, var_b.value: int_type},
        ),
        (
            type_inference.Equation(
                types.SumType("L", var_a), types.SumType("L", unit_type)
            ),
            {var_a.value: unit_type},
        ),
        (type_inference.Equation(unit_type, unit_type), {}),
    ),
)
def test_unify(constraint, expected):
    substitution = type_inference.empty()
    type_inference.unify(substitution, [constraint])
    assert expected == substitution


@mark.type_inference
@mark.parametrize(
    "constraint,error",
    (
        (type_inference.Equation(int_type, unit_type), errors.TypeMismatchError),
        (
            type_inference.Equation(types.FuncType(int_type, int_type), int_type),
            errors.TypeMismatchError,
        ),
        (
            type_inference.Equation(types.TupleType([]), unit_type),
            errors.TypeMismatchError,
        ),
        (
            type_inference.Equation(
                types.FuncType(int_type, unit_type), types.FuncType(unit_type, int_type)
            ),
            errors.TypeMismatchError,
        ),
        (
            type_inference.Equation(
                types.TupleType([var_a, var_b]),
                types.TupleType([int_type, int_type, int_type]),
            ),
            errors.ArityMismatchError,
        ),
        (
            type_inference.Equation(
                types.SumType("A", int_type), types.SumType("B", int_type)
            ),
            errors.LabelMismatchError,
        ),
        (
            type_inference.Equation(var_a, types.FuncType(var_a, int_type)),
            errors.CircularTypeError,
        ),
        (
            type_inference.Equation(
                types.TupleType([var_b]), var_b
            ),
            errors.CircularTypeError,
        ),
    ),
)
def test_unify_raises(constraint, error):
    with raises(error):
        type_inference.unify(type_inference.empty(), [constraint], (3, 9))


@mark.type_inference
def test_unify_error_keeps_span():
    with raises(errors.TypeMismatchError) as info:
        type_inference.unify(
            type_inference.empty(),
            [type_inference.Equation(int_type, unit_type)],
            (3, 9),
        )
    assert info.value.span == (3, 9)


@mark.type_inference
def test_unify_keeps_earlier_constraints_after_failure():
    substitution = type_inference.empty()
    with raises(errors.TypeMismatchError):
        type_inference.unify(
            substitution,
            [
                type_inference.Equation(var_a, int_type),
                type_inference.Equation(int_type, unit_type),
            ],
        )
    assert type_inference.substitute(var_a, substitution) == int_type


@mark.type_inference
@mark.parametrize(
    "constraints",
    (
        [(var_a, int_type), (var_a, var_b)],
        [(var_a, var_b), (var_a, int_type)],
        [(var_b, var_a), (int_type, var_a)],
    ),
)
def test_unify_shared_vars_resolve_in_any_order(constraints):
    substitution = type_inference.empty()
    type_inference.unify(substitution, constraints)
    assert type_inference.substitute(var_a, substitution) == int_type
    assert type_inference.substitute(var_b, substitution) == int_type


@mark.type_inference
@mark.parametrize(
    "constraints,expected_left,expected_right",
    (
        ([(var_a, int_type), (var_a, unit_type)], int_type, unit_type),
        ([(var_a, unit_type), (var_a, int_type)], unit_type, int_type),
    ),
)
def test_unify_shared_vars_order_decides_error(
    constraints, expected_left, expected_right
):
    with raises(errors.TypeMismatchError) as info:
        type_inference.unify(type_inference.empty(), constraints)
    assert info.value.left == expected_left
    assert info.value.right == expected_right


@mark.type_inference
def test_unify_independent_constraints_commute():
    first = (var_a, types.FuncType(int_type, unit_type))
    second = (var_b, types.TupleType([unit_type]))
    target = types.TupleType([var_a, var_b])

    forward = type_inference.empty()
    type_inference.unify(forward, [first])
    type_inference.unify(forward, [second])
    backward = type_inference.empty()
    type_inference.unify(backward, [second])
    type_inference.unify(backward, [first])

    assert forward == backward
    assert type_inference.substitute(target, forward) == type_inference.substitute(
        target, backward
    )


@mark.type_inference
@mark.parametrize(
    "type_",
    (
        var_a,
        var_c,
        types.FuncType(var_a, var_b),
        types.TupleType([var_c, types.SumType("X", var_b)]),
        int_type,
    ),
)
def test_substitute_is_idempotent(type_):
    substitution = type_inference.empty()
    type_inference.unify(
        substitution,
        [
            (var_a, var_b),
            (var_b, types.FuncType(int_type, var_c)),
            (var_c, types.SumType("Y", unit_type)),
        ],
    )
    once = type_inference.substitute(type_, substitution)
    assert once == type_inference.substitute(once, substitution)
    assert var_a not in once
    assert var_b not in once
    assert var_c not in once


@mark.type_inference
@mark.parametrize(
    "type_,sub,expected",
    (
        (
            var_a,
            {var_a.value: var_b, var_b.value: var_c, var_c.value: int_type},
            int_type,
        ),
        (var_a, {var_b.value: int_type}, var_a),
        (
            types.FuncType(types.TupleType([var_a, unit_type]), var_a),
            {var_a.value: int_type},
            types.FuncType(types.TupleType([int_type, unit_type]), int_type),
        ),
        (
            types.SumType("Some", var_b),
            {var_b.value: types.TupleType([var_a])},
            types.SumType("Some", types.TupleType([var_a])),
        ),
    ),
)
def test_substitute(type_, sub, expected):
    assert expected == type_inference.substitute(type_, sub)


@mark.type_inference
def test_next_var_is_unique_across_threads():
    with ThreadPoolExecutor(max_workers=8) as pool:
        batches = list(
            pool.map(lambda _: [types.next_var() for _ in range(500)], range(8))
        )
    ids = [var_id for batch in batches for var_id in batch]
    assert len(ids) == len(set(ids)) == 4000


@mark.type_inference
@mark.parametrize(
    "tree,error",
    (
        (
            base.Function(span, base.FreeName(span, "x"), base.Name(span, "ghost")),
            errors.UndefinedNameError,
        ),
        (
            base.Let(
                span,
                base.FreeName(span, "x"),
                base.Scalar(span, 1),
                base.Function(
                    span,
                    base.FreeName(span, "z"),
                    base.BinOp(span, "+", base.Name(span, "z"), base.Unit(span)),
                ),
            ),
            errors.TypeMismatchError,
        ),
    ),
)
def test_type_inferer_restores_scope_after_error(tree, error):
    outer_scope = scope.Scope.from_pairs((("y", int_type),))
    inferer = type_inference.TypeInferer(outer_scope)
    with raises(error):
        inferer.run(tree)

    assert inferer.current_scope is outer_scope
    assert int_type == inferer.run(base.Name(span, "y"))
