from typing import Iterable, List, Tuple

from asts import base, visitor
from asts.types_ import FuncType, SumType, TupleType, Type, TypeName, TypeVar
from errors import FatalInternalError
from log import logger
from scope import Scope
from . import utils


def infer_type(tree: base.ASTNode, env: Iterable[Tuple[str, Type]] = ()) -> Type:
    """
    Find the type of the expression `tree`.

    Parameters
    ----------
    tree: ASTNode
        The expression whose type is to be inferred.
    env: Iterable[Tuple[str, Type]] = ()
        The types of the names defined around `tree`. If the same name
        appears more than once, the first one is used.

    Raises
    ------
    CompilerError
        The first type error found in `tree`. Nothing else in the tree
        is checked after it.

    Returns
    -------
    Type
        The inferred type with every known type var replaced.
    """
    inferer = TypeInferer(Scope.from_pairs(env))
    result = inferer.run(tree)
    logger.debug("substitution: %r", inferer.substitution)
    return result


class TypeInferer(visitor.BaseASTVisitor[Type]):
    """
    Infer the type of every node in the AST, solving the type equations
    as soon as they are generated.

    Attributes
    ----------
    current_scope: Scope[Type]
        The types of all the names defined in the current lexical
        scope.
    substitution: utils.Substitution
        The type var replacements found so far. Every inference run
        gets its own.

    Notes
    -----
    - The type returned by each `visit_*` method has already been
      passed through `substitution`.
    - Type vars are monomorphic: a name bound by `let` has the same
      type everywhere it is used.
    """

    def __init__(self, scope: Scope[Type]) -> None:
        self.current_scope: Scope[Type] = scope
        self.substitution: utils.Substitution = utils.empty()

    def _unify(self, node: base.ASTNode, *constraints: Tuple[Type, Type]) -> None:
        utils.unify(self.substitution, constraints, node.span)

    def _resolve(self, type_: Type) -> Type:
        return utils.substitute(type_, self.substitution)

    def _visit_in_scope(self, bindings: utils.Bindings, node: base.ASTNode) -> Type:
        self.current_scope = self.current_scope.down(bindings)
        try:
            return node.visit(self)
        finally:
            self.current_scope = self.current_scope.up()

    def visit_apply(self, node: base.Apply) -> Type:
        arg_type = node.arg.visit(self)
        func_type = node.func.visit(self)
        return_type = TypeVar.unknown()
        self._unify(node, (FuncType(arg_type, return_type), func_type))
        return self._resolve(return_type)

    def visit_binop(self, node: base.BinOp) -> Type:
        left = node.left.visit(self)
        right = node.right.visit(self)
        self._unify(node, (left, TypeName.int_()), (right, TypeName.int_()))
        return TypeName.int_()

    def visit_cond(self, node: base.Cond) -> Type:
        pred = node.pred.visit(self)
        cons = node.cons.visit(self)
        else_ = node.else_.visit(self)
        self._unify(node, (pred, TypeName.int_()), (cons, else_))
        return self._resolve(cons)

    def visit_constructor(self, node: base.Constructor) -> Type:
        return self._resolve(SumType(node.label, node.arg.visit(self)))

    def visit_function(self, node: base.Function) -> Type:
        param_type, bindings = utils.pattern_infer(node.param)
        body_type = self._visit_in_scope(bindings, node.body)
        return self._resolve(FuncType(param_type, body_type))

    def visit_let(self, node: base.Let) -> Type:
        target_type, bindings = utils.pattern_infer(node.target)
        value_type = self._visit_in_scope(bindings, node.value)
        self._unify(node, (target_type, value_type))
        body_type = self._visit_in_scope(bindings, node.body)
        return self._resolve(body_type)

    def visit_match(self, node: base.Match) -> Type:
        if not node.cases:
            logger.fatal("Reached a match expression with no cases at %r", node.span)
            raise FatalInternalError()

        subject_type = node.subject.visit(self)
        case_types: List[Tuple[Type, Type]] = []
        for pattern, body in node.cases:
            pattern_type, bindings = utils.pattern_infer(pattern)
            case_types.append((pattern_type, self._visit_in_scope(bindings, body)))

        (first_pattern, first_body), *rest = case_types
        constraints: List[Tuple[Type, Type]] = []
        for pattern_type, body_type in rest:
            constraints.append((first_pattern, pattern_type))
            constraints.append((first_body, body_type))
        constraints.append((first_pattern, subject_type))
        self._unify(node, *constraints)
        return self._resolve(first_body)

    def visit_name(self, node: base.Name) -> Type:
        return self._resolve(self.current_scope[node])

    def visit_pattern(self, node: base.Pattern) -> Type:
        pattern_type, _ = utils.pattern_infer(node)
        return pattern_type

    def visit_scalar(self, node: base.Scalar) -> Type:
        return TypeName.int_()

    def visit_tuple(self, node: base.Tuple) -> Type:
        return self._resolve(TupleType([elem.visit(self) for elem in node.elements]))

    def visit_unit(self, node: base.Unit) -> Type:
        return TypeName.unit()
