from codecs import lookup
from json import JSONDecodeError, loads
from typing import Any, Callable, Mapping, Optional

from asts import base
from errors import BadEncodingError, MalformedASTError
from log import logger

RawNode = Mapping[str, Any]


def to_utf8(source: bytes, encoding: Optional[str] = None) -> str:
    """
    Try to convert `source` to a string using `encoding`.

    Parameters
    ----------
    source: bytes
        The raw contents of the input file.
    encoding: Optional[str] = None
        The encoding that will be used to decode `source`. If it is
        `None`, then the function will use UTF-8.

    Raises
    ------
    BadEncodingError
        The error thrown when `encoding` is unknown or when `source`
        can't be decoded with it.

    Returns
    -------
    str
        The decoded contents of the file.
    """
    try:
        encoding = "utf-8" if encoding is None else lookup(encoding).name
        return source.decode(encoding)
    except (LookupError, UnicodeDecodeError) as error:
        logger.exception("Unable to decode the source using %s encoding.", encoding)
        raise BadEncodingError(encoding) from error


def load(text: str) -> base.ASTNode:
    """
    Build an expression tree from its JSON representation.

    Parameters
    ----------
    text: str
        The JSON document. Its top level value must be an expression
        node.

    Raises
    ------
    MalformedASTError
        The error thrown when `text` is not valid JSON or doesn't
        describe a valid tree.

    Returns
    -------
    base.ASTNode
        The root of the expression tree.
    """
    try:
        data = loads(text)
    except JSONDecodeError as error:
        logger.exception("The input is not a valid JSON document.")
        raise MalformedASTError("$", f"invalid JSON ({error.msg})") from error
    return load_expr(data, "$")


def _field(node: RawNode, key: str, path: str) -> Any:
    try:
        return node[key]
    except KeyError:
        logger.fatal("Missing field %r at %s", key, path)
        raise MalformedASTError(path, f'missing the "{key}" field') from None


def _span(node: RawNode, path: str) -> base.Span:
    span = node.get("span", (0, 0))
    if (
        isinstance(span, (list, tuple))
        and len(span) == 2
        and all(isinstance(pos, int) for pos in span)
    ):
        return span[0], span[1]
    raise MalformedASTError(f"{path}.span", "a span must be a pair of integers")


def _string(node: RawNode, key: str, path: str) -> str:
    value = _field(node, key, path)
    if isinstance(value, str):
        return value
    raise MalformedASTError(f"{path}.{key}", "expected a string")


def _integer(node: RawNode, key: str, path: str) -> int:
    value = _field(node, key, path)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise MalformedASTError(f"{path}.{key}", "expected an integer")


def _array(node: RawNode, key: str, path: str) -> list:
    value = _field(node, key, path)
    if isinstance(value, list):
        return value
    raise MalformedASTError(f"{path}.{key}", "expected an array")


def _kind(node: Any, path: str) -> str:
    if not isinstance(node, dict):
        raise MalformedASTError(path, "expected an object")
    return _string(node, "kind", path)


def _load_cases(node: RawNode, path: str):
    cases = []
    for index, case in enumerate(_array(node, "cases", path)):
        case_path = f"{path}.cases[{index}]"
        if not isinstance(case, list) or len(case) != 2:
            raise MalformedASTError(case_path, "a case must be a [pattern, body] pair")
        pattern, body = case
        cases.append(
            (
                load_pattern(pattern, f"{case_path}[0]"),
                load_expr(body, f"{case_path}[1]"),
            )
        )
    if not cases:
        raise MalformedASTError(f"{path}.cases", "a match needs at least one case")
    return cases


_EXPR_LOADERS: Mapping[str, Callable[[RawNode, str], base.ASTNode]] = {
    "apply": lambda node, path: base.Apply(
        _span(node, path),
        load_expr(_field(node, "func", path), f"{path}.func"),
        load_expr(_field(node, "arg", path), f"{path}.arg"),
    ),
    "binop": lambda node, path: base.BinOp(
        _span(node, path),
        _string(node, "operator", path),
        load_expr(_field(node, "left", path), f"{path}.left"),
        load_expr(_field(node, "right", path), f"{path}.right"),
    ),
    "cond": lambda node, path: base.Cond(
        _span(node, path),
        load_expr(_field(node, "pred", path), f"{path}.pred"),
        load_expr(_field(node, "cons", path), f"{path}.cons"),
        load_expr(_field(node, "else", path), f"{path}.else"),
    ),
    "constructor": lambda node, path: base.Constructor(
        _span(node, path),
        _string(node, "label", path),
        load_expr(_field(node, "arg", path), f"{path}.arg"),
    ),
    "function": lambda node, path: base.Function(
        _span(node, path),
        load_pattern(_field(node, "param", path), f"{path}.param"),
        load_expr(_field(node, "body", path), f"{path}.body"),
    ),
    "int": lambda node, path: base.Scalar(
        _span(node, path), _integer(node, "value", path)
    ),
    "let": lambda node, path: base.Let(
        _span(node, path),
        load_pattern(_field(node, "pattern", path), f"{path}.pattern"),
        load_expr(_field(node, "value", path), f"{path}.value"),
        load_expr(_field(node, "body", path), f"{path}.body"),
    ),
    "match": lambda node, path: base.Match(
        _span(node, path),
        load_expr(_field(node, "subject", path), f"{path}.subject"),
        _load_cases(node, path),
    ),
    "name": lambda node, path: base.Name(
        _span(node, path), _string(node, "value", path)
    ),
    "tuple": lambda node, path: base.Tuple(
        _span(node, path),
        [
            load_expr(elem, f"{path}.elements[{index}]")
            for index, elem in enumerate(_array(node, "elements", path))
        ],
    ),
    "unit": lambda node, path: base.Unit(_span(node, path)),
}

_PATTERN_LOADERS: Mapping[str, Callable[[RawNode, str], base.Pattern]] = {
    "constructor": lambda node, path: base.ConstructorPattern(
        _span(node, path),
        _string(node, "label", path),
        load_pattern(_field(node, "arg", path), f"{path}.arg"),
    ),
    "int": lambda node, path: base.ScalarPattern(
        _span(node, path), _integer(node, "value", path)
    ),
    "name": lambda node, path: base.FreeName(
        _span(node, path), _string(node, "value", path)
    ),
    "tuple": lambda node, path: base.TuplePattern(
        _span(node, path),
        [
            load_pattern(elem, f"{path}.elements[{index}]")
            for index, elem in enumerate(_array(node, "elements", path))
        ],
    ),
    "unit": lambda node, path: base.UnitPattern(_span(node, path)),
    "wildcard": lambda node, path: base.WildcardPattern(_span(node, path)),
}


def load_expr(node: Any, path: str = "$") -> base.ASTNode:
    """Build an expression node (and its children) from decoded JSON."""
    kind = _kind(node, path)
    if kind not in _EXPR_LOADERS:
        raise MalformedASTError(path, f'unknown expression kind "{kind}"')
    return _EXPR_LOADERS[kind](node, path)


def load_pattern(node: Any, path: str = "$") -> base.Pattern:
    """Build a pattern node (and its children) from decoded JSON."""
    kind = _kind(node, path)
    if kind not in _PATTERN_LOADERS:
        raise MalformedASTError(path, f'unknown pattern kind "{kind}"')
    return _PATTERN_LOADERS[kind](node, path)
