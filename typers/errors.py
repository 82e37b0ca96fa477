from enum import auto, Enum
from json import dumps
from textwrap import fill
from typing import Callable, Dict, Optional, Tuple, TypedDict

from format import show_type
from log import logger

Span = Tuple[int, int]

LINE_WIDTH = 87


def wrap_text(text: str) -> str:
    """Break `text` into lines that fit inside `LINE_WIDTH`."""
    return fill(
        text,
        width=LINE_WIDTH,
        tabsize=4,
        drop_whitespace=False,
        replace_whitespace=False,
    )


class ResultTypes(Enum):
    """The formats that a report can be written in."""

    ALERT_MESSAGE = auto()
    JSON = auto()
    LONG_MESSAGE = auto()


class CMDErrorReasons(Enum):
    """Why the input file couldn't be used."""

    FILE_NOT_FOUND = auto()
    PATH_IS_FOLDER = auto()
    NO_PERMISSION = auto()


class JSONResult(TypedDict):
    source_path: str
    error_name: str


def to_json(error: Exception, source: str, filename: str) -> str:
    """
    Write a report on `error` as a JSON object.

    Parameters
    ----------
    error: Exception
        The exception being reported.
    source: str
        The program text that the syntax tree was built from. It may be
        empty.
    filename: str
        The path of the syntax tree file.

    Returns
    -------
    str
        The serialised JSON object.
    """
    if isinstance(error, CompilerError):
        return dumps(error.to_json(source, filename))
    return handle_other_exceptions(error, ResultTypes.JSON, filename)


def to_alert_message(error: Exception, source: str, filename: str) -> str:
    """
    Write a one line report on `error`, prefixed with the start of its
    span when it has one.
    """
    if not isinstance(error, CompilerError):
        return handle_other_exceptions(error, ResultTypes.ALERT_MESSAGE, filename)
    message, span = error.to_alert_message(source, filename)
    return message if span is None else f"{span[0]} | {message}"


def to_long_message(error: Exception, source: str, filename: str) -> str:
    """
    Write a detailed report on `error` inside a banner, quoting the
    offending part of `source` where possible.
    """
    if not isinstance(error, CompilerError):
        return handle_other_exceptions(error, ResultTypes.LONG_MESSAGE, filename)
    return beautify(error.to_long_message(source, filename), filename)


def handle_other_exceptions(
    error: Exception, result_type: ResultTypes, filename: str
) -> str:
    """
    Report an exception that isn't a `CompilerError`. These are bugs in
    the type checker, so the traceback goes to the log file and the user
    only gets the exception's class name.

    Parameters
    ----------
    error: Exception
        The unexpected exception.
    result_type: ResultTypes
        The format that the report should be written in.
    filename: str
        The path of the syntax tree file being checked.

    Returns
    -------
    str
        The report in the requested format.
    """
    error_name = type(error).__name__
    logger.error("Unexpected %s: %r", error_name, error.args, exc_info=True)
    if result_type == ResultTypes.JSON:
        return dumps(
            {
                "source_path": filename,
                "error_name": "internal_error",
                "actual_error": error_name,
            }
        )
    summary = f'Internal Error: the type checker crashed with "{error_name}".'
    if result_type == ResultTypes.ALERT_MESSAGE:
        return wrap_text(summary)
    details = wrap_text(f"{summary} The log file has the full traceback.")
    return beautify(details, filename)


def relative_pos(abs_pos: int, source: str) -> Span:
    """
    Turn an offset into `source` into a `(column, line)` pair. Columns
    start at `0` and lines start at `1`.

    Raises
    ------
    ValueError
        If `abs_pos` is past the end of `source`.
    """
    if abs_pos >= len(source):
        logger.fatal("Offset %d is outside a source of length %d", abs_pos, len(source))
        raise ValueError(f"{abs_pos} is not a valid offset into the source text.")

    line_start = source.rfind("\n", 0, abs_pos) + 1
    return abs_pos - line_start, source.count("\n", 0, abs_pos) + 1


def make_pointer(span: Span, source: str) -> str:
    """
    Quote the line of `source` where `span` starts and underline the
    span with carets. A span that runs onto later lines is cut off at
    the end of its first line.

    Parameters
    ----------
    span: Span
        The offsets to underline.
    source: str
        The program text.

    Returns
    -------
    str
        The quoted line followed by the underline.
    """
    start, end = span
    column, line_number = relative_pos(start, source)
    line_start = start - column
    line_end = source.find("\n", start)
    line_end = len(source) if line_end == -1 else line_end
    gutter = f"{line_number} "
    carets = "^" * max(1, min(end, line_end) - start)
    return (
        f"{gutter}|{source[line_start:line_end]}\n"
        f"{' ' * len(gutter)}|{' ' * column}{carets}"
    )


def quote_source(span: Optional[Span], source: str) -> str:
    """
    Point to `span` inside `source` or describe the position in words
    if `source` doesn't contain it.
    """
    if span is None:
        return ""
    if 0 <= span[0] < len(source):
        return make_pointer(span, source)
    return f"At position {span[0]} to {span[1]}:"


def beautify(message: str, file_path: str) -> str:
    """Put a long report inside a banner naming the file it is about."""
    banner = " Type Error ".center(LINE_WIDTH, "=")
    return (
        f"\n{banner}\n"
        f'In "{file_path}":\n\n'
        f"{message}\n\n"
        f"{'=' * LINE_WIDTH}\n"
    )


class CompilerError(Exception):
    """
    The base class for every error that the type checker reports to the
    user. Only its subclasses are raised.

    Methods
    -------
    to_alert_message(source, source_path)
        A one line message and the span it is about.
    to_long_message(source, source_path)
        A detailed explanation without the surrounding banner.
    to_json(source, source_path)
        The error's data as a JSON-compatible `dict`.
    """

    name = "compiler_error"

    def to_alert_message(
        self, source: str, source_path: str
    ) -> Tuple[str, Optional[Span]]:
        """
        Describe the error in one line, for editor tooltips and other
        places where space is limited.

        Parameters
        ----------
        source: str
            The program text that the syntax tree was built from.
        source_path: str
            The path of the syntax tree file.

        Returns
        -------
        Tuple[str, Optional[Span]]
            The message and the span it is about, or `None` if the
            error isn't tied to a part of the program.
        """
        raise NotImplementedError

    def to_long_message(self, source: str, source_path: str) -> str:
        """Explain the error in full, quoting `source` if it helps."""
        raise NotImplementedError

    def to_json(self, source: str, source_path: str) -> JSONResult:
        """
        Collect the error's data into a `dict` that `json.dumps` can
        serialise. It always has the `error_name` and `source_path`
        keys.
        """
        raise NotImplementedError


class BadEncodingError(CompilerError):
    """The input couldn't be decoded with the encoding given."""

    name = "unknown_encoding"

    def __init__(self, encoding: Optional[str]) -> None:
        super().__init__(encoding)
        self.encoding: Optional[str] = encoding

    def to_json(self, _, source_path):
        return {
            "error_name": self.name,
            "source_path": source_path,
            "encoding": self.encoding,
        }

    def to_alert_message(self, _, source_path):
        return (f'Unable to decode "{source_path}".', None)

    def to_long_message(self, _, source_path):
        tried = "" if self.encoding is None else f" as {self.encoding}"
        return wrap_text(
            f'The contents of "{source_path}" could not be decoded{tried}. '
            "Pass the right encoding with `--encoding` or save the file as "
            "UTF-8."
        )


_CMD_ALERTS: Dict[CMDErrorReasons, Callable[[str], str]] = {
    CMDErrorReasons.FILE_NOT_FOUND: lambda path: f'There is no file at "{path}".',
    CMDErrorReasons.NO_PERMISSION: lambda path: f'Reading "{path}" is not allowed.',
    CMDErrorReasons.PATH_IS_FOLDER: lambda path: f'"{path}" is a folder.',
}

_CMD_HINTS: Dict[CMDErrorReasons, str] = {
    CMDErrorReasons.FILE_NOT_FOUND: "Check that the path is spelled correctly.",
    CMDErrorReasons.NO_PERMISSION: "Give the type checker read access to it.",
    CMDErrorReasons.PATH_IS_FOLDER: "Pass the JSON file inside it instead.",
}


class CMDError(CompilerError):
    """A file named on the command line can't be used."""

    name = "command_line_error"

    def __init__(self, reason: CMDErrorReasons) -> None:
        super().__init__(reason)
        self.reason: CMDErrorReasons = reason

    def to_json(self, _, source_path):
        return {
            "error_name": self.name,
            "source_path": source_path,
            "specific_error": self.reason.name.lower(),
        }

    def to_alert_message(self, _, source_path):
        return (_CMD_ALERTS[self.reason](source_path), None)

    def to_long_message(self, _, source_path):
        alert = _CMD_ALERTS[self.reason](source_path)
        return wrap_text(f"{alert} {_CMD_HINTS[self.reason]}")


class FatalInternalError(CompilerError):
    """The type checker reached a state that should be impossible."""

    name = "internal_error"

    def to_json(self, _, source_path):
        return {"error_name": self.name, "source_path": source_path}

    def to_alert_message(self, _, __):
        return ("A fatal error occurred in the type checker.", None)

    def to_long_message(self, _, __):
        return wrap_text(
            "The type checker has stopped because of an internal error. "
            "The log file has more details."
        )


class MalformedASTError(CompilerError):
    """The JSON input doesn't describe a valid syntax tree."""

    name = "malformed_ast"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path: str = path
        self.reason: str = reason

    def to_json(self, _, source_path):
        return {
            "source_path": source_path,
            "error_name": self.name,
            "path": self.path,
            "reason": self.reason,
        }

    def to_alert_message(self, _, __):
        return (f"Invalid syntax tree at `{self.path}`: {self.reason}", None)

    def to_long_message(self, _, source_path):
        return wrap_text(
            f'The syntax tree in "{source_path}" could not be loaded because the '
            f"node at `{self.path}` is invalid: {self.reason}"
        )


class DuplicateBindingError(CompilerError):
    """A single pattern binds the same name more than once."""

    name = "duplicate_binding"

    def __init__(self, name) -> None:
        super().__init__(name.value)
        self.span: Span = name.span
        self.value: str = name.value

    def to_json(self, _, source_path):
        return {
            "source_path": source_path,
            "error_name": self.name,
            "start": self.span[0],
            "end": self.span[1],
            "value": self.value,
        }

    def to_alert_message(self, _, __):
        return (
            f'The name "{self.value}" is bound more than once in this pattern.',
            self.span,
        )

    def to_long_message(self, source, _):
        explanation = wrap_text(
            f'The name "{self.value}" is bound several times in the same pattern. '
            "Try renaming one of them or replacing it with `_`."
        )
        return f"{quote_source(self.span, source)}\n\n{explanation}"


class UndefinedNameError(CompilerError):
    """A name is used where no binding for it is visible."""

    name = "undefined_name"

    def __init__(self, name) -> None:
        super().__init__(name.value)
        self.span: Span = name.span
        self.value: str = name.value

    def to_json(self, source, source_path):
        return {
            "source_path": source_path,
            "error_name": self.name,
            "start": self.span[0],
            "end": self.span[1],
            "value": self.value,
        }

    def to_alert_message(self, source, source_path):
        return (f'"{self.value}" is not defined.', self.span)

    def to_long_message(self, source, source_path):
        explanation = wrap_text(
            f'"{self.value}" is used here but nothing around it binds that name.'
        )
        return f"{quote_source(self.span, source)}\n\n{explanation}"


class TypeClashError(CompilerError):
    """
    The base for errors where the two sides of a type equation can't
    be unified. It should not be thrown directly.

    Attributes
    ----------
    left: Type
        The left side of the equation after substitution.
    right: Type
        The right side of the equation after substitution.
    span: Optional[Span]
        The expression whose constraints were being solved.
    """

    name = "type_clash"

    def __init__(self, left, right, span: Optional[Span] = None) -> None:
        super().__init__(left, right)
        self.left = left
        self.right = right
        self.span: Optional[Span] = span

    def show_types(self) -> Tuple[str, str]:
        """Show both types so that their type vars don't clash."""
        var_names: dict = {}
        return (
            show_type(self.left, False, var_names),
            show_type(self.right, False, var_names),
        )

    def to_json(self, source, source_path):
        left, right = self.show_types()
        result = {
            "source_path": source_path,
            "error_name": self.name,
            "left": left,
            "right": right,
        }
        if self.span is not None:
            result["start"], result["end"] = self.span
        return result

    def to_alert_message(self, source, source_path):
        return (self.explain(), self.span)

    def to_long_message(self, source, source_path):
        pointer = quote_source(self.span, source)
        explanation = wrap_text(self.explain())
        return f"{pointer}\n\n{explanation}" if pointer else explanation

    def explain(self) -> str:
        left, right = self.show_types()
        return f"Cannot unify the types `{left}` and `{right}`."


class ArityMismatchError(TypeClashError):
    """
    This error is caused by trying to unify two tuple types with a
    different number of elements.
    """

    name = "arity_mismatch"

    def explain(self):
        left, right = self.show_types()
        return (
            f"The tuple type `{left}` has {len(self.left)} elements but it is "
            f"supposed to match `{right}` which has {len(self.right)} elements."
        )


class CircularTypeError(TypeClashError):
    """
    This is an error where 2 types are supposed to be unified but one
    type (`left`) occurs inside the other (`right`), leading to an
    infinitely recursive substitution.
    """

    name = "circular_type_error"

    def explain(self):
        inner, outer = self.show_types()
        return (
            f"Cannot unify the types `{inner}` and `{outer}` because the first one "
            "occurs inside the second one, so the result would be infinitely "
            "recursive."
        )


class LabelMismatchError(TypeClashError):
    """
    This error is caused by trying to unify two variant types built by
    different constructors.
    """

    name = "label_mismatch"

    def explain(self):
        left, right = self.show_types()
        return (
            f"The variant `{self.left.label}` (in `{left}`) cannot be used where "
            f"the variant `{self.right.label}` (in `{right}`) is expected."
        )


class TypeMismatchError(TypeClashError):
    """
    This error is caused by the type inferer being unable to unify the
    two sides of a type equation.
    """

    name = "type_mismatch"

    def explain(self):
        left, right = self.show_types()
        return f"Unexpected type `{left}` where `{right}` was expected instead."

