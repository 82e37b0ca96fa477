from abc import ABC, abstractmethod
from importlib.metadata import PackageNotFoundError, version
from typing import Callable, Generic, Tuple, TypeVar

from args import ConfigData
from asts import base
from asts.types_ import Type
from errors import CMDError, CMDErrorReasons, CompilerError
from format import ASTPrinter, show_type
from loader import load, to_utf8
from log import logger
from type_inference import infer_type

InputType = TypeVar("InputType", covariant=True)
OutputType = TypeVar("OutputType", covariant=True)

PACKAGE_NAME = "typers"


class Result(ABC, Generic[InputType]):
    """
    The outcome of one phase of a run. A phase either hands a value on
    to the next phase (`Continue`) or ends the run early with the text
    to show the user (`Stop`).
    """

    @abstractmethod
    def chain(
        self,
        func: Callable[[InputType, ConfigData], "Result[OutputType]"],
        config: ConfigData,
    ) -> "Result[OutputType]":
        """Run the next phase unless the run has already stopped."""

    @abstractmethod
    def get_message(self, default: str) -> str:
        """Get the final text, or `default` if no phase stopped the run."""


class Continue(Result[InputType]):
    """A phase finished and `value` is ready for the next one."""

    def __init__(self, value: InputType) -> None:
        self.value: InputType = value

    def chain(self, func, config):
        return func(self.value, config)

    def get_message(self, default):
        return default


class Stop(Result[InputType]):
    """A phase finished the run and `message` is its output."""

    def __init__(self, message: str) -> None:
        self.message: str = message

    def chain(self, func, config):
        return self

    def get_message(self, default):
        return self.message


def get_version() -> Tuple[int, str]:
    """Get the exit status and the version number of the package."""
    try:
        return 0, version(PACKAGE_NAME)
    except PackageNotFoundError:
        logger.error("Unable to find the installed version of %s.", PACKAGE_NAME)
        return 1, "unknown"


def run_loading(source: str, config: ConfigData) -> Result[base.ASTNode]:
    """Turn the JSON document into a syntax tree."""
    tree = load(source)
    return Stop(f"{ASTPrinter().run(tree)}\n") if config.show_ast else Continue(tree)


def run_type_checking(source: base.ASTNode, config: ConfigData) -> Result[Type]:
    """Perform the type inference portion of the program."""
    type_ = infer_type(source)
    logger.info("Inferred the type: %r", type_)
    return Continue(type_)


def run_rendering(source: Type, config: ConfigData) -> Result[str]:
    """Show the inferred type to the user."""
    return Stop(f"{show_type(source)}\n")


def read_program_text(config: ConfigData) -> str:
    """
    Get the program text that the syntax tree was built from, so that it
    can be quoted in error messages. It is an empty string if the user
    didn't give one.

    Raises
    ------
    CMDError
        If the program text file is missing, is a folder or can't be
        read.
    BadEncodingError
        If the program text can't be decoded with `config.encoding`.
    """
    if config.source_file is None:
        return ""
    try:
        program_bytes = config.source_file.resolve(strict=True).read_bytes()
    except FileNotFoundError as error:
        logger.exception("Unable to find the program text %s", config.source_file)
        raise CMDError(CMDErrorReasons.FILE_NOT_FOUND) from error
    except IsADirectoryError as error:
        logger.exception("The program text %s is a folder", config.source_file)
        raise CMDError(CMDErrorReasons.PATH_IS_FOLDER) from error
    except PermissionError as error:
        logger.exception("Unable to read the program text %s", config.source_file)
        raise CMDError(CMDErrorReasons.NO_PERMISSION) from error
    return to_utf8(program_bytes, config.encoding)


def run_code(source: bytes, config: ConfigData) -> str:
    """
    Load the syntax tree in `source`, infer its type and render it.

    Parameters
    ----------
    source: bytes
        The raw contents of the JSON syntax tree file.
    config: ConfigData
        The options taken from the command line.

    Returns
    -------
    str
        The text to show the user. It is the rendered type, the
        printed tree under `--show-ast` or an error report.
    """
    report, _ = config.writers
    try:
        program_text = read_program_text(config)
    except CompilerError as error:
        logger.info("Reporting a %s error for the program text.", error.name)
        return report(error, "", str(config.source_file))

    try:
        source_text = to_utf8(source, config.encoding)
        result = (
            Continue(source_text)
            .chain(run_loading, config)
            .chain(run_type_checking, config)
            .chain(run_rendering, config)
        )
    except CompilerError as error:
        logger.info("Reporting a %s error.", error.name)
        return report(error, program_text, str(config.file))
    return result.get_message("")
