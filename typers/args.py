from argparse import ArgumentParser, Namespace
from dataclasses import dataclass, fields, replace
from pathlib import Path
from sys import stderr, stdout
from typing import Callable, Dict, Optional, Tuple

from errors import (
    CMDError,
    CMDErrorReasons,
    to_alert_message,
    to_json,
    to_long_message,
)
from log import logger

Reporter = Callable[[Exception, str, str], str]
Writer = Callable[[str], Optional[int]]

REPORTERS: Dict[str, Reporter] = {
    "json": to_json,
    "long": to_long_message,
    "short": to_alert_message,
}

_OPTIONAL_PATHS = ("file", "source_file")
_FLAGS = ("show_ast", "show_help", "show_version")


@dataclass(eq=False, frozen=True, repr=False)
class ConfigData:
    """
    The options that control a single run of the type checker.

    Attributes
    ----------
    file: Optional[Path]
        The JSON syntax tree to check.
    source_file: Optional[Path]
        The program text that the tree was built from, for quoting in
        error reports.
    encoding: str
        The encoding of both input files.
    show_ast: bool
        Whether to print the loaded tree instead of its type.
    show_help: bool
        Whether to print the help text and stop.
    show_version: bool
        Whether to print the version and stop.
    writers: Tuple[Reporter, Writer]
        How errors are formatted and where all output goes. They are
        kept together in a tuple so that neither is mistaken for a
        method.
    """

    file: Optional[Path]
    source_file: Optional[Path]
    encoding: str
    show_ast: bool
    show_help: bool
    show_version: bool
    writers: Tuple[Reporter, Writer]

    def __or__(self, other):
        """
        Fill in this config using `other`, which is either another
        `ConfigData` or a `dict` of field values. Paths and flags that
        are already set here are kept. `other` decides the encoding and
        the writers.
        """
        if isinstance(other, ConfigData):
            other = {field.name: getattr(other, field.name) for field in fields(other)}
        if not isinstance(other, dict):
            return NotImplemented

        changes = {
            "encoding": other.get("encoding", self.encoding),
            "writers": other.get("writers", self.writers),
        }
        for name in _OPTIONAL_PATHS:
            if getattr(self, name) is None:
                changes[name] = other.get(name)
        for name in _FLAGS:
            changes[name] = getattr(self, name) or other.get(name, False)
        return replace(self, **changes)


def get_writer(target: Optional[str]) -> Writer:
    """
    Pick the function that sends output to `target`.

    Parameters
    ----------
    target: Optional[str]
        Either `"stdout"`, `"stderr"` or the path of a file to write
        to. The file is created if it doesn't exist. `None` means
        `"stdout"`.

    Raises
    ------
    errors.CMDError
        If `target` is a file that can't be created.

    Returns
    -------
    Writer
        A function that writes a `str` to `target`.
    """
    if target is None or target == "stdout":
        return stdout.write
    if target == "stderr":
        return stderr.write

    path = Path(target)
    try:
        path.touch()
    except FileNotFoundError as error:
        logger.exception("Unable to create the output file %s", target)
        raise CMDError(CMDErrorReasons.FILE_NOT_FOUND) from error
    except PermissionError as error:
        logger.exception("Not allowed to write to the output file %s", target)
        raise CMDError(CMDErrorReasons.NO_PERMISSION) from error
    return path.resolve().write_text


def build_config(cmd_args: Namespace) -> ConfigData:
    """Turn the parsed command line arguments into a `ConfigData`."""
    return ConfigData(
        file=None if cmd_args.file is None else Path(cmd_args.file),
        source_file=None if cmd_args.source is None else Path(cmd_args.source),
        encoding=cmd_args.encoding,
        show_ast=cmd_args.show_ast,
        show_help=cmd_args.show_help,
        show_version=cmd_args.show_version,
        writers=(REPORTERS[cmd_args.report_format], get_writer(cmd_args.out)),
    )


DEFAULT_CONFIG = ConfigData(
    file=None,
    source_file=None,
    encoding="utf-8",
    show_ast=False,
    show_help=False,
    show_version=False,
    writers=(to_long_message, get_writer(None)),
)

parser = ArgumentParser(allow_abbrev=False, add_help=False, prog="typers")
parser.add_argument(
    "-?",
    "-h",
    "--help",
    action="store_true",
    dest="show_help",
    help="Print this help text and exit.",
)
parser.add_argument(
    "-v",
    "--version",
    action="store_true",
    dest="show_version",
    help="Print the version of typers and exit.",
)
parser.add_argument(
    "file",
    default=None,
    help="The JSON file holding the syntax tree to type check.",
    nargs="?",
)
parser.add_argument(
    "-o",
    "--out",
    action="store",
    default="stdout",
    help='Where to write the result: "stdout", "stderr" or a file path.',
)
parser.add_argument(
    "-r",
    "--report-fmt",
    "--report-format",
    action="store",
    choices=tuple(REPORTERS),
    default="long",
    dest="report_format",
    help="How to format error reports.",
)
parser.add_argument(
    "-e",
    "--encoding",
    action="store",
    default="utf8",
    help="The encoding of the input files.",
)
parser.add_argument(
    "-s",
    "--source",
    action="store",
    default=None,
    help="The program text that the syntax tree came from. It is quoted in errors.",
)
parser.add_argument(
    "--show-ast",
    "--load-only",
    action="store_true",
    dest="show_ast",
    help="Print the loaded syntax tree instead of its type.",
)
