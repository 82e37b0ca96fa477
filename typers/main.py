from sys import exit as sys_exit
from typing import NoReturn

import errors
from args import build_config, ConfigData, parser
from log import logger
from run import get_version, run_code

EXIT_OK = 0
EXIT_NO_FILE = 64
EXIT_IS_FOLDER = 65
EXIT_UNREADABLE = 66


def _fail(config: ConfigData, reason: errors.CMDErrorReasons, status: int) -> int:
    report, write = config.writers
    write(report(errors.CMDError(reason), "", str(config.file)))
    return status


def run_file(config: ConfigData) -> int:
    """
    Check the syntax tree stored in `config.file` and write out either
    its type or a report on why it has none.

    Parameters
    ----------
    config: ConfigData
        The options taken from the command line.

    Returns
    -------
    int
        The exit status. A type error in the tree still counts as a
        successful run, only problems with the file itself don't.
    """
    _, write = config.writers
    if config.file is None:
        logger.error("No syntax tree file was given.")
        write(f"Expected a JSON syntax tree to check.\n\n{parser.format_usage()}\n")
        return EXIT_NO_FILE
    if config.file.is_dir():
        logger.fatal("Expected a file but got the folder %s", config.file)
        return _fail(config, errors.CMDErrorReasons.PATH_IS_FOLDER, EXIT_IS_FOLDER)

    try:
        tree_bytes = config.file.resolve(strict=True).read_bytes()
        write(run_code(tree_bytes, config))
    except FileNotFoundError:
        logger.exception("Unable to find a file needed for %s", config.file)
        return _fail(config, errors.CMDErrorReasons.FILE_NOT_FOUND, EXIT_UNREADABLE)
    except PermissionError:
        logger.exception("Unable to read a file needed for %s", config.file)
        return _fail(config, errors.CMDErrorReasons.NO_PERMISSION, EXIT_UNREADABLE)
    return EXIT_OK


def main() -> NoReturn:
    config = build_config(parser.parse_args())
    _, write = config.writers
    if config.show_help:
        logger.info("Showing the help text.")
        write(parser.format_help())
        sys_exit(EXIT_OK)
    if config.show_version:
        status, version = get_version()
        logger.info("Showing the version (%s).", version)
        write(f"Typers Version {version}\n")
        sys_exit(status)
    sys_exit(run_file(config))


if __name__ == "__main__":
    main()
