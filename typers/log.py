from logging import DEBUG, FileHandler, Formatter, getLogger
from pathlib import Path

LOG_FILE = Path(__file__).resolve().parent.parent / "typers.log"
# NOTE: The log sits next to the `typers` application folder.

LOGGER_LEVEL = DEBUG

_handler = FileHandler(LOG_FILE, delay=True, mode="w")
_handler.setFormatter(Formatter(fmt="[%(levelname)s] %(message)s"))

logger = getLogger()
logger.addHandler(_handler)
logger.setLevel(LOGGER_LEVEL)
