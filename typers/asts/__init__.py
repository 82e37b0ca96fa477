from . import base
from . import types_ as types
from . import visitor as visitors

__all__ = (
    "base",
    "types",
    "visitors",
)
