from .main import infer_type, TypeInferer
from .utils import (
    Bindings,
    Constraint,
    empty,
    Equation,
    pattern_infer,
    Substitution,
    substitute,
    unify,
)

__all__ = (
    "Bindings",
    "Constraint",
    "empty",
    "Equation",
    "infer_type",
    "pattern_infer",
    "Substitution",
    "substitute",
    "TypeInferer",
    "unify",
)
