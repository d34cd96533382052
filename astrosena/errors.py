"""
Error taxonomy for astrosena.

Degenerate (all-zero) weight vectors and runs with too little history are
not errors; they are handled by the uniform fallback and by empty results.
"""


class AstroSenaError(Exception):
    """Base class for every error raised by astrosena."""


class InvalidInputError(AstroSenaError, ValueError):
    """A draw or a configuration parameter is outside its valid domain."""


class MergeMismatchError(AstroSenaError, ValueError):
    """Tuning results cannot be merged (missing counters or different identities)."""
