"""Error taxonomy for constrained hidden Markov models.

Every error raised by the package derives from :class:`ConstrainedHMMError`,
so callers can catch the whole family at once. The concrete classes also
derive from the matching built-in exception (``ValueError`` or
``LookupError``) so they behave like standard Python errors.
"""


class ConstrainedHMMError(Exception):
    """Base class for all package errors."""


class ConstructionError(ConstrainedHMMError, ValueError):
    """A model was built with invalid parameters (order, sequence length)."""


class LengthMismatchError(ConstructionError):
    """Constraint lists do not match the requested sequence length."""


class CorpusFormatError(ConstrainedHMMError, ValueError):
    """A corpus token is not of the form ``surface:hidden``."""


class ProbabilityLookupError(ConstrainedHMMError, LookupError):
    """A probability query references a context or target that is undefined.

    Distinct from a probability of ``0.0``: pruning removes keys and
    renormalization leaves zero weights, and the two must not be confused.
    """


class ConstraintSpecError(ConstrainedHMMError, ValueError):
    """A constraint specification line is structurally malformed."""


class ConfigurationError(ConstrainedHMMError, ValueError):
    """A configuration file is missing, unsupported or incomplete."""
