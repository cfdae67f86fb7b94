"""Exception hierarchy for gibbsmotif.

All errors derive from :class:`GibbsMotifError`, itself a ``ValueError``,
so callers that already guard argument checking with ``except ValueError``
keep working.
"""


class GibbsMotifError(ValueError):
    """Base class for all gibbsmotif errors."""


class InvalidConfiguration(GibbsMotifError):
    """Sampler parameters are out of range (motif length, patience, restarts...)."""


class InvalidInput(GibbsMotifError):
    """The sequence set violates the sampler invariants."""


class DomainError(GibbsMotifError):
    """Significance parameters do not define a probability."""
