"""
gibbsmotif
==========

This package finds a short, over-represented motif shared by a set of
equal-length biological sequences with a Gibbs-sampling Markov chain Monte
Carlo procedure, and provides closed-form estimates of how likely a motif
is to occur everywhere by chance.

The top level modules expose the following key components:

``io``
    FASTA parsing and integer encoding of sequences, and the profile
    table / MEME writers.

``models``
    The pseudocounted :class:`Profile`, result records, window scoring and
    registries of background models and motif quality metrics.

``sampler``
    One Gibbs chain as an immutable state advanced by a step function.

``search``
    Independent restarts of the sampler and selection of the best motif.

``significance``
    Chance-occurrence probabilities and the minimum suggested sequence
    length.

``cli``
    Command line interface exposing sampling and significance reports.
"""

from gibbsmotif.api import find_motif
from gibbsmotif.errors import DomainError, GibbsMotifError, InvalidConfiguration, InvalidInput
from gibbsmotif.io import encode_sequences, format_profile, read_fasta, write_meme, write_profile
from gibbsmotif.models import MotifRecord, Profile, build_profile, get_sites, motif_quality, score_window
from gibbsmotif.sampler import SamplerConfig, create_sampler_config, iter_chain, run_chain
from gibbsmotif.search import search
from gibbsmotif.significance import (
    chance_occurrence_probability,
    minimum_suggested_sequence_length,
    nontarget_motif_probability,
)

__version__ = "0.1.0"

__all__ = [
    "DomainError",
    "GibbsMotifError",
    "InvalidConfiguration",
    "InvalidInput",
    "MotifRecord",
    "Profile",
    "SamplerConfig",
    "build_profile",
    "chance_occurrence_probability",
    "create_sampler_config",
    "encode_sequences",
    "find_motif",
    "format_profile",
    "get_sites",
    "iter_chain",
    "minimum_suggested_sequence_length",
    "motif_quality",
    "nontarget_motif_probability",
    "read_fasta",
    "run_chain",
    "score_window",
    "search",
    "write_meme",
    "write_profile",
]
