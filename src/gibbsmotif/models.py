"""
Profile Models Module
=====================

Immutable containers for the sampler's profile model and results, together
with registry-based dispatch for the background model and the motif quality
metric.

Key Features:
- Immutable data containers using frozen dataclasses
- Registry-based strategy pattern using decorators
- Pure functions for profile construction and window scoring
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from gibbsmotif.errors import InvalidInput
from gibbsmotif.functions import (
    column_max_sum,
    count_windows,
    counts_to_frequencies,
    log_ratio_matrix,
    relative_entropy,
    symbol_counts,
    window_log_weights,
)
from gibbsmotif.io import DNA, decode_sequence
from gibbsmotif.ragged import RaggedData


@dataclass(frozen=True)
class Profile:
    """Pseudocounted position count matrix.

    Attributes
    ----------
    counts : np.ndarray
        Float array of shape (n_symbols, motif_len) holding raw counts with
        the pseudocount already added to every cell.
    alphabet : str
        Ordered symbols, one per row of ``counts``.
    pseudocount : float
        Value each cell was seeded with.
    """

    counts: np.ndarray = dc_field(hash=False)
    alphabet: str = DNA
    pseudocount: float = 1.0

    def __hash__(self):
        """Custom hash implementation excluding unhashable fields."""
        return hash((self.alphabet, self.pseudocount, self.counts.shape, self.counts.tobytes()))

    def __eq__(self, other):
        if not isinstance(other, Profile):
            return NotImplemented
        return (
            self.alphabet == other.alphabet
            and self.pseudocount == other.pseudocount
            and np.array_equal(self.counts, other.counts)
        )

    @property
    def length(self) -> int:
        return int(self.counts.shape[1])

    @property
    def n_sites(self) -> float:
        """Number of windows that contributed to the counts."""
        return float(self.counts[:, 0].sum() - self.pseudocount * len(self.alphabet))

    @property
    def frequencies(self) -> np.ndarray:
        return counts_to_frequencies(self.counts)

    def consensus(self) -> str:
        """Most frequent symbol per column; ties go to the earliest alphabet symbol."""
        return "".join(self.alphabet[idx] for idx in np.argmax(self.counts, axis=0))


@dataclass(frozen=True)
class MotifRecord:
    """Best-so-far record of a chain or of a whole search.

    Unpacks as ``(motif, score, profile)``. ``background`` names the
    background model the record was scored against.
    """

    motif: str
    score: float
    profile: Profile
    offsets: Tuple[int, ...] = ()
    background: str = "uniform"

    def __iter__(self):
        return iter((self.motif, self.score, self.profile))


class StrategyRegistry:
    """Registry for named strategies using decorator pattern."""

    def __init__(self, kind: str):
        """Initialize registry state."""
        self.kind = kind
        self._strategies: Dict[str, Callable] = {}

    def register(self, key: str):
        """Decorator to register a strategy function."""

        def decorator(strategy_fn):
            """Store a callable in the registry."""
            self._strategies[key] = strategy_fn
            logging.getLogger(__name__).debug(f"Registered {self.kind} strategy: {key} -> {strategy_fn.__name__}")
            return strategy_fn

        return decorator

    def get(self, key: str) -> Callable:
        """Get strategy by key."""
        if key not in self._strategies:
            available = list(self._strategies.keys())
            raise ValueError(f"{self.kind.capitalize()} strategy '{key}' not found. Available: {available}")
        return self._strategies[key]

    def available(self) -> list[str]:
        return sorted(self._strategies)

    def __contains__(self, key: str) -> bool:
        return key in self._strategies


background_registry = StrategyRegistry("background")
quality_registry = StrategyRegistry("quality")


@background_registry.register("uniform")
def uniform_background(sequences: RaggedData, n_symbols: int) -> np.ndarray:
    """Every symbol equally likely."""
    return np.full(n_symbols, 1.0 / n_symbols, dtype=np.float64)


@background_registry.register("empirical")
def empirical_background(sequences: RaggedData, n_symbols: int) -> np.ndarray:
    """Symbol frequencies over all input sequences, with one pseudocount per symbol."""
    counts = symbol_counts(sequences.data, n_symbols) + 1.0
    return counts / counts.sum()


def compute_background(sequences: RaggedData, alphabet: str = DNA, model: str = "uniform") -> np.ndarray:
    """Build the background frequency vector for ``sequences``."""
    return background_registry.get(model)(sequences, len(alphabet))


@quality_registry.register("information")
def information_quality(profile: Profile, background: np.ndarray) -> float:
    """Total relative entropy of the profile frequencies against the background, in bits."""
    return float(relative_entropy(profile.frequencies, np.asarray(background, dtype=np.float64)))


@quality_registry.register("consensus")
def consensus_quality(profile: Profile, background: np.ndarray) -> float:
    """Sum over columns of the largest pseudocount-free count."""
    return column_max_sum(profile.counts - profile.pseudocount)


def motif_quality(profile: Profile, background: np.ndarray, metric: str = "information") -> float:
    """Score how conserved a completed profile is; higher is more specific."""
    return quality_registry.get(metric)(profile, background)


def build_profile(
    sequences: RaggedData,
    offsets: Sequence[int],
    excluded_index: Optional[int],
    motif_len: int,
    alphabet: str = DNA,
    pseudocount: float = 1.0,
) -> Profile:
    """Count the motif windows of every sequence except ``excluded_index``.

    Parameters
    ----------
    sequences : RaggedData
        Integer-encoded sequences.
    offsets : sequence of int
        Window start for every sequence.
    excluded_index : int or None
        Sequence left out of the counts; ``None`` counts all of them.
    motif_len : int
        Window length.
    alphabet : str
        Symbols, defines the number of rows.
    pseudocount : float
        Seed value of every cell.

    Returns
    -------
    Profile
        Raw pseudocounted counts; column sums are
        ``n_counted + len(alphabet) * pseudocount``.
    """
    starts = np.asarray(offsets, dtype=np.int64)
    if starts.shape[0] != sequences.num_sequences:
        raise InvalidInput(f"Expected {sequences.num_sequences} offsets, got {starts.shape[0]}")
    bad = (starts < 0) | (starts + motif_len > sequences.lengths)
    if np.any(bad):
        seq_idx = int(np.argmax(bad))
        raise InvalidInput(
            f"Offset {int(starts[seq_idx])} out of range for sequence {seq_idx} "
            f"of length {sequences.get_length(seq_idx)} and motif length {motif_len}"
        )
    excluded = -1 if excluded_index is None else int(excluded_index)
    counts = count_windows(
        sequences.data, sequences.offsets, starts, motif_len, len(alphabet), excluded, float(pseudocount)
    )
    return Profile(counts=counts, alphabet=alphabet, pseudocount=float(pseudocount))


def window_weights(profile: Profile, sequence: np.ndarray, background: np.ndarray) -> np.ndarray:
    """Log-likelihood ratio of every candidate window of ``sequence`` under ``profile``."""
    log_ratio = log_ratio_matrix(profile.frequencies, np.asarray(background, dtype=np.float64))
    return window_log_weights(sequence, log_ratio)


def score_window(
    profile: Profile, sequence: np.ndarray, candidate_offset: int, motif_len: int, background: np.ndarray
) -> float:
    """Likelihood ratio of one window: product of profile over background frequency per position."""
    if motif_len != profile.length:
        raise InvalidInput(f"Motif length {motif_len} does not match profile length {profile.length}")
    sequence = np.asarray(sequence)
    if candidate_offset < 0 or candidate_offset + motif_len > len(sequence):
        raise InvalidInput(f"Offset {candidate_offset} out of range for sequence of length {len(sequence)}")

    window = sequence[candidate_offset : candidate_offset + motif_len]
    log_ratio = log_ratio_matrix(profile.frequencies, np.asarray(background, dtype=np.float64))
    return float(np.exp(window_log_weights(window, log_ratio)[0]))


def get_sites(record: MotifRecord, sequences: RaggedData, background: Optional[np.ndarray] = None) -> pd.DataFrame:
    """Tabulate the motif instance chosen in every sequence.

    Site scores are log2 likelihood ratios against ``background``, which
    defaults to the record's own background model computed over ``sequences``.
    """
    profile = record.profile
    if background is None:
        background = compute_background(sequences, profile.alphabet, record.background)
    log_ratio = log_ratio_matrix(profile.frequencies, np.asarray(background, dtype=np.float64))

    results = []
    for seq_idx, start in enumerate(record.offsets):
        window = sequences.get_slice(seq_idx)[start : start + profile.length]
        results.append(
            {
                "seq_index": seq_idx,
                "start": int(start),
                "end": int(start + profile.length),
                "site": decode_sequence(window, profile.alphabet),
                "score": float(window_log_weights(window, log_ratio)[0] / np.log(2.0)),
            }
        )

    df = pd.DataFrame(results, columns=["seq_index", "start", "end", "site", "score"])
    logger = logging.getLogger(__name__)
    logger.info(f"Reported {len(df)} site(s) for motif {record.motif}")
    return df
