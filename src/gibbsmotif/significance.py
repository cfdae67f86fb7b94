"""
significance
============

Closed-form chance-occurrence model for a motif of length ``L`` over an
alphabet of size ``A``.

A random ``L``-mer matches a fixed position with probability ``p = A**-L``,
is absent from one sequence of length ``M`` with probability
``a = (1 - p)**(M - L + 1)`` and is present in every one of ``n``
independent sequences with probability ``c = (1 - a)**n``.  All terms are
evaluated in log space.
"""

import logging

import numpy as np

from gibbsmotif.errors import DomainError


def _check_model(n_sequences: int, motif_len: int, alphabet_size: int) -> float:
    """Validate the shared parameters and return ``log1p(-p)``."""
    if alphabet_size < 2:
        raise DomainError(f"alphabet_size must be >= 2, got {alphabet_size}")
    if motif_len < 1:
        raise DomainError(f"motif_len must be >= 1, got {motif_len}")
    if n_sequences < 1:
        raise DomainError(f"n_sequences must be >= 1, got {n_sequences}")

    site_probability = np.exp(-motif_len * np.log(alphabet_size))
    if site_probability == 0.0:
        raise DomainError(f"Match probability {alphabet_size}^-{motif_len} underflows to zero")
    return float(np.log1p(-site_probability))


def _log_chance_occurrence(n_sequences: int, motif_len: int, seq_length: int, log_miss: float) -> float:
    """Log probability that a random motif occurs in all sequences."""
    log_absent = (seq_length - motif_len + 1) * log_miss
    return float(n_sequences * np.log(-np.expm1(log_absent)))


def chance_occurrence_probability(n_sequences: int, motif_len: int, seq_length: int, alphabet_size: int = 4) -> float:
    """Probability that a random ``motif_len``-mer occurs in all ``n_sequences`` sequences of ``seq_length``."""
    log_miss = _check_model(n_sequences, motif_len, alphabet_size)
    if motif_len > seq_length:
        raise DomainError(f"motif_len ({motif_len}) exceeds seq_length ({seq_length})")
    return float(np.exp(_log_chance_occurrence(n_sequences, motif_len, seq_length, log_miss)))


def nontarget_motif_probability(n_sequences: int, motif_len: int, seq_length: int, alphabet_size: int = 4) -> float:
    """Probability that a random ``motif_len``-mer is missing from at least one of the sequences.

    This is ``1 - chance_occurrence_probability(...)``.  It is close to 1 for
    sequences barely longer than the motif and falls towards 0 as sequences
    grow long enough for any motif to appear everywhere by chance.
    """
    log_miss = _check_model(n_sequences, motif_len, alphabet_size)
    if motif_len > seq_length:
        raise DomainError(f"motif_len ({motif_len}) exceeds seq_length ({seq_length})")
    value = -np.expm1(_log_chance_occurrence(n_sequences, motif_len, seq_length, log_miss))
    return float(min(max(value, 0.0), 1.0))


def minimum_suggested_sequence_length(
    p_threshold: float, n_sequences: int, motif_len: int, alphabet_size: int = 4
) -> int:
    """Smallest sequence length at which a random motif is absent from some sequence with probability <= ``p_threshold``.

    Equivalently, the smallest ``M`` making the chance occurrence in all
    sequences at least ``1 - p_threshold``.  The length is located by
    doubling and then integer bisection on
    :func:`nontarget_motif_probability`, so the returned ``M`` satisfies
    ``nontarget(M) <= p_threshold`` and, for ``M > motif_len``,
    ``nontarget(M - 1) > p_threshold``.
    """
    _check_model(n_sequences, motif_len, alphabet_size)
    if not 0.0 < p_threshold < 1.0:
        raise DomainError(f"p_threshold must lie in (0, 1), got {p_threshold}")

    def nontarget(length: int) -> float:
        return nontarget_motif_probability(n_sequences, motif_len, length, alphabet_size)

    low = motif_len
    if nontarget(low) <= p_threshold:
        return low

    high = max(2 * low, low + 1)
    while nontarget(high) > p_threshold:
        low, high = high, 2 * high

    while high - low > 1:
        mid = (low + high) // 2
        if nontarget(mid) <= p_threshold:
            high = mid
        else:
            low = mid

    logger = logging.getLogger(__name__)
    logger.debug(
        f"Minimum length for p <= {p_threshold} with {n_sequences} sequence(s), "
        f"motif length {motif_len}, alphabet size {alphabet_size}: {high}"
    )
    return int(high)
