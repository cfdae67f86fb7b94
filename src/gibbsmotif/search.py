"""
search
======

Multi-Restart Driver.  Runs ``nsamples`` independent Gibbs chains, each
with its own random stream spawned from one root ``SeedSequence``, and
keeps the highest-scoring record (earliest chain on ties).
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from gibbsmotif.errors import InvalidInput
from gibbsmotif.io import DNA, encode_sequences
from gibbsmotif.models import MotifRecord, compute_background
from gibbsmotif.ragged import RaggedData
from gibbsmotif.sampler import SamplerConfig, create_sampler_config, run_chain

SequenceInput = Union[RaggedData, Sequence[str]]


def validate_sequences(sequences: RaggedData, motif_len: int, alphabet: str = DNA) -> int:
    """Check the sequence set invariants and return the shared sequence length."""
    if sequences.num_sequences == 0:
        raise InvalidInput("Sequence set is empty")
    if not sequences.is_uniform():
        lengths = sorted(set(int(x) for x in sequences.lengths))
        raise InvalidInput(f"Sequences must all have the same length, found lengths {lengths}")

    length = sequences.uniform_length()
    if length < motif_len:
        raise InvalidInput(f"Motif length {motif_len} exceeds sequence length {length}")

    bad = (sequences.data < 0) | (sequences.data >= len(alphabet))
    if np.any(bad):
        position = int(np.argmax(bad))
        seq_idx = int(np.searchsorted(sequences.offsets, position, side="right") - 1)
        raise InvalidInput(f"Sequence {seq_idx} contains a symbol outside the alphabet {alphabet!r}")

    return length


def _as_ragged(sequences: SequenceInput, alphabet: str) -> RaggedData:
    if isinstance(sequences, RaggedData):
        return sequences
    if isinstance(sequences, str):
        raise TypeError("Expected a collection of sequences, got a single string")
    return encode_sequences(sequences, alphabet)


def _spawn_generators(seed: Optional[int], n: int) -> list[np.random.Generator]:
    """Independent, non-overlapping random streams, one per chain."""
    return [np.random.default_rng(child) for child in np.random.SeedSequence(seed).spawn(n)]


def iter_restarts(
    sequences: RaggedData, config: SamplerConfig, background: np.ndarray
) -> Iterator[Tuple[int, MotifRecord]]:
    """Lazily run every chain and yield ``(chain_index, best_record)``."""
    generators = _spawn_generators(config.seed, config.nsamples)

    if config.n_jobs == 1:
        for index, rng in enumerate(generators):
            yield index, run_chain(sequences, config, background, rng)
        return

    results = Parallel(n_jobs=config.n_jobs, backend="loky", return_as="generator")(
        delayed(run_chain)(sequences, config, background, rng) for rng in generators
    )
    for index, record in enumerate(results):
        yield index, record


def search(
    sequences: SequenceInput,
    k: int = 3,
    motif_len: int = 7,
    nsamples: int = 100,
    *,
    config: Optional[SamplerConfig] = None,
    **options,
) -> MotifRecord:
    """Find the best motif over ``nsamples`` independent Gibbs chains.

    Parameters
    ----------
    sequences : RaggedData or sequence of str
        Equal-length sequences over the configured alphabet.
    k : int
        Convergence patience of every chain.
    motif_len : int
        Motif length.
    nsamples : int
        Number of restarts.
    config : SamplerConfig, optional
        Complete configuration; overrides ``k``, ``motif_len``,
        ``nsamples`` and ``options``.
    **options
        Remaining :func:`create_sampler_config` arguments (``seed``,
        ``n_jobs``, ``metric``, ``background``...).

    Returns
    -------
    MotifRecord
        Best record across all chains; unpacks as ``(motif, score, profile)``.
    """
    if config is None:
        config = create_sampler_config(k=k, motif_len=motif_len, nsamples=nsamples, **options)
    elif options:
        raise ValueError("Use either 'config' or config keyword arguments, not both.")

    ragged = _as_ragged(sequences, config.alphabet)
    length = validate_sequences(ragged, config.motif_len, config.alphabet)
    background = compute_background(ragged, config.alphabet, config.background)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Sampling {config.nsamples} chain(s) over {ragged.num_sequences} sequence(s) of length {length} "
        f"for motif length {config.motif_len}"
    )

    best: Optional[MotifRecord] = None
    best_index = -1
    for index, record in iter_restarts(ragged, config, background):
        logger.debug(f"Chain {index}: {record.motif} ({record.score:.4f})")
        if best is None or record.score > best.score:
            best = record
            best_index = index
            logger.info(f"New best motif from chain {index}: {record.motif} (score {record.score:.4f})")

    logger.info(f"Best motif {best.motif} with score {best.score:.4f} found by chain {best_index}")
    return best
