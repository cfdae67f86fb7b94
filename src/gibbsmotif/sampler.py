"""
sampler
=======

Gibbs Sampling Engine.  One chain starts from uniformly random window
offsets and repeatedly

1. leaves one sequence out (cyclically),
2. builds a pseudocounted profile from the remaining windows,
3. weighs every candidate window of the left-out sequence by its
   likelihood ratio against the background,
4. draws the new window for that sequence from the normalized weights,
5. scores the completed profile and keeps the best configuration seen.

The chain stops once ``k`` consecutive steps fail to improve the best score
or ``max_iterations`` steps have been taken.  Chain state is an immutable
:class:`ChainState`; :func:`gibbs_step` returns a new state and
:func:`iter_chain` exposes the whole trajectory lazily.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Iterator, Literal, Optional, Tuple

import numpy as np

from gibbsmotif.errors import InvalidConfiguration
from gibbsmotif.functions import normalize_log_weights
from gibbsmotif.io import DNA
from gibbsmotif.models import (
    MotifRecord,
    background_registry,
    build_profile,
    motif_quality,
    quality_registry,
    window_weights,
)
from gibbsmotif.ragged import RaggedData

ChainStatus = Literal["initialized", "iterating", "converged"]

MIN_MOTIF_LEN = 5
MIN_PATIENCE = 2


@dataclass(frozen=True)
class SamplerConfig:
    """Immutable sampler configuration.

    Attributes
    ----------
    k : int
        Convergence patience: consecutive non-improving steps before a chain stops.
    motif_len : int
        Length of the motif searched for.
    nsamples : int
        Number of independent restarts.
    max_iterations : int
        Hard cap on the number of steps of one chain.
    pseudocount : float
        Value added to every profile cell.
    metric : str
        Key of the quality metric used to rank configurations.
    background : str
        Key of the background model.
    alphabet : str
        Ordered symbol set.
    seed : int, optional
        Root seed of the per-chain random streams.
    n_jobs : int
        Number of parallel workers for restarts.
    """

    k: int = 3
    motif_len: int = 7
    nsamples: int = 100
    max_iterations: int = 10000
    pseudocount: float = 1.0
    metric: str = "information"
    background: str = "uniform"
    alphabet: str = DNA
    seed: Optional[int] = None
    n_jobs: int = 1


def create_sampler_config(
    k: int = 3,
    motif_len: int = 7,
    nsamples: int = 100,
    max_iterations: int = 10000,
    pseudocount: float = 1.0,
    metric: str = "information",
    background: str = "uniform",
    alphabet: str = DNA,
    seed: Optional[int] = None,
    n_jobs: int = 1,
) -> SamplerConfig:
    """Validate parameters and build a :class:`SamplerConfig`."""
    if int(k) < MIN_PATIENCE:
        raise InvalidConfiguration(f"k must be >= {MIN_PATIENCE}, got {k}")
    if int(motif_len) < MIN_MOTIF_LEN:
        raise InvalidConfiguration(f"motif_len must be >= {MIN_MOTIF_LEN}, got {motif_len}")
    if int(nsamples) < 1:
        raise InvalidConfiguration(f"nsamples must be >= 1, got {nsamples}")
    if int(max_iterations) < 1:
        raise InvalidConfiguration(f"max_iterations must be >= 1, got {max_iterations}")
    if not pseudocount > 0:
        raise InvalidConfiguration(f"pseudocount must be positive, got {pseudocount}")
    if metric not in quality_registry:
        raise InvalidConfiguration(f"Unknown metric {metric!r}. Available: {quality_registry.available()}")
    if background not in background_registry:
        raise InvalidConfiguration(f"Unknown background {background!r}. Available: {background_registry.available()}")
    if len(set(alphabet.upper())) != len(alphabet) or len(alphabet) < 2:
        raise InvalidConfiguration(f"Alphabet must hold at least 2 distinct symbols, got {alphabet!r}")
    if int(n_jobs) == 0:
        raise InvalidConfiguration("n_jobs must be non-zero")

    return SamplerConfig(
        k=int(k),
        motif_len=int(motif_len),
        nsamples=int(nsamples),
        max_iterations=int(max_iterations),
        pseudocount=float(pseudocount),
        metric=metric,
        background=background,
        alphabet=alphabet.upper(),
        seed=seed,
        n_jobs=int(n_jobs),
    )


@dataclass(frozen=True)
class ChainState:
    """Snapshot of one chain between two steps.

    Attributes
    ----------
    offsets : tuple of int
        Current window start of every sequence.
    score : float
        Quality of the current configuration.
    best : MotifRecord
        Best configuration seen so far in this chain.
    stall : int
        Consecutive steps without improvement of ``best``.
    iteration : int
        Number of steps taken.
    status : str
        ``"initialized"``, ``"iterating"`` or ``"converged"``.
    excluded : int, optional
        Sequence resampled by the step that produced this state.
    """

    offsets: Tuple[int, ...]
    score: float
    best: MotifRecord
    stall: int = 0
    iteration: int = 0
    status: ChainStatus = "initialized"
    excluded: Optional[int] = None


def _record(sequences: RaggedData, offsets: Tuple[int, ...], config: SamplerConfig, background: np.ndarray):
    """Completed profile of a configuration and its record."""
    profile = build_profile(sequences, offsets, None, config.motif_len, config.alphabet, config.pseudocount)
    score = motif_quality(profile, background, config.metric)
    return MotifRecord(
        motif=profile.consensus(), score=score, profile=profile, offsets=offsets, background=config.background
    )


def initialize_chain(
    sequences: RaggedData, config: SamplerConfig, background: np.ndarray, rng: np.random.Generator
) -> ChainState:
    """Draw uniformly random offsets for every sequence."""
    n_windows = sequences.uniform_length() - config.motif_len + 1
    offsets = tuple(int(x) for x in rng.integers(0, n_windows, size=sequences.num_sequences))
    record = _record(sequences, offsets, config, background)
    return ChainState(offsets=offsets, score=record.score, best=record)


def gibbs_step(
    state: ChainState,
    sequences: RaggedData,
    config: SamplerConfig,
    background: np.ndarray,
    rng: np.random.Generator,
) -> ChainState:
    """Resample the window of one left-out sequence and return the next state."""
    if state.status == "converged":
        raise RuntimeError("Cannot step a converged chain")

    excluded = state.iteration % sequences.num_sequences

    profile = build_profile(sequences, state.offsets, excluded, config.motif_len, config.alphabet, config.pseudocount)
    log_weights = window_weights(profile, sequences.get_slice(excluded), background)
    probabilities = normalize_log_weights(log_weights)
    new_offset = int(rng.choice(probabilities.shape[0], p=probabilities))

    offsets = state.offsets[:excluded] + (new_offset,) + state.offsets[excluded + 1 :]
    record = _record(sequences, offsets, config, background)

    if record.score > state.best.score:
        best = record
        stall = 0
    else:
        best = state.best
        stall = state.stall + 1

    iteration = state.iteration + 1
    converged = stall >= config.k or iteration >= config.max_iterations
    return dataclasses.replace(
        state,
        offsets=offsets,
        score=record.score,
        best=best,
        stall=stall,
        iteration=iteration,
        status="converged" if converged else "iterating",
        excluded=excluded,
    )


def iter_chain(
    sequences: RaggedData, config: SamplerConfig, background: np.ndarray, rng: np.random.Generator
) -> Iterator[ChainState]:
    """Yield the initial state and every following state up to convergence."""
    state = initialize_chain(sequences, config, background, rng)
    yield state
    while state.status != "converged":
        state = gibbs_step(state, sequences, config, background, rng)
        yield state


def run_chain(
    sequences: RaggedData, config: SamplerConfig, background: np.ndarray, rng: np.random.Generator
) -> MotifRecord:
    """Run one chain to convergence and return its best record."""
    state = None
    for state in iter_chain(sequences, config, background, rng):
        pass

    logger = logging.getLogger(__name__)
    if state.iteration >= config.max_iterations and state.stall < config.k:
        logger.debug(f"Chain stopped at the iteration cap ({config.max_iterations})")
    logger.debug(f"Chain converged after {state.iteration} step(s): {state.best.motif} ({state.best.score:.4f})")
    return state.best
