"""High-level public API for motif discovery."""

from pathlib import Path
from typing import Sequence, Union

from gibbsmotif.io import DNA, read_fasta
from gibbsmotif.models import MotifRecord
from gibbsmotif.ragged import RaggedData
from gibbsmotif.search import search

SequenceRef = Union[RaggedData, str, Path, Sequence[str]]


def find_motif(
    sequences: SequenceRef,
    k: int = 3,
    motif_len: int = 7,
    nsamples: int = 100,
    alphabet: str = DNA,
    **options,
) -> MotifRecord:
    """Single-call entry point: resolve ``sequences`` and run the multi-restart search.

    ``sequences`` may be a FASTA path, a :class:`RaggedData` or a list of
    symbol strings. Remaining keyword arguments are forwarded to
    :func:`gibbsmotif.sampler.create_sampler_config`.
    """
    resolved = _resolve_sequences(sequences, alphabet)
    return search(resolved, k=k, motif_len=motif_len, nsamples=nsamples, alphabet=alphabet, **options)


def _resolve_sequences(source: SequenceRef, alphabet: str) -> Union[RaggedData, Sequence[str]]:
    """Resolve a sequence source to something :func:`search` accepts."""
    if isinstance(source, RaggedData):
        return source
    if isinstance(source, (str, Path)):
        path = Path(source)
        if str(source) != "-" and not path.exists():
            raise FileNotFoundError(f"Sequence file not found: {path}")
        return read_fasta(source, alphabet)
    if isinstance(source, Sequence):
        return list(source)
    raise TypeError(f"Unsupported sequence source type: {type(source)!r}")
