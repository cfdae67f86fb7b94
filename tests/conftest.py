"""
Pytest configuration and common fixtures for gibbsmotif tests.
"""
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest

# Force testing the installed package, not the local source
project_root = str(Path(__file__).parent.parent.absolute())
if project_root in sys.path:
    sys.path.remove(project_root)

PLANTED_MOTIF = "TTGACGAT"


def make_planted_sequences(n_sequences=12, length=30, motif=PLANTED_MOTIF, seed=7):
    """Random ACGT sequences with ``motif`` inserted once per sequence."""
    rng = np.random.default_rng(seed)
    sequences = []
    starts = []
    for _ in range(n_sequences):
        background = "".join(rng.choice(list("ACGT"), size=length))
        start = int(rng.integers(0, length - len(motif) + 1))
        sequences.append(background[:start] + motif + background[start + len(motif) :])
        starts.append(start)
    return sequences, starts


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def planted():
    """Sequences with a planted motif and the planted start positions."""
    return make_planted_sequences()


@pytest.fixture
def random_sequences():
    """Eight random sequences of length 20."""
    rng = np.random.default_rng(11)
    return ["".join(rng.choice(list("ACGT"), size=20)) for _ in range(8)]


@pytest.fixture
def planted_fasta(temp_dir, planted):
    """FASTA file holding the planted sequences, wrapped over two lines each."""
    sequences, _ = planted
    path = temp_dir / "planted.fasta"
    with open(path, "w") as out:
        for i, seq in enumerate(sequences):
            out.write(f">seq{i} planted\n{seq[:15]}\n{seq[15:]}\n")
    return path


@pytest.fixture
def planted_motif():
    """The motif inserted by the ``planted`` fixture."""
    return PLANTED_MOTIF
