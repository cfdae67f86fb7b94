# %%


from pathlib import Path

import numpy as np
import pandas as pd

from gibbsmotif import find_motif, get_sites, minimum_suggested_sequence_length, write_meme, write_profile
from gibbsmotif.io import encode_sequences, read_fasta

# %%


def load_sequences(seq_source, num_sequences=20, seq_length=60, motif="TTGACGAT", seed=111):
    """Load sequences from FASTA or generate random ones with a planted motif."""
    if seq_source and Path(seq_source).exists():
        return read_fasta(seq_source), None
    rng = np.random.default_rng(seed)
    sequences = []
    starts = []
    for _ in range(num_sequences):
        background = "".join(rng.choice(list("ACGT"), size=seq_length))
        start = int(rng.integers(0, seq_length - len(motif) + 1))
        sequences.append(background[:start] + motif + background[start + len(motif) :])
        starts.append(start)
    return encode_sequences(sequences), starts


# %%

sequences, planted_starts = load_sequences(None)
print(f"{sequences.num_sequences} sequences of length {sequences.uniform_length()}")

suggested = minimum_suggested_sequence_length(0.01, sequences.num_sequences, 8, 4)
print(f"Suggested minimum sequence length for an 8-mer: {suggested}")

# %%

record = find_motif(sequences, k=30, motif_len=8, nsamples=50, seed=42, n_jobs=-1)
write_profile(record)

# %%

sites = get_sites(record, sequences)
if planted_starts is not None:
    sites["planted_start"] = planted_starts
    sites["shift"] = sites["start"] - sites["planted_start"]
with pd.option_context("display.max_rows", None):
    print(sites)

# %%

write_meme(record, "planted_motif.meme")
