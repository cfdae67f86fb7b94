from __future__ import annotations

import sys
from pathlib import Path
from typing import IO, Iterable, List, Optional, Union

import numpy as np

from gibbsmotif.ragged import RaggedData, ragged_from_list

DNA = "ACGT"


def _translation_table(alphabet: str) -> bytes:
    """Byte table mapping alphabet symbols (any case) to their code and everything else to -1."""
    trans_table = bytearray([255] * 256)
    for code, char in enumerate(alphabet):
        trans_table[ord(char.upper())] = code
        trans_table[ord(char.lower())] = code
    return bytes(trans_table)


def _encode(raw: bytes, table: bytes) -> np.ndarray:
    return np.frombuffer(raw.translate(table), dtype=np.int8).copy()


def encode_sequences(sequences: Iterable[str], alphabet: str = DNA) -> RaggedData:
    """Integer-encode symbol strings; symbols outside ``alphabet`` become -1."""
    table = _translation_table(alphabet)
    encoded = [_encode(seq.encode("ascii", errors="replace"), table) for seq in sequences]
    return ragged_from_list(encoded, dtype=np.int8)


def decode_sequence(seq_int: np.ndarray, alphabet: str = DNA) -> str:
    """Convert an integer-encoded sequence back to a string."""
    decoder = np.array(list(alphabet) + ["N"], dtype="U1")
    safe_seq = np.where((seq_int >= 0) & (seq_int < len(alphabet)), seq_int, len(alphabet))
    return "".join(decoder[safe_seq])


def parse_fasta(handle: IO[str], alphabet: str = DNA) -> RaggedData:
    """Parse FASTA records from an open text handle into integer-encoded sequences."""
    table = _translation_table(alphabet)
    sequences: List[np.ndarray] = []

    current_seq_bytes = bytearray()
    seen_header = False
    for line in handle:
        line = line.strip()
        if not line:
            continue
        if line.startswith(">"):
            if seen_header:
                sequences.append(_encode(bytes(current_seq_bytes), table))
                current_seq_bytes.clear()
            seen_header = True
        else:
            current_seq_bytes.extend(line.encode("ascii", errors="replace"))

    if seen_header or current_seq_bytes:
        sequences.append(_encode(bytes(current_seq_bytes), table))

    return ragged_from_list(sequences, dtype=np.int8)


def read_fasta(path: Union[str, Path], alphabet: str = DNA) -> RaggedData:
    """Read a FASTA file (or standard input when ``path`` is ``"-"``)."""
    if str(path) == "-":
        return parse_fasta(sys.stdin, alphabet)
    with open(path, "r") as handle:
        return parse_fasta(handle, alphabet)


def write_fasta(sequences: Union[RaggedData, Iterable[str]], path: str, alphabet: str = DNA) -> None:
    """Write sequences to a FASTA file with numeric headers."""
    if isinstance(sequences, RaggedData):
        sequences = [decode_sequence(sequences.get_slice(i), alphabet) for i in range(sequences.num_sequences)]

    with open(path, "w") as out:
        for idx, seq_str in enumerate(sequences):
            out.write(f">{idx}\n")
            out.write(f"{seq_str}\n")


def format_profile(record, values: str = "frequency") -> str:
    """Render a search result as the profile table.

    The first line reports the motif and its score, the second the 1-based
    motif positions, followed by one row per alphabet symbol.
    """
    profile = record.profile
    if values == "frequency":
        matrix = profile.frequencies
        fmt = "{:.4f}"
    elif values == "counts":
        matrix = profile.counts
        fmt = "{:.1f}"
    else:
        raise ValueError(f"values must be 'frequency' or 'counts', got {values!r}")

    lines = [f"Best motif found: {record.motif}\tScore: {record.score:.6f}"]
    lines.append("\t".join(["pos"] + [str(j + 1) for j in range(profile.length)]))
    for symbol, row in zip(profile.alphabet, matrix):
        lines.append("\t".join([symbol] + [fmt.format(val) for val in row]))
    return "\n".join(lines) + "\n"


def write_profile(record, path: Optional[Union[str, Path]] = None, values: str = "frequency") -> None:
    """Write the profile table to ``path``, or to standard output when no path is given."""
    text = format_profile(record, values=values)
    if path is None or str(path) == "-":
        sys.stdout.write(text)
        return
    with open(path, "w") as out:
        out.write(text)


def write_meme(record, path: Union[str, Path], background: Optional[np.ndarray] = None, name: str = "gibbs") -> None:
    """Write the result profile to a MEME minimal-format file."""
    profile = record.profile
    alphabet = profile.alphabet
    if background is None:
        background = np.full(len(alphabet), 1.0 / len(alphabet))

    with open(path, "w") as out:
        out.write("MEME version 4\n\n")
        out.write(f"ALPHABET= {alphabet}\n\n")
        out.write("strands: +\n\n")
        out.write("Background letter frequencies\n")
        out.write(" ".join(f"{sym} {freq:.4f}" for sym, freq in zip(alphabet, background)) + "\n\n")
        out.write(f"MOTIF {record.motif} {name}\n")
        out.write(
            f"letter-probability matrix: alength= {len(alphabet)} w= {profile.length} "
            f"nsites= {int(round(profile.n_sites))}\n"
        )
        for row in profile.frequencies.T:
            out.write(" " + " ".join(f"{val:.6f}" for val in row) + "\n")
        out.write("\n")
