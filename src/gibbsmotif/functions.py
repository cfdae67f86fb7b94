import numpy as np
from numba import njit


@njit(cache=True)
def count_windows(data, offsets, starts, motif_len, n_symbols, excluded, pseudocount):
    """Count symbols per motif column over the windows of all sequences but ``excluded``.

    ``excluded`` is -1 to count every sequence.
    """
    counts = np.full((n_symbols, motif_len), pseudocount, dtype=np.float64)
    n_seq = len(offsets) - 1
    for i in range(n_seq):
        if i == excluded:
            continue
        base = offsets[i] + starts[i]
        for j in range(motif_len):
            counts[data[base + j], j] += 1.0
    return counts


def counts_to_frequencies(counts):
    """Normalize a count matrix so that every column sums to one."""
    return counts / counts.sum(axis=0, keepdims=True)


def log_ratio_matrix(frequencies, background):
    """Natural log of profile frequency over background frequency, per symbol and column."""
    return np.log(frequencies) - np.log(background)[:, None]


@njit(cache=True)
def window_log_weights(seq, log_ratio):
    """Log-likelihood ratio of every window of ``seq`` under ``log_ratio``."""
    m = log_ratio.shape[1]
    n_windows = seq.shape[0] - m + 1
    out = np.zeros(n_windows, dtype=np.float64)
    for k in range(n_windows):
        score = 0.0
        for j in range(m):
            score += log_ratio[seq[k + j], j]
        out[k] = score
    return out


def normalize_log_weights(log_weights):
    """Turn a log-weight surface into a probability vector."""
    shifted = np.exp(log_weights - log_weights.max())
    return shifted / shifted.sum()


@njit(cache=True)
def relative_entropy(frequencies, background):
    """Total relative entropy (bits) of a frequency matrix against the background."""
    total = 0.0
    n_symbols, length = frequencies.shape
    for j in range(length):
        for a in range(n_symbols):
            f = frequencies[a, j]
            if f > 0.0:
                total += f * np.log2(f / background[a])
    return total


def column_max_sum(counts):
    """Sum over columns of the largest count in the column."""
    return float(counts.max(axis=0).sum())


@njit(cache=True)
def symbol_counts(data, n_symbols):
    """Occurrences of every symbol code in ``data``."""
    out = np.zeros(n_symbols, dtype=np.float64)
    for i in range(data.shape[0]):
        out[data[i]] += 1.0
    return out
