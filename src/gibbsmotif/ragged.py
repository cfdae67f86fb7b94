from typing import List

import numpy as np


class RaggedData:
    """
    Class for storing integer-encoded sequences.

    Uses a flattened representation (data + offsets) so that the numba kernels
    can walk all sequences without Python-level indirection. The sampler only
    accepts uniform sets (every sequence the same length), which is checked
    with :meth:`is_uniform` before any chain is started.
    """

    def __init__(self, data: np.ndarray, offsets: np.ndarray):
        """Initialize the RaggedData object."""
        self.data = data
        self.offsets = offsets

    def get_length(self, i: int) -> int:
        """Return the length of the i-th sequence."""
        return int(self.offsets[i + 1] - self.offsets[i])

    def get_slice(self, i: int) -> np.ndarray:
        """Return a slice of data for the i-th sequence (view)."""
        return self.data[self.offsets[i] : self.offsets[i + 1]]

    @property
    def lengths(self) -> np.ndarray:
        """Return the per-sequence lengths."""
        return np.diff(self.offsets)

    def is_uniform(self) -> bool:
        """Return True if every sequence has the same length."""
        if self.num_sequences == 0:
            return True
        lengths = self.lengths
        return bool(np.all(lengths == lengths[0]))

    def uniform_length(self) -> int:
        """Return the shared sequence length of a uniform set."""
        if self.num_sequences == 0 or not self.is_uniform():
            raise ValueError("Sequence set is empty or has unequal lengths")
        return self.get_length(0)

    @property
    def num_sequences(self) -> int:
        """Return the number of sequences."""
        return self.offsets.size - 1


def ragged_from_list(data_list: List[np.ndarray], dtype=None) -> RaggedData:
    """Create RaggedData from a list of numpy arrays."""
    if len(data_list) == 0:
        return RaggedData(np.empty(0, dtype=dtype if dtype else np.int8), np.zeros(1, dtype=np.int64))

    if dtype is None:
        dtype = data_list[0].dtype

    lengths = np.array([len(arr) for arr in data_list], dtype=np.int64)
    offsets = np.zeros(len(data_list) + 1, dtype=np.int64)
    offsets[1:] = np.cumsum(lengths)

    data = np.empty(offsets[-1], dtype=dtype)
    for i, arr in enumerate(data_list):
        data[offsets[i] : offsets[i + 1]] = arr

    return RaggedData(data, offsets)
