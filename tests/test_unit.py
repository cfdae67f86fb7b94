"""
Unit tests for key computational functions in gibbsmotif.

These tests validate the correctness of individual functions from:
- gibbsmotif/functions.py
- gibbsmotif/io.py
- gibbsmotif/models.py
- gibbsmotif/sampler.py
- gibbsmotif/significance.py
"""

import io
import sys

import numpy as np
import pandas as pd
import pytest

from gibbsmotif.errors import DomainError, GibbsMotifError, InvalidConfiguration, InvalidInput
from gibbsmotif.functions import count_windows, normalize_log_weights, relative_entropy
from gibbsmotif.io import (
    decode_sequence,
    encode_sequences,
    format_profile,
    parse_fasta,
    read_fasta,
    write_meme,
    write_profile,
)
from gibbsmotif.models import (
    MotifRecord,
    Profile,
    background_registry,
    build_profile,
    compute_background,
    get_sites,
    motif_quality,
    quality_registry,
    score_window,
    window_weights,
)
from gibbsmotif.ragged import RaggedData, ragged_from_list
from gibbsmotif.sampler import create_sampler_config, gibbs_step, initialize_chain, iter_chain, run_chain
from gibbsmotif.significance import (
    chance_occurrence_probability,
    minimum_suggested_sequence_length,
    nontarget_motif_probability,
)

UNIFORM = np.full(4, 0.25)


def test_ragged_uniform_length():
    """Test the equal-length checks of RaggedData"""
    uniform = ragged_from_list([np.zeros(5, dtype=np.int8), np.ones(5, dtype=np.int8)])
    assert uniform.is_uniform()
    assert uniform.uniform_length() == 5
    assert list(uniform.lengths) == [5, 5]

    ragged = ragged_from_list([np.zeros(5, dtype=np.int8), np.ones(3, dtype=np.int8)])
    assert not ragged.is_uniform()
    with pytest.raises(ValueError):
        ragged.uniform_length()


def test_encode_decode_sequences():
    """Test integer encoding of symbol strings"""
    encoded = encode_sequences(["ACGT", "tgca"])
    assert encoded.num_sequences == 2
    np.testing.assert_array_equal(encoded.get_slice(0), [0, 1, 2, 3])
    np.testing.assert_array_equal(encoded.get_slice(1), [3, 2, 1, 0])
    assert decode_sequence(encoded.get_slice(1)) == "TGCA"


def test_encode_unknown_symbol():
    """Symbols outside the alphabet are encoded as -1"""
    encoded = encode_sequences(["ACNT"])
    np.testing.assert_array_equal(encoded.get_slice(0), [0, 1, -1, 3])


def test_parse_fasta_multiline():
    """Test FASTA parsing with wrapped records"""
    lines = [">a\n", "ACG\n", "TA\n", "\n", ">b description\n", "CCCCC\n"]
    sequences = parse_fasta(iter(lines))
    assert sequences.num_sequences == 2
    assert decode_sequence(sequences.get_slice(0)) == "ACGTA"
    assert decode_sequence(sequences.get_slice(1)) == "CCCCC"


def test_read_fasta_stdin(monkeypatch):
    """A path of '-' reads FASTA records from standard input"""
    monkeypatch.setattr(sys, "stdin", io.StringIO(">a\nACGTA\n>b\nccgga\n"))
    sequences = read_fasta("-")
    assert sequences.num_sequences == 2
    assert decode_sequence(sequences.get_slice(1)) == "CCGGA"


def test_count_windows_kernel():
    """Test the window counting kernel with one excluded sequence"""
    sequences = encode_sequences(["AACC", "CCAA", "GGTT"])
    starts = np.array([0, 2, 1], dtype=np.int64)
    counts = count_windows(sequences.data, sequences.offsets, starts, 2, 4, 2, 0.0)
    expected = np.array([[2.0, 2.0], [0.0, 0.0], [0.0, 0.0], [0.0, 0.0]])
    np.testing.assert_array_equal(counts, expected)


def test_normalize_single_window():
    """A single candidate window gets probability one"""
    probabilities = normalize_log_weights(np.array([-3.5]))
    np.testing.assert_array_equal(probabilities, [1.0])


def test_relative_entropy_uniform_is_zero():
    """A uniform profile carries no information against a uniform background"""
    assert relative_entropy(np.full((4, 6), 0.25), UNIFORM) == pytest.approx(0.0)


def test_build_profile_column_sums(random_sequences):
    """Column sums equal (S - 1) + alphabet size for any offsets"""
    sequences = encode_sequences(random_sequences)
    rng = np.random.default_rng(3)
    n_seq = sequences.num_sequences
    for _ in range(5):
        offsets = rng.integers(0, 20 - 6 + 1, size=n_seq)
        excluded = int(rng.integers(0, n_seq))
        profile = build_profile(sequences, offsets, excluded, 6)
        assert profile.counts.shape == (4, 6)
        np.testing.assert_allclose(profile.counts.sum(axis=0), (n_seq - 1) + 4)
        np.testing.assert_allclose(profile.frequencies.sum(axis=0), 1.0)
        assert profile.n_sites == pytest.approx(n_seq - 1)

    full = build_profile(sequences, offsets, None, 6)
    np.testing.assert_allclose(full.counts.sum(axis=0), n_seq + 4)


def test_build_profile_wrong_offsets(random_sequences):
    """One offset per sequence is required"""
    sequences = encode_sequences(random_sequences)
    with pytest.raises(InvalidInput):
        build_profile(sequences, [0, 1], None, 5)


def test_build_profile_offset_out_of_range():
    """Windows must lie inside their own sequence"""
    sequences = encode_sequences(["AAAAAA", "GGGGGG", "CCCCCC"])
    with pytest.raises(InvalidInput):
        build_profile(sequences, [4, 0, 0], None, 5)
    with pytest.raises(InvalidInput):
        build_profile(sequences, [0, 0, 2], None, 5)
    with pytest.raises(InvalidInput):
        build_profile(sequences, [0, -1, 0], 0, 5)

    profile = build_profile(sequences, [1, 1, 1], None, 5)
    np.testing.assert_array_equal(profile.counts[:, 0], [2.0, 2.0, 2.0, 1.0])


def test_profile_consensus_ties():
    """Ties in a column resolve to the earliest alphabet symbol"""
    counts = np.array([[2.0, 1.0], [2.0, 3.0], [1.0, 1.0], [1.0, 1.0]])
    profile = Profile(counts=counts)
    assert profile.consensus() == "AC"


def test_profile_equality_and_hash():
    """Profiles compare by content"""
    first = Profile(counts=np.ones((4, 5)))
    second = Profile(counts=np.ones((4, 5)))
    assert first == second
    assert hash(first) == hash(second)
    assert first != Profile(counts=np.ones((4, 5)) * 2)


def test_score_window_positive(random_sequences):
    """Window weights are strictly positive for every candidate offset"""
    sequences = encode_sequences(random_sequences)
    offsets = [0] * sequences.num_sequences
    profile = build_profile(sequences, offsets, 0, 7)
    seq = sequences.get_slice(0)
    for offset in range(20 - 7 + 1):
        assert score_window(profile, seq, offset, 7, UNIFORM) > 0.0


def test_score_window_matches_product():
    """The weight is the product of profile over background frequencies"""
    sequences = encode_sequences(["ACGTA", "ACGTA", "TTTTT"])
    profile = build_profile(sequences, [0, 0, 0], 2, 5)
    target = sequences.get_slice(2)
    freqs = profile.frequencies
    expected = np.prod([freqs[target[j], j] / 0.25 for j in range(5)])
    assert score_window(profile, target, 0, 5, UNIFORM) == pytest.approx(expected)

    log_weights = window_weights(profile, target, UNIFORM)
    assert log_weights.shape == (1,)
    assert np.exp(log_weights[0]) == pytest.approx(expected)


def test_score_window_out_of_range():
    """Offsets past the last window are rejected"""
    sequences = encode_sequences(["ACGTAC", "ACGTAC"])
    profile = build_profile(sequences, [0, 0], None, 5)
    with pytest.raises(InvalidInput):
        score_window(profile, sequences.get_slice(0), 2, 5, UNIFORM)
    with pytest.raises(InvalidInput):
        score_window(profile, sequences.get_slice(0), 0, 6, UNIFORM)


def test_motif_quality_metrics():
    """Consensus and information metrics on a fully conserved profile"""
    sequences = encode_sequences(["ACGTA", "ACGTA"])
    profile = build_profile(sequences, [0, 0], None, 5)

    assert motif_quality(profile, UNIFORM, "consensus") == pytest.approx(10.0)

    column = np.array([0.5, 1 / 6, 1 / 6, 1 / 6])
    expected = 5 * float(np.sum(column * np.log2(column / 0.25)))
    assert motif_quality(profile, UNIFORM, "information") == pytest.approx(expected)


def test_quality_registry():
    """Test quality and background registries"""
    assert "information" in quality_registry
    assert "consensus" in quality_registry
    assert background_registry.available() == ["empirical", "uniform"]
    with pytest.raises(ValueError):
        quality_registry.get("invalid_metric")


def test_empirical_background():
    """Empirical background reflects symbol composition and keeps every symbol nonzero"""
    sequences = encode_sequences(["AAAAAA", "AAAACC"])
    background = compute_background(sequences, "ACGT", "empirical")
    np.testing.assert_allclose(background, np.array([11.0, 3.0, 1.0, 1.0]) / 16.0)
    np.testing.assert_allclose(compute_background(sequences), UNIFORM)


def test_format_profile_layout():
    """Test exact text layout of the profile table"""
    sequences = encode_sequences(["ACGTA", "ACGTA"])
    profile = build_profile(sequences, [0, 0], None, 5)
    record = MotifRecord(motif="ACGTA", score=1.5, profile=profile, offsets=(0, 0))

    expected = (
        "Best motif found: ACGTA\tScore: 1.500000\n"
        "pos\t1\t2\t3\t4\t5\n"
        "A\t0.5000\t0.1667\t0.1667\t0.1667\t0.5000\n"
        "C\t0.1667\t0.5000\t0.1667\t0.1667\t0.1667\n"
        "G\t0.1667\t0.1667\t0.5000\t0.1667\t0.1667\n"
        "T\t0.1667\t0.1667\t0.1667\t0.5000\t0.1667\n"
    )
    assert format_profile(record) == expected
    assert format_profile(record, values="counts").splitlines()[2] == "A\t3.0\t1.0\t1.0\t1.0\t3.0"
    with pytest.raises(ValueError):
        format_profile(record, values="bits")


def test_write_profile_and_meme(temp_dir, capsys):
    """Profile goes to a file or to standard output"""
    sequences = encode_sequences(["ACGTA", "ACGTA"])
    profile = build_profile(sequences, [0, 0], None, 5)
    record = MotifRecord(motif="ACGTA", score=1.5, profile=profile, offsets=(0, 0))

    path = temp_dir / "motif.tab"
    write_profile(record, path)
    assert path.read_text() == format_profile(record)

    write_profile(record)
    assert capsys.readouterr().out == format_profile(record)

    meme_path = temp_dir / "motif.meme"
    write_meme(record, meme_path)
    content = meme_path.read_text()
    assert "MOTIF ACGTA" in content
    assert "letter-probability matrix: alength= 4 w= 5 nsites= 2" in content


def test_get_sites_table():
    """Sites report one chosen window per sequence"""
    sequences = encode_sequences(["CCACGTACC", "ACGTACCCC"])
    profile = build_profile(sequences, [2, 0], None, 5)
    record = MotifRecord(motif="ACGTA", score=0.0, profile=profile, offsets=(2, 0))

    sites = get_sites(record, sequences)
    assert isinstance(sites, pd.DataFrame)
    assert list(sites.columns) == ["seq_index", "start", "end", "site", "score"]
    assert list(sites["site"]) == ["ACGTA", "ACGTA"]
    assert list(sites["end"]) == [7, 5]
    assert np.all(sites["score"] > 0)


def test_get_sites_uses_record_background():
    """Site scores default to the background model the record was scored against"""
    sequences = encode_sequences(["CCACGTACC", "ACGTACCCC"])
    profile = build_profile(sequences, [2, 0], None, 5)
    record = MotifRecord(motif="ACGTA", score=0.0, profile=profile, offsets=(2, 0), background="empirical")

    empirical = compute_background(sequences, "ACGT", "empirical")
    default_sites = get_sites(record, sequences)
    explicit_sites = get_sites(record, sequences, background=empirical)
    uniform_sites = get_sites(record, sequences, background=UNIFORM)

    np.testing.assert_allclose(default_sites["score"], explicit_sites["score"])
    assert not np.allclose(default_sites["score"], uniform_sites["score"])


def test_record_unpacks():
    """A record unpacks as (motif, score, profile)"""
    profile = Profile(counts=np.ones((4, 5)))
    motif, score, unpacked = MotifRecord(motif="AAAAA", score=2.0, profile=profile)
    assert (motif, score) == ("AAAAA", 2.0)
    assert unpacked is profile


def test_create_sampler_config():
    """Test SamplerConfig creation, defaults and validation"""
    config = create_sampler_config()
    assert (config.k, config.motif_len, config.nsamples) == (3, 7, 100)
    assert config.metric == "information"
    assert config.seed is None

    with pytest.raises(InvalidConfiguration):
        create_sampler_config(nsamples=0)
    with pytest.raises(InvalidConfiguration):
        create_sampler_config(k=1)
    with pytest.raises(InvalidConfiguration):
        create_sampler_config(motif_len=4)
    with pytest.raises(InvalidConfiguration):
        create_sampler_config(pseudocount=0.0)
    with pytest.raises(InvalidConfiguration):
        create_sampler_config(metric="entropy")
    with pytest.raises(InvalidConfiguration):
        create_sampler_config(alphabet="AAGT")

    # Test immutability
    with pytest.raises(Exception):
        config.k = 10


def test_chain_best_score_non_decreasing(planted):
    """Best-so-far quality never drops along a chain"""
    sequences = encode_sequences(planted[0])
    config = create_sampler_config(k=10, motif_len=8, nsamples=1)
    rng = np.random.default_rng(5)

    states = list(iter_chain(sequences, config, UNIFORM, rng))
    assert states[0].status == "initialized"
    assert states[-1].status == "converged"
    assert all(state.status == "iterating" for state in states[1:-1])

    best_scores = [state.best.score for state in states]
    assert all(later >= earlier for earlier, later in zip(best_scores, best_scores[1:]))
    assert states[-1].stall == config.k

    n_windows = 30 - 8 + 1
    for state in states:
        assert len(state.offsets) == sequences.num_sequences
        assert all(0 <= offset < n_windows for offset in state.offsets)


def test_chain_excludes_cyclically(random_sequences):
    """Every sequence is left out in turn"""
    sequences = encode_sequences(random_sequences)
    config = create_sampler_config(k=50, motif_len=5, max_iterations=16)
    states = list(iter_chain(sequences, config, UNIFORM, np.random.default_rng(0)))
    excluded = [state.excluded for state in states[1:]]
    assert excluded == [i % 8 for i in range(len(excluded))]
    assert states[-1].iteration <= 16


def test_step_converged_chain_raises(random_sequences):
    """A converged chain cannot be advanced"""
    sequences = encode_sequences(random_sequences)
    config = create_sampler_config(motif_len=5, max_iterations=1)
    rng = np.random.default_rng(0)
    state = gibbs_step(initialize_chain(sequences, config, UNIFORM, rng), sequences, config, UNIFORM, rng)
    assert state.status == "converged"
    with pytest.raises(RuntimeError):
        gibbs_step(state, sequences, config, UNIFORM, rng)


def test_chain_sequence_equals_motif_length():
    """With one legal offset per sequence the chain is deterministic"""
    sequences = encode_sequences(["ACGTAC", "ACGTAC", "ACGTAC"])
    config = create_sampler_config(motif_len=6)
    record = run_chain(sequences, config, UNIFORM, np.random.default_rng(1))
    assert record.motif == "ACGTAC"
    assert record.offsets == (0, 0, 0)


def test_error_hierarchy():
    """All package errors are ValueErrors"""
    for error in (InvalidConfiguration, InvalidInput, DomainError):
        assert issubclass(error, GibbsMotifError)
        assert issubclass(error, ValueError)


def test_minimum_length_boundary():
    """The suggested length is the tight crossing point of the non-occurrence probability"""
    length = minimum_suggested_sequence_length(0.01, 400, 6, 4)
    assert nontarget_motif_probability(400, 6, length, 4) <= 0.01
    assert nontarget_motif_probability(400, 6, length - 1, 4) > 0.01
    assert 40000 < length < 47000


def test_minimum_length_at_motif_length():
    """A lax threshold is met by sequences as short as the motif"""
    # one binary sequence of length 5 misses a random 5-mer with probability 31/32
    assert minimum_suggested_sequence_length(0.97, 1, 5, 2) == 5
    assert minimum_suggested_sequence_length(0.96, 1, 5, 2) > 5


def test_nontarget_probability_bounds():
    """Probabilities stay in [0, 1] and complement the chance occurrence"""
    for seq_length in (6, 100, 5000, 18314, 10**6):
        value = nontarget_motif_probability(400, 6, seq_length, 4)
        assert 0.0 <= value <= 1.0
        assert value + chance_occurrence_probability(400, 6, seq_length, 4) == pytest.approx(1.0)


def test_nontarget_probability_degenerate():
    """Sequences as long as the motif almost never all contain a random motif"""
    assert nontarget_motif_probability(400, 6, 6, 4) > 0.99
    assert nontarget_motif_probability(5, 7, 7, 4) > 0.99


def test_chance_occurrence_reference_value():
    """A random 6-mer is in all 400 sequences of 18314 bp with probability close to 0.01"""
    assert chance_occurrence_probability(400, 6, 18314, 4) == pytest.approx(0.01, abs=1e-3)
    assert chance_occurrence_probability(400, 6, 20000, 4) > chance_occurrence_probability(400, 6, 18314, 4)


def test_chance_occurrence_tiny_probability():
    """A single window keeps full precision for a very unlikely match"""
    assert chance_occurrence_probability(1, 30, 30, 4) == pytest.approx(4.0**-30, rel=1e-9)
    assert chance_occurrence_probability(2, 30, 30, 4) == pytest.approx(4.0**-60, rel=1e-9)
    assert nontarget_motif_probability(1, 30, 30, 4) == 1.0


def test_significance_domain_errors():
    """Undefined probabilities raise DomainError"""
    with pytest.raises(DomainError):
        nontarget_motif_probability(400, 6, 100, 1)
    with pytest.raises(DomainError):
        nontarget_motif_probability(400, 8, 7, 4)
    with pytest.raises(DomainError):
        chance_occurrence_probability(0, 6, 100, 4)
    with pytest.raises(DomainError):
        minimum_suggested_sequence_length(0.01, 400, 6, 1)
    with pytest.raises(DomainError):
        minimum_suggested_sequence_length(0.0, 400, 6, 4)
    with pytest.raises(DomainError):
        minimum_suggested_sequence_length(1.5, 400, 6, 4)


if __name__ == "__main__":
    pytest.main([__file__])
