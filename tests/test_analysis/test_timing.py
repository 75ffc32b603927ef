"""Tests for the running-time benchmark harness."""

import pandas as pd
import pytest

from constrained_hmm.analysis.timing import (
    make_synthetic_corpus,
    time_training,
    time_sampling,
    time_alphabet_sizes,
    time_sequence_lengths,
    save_timings
)
from constrained_hmm.core.hidden_markov import train_base_model


class TestSyntheticCorpus:
    """Test suite for make_synthetic_corpus."""

    def test_open_corpus_shape(self):
        lines = make_synthetic_corpus(3, closed=False).split("\n")
        assert len(lines) == 3
        assert lines[1] == "0001:0000 0001:0001 0001:0002"

    def test_closing_line(self):
        lines = make_synthetic_corpus(3).split("\n")
        assert len(lines) == 4
        assert lines[-1] == "0000:0002 0000:0000"

    def test_every_label_continues(self):
        model = train_base_model(1, make_synthetic_corpus(4))
        for label in ["0000", "0001", "0002", "0003"]:
            assert label in model.hidden_probs

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            make_synthetic_corpus(0)


class TestTimings:
    """Test suite for the timing sweeps."""

    def test_time_training_and_sampling(self, rng):
        elapsed, model = time_training(make_synthetic_corpus(4), 6)
        assert elapsed >= 0.0
        assert model.is_satisfiable
        assert time_sampling(model, rng) >= 0.0

    def test_alphabet_sweep(self):
        timings = time_alphabet_sizes([3, 4], sequence_length=5,
                                      train_repeats=1, gen_repeats=2)
        assert isinstance(timings, pd.DataFrame)
        assert list(timings.columns) == ['alphabet_size', 'average_train_time',
                                         'average_gen_time']
        assert timings['alphabet_size'].tolist() == [3, 4]
        assert (timings['average_train_time'] >= 0).all()

    def test_length_sweep(self):
        timings = time_sequence_lengths([2, 8], alphabet_size=3,
                                        train_repeats=1, gen_repeats=1)
        assert list(timings.columns) == ['sequence_length', 'average_train_time',
                                         'average_gen_time']
        assert timings['sequence_length'].tolist() == [2, 8]

    def test_invalid_repeats(self):
        with pytest.raises(ValueError):
            time_alphabet_sizes([3], train_repeats=0)

    def test_save_timings(self, tmp_path):
        timings = time_alphabet_sizes([3], train_repeats=1, gen_repeats=1)
        path = save_timings(timings, tmp_path / "out" / "times.csv")
        loaded = pd.read_csv(path)
        assert loaded['alphabet_size'].tolist() == [3]
        assert list(loaded.columns) == list(timings.columns)
