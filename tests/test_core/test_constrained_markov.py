"""Tests for the constrained positional model."""

import numpy as np
import pytest

from constrained_hmm.constraints import (
    Empty,
    Matches,
    StartsWithLetter,
    RhymesWith,
    any_of
)
from constrained_hmm.core import constrained_markov
from constrained_hmm.core.constrained_markov import (
    ConstrainedHiddenMarkovModel,
    build_constrained_model
)
from constrained_hmm.core.hidden_markov import train_base_model
from constrained_hmm.core.tokens import START_TOKEN
from constrained_hmm.exceptions import (
    ConstructionError,
    LengthMismatchError,
    ProbabilityLookupError
)


@pytest.fixture
def constrained_model(base_model, t_or_f_ending_red):
    """Trained model for sentences starting with 't'/'f' and ending with 'red'."""
    model = build_constrained_model(base_model, 4, observed_constraints=t_or_f_ending_red)
    model.train()
    return model


def _assert_normalized(model):
    for tables in (model.hidden_probs, model.observed_probs):
        for table in tables:
            for targets in table.values():
                total = sum(targets.values())
                assert total == 0.0 or total == pytest.approx(1.0, abs=1e-9)


class TestConstruction:
    """Test suite for constructor validation."""

    @pytest.mark.parametrize("length", [1, 0, -3])
    def test_sequence_length_must_exceed_one(self, base_model, length):
        with pytest.raises(ConstructionError):
            ConstrainedHiddenMarkovModel(base_model, length)

    def test_hidden_length_mismatch(self, base_model):
        with pytest.raises(LengthMismatchError):
            build_constrained_model(base_model, 4, hidden_constraints=[Empty()] * 3)

    def test_observed_length_mismatch(self, base_model):
        with pytest.raises(LengthMismatchError):
            build_constrained_model(base_model, 2, observed_constraints=[Empty()] * 3)

    def test_length_mismatch_is_construction_error(self, base_model):
        with pytest.raises(ConstructionError):
            build_constrained_model(base_model, 2, observed_constraints=[])

    def test_missing_constraints_default_to_empty(self, base_model):
        model = build_constrained_model(base_model, 3)
        assert model.hidden_constraints == [Empty()] * 3
        assert model.observed_constraints == [Empty()] * 3

    def test_untrained_model(self, base_model):
        model = build_constrained_model(base_model, 3)
        assert not model.is_satisfiable
        assert not model.validate()['trained']


class TestMaskingPhase:
    """Test suite for removing constraint-violating states."""

    def test_observed_masking(self, base_model):
        model = build_constrained_model(base_model, 4, observed_constraints=[
            StartsWithLetter('t'), Empty(), Empty(), Matches('red')])
        model.duplicate_matrices()
        model.remove_constraint_violating_states()

        assert model.observed_probs[0]["VBZ"]["likes"] == 0.0
        assert model.observed_probs[0]["NNP"]["Ted"] == pytest.approx(0.2)
        assert model.observed_probs[1]["VBZ"]["likes"] == pytest.approx(0.5)
        assert model.observed_probs[3]["NN"]["red"] == pytest.approx(2 / 3)
        assert model.observed_probs[3]["NN"]["green"] == 0.0
        assert model.observed_probs[3]["RB"]["now"] == 0.0

    def test_masked_keys_are_kept(self, base_model):
        model = build_constrained_model(base_model, 2, observed_constraints=[
            Matches('Ted'), Empty()])
        model.duplicate_matrices()
        model.remove_constraint_violating_states()
        assert set(model.observed_probs[0]["NNP"]) == {"Ted", "Mary", "Fred"}

    def test_base_model_untouched(self, base_model):
        model = build_constrained_model(base_model, 4, hidden_constraints=[
            Matches('NNP')] * 4)
        model.train()
        assert base_model.hidden_probs["NNP"]["RB"] == pytest.approx(0.6)
        assert base_model.observed_probs["NN"]["red"] == pytest.approx(2 / 3)


class TestDeadStatePhase:
    """Test suite for arc-consistency pruning."""

    def test_hidden_constraint_at_last_position(self, base_model):
        model = build_constrained_model(base_model, 4, hidden_constraints=[
            Empty(), Empty(), Empty(), Matches('NNP')])
        model.duplicate_matrices()
        model.remove_constraint_violating_states()
        model.remove_dead_states()

        hidden = model.hidden_probs
        assert hidden[3]["VBZ"]["NNP"] == pytest.approx(0.25)
        assert hidden[3]["VBZ"]["NN"] == 0.0

        assert hidden[2]["NNP"]["VBZ"] == pytest.approx(0.4)
        assert hidden[2]["RB"]["VBZ"] == pytest.approx(1.0)
        assert hidden[2]["NNP"]["RB"] == 0.0
        assert hidden[2]["VBZ"]["NN"] == 0.0
        assert hidden[2]["VBZ"]["NNP"] == 0.0

        assert hidden[1]["NNP"]["RB"] == pytest.approx(0.6)
        assert hidden[1]["VBZ"]["NNP"] == pytest.approx(0.25)
        assert hidden[1]["RB"]["VBZ"] == 0.0

    def test_observed_constraints(self, base_model):
        model = build_constrained_model(base_model, 4, observed_constraints=[
            StartsWithLetter('t'), Empty(), Empty(), Matches('red')])
        model.duplicate_matrices()
        model.remove_constraint_violating_states()
        model.remove_dead_states()

        hidden = model.hidden_probs
        assert hidden[0][START_TOKEN]["NNP"] == pytest.approx(1.0)
        assert hidden[0]["VBZ"]["NNP"] == pytest.approx(0.25)
        for context, target in [("NNP", "RB"), ("NNP", "VBZ"), ("RB", "VBZ"), ("VBZ", "NN")]:
            assert hidden[0][context][target] == 0.0

        assert hidden[2]["NNP"]["VBZ"] == pytest.approx(0.4)
        assert hidden[2]["NNP"]["RB"] == 0.0

        assert hidden[3]["VBZ"]["NN"] == pytest.approx(0.75)
        for context, target in [("NNP", "RB"), ("RB", "VBZ"), ("NNP", "VBZ"),
                                ("VBZ", "NNP"), (START_TOKEN, "NNP")]:
            assert hidden[3][context][target] == 0.0


class TestConcreteScenario:
    """Sentences starting with 't' or 'f' and ending with 'red'."""

    def test_transition_probabilities(self, constrained_model):
        hidden = constrained_model.hidden_probs
        assert hidden[0]["VBZ"]["NNP"] == pytest.approx(1.0)
        assert hidden[1]["NNP"]["RB"] == pytest.approx(1.0)
        assert hidden[1]["VBZ"]["NNP"] == pytest.approx(1.0)
        assert hidden[1]["VBZ"]["NN"] == 0.0
        assert hidden[2]["NNP"]["VBZ"] == pytest.approx(1.0)
        assert hidden[2]["NNP"]["RB"] == 0.0
        assert hidden[2]["RB"]["VBZ"] == pytest.approx(1.0)
        assert hidden[3]["VBZ"]["NN"] == pytest.approx(1.0)
        assert hidden[3]["VBZ"]["NNP"] == 0.0
        assert hidden[3]["RB"]["VBZ"] == 0.0

    def test_emission_probabilities(self, constrained_model):
        observed = constrained_model.observed_probs
        assert observed[0]["NNP"]["Fred"] == pytest.approx(0.5)
        assert observed[0]["NNP"]["Ted"] == pytest.approx(0.5)
        assert observed[0]["NNP"]["Mary"] == 0.0
        assert observed[0]["VBZ"]["likes"] == 0.0
        assert observed[1]["NNP"]["Mary"] == pytest.approx(0.6)
        assert observed[2]["NNP"]["Mary"] == pytest.approx(0.6)
        assert observed[3]["NN"]["red"] == pytest.approx(1.0)
        assert observed[3]["NN"]["green"] == 0.0
        assert observed[3]["NNP"]["Mary"] == 0.0

    @pytest.mark.parametrize("sequence,expected", [
        ("Ted:NNP now:RB likes:VBZ red:NN", 1 / 6),
        ("Fred:NNP now:RB likes:VBZ red:NN", 1 / 6),
        ("Ted:NNP now:RB loves:VBZ red:NN", 1 / 12),
        ("Fred:NNP now:RB sees:VBZ red:NN", 1 / 12),
        ("Ted:NNP sometimes:RB likes:VBZ red:NN", 1 / 12),
        ("Fred:NNP sometimes:RB loves:VBZ red:NN", 1 / 24),
        ("Ted:NNP sometimes:RB sees:VBZ red:NN", 1 / 24),
    ])
    def test_sequence_probabilities(self, constrained_model, sequence, expected):
        assert constrained_model.sequence_probability(sequence) == pytest.approx(expected)

    def test_violating_sequence_has_zero_probability(self, constrained_model):
        assert constrained_model.sequence_probability(
            "Mary:NNP now:RB likes:VBZ red:NN") == 0.0
        assert constrained_model.sequence_probability(
            "Ted:NNP now:RB likes:VBZ green:NN") == 0.0

    def test_satisfiable(self, constrained_model):
        assert constrained_model.is_satisfiable

    def test_normalization_invariant(self, constrained_model):
        _assert_normalized(constrained_model)
        report = constrained_model.validate()
        assert report['valid'], report['errors']

    def test_samples_satisfy_constraints(self, constrained_model, t_or_f_ending_red, rng):
        for _ in range(50):
            tokens = constrained_model.sample_sequence(rng).split()
            assert len(tokens) == 4
            surfaces = [token.split(":")[0] for token in tokens]
            for constraint, surface in zip(t_or_f_ending_red, surfaces):
                assert constraint.is_satisfied_by(surface)
            assert constrained_model.sequence_probability(" ".join(tokens)) > 0.0

    def test_queries_are_deterministic(self, constrained_model):
        sequence = "Ted:NNP now:RB likes:VBZ red:NN"
        values = {constrained_model.sequence_probability(sequence) for _ in range(3)}
        assert len(values) == 1

    def test_retraining_rebuilds_tables(self, constrained_model):
        before = constrained_model.sequence_probability("Ted:NNP now:RB likes:VBZ red:NN")
        constrained_model.train()
        assert len(constrained_model.hidden_probs) == 4
        assert constrained_model.sequence_probability(
            "Ted:NNP now:RB likes:VBZ red:NN") == pytest.approx(before)


class TestUniquePath:
    """Only one sequence of the corpus survives the constraints."""

    def test_sampling_is_forced(self, unique_path_corpus):
        base = train_base_model(1, unique_path_corpus)
        model = build_constrained_model(base, 4, observed_constraints=[
            any_of(StartsWithLetter('t'), StartsWithLetter('f')),
            Empty(),
            Empty(),
            Matches('green'),
        ])
        model.train()

        rng = np.random.default_rng(123)
        for _ in range(10):
            assert model.sample_sequence(rng) == "Ted:NNP now:RB likes:VBZ green:NN"
        assert model.sequence_probability("Ted:NNP now:RB likes:VBZ green:NN") == pytest.approx(1.0)


class TestNoOpConstraints:
    """Empty constraints reproduce or condition the base model."""

    def test_round_trip_when_every_label_continues(self, ergodic_corpus):
        base = train_base_model(1, ergodic_corpus)
        model = build_constrained_model(base, 5)
        model.train()

        for i in range(5):
            for context, targets in base.hidden_probs.items():
                for target, weight in targets.items():
                    assert model.hidden_probs[i][context][target] == pytest.approx(weight)
            for state, surfaces in base.observed_probs.items():
                for surface, weight in surfaces.items():
                    assert model.observed_probs[i][state][surface] == pytest.approx(weight)

        sequence = "a:X b:Y c:X d:Y"
        assert model.sequence_probability(sequence) == pytest.approx(
            base.sequence_probability(sequence))

    def test_line_final_label_pruned_before_last_position(self, base_model):
        model = build_constrained_model(base_model, 4)
        model.train()

        # NN has no outgoing transitions, so it may only appear last
        assert model.hidden_probs[0]["VBZ"]["NN"] == 0.0
        assert model.hidden_probs[2]["VBZ"]["NN"] == 0.0
        assert model.hidden_probs[3]["VBZ"]["NN"] == pytest.approx(0.75)
        _assert_normalized(model)

    def test_conditioned_probability(self, base_model):
        model = build_constrained_model(base_model, 4)
        model.train()
        sequence = "Ted:NNP sometimes:RB loves:VBZ Fred:NNP"
        # Base probability divided by the mass of all length-4 paths (0.7)
        assert model.sequence_probability(sequence) == pytest.approx(0.0005 / 0.7)
        assert model.sequence_probability(sequence) == pytest.approx(0.0007142857142857144)


class TestHiddenConstraints:
    """Samples honour constraints on hidden labels."""

    def test_samples_satisfy_hidden_constraints(self, base_model, rng):
        hidden_constraints = [
            Matches('NNP'),
            Empty(),
            Matches('VBZ'),
            any_of(Matches('NN'), Matches('NNP')),
        ]
        model = build_constrained_model(base_model, 4, hidden_constraints=hidden_constraints)
        model.train()
        assert model.is_satisfiable

        endings = set()
        for _ in range(50):
            tokens = model.sample_sequence(rng).split()
            assert len(tokens) == 4
            labels = [token.split(":")[1] for token in tokens]
            for constraint, label in zip(hidden_constraints, labels):
                assert constraint.is_satisfied_by(label)
            assert labels[:3] == ["NNP", "RB", "VBZ"]
            endings.add(labels[3])
        assert endings <= {"NN", "NNP"}


class TestLargeTables:
    """Duplicating very large tables warns."""

    def test_large_table_warning(self, base_model, monkeypatch):
        monkeypatch.setattr(constrained_markov, 'LARGE_TABLE_WARNING', 5)
        model = build_constrained_model(base_model, 4)
        with pytest.warns(UserWarning, match="Large positional tables"):
            model.train()

    def test_small_tables_do_not_warn(self, base_model, recwarn):
        model = build_constrained_model(base_model, 4)
        model.train()
        assert not [w for w in recwarn if "Large positional tables" in str(w.message)]


class TestUnsatisfiable:
    """Constraints no corpus sequence can meet."""

    def test_unsatisfiable_constraints(self, base_model, caplog):
        model = build_constrained_model(base_model, 2, observed_constraints=[
            Matches('red'), Empty()])
        with caplog.at_level("WARNING"):
            model.train()

        assert not model.is_satisfiable
        assert "satisfies the constraints" in caplog.text
        assert model.sample_sequence(np.random.default_rng(0)) == ""
        assert model.validate()['valid']

    def test_rhyme_constraint(self, base_model, rng):
        model = build_constrained_model(base_model, 4, observed_constraints=[
            Empty(), Empty(), Empty(), RhymesWith('bed')])
        model.train()
        assert model.is_satisfiable
        for _ in range(10):
            last_surface = model.sample_sequence(rng).split()[-1].split(":")[0]
            assert last_surface in {"red", "Ted"}


class TestProbabilityQueryErrors:
    """Undefined queries raise rather than return zero."""

    def test_too_many_positions(self, constrained_model):
        with pytest.raises(ProbabilityLookupError):
            constrained_model.sequence_probability(
                "Ted:NNP now:RB likes:VBZ red:NN now:RB")

    def test_unknown_emission(self, constrained_model):
        with pytest.raises(ProbabilityLookupError):
            constrained_model.sequence_probability("Bob:NNP")

    def test_unknown_transition(self, constrained_model):
        with pytest.raises(ProbabilityLookupError):
            constrained_model.sequence_probability("Ted:NNP red:NN")

    def test_prefix_is_scored(self, constrained_model):
        assert constrained_model.sequence_probability("Ted:NNP now:RB") == pytest.approx(0.5 * 2 / 3)


class TestSecondOrder:
    """Constrained model over an order-2 base model."""

    def test_constraints_apply_to_window_keys(self, base_corpus, rng):
        base = train_base_model(2, base_corpus)
        model = build_constrained_model(base, 2, hidden_constraints=[
            Matches('NNP RB'), Empty()])
        model.train()

        assert model.hidden_probs[0][f"{START_TOKEN} {START_TOKEN}"]["NNP RB"] == pytest.approx(1.0)
        tokens = model.sample_sequence(rng).split()
        assert len(tokens) == 4
        assert [token.split(":")[1] for token in tokens] == ["NNP", "RB", "VBZ", "NN"]
