import pytest

import zk.merkle as merkle_module
import zk.vote_validator as validator_module
from config.config import CircuitConfig
from zk.errors import InvalidInputError
from zk.merkle import SparseMerkleTree
from zk.poseidon import hash_pair, hash_single
from zk.vote_validator import (
    ValidationResult,
    Violation,
    VoteInputs,
    VoteValidator,
    compute_leaf,
    compute_nullifier,
    validate_vote,
)
from zk.witness import build_witness

from .conftest import MAX_OPTIONS, POLL_ID, VOTER_INDEX, VOTER_SECRET


class TestEndToEnd:
    def test_honest_vote_holds(self, validator, honest_inputs):
        result = validator.evaluate(honest_inputs)
        assert result.valid
        assert result.violation is None
        assert result.violations == ()
        assert validator.is_valid(honest_inputs)

    def test_choice_out_of_range(self, validator, honest_inputs):
        result = validator.evaluate(honest_inputs.replace(vote_choice=5))
        assert result.violations == (Violation.RANGE_VIOLATION,)

    def test_other_nullifier(self, validator, honest_inputs):
        for nullifier in (0, 1, honest_inputs.nullifier + 1, compute_nullifier(VOTER_SECRET, POLL_ID + 1)):
            result = validator.evaluate(honest_inputs.replace(nullifier=nullifier))
            assert result.violations == (Violation.NULLIFIER_MISMATCH,)

    def test_wrong_root(self, validator, honest_inputs, voter_tree):
        result = validator.evaluate(honest_inputs.replace(merkle_root=voter_tree.root - 1))
        assert result.violations == (Violation.MEMBERSHIP_FAILURE,)

    def test_secret_not_in_tree(self, validator, voter_tree):
        path, indices = voter_tree.get_path(VOTER_INDEX)
        inputs = VoteInputs(
            secret=8,
            vote_choice=0,
            merkle_path=tuple(path),
            merkle_indices=tuple(indices),
            merkle_root=voter_tree.root,
            nullifier=compute_nullifier(8, POLL_ID),
            poll_id=POLL_ID,
            max_options=MAX_OPTIONS,
        )
        assert validator.evaluate(inputs).violations == (Violation.MEMBERSHIP_FAILURE,)

    def test_every_failure_is_reported(self, validator, honest_inputs):
        inputs = honest_inputs.replace(vote_choice=9, nullifier=123, merkle_root=456)
        assert validator.evaluate(inputs).violations == (
            Violation.RANGE_VIOLATION,
            Violation.NULLIFIER_MISMATCH,
            Violation.MEMBERSHIP_FAILURE,
        )

    def test_twenty_two_hash_calls(self, validator, honest_inputs, monkeypatch):
        calls = []

        def counting(fn):
            def wrapper(*args):
                calls.append(args)
                return fn(*args)
            return wrapper

        monkeypatch.setattr(merkle_module, "hash_pair", counting(hash_pair))
        monkeypatch.setattr(validator_module, "hash_pair", counting(hash_pair))
        monkeypatch.setattr(validator_module, "hash_single", counting(hash_single))

        assert validator.evaluate(honest_inputs).valid
        assert len(calls) == 22

    def test_validate_vote_wrapper(self, honest_inputs):
        assert validate_vote(honest_inputs).valid


class TestRangeCheck:
    def test_upper_boundary(self, validator, honest_inputs):
        assert validator.evaluate(honest_inputs.replace(vote_choice=MAX_OPTIONS - 1)).valid
        assert validator.evaluate(honest_inputs.replace(vote_choice=MAX_OPTIONS)).violations == (
            Violation.RANGE_VIOLATION,)

    def test_zero_choice(self, validator, honest_inputs):
        assert validator.evaluate(honest_inputs.replace(vote_choice=0)).valid

    @pytest.mark.parametrize("choice", [0, 1, 2])
    def test_zero_options_rejects_everything(self, validator, honest_inputs, choice):
        result = validator.evaluate(honest_inputs.replace(vote_choice=choice, max_options=0))
        assert result.violations == (Violation.RANGE_VIOLATION,)

    def test_values_wider_than_choice_bits(self, validator):
        assert validator.check_range(1, 2 ** 32 - 1)
        assert not validator.check_range(2 ** 32, 2 ** 32 + 1)
        assert not validator.check_range(1, 2 ** 32)

    def test_custom_bit_width(self):
        narrow = VoteValidator(CircuitConfig(choice_bits=8))
        assert narrow.check_range(254, 255)
        assert not narrow.check_range(1, 256)


class TestNullifier:
    def test_deterministic(self):
        assert compute_nullifier(7, 42) == compute_nullifier(7, 42)
        assert compute_nullifier(7, 42) == hash_pair(7, 42)

    def test_differs_across_polls(self):
        assert compute_nullifier(7, 42) != compute_nullifier(7, 43)

    def test_differs_across_secrets(self):
        assert compute_nullifier(7, 42) != compute_nullifier(8, 42)

    def test_differs_from_leaf(self):
        assert compute_nullifier(7, 0) != compute_leaf(7)


class TestDegenerateSecret:
    def test_zero_secret_rejected_even_with_valid_tree(self, validator):
        tree = SparseMerkleTree(20)
        tree.insert(3, compute_leaf(0))
        inputs = build_witness(0, tree, 3, POLL_ID, vote_choice=1, max_options=MAX_OPTIONS)

        result = validator.evaluate(inputs)
        assert result.violations == (Violation.DEGENERATE_SECRET,)
        assert not validator.is_valid(inputs)


class TestInputConstruction:
    def test_string_inputs_are_parsed(self, honest_inputs):
        data = honest_inputs.to_dict()
        data['secret'] = hex(VOTER_SECRET)
        data['merkle_indices'] = [str(i) for i in data['merkle_indices']]
        parsed = VoteInputs.from_dict(data)
        assert parsed == honest_inputs

    def test_missing_input(self, honest_inputs):
        data = honest_inputs.to_dict()
        del data['poll_id']
        with pytest.raises(InvalidInputError, match="poll_id"):
            VoteInputs.from_dict(data)

    def test_non_binary_index(self, honest_inputs):
        indices = list(honest_inputs.merkle_indices)
        indices[4] = 2
        with pytest.raises(InvalidInputError):
            honest_inputs.replace(merkle_indices=tuple(indices))

    @pytest.mark.parametrize("bad_index", [0.0, 1.0, True, None, "2"])
    def test_index_type_is_strict(self, honest_inputs, bad_index):
        indices = list(honest_inputs.merkle_indices)
        indices[0] = bad_index
        with pytest.raises(InvalidInputError):
            honest_inputs.replace(merkle_indices=tuple(indices))

    def test_mismatched_lengths(self, honest_inputs):
        with pytest.raises(InvalidInputError):
            honest_inputs.replace(merkle_path=honest_inputs.merkle_path[:-1])

    def test_wrong_depth_rejected_before_evaluation(self, validator, honest_inputs):
        short = honest_inputs.replace(merkle_path=honest_inputs.merkle_path[:-1],
                                      merkle_indices=honest_inputs.merkle_indices[:-1])
        with pytest.raises(InvalidInputError):
            validator.evaluate(short)

    def test_out_of_field_value(self, honest_inputs):
        with pytest.raises(InvalidInputError):
            honest_inputs.replace(poll_id=-1)

    def test_inputs_are_immutable(self, honest_inputs):
        with pytest.raises(AttributeError):
            honest_inputs.secret = 8

    def test_public_inputs_order(self, honest_inputs, voter_tree):
        assert honest_inputs.public_inputs() == (
            voter_tree.root,
            compute_nullifier(VOTER_SECRET, POLL_ID),
            POLL_ID,
            MAX_OPTIONS,
        )


class TestValidationResult:
    def test_truthiness(self):
        assert ValidationResult()
        assert not ValidationResult((Violation.DEGENERATE_SECRET,))

    def test_first_violation(self):
        result = ValidationResult((Violation.NULLIFIER_MISMATCH, Violation.DEGENERATE_SECRET))
        assert result.violation is Violation.NULLIFIER_MISMATCH
