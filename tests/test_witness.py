import json

import pytest
import yaml

from zk.errors import InvalidInputError
from zk.vote_validator import VoteValidator
from zk.witness import build_witness, load_witness, save_witness

from .conftest import POLL_ID, VOTER_INDEX


class TestBuildWitness:
    def test_wrong_secret_for_leaf(self, voter_tree):
        with pytest.raises(InvalidInputError):
            build_witness(8, voter_tree, VOTER_INDEX, POLL_ID, 1, 3)

    def test_uses_tree_path(self, honest_inputs, voter_tree):
        path, indices = voter_tree.get_path(VOTER_INDEX)
        assert honest_inputs.merkle_path == tuple(path)
        assert honest_inputs.merkle_indices == tuple(indices)
        assert honest_inputs.merkle_root == voter_tree.root


class TestWitnessFiles:
    def test_json_file(self, honest_inputs, tmp_path):
        path = save_witness(honest_inputs, tmp_path / "witness.json")

        with open(path) as f:
            raw = json.load(f)
        assert raw['secret'] == "7"
        assert len(raw['merkle_path']) == 20
        assert all(isinstance(x, str) for x in raw['merkle_path'])

        loaded = load_witness(path)
        assert loaded == honest_inputs
        assert VoteValidator().is_valid(loaded)

    def test_yaml_file(self, honest_inputs, tmp_path):
        path = save_witness(honest_inputs, tmp_path / "nested" / "witness.yaml")

        with open(path) as f:
            raw = yaml.safe_load(f)
        assert raw['poll_id'] == str(POLL_ID)

        assert load_witness(path) == honest_inputs

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "witness.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(InvalidInputError):
            load_witness(path)
