import pytest

from config.config import CircuitConfig
from zk.merkle import SparseMerkleTree
from zk.vote_validator import VoteValidator, compute_leaf
from zk.witness import build_witness

VOTER_SECRET = 7
VOTER_INDEX = 5
POLL_ID = 42
MAX_OPTIONS = 3


@pytest.fixture(scope="session")
def voter_tree():
    """Depth-20 tree holding hash_single(7) at index 5 plus a few other voters"""
    tree = SparseMerkleTree(20)
    tree.insert(VOTER_INDEX, compute_leaf(VOTER_SECRET))
    tree.insert(0, compute_leaf(1001))
    tree.insert(6, compute_leaf(1002))
    tree.insert(1 << 19, compute_leaf(1003))
    return tree


@pytest.fixture(scope="session")
def honest_inputs(voter_tree):
    return build_witness(VOTER_SECRET, voter_tree, VOTER_INDEX, POLL_ID,
                         vote_choice=1, max_options=MAX_OPTIONS)


@pytest.fixture
def validator():
    return VoteValidator(CircuitConfig())
