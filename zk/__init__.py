"""
Zero-Knowledge Vote Predicate
Merkle membership, nullifier binding and range checks for anonymous polls
"""

from .poseidon import (
    Poseidon,
    hash_pair,
    hash_single,
    is_field_element,
    to_field,
)
from .merkle import (
    MerkleVerifier,
    SparseMerkleTree,
    check_authentication_path,
)
from .vote_validator import (
    VoteInputs,
    VoteValidator,
    ValidationResult,
    Violation,
    compute_leaf,
    compute_nullifier,
    validate_vote,
)
from .nullifiers import NullifierRegistry, admit_vote, validate_nullifier_format
from .witness import build_witness, load_witness, save_witness
from .errors import (
    ZKError,
    InvalidInputError,
    NullifierError,
    InvalidNullifierError,
    NullifierReusedError,
    ProofRejectedError,
)

__version__ = "1.0.0"

__all__ = [
    # Hashing
    'Poseidon',
    'hash_pair',
    'hash_single',
    'is_field_element',
    'to_field',

    # Merkle
    'MerkleVerifier',
    'SparseMerkleTree',
    'check_authentication_path',

    # Predicate
    'VoteInputs',
    'VoteValidator',
    'ValidationResult',
    'Violation',
    'compute_leaf',
    'compute_nullifier',
    'validate_vote',

    # Verifier side
    'NullifierRegistry',
    'admit_vote',
    'validate_nullifier_format',

    # Witness files
    'build_witness',
    'load_witness',
    'save_witness',

    # Exceptions
    'ZKError',
    'InvalidInputError',
    'NullifierError',
    'InvalidNullifierError',
    'NullifierReusedError',
    'ProofRejectedError',
]
