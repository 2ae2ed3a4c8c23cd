"""
Vote validity predicate.

A vote is valid when, simultaneously:
  - the vote choice lies in [0, max_options) as unsigned integers,
  - the nullifier equals hash_pair(secret, poll_id),
  - hash_single(secret) is a leaf of the tree with the given root,
  - the secret is non-zero.

VoteValidator.evaluate() reports every failed check for tests and tooling.
VoteValidator.is_valid() is the production form and only says yes or no.
"""

import logging
import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from config.config import CircuitConfig

from .errors import InvalidInputError
from .merkle import MerkleVerifier, check_authentication_path
from .poseidon import hash_pair, hash_single, to_field

logger = logging.getLogger(__name__)


class Violation(Enum):
    """Predicate assertions, in evaluation order"""
    RANGE_VIOLATION = "range_violation"
    NULLIFIER_MISMATCH = "nullifier_mismatch"
    MEMBERSHIP_FAILURE = "membership_failure"
    DEGENERATE_SECRET = "degenerate_secret"


def compute_leaf(secret: int) -> int:
    """Leaf commitment stored in the eligible-voter tree"""
    return hash_single(secret)


def compute_nullifier(secret: int, poll_id: int) -> int:
    """Poll-specific nullifier revealed with the vote"""
    return hash_pair(secret, poll_id)


def _parse_index(value: Any, level: int) -> int:
    if isinstance(value, str):
        value = value.strip()
        if value in ("0", "1"):
            return int(value)
    elif not isinstance(value, bool):
        # ints and numpy integers, never floats
        try:
            if operator.index(value) in (0, 1):
                return operator.index(value)
        except TypeError:
            pass
    raise InvalidInputError(f"Index at level {level} must be 0 or 1, got {value!r}")


@dataclass(frozen=True)
class VoteInputs:
    """Private and public inputs of one proof instance"""
    # private
    secret: int
    vote_choice: int
    merkle_path: Tuple[int, ...]
    merkle_indices: Tuple[int, ...]
    # public
    merkle_root: int
    nullifier: int
    poll_id: int
    max_options: int

    def __post_init__(self):
        for name in ('secret', 'vote_choice', 'merkle_root', 'nullifier', 'poll_id', 'max_options'):
            object.__setattr__(self, name, to_field(getattr(self, name)))

        object.__setattr__(self, 'merkle_path', tuple(to_field(x) for x in self.merkle_path))
        object.__setattr__(self, 'merkle_indices',
                           tuple(_parse_index(x, i) for i, x in enumerate(self.merkle_indices)))

        if len(self.merkle_path) != len(self.merkle_indices):
            raise InvalidInputError(
                f"Merkle path ({len(self.merkle_path)}) and indices "
                f"({len(self.merkle_indices)}) differ in length")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VoteInputs':
        missing = [name for name in INPUT_NAMES if name not in data]
        if missing:
            raise InvalidInputError(f"Missing inputs: {', '.join(missing)}")
        return cls(**{name: data[name] for name in INPUT_NAMES})

    def to_dict(self) -> Dict[str, Any]:
        """Field values as decimal strings, indices as ints"""
        return {
            'secret': str(self.secret),
            'vote_choice': str(self.vote_choice),
            'merkle_path': [str(x) for x in self.merkle_path],
            'merkle_indices': list(self.merkle_indices),
            'merkle_root': str(self.merkle_root),
            'nullifier': str(self.nullifier),
            'poll_id': str(self.poll_id),
            'max_options': str(self.max_options),
        }

    def public_inputs(self) -> Tuple[int, int, int, int]:
        """Public inputs in verifier order"""
        return (self.merkle_root, self.nullifier, self.poll_id, self.max_options)

    def replace(self, **changes) -> 'VoteInputs':
        values = {name: getattr(self, name) for name in INPUT_NAMES}
        values.update(changes)
        return VoteInputs(**values)


INPUT_NAMES = (
    'secret', 'vote_choice', 'merkle_path', 'merkle_indices',
    'merkle_root', 'nullifier', 'poll_id', 'max_options',
)


@dataclass(frozen=True)
class ValidationResult:
    violations: Tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.violations

    @property
    def violation(self) -> Optional[Violation]:
        """First failed assertion, if any"""
        return self.violations[0] if self.violations else None

    def __bool__(self) -> bool:
        return self.valid


def _as_unsigned(value: int, bits: int) -> Optional[int]:
    """Value as a `bits`-wide unsigned integer, None if it does not fit"""
    return value if 0 <= value < (1 << bits) else None


class VoteValidator:
    """Evaluates the vote predicate for a fixed circuit shape"""

    def __init__(self, config: Optional[CircuitConfig] = None):
        self.config = config or CircuitConfig()
        self.verifier = MerkleVerifier(self.config.tree_depth)

    def check_shape(self, inputs: VoteInputs):
        check_authentication_path(inputs.merkle_path, inputs.merkle_indices, self.config.tree_depth)

    def check_range(self, vote_choice: int, max_options: int) -> bool:
        choice = _as_unsigned(vote_choice, self.config.choice_bits)
        limit = _as_unsigned(max_options, self.config.choice_bits)
        if choice is None or limit is None:
            return False
        return choice < limit

    def check_nullifier(self, secret: int, poll_id: int, nullifier: int) -> bool:
        return compute_nullifier(secret, poll_id) == nullifier

    def check_membership(self, secret: int, root: int, path: Sequence[int],
                         indices: Sequence[int]) -> bool:
        return self.verifier.verify_membership(compute_leaf(secret), root, path, indices)

    def evaluate(self, inputs: VoteInputs) -> ValidationResult:
        """Run every assertion and report the ones that fail"""
        self.check_shape(inputs)

        outcomes = (
            (Violation.RANGE_VIOLATION,
             self.check_range(inputs.vote_choice, inputs.max_options)),
            (Violation.NULLIFIER_MISMATCH,
             self.check_nullifier(inputs.secret, inputs.poll_id, inputs.nullifier)),
            (Violation.MEMBERSHIP_FAILURE,
             self.check_membership(inputs.secret, inputs.merkle_root,
                                   inputs.merkle_path, inputs.merkle_indices)),
            (Violation.DEGENERATE_SECRET, inputs.secret != 0),
        )

        violations = tuple(violation for violation, passed in outcomes if not passed)
        if violations:
            logger.debug(f"Vote predicate failed for poll {inputs.poll_id}: "
                         f"{[v.value for v in violations]}")
        else:
            logger.debug(f"Vote predicate holds for poll {inputs.poll_id}")
        return ValidationResult(violations)

    def is_valid(self, inputs: VoteInputs) -> bool:
        return self.evaluate(inputs).valid


def validate_vote(inputs: VoteInputs, config: Optional[CircuitConfig] = None) -> ValidationResult:
    """Convenience wrapper around VoteValidator.evaluate"""
    return VoteValidator(config).evaluate(inputs)

