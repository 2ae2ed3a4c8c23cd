import logging
import threading
from collections import defaultdict
from typing import Dict, Optional, Set, Tuple

from .errors import InvalidNullifierError, NullifierReusedError, ProofRejectedError
from .poseidon import to_field
from .vote_validator import VoteInputs, VoteValidator

logger = logging.getLogger(__name__)


def validate_nullifier_format(nullifier: int):
    if nullifier == 0:
        raise InvalidNullifierError("Nullifier must be non-zero")


class NullifierRegistry:
    """Registered polls and their used nullifiers, the verifier-side half of double-vote prevention"""

    def __init__(self):
        # poll_id -> (merkle_root, max_options)
        self._polls: Dict[int, Tuple[int, int]] = {}
        self._used: Dict[int, Set[int]] = defaultdict(set)
        self._lock = threading.Lock()

    def register_poll(self, poll_id: int, merkle_root: int, max_options: int):
        """Fix the eligible-voter root and option count a poll's votes are checked against"""
        poll_id, merkle_root, max_options = (
            to_field(poll_id), to_field(merkle_root), to_field(max_options))
        with self._lock:
            if poll_id in self._polls:
                raise ValueError(f"Poll {poll_id} already registered")
            self._polls[poll_id] = (merkle_root, max_options)
        logger.info(f"Registered poll {poll_id} with {max_options} options")

    def poll_parameters(self, poll_id: int) -> Optional[Tuple[int, int]]:
        with self._lock:
            return self._polls.get(poll_id)

    def is_used(self, poll_id: int, nullifier: int) -> bool:
        with self._lock:
            return nullifier in self._used.get(poll_id, ())

    def consume(self, poll_id: int, nullifier: int):
        """Mark a nullifier as used, failing if it already was"""
        validate_nullifier_format(nullifier)
        with self._lock:
            used = self._used[poll_id]
            if nullifier in used:
                logger.warning(f"Nullifier replay detected for poll {poll_id}")
                raise NullifierReusedError(f"Nullifier already used for poll {poll_id}")
            used.add(nullifier)

    def count(self, poll_id: int) -> int:
        with self._lock:
            return len(self._used.get(poll_id, ()))


def admit_vote(validator: VoteValidator, registry: NullifierRegistry, inputs: VoteInputs):
    """Accept a vote once: the public inputs must match the registered poll,
    the predicate must hold and the nullifier must be fresh"""
    validate_nullifier_format(inputs.nullifier)

    parameters = registry.poll_parameters(inputs.poll_id)
    if parameters is None:
        raise ProofRejectedError(f"Poll {inputs.poll_id} is not registered")

    merkle_root, max_options = parameters
    expected = (merkle_root, inputs.nullifier, inputs.poll_id, max_options)
    if inputs.public_inputs() != expected:
        logger.warning(f"Public inputs do not match poll {inputs.poll_id}")
        raise ProofRejectedError(f"Public inputs do not match poll {inputs.poll_id}")

    if registry.is_used(inputs.poll_id, inputs.nullifier):
        raise NullifierReusedError(f"Nullifier already used for poll {inputs.poll_id}")

    if not validator.is_valid(inputs):
        # which assertion failed stays private
        raise ProofRejectedError(f"Vote for poll {inputs.poll_id} does not satisfy the predicate")

    registry.consume(inputs.poll_id, inputs.nullifier)
    logger.info(f"Vote admitted for poll {inputs.poll_id}")
