"""
Poseidon hash over the BN254 scalar field.

Two fixed-arity entry points are exposed, hash_pair(a, b) and hash_single(a),
so that argument order and arity stay explicit at every call site. Both run
the same width-3 permutation; the capacity element carries the input length
(arity * 2^64), which keeps hash_single(a) distinct from hash_pair(a, 0).
"""

import logging
import operator
from collections import deque
from functools import lru_cache
from typing import Iterator, List, Union

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

FieldLike = Union[int, str]


class Poseidon:
    """Poseidon permutation with t=3, x^5 S-box"""

    # BN254 scalar field prime
    PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617
    FIELD_BITS = 254

    FULL_ROUNDS = 8
    PARTIAL_ROUNDS = 57
    WIDTH = 3  # 1 capacity + 2 rate
    ALPHA = 5

    # MDS matrix from circomlib for t=3
    MDS_MATRIX = [
        [0x109b7f411ba0e4c9b2b70caf5c36a7b194be7c11ad24378bfedb68592ba8118b,
         0x2969f27eed31a480b9c36c764379dbca2cc8fdd1415c3dded62940bcde0bd771,
         0x16ed41e13bb9c0c66ae119424fddbcbc9314dc9fdbdeea55d6c64543dc4903e0],
        [0x2e2419f9ec02ec394c9871c832963dc1b89d743c8c7b964029b2311687b1fe23,
         0x176cc029695ad02582a70eff08a6fd99d057e12e58e7d7b6b16cdfabc8ee2911,
         0x19a3fc0a56702bf417ba7fee3802593fa644470307043f7773279cd71d25d5e0],
        [0x2b90bba00fca0589f617e7dcbfe82e0df706ab640ceb247b791a93b74e36736d,
         0x101071f0032379b697315876690f053d148d4e109f5fb065c8aacc55a0f89bfa,
         0x0ee972cfc5375bf0dfca69bb79fb73c7a687c3d2f966b3d68a3725f0292e4c5d]
    ]

    @staticmethod
    def _grain_bits() -> Iterator[int]:
        """Grain LFSR in self-shrinking mode, seeded with the instance parameters"""
        seed: List[int] = []

        def push(value: int, n_bits: int):
            seed.extend((value >> (n_bits - 1 - i)) & 1 for i in range(n_bits))

        push(1, 2)  # prime field
        push(0, 4)  # x^alpha S-box
        push(Poseidon.FIELD_BITS, 12)
        push(Poseidon.WIDTH, 12)
        push(Poseidon.FULL_ROUNDS, 10)
        push(Poseidon.PARTIAL_ROUNDS, 10)
        push((1 << 30) - 1, 30)

        state = deque(seed, maxlen=80)

        def step() -> int:
            bit = state[62] ^ state[51] ^ state[38] ^ state[23] ^ state[13] ^ state[0]
            state.append(bit)
            return bit

        for _ in range(160):
            step()

        while True:
            first = step()
            second = step()
            if first:
                yield second

    @staticmethod
    @lru_cache(maxsize=1)
    def round_constants() -> List[int]:
        """Round constants, rejection-sampled from the Grain stream"""
        bits = Poseidon._grain_bits()
        total = (Poseidon.FULL_ROUNDS + Poseidon.PARTIAL_ROUNDS) * Poseidon.WIDTH
        constants = []
        while len(constants) < total:
            value = 0
            for _ in range(Poseidon.FIELD_BITS):
                value = (value << 1) | next(bits)
            if value < Poseidon.PRIME:
                constants.append(value)
        logger.debug(f"Generated {len(constants)} Poseidon round constants")
        return constants

    @staticmethod
    def ark(state: List[int], constants: List[int], constant_idx: int) -> List[int]:
        """Add round constants"""
        return [(state[i] + constants[constant_idx + i]) % Poseidon.PRIME
                for i in range(Poseidon.WIDTH)]

    @staticmethod
    def sbox(state: List[int], full_round: bool) -> List[int]:
        """Apply S-box (x^5 mod p)"""
        if full_round:
            return [pow(x, Poseidon.ALPHA, Poseidon.PRIME) for x in state]
        return [pow(state[0], Poseidon.ALPHA, Poseidon.PRIME)] + state[1:]

    @staticmethod
    def mix(state: List[int]) -> List[int]:
        """Apply MDS matrix multiplication"""
        return [
            sum(Poseidon.MDS_MATRIX[i][j] * state[j] for j in range(Poseidon.WIDTH)) % Poseidon.PRIME
            for i in range(Poseidon.WIDTH)
        ]

    @staticmethod
    def permute(state: List[int]) -> List[int]:
        constants = Poseidon.round_constants()
        half_full = Poseidon.FULL_ROUNDS // 2
        rounds = Poseidon.FULL_ROUNDS + Poseidon.PARTIAL_ROUNDS

        constant_idx = 0
        for r in range(rounds):
            state = Poseidon.ark(state, constants, constant_idx)
            constant_idx += Poseidon.WIDTH
            full_round = r < half_full or r >= half_full + Poseidon.PARTIAL_ROUNDS
            state = Poseidon.sbox(state, full_round)
            state = Poseidon.mix(state)
        return state

    @staticmethod
    def hash(inputs: List[int]) -> int:
        """Fixed-length sponge over one or two field elements"""
        if not 1 <= len(inputs) <= Poseidon.WIDTH - 1:
            raise ValueError(f"Poseidon t=3 absorbs 1 or 2 inputs, got {len(inputs)}")

        for x in inputs:
            if not is_field_element(x):
                raise InvalidInputError(f"Hash input {x!r} is not a field element")

        capacity = len(inputs) << 64
        state = [capacity] + list(inputs)
        state += [0] * (Poseidon.WIDTH - len(state))

        return Poseidon.permute(state)[1]


def is_field_element(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < Poseidon.PRIME


def to_field(value: FieldLike) -> int:
    """Parse an int, decimal string or 0x-prefixed hex string into a field element"""
    if isinstance(value, bool):
        raise InvalidInputError(f"Boolean is not a field element: {value!r}")

    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise InvalidInputError(f"Cannot parse field element from {value!r}") from None
    elif not isinstance(value, int):
        # numpy integer scalars and similar, but never floats
        try:
            value = operator.index(value)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Not a field element: {value!r}") from None

    if not 0 <= value < Poseidon.PRIME:
        raise InvalidInputError(f"Value {value} outside field bounds")
    return value


def hash_pair(left: int, right: int) -> int:
    """Two-input hash. Order matters: hash_pair(a, b) != hash_pair(b, a)."""
    return Poseidon.hash([left, right])


def hash_single(value: int) -> int:
    """One-input hash, used for leaf commitments"""
    return Poseidon.hash([value])
