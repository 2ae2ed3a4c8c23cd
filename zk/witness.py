"""
Witness construction and witness files.

A witness file holds the eight predicate inputs keyed by name, field values
as decimal strings. JSON is the default; .yaml/.yml files are read and
written with PyYAML.
"""

import json
import logging
from pathlib import Path
from typing import Union

import yaml

from .errors import InvalidInputError
from .merkle import SparseMerkleTree
from .poseidon import to_field
from .vote_validator import VoteInputs, compute_leaf, compute_nullifier

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')


def build_witness(secret: int, tree: SparseMerkleTree, leaf_index: int, poll_id: int,
                  vote_choice: int, max_options: int) -> VoteInputs:
    """Honest inputs for the voter whose leaf sits at leaf_index"""
    secret = to_field(secret)
    poll_id = to_field(poll_id)

    if tree.get_leaf(leaf_index) != compute_leaf(secret):
        raise InvalidInputError(f"Leaf at index {leaf_index} is not the commitment of this secret")

    path, indices = tree.get_path(leaf_index)
    return VoteInputs(
        secret=secret,
        vote_choice=vote_choice,
        merkle_path=tuple(path),
        merkle_indices=tuple(indices),
        merkle_root=tree.root,
        nullifier=compute_nullifier(secret, poll_id),
        poll_id=poll_id,
        max_options=max_options,
    )


def save_witness(inputs: VoteInputs, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = inputs.to_dict()
    with open(path, 'w') as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)

    logger.info(f"Witness saved to {path}")
    return path


def load_witness(path: Union[str, Path]) -> VoteInputs:
    path = Path(path)
    with open(path, 'r') as f:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, dict):
        raise InvalidInputError(f"Witness file {path} does not contain a mapping")
    return VoteInputs.from_dict(data)
