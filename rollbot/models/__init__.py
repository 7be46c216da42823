"""Domain models for stats, affinities and players."""

from ._validation import ModelValidationError
from .players import AffinityMembership, Player
from .tree import (
    Affinity,
    Stat,
    TreeNode,
    compile_tree,
    flatten_leaves,
    load_tree,
    normalize_identifier,
)

__all__ = [
    "Affinity",
    "AffinityMembership",
    "ModelValidationError",
    "Player",
    "Stat",
    "TreeNode",
    "compile_tree",
    "flatten_leaves",
    "load_tree",
    "normalize_identifier",
]
