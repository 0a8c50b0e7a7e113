"""Accumulator, group registry and proof verification."""

from zkcred.core.merkle_tree import IncrementalMerkleTree, MerkleProof
from zkcred.core.root_history import RootHistory
from zkcred.core.group import Cred
from zkcred.core.registry import CredRegistry
from zkcred.core.verification import ProofVerificationOrchestrator

__all__ = [
    "IncrementalMerkleTree",
    "MerkleProof",
    "RootHistory",
    "Cred",
    "CredRegistry",
    "ProofVerificationOrchestrator",
]
