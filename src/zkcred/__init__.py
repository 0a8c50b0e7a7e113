"""Main package initialization."""

__version__ = "0.1.0"
__author__ = "zk-cred Team"
__description__ = "Anonymous group membership credentials over an incremental Merkle tree"

from .core.merkle_tree import IncrementalMerkleTree, MerkleProof
from .core.registry import CredRegistry
from .core.verification import ProofVerificationOrchestrator
from .crypto.identity import Identity
from .crypto.zk_snark import DigestProver, build_default_verifier_registry

__all__ = [
    "IncrementalMerkleTree",
    "MerkleProof",
    "CredRegistry",
    "ProofVerificationOrchestrator",
    "Identity",
    "DigestProver",
    "build_default_verifier_registry",
]
