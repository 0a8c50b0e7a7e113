"""Cryptographic primitives module"""

from zkcred.crypto.identity import Identity
from zkcred.crypto.nullifier import NullifierRecord, NullifierRegistry
from zkcred.crypto.verifier import (
    PROOF_SIZE,
    SemaphoreProof,
    PublicInputs,
    ProofVerifier,
    VerifierRegistry,
)
from zkcred.crypto.zk_snark import (
    FullProof,
    DigestProver,
    DigestVerifier,
    build_default_verifier_registry,
)

__all__ = [
    'Identity',
    'NullifierRecord',
    'NullifierRegistry',
    'PROOF_SIZE',
    'SemaphoreProof',
    'PublicInputs',
    'ProofVerifier',
    'VerifierRegistry',
    'FullProof',
    'DigestProver',
    'DigestVerifier',
    'build_default_verifier_registry',
]
