"""Digest-based stand-in for the membership proof system.

The real system proves, in zero knowledge, that the prover knows an
identity whose commitment is a leaf under ``root`` and whose nullifier
hash matches the public one. Verification of such a proof is an external
pairing check bound to the tree depth; this module provides an
EDUCATIONAL substitute with the same interface so the accumulator and
verification flow can run end to end.

How it works:
    - The prover checks membership locally (commitment + sibling path
      must rebuild the root) and recomputes the nullifier hash.
    - The 8 proof elements are a hash chain seeded with the public
      inputs and the tree depth.
    - The verifier recomputes the chain.

Security Warnings:
    [!] NOT ZERO-KNOWLEDGE AND NOT SOUND - anyone can produce a proof for
        any public inputs. Use only for development and tests.
    [+] Binds proofs to (root, nullifier hash, signal, external nullifier,
        depth), so tampering with any public input is detected.

Example Usage:
    >>> prover = DigestProver()
    >>> full_proof = prover.generate_full_proof(identity, merkle_proof, "vote-1", 42)
    >>> DigestVerifier(depth=20).verify(full_proof.proof, full_proof.public_inputs)
    True
"""

from dataclasses import dataclass
from typing import Iterable

from zkcred.core.merkle_tree import MerkleProof, compute_root
from zkcred.crypto.identity import Identity
from zkcred.crypto.verifier import (
    PROOF_SIZE,
    ProofVerifier,
    PublicInputs,
    SemaphoreProof,
    VerifierRegistry,
)
from zkcred.utils.hash import hash_pair, hash_to_field
from zkcred.exceptions import InvalidProofError


@dataclass
class FullProof:
    """Proof together with the values a verifier needs."""

    proof: SemaphoreProof
    public_inputs: PublicInputs
    merkle_root: int
    nullifier_hash: int
    signal: int
    external_nullifier: int

    def to_dict(self) -> dict:
        """Payload accepted by the verification endpoint."""
        return {
            "root": str(self.merkle_root),
            "signal": str(self.signal),
            "nullifier_hash": str(self.nullifier_hash),
            "external_nullifier": str(self.external_nullifier),
            "proof": self.proof.to_list(),
        }


def _proof_elements(public_inputs: PublicInputs, depth: int) -> tuple:
    seed = hash_pair(depth, 0)
    for value in public_inputs.as_list():
        seed = hash_pair(seed, value)

    elements = [seed]
    for i in range(1, PROOF_SIZE):
        elements.append(hash_pair(elements[-1], i))
    return tuple(elements)


class DigestProver:
    """Prover for the digest proof system."""

    def generate_full_proof(
        self,
        identity: Identity,
        merkle_proof: MerkleProof,
        external_nullifier: int,
        signal: int,
    ) -> FullProof:
        """
        Create a membership proof for identity.

        Args:
            identity: Prover's secret identity
            merkle_proof: Sibling path of identity.commitment
            external_nullifier: Proof context
            signal: Message endorsed by the proof

        Returns:
            FullProof: Proof and public inputs

        Raises:
            InvalidProofError: If identity is not the leaf of merkle_proof
        """
        if merkle_proof.leaf != identity.commitment:
            raise InvalidProofError("Merkle proof does not belong to this identity")

        root = compute_root(identity.commitment, merkle_proof.siblings, merkle_proof.path_indices)
        if root != merkle_proof.root:
            raise InvalidProofError("Merkle proof does not lead to its root")

        nullifier_hash = identity.generate_nullifier_hash(external_nullifier)
        public_inputs = PublicInputs(
            root=root,
            nullifier_hash=nullifier_hash,
            signal_hash=hash_to_field(signal),
            external_nullifier_hash=hash_to_field(external_nullifier),
        )
        depth = len(merkle_proof.siblings)

        return FullProof(
            proof=SemaphoreProof(_proof_elements(public_inputs, depth)),
            public_inputs=public_inputs,
            merkle_root=root,
            nullifier_hash=nullifier_hash,
            signal=signal,
            external_nullifier=external_nullifier,
        )


class DigestVerifier(ProofVerifier):
    """Verifier for the digest proof system, bound to one depth."""

    def __init__(self, depth: int):
        self.depth = depth

    def verify(self, proof: SemaphoreProof, public_inputs: PublicInputs) -> bool:
        return tuple(proof.elements) == _proof_elements(public_inputs, self.depth)

    def __repr__(self) -> str:
        return f"DigestVerifier(depth={self.depth})"


def build_default_verifier_registry(depths: Iterable[int]) -> VerifierRegistry:
    """Bind one DigestVerifier per depth."""
    registry = VerifierRegistry()
    for depth in depths:
        registry.bind(depth, DigestVerifier(depth))
    return registry
