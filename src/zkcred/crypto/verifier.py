"""Verifier collaborator contract and depth-to-verifier binding."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Any, Sequence, Union

from zkcred.utils.hash import is_field_element
from zkcred.exceptions import DepthNotSupportedError, ProofFormatError

PROOF_SIZE = 8


@dataclass(frozen=True)
class SemaphoreProof:
    """
    Opaque Groth16-shaped proof: 8 field elements.

    The order follows the usual (a, b, c) flattening:
    a.x, a.y, b.x1, b.x0, b.y1, b.y0, c.x, c.y.
    """

    elements: tuple

    def __post_init__(self):
        if len(self.elements) != PROOF_SIZE:
            raise ProofFormatError(f"Proof must have exactly {PROOF_SIZE} elements")
        if not all(is_field_element(e) for e in self.elements):
            raise ProofFormatError("Proof elements must be field elements")

    @classmethod
    def from_sequence(cls, elements: Union["SemaphoreProof", Sequence[int]]) -> "SemaphoreProof":
        if isinstance(elements, SemaphoreProof):
            return elements
        return cls(tuple(elements))

    def to_list(self) -> List[str]:
        """Decimal strings, the usual JSON form of snark proofs."""
        return [str(e) for e in self.elements]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary"""
        return {"proof": self.to_list()}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SemaphoreProof":
        """Deserialize from dictionary"""
        try:
            return SemaphoreProof(tuple(int(e) for e in data["proof"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProofFormatError(f"Malformed proof: {e}")


@dataclass(frozen=True)
class PublicInputs:
    """Public signals of a membership proof, in circuit order."""

    root: int
    nullifier_hash: int
    signal_hash: int
    external_nullifier_hash: int

    def as_list(self) -> List[int]:
        return [self.root, self.nullifier_hash, self.signal_hash, self.external_nullifier_hash]


class ProofVerifier(ABC):
    """
    External proof verifier bound to one tree depth.

    Implementations must be synchronous and side-effect free: the same
    proof and inputs always give the same answer.
    """

    depth: int

    @abstractmethod
    def verify(self, proof: SemaphoreProof, public_inputs: PublicInputs) -> bool:
        """Return True if proof is valid for public_inputs."""


class VerifierRegistry:
    """Maps each supported tree depth to its verifier."""

    def __init__(self):
        self._verifiers: Dict[int, ProofVerifier] = {}

    def bind(self, depth: int, verifier: ProofVerifier) -> None:
        """
        Bind a verifier to a depth, replacing any previous binding.

        Groups already created keep the verifier they were created with.
        """
        self._verifiers[depth] = verifier

    def get(self, depth: int) -> ProofVerifier:
        """
        Get the verifier bound to a depth.

        Raises:
            DepthNotSupportedError: If no verifier is bound
        """
        verifier = self._verifiers.get(depth)
        if verifier is None:
            raise DepthNotSupportedError(f"Tree depth {depth} is not supported")
        return verifier

    def supports(self, depth: int) -> bool:
        return depth in self._verifiers

    @property
    def supported_depths(self) -> List[int]:
        return sorted(self._verifiers)

    def __len__(self) -> int:
        return len(self._verifiers)
