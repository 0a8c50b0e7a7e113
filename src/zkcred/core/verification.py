"""Proof verification: freshness, replay protection and the verifier call.

Verification order (nothing is written until every check has passed):

    1. The group must exist.
    2. A root equal to the current root is always fresh.
    3. Any other root must be in the group's root history and not older
       than the group's root validity duration.
    4. The nullifier hash must not have been consumed in the group.
    5. The verifier frozen into the group at creation is used.
    6. The verifier must accept the proof for
       (root, nullifier hash, H(signal), H(external nullifier)).
    7. The nullifier is consumed and ProofVerified is emitted.

The whole sequence runs under the registry lock, so two calls carrying
the same nullifier hash can never both pass step 4.
"""

from typing import Sequence, Union
import logging

from zkcred.core.events import ProofVerified
from zkcred.core.group import Cred
from zkcred.core.registry import CredRegistry
from zkcred.crypto.verifier import PublicInputs, SemaphoreProof
from zkcred.utils.hash import hash_to_field
from zkcred.exceptions import (
    InvalidProofError,
    NullifierReusedError,
    ProofFormatError,
    RootExpiredError,
    RootNotPartOfCredError,
)

logger = logging.getLogger(__name__)


class ProofVerificationOrchestrator:
    """Verifies membership proofs against the groups of a registry."""

    def __init__(self, registry: CredRegistry):
        self.registry = registry

    def check_root(self, cred: Cred, root: int, now: float) -> None:
        """
        Check a root can be proven against.

        Raises:
            RootNotPartOfCredError: If the root was never current
            RootExpiredError: If the root is past its validity window
        """
        if root == cred.root:
            return

        created = cred.root_history.creation_time(root)
        if created is None:
            raise RootNotPartOfCredError(f"Root is not part of group {cred.cred_id}")
        if cred.root_history.is_expired(root, now, cred.root_validity_duration):
            raise RootExpiredError(
                f"Root of group {cred.cred_id} expired "
                f"{now - created - cred.root_validity_duration:.0f}s ago"
            )

    def verify_proof(
        self,
        cred_id: int,
        root: int,
        signal: int,
        nullifier_hash: int,
        external_nullifier: int,
        proof: Union[SemaphoreProof, Sequence[int]],
    ) -> ProofVerified:
        """
        Verify a membership proof and consume its nullifier.

        Args:
            cred_id: Group the prover claims membership of
            root: Root the proof was generated against
            signal: Message endorsed by the proof
            nullifier_hash: Replay tag revealed by the proof
            external_nullifier: Proof context
            proof: 8 proof elements

        Returns:
            ProofVerified: The emitted event

        Raises:
            CredDoesNotExistError: If the group is unknown
            RootNotPartOfCredError, RootExpiredError: If the root is not fresh
            NullifierReusedError: If the nullifier hash was already consumed
            ProofFormatError: If the proof is malformed
            InvalidProofError: If the verifier rejects the proof
        """
        registry = self.registry

        with registry.lock:
            cred = registry.get_cred(cred_id)
            now = registry.clock()

            try:
                self.check_root(cred, root, now)
            except (RootNotPartOfCredError, RootExpiredError) as e:
                logger.warning(f"Proof rejected for group {cred_id}: {e}")
                raise

            if cred.nullifiers.is_consumed(nullifier_hash):
                logger.warning(f"Proof rejected for group {cred_id}: nullifier reused")
                raise NullifierReusedError(
                    f"Nullifier hash already used in group {cred_id}"
                )

            try:
                semaphore_proof = SemaphoreProof.from_sequence(proof)
                public_inputs = PublicInputs(
                    root=root,
                    nullifier_hash=nullifier_hash,
                    signal_hash=hash_to_field(signal),
                    external_nullifier_hash=hash_to_field(external_nullifier),
                )
            except (TypeError, ValueError) as e:
                raise ProofFormatError(f"Malformed proof or public inputs: {e}") from e

            try:
                accepted = cred.verifier.verify(semaphore_proof, public_inputs)
            except ProofFormatError:
                raise
            except Exception as e:
                logger.warning(f"Verifier error for group {cred_id}: {e}")
                raise InvalidProofError(f"Proof verification failed: {e}") from e

            if not accepted:
                logger.warning(f"Proof rejected for group {cred_id}: invalid proof")
                raise InvalidProofError("Proof verification failed")

            cred.nullifiers.consume(
                nullifier_hash,
                root=root,
                external_nullifier=external_nullifier,
                timestamp=now,
            )

            event = ProofVerified(
                cred_id=cred_id,
                root=root,
                nullifier_hash=nullifier_hash,
                external_nullifier=external_nullifier,
                signal=signal,
                verified_at=now,
            )
            logger.info(f"Proof verified for group {cred_id}")
            registry.events.emit(event)
            return event
