"""Group ("Cred") record: metadata plus the state it exclusively owns."""

from dataclasses import dataclass, field

from zkcred.core.merkle_tree import IncrementalMerkleTree
from zkcred.core.root_history import RootHistory
from zkcred.crypto.nullifier import NullifierRegistry
from zkcred.crypto.verifier import ProofVerifier


@dataclass
class Cred:
    """
    One membership group.

    The accumulator, root history and nullifier registry belong to this
    group alone. The verifier is the one bound to the tree depth when the
    group was created and does not change afterwards.
    """

    cred_id: int
    admin: str
    uri: str
    root_validity_duration: int
    tree: IncrementalMerkleTree
    verifier: ProofVerifier
    created_at: float
    root_history: RootHistory = field(default_factory=RootHistory)
    nullifiers: NullifierRegistry = field(default_factory=NullifierRegistry)

    @property
    def root(self) -> int:
        return self.tree.root

    @property
    def depth(self) -> int:
        return self.tree.depth

    @property
    def number_of_leaves(self) -> int:
        return self.tree.number_of_leaves

    def stamp_root(self, timestamp: float) -> bool:
        """Record the current root in the history."""
        return self.root_history.record(self.tree.root, timestamp)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "cred_id": str(self.cred_id),
            "admin": self.admin,
            "uri": self.uri,
            "depth": self.depth,
            "zero_value": str(self.tree.zero_value),
            "root": str(self.root),
            "number_of_leaves": self.number_of_leaves,
            "root_validity_duration": self.root_validity_duration,
            "num_roots": len(self.root_history),
            "num_nullifiers": len(self.nullifiers),
            "created_at": self.created_at,
        }
