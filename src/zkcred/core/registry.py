"""Group registry: creation, administration and membership of Creds.

Every group owns one incremental Merkle tree. Mutations go through the
registry, which:

    1. checks the caller is the group admin
    2. applies the change to the tree (the tree validates proofs and
       leaves before writing anything)
    3. stamps the resulting root into the group's root history
    4. emits one event per changed leaf

All mutations, and proof verification in
:mod:`zkcred.core.verification`, run under ``registry.lock`` so that no
call ever observes another call half-applied.
"""

from typing import Callable, Dict, List, Optional, Sequence
import logging
import threading
import time

from zkcred.config import Settings, get_settings
from zkcred.core.events import (
    AdminChanged,
    CredCreated,
    EventBus,
    MemberAdded,
    MemberRemoved,
    MemberUpdated,
    RootValidityDurationUpdated,
)
from zkcred.core.group import Cred
from zkcred.core.merkle_tree import IncrementalMerkleTree, MerkleProof
from zkcred.crypto.verifier import VerifierRegistry
from zkcred.utils.hash import SNARK_SCALAR_FIELD, is_field_element
from zkcred.exceptions import (
    CredAlreadyExistsError,
    CredDoesNotExistError,
    CredIdTooLargeError,
    InvalidLeafError,
    InvalidRootValidityDurationError,
    InvalidTreeDepthError,
    NotAdminError,
    TreeFullError,
)

logger = logging.getLogger(__name__)


class CredRegistry:
    """
    Owner of every group's accumulator and metadata.

    Args:
        verifiers: Depth-to-verifier bindings consulted at group creation
        event_bus: Where events are published (a fresh bus by default)
        clock: Returns the current time in seconds (``time.time`` by default)
        settings: Service settings (``get_settings()`` by default)
    """

    def __init__(
        self,
        verifiers: Optional[VerifierRegistry] = None,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Callable[[], float]] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.verifiers = verifiers if verifiers is not None else VerifierRegistry()
        self.events = event_bus if event_bus is not None else EventBus()
        self.clock = clock or time.time
        self.default_root_validity_duration = settings.default_root_validity_duration
        self.max_tree_depth = settings.max_tree_depth
        self.lock = threading.RLock()
        self._creds: Dict[int, Cred] = {}

    # ========== GROUP REGISTRY ==========

    def create_group(
        self,
        cred_id: int,
        depth: int,
        zero_value: int,
        admin: str,
        uri: str = "",
        root_validity_duration: Optional[int] = None,
    ) -> Cred:
        """
        Create a new group with an empty tree.

        Args:
            cred_id: Group id, below the scalar field
            depth: Tree depth; a verifier must be bound for it
            zero_value: Value of empty leaves
            admin: Identity allowed to manage the group
            uri: Opaque metadata
            root_validity_duration: Seconds an old root stays usable
                (default from settings, 1 hour)

        Returns:
            Cred: The new group

        Raises:
            CredIdTooLargeError: If cred_id is not below the field
            CredAlreadyExistsError: If cred_id is taken
            DepthNotSupportedError: If no verifier is bound for depth
            InvalidTreeDepthError: If depth is zero or above the maximum
            InvalidRootValidityDurationError: If the duration is negative
        """
        if root_validity_duration is None:
            root_validity_duration = self.default_root_validity_duration

        with self.lock:
            if not isinstance(cred_id, int) or cred_id < 0 or cred_id >= SNARK_SCALAR_FIELD:
                raise CredIdTooLargeError(f"Group id must be below the scalar field: {cred_id}")
            if cred_id in self._creds:
                raise CredAlreadyExistsError(f"Group {cred_id} already exists")

            verifier = self.verifiers.get(depth)

            if depth > self.max_tree_depth:
                raise InvalidTreeDepthError(
                    f"Tree depth must be between 1 and {self.max_tree_depth}"
                )
            if root_validity_duration < 0:
                raise InvalidRootValidityDurationError("Root validity duration cannot be negative")

            tree = IncrementalMerkleTree(depth=depth, zero_value=zero_value)
            cred = Cred(
                cred_id=cred_id,
                admin=admin,
                uri=uri,
                root_validity_duration=root_validity_duration,
                tree=tree,
                verifier=verifier,
                created_at=self.clock(),
            )
            self._creds[cred_id] = cred

            logger.info(f"Created group {cred_id} (depth={depth}, admin={admin})")
            self.events.emit(
                CredCreated(
                    cred_id=cred_id,
                    depth=depth,
                    zero_value=zero_value,
                    uri=uri,
                    root_validity_duration=root_validity_duration,
                )
            )
            self.events.emit(AdminChanged(cred_id=cred_id, old_admin="", new_admin=admin))
            return cred

    def get_cred(self, cred_id: int) -> Cred:
        """
        Get a group by id.

        Raises:
            CredDoesNotExistError: If the group is unknown
        """
        cred = self._creds.get(cred_id)
        if cred is None:
            raise CredDoesNotExistError(f"Group {cred_id} does not exist")
        return cred

    def exists(self, cred_id: int) -> bool:
        return cred_id in self._creds

    @property
    def cred_ids(self) -> List[int]:
        return sorted(self._creds)

    def _require_admin(self, cred: Cred, caller: str) -> None:
        if caller != cred.admin:
            logger.warning(f"Rejected {caller} on group {cred.cred_id}: not admin")
            raise NotAdminError(f"Caller is not the admin of group {cred.cred_id}")

    def set_admin(self, cred_id: int, new_admin: str, caller: str) -> None:
        """
        Hand the group over to a new admin.

        Raises:
            CredDoesNotExistError: If the group is unknown
            NotAdminError: If caller is not the current admin
        """
        with self.lock:
            cred = self.get_cred(cred_id)
            self._require_admin(cred, caller)

            old_admin = cred.admin
            cred.admin = new_admin

            logger.info(f"Group {cred_id} admin changed from {old_admin} to {new_admin}")
            self.events.emit(AdminChanged(cred_id=cred_id, old_admin=old_admin, new_admin=new_admin))

    def update_root_validity_duration(self, cred_id: int, new_duration: int, caller: str) -> None:
        """
        Change how long superseded roots stay usable.

        Applies to every recorded root, including ones stamped earlier.
        """
        with self.lock:
            cred = self.get_cred(cred_id)
            self._require_admin(cred, caller)
            if new_duration < 0:
                raise InvalidRootValidityDurationError("Root validity duration cannot be negative")

            old_duration = cred.root_validity_duration
            cred.root_validity_duration = new_duration

            logger.info(f"Group {cred_id} root validity duration: {old_duration}s -> {new_duration}s")
            self.events.emit(
                RootValidityDurationUpdated(
                    cred_id=cred_id, old_duration=old_duration, new_duration=new_duration
                )
            )

    # ========== MEMBERSHIP ==========

    def add_member(self, cred_id: int, leaf: int, caller: str) -> int:
        """
        Append one member.

        Returns:
            int: Leaf index of the new member

        Raises:
            CredDoesNotExistError, NotAdminError, InvalidLeafError, TreeFullError
        """
        return self.add_members(cred_id, [leaf], caller)[0]

    def add_members(self, cred_id: int, leaves: Sequence[int], caller: str) -> List[int]:
        """
        Append several members, stamping a single root after the last one.

        The whole batch is validated first: either every leaf is inserted or
        none is.

        Returns:
            List[int]: Leaf indices, in input order
        """
        with self.lock:
            cred = self.get_cred(cred_id)
            self._require_admin(cred, caller)

            leaves = list(leaves)
            if not leaves:
                return []
            for leaf in leaves:
                if not is_field_element(leaf):
                    raise InvalidLeafError(f"Leaf is not a field element: {leaf!r}")
            if cred.tree.number_of_leaves + len(leaves) > cred.tree.max_leaves:
                raise TreeFullError(
                    f"Group {cred_id} cannot take {len(leaves)} more members "
                    f"(max {cred.tree.max_leaves})"
                )

            added = []
            for leaf in leaves:
                index = cred.tree.insert(leaf)
                added.append(MemberAdded(cred_id=cred_id, leaf_index=index, leaf=leaf, root=cred.root))

            cred.stamp_root(self.clock())

            logger.info(
                f"Added {len(added)} member(s) to group {cred_id}, "
                f"{cred.number_of_leaves} leaves in total"
            )
            for event in added:
                self.events.emit(event)
            return [event.leaf_index for event in added]

    def update_member(
        self,
        cred_id: int,
        old_leaf: int,
        new_leaf: int,
        siblings: Sequence[int],
        path_indices: Sequence[int],
        caller: str,
    ) -> int:
        """
        Replace a member's leaf, proven by its sibling path.

        Returns:
            int: Leaf index of the updated member

        Raises:
            CredDoesNotExistError, NotAdminError
            InvalidMerkleProofError: If the path does not match the current root
            InvalidSiblingPathError: If the path is malformed
        """
        with self.lock:
            cred = self.get_cred(cred_id)
            self._require_admin(cred, caller)

            index = cred.tree.update(old_leaf, new_leaf, siblings, path_indices)
            cred.stamp_root(self.clock())

            logger.info(f"Updated member {index} of group {cred_id}")
            self.events.emit(
                MemberUpdated(
                    cred_id=cred_id,
                    leaf_index=index,
                    old_leaf=old_leaf,
                    new_leaf=new_leaf,
                    root=cred.root,
                )
            )
            return index

    def remove_member(
        self,
        cred_id: int,
        leaf: int,
        siblings: Sequence[int],
        path_indices: Sequence[int],
        caller: str,
    ) -> int:
        """
        Reset a member's leaf to the zero value. The index is not reused.

        Returns:
            int: Leaf index of the removed member
        """
        with self.lock:
            cred = self.get_cred(cred_id)
            self._require_admin(cred, caller)

            index = cred.tree.remove(leaf, siblings, path_indices)
            cred.stamp_root(self.clock())

            logger.info(f"Removed member {index} of group {cred_id}")
            self.events.emit(
                MemberRemoved(cred_id=cred_id, leaf_index=index, leaf=leaf, root=cred.root)
            )
            return index

    # ========== QUERIES ==========

    def get_root(self, cred_id: int) -> int:
        """Current root, or 0 if the group does not exist."""
        cred = self._creds.get(cred_id)
        return cred.root if cred is not None else 0

    def get_depth(self, cred_id: int) -> int:
        """Tree depth, or 0 if the group does not exist."""
        cred = self._creds.get(cred_id)
        return cred.depth if cred is not None else 0

    def get_leaf_count(self, cred_id: int) -> int:
        """Number of leaves ever inserted, or 0 if the group does not exist."""
        cred = self._creds.get(cred_id)
        return cred.number_of_leaves if cred is not None else 0

    def create_proof(self, cred_id: int, leaf_index: int) -> MerkleProof:
        """Sibling path of a leaf against the current root."""
        with self.lock:
            return self.get_cred(cred_id).tree.create_proof(leaf_index)

    def __len__(self) -> int:
        return len(self._creds)

    def __repr__(self) -> str:
        return f"CredRegistry(groups={len(self._creds)}, depths={self.verifiers.supported_depths})"
