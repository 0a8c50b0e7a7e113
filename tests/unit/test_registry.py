"""Tests for the group registry."""

import threading

import pytest

from zkcred.core.events import (
    AdminChanged,
    CredCreated,
    MemberAdded,
    MemberRemoved,
    MemberUpdated,
    RootValidityDurationUpdated,
)
from zkcred.core.merkle_tree import IncrementalMerkleTree
from zkcred.config import DEFAULT_ROOT_VALIDITY_DURATION
from zkcred.utils.hash import SNARK_SCALAR_FIELD
from zkcred.exceptions import (
    CredAlreadyExistsError,
    CredDoesNotExistError,
    CredIdTooLargeError,
    DepthNotSupportedError,
    InvalidLeafError,
    InvalidMerkleProofError,
    InvalidRootValidityDurationError,
    NotAdminError,
    TreeFullError,
)

ADMIN = "admin@example.com"
OTHER = "mallory@example.com"


@pytest.fixture
def group(registry):
    return registry.create_group(cred_id=1, depth=16, zero_value=0, admin=ADMIN)


class TestGroupCreation:

    def test_create_group(self, registry, clock):
        cred = registry.create_group(cred_id=1, depth=16, zero_value=0, admin=ADMIN, uri="ipfs://x")

        assert cred.admin == ADMIN
        assert cred.uri == "ipfs://x"
        assert cred.depth == 16
        assert cred.root_validity_duration == DEFAULT_ROOT_VALIDITY_DURATION
        assert cred.created_at == clock.now
        assert cred.verifier is registry.verifiers.get(16)
        assert registry.exists(1)
        assert registry.cred_ids == [1]
        assert len(registry) == 1

    def test_empty_root(self, registry):
        registry.create_group(cred_id=1, depth=16, zero_value=3, admin=ADMIN)
        assert registry.get_root(1) == IncrementalMerkleTree(16, zero_value=3).root
        assert registry.get_leaf_count(1) == 0
        assert registry.get_depth(1) == 16

    def test_empty_root_not_stamped(self, group):
        assert len(group.root_history) == 0

    def test_create_emits_events(self, registry):
        registry.create_group(cred_id=1, depth=16, zero_value=0, admin=ADMIN, root_validity_duration=60)
        created, admin_changed = registry.events.events_for(1)
        assert created == CredCreated(cred_id=1, depth=16, zero_value=0, uri="", root_validity_duration=60)
        assert admin_changed == AdminChanged(cred_id=1, old_admin="", new_admin=ADMIN)

    def test_duplicate_group(self, registry, group):
        with pytest.raises(CredAlreadyExistsError):
            registry.create_group(cred_id=1, depth=20, zero_value=0, admin=OTHER)
        assert registry.get_cred(1).admin == ADMIN

    def test_group_id_too_large(self, registry):
        with pytest.raises(CredIdTooLargeError):
            registry.create_group(cred_id=SNARK_SCALAR_FIELD, depth=16, zero_value=0, admin=ADMIN)
        registry.create_group(cred_id=SNARK_SCALAR_FIELD - 1, depth=16, zero_value=0, admin=ADMIN)

    def test_unsupported_depth(self, registry):
        with pytest.raises(DepthNotSupportedError):
            registry.create_group(cred_id=1, depth=17, zero_value=0, admin=ADMIN)
        assert not registry.exists(1)
        assert registry.events.history == []

    def test_negative_duration(self, registry):
        with pytest.raises(InvalidRootValidityDurationError):
            registry.create_group(cred_id=1, depth=16, zero_value=0, admin=ADMIN, root_validity_duration=-1)

    def test_groups_are_independent(self, registry):
        registry.create_group(cred_id=1, depth=16, zero_value=0, admin=ADMIN)
        registry.create_group(cred_id=2, depth=16, zero_value=0, admin=ADMIN)
        registry.add_member(1, 42, ADMIN)
        assert registry.get_leaf_count(2) == 0
        assert registry.get_root(1) != registry.get_root(2)


class TestUnknownGroups:

    def test_queries_return_zero(self, registry):
        assert registry.get_root(99) == 0
        assert registry.get_depth(99) == 0
        assert registry.get_leaf_count(99) == 0

    def test_mutations_fail(self, registry):
        with pytest.raises(CredDoesNotExistError):
            registry.add_member(99, 1, ADMIN)
        with pytest.raises(CredDoesNotExistError):
            registry.set_admin(99, OTHER, ADMIN)
        with pytest.raises(CredDoesNotExistError):
            registry.get_cred(99)


class TestAdministration:

    def test_set_admin(self, registry, group):
        registry.set_admin(1, OTHER, ADMIN)
        assert group.admin == OTHER
        assert registry.events.history[-1] == AdminChanged(cred_id=1, old_admin=ADMIN, new_admin=OTHER)

        with pytest.raises(NotAdminError):
            registry.add_member(1, 5, ADMIN)
        registry.add_member(1, 5, OTHER)

    def test_set_admin_not_admin(self, registry, group):
        with pytest.raises(NotAdminError):
            registry.set_admin(1, OTHER, OTHER)
        assert group.admin == ADMIN

    def test_update_root_validity_duration(self, registry, group):
        registry.update_root_validity_duration(1, 120, ADMIN)
        assert group.root_validity_duration == 120
        assert registry.events.history[-1] == RootValidityDurationUpdated(
            cred_id=1, old_duration=DEFAULT_ROOT_VALIDITY_DURATION, new_duration=120
        )

    def test_update_duration_checks(self, registry, group):
        with pytest.raises(NotAdminError):
            registry.update_root_validity_duration(1, 120, OTHER)
        with pytest.raises(InvalidRootValidityDurationError):
            registry.update_root_validity_duration(1, -5, ADMIN)
        assert group.root_validity_duration == DEFAULT_ROOT_VALIDITY_DURATION


class TestMembership:

    def test_add_member(self, registry, group, clock):
        index = registry.add_member(1, 42, ADMIN)

        assert index == 0
        assert registry.get_leaf_count(1) == 1
        assert group.root_history.creation_time(group.root) == clock.now
        assert registry.events.history[-1] == MemberAdded(cred_id=1, leaf_index=0, leaf=42, root=group.root)

    def test_add_member_not_admin(self, registry, group):
        root = group.root
        with pytest.raises(NotAdminError):
            registry.add_member(1, 42, OTHER)
        assert group.root == root
        assert registry.get_leaf_count(1) == 0

    def test_add_members_with_failing_subscriber(self, registry, group):
        received = []

        def broken(event):
            raise RuntimeError("journal unavailable")

        registry.events.subscribe(broken)
        registry.events.subscribe(received.append)

        assert registry.add_members(1, [5, 6, 7], ADMIN) == [0, 1, 2]
        assert registry.get_leaf_count(1) == 3
        assert [e.leaf for e in received] == [5, 6, 7]

    def test_add_member_invalid_leaf(self, registry, group):
        with pytest.raises(InvalidLeafError):
            registry.add_member(1, SNARK_SCALAR_FIELD, ADMIN)

    def test_add_members_stamps_once(self, registry, group, clock):
        indices = registry.add_members(1, [10, 20, 30], ADMIN)

        assert indices == [0, 1, 2]
        assert len(group.root_history) == 1
        assert group.root_history.creation_time(group.root) == clock.now

        added = registry.events.events_for(1, MemberAdded)
        assert [e.leaf for e in added] == [10, 20, 30]
        # Intermediate roots are reported but not admitted as history
        assert added[-1].root == group.root
        assert added[0].root not in group.root_history

    def test_add_members_empty(self, registry, group):
        assert registry.add_members(1, [], ADMIN) == []
        assert len(group.root_history) == 0
        assert registry.events.events_for(1, MemberAdded) == []

    def test_add_members_all_or_nothing(self, registry, group):
        root = group.root
        with pytest.raises(InvalidLeafError):
            registry.add_members(1, [10, SNARK_SCALAR_FIELD, 30], ADMIN)
        assert group.root == root
        assert registry.get_leaf_count(1) == 0

    def test_add_members_capacity(self, registry):
        cred = registry.create_group(cred_id=2, depth=2, zero_value=0, admin=ADMIN)
        registry.add_members(2, [1, 2, 3], ADMIN)
        with pytest.raises(TreeFullError):
            registry.add_members(2, [4, 5], ADMIN)
        assert cred.number_of_leaves == 3
        registry.add_member(2, 4, ADMIN)
        with pytest.raises(TreeFullError):
            registry.add_member(2, 5, ADMIN)

    def test_update_member(self, registry, group, clock):
        registry.add_members(1, [10, 20], ADMIN)
        proof = registry.create_proof(1, 0)
        clock.advance(5)

        index = registry.update_member(1, 10, 11, proof.siblings, proof.path_indices, ADMIN)

        assert index == 0
        assert group.tree.leaves == [11, 20]
        assert group.root_history.creation_time(group.root) == clock.now
        assert registry.events.history[-1] == MemberUpdated(
            cred_id=1, leaf_index=0, old_leaf=10, new_leaf=11, root=group.root
        )

    def test_update_member_stale_proof(self, registry, group):
        registry.add_member(1, 10, ADMIN)
        stale = registry.create_proof(1, 0)
        registry.add_member(1, 20, ADMIN)
        events = len(registry.events.history)

        with pytest.raises(InvalidMerkleProofError):
            registry.update_member(1, 10, 11, stale.siblings, stale.path_indices, ADMIN)
        assert len(registry.events.history) == events

    def test_update_member_not_admin(self, registry, group):
        registry.add_member(1, 10, ADMIN)
        proof = registry.create_proof(1, 0)
        with pytest.raises(NotAdminError):
            registry.update_member(1, 10, 11, proof.siblings, proof.path_indices, OTHER)

    def test_remove_member(self, registry, group):
        registry.add_members(1, [10, 20], ADMIN)
        proof = registry.create_proof(1, 1)

        index = registry.remove_member(1, 20, proof.siblings, proof.path_indices, ADMIN)

        assert index == 1
        assert group.tree.leaves == [10, 0]
        assert registry.get_leaf_count(1) == 2
        assert registry.events.history[-1] == MemberRemoved(cred_id=1, leaf_index=1, leaf=20, root=group.root)
        assert registry.add_member(1, 30, ADMIN) == 2

    def test_returning_root_keeps_first_stamp(self, registry, group, clock):
        registry.add_member(1, 10, ADMIN)
        first_root = group.root
        first_time = clock.now

        clock.advance(10)
        proof = registry.create_proof(1, 0)
        registry.update_member(1, 10, 11, proof.siblings, proof.path_indices, ADMIN)
        clock.advance(10)
        proof = registry.create_proof(1, 0)
        registry.update_member(1, 11, 10, proof.siblings, proof.path_indices, ADMIN)

        assert group.root == first_root
        assert group.root_history.creation_time(first_root) == first_time


class TestConcurrency:

    def test_parallel_inserts(self, registry, group):
        def worker(offset):
            for i in range(25):
                registry.add_member(1, offset * 1000 + i + 1, ADMIN)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.get_leaf_count(1) == 100
        assert sorted(e.leaf_index for e in registry.events.events_for(1, MemberAdded)) == list(range(100))

        expected = IncrementalMerkleTree(16)
        for leaf in group.tree.leaves:
            expected.insert(leaf)
        assert expected.root == group.root


def test_repr(registry, group):
    assert "groups=1" in repr(registry)
