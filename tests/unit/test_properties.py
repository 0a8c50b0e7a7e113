"""Property-based tests using Hypothesis for accumulator invariants."""

from hypothesis import given, strategies as st, settings, HealthCheck

from zkcred.core.merkle_tree import IncrementalMerkleTree, path_indices_to_member_index
from zkcred.utils.encoding import parse_field_element
from zkcred.utils.hash import SNARK_SCALAR_FIELD, hash_to_field

field_elements = st.integers(min_value=0, max_value=SNARK_SCALAR_FIELD - 1)


class TestAccumulatorProperties:
    """Property-based tests for tree invariants."""

    @given(st.integers(min_value=1, max_value=8), field_elements, st.lists(field_elements, max_size=20))
    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    def test_root_is_pure_function_of_inputs(self, depth, zero_value, leaves):
        """Property: same (depth, zero value, leaf sequence) gives the same root."""
        leaves = leaves[: 2 ** depth]
        tree1 = IncrementalMerkleTree(depth, zero_value)
        tree2 = IncrementalMerkleTree(depth, zero_value)
        for leaf in leaves:
            tree1.insert(leaf)
        for leaf in leaves:
            tree2.insert(leaf)

        assert tree1.root == tree2.root
        assert len(tree1) == len(leaves)

    @given(st.lists(field_elements, min_size=1, max_size=16), st.data())
    @settings(max_examples=50, suppress_health_check=[HealthCheck.too_slow])
    def test_every_leaf_has_a_valid_proof(self, leaves, data):
        """Property: the proof of any inserted leaf verifies and encodes its index."""
        tree = IncrementalMerkleTree(depth=5)
        for leaf in leaves:
            tree.insert(leaf)

        index = data.draw(st.integers(min_value=0, max_value=len(leaves) - 1))
        proof = tree.create_proof(index)

        assert proof.leaf == leaves[index]
        assert tree.verify_proof(proof)
        assert path_indices_to_member_index(proof.path_indices) == index

    @given(st.lists(field_elements, min_size=2, max_size=10), st.data())
    @settings(max_examples=30, suppress_health_check=[HealthCheck.too_slow])
    def test_removal_never_shrinks_count(self, leaves, data):
        """Property: removals keep number_of_leaves and insertion keeps appending."""
        tree = IncrementalMerkleTree(depth=4, zero_value=SNARK_SCALAR_FIELD - 1)
        leaves = [leaf for leaf in leaves if leaf != tree.zero_value] or [1]
        for leaf in leaves:
            tree.insert(leaf)

        index = data.draw(st.integers(min_value=0, max_value=len(leaves) - 1))
        proof = tree.create_proof(index)
        tree.remove(proof.leaf, proof.siblings, proof.path_indices)

        assert len(tree) == len(leaves)
        assert tree.insert(7) == len(leaves)


class TestEncodingProperties:

    @given(field_elements)
    def test_hex_parse(self, value):
        assert parse_field_element("0x" + format(value, "064x")) == value
        assert parse_field_element(str(value)) == value

    @given(st.integers(min_value=0, max_value=2**256 - 1))
    def test_hash_to_field_in_range(self, value):
        assert 0 <= hash_to_field(value) < SNARK_SCALAR_FIELD
