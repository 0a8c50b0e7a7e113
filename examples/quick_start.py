#!/usr/bin/env python3
"""
Quick start guide for zk-cred.

Run this to see a complete group lifecycle: creation, membership,
anonymous proof verification and replay rejection.
"""

import sys
import time
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zkcred.config import configure_logging, Settings
from zkcred.core.registry import CredRegistry
from zkcred.core.verification import ProofVerificationOrchestrator
from zkcred.crypto.identity import Identity
from zkcred.crypto.zk_snark import DigestProver, build_default_verifier_registry
from zkcred.exceptions import NullifierReusedError, RootExpiredError


class DemoClock:
    def __init__(self):
        self.now = time.time()

    def __call__(self):
        return self.now


def main():
    """Run a simple example of a membership group."""
    configure_logging("WARNING")
    settings = Settings(_env_file=None)
    clock = DemoClock()

    print("=" * 70)
    print("ZK-CRED QUICK START EXAMPLE")
    print("=" * 70)
    print()

    # Step 1: Create the registry and a group
    print("Step 1: Create a depth-20 group")
    print("-" * 70)
    registry = CredRegistry(
        verifiers=build_default_verifier_registry(settings.supported_depths),
        clock=clock,
        settings=settings,
    )
    orchestrator = ProofVerificationOrchestrator(registry)
    registry.create_group(cred_id=1, depth=20, zero_value=0, admin="admin", root_validity_duration=60)
    print(f"✓ Group created, empty root {hex(registry.get_root(1))[:18]}...")
    print()

    # Step 2: Alice and Bob join
    print("Step 2: Alice and Bob join with their identity commitments")
    print("-" * 70)
    alice, bob = Identity.generate(), Identity.generate()
    indices = registry.add_members(1, [alice.commitment, bob.commitment], "admin")
    print(f"✓ Members added at indices {indices}")
    print(f"  Root: {hex(registry.get_root(1))[:18]}...")
    print()

    # Step 3: Alice proves membership anonymously
    print("Step 3: Alice votes 'yes' in poll #7 without revealing who she is")
    print("-" * 70)
    prover = DigestProver()
    full_proof = prover.generate_full_proof(alice, registry.create_proof(1, 0), external_nullifier=7, signal=1)
    event = orchestrator.verify_proof(
        1, full_proof.merkle_root, 1, full_proof.nullifier_hash, 7, full_proof.proof
    )
    print(f"✓ Proof verified, nullifier hash {hex(event.nullifier_hash)[:18]}...")
    print()

    # Step 4: Alice tries to vote twice
    print("Step 4: Alice tries to vote again in the same poll")
    print("-" * 70)
    again = prover.generate_full_proof(alice, registry.create_proof(1, 0), external_nullifier=7, signal=0)
    try:
        orchestrator.verify_proof(1, again.merkle_root, 0, again.nullifier_hash, 7, again.proof)
    except NullifierReusedError as e:
        print(f"✓ Rejected: {e}")
    print()

    # Step 5: Old roots expire
    print("Step 5: Bob proves against a root that has since been superseded")
    print("-" * 70)
    stale = prover.generate_full_proof(bob, registry.create_proof(1, 1), external_nullifier=8, signal=1)
    registry.add_member(1, Identity.generate().commitment, "admin")
    clock.now += 30
    orchestrator.verify_proof(1, stale.merkle_root, 1, stale.nullifier_hash, 8, stale.proof)
    print("✓ Accepted 30s later: the old root is still inside its 60s window")

    late = prover.generate_full_proof(bob, registry.create_proof(1, 1), external_nullifier=9, signal=1)
    registry.add_member(1, Identity.generate().commitment, "admin")
    clock.now += 61
    try:
        orchestrator.verify_proof(1, late.merkle_root, 1, late.nullifier_hash, 9, late.proof)
    except RootExpiredError as e:
        print(f"✓ Rejected 61s later: {e}")
    print()

    print("=" * 70)
    print(f"Group state: {registry.get_cred(1).to_dict()['number_of_leaves']} members, "
          f"{len(registry.get_cred(1).nullifiers)} nullifiers consumed")
    print("=" * 70)


if __name__ == "__main__":
    main()
