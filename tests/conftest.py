"""Pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from zkcred.config import Settings  # noqa: E402
from zkcred.core.registry import CredRegistry  # noqa: E402
from zkcred.core.verification import ProofVerificationOrchestrator  # noqa: E402
from zkcred.crypto.zk_snark import DigestProver, build_default_verifier_registry  # noqa: E402

ADMIN = "admin@example.com"


class FakeClock:
    """Manually advanced clock for root validity tests."""

    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    """Settings independent of the environment and any .env file."""
    return Settings(_env_file=None, supported_depths=[2, 16, 20])


@pytest.fixture
def registry(settings, clock):
    """Registry with verifiers bound for depths 2, 16 and 20."""
    return CredRegistry(
        verifiers=build_default_verifier_registry(settings.supported_depths),
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def orchestrator(registry):
    return ProofVerificationOrchestrator(registry)


@pytest.fixture
def prover():
    return DigestProver()


@pytest.fixture
def temp_db(tmp_path):
    """Fixture providing a temporary database path."""
    return tmp_path / "test.db"
