"""
Member identity: the secret behind a group leaf.

An identity is a pair of random field elements (nullifier, trapdoor):
  - commitment = H(nullifier, trapdoor) is the public leaf added to a group
  - nullifier_hash = H(H_f(external_nullifier), nullifier) is revealed once
    per proof context and lets verifiers reject replays
Neither secret leaves the prover.
"""

from dataclasses import dataclass, field
from typing import Union
import json
import secrets

from zkcred.utils.hash import SNARK_SCALAR_FIELD, hash_pair, hash_to_field, is_field_element
from zkcred.exceptions import DeserializationError


def _random_field_element() -> int:
    return secrets.randbelow(SNARK_SCALAR_FIELD)


@dataclass
class Identity:
    """Secret identity of a group member."""

    trapdoor: int = field(default_factory=_random_field_element)
    nullifier: int = field(default_factory=_random_field_element)
    commitment: int = field(default=0, init=False)

    def __post_init__(self):
        """Compute the public commitment."""
        if not is_field_element(self.trapdoor) or not is_field_element(self.nullifier):
            raise ValueError("Identity secrets must be field elements")
        self.commitment = hash_pair(self.nullifier, self.trapdoor)

    @staticmethod
    def generate() -> "Identity":
        """Generate a new random identity."""
        return Identity()

    def generate_nullifier_hash(self, external_nullifier: Union[int, bytes, str]) -> int:
        """Nullifier hash for one proof context."""
        return hash_pair(hash_to_field(external_nullifier), self.nullifier)

    def serialize(self) -> str:
        """Serialize identity secrets to JSON."""
        return json.dumps({"trapdoor": str(self.trapdoor), "nullifier": str(self.nullifier)})

    @staticmethod
    def deserialize(json_str: str) -> "Identity":
        """Deserialize identity from JSON."""
        try:
            data = json.loads(json_str)
            return Identity(trapdoor=int(data["trapdoor"]), nullifier=int(data["nullifier"]))
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"Cannot deserialize identity: {e}")

    def __repr__(self) -> str:
        return f"Identity(commitment={hex(self.commitment)[:18]}...)"
