"""Nullifier registry: replay protection for membership proofs.

A nullifier hash is derived inside the proof from the prover's secret
identity nullifier and the proof's external nullifier (its "context").
The same member proving twice in the same context reveals the same
nullifier hash, so recording every accepted hash per group is enough to
reject replays without learning who the prover is.

The registry grows monotonically: consumption is permanent for the
lifetime of the group and there is no removal operation.
"""

from typing import Set, Dict, Optional
from dataclasses import dataclass
import json

from zkcred.exceptions import DeserializationError, SerializationError


@dataclass
class NullifierRecord:
    """
    Record of a consumed nullifier.

    Tracks when and against which root a nullifier was used.
    """

    nullifier_hash: int
    consumed_at: Optional[float] = None
    root: Optional[int] = None  # Root the accepted proof was made against
    external_nullifier: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "nullifier_hash": str(self.nullifier_hash),
            "consumed_at": self.consumed_at,
            "root": None if self.root is None else str(self.root),
            "external_nullifier": (
                None if self.external_nullifier is None else str(self.external_nullifier)
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NullifierRecord":
        return cls(
            nullifier_hash=int(data["nullifier_hash"]),
            consumed_at=data.get("consumed_at"),
            root=None if data.get("root") is None else int(data["root"]),
            external_nullifier=(
                None
                if data.get("external_nullifier") is None
                else int(data["external_nullifier"])
            ),
        )


class NullifierRegistry:
    """
    Set of nullifier hashes consumed in one group.

    ``consume`` does not re-check membership: callers must have seen
    ``is_consumed`` return False under the same lock.
    """

    def __init__(self):
        """Initialize empty registry."""
        self.nullifiers: Set[int] = set()
        self.records: Dict[int, NullifierRecord] = {}

    def is_consumed(self, nullifier_hash: int) -> bool:
        """Check if a nullifier hash has been consumed."""
        return nullifier_hash in self.nullifiers

    def consume(
        self,
        nullifier_hash: int,
        root: Optional[int] = None,
        external_nullifier: Optional[int] = None,
        timestamp: Optional[float] = None,
    ) -> NullifierRecord:
        """
        Mark a nullifier hash as consumed.

        Args:
            nullifier_hash: The nullifier hash revealed by the proof
            root: Root the proof was verified against
            external_nullifier: Context of the proof
            timestamp: Time of consumption

        Returns:
            NullifierRecord: The stored record
        """
        self.nullifiers.add(nullifier_hash)
        record = NullifierRecord(
            nullifier_hash=nullifier_hash,
            consumed_at=timestamp,
            root=root,
            external_nullifier=external_nullifier,
        )
        self.records[nullifier_hash] = record
        return record

    def get_record(self, nullifier_hash: int) -> Optional[NullifierRecord]:
        """Get the consumption record for a nullifier hash."""
        return self.records.get(nullifier_hash)

    @property
    def size(self) -> int:
        """Get number of consumed nullifiers."""
        return len(self.nullifiers)

    def serialize(self) -> str:
        """Serialize registry to JSON."""
        try:
            return json.dumps(
                {
                    "records": [record.to_dict() for record in self.records.values()],
                    "total_consumed": self.size,
                }
            )
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot serialize nullifier registry: {e}")

    @classmethod
    def deserialize(cls, json_str: str) -> "NullifierRegistry":
        """Deserialize registry from JSON."""
        try:
            data = json.loads(json_str)
            registry = cls()
            for record_data in data["records"]:
                record = NullifierRecord.from_dict(record_data)
                registry.nullifiers.add(record.nullifier_hash)
                registry.records[record.nullifier_hash] = record
        except (KeyError, TypeError, ValueError) as e:
            raise DeserializationError(f"Cannot deserialize nullifier registry: {e}")
        return registry

    def __contains__(self, nullifier_hash: int) -> bool:
        return nullifier_hash in self.nullifiers

    def __len__(self) -> int:
        return len(self.nullifiers)
