"""Pydantic data models for the zk-cred HTTP API.

Field elements travel as decimal strings in responses; requests accept
ints, decimal strings or 0x-prefixed hex strings.
"""

from pydantic import BaseModel, BeforeValidator, Field
from typing import Annotated, Any, List, Optional
from datetime import datetime

from zkcred.utils.encoding import parse_field_element


def _field_element(value: Any) -> int:
    try:
        return parse_field_element(value)
    except TypeError as e:
        raise ValueError(str(e)) from e


def _uint256(value: Any) -> int:
    if isinstance(value, str):
        text = value.strip()
        value = int(text[2:], 16) if text.startswith(("0x", "0X")) else int(text, 10)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {type(value).__name__}")
    if value < 0 or value >= 2**256:
        raise ValueError("Value must fit in 256 bits")
    return value


FieldElement = Annotated[int, BeforeValidator(_field_element)]
Uint256 = Annotated[int, BeforeValidator(_uint256)]


# ========== GROUPS ==========

class CreateGroupRequest(BaseModel):
    """Request model for group creation."""
    cred_id: int = Field(..., description="Group id, below the scalar field")
    depth: int = Field(..., description="Tree depth; a verifier must be bound for it")
    zero_value: FieldElement = Field(0, description="Value of empty leaves")
    admin: Optional[str] = Field(None, description="Admin identity (defaults to the caller)")
    uri: str = Field("", max_length=1024, description="Opaque metadata")
    root_validity_duration: Optional[int] = Field(
        None, description="Seconds a superseded root stays usable"
    )


class GroupResponse(BaseModel):
    """Response model for group state."""
    cred_id: str
    admin: str
    uri: str
    depth: int
    zero_value: str
    root: str
    number_of_leaves: int
    root_validity_duration: int
    num_roots: int
    num_nullifiers: int
    created_at: float


class SetAdminRequest(BaseModel):
    new_admin: str = Field(..., min_length=1)


class SetDurationRequest(BaseModel):
    root_validity_duration: int = Field(..., description="Seconds, zero or more")


# ========== MEMBERS ==========

class AddMemberRequest(BaseModel):
    leaf: FieldElement = Field(..., description="Identity commitment")


class AddMembersRequest(BaseModel):
    leaves: List[FieldElement] = Field(..., description="Identity commitments, in order")


class UpdateMemberRequest(BaseModel):
    """Request model for leaf replacement, proven by a sibling path."""
    old_leaf: FieldElement
    new_leaf: FieldElement
    siblings: List[FieldElement]
    path_indices: List[int]


class RemoveMemberRequest(BaseModel):
    """Request model for leaf removal, proven by a sibling path."""
    leaf: FieldElement
    siblings: List[FieldElement]
    path_indices: List[int]


class MemberResponse(BaseModel):
    leaf_index: int
    root: str


class MembersResponse(BaseModel):
    leaf_indices: List[int]
    root: str


class MerkleProofResponse(BaseModel):
    """Sibling path of one leaf against the current root."""
    root: str
    leaf: str
    leaf_index: int
    siblings: List[str]
    path_indices: List[int]


# ========== PROOFS ==========

class VerifyProofRequest(BaseModel):
    """Request model for membership proof verification."""
    root: FieldElement = Field(..., description="Root the proof was generated against")
    signal: Uint256 = Field(..., description="Message endorsed by the proof")
    nullifier_hash: FieldElement = Field(..., description="Replay tag")
    external_nullifier: Uint256 = Field(..., description="Proof context")
    proof: List[FieldElement] = Field(..., description="8 proof elements")


class VerifyProofResponse(BaseModel):
    verified: bool
    cred_id: str
    nullifier_hash: str
    verified_at: float


# ========== JOURNAL ==========

class MemberEventRecord(BaseModel):
    event_type: str
    leaf_index: int
    leaf: str
    new_leaf: Optional[str] = None
    root: str
    timestamp: Optional[datetime] = None


class NullifierRecordResponse(BaseModel):
    nullifier_hash: str
    root: str
    external_nullifier: str
    signal: str
    verified_at: float


class GroupEventsResponse(BaseModel):
    """Journaled history of one group."""
    cred_id: str
    member_events: List[MemberEventRecord]
    nullifiers: List[NullifierRecordResponse]
