"""REST API endpoints for the zk-cred service."""

import logging
import threading
from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field
from typing import Callable, Optional
from datetime import datetime

from zkcred.config import Settings, configure_logging, get_settings
from zkcred.core.registry import CredRegistry
from zkcred.core.verification import ProofVerificationOrchestrator
from zkcred.crypto.zk_snark import build_default_verifier_registry
from zkcred.storage import DatabaseManager, DatabaseEventSink, get_db_manager
from zkcred.models.schemas import (
    CreateGroupRequest,
    GroupResponse,
    SetAdminRequest,
    SetDurationRequest,
    AddMemberRequest,
    AddMembersRequest,
    UpdateMemberRequest,
    RemoveMemberRequest,
    MemberResponse,
    MembersResponse,
    MerkleProofResponse,
    VerifyProofRequest,
    VerifyProofResponse,
    MemberEventRecord,
    NullifierRecordResponse,
    GroupEventsResponse,
)
from zkcred.security import verify_access_token
from zkcred.exceptions import (
    CredException,
    ConfigurationError,
    CredAlreadyExistsError,
    CredDoesNotExistError,
    AuthorizationError,
    InvalidTreeDepthError,
)

logger = logging.getLogger(__name__)

# Service state, built once by init_service() or on first use
registry: Optional[CredRegistry] = None
orchestrator: Optional[ProofVerificationOrchestrator] = None
db_manager: Optional[DatabaseManager] = None
_service_lock = threading.Lock()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    version: str = "0.1.0"
    groups: int = 0


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())


def init_service(
    settings: Optional[Settings] = None,
    db: Optional[DatabaseManager] = None,
    clock: Optional[Callable[[], float]] = None,
) -> CredRegistry:
    """
    Build the registry and orchestrator the endpoints use.

    Every depth in ``settings.supported_depths`` gets a verifier, and every
    registry event is journaled to ``db``, which the journal endpoints
    also read from.
    """
    with _service_lock:
        return _build_service(settings, db, clock)


def _build_service(settings, db, clock) -> CredRegistry:
    global registry, orchestrator, db_manager

    settings = settings or get_settings()
    db = db or get_db_manager(settings.database_url)

    new_registry = CredRegistry(
        verifiers=build_default_verifier_registry(settings.supported_depths),
        clock=clock,
        settings=settings,
    )
    DatabaseEventSink(db).attach(new_registry.events)

    # registry is published last; it is the flag checked without the lock
    db_manager = db
    orchestrator = ProofVerificationOrchestrator(new_registry)
    registry = new_registry

    logger.info(f"Service initialized with depths {registry.verifiers.supported_depths}")
    return registry


def _ensure_service() -> None:
    if registry is None:
        with _service_lock:
            if registry is None:
                _build_service(None, None, None)


# Initialize FastAPI
app = FastAPI(
    title="zk-cred REST API",
    description="Anonymous group membership credentials with replay protection",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Custom exception handler for validation errors - convert 422 to 400
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Convert Pydantic validation errors (422) to 400 Bad Request."""
    errors = exc.errors()
    error_messages = []

    for error in errors:
        field = " -> ".join(str(loc) for loc in error["loc"])
        msg = error["msg"]
        error_messages.append(f"{field}: {msg}")

    detail = "; ".join(error_messages)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(detail=detail, code="VALIDATION_ERROR").model_dump(),
    )


def _status_for(exc: CredException) -> int:
    if isinstance(exc, CredDoesNotExistError):
        return 404
    if isinstance(exc, CredAlreadyExistsError):
        return 409
    if isinstance(exc, (ConfigurationError, InvalidTreeDepthError)):
        return 400
    if isinstance(exc, AuthorizationError):
        return 403
    # Membership proofs, freshness, replay and proof format
    return 422


@app.exception_handler(CredException)
async def cred_exception_handler(request: Request, exc: CredException):
    """Map domain errors to HTTP status codes."""
    status_code = _status_for(exc)
    if status_code >= 422:
        logger.info(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=type(exc).__name__).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=str(exc.detail), code="HTTP_ERROR").model_dump(),
    )


# Dependencies
def get_db() -> DatabaseManager:
    """Get the database manager the registry journals to."""
    _ensure_service()
    return db_manager


def get_registry() -> CredRegistry:
    _ensure_service()
    return registry


def get_orchestrator() -> ProofVerificationOrchestrator:
    _ensure_service()
    return orchestrator


async def get_caller(authorization: Optional[str] = Header(None)) -> str:
    """Get the caller identity from the JWT ``sub`` claim."""
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization header")

    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    token = authorization[7:]
    payload = verify_access_token(token)

    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload["sub"]


def _group_response(reg: CredRegistry, cred_id: int) -> GroupResponse:
    with reg.lock:
        return GroupResponse(**reg.get_cred(cred_id).to_dict())


# ============================================================================
# Health & System Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(reg: CredRegistry = Depends(get_registry)):
    """Check service health and status."""
    return HealthResponse(status="operational", groups=len(reg))


# ============================================================================
# Group Endpoints
# ============================================================================


@app.post("/groups", response_model=GroupResponse, status_code=201, tags=["Groups"])
def create_group(
    request: CreateGroupRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """
    Create a group with an empty tree.

    - **cred_id**: Group id
    - **depth**: Tree depth
    - **admin**: Admin identity, the caller by default
    """
    reg.create_group(
        cred_id=request.cred_id,
        depth=request.depth,
        zero_value=request.zero_value,
        admin=request.admin or caller,
        uri=request.uri,
        root_validity_duration=request.root_validity_duration,
    )
    return _group_response(reg, request.cred_id)


@app.get("/groups/{cred_id}", response_model=GroupResponse, tags=["Groups"])
def get_group(cred_id: int, reg: CredRegistry = Depends(get_registry)):
    """Get group metadata and current root."""
    return _group_response(reg, cred_id)


@app.put("/groups/{cred_id}/admin", response_model=GroupResponse, tags=["Groups"])
def set_admin(
    cred_id: int,
    request: SetAdminRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Hand the group over to a new admin."""
    reg.set_admin(cred_id, request.new_admin, caller)
    return _group_response(reg, cred_id)


@app.put("/groups/{cred_id}/duration", response_model=GroupResponse, tags=["Groups"])
def set_root_validity_duration(
    cred_id: int,
    request: SetDurationRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Change how long superseded roots stay usable."""
    reg.update_root_validity_duration(cred_id, request.root_validity_duration, caller)
    return _group_response(reg, cred_id)


# ============================================================================
# Membership Endpoints
# ============================================================================


@app.post("/groups/{cred_id}/members", response_model=MemberResponse, status_code=201, tags=["Members"])
def add_member(
    cred_id: int,
    request: AddMemberRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Append one identity commitment."""
    with reg.lock:
        index = reg.add_member(cred_id, request.leaf, caller)
        return MemberResponse(leaf_index=index, root=str(reg.get_root(cred_id)))


@app.post("/groups/{cred_id}/members/batch", response_model=MembersResponse, status_code=201, tags=["Members"])
def add_members(
    cred_id: int,
    request: AddMembersRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Append several identity commitments; all or none are added."""
    with reg.lock:
        indices = reg.add_members(cred_id, request.leaves, caller)
        return MembersResponse(leaf_indices=indices, root=str(reg.get_root(cred_id)))


@app.put("/groups/{cred_id}/members", response_model=MemberResponse, tags=["Members"])
def update_member(
    cred_id: int,
    request: UpdateMemberRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Replace a member's leaf, proven by its sibling path."""
    with reg.lock:
        index = reg.update_member(
            cred_id,
            request.old_leaf,
            request.new_leaf,
            request.siblings,
            request.path_indices,
            caller,
        )
        return MemberResponse(leaf_index=index, root=str(reg.get_root(cred_id)))


@app.post("/groups/{cred_id}/members/remove", response_model=MemberResponse, tags=["Members"])
def remove_member(
    cred_id: int,
    request: RemoveMemberRequest,
    caller: str = Depends(get_caller),
    reg: CredRegistry = Depends(get_registry),
):
    """Reset a member's leaf to the zero value."""
    with reg.lock:
        index = reg.remove_member(
            cred_id,
            request.leaf,
            request.siblings,
            request.path_indices,
            caller,
        )
        return MemberResponse(leaf_index=index, root=str(reg.get_root(cred_id)))


@app.get("/groups/{cred_id}/members/{leaf_index}/proof", response_model=MerkleProofResponse, tags=["Members"])
def get_member_proof(cred_id: int, leaf_index: int, reg: CredRegistry = Depends(get_registry)):
    """Sibling path of a leaf against the current root, for provers."""
    proof = reg.create_proof(cred_id, leaf_index)
    return MerkleProofResponse(**proof.to_dict())


# ============================================================================
# Proof Endpoints
# ============================================================================


@app.post("/groups/{cred_id}/proofs", response_model=VerifyProofResponse, tags=["Proofs"])
def verify_proof(
    cred_id: int,
    request: VerifyProofRequest,
    orch: ProofVerificationOrchestrator = Depends(get_orchestrator),
):
    """
    Verify a membership proof and consume its nullifier.

    No authentication: the proof itself is the credential.
    """
    event = orch.verify_proof(
        cred_id=cred_id,
        root=request.root,
        signal=request.signal,
        nullifier_hash=request.nullifier_hash,
        external_nullifier=request.external_nullifier,
        proof=request.proof,
    )
    return VerifyProofResponse(
        verified=True,
        cred_id=str(cred_id),
        nullifier_hash=str(event.nullifier_hash),
        verified_at=event.verified_at,
    )


# ============================================================================
# Journal Endpoints
# ============================================================================


@app.get("/groups/{cred_id}/events", response_model=GroupEventsResponse, tags=["Journal"])
def get_group_events(
    cred_id: int,
    limit: Optional[int] = None,
    reg: CredRegistry = Depends(get_registry),
    db: DatabaseManager = Depends(get_db),
):
    """Journaled membership changes and consumed nullifiers of a group."""
    reg.get_cred(cred_id)

    session = db.get_session()
    try:
        member_events = [
            MemberEventRecord(
                event_type=e.event_type.value,
                leaf_index=e.leaf_index,
                leaf=e.leaf,
                new_leaf=e.new_leaf,
                root=e.root,
                timestamp=e.timestamp,
            )
            for e in db.get_member_events(session, cred_id, limit=limit)
        ]
        nullifiers = [
            NullifierRecordResponse(
                nullifier_hash=n.nullifier_hash,
                root=n.root,
                external_nullifier=n.external_nullifier,
                signal=n.signal,
                verified_at=n.verified_at,
            )
            for n in db.get_nullifiers(session, cred_id)
        ]
    finally:
        session.close()

    return GroupEventsResponse(
        cred_id=str(cred_id),
        member_events=member_events,
        nullifiers=nullifiers,
    )


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
