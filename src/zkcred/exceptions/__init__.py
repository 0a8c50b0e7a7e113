"""Custom exceptions for the zk-cred system."""


class CredException(Exception):
    """Base exception for all zk-cred errors."""
    pass


# Configuration Errors
class ConfigurationError(CredException):
    """Base exception for invalid group configuration or lookup."""
    pass


class CredAlreadyExistsError(ConfigurationError):
    """Raised when a group id is already in use."""
    pass


class CredIdTooLargeError(ConfigurationError):
    """Raised when a group id is outside the scalar field."""
    pass


class DepthNotSupportedError(ConfigurationError):
    """Raised when no verifier is bound for the requested tree depth."""
    pass


class CredDoesNotExistError(ConfigurationError):
    """Raised when a group id is unknown."""
    pass


class InvalidRootValidityDurationError(ConfigurationError):
    """Raised when a root validity duration is negative."""
    pass


# Authorization Errors
class AuthorizationError(CredException):
    """Base exception for authorization failures."""
    pass


class NotAdminError(AuthorizationError):
    """Raised when the caller is not the group admin."""
    pass


# Merkle Tree Errors
class MerkleTreeError(CredException):
    """Base exception for Merkle tree errors."""
    pass


class InvalidTreeDepthError(MerkleTreeError):
    """Raised when tree depth is zero or above the maximum."""
    pass


class TreeFullError(MerkleTreeError):
    """Raised when every leaf slot of the tree is used."""
    pass


class InvalidLeafError(MerkleTreeError):
    """Raised when a leaf value is outside the field or unchanged by an update."""
    pass


class InvalidLeafIndexError(MerkleTreeError):
    """Raised when leaf index is invalid."""
    pass


class InvalidSiblingPathError(MerkleTreeError):
    """Raised when siblings or path indices are malformed."""
    pass


class InvalidMerkleProofError(MerkleTreeError):
    """Raised when a sibling path does not reconstruct the current root."""
    pass


# Freshness Errors
class FreshnessError(CredException):
    """Base exception for roots that cannot be proven against."""
    pass


class RootNotPartOfCredError(FreshnessError):
    """Raised when a root was never current for the group."""
    pass


class RootExpiredError(FreshnessError):
    """Raised when a root is past its validity window."""
    pass


# Proof Errors
class ProofError(CredException):
    """Base exception for proof-related errors."""
    pass


class NullifierReusedError(ProofError):
    """Raised when a nullifier hash was already consumed in the group."""
    pass


class InvalidProofError(ProofError):
    """Raised when proof verification fails."""
    pass


class ProofFormatError(ProofError):
    """Raised when a proof does not have the expected shape."""
    pass


# Storage Errors
class StorageError(CredException):
    """Base exception for storage errors."""
    pass


class SerializationError(StorageError):
    """Raised when serialization fails."""
    pass


class DeserializationError(StorageError):
    """Raised when deserialization fails."""
    pass
