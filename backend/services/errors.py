"""Domain errors raised by services and translated to HTTP responses by routers."""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for domain failures."""

    retryable = False


class UnauthenticatedError(ServiceError):
    """The operation requires an authenticated actor."""


class PostNotFoundError(ServiceError):
    def __init__(self, post_id: int) -> None:
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class LikeConflictError(ServiceError):
    """A like toggle kept losing races against concurrent writers."""

    retryable = True


class StorageUnavailableError(ServiceError):
    """The relational store could not be reached or was locked."""

    retryable = True


class InvalidDisplayNameError(ServiceError, ValueError):
    """A display name cannot be turned into an avatar."""


class AvatarStorageError(ServiceError):
    """A generated avatar could not be persisted."""

    retryable = True


__all__ = [
    "ServiceError",
    "UnauthenticatedError",
    "PostNotFoundError",
    "LikeConflictError",
    "StorageUnavailableError",
    "InvalidDisplayNameError",
    "AvatarStorageError",
]
