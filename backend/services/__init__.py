"""Business logic services."""

from .avatars import (
    AVATAR_CONTENT_TYPE,
    avatar_object_key,
    derive_initial,
    generate_and_store_avatar,
    generate_avatar,
    random_background_color,
)
from .errors import (
    AvatarStorageError,
    InvalidDisplayNameError,
    LikeConflictError,
    PostNotFoundError,
    ServiceError,
    StorageUnavailableError,
    UnauthenticatedError,
)
from .likes import (
    LikeToggleResult,
    LikeToggleService,
    collect_liked_post_ids,
    read_like_state,
    recount_like_counters,
)
from .storage import (
    create_presigned_get_url,
    delete_object,
    ensure_bucket,
    get_minio_client,
    put_bytes,
)

__all__ = [
    "AVATAR_CONTENT_TYPE",
    "avatar_object_key",
    "derive_initial",
    "generate_avatar",
    "generate_and_store_avatar",
    "random_background_color",
    "ServiceError",
    "UnauthenticatedError",
    "PostNotFoundError",
    "LikeConflictError",
    "StorageUnavailableError",
    "InvalidDisplayNameError",
    "AvatarStorageError",
    "LikeToggleResult",
    "LikeToggleService",
    "collect_liked_post_ids",
    "read_like_state",
    "recount_like_counters",
    "get_minio_client",
    "ensure_bucket",
    "put_bytes",
    "delete_object",
    "create_presigned_get_url",
]
