from __future__ import annotations

import hashlib

from fastapi import Header, HTTPException, Request, status

from ..services.storage import StorageService

USER_HEADER = "X-Studymood-User"
_MAX_IDENTIFIER_LENGTH = 128


def _hash_identifier(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]


async def resolve_authenticated_user(
    request: Request,
    user_header: str | None = Header(default=None, alias=USER_HEADER),
) -> int:
    """Map the upstream-authenticated identifier to a local user id.

    Credentials are checked by the gateway in front of this service; the
    header value is trusted as-is.
    """

    external_id = (user_header or "").strip()
    if not external_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="authentication required",
        )
    if len(external_id) > _MAX_IDENTIFIER_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid user identifier",
        )

    storage: StorageService = request.app.state.storage_service
    user = await storage.ensure_user(external_id)
    request.state.current_user_id = user.id
    request.state.telemetry_user = _hash_identifier(external_id)
    return user.id
