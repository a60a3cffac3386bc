"""Bearer credential resolution against the collaborator directory."""

from fastapi import HTTPException

from ordering.directory import get_directory


def user_from_header(authorization: str | None, required: bool = False) -> str | None:
    """Return the user id behind an ``Authorization: Bearer`` header.

    A missing header yields None unless ``required``; a malformed or unknown
    credential is always a 401.
    """
    if not authorization:
        if required:
            raise HTTPException(status_code=401, detail="Authentication required")
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization header")

    user_id = get_directory().user_for_token(token.strip())
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return user_id
