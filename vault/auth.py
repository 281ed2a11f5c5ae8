"""Channel credential extraction."""

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_channel_token(x_channel_token: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency returning the remote channel credential.

    The value is opaque to the vault: it is forwarded to the remote service
    unmodified and only its presence is checked here.

    Args:
        x_channel_token: X-Channel-Token header value

    Returns:
        The credential string

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_channel_token or not x_channel_token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Channel-Token header"
        )
    return x_channel_token
