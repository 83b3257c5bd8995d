"""Clerk session tokens and webhook signatures"""
import base64
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Mapping, Optional

import jwt
from fastapi import Header
from jwt import PyJWKClient

from .config import settings

logger = logging.getLogger(__name__)

_jwks_client: Optional[PyJWKClient] = None


@dataclass(frozen=True)
class Identity:
    """Verified caller; ``subject`` is the Clerk user id"""
    subject: str


class WebhookVerificationError(Exception):
    """Webhook signature headers are missing, stale or do not match"""


def get_jwks_client() -> Optional[PyJWKClient]:
    """Get or create the JWKS client when a JWKS URL is configured"""
    global _jwks_client
    if not settings.CLERK_JWKS_URL:
        return None
    if _jwks_client is None:
        _jwks_client = PyJWKClient(settings.CLERK_JWKS_URL)
    return _jwks_client


def verify_session_token(token: str) -> Optional[Identity]:
    """
    Verify a Clerk session JWT.

    Args:
        token: Raw bearer token

    Returns:
        Identity for a valid token, None otherwise
    """
    if not token:
        return None

    try:
        client = get_jwks_client()
        if client is not None:
            key = client.get_signing_key_from_jwt(token).key
        elif settings.CLERK_JWT_KEY:
            key = settings.CLERK_JWT_KEY
        else:
            logger.warning("No Clerk verification key configured; rejecting session token")
            return None

        options = {"verify_aud": False}
        kwargs = {}
        if settings.CLERK_ISSUER:
            kwargs["issuer"] = settings.CLERK_ISSUER
        else:
            options["verify_iss"] = False

        claims = jwt.decode(token, key, algorithms=["RS256"], options=options, **kwargs)
    except jwt.PyJWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None

    subject = claims.get("sub")
    if not subject:
        return None
    return Identity(subject=subject)


async def get_identity(authorization: Optional[str] = Header(None)) -> Optional[Identity]:
    """FastAPI dependency resolving the caller from ``Authorization: Bearer <jwt>``"""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return verify_session_token(token.strip())


def _secret_bytes(secret: str) -> bytes:
    if secret.startswith("whsec_"):
        return base64.b64decode(secret[len("whsec_"):])
    return secret.encode()


def sign_webhook(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Compute the ``v1,<base64>`` signature Svix attaches to a delivery"""
    signed = f"{msg_id}.{timestamp}.".encode() + body
    digest = hmac.new(_secret_bytes(secret), signed, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode()


def verify_webhook_signature(
    body: bytes,
    headers: Mapping[str, str],
    secret: str,
    tolerance: int = 300,
    now: Optional[float] = None
) -> None:
    """
    Verify Svix webhook headers against the raw request body.

    Args:
        body: Raw request body
        headers: Request headers (``svix-id``, ``svix-timestamp``, ``svix-signature``)
        secret: Signing secret, optionally prefixed with ``whsec_``
        tolerance: Accepted clock skew in seconds
        now: Current Unix time, defaults to the wall clock

    Raises:
        WebhookVerificationError: if any check fails
    """
    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing webhook signature headers")

    try:
        sent_at = int(timestamp)
    except ValueError:
        raise WebhookVerificationError("Invalid webhook timestamp")

    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance:
        raise WebhookVerificationError("Webhook timestamp outside tolerance")

    expected = sign_webhook(secret, msg_id, timestamp, body)
    for candidate in signature_header.split():
        if hmac.compare_digest(candidate, expected):
            return
    raise WebhookVerificationError("Webhook signature mismatch")
