"""
Approval link tokens.

A token identifies one approval step of one request so an approver can act
from an email link without a session. The default format is base64url(JSON)
and carries no signature: anyone holding it can act on the step while the
step is still pending. With ``APPROVAL_TOKEN_SIGNED`` enabled the same
payload is issued as an expiring HS256 JWT instead.
"""
import base64
import binascii
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import get_settings
from .errors import InvalidToken

TOKEN_TYPE = "approval"


def _b64_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64_decode(token: str) -> bytes:
    padded = token + "=" * (-len(token) % 4)
    # urlsafe_b64decode also accepts the standard "+/" alphabet
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def _validate(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidToken()
    if payload.get("requestId") is None or payload.get("stepId") is None:
        raise InvalidToken()
    return {"requestId": payload["requestId"], "stepId": payload["stepId"]}


def encode_token(request_id, step_id, signed: Optional[bool] = None) -> str:
    """Encode a {requestId, stepId} reference into a URL-safe token."""
    settings = get_settings()
    if signed is None:
        signed = settings.approval_token_signed

    payload = {"requestId": request_id, "stepId": step_id}
    if not signed:
        return _b64_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))

    expire = datetime.now(timezone.utc) + timedelta(hours=settings.approval_token_expire_hours)
    payload.update({"exp": expire, "type": TOKEN_TYPE})
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str, signed: Optional[bool] = None) -> Dict[str, Any]:
    """Decode a token back into {requestId, stepId}; raises InvalidToken."""
    settings = get_settings()
    if signed is None:
        signed = settings.approval_token_signed

    if not token or not isinstance(token, str):
        raise InvalidToken()

    if signed:
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            raise InvalidToken()
        if payload.get("type") != TOKEN_TYPE:
            raise InvalidToken()
        return _validate(payload)

    try:
        payload = json.loads(_b64_decode(token.strip()).decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeError):
        raise InvalidToken()
    return _validate(payload)


def encode_quote_token(rfq_id, supplier_id) -> str:
    """Reference carried in a supplier's submit-quote link."""
    payload = {"rfqId": rfq_id, "supplierId": supplier_id}
    return _b64_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
