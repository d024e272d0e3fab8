import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .models import Account
from .security_middleware import set_rls_context

logger = logging.getLogger(__name__)

security = HTTPBearer()

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys(refresh: bool = False):
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL)
        if response.status_code == 200:
            _cached_keys = response.json()
            logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
            return _cached_keys
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token with full signature verification against
    Google's public certificates, then check audience, issuer and expiry.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Identity provider not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise HTTPException(status_code=401, detail="Invalid token format. Expected a valid JWT token.")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
        payload = json.loads(_b64decode(payload_b64))
        signature = _b64decode(signature_b64)
    except (ValueError, json.JSONDecodeError) as e:
        logger.error(f"❌ Failed to decode token: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    kid = header.get("kid")
    if header.get("alg") != "RS256" or not kid:
        logger.error(f"❌ Invalid token header: alg={header.get('alg')}, kid={kid}")
        raise HTTPException(status_code=401, detail="Invalid token header")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, refreshing cache")
        public_keys = await get_google_public_keys(refresh=True)
        if not public_keys or kid not in public_keys:
            raise HTTPException(status_code=401, detail="Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
    try:
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token signature") from e

    if payload.get("aud") != FIREBASE_PROJECT_ID:
        raise HTTPException(status_code=401, detail="Invalid token audience")
    if payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        raise HTTPException(status_code=401, detail="Invalid token issuer")

    now = time.time()
    if payload.get("exp", 0) < now:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please refresh your session.",
            headers={"X-Token-Expired": "true"},
        )
    if payload.get("iat", 0) > now + 60:  # Allow 60 seconds clock skew
        raise HTTPException(status_code=401, detail="Invalid token")

    return payload


def resolve_account(db: Session, claims: dict) -> Account:
    """Find the account for verified token claims, creating a `user` profile on first sign-in"""
    firebase_uid = claims.get("sub") or claims.get("user_id")
    email = claims.get("email") or ""
    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    account = db.query(Account).filter(Account.firebase_uid == firebase_uid).first()
    if account:
        return account

    logger.info(f"🆕 Creating profile for {email}")
    account = Account(firebase_uid=firebase_uid, email=email, role="user")
    db.add(account)
    try:
        db.commit()
    except IntegrityError as e:
        # Another request created the profile between the lookup and the insert
        db.rollback()
        account = db.query(Account).filter(Account.firebase_uid == firebase_uid).first()
        if not account:
            raise HTTPException(status_code=409, detail="Profile could not be created") from e
        return account
    db.refresh(account)
    return account


async def account_from_token(token: str, db: Session) -> Account:
    claims = await verify_firebase_token(token)
    account = resolve_account(db, claims)
    set_rls_context(db, account.id)
    return account


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Account:
    """Get the current account from the Firebase bearer token"""
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    account = await account_from_token(credentials.credentials, db)
    logger.debug(f"✅ Account authenticated: {account.email} ({account.role})")
    return account
