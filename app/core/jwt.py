from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
import os
from dotenv import load_dotenv

load_dotenv()

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Tokens are issued by the staff identity service; this side only verifies.
STAFF_ROLES = {"admin", "staff"}


def _secret():
    return os.getenv("JWT_SECRET")


def _algorithm():
    return os.getenv("JWT_ALGORITHM", "HS256")


# -------- CREATE TOKEN --------
def create_access_token(data: dict, expires_delta: int | None = None):
    """Generate JWT token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_delta if expires_delta else ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret(), algorithm=_algorithm())


# -------- DECODE TOKEN --------
def decode_access_token(token: str):
    """Decode JWT and return the payload, or None if invalid/expired"""
    try:
        payload = jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except JWTError:
        return None

    if "sub" not in payload or "role" not in payload:
        return None

    return payload
