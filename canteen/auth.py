import os
import time
from typing import Optional

import jwt
from passlib.context import CryptContext

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

SECRET = os.getenv("JWT_SECRET", "dev-secret")
ALGORITHM = "HS256"
EXP_SECONDS = 60 * 60 * 24 * 7  # 7 days


def create_access_token(user_id: int, email: str, expires_delta: Optional[int] = None) -> str:
    # no role claim: roles are read from user_roles on each request
    now = int(time.time())
    exp = now + (expires_delta or EXP_SECONDS)
    payload = {"sub": str(user_id), "email": email, "iat": now, "exp": exp}
    return jwt.encode(payload, SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the token claims. Raises jwt.PyJWTError if the token is bad or expired."""
    return jwt.decode(token, SECRET, algorithms=[ALGORITHM])


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)
