"""
Recommender access token generation
"""
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional
from scholarship_app.config import settings

TOKEN_ALPHABET = string.ascii_letters + string.digits
TOKEN_LENGTH = 32


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Generate an unguessable alphanumeric token using the OS CSPRNG"""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def token_expiry(issued_at: Optional[datetime] = None, days: Optional[int] = None) -> datetime:
    """Expiration timestamp for a token issued at `issued_at` (defaults to now)"""
    issued_at = issued_at or datetime.utcnow()
    validity_days = settings.recommendation_token_days if days is None else days
    return issued_at + timedelta(days=validity_days)
