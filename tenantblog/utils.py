from datetime import datetime, timezone, timedelta
from typing import Any, List, Optional
import re
import secrets
import string
import bcrypt
from bson import ObjectId
from bson.errors import InvalidId
from jose import jwt
from .config import settings

UTC = timezone.utc

BASE36_DIGITS = string.digits + string.ascii_lowercase

_NON_WORD = re.compile(r"[^\w ]+", re.ASCII)
_SPACES = re.compile(r" +")


def to_string_list(value: Any) -> List[str]:
    """Normalise a comma-separated string or a list into trimmed, non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def slugify(title: str) -> str:
    slug = _NON_WORD.sub("", title.lower())
    return _SPACES.sub("-", slug.strip())


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def make_shareable_link(slug: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(UTC)
    return f"{slug}-{to_base36(int(now.timestamp() * 1000))}"


def generate_api_key() -> str:
    return secrets.token_hex(32)


def parse_object_id(value: Any) -> Optional[ObjectId]:
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, (str, ObjectId)):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))

def create_access_token(email: str, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    encode = {"email": email, "id": user_id}
    expires = datetime.now(UTC) + expires_delta
    encode.update({"exp": expires})
    return jwt.encode(encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def to_page_number(value: Optional[str]) -> int:
    """Parse a page query value; anything that is not an integer means page 1."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)
