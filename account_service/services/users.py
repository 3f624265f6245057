"""Credential store backed by the MongoDB users collection."""

import base64
import hashlib
import logging
import uuid
from datetime import datetime

import bcrypt
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from account_service.database import USERS_COLLECTION_NAME
from account_service.models.user import User

logger = logging.getLogger("account_service")

GMAIL_DOMAINS = {"gmail.com", "googlemail.com"}
PLUS_SUBADDRESS_DOMAINS = {
    "outlook.com",
    "hotmail.com",
    "live.com",
    "icloud.com",
    "me.com",
}
YAHOO_DOMAINS = {"yahoo.com", "ymail.com", "rocketmail.com"}


class EmailTakenError(Exception):
    """Raised when creating a user whose email is already registered."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Account with email {email} already exists")


def normalize_email(email: str) -> str:
    """Canonicalize an email address so equivalent addresses compare equal.

    The whole address is lowercased. For providers that ignore sub-addresses
    the tag is dropped (``john+news@gmail.com`` -> ``john@gmail.com``);
    ``googlemail.com`` becomes ``gmail.com``. Dots in Gmail local parts are kept.
    Yahoo addresses lose their last ``-keyword`` segment. Raises ValueError when
    nothing is left of the local part.
    """
    email = email.strip()
    local, sep, domain = email.rpartition("@")
    if not sep:
        return email.lower()
    local = local.lower()
    domain = domain.lower()

    if domain in GMAIL_DOMAINS:
        local = local.split("+", 1)[0]
        domain = "gmail.com"
    elif domain in PLUS_SUBADDRESS_DOMAINS:
        local = local.split("+", 1)[0]
    elif domain in YAHOO_DOMAINS:
        local = local.rsplit("-", 1)[0]

    if not local:
        raise ValueError(f"Email has an empty local part: {email}")
    return f"{local}@{domain}"


def _prehash(password: str) -> bytes:
    """SHA-256 the password so bcrypt never sees more than 72 bytes."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode("utf-8")


class UserStore:
    """Reads and writes User documents. Owns password hashing."""

    def __init__(self, db: Database) -> None:
        self.collection = db[USERS_COLLECTION_NAME]

    def ensure_indexes(self) -> None:
        """Create the indexes the store relies on."""
        self.collection.create_index("email", name="idx_users_email", unique=True)
        self.collection.create_index("password_reset_token", name="idx_users_password_reset_token")

    def find_by_email(self, email: str) -> User | None:
        doc = self.collection.find_one({"email": normalize_email(email)})
        return User.from_document(doc) if doc else None

    def create(self, name: str, email: str, password: str) -> User:
        """Create a user. Raises EmailTakenError if the email is registered."""
        email = normalize_email(email)
        if self.collection.find_one({"email": email}, {"_id": 1}):
            raise EmailTakenError(email)

        now = datetime.utcnow()
        user = User(
            id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=hash_password(password),
            created_at=now,
            updated_at=now,
        )
        try:
            self.collection.insert_one(user.to_document())
        except DuplicateKeyError as exc:
            raise EmailTakenError(email) from exc

        logger.info("User created: %s", user.id)
        return user

    def compare_password(self, user: User, password: str) -> bool:
        """Check a plaintext password against the stored hash."""
        return bcrypt.checkpw(_prehash(password), user.password_hash.encode("utf-8"))

    def set_reset_token(self, user: User, token: str, expires_at: datetime) -> None:
        """Store a pending reset token, replacing any earlier one."""
        self.collection.update_one(
            {"_id": user.id},
            {
                "$set": {
                    "password_reset_token": token,
                    "password_reset_expires": expires_at,
                    "updated_at": datetime.utcnow(),
                }
            },
        )
        user.password_reset_token = token
        user.password_reset_expires = expires_at

    def find_by_valid_reset_token(self, token: str) -> User | None:
        """Find the user holding ``token`` if it has not expired yet."""
        if not token:
            return None
        doc = self.collection.find_one(
            {
                "password_reset_token": token,
                "password_reset_expires": {"$gt": datetime.utcnow()},
            }
        )
        return User.from_document(doc) if doc else None

    def clear_reset_and_set_password(self, user: User, new_password: str) -> User | None:
        """Set a new password and consume the user's reset token.

        The update only applies while the document still holds the token that
        was read, so one token changes the password at most once. Returns the
        updated user, or None when the token was consumed or replaced first.
        """
        if not user.password_reset_token:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": user.id, "password_reset_token": user.password_reset_token},
            {
                "$set": {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()},
                "$unset": {"password_reset_token": "", "password_reset_expires": ""},
            },
            return_document=ReturnDocument.AFTER,
        )
        return User.from_document(doc) if doc else None
