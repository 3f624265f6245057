"""User model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Application user, stored as one document in the users collection."""

    id: str
    name: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None

    @classmethod
    def from_document(cls, doc: dict) -> "User":
        """Convert a MongoDB document to a User."""
        return cls(
            id=doc["_id"],
            name=doc["name"],
            email=doc["email"],
            password_hash=doc["password_hash"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
            password_reset_token=doc.get("password_reset_token"),
            password_reset_expires=doc.get("password_reset_expires"),
        )

    def to_document(self) -> dict:
        """Convert to a MongoDB document. Absent reset fields are omitted."""
        doc = {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.password_reset_token is not None:
            doc["password_reset_token"] = self.password_reset_token
            doc["password_reset_expires"] = self.password_reset_expires
        return doc
