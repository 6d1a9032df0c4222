"""
Contact store for confirmed business card contacts.

Backed by SQLAlchemy; SQLite by default.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, as stored in the contacts table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class Contact(Base):
    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    emails: Mapped[List[str]] = mapped_column(JSON, default=list)
    phones: Mapped[List[str]] = mapped_column(JSON, default=list)
    confidence_score: Mapped[int] = mapped_column(Integer, default=0)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "emails": list(self.emails or []),
            "phones": list(self.phones or []),
            "confidence_score": self.confidence_score,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class ContactStore:
    """Saves and lists contacts."""

    def __init__(self, database_url: str = "sqlite:///contacts.db"):
        self.database_url = database_url
        self.engine = create_engine(database_url)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        logger.info(f"Contact store ready at {self.engine.url.render_as_string(hide_password=True)}")

    def save(
        self,
        name: Optional[str],
        company: Optional[str] = None,
        emails: Optional[List[str]] = None,
        phones: Optional[List[str]] = None,
        is_verified: bool = False,
        confidence_score: int = 0,
    ) -> Dict[str, Any]:
        """Store one contact and return it with its id and creation time.

        Raises:
            PersistenceFailure: The name is missing or the database rejects
                the insert
        """
        if not name or not isinstance(name, str):
            raise PersistenceFailure("Contact name is required")

        contact = Contact(
            name=name,
            company=company or None,
            emails=list(emails or []),
            phones=list(phones or []),
            is_verified=is_verified,
            confidence_score=confidence_score,
        )

        try:
            with self.session_factory() as session:
                session.add(contact)
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save contact: {e}")
            raise PersistenceFailure(str(e)) from e

        logger.info(f"Saved contact {contact.id}")
        return contact.to_dict()

    def list_contacts(self) -> List[Contact]:
        """All contacts, newest first."""
        stmt = select(Contact).order_by(Contact.created_at.desc(), Contact.id.desc())
        with self.session_factory() as session:
            return list(session.scalars(stmt))
