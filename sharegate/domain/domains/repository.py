# ============================================================
# DB access layer
# ============================================================
from datetime import datetime
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session


class DomainMembershipRepositoryProtocol(Protocol):
    def is_owner(self, user_id: str, domain_id: str) -> bool:
        """Whether the user owns the domain"""
        ...

    def domains_for_user(self, user_id: str) -> list[str]:
        """Domains owned by the user"""
        ...

    def owners_of(self, domain_id: str) -> list[str]:
        """Users owning the domain"""
        ...

    def claim(self, user_id: str, domain_id: str) -> bool:
        """Make the user the first owner of an unowned domain"""
        ...

    def add_owner(self, user_id: str, domain_id: str) -> None:
        """Register the user as owner of the domain"""
        ...


class DomainMembershipRepository(DomainMembershipRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def is_owner(self, user_id: str, domain_id: str) -> bool:
        query = text("""
                SELECT 1
                FROM domain_owners
                WHERE user_id = :user_id AND domain_id = :domain_id
                """)
        row = self.db.execute(query, {"user_id": user_id, "domain_id": domain_id}).first()
        return row is not None

    def domains_for_user(self, user_id: str) -> list[str]:
        query = text("""
                SELECT domain_id
                FROM domain_owners
                WHERE user_id = :user_id
                ORDER BY domain_id
                """)
        rows = self.db.execute(query, {"user_id": user_id}).all()
        return [row.domain_id for row in rows]

    def add_owner(self, user_id: str, domain_id: str) -> None:
        """Idempotent: registering an existing owner again is a no-op."""
        if self.is_owner(user_id, domain_id):
            return

        query = text("""
                INSERT INTO domain_owners (user_id, domain_id, created_at)
                VALUES (:user_id, :domain_id, :created_at)
                """)
        self.db.execute(
            query,
            {"user_id": user_id, "domain_id": domain_id, "created_at": datetime.now()},
        )
        self.db.commit()

    def owners_of(self, domain_id: str) -> list[str]:
        query = text("""
                SELECT user_id
                FROM domain_owners
                WHERE domain_id = :domain_id
                ORDER BY user_id
                """)
        rows = self.db.execute(query, {"domain_id": domain_id}).all()
        return [row.user_id for row in rows]

    def claim(self, user_id: str, domain_id: str) -> bool:
        """
        Become owner of a domain nobody owns yet.

        Returns True if the user owns the domain afterwards (including when
        they already did) and False if it belongs to someone else. The
        ownership check and the insert are a single statement, so two users
        racing for the same unowned domain cannot both win.
        """
        if self.is_owner(user_id, domain_id):
            return True

        query = text("""
                INSERT INTO domain_owners (user_id, domain_id, created_at)
                SELECT :user_id, :domain_id, :created_at
                WHERE NOT EXISTS (
                    SELECT 1 FROM domain_owners WHERE domain_id = :domain_id
                )
                """)
        result = self.db.execute(
            query,
            {"user_id": user_id, "domain_id": domain_id, "created_at": datetime.now()},
        )
        self.db.commit()
        return result.rowcount == 1
