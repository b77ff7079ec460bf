"""Account model - a tracked nCore profile."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class Account(Base):
    """A tracked remote profile.

    Created once through the admin command, never updated by the fetcher.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    profile_id: Mapped[str] = mapped_column(String, nullable=False)  # nCore profile id

    snapshots: Mapped[list["ProfileSnapshot"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Account {self.display_name} ({self.profile_id})>"
