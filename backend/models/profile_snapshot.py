"""ProfileSnapshot model - stores profile statistics over time for trend analysis."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from database import Base


class UTCDateTime(TypeDecorator):
    """Stores datetimes as naive UTC and returns them timezone-aware.

    SQLite has no timezone support, so everything is normalized to UTC on the
    way in to keep MAX()/ORDER BY comparisons meaningful.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class ProfileSnapshot(Base):
    """Point-in-time snapshot of one account's profile statistics.

    Append-only table. One row per account per successful fetch.
    The "latest" view is derived from this table on read.
    """

    __tablename__ = "profile_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    rank: Mapped[int | None] = mapped_column(Integer)
    upload: Mapped[str | None] = mapped_column(String)
    current_upload: Mapped[str | None] = mapped_column(String)
    current_download: Mapped[str | None] = mapped_column(String)
    points: Mapped[int | None] = mapped_column(Integer)
    seeding_count: Mapped[int | None] = mapped_column(Integer)

    account: Mapped["Account"] = relationship(back_populates="snapshots")

    def __repr__(self) -> str:
        return f"<ProfileSnapshot user={self.user_id} at {self.timestamp:%Y-%m-%d %H:%M}>"
