from sqlalchemy import CheckConstraint, Column, Integer, String

from ticketing.db.base import Base, TimestampMixin


class Venue(Base, TimestampMixin):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    capacity = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity > 0", name="check_venue_capacity_positive"),
    )

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name={self.name})>"
