from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from arena.db.base import Base


class Website(Base):
    __tablename__ = "websites"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    # placeholder values when anonymous
    domain = Column(String, index=True, nullable=False)
    site_url = Column(String, nullable=False)

    # NULL for rows created before fingerprinting, and for anonymous rows
    original_site_url = Column(String, nullable=True)
    site_hash = Column(String(64), unique=True, index=True, nullable=True)

    anonymous = Column(Boolean, nullable=False, default=False)
    favicon_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    metrics = relationship(
        "Metric",
        back_populates="website",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Metric.last_updated.desc()",
    )
