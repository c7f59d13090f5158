from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from arena.db.base import Base


class Metric(Base):
    __tablename__ = "metrics"

    id = Column(Integer, primary_key=True)
    website_id = Column(Integer, ForeignKey("websites.id", ondelete="CASCADE"), index=True, nullable=False)

    total_clicks = Column(Integer, nullable=False, default=0)
    total_impressions = Column(Integer, nullable=False, default=0)
    average_ctr = Column(Float, nullable=False, default=0.0)  # percent
    average_position = Column(Float, nullable=False, default=0.0)

    date_range = Column(String, nullable=False, default="last_28_days")
    last_updated = Column(DateTime(timezone=True), nullable=False)

    website = relationship("Website", back_populates="metrics")
