"""View model."""
from sqlalchemy import Column, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from splitlab.database import Base


class View(Base):
    """Immutable record of one impression of a variation."""

    __tablename__ = "views"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    experiment_id = Column(Uuid(as_uuid=True), ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False, index=True)
    variation_id = Column(Uuid(as_uuid=True), ForeignKey("variations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_agent = Column(Text)
    country = Column(Text)  # Stored verbatim; NULL and "" are different values
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    experiment = relationship("Experiment", back_populates="views")
    variation = relationship("Variation", back_populates="views")

    def __repr__(self):
        return f"<View {self.id} variation={self.variation_id}>"
