"""Experiment model."""
from sqlalchemy import Column, String, Text, DateTime, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from splitlab.database import Base


class Experiment(Base):
    """A/B experiment owning two content variations."""

    __tablename__ = "experiments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    variations = relationship(
        "Variation",
        back_populates="experiment",
        cascade="all, delete-orphan",
        order_by="Variation.type"
    )
    views = relationship("View", back_populates="experiment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Experiment {self.id} name={self.name!r}>"
