"""Variation model."""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
import enum

from splitlab.database import Base

# Referenced by the repository when classifying IntegrityErrors
VARIATION_TYPE_CONSTRAINT = "uq_variations_experiment_type"


class VariationType(str, enum.Enum):
    """Variation slot within an experiment."""
    A = "A"
    B = "B"


class Variation(Base):
    """One content alternative with a relative selection weight."""

    __tablename__ = "variations"
    __table_args__ = (
        UniqueConstraint("experiment_id", "type", name=VARIATION_TYPE_CONSTRAINT),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    experiment_id = Column(Uuid(as_uuid=True), ForeignKey("experiments.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)  # Opaque HTML, never interpreted
    weight = Column(Integer, nullable=False)
    type = Column(SQLEnum(VariationType, name="variation_type"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    experiment = relationship("Experiment", back_populates="variations")
    views = relationship("View", back_populates="variation", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Variation {self.id} type={self.type.value} weight={self.weight}>"
