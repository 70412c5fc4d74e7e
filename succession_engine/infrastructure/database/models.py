"""SQLAlchemy ORM models for stored calculation snapshots"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class InheritanceCalculationRecord(Base):
    """Latest snapshot of an InheritanceCalculation aggregate"""

    __tablename__ = "inheritance_calculation"

    id = Column(String(36), primary_key=True)
    estate_id = Column(Text, nullable=False, index=True)
    deceased_id = Column(Text, nullable=False)
    status = Column(Text, nullable=False)
    version = Column(Integer, nullable=False)  # optimistic concurrency token
    recommended_scenario_id = Column(String(36), nullable=True)
    snapshot = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    scenarios = relationship(
        "DistributionScenarioSnapshot",
        back_populates="calculation",
        cascade="all, delete-orphan",
    )


class DistributionScenarioSnapshot(Base):
    """Per-scenario results and shares, queryable without loading the whole aggregate"""

    __tablename__ = "distribution_scenario_snapshot"

    id = Column(String(36), primary_key=True)
    calculation_id = Column(
        String(36),
        ForeignKey("inheritance_calculation.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(Text, nullable=False)
    scenario_type = Column(Text, nullable=False)
    applied_regime = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    results = Column(JSON, nullable=True)
    shares = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    calculation = relationship("InheritanceCalculationRecord", back_populates="scenarios")
