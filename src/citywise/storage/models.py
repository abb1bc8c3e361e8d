"""SQLAlchemy ORM models for rule tables, zoning data and project checklists."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class RequirementRuleRow(Base):
    """One declarative rule; its triggers are ANDed."""

    __tablename__ = "requirement_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    jurisdiction = Column(String(200), nullable=False, index=True)
    kind = Column(String(50), nullable=False, default="requirements", index=True)
    name = Column(String(300), nullable=False)
    description = Column(Text, default="")
    source_document = Column(String(500), default="")
    project_types = Column(ARRAY(String), default=[])
    position = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)

    # Target requirement
    requirement_name = Column(String(300), nullable=False)
    requirement_description = Column(Text, default="")
    discipline = Column(String(50), nullable=False)
    required = Column(Boolean, nullable=False, default=True)
    category = Column(String(100), default="")

    triggers = relationship(
        "RuleTriggerRow",
        back_populates="rule",
        order_by="RuleTriggerRow.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RuleTriggerRow(Base):
    """`<field> <operator> <value>`; value is stored JSON-encoded."""

    __tablename__ = "rule_triggers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rule_id = Column(Integer, ForeignKey("requirement_rules.id", ondelete="CASCADE"), nullable=False, index=True)
    field = Column(String(100), nullable=False)
    operator = Column(String(50), nullable=False)
    value = Column(Text, nullable=False)
    description = Column(Text, default="")
    position = Column(Integer, nullable=False, default=0)

    rule = relationship("RequirementRuleRow", back_populates="triggers")


class ZoningRuleRow(Base):
    """A zoning standard of one district, keyed by (municipality, district_code)."""

    __tablename__ = "zoning_rules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    municipality = Column(String(200), nullable=False, index=True)
    district_code = Column(String(50), nullable=False, index=True)
    district_name = Column(String(200), default="")
    category = Column(String(50), nullable=False)
    name = Column(String(300), nullable=False)
    value_number = Column(Float)
    value_text = Column(Text, default="")
    unit = Column(String(50), default="")
    project_types = Column(ARRAY(String), default=[])
    description = Column(Text, default="")
    position = Column(Integer, nullable=False, default=0)


class ProjectRequirementRow(Base):
    """A checklist entry stored for a project (rule-derived or user-entered)."""

    __tablename__ = "project_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(100), nullable=False, index=True)
    name = Column(String(300), nullable=False)
    description = Column(Text, default="")
    discipline = Column(String(50), nullable=False)
    required = Column(Boolean, nullable=False, default=True)
    source = Column(String(50), nullable=False, default="rule")
    category = Column(String(100), default="")
    value_number = Column(Float)
    value_text = Column(Text, default="")
    unit = Column(String(50), default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TaskRow(Base):
    """A to-do created from a required checklist entry."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String(100), nullable=False, index=True)
    title = Column(String(400), nullable=False)
    description = Column(Text, default="")
    status = Column(String(50), nullable=False, default="pending")
    requirement_name = Column(String(300), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
