"""
Report Tracker - SQLAlchemy ORM Models
Database models for organizations, projects, expectations and their links
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, JSON, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from ..database import Base


class OrganizationDB(Base):
    """Reporting organization. Wranglers administer the system."""
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # Stored lowercase
    is_wrangler = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    project_links = relationship("OrgProjectLinkDB", back_populates="organization", cascade="all, delete-orphan")
    collected_data = relationship("CollectedDataDB", back_populates="organization", cascade="all, delete-orphan")


class ProjectDB(Base):
    """Project that organizations report against."""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    org_links = relationship("OrgProjectLinkDB", back_populates="project", cascade="all, delete-orphan")
    expectation_links = relationship("ProjectExpectationLinkDB", back_populates="project", cascade="all, delete-orphan")
    collected_data = relationship("CollectedDataDB", back_populates="project", cascade="all, delete-orphan")


class DataSetExpectationDB(Base):
    """Expected shape of a data set: a named list of column rules."""
    __tablename__ = "data_set_expectations"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Format: [{"name": "...", "nulls_ok": false, "must_be_int": true}]
    columns = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    project_links = relationship("ProjectExpectationLinkDB", back_populates="expectation", cascade="all, delete-orphan")


class OrgProjectLinkDB(Base):
    """
    Reporting link between one organization and one project.
    At most one row per pair (composite primary key).
    """
    __tablename__ = "org_project_links"

    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True, index=True)

    reporting_interval = Column(String(20), nullable=True)  # daily, weekly, monthly; NULL = no schedule
    reporting_day_of_week = Column(Integer, nullable=True)  # 0 (Sunday) - 6, weekly only
    reporting_day_of_month = Column(Integer, nullable=True)  # 1 - 31, monthly only
    next_due_date = Column(DateTime, nullable=True)
    streak = Column(Integer, default=0, nullable=False)

    # Newest first, max 12
    # Format: [{"dueDate": "...", "submittedDate": "...", "wasOnTime": true}]
    history = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    organization = relationship("OrganizationDB", back_populates="project_links")
    project = relationship("ProjectDB", back_populates="org_links")


class ProjectExpectationLinkDB(Base):
    """Data set expectation attached to a project."""
    __tablename__ = "project_expectation_links"

    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    expectation_id = Column(String(36), ForeignKey("data_set_expectations.id", ondelete="CASCADE"), primary_key=True)

    # Relationships
    project = relationship("ProjectDB", back_populates="expectation_links")
    expectation = relationship("DataSetExpectationDB", back_populates="project_links")


class CollectedDataDB(Base):
    """One validated row of data submitted by an organization."""
    __tablename__ = "collected_data"

    id = Column(String(36), primary_key=True)  # UUID
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    expectation_id = Column(String(36), ForeignKey("data_set_expectations.id", ondelete="SET NULL"), nullable=True)

    values = Column(JSON, nullable=False)  # {column_name: value}
    timestamp = Column(DateTime, default=datetime.now)

    # Relationships
    organization = relationship("OrganizationDB", back_populates="collected_data")
    project = relationship("ProjectDB", back_populates="collected_data")
