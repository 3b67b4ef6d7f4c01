from sqlalchemy import (
    Column, String, DateTime, JSON, Integer, Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ApprovalLedgerRow(Base):
    """Approval ledger. Holds `PENDING#<millis>` requests and the per-domain
    `itemsForApproval` counter row under the same partition."""

    __tablename__ = "approval_ledger"

    owner_domain_id = Column(String, primary_key=True)
    request_id = Column(String, primary_key=True)
    mode = Column(String, nullable=True)
    continuation_token = Column(String, nullable=True)
    target_domain_id = Column(String, nullable=True)
    source_namespace = Column(String, nullable=True)
    source_resource_key = Column(JSON, nullable=True)
    instance_id = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=True)
    pending_count = Column(Integer, nullable=True)


class ShareMappingRow(Base):
    __tablename__ = "share_mappings"

    domain_id = Column(String, primary_key=True)
    resource_mapping_key = Column(String, primary_key=True)
    status = Column(String, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class ContinuationRow(Base):
    __tablename__ = "continuations"

    token = Column(String, primary_key=True)
    instance_id = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    redeemed_at = Column(DateTime, nullable=True)
    outcome = Column(String, nullable=True)
    output = Column(JSON, nullable=True)


class WorkflowInstanceRow(Base):
    __tablename__ = "workflow_instances"

    instance_id = Column(String, primary_key=True)
    mode = Column(String, nullable=False)
    state = Column(String, nullable=False, index=True)
    context = Column(JSON, nullable=False)
    error = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)


class DomainOwnerRow(Base):
    __tablename__ = "domain_owners"

    user_id = Column(String, primary_key=True)
    domain_id = Column(String, primary_key=True)
    created_at = Column(DateTime, nullable=True)
