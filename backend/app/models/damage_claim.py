from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    JSON,
    CheckConstraint,
    Index,
    func,
    text,
)
from app.database import Base


class ClaimStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    PARTIALLY_APPROVED = "Partially Approved"
    REJECTED = "Rejected"


class DamageType(str, Enum):
    BOX_DAMAGE = "Box Damage"
    PRODUCT_DAMAGE = "Product Damage"
    SEAL_BROKEN = "Seal Broken"
    EXPIRY_DATE_ISSUE = "Expiry Date Issue"
    QUALITY_ISSUE = "Quality Issue"
    OTHER = "Other"


class ReplacementStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


APPROVED_STATUSES = (ClaimStatus.APPROVED.value, ClaimStatus.PARTIALLY_APPROVED.value)

TRACKING_ID_INDEX = "uq_damage_claims_tracking_id"


def _in_clause(values) -> str:
    return ", ".join(f"'{v}'" for v in values)


class DamageClaim(Base):
    __tablename__ = "damage_claims"
    __table_args__ = (
        CheckConstraint(
            f"status IN ({_in_clause(s.value for s in ClaimStatus)})",
            name="ck_damage_claims_status",
        ),
        CheckConstraint(
            f"damage_type IN ({_in_clause(t.value for t in DamageType)})",
            name="ck_damage_claims_damage_type",
        ),
        CheckConstraint(
            f"replacement_status IN ({_in_clause(s.value for s in ReplacementStatus)})",
            name="ck_damage_claims_replacement_status",
        ),
        CheckConstraint("pieces >= 1", name="ck_damage_claims_pieces_min_1"),
        CheckConstraint(
            "(status = 'Partially Approved' AND approved_pieces IS NOT NULL "
            "AND approved_pieces >= 1 AND approved_pieces <= pieces) "
            "OR (status <> 'Partially Approved' AND approved_pieces IS NULL)",
            name="ck_damage_claims_approved_pieces",
        ),
        # Only claims that carry a tracking id take part in the uniqueness rule.
        Index(
            TRACKING_ID_INDEX,
            "tracking_id",
            unique=True,
            sqlite_where=text("tracking_id IS NOT NULL"),
            postgresql_where=text("tracking_id IS NOT NULL"),
        ),
        Index("ix_damage_claims_status_created_at", "status", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    distributor_id = Column(String(64), nullable=False, index=True)
    distributor_name = Column(String(200), nullable=False)

    brand = Column(String(100), nullable=False)
    variant = Column(String(100), nullable=False)
    size = Column(String(50), nullable=False)
    pieces = Column(Integer, nullable=False)
    manufacturing_date = Column(Date, nullable=False, index=True)
    batch_details = Column(String(200), nullable=False)

    damage_type = Column(String(50), nullable=False)
    reason = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)

    status = Column(String(30), nullable=False, default=ClaimStatus.PENDING.value)
    approved_pieces = Column(Integer, nullable=True)
    approved_by = Column(String(64), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    comment = Column(Text, nullable=True)

    manager_comment = Column(Text, nullable=True)
    manager_comment_by = Column(String(64), nullable=True)

    tracking_id = Column(String(32), nullable=True)

    replacement_status = Column(String(20), nullable=False, default=ReplacementStatus.PENDING.value)
    replacement_dispatch_date = Column(Date, nullable=True)
    replacement_approved_by_name = Column(String(200), nullable=True)
    replacement_channelled_to = Column(String(200), nullable=True)
    replacement_reference_number = Column(String(100), nullable=True)
    replacement_processed_by = Column(String(64), nullable=True)
    replacement_processed_at = Column(DateTime, nullable=True)

    created_by = Column(String(64), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def replacement(self):
        if self.replacement_reference_number is None:
            return None
        return {
            "dispatch_date": self.replacement_dispatch_date,
            "approved_by_name": self.replacement_approved_by_name,
            "channelled_to": self.replacement_channelled_to,
            "reference_number": self.replacement_reference_number,
            "processed_by": self.replacement_processed_by,
            "processed_at": self.replacement_processed_at,
        }
