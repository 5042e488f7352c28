from sqlalchemy import Column, Integer, String, Text, DateTime, Index, func
from app.database import Base


class StaffActivity(Base):
    __tablename__ = "staff_activities"
    __table_args__ = (
        Index("ix_staff_activities_staff_created", "staff_id", "created_at"),
        Index("ix_staff_activities_related_claim", "related_claim_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(String(64), nullable=False)
    activity_type = Column(String(50), nullable=False)
    details = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="Completed")
    # Plain column, not a foreign key: the trail outlives deleted claims.
    related_claim_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
