from typing import List

from sqlalchemy.orm import Session

from app.models.staff_activity import StaffActivity
from app.repositories.base import BaseRepository


class StaffActivityRepository(BaseRepository[StaffActivity]):
    def __init__(self, db: Session):
        super().__init__(StaffActivity, db)

    def record(self, staff_id: str, activity_type: str, details: str, related_claim_id: int) -> StaffActivity:
        return self.create(
            StaffActivity(
                staff_id=staff_id,
                activity_type=activity_type,
                details=details,
                related_claim_id=related_claim_id,
            ),
            commit=False,
        )

    def list_for_claim(self, claim_id: int) -> List[StaffActivity]:
        return (
            self.db.query(StaffActivity)
            .filter(StaffActivity.related_claim_id == claim_id)
            .order_by(StaffActivity.id.asc())
            .all()
        )
