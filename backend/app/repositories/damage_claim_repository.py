"""
Damage Claim Repository — Repository Pattern (GoF)

Conditional writes (``update_if_status``, ``attach_replacement_if_absent``)
are single UPDATE statements guarded by a WHERE clause, so two concurrent
writers on the same claim cannot both succeed. Neither method commits.
"""
from typing import Iterable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.models.damage_claim import DamageClaim, ReplacementStatus
from app.repositories.base import BaseRepository


class DamageClaimRepository(BaseRepository[DamageClaim]):
    def __init__(self, db: Session):
        super().__init__(DamageClaim, db)

    def get_by_tracking_id(self, tracking_id: str) -> Optional[DamageClaim]:
        return (
            self.db.query(DamageClaim)
            .filter(DamageClaim.tracking_id == tracking_id)
            .first()
        )

    def update_if_status(self, claim_id: int, expected_status: str, updates: dict) -> bool:
        """Apply ``updates`` only while the claim is still in ``expected_status``."""
        result = self.db.execute(
            update(DamageClaim)
            .where(DamageClaim.id == claim_id, DamageClaim.status == expected_status)
            .values(**updates)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def attach_replacement_if_absent(
        self,
        claim_id: int,
        allowed_statuses: Iterable[str],
        replacement: dict,
    ) -> bool:
        values = {f"replacement_{key}": value for key, value in replacement.items()}
        values["replacement_status"] = ReplacementStatus.COMPLETED.value
        result = self.db.execute(
            update(DamageClaim)
            .where(
                DamageClaim.id == claim_id,
                DamageClaim.status.in_(list(allowed_statuses)),
                DamageClaim.tracking_id.isnot(None),
                DamageClaim.replacement_reference_number.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
