"""
Damage Claim Service — Service Layer (SRP / DIP)

Owns the claim lifecycle:

    Pending ──decide──▶ Approved | Partially Approved | Rejected   (terminal)

- ``decide`` is a compare-and-set on ``status = 'Pending'``; a concurrent
  second decision loses and sees InvalidStateTransitionException.
- Approved outcomes get a tracking id in the same UPDATE. A uniqueness
  violation on that id rolls back, regenerates and retries a bounded number
  of times before surfacing ConflictException.
- ``create_replacement`` attaches dispatch details at most once.

The service is role-agnostic: callers authorize, the service records the
acting user. Every failure path rolls the session back, so a transition
either commits completely or leaves the claim untouched.
"""
from datetime import date, datetime
from typing import Callable, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import (
    ConflictException,
    EntityNotFoundException,
    InvalidStateTransitionException,
    StorageFailureException,
    ValidationException,
)
from app.models.damage_claim import (
    APPROVED_STATUSES,
    TRACKING_ID_INDEX,
    ClaimStatus,
    DamageClaim,
    ReplacementStatus,
)
from app.repositories.damage_claim_repository import DamageClaimRepository
from app.repositories.staff_activity_repository import StaffActivityRepository
from app.schemas.damage_claim import (
    ApproveDecision,
    DamageClaimCreate,
    PartialApproveDecision,
    RejectDecision,
)
from app.services.tracking_id import TrackingIdGenerator

Decision = Union[ApproveDecision, PartialApproveDecision, RejectDecision]

ACTIVITY_DAMAGE_CLAIM = "Damage Claim"
ACTIVITY_REPLACEMENT = "Damage Claim Replacement"

_ACTION_TEXT = {
    ClaimStatus.APPROVED.value: "Approved",
    ClaimStatus.PARTIALLY_APPROVED.value: "Partially approved",
    ClaimStatus.REJECTED.value: "Rejected",
}


def _is_tracking_id_collision(exc: IntegrityError) -> bool:
    """True when the driver reports a uniqueness violation on the tracking id."""
    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return "tracking_id" in message or TRACKING_ID_INDEX in message


class DamageClaimService:
    def __init__(
        self,
        db: Session,
        tracking_ids: Optional[Callable[[], str]] = None,
        max_tracking_attempts: Optional[int] = None,
    ):
        self._db = db
        self._repo = DamageClaimRepository(db)
        self._activity_repo = StaffActivityRepository(db)
        self._tracking_ids = tracking_ids or TrackingIdGenerator()
        self._max_tracking_attempts = max_tracking_attempts or settings.TRACKING_ID_MAX_ATTEMPTS

    # ── Reads ─────────────────────────────────────────────────────────────

    def find_claim(self, claim_id: int) -> Optional[DamageClaim]:
        return self._repo.get_by_id(claim_id)

    def get_claim(self, claim_id: int) -> DamageClaim:
        claim = self.find_claim(claim_id)
        if not claim:
            raise EntityNotFoundException("DamageClaim", claim_id)
        return claim

    def get_by_tracking(self, tracking_id: str) -> DamageClaim:
        claim = self._repo.get_by_tracking_id(tracking_id)
        if not claim:
            raise EntityNotFoundException("DamageClaim", tracking_id)
        return claim

    # ── Writes ────────────────────────────────────────────────────────────

    def create_claim(self, data: DamageClaimCreate, user_id: str) -> DamageClaim:
        claim = DamageClaim(
            **data.model_dump(mode="json", exclude={"manufacturing_date"}),
            manufacturing_date=data.manufacturing_date,
            status=ClaimStatus.PENDING.value,
            replacement_status=ReplacementStatus.PENDING.value,
            created_by=user_id,
        )
        try:
            self._repo.create(claim, commit=False)
            self._activity_repo.record(
                staff_id=user_id,
                activity_type=ACTIVITY_DAMAGE_CLAIM,
                details=f"Submitted damage claim for {claim.distributor_name}: {claim.brand} {claim.variant}",
                related_claim_id=claim.id,
            )
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageFailureException("create_claim", exc) from exc
        self._db.refresh(claim)
        return claim

    def decide(self, claim_id: int, decision: Decision, user_id: str) -> DamageClaim:
        claim = self.get_claim(claim_id)
        target = decision.status
        if claim.status != ClaimStatus.PENDING.value:
            raise InvalidStateTransitionException("DamageClaim", claim.status, target)

        updates = {
            "status": target,
            "approved_by": user_id,
            "decided_at": datetime.utcnow(),
        }
        if decision.comment is not None:
            updates["comment"] = decision.comment
        if isinstance(decision, PartialApproveDecision):
            updates["approved_pieces"] = self._validated_partial_pieces(decision.approved_pieces, claim.pieces)

        details = f"{_ACTION_TEXT[target]} damage claim for {claim.distributor_name}: {claim.brand} {claim.variant}"
        attempts = self._max_tracking_attempts if target in APPROVED_STATUSES else 1

        for _ in range(attempts):
            if target in APPROVED_STATUSES:
                updates["tracking_id"] = self._tracking_ids()
            try:
                applied = self._repo.update_if_status(claim_id, ClaimStatus.PENDING.value, updates)
                if applied:
                    self._activity_repo.record(
                        staff_id=user_id,
                        activity_type=ACTIVITY_DAMAGE_CLAIM,
                        details=details,
                        related_claim_id=claim_id,
                    )
                    self._db.commit()
            except IntegrityError as exc:
                self._db.rollback()
                if "tracking_id" not in updates or not _is_tracking_id_collision(exc):
                    raise StorageFailureException("decide", exc) from exc
                continue
            except SQLAlchemyError as exc:
                self._db.rollback()
                raise StorageFailureException("decide", exc) from exc

            if not applied:
                self._db.rollback()
                current = self.get_claim(claim_id)
                self._db.refresh(current)
                raise InvalidStateTransitionException("DamageClaim", current.status, target)

            claim = self.get_claim(claim_id)
            self._db.refresh(claim)
            return claim

        raise ConflictException(
            f"Could not assign a unique tracking id after {attempts} attempts.",
            {"claim_id": claim_id},
        )

    def annotate(self, claim_id: int, comment: str, user_id: str) -> DamageClaim:
        claim = self.get_claim(claim_id)
        if claim.manager_comment == comment and claim.manager_comment_by == user_id:
            return claim
        try:
            self._repo.update(
                claim,
                {"manager_comment": comment, "manager_comment_by": user_id},
                commit=False,
            )
            self._activity_repo.record(
                staff_id=user_id,
                activity_type=ACTIVITY_DAMAGE_CLAIM,
                details=f"Added comments to damage claim for {claim.distributor_name}",
                related_claim_id=claim.id,
            )
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageFailureException("annotate", exc) from exc
        self._db.refresh(claim)
        return claim

    def create_replacement(
        self,
        tracking_id: str,
        dispatch_date: date,
        approved_by_name: str,
        channelled_to: str,
        reference_number: str,
        user_id: str,
    ) -> DamageClaim:
        claim = self.get_by_tracking(tracking_id)
        if claim.status not in APPROVED_STATUSES:
            raise InvalidStateTransitionException("DamageClaim", claim.status, "Replacement")
        if claim.replacement_reference_number is not None:
            raise ConflictException(
                f"Replacement already recorded for tracking id '{tracking_id}'.",
                {"tracking_id": tracking_id},
            )

        replacement = {
            "dispatch_date": dispatch_date,
            "approved_by_name": approved_by_name,
            "channelled_to": channelled_to,
            "reference_number": reference_number,
            "processed_by": user_id,
            "processed_at": datetime.utcnow(),
        }
        claim_id = claim.id
        try:
            applied = self._repo.attach_replacement_if_absent(claim_id, APPROVED_STATUSES, replacement)
            if applied:
                self._activity_repo.record(
                    staff_id=user_id,
                    activity_type=ACTIVITY_REPLACEMENT,
                    details=f"Processed replacement for damage claim {tracking_id} for {claim.distributor_name}",
                    related_claim_id=claim_id,
                )
                self._db.commit()
            else:
                self._db.rollback()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageFailureException("create_replacement", exc) from exc

        if not applied:
            raise ConflictException(
                f"Replacement already recorded for tracking id '{tracking_id}'.",
                {"tracking_id": tracking_id},
            )

        claim = self.get_claim(claim_id)
        self._db.refresh(claim)
        return claim

    def delete_claim(self, claim_id: int, user_id: str) -> None:
        claim = self.get_claim(claim_id)
        distributor_name = claim.distributor_name
        try:
            self._repo.delete(claim, commit=False)
            self._activity_repo.record(
                staff_id=user_id,
                activity_type=ACTIVITY_DAMAGE_CLAIM,
                details=f"Deleted damage claim for {distributor_name}",
                related_claim_id=claim_id,
            )
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise StorageFailureException("delete_claim", exc) from exc

    @staticmethod
    def _validated_partial_pieces(approved_pieces: Optional[int], pieces: int) -> int:
        if approved_pieces is None:
            raise ValidationException(
                "approved_pieces is required for a Partially Approved decision.",
                field="approved_pieces",
            )
        if approved_pieces < 1 or approved_pieces > pieces:
            raise ValidationException(
                f"approved_pieces must be between 1 and {pieces}.",
                field="approved_pieces",
            )
        return approved_pieces
