import itertools
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import (
    ConflictException,
    EntityNotFoundException,
    InvalidStateTransitionException,
    StorageFailureException,
    ValidationException,
)
from app.database import Base
from app.models.damage_claim import ClaimStatus, DamageClaim, DamageType, ReplacementStatus
from app.repositories.staff_activity_repository import StaffActivityRepository
from app.schemas.damage_claim import (
    ApproveDecision,
    DamageClaimCreate,
    PartialApproveDecision,
    RejectDecision,
)
from app.services.damage_claim_service import DamageClaimService


def _replace(service: DamageClaimService, tracking_id: str, reference: str = "REF-001"):
    return service.create_replacement(
        tracking_id=tracking_id,
        dispatch_date=date(2026, 10, 20),
        approved_by_name="R. Sharma",
        channelled_to="Sunrise Traders",
        reference_number=reference,
        user_id="godown-1",
    )


@pytest.fixture
def file_sessions(tmp_path):
    """Two independent sessions over one file-backed database."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'claims.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    first, second = factory(), factory()
    yield first, second
    first.close()
    second.close()
    engine.dispose()


class TestCreateClaim:

    def test_create_claim_starts_pending(self, db):
        service = DamageClaimService(db)
        data = DamageClaimCreate(
            distributor_id="dist-7",
            distributor_name="Metro Agencies",
            brand="Glow",
            variant="Lemon",
            size="1L",
            pieces=12,
            manufacturing_date=date(2026, 7, 15),
            batch_details="GL-0715",
            damage_type=DamageType.EXPIRY_DATE_ISSUE,
            reason="Expiry date smudged",
        )

        claim = service.create_claim(data, user_id="staff-9")

        assert claim.id is not None
        assert claim.status == ClaimStatus.PENDING.value
        assert claim.damage_type == "Expiry Date Issue"
        assert claim.replacement_status == ReplacementStatus.PENDING.value
        assert claim.tracking_id is None
        assert claim.approved_pieces is None
        assert claim.created_by == "staff-9"
        assert claim.images == []
        activities = StaffActivityRepository(db).list_for_claim(claim.id)
        assert len(activities) == 1
        assert activities[0].staff_id == "staff-9"


class TestDecide:

    def test_approve_assigns_tracking_id(self, db, pending_claim):
        service = DamageClaimService(db)

        claim = service.decide(pending_claim.id, ApproveDecision(status="Approved", comment="ok"), user_id="mlm-1")

        assert claim.status == "Approved"
        assert claim.tracking_id
        assert claim.tracking_id.startswith("DMG")
        assert claim.approved_pieces is None
        assert claim.approved_by == "mlm-1"
        assert claim.comment == "ok"
        assert claim.decided_at is not None

    def test_partial_approval_scenario(self, db, claim_factory):
        claim = claim_factory(pieces=10)
        service = DamageClaimService(db)

        result = service.decide(
            claim.id,
            PartialApproveDecision(status="Partially Approved", approved_pieces=4),
            user_id="mlm-1",
        )

        assert result.status == "Partially Approved"
        assert result.approved_pieces == 4
        assert result.tracking_id

    def test_partial_approval_accepts_all_pieces(self, db, claim_factory):
        claim = claim_factory(pieces=3)
        service = DamageClaimService(db)

        result = service.decide(
            claim.id,
            PartialApproveDecision(status="Partially Approved", approved_pieces=3),
            user_id="mlm-1",
        )

        assert result.approved_pieces == 3

    @pytest.mark.parametrize("approved_pieces", [None, 0, -2, 11])
    def test_partial_approval_rejects_out_of_range_pieces(self, db, claim_factory, approved_pieces):
        claim = claim_factory(pieces=10)
        service = DamageClaimService(db)

        with pytest.raises(ValidationException):
            service.decide(
                claim.id,
                PartialApproveDecision(status="Partially Approved", approved_pieces=approved_pieces),
                user_id="mlm-1",
            )

        db.refresh(claim)
        assert claim.status == "Pending"
        assert claim.tracking_id is None
        assert claim.approved_pieces is None

    def test_reject_leaves_tracking_id_unset(self, db, pending_claim):
        service = DamageClaimService(db)

        claim = service.decide(pending_claim.id, RejectDecision(status="Rejected"), user_id="admin-1")

        assert claim.status == "Rejected"
        assert claim.tracking_id is None
        assert claim.approved_pieces is None
        assert claim.approved_by == "admin-1"

    def test_rejected_claim_cannot_get_replacement(self, db, pending_claim):
        service = DamageClaimService(db, tracking_ids=lambda: "DMG261018DEADBEEF")
        service.decide(pending_claim.id, RejectDecision(status="Rejected"), user_id="admin-1")

        with pytest.raises(EntityNotFoundException):
            _replace(service, "DMG261018DEADBEEF")

    @pytest.mark.parametrize(
        "first",
        [
            ApproveDecision(status="Approved"),
            PartialApproveDecision(status="Partially Approved", approved_pieces=2),
            RejectDecision(status="Rejected"),
        ],
    )
    def test_second_decision_is_invalid_state(self, db, pending_claim, first):
        service = DamageClaimService(db)
        decided = service.decide(pending_claim.id, first, user_id="mlm-1")
        tracking_id = decided.tracking_id

        with pytest.raises(InvalidStateTransitionException) as exc_info:
            service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="admin-1")

        assert exc_info.value.current_state == first.status
        db.refresh(decided)
        assert decided.status == first.status
        assert decided.tracking_id == tracking_id
        assert decided.approved_by == "mlm-1"

    def test_decide_unknown_claim_is_not_found(self, db):
        with pytest.raises(EntityNotFoundException):
            DamageClaimService(db).decide(404, ApproveDecision(status="Approved"), user_id="mlm-1")

    def test_tracking_ids_are_unique_across_claims(self, db, claim_factory):
        service = DamageClaimService(db)
        claims = [claim_factory() for _ in range(25)]

        tracking_ids = {
            service.decide(c.id, ApproveDecision(status="Approved"), user_id="mlm-1").tracking_id
            for c in claims
        }

        assert len(tracking_ids) == 25
        assert all(tracking_ids)

    def test_tracking_id_collision_is_regenerated(self, db, claim_factory):
        ids = iter(["DMG261018DUP", "DMG261018DUP", "DMG261018NEW"])
        service = DamageClaimService(db, tracking_ids=lambda: next(ids))
        first, second = claim_factory(), claim_factory()

        service.decide(first.id, ApproveDecision(status="Approved"), user_id="mlm-1")
        result = service.decide(second.id, ApproveDecision(status="Approved"), user_id="mlm-1")

        assert result.tracking_id == "DMG261018NEW"
        assert result.status == "Approved"

    def test_tracking_id_collisions_exhaust_into_conflict(self, db, claim_factory):
        service = DamageClaimService(db, tracking_ids=lambda: "DMG261018FIXED", max_tracking_attempts=3)
        first, second = claim_factory(), claim_factory()
        service.decide(first.id, ApproveDecision(status="Approved"), user_id="mlm-1")

        with pytest.raises(ConflictException):
            service.decide(second.id, ApproveDecision(status="Approved"), user_id="mlm-1")

        db.refresh(second)
        assert second.status == "Pending"
        assert second.tracking_id is None
        assert StaffActivityRepository(db).list_for_claim(second.id) == []

    def test_concurrent_decisions_on_same_claim(self, file_sessions):
        session_a, session_b = file_sessions
        claim = DamageClaim(
            distributor_id="dist-1",
            distributor_name="Race Traders",
            brand="Glow",
            variant="Lime",
            size="250ml",
            pieces=5,
            manufacturing_date=date(2026, 6, 1),
            batch_details="R-1",
            damage_type="Other",
            reason="Race",
            images=[],
            status="Pending",
            replacement_status="Pending",
            created_by="staff-1",
        )
        session_a.add(claim)
        session_a.commit()
        claim_id = claim.id
        # Both reviewers have loaded the claim while it is still Pending.
        assert session_a.get(DamageClaim, claim_id).status == "Pending"
        assert session_b.get(DamageClaim, claim_id).status == "Pending"

        winner = DamageClaimService(session_b).decide(claim_id, RejectDecision(status="Rejected"), user_id="mlm-2")
        assert winner.status == "Rejected"

        with pytest.raises(InvalidStateTransitionException) as exc_info:
            DamageClaimService(session_a).decide(claim_id, ApproveDecision(status="Approved"), user_id="mlm-1")

        assert exc_info.value.current_state == "Rejected"
        stored = session_a.get(DamageClaim, claim_id)
        session_a.refresh(stored)
        assert stored.status == "Rejected"
        assert stored.tracking_id is None
        assert stored.approved_by == "mlm-2"

    def test_storage_failure_is_typed_and_rolled_back(self, db, pending_claim, monkeypatch):
        service = DamageClaimService(db)

        def _boom(*args, **kwargs):
            raise OperationalError("UPDATE damage_claims", {}, Exception("disk I/O error"))

        monkeypatch.setattr(service._repo, "update_if_status", _boom)

        with pytest.raises(StorageFailureException) as exc_info:
            service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="mlm-1")

        assert isinstance(exc_info.value.cause, OperationalError)
        db.refresh(pending_claim)
        assert pending_claim.status == "Pending"

    def test_non_tracking_integrity_error_is_not_retried(self, db, pending_claim, monkeypatch):
        service = DamageClaimService(db, max_tracking_attempts=5)
        calls = []

        def _check_violation(*args, **kwargs):
            calls.append(args)
            raise IntegrityError(
                "UPDATE damage_claims",
                {},
                Exception("CHECK constraint failed: ck_damage_claims_approved_pieces"),
            )

        monkeypatch.setattr(service._repo, "update_if_status", _check_violation)

        with pytest.raises(StorageFailureException) as exc_info:
            service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="mlm-1")

        assert len(calls) == 1
        assert isinstance(exc_info.value.cause, IntegrityError)
        db.refresh(pending_claim)
        assert pending_claim.status == "Pending"
        assert pending_claim.tracking_id is None


class TestAnnotate:

    def test_annotate_sets_manager_comment_without_changing_state(self, db, pending_claim):
        service = DamageClaimService(db)

        claim = service.annotate(pending_claim.id, "Check batch with QA", user_id="mlm-1")

        assert claim.manager_comment == "Check batch with QA"
        assert claim.manager_comment_by == "mlm-1"
        assert claim.status == "Pending"
        assert claim.tracking_id is None

    def test_annotate_allowed_after_decision(self, db, pending_claim):
        service = DamageClaimService(db)
        approved = service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="admin-1")
        tracking_id = approved.tracking_id

        claim = service.annotate(pending_claim.id, "Dispatch priority", user_id="mlm-1")

        assert claim.status == "Approved"
        assert claim.tracking_id == tracking_id
        assert claim.manager_comment == "Dispatch priority"

    def test_annotate_is_idempotent(self, db, pending_claim):
        service = DamageClaimService(db)

        first = service.annotate(pending_claim.id, "Same note", user_id="mlm-1")
        snapshot = (first.manager_comment, first.manager_comment_by, first.status, first.updated_at)
        second = service.annotate(pending_claim.id, "Same note", user_id="mlm-1")

        assert (second.manager_comment, second.manager_comment_by, second.status, second.updated_at) == snapshot
        assert len(StaffActivityRepository(db).list_for_claim(pending_claim.id)) == 1

    def test_annotate_unknown_claim_is_not_found(self, db):
        with pytest.raises(EntityNotFoundException):
            DamageClaimService(db).annotate(404, "note", user_id="mlm-1")


class TestReplacement:

    def test_create_replacement_on_approved_claim(self, db, pending_claim):
        service = DamageClaimService(db)
        approved = service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="admin-1")

        claim = _replace(service, approved.tracking_id)

        assert claim.replacement_status == "Completed"
        assert claim.replacement == {
            "dispatch_date": date(2026, 10, 20),
            "approved_by_name": "R. Sharma",
            "channelled_to": "Sunrise Traders",
            "reference_number": "REF-001",
            "processed_by": "godown-1",
            "processed_at": claim.replacement_processed_at,
        }
        # The dispatch approver is recorded separately from the claim reviewer.
        assert claim.approved_by == "admin-1"

    def test_second_replacement_is_conflict_and_keeps_first(self, db, pending_claim):
        service = DamageClaimService(db)
        approved = service.decide(
            pending_claim.id,
            PartialApproveDecision(status="Partially Approved", approved_pieces=5),
            user_id="admin-1",
        )
        first = _replace(service, approved.tracking_id, reference="REF-FIRST")
        first_snapshot = dict(first.replacement)

        with pytest.raises(ConflictException):
            _replace(service, approved.tracking_id, reference="REF-FIRST")

        db.refresh(first)
        assert first.replacement == first_snapshot

    def test_replacement_race_loser_gets_conflict(self, file_sessions):
        session_a, session_b = file_sessions
        claim = DamageClaim(
            distributor_id="dist-1",
            distributor_name="Race Traders",
            brand="Glow",
            variant="Lime",
            size="250ml",
            pieces=5,
            manufacturing_date=date(2026, 6, 1),
            batch_details="R-1",
            damage_type="Other",
            reason="Race",
            images=[],
            status="Pending",
            replacement_status="Pending",
            created_by="staff-1",
        )
        session_a.add(claim)
        session_a.commit()
        tracking_id = DamageClaimService(session_a).decide(
            claim.id, ApproveDecision(status="Approved"), user_id="admin-1"
        ).tracking_id
        # Loaded without a replacement in both sessions.
        DamageClaimService(session_a).get_by_tracking(tracking_id)

        _replace(DamageClaimService(session_b), tracking_id, reference="REF-B")

        with pytest.raises(ConflictException):
            _replace(DamageClaimService(session_a), tracking_id, reference="REF-A")

        stored = DamageClaimService(session_a).get_by_tracking(tracking_id)
        session_a.refresh(stored)
        assert stored.replacement_reference_number == "REF-B"

    def test_unknown_tracking_id_is_not_found(self, db):
        with pytest.raises(EntityNotFoundException):
            _replace(DamageClaimService(db), "DMG000000NOPE")

    def test_replacement_requires_approved_status(self, db, pending_claim):
        # Inconsistent legacy row: a tracking id on a rejected claim.
        pending_claim.status = "Rejected"
        pending_claim.tracking_id = "DMG240101LEGACY"
        db.commit()

        with pytest.raises(InvalidStateTransitionException):
            _replace(DamageClaimService(db), "DMG240101LEGACY")

        db.refresh(pending_claim)
        assert pending_claim.replacement is None
        assert pending_claim.replacement_status == "Pending"


class TestLookupAndDelete:

    def test_get_by_tracking(self, db, pending_claim):
        service = DamageClaimService(db)
        approved = service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="admin-1")

        assert service.get_by_tracking(approved.tracking_id).id == pending_claim.id

    def test_get_by_tracking_unknown_is_not_found(self, db):
        with pytest.raises(EntityNotFoundException):
            DamageClaimService(db).get_by_tracking("DMG-missing")

    def test_delete_claim_removes_record_and_keeps_trail(self, db, pending_claim):
        service = DamageClaimService(db)
        claim_id = pending_claim.id

        service.delete_claim(claim_id, user_id="admin-1")

        with pytest.raises(EntityNotFoundException):
            service.get_claim(claim_id)
        activities = StaffActivityRepository(db).list_for_claim(claim_id)
        assert [a.details for a in activities] == ["Deleted damage claim for Sunrise Traders"]

    def test_delete_unknown_claim_is_not_found(self, db):
        with pytest.raises(EntityNotFoundException):
            DamageClaimService(db).delete_claim(404, user_id="admin-1")


def test_decision_trail_is_recorded(db, pending_claim):
    counter = itertools.count(1)
    service = DamageClaimService(db, tracking_ids=lambda: f"DMG261018{next(counter):08d}")

    approved = service.decide(pending_claim.id, ApproveDecision(status="Approved"), user_id="mlm-1")
    _replace(service, approved.tracking_id)

    details = [a.details for a in StaffActivityRepository(db).list_for_claim(pending_claim.id)]
    assert details == [
        "Approved damage claim for Sunrise Traders: Aqua Fresh Mint",
        "Processed replacement for damage claim DMG26101800000001 for Sunrise Traders",
    ]
