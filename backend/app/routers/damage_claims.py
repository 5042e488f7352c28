from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import (
    ADMIN_ROLES,
    ROLE_GODOWN,
    ROLE_MANAGER,
    Actor,
    get_current_actor,
    require_roles,
)
from app.schemas.damage_claim import (
    ClaimDecisionRequest,
    DamageClaimCreate,
    DamageClaimResponse,
    ManagerCommentRequest,
    ReplacementCreateRequest,
)
from app.services.damage_claim_service import DamageClaimService


router = APIRouter(prefix="/damage-claims", tags=["Damage Claims"])

REVIEWER_ROLES = ADMIN_ROLES + [ROLE_MANAGER]
GODOWN_ROLES = ADMIN_ROLES + [ROLE_GODOWN]


def get_claim_service(db: Session = Depends(get_db)) -> DamageClaimService:
    return DamageClaimService(db)


@router.post("/", response_model=DamageClaimResponse, status_code=201)
def create_claim(
    body: DamageClaimCreate,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(get_current_actor),
):
    return service.create_claim(body, user_id=actor.id)


@router.get("/tracking/{tracking_id}", response_model=DamageClaimResponse)
def get_claim_by_tracking(
    tracking_id: str,
    service: DamageClaimService = Depends(get_claim_service),
    _: Actor = Depends(require_roles(GODOWN_ROLES)),
):
    return service.get_by_tracking(tracking_id)


@router.post("/replacement", response_model=DamageClaimResponse)
def create_replacement(
    body: ReplacementCreateRequest,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(require_roles(GODOWN_ROLES)),
):
    return service.create_replacement(
        tracking_id=body.tracking_id,
        dispatch_date=body.dispatch_date,
        approved_by_name=body.approved_by_name,
        channelled_to=body.channelled_to,
        reference_number=body.reference_number,
        user_id=actor.id,
    )


@router.get("/{claim_id}", response_model=DamageClaimResponse)
def get_claim(
    claim_id: int,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(get_current_actor),
):
    if actor.role in REVIEWER_ROLES:
        return service.get_claim(claim_id)
    # Non-reviewers get 403 for missing and foreign claims alike.
    claim = service.find_claim(claim_id)
    if claim is None or claim.created_by != actor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "FORBIDDEN", "message": "Not authorized to view this damage claim."},
        )
    return claim


@router.patch("/{claim_id}/decision", response_model=DamageClaimResponse)
def decide_claim(
    claim_id: int,
    body: ClaimDecisionRequest,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(require_roles(REVIEWER_ROLES)),
):
    return service.decide(claim_id, body.decision, user_id=actor.id)


@router.patch("/{claim_id}/manager-comment", response_model=DamageClaimResponse)
def add_manager_comment(
    claim_id: int,
    body: ManagerCommentRequest,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(require_roles(REVIEWER_ROLES)),
):
    return service.annotate(claim_id, body.comment, user_id=actor.id)


@router.delete("/{claim_id}", status_code=204)
def delete_claim(
    claim_id: int,
    service: DamageClaimService = Depends(get_claim_service),
    actor: Actor = Depends(require_roles(ADMIN_ROLES)),
):
    service.delete_claim(claim_id, user_id=actor.id)
    return Response(status_code=204)
