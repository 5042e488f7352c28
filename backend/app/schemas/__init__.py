from app.schemas.damage_claim import (
    DamageClaimCreate,
    ApproveDecision,
    PartialApproveDecision,
    RejectDecision,
    ClaimDecision,
    ClaimDecisionRequest,
    ManagerCommentRequest,
    ReplacementCreateRequest,
    ReplacementResponse,
    DamageClaimResponse,
    ClaimState,
)
