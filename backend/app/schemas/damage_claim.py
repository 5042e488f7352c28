from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field

from app.models.damage_claim import ClaimStatus, DamageType

# Upper bound of the Integer piece columns.
MAX_PIECES = 2_147_483_647


class DamageClaimCreate(BaseModel):
    distributor_id: str = Field(min_length=1, max_length=64)
    distributor_name: str = Field(min_length=1, max_length=200)
    brand: str = Field(min_length=1, max_length=100)
    variant: str = Field(min_length=1, max_length=100)
    size: str = Field(min_length=1, max_length=50)
    pieces: int = Field(ge=1, le=MAX_PIECES)
    manufacturing_date: date
    batch_details: str = Field(min_length=1, max_length=200)
    damage_type: DamageType
    reason: str = Field(min_length=1)
    images: List[str] = Field(default_factory=list, max_length=5)


# ── Decisions (tagged by target status) ──────────────────────────────────────

class ApproveDecision(BaseModel):
    status: Literal["Approved"]
    comment: Optional[str] = None

    class Config:
        extra = "forbid"


class PartialApproveDecision(BaseModel):
    status: Literal["Partially Approved"]
    # Range is checked against the claim's pieces by the service.
    approved_pieces: Optional[int] = Field(default=None, le=MAX_PIECES)
    comment: Optional[str] = None

    class Config:
        extra = "forbid"


class RejectDecision(BaseModel):
    status: Literal["Rejected"]
    comment: Optional[str] = None

    class Config:
        extra = "forbid"


ClaimDecision = Annotated[
    Union[ApproveDecision, PartialApproveDecision, RejectDecision],
    Field(discriminator="status"),
]


class ClaimDecisionRequest(BaseModel):
    decision: ClaimDecision


class ManagerCommentRequest(BaseModel):
    comment: str = Field(min_length=1)


class ReplacementCreateRequest(BaseModel):
    tracking_id: str = Field(min_length=1)
    dispatch_date: date
    approved_by_name: str = Field(min_length=1, max_length=200)
    channelled_to: str = Field(min_length=1, max_length=200)
    reference_number: str = Field(min_length=1, max_length=100)


# ── Responses ────────────────────────────────────────────────────────────────

class PendingState(BaseModel):
    status: Literal["Pending"] = "Pending"


class ApprovedState(BaseModel):
    status: Literal["Approved"] = "Approved"
    tracking_id: str


class PartiallyApprovedState(BaseModel):
    status: Literal["Partially Approved"] = "Partially Approved"
    tracking_id: str
    approved_pieces: int


class RejectedState(BaseModel):
    status: Literal["Rejected"] = "Rejected"


ClaimState = Annotated[
    Union[PendingState, ApprovedState, PartiallyApprovedState, RejectedState],
    Field(discriminator="status"),
]


def claim_state(status: str, tracking_id: Optional[str], approved_pieces: Optional[int]):
    if status == ClaimStatus.APPROVED.value:
        return ApprovedState(tracking_id=tracking_id)
    if status == ClaimStatus.PARTIALLY_APPROVED.value:
        return PartiallyApprovedState(tracking_id=tracking_id, approved_pieces=approved_pieces)
    if status == ClaimStatus.REJECTED.value:
        return RejectedState()
    return PendingState()


class ReplacementResponse(BaseModel):
    dispatch_date: date
    approved_by_name: str
    channelled_to: str
    reference_number: str
    processed_by: str
    processed_at: datetime


class DamageClaimResponse(BaseModel):
    id: int
    distributor_id: str
    distributor_name: str
    brand: str
    variant: str
    size: str
    pieces: int
    manufacturing_date: date
    batch_details: str
    damage_type: str
    reason: str
    images: List[str] = []
    status: str
    approved_pieces: Optional[int] = None
    approved_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    comment: Optional[str] = None
    manager_comment: Optional[str] = None
    manager_comment_by: Optional[str] = None
    tracking_id: Optional[str] = None
    replacement_status: str
    replacement: Optional[ReplacementResponse] = None
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @computed_field
    @property
    def state(self) -> ClaimState:
        return claim_state(self.status, self.tracking_id, self.approved_pieces)
