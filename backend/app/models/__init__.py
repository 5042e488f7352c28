from app.models.damage_claim import DamageClaim, ClaimStatus, DamageType, ReplacementStatus
from app.models.staff_activity import StaffActivity

__all__ = [
    "DamageClaim",
    "ClaimStatus",
    "DamageType",
    "ReplacementStatus",
    "StaffActivity",
]
