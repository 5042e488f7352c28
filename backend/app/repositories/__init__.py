# Repository Layer — Data Access (Repository Pattern, GoF)
from app.repositories.base import BaseRepository
from app.repositories.damage_claim_repository import DamageClaimRepository
from app.repositories.staff_activity_repository import StaffActivityRepository

__all__ = [
    "BaseRepository",
    "DamageClaimRepository",
    "StaffActivityRepository",
]
