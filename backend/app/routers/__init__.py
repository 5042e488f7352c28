# Routers package — Thin Controllers (SRP / DIP)
from app.routers import damage_claims

__all__ = [
    "damage_claims",
]
