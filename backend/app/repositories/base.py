"""
Base Repository — Repository Pattern (GoF)

Generic CRUD over a single mapped class. Subclasses add entity-specific
queries. Write helpers commit by default; pass ``commit=False`` to enlist the
write in a larger unit of work owned by the service.
"""
from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from app.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    def __init__(self, model: Type[ModelT], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, entity_id: int) -> Optional[ModelT]:
        return self.db.get(self.model, entity_id)

    def create(self, obj: ModelT, commit: bool = True) -> ModelT:
        self.db.add(obj)
        if commit:
            self.db.commit()
            self.db.refresh(obj)
        else:
            self.db.flush()
        return obj

    def update(self, obj: ModelT, updates: dict, commit: bool = True) -> ModelT:
        for key, value in updates.items():
            setattr(obj, key, value)
        if commit:
            self.db.commit()
            self.db.refresh(obj)
        else:
            self.db.flush()
        return obj

    def delete(self, obj: ModelT, commit: bool = True) -> None:
        self.db.delete(obj)
        if commit:
            self.db.commit()
        else:
            self.db.flush()
