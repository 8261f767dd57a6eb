from __future__ import annotations

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    def __init__(self, session: Session, model: Type[T]) -> None:
        self.session = session
        self.model = model

    def create(self, obj: T, *, commit: bool = True) -> T:
        self.session.add(obj)
        if commit:
            self.session.commit()
            self.session.refresh(obj)
        else:
            self.session.flush()
        return obj

    def get_by_id(self, id_: Any) -> Optional[T]:
        return self.session.get(self.model, id_)

    def find_by(self, **filters: Any) -> list[T]:
        """Rows whose columns equal every keyword in *filters*."""
        stmt = select(self.model)
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        return list(self.session.execute(stmt).scalars().all())

    def save(self, obj: T, *, commit: bool = True) -> T:
        """Persist pending attribute changes on an already-loaded *obj*."""
        if commit:
            self.session.commit()
            self.session.refresh(obj)
        else:
            self.session.flush()
        return obj

    def rollback(self) -> None:
        self.session.rollback()
