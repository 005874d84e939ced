"""Generic CRUD repository shared by every entity repository."""

import logging
from typing import Any, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, Union

from sqlalchemy import delete as sa_delete, func, select as sa_select, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from ..errors import ApiError
from ..models import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)
Where = Optional[Mapping[str, Any]]


class CrudRepository(Generic[ModelT]):
    """find/create/update/delete/count over one table.

    Subclasses set ``model`` and, for tables with a ``deleted_at`` column,
    ``soft_delete = True`` so deleted rows vanish from every query.
    """

    model: Type[ModelT]
    resource: str = "Record"
    soft_delete: bool = False

    def __init__(self, session: Session):
        self.session = session

    # ---------------- helpers ----------------
    @property
    def _pk(self):
        return list(self.model.__table__.primary_key.columns)[0]

    def _filter(self, stmt, where: Where = None):
        if where:
            for key, value in where.items():
                stmt = stmt.where(getattr(self.model, key) == value)
        if self.soft_delete:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    def query(self, where: Where = None):
        return self._filter(select(self.model), where)

    def commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.info("%s write rejected: %s", self.resource, exc.orig)
            raise ApiError.conflict(f"{self.resource} already exists") from exc

    def _stamp(self, data: dict) -> dict:
        if "updated_at" in self.model.model_fields and "updated_at" not in data:
            data["updated_at"] = utcnow()
        return data

    # ---------------- reads ----------------
    def find_by_id(self, id: Any) -> Optional[ModelT]:
        obj = self.session.get(self.model, id)
        if obj is None or (self.soft_delete and obj.deleted_at is not None):
            return None
        return obj

    def get_or_404(self, id: Any) -> ModelT:
        obj = self.find_by_id(id)
        if obj is None:
            raise ApiError.not_found(self.resource)
        return obj

    def find_all(
        self,
        where: Where = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_by: Any = None,
    ) -> List[ModelT]:
        stmt = self.query(where).order_by(order_by if order_by is not None else self._pk)
        if limit:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return list(self.session.exec(stmt).all())

    def find_one(self, where: Mapping[str, Any]) -> Optional[ModelT]:
        return self.session.exec(self.query(where)).first()

    def count(self, where: Where = None) -> int:
        stmt = self._filter(sa_select(func.count()).select_from(self.model), where)
        return int(self.session.exec(stmt).scalar_one() or 0)

    def exists(self, where: Mapping[str, Any]) -> bool:
        return self.count(where) > 0

    # ---------------- writes ----------------
    def create(self, data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
        obj = data if isinstance(data, self.model) else self.model(**data)
        self.session.add(obj)
        self.commit()
        self.session.refresh(obj)
        return obj

    def create_many(self, rows: Iterable[Union[ModelT, Mapping[str, Any]]]) -> List[ModelT]:
        objs = [r if isinstance(r, self.model) else self.model(**r) for r in rows]
        self.session.add_all(objs)
        self.commit()
        for obj in objs:
            self.session.refresh(obj)
        return objs

    def update(self, where: Mapping[str, Any], data: Mapping[str, Any]) -> int:
        stmt = self._filter(sa_update(self.model), where).values(**self._stamp(dict(data)))
        result = self.session.exec(stmt)
        self.commit()
        return result.rowcount

    def update_by_id(self, id: Any, data: Mapping[str, Any]) -> int:
        return self.update({self._pk.name: id}, data)

    def delete(self, where: Mapping[str, Any]) -> int:
        if self.soft_delete:
            return self.update(where, {"deleted_at": utcnow()})
        result = self.session.exec(self._filter(sa_delete(self.model), where))
        self.commit()
        return result.rowcount

    def delete_by_id(self, id: Any) -> int:
        return self.delete({self._pk.name: id})
