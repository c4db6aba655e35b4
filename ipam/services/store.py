import logging
from datetime import datetime, timezone
from typing import List, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..errors import InternalError, NotFoundError, TransientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE unique_violation
PG_UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Whether the failed write clashed with an existing (namespace, name)."""
    if getattr(error.orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(error.orig)


class ObjectStore:
    """
    Declarative object store on top of a SQLAlchemy session.

    Every write is flushed immediately so that conflicts surface at the call
    site:
    - a duplicate (namespace, name) on create raises TransientError
    - a stale resource_version on update/delete raises TransientError
    - any other constraint failure raises InternalError and is not retried
    - get on a missing object raises NotFoundError

    Objects holding finalizers are never removed directly; deleting them only
    records a deletion timestamp. Once the last finalizer is cleared, the next
    update removes the row. Committing is left to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def list(self, model: Type[T], namespace: str, **filters) -> List[T]:
        query = self.db.query(model).filter(model.namespace == namespace)
        for column, value in filters.items():
            query = query.filter(getattr(model, column) == value)
        return query.order_by(model.id).all()

    def get(self, model: Type[T], namespace: str, name: str) -> T:
        obj = (
            self.db.query(model)
            .filter(model.namespace == namespace, model.name == name)
            .first()
        )
        if obj is None:
            raise NotFoundError(f"{model.__name__} {namespace}/{name} not found")
        return obj

    def create(self, obj) -> None:
        self.db.add(obj)
        self._flush(obj)

    def update(self, obj) -> None:
        if obj.deleting and not obj.finalizers:
            self._remove(obj)
            return
        self._flush(obj)

    def delete(self, obj) -> None:
        if obj.finalizers:
            if not obj.deleting:
                obj.deletion_timestamp = datetime.now(timezone.utc)
                self._flush(obj)
            return
        self._remove(obj)

    def _remove(self, obj) -> None:
        self.db.delete(obj)
        self._flush(obj)

    def _flush(self, obj) -> None:
        # Flushing writes every pending change of the session, not only obj
        try:
            self.db.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                logger.error("Rejected write of %s %s/%s: %s", type(obj).__name__, obj.namespace, obj.name, e.orig)
                raise InternalError(f"Invalid {type(obj).__name__} {obj.name}: {e.orig}") from e
            logger.info("%s %s/%s already exists", type(obj).__name__, obj.namespace, obj.name)
            raise TransientError(f"{type(obj).__name__} {obj.name} already exists") from e
        except StaleDataError as e:
            logger.info("Stale write while storing %s %s/%s", type(obj).__name__, obj.namespace, obj.name)
            raise TransientError(f"{type(obj).__name__} {obj.name} was modified concurrently") from e
