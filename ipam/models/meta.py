from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func


class ObjectMetaMixin:
    """Metadata shared by every stored object.

    ``finalizers`` are cooperative delete holds: an object whose deletion was
    requested stays in the store until every holder has removed its marker.
    ``resource_version`` is the optimistic concurrency token; each model maps
    it as ``version_id_col`` so a stale write fails on flush.
    """

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(253), nullable=False, index=True)
    namespace = Column(String(253), nullable=False, index=True)
    labels = Column(JSON, nullable=False, default=dict)
    annotations = Column(JSON, nullable=False, default=dict)
    owner_references = Column(JSON, nullable=False, default=list)
    finalizers = Column(JSON, nullable=False, default=list)
    deletion_timestamp = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def deleting(self) -> bool:
        return self.deletion_timestamp is not None

    def has_finalizer(self, marker: str) -> bool:
        return marker in (self.finalizers or [])

    def add_finalizer(self, marker: str) -> None:
        if not self.has_finalizer(marker):
            self.finalizers = list(self.finalizers or []) + [marker]

    def remove_finalizer(self, marker: str) -> None:
        if self.has_finalizer(marker):
            self.finalizers = [f for f in self.finalizers if f != marker]

    def owner_reference(self) -> dict:
        """Reference to this object, for another object's owner_references."""
        return {"kind": type(self).__name__, "name": self.name, "namespace": self.namespace}
