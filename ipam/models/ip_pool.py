from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from ..database import Base
from ..schemas.ip_pool import IPPoolSpec, IPPoolStatus
from .meta import ObjectMetaMixin

IPPOOL_FINALIZER = "ippool.ipam.io"


class IPPool(ObjectMetaMixin, Base):
    __tablename__ = "ip_pools"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_ip_pools_namespace_name"),)

    # Spec
    name_prefix = Column(String(100), nullable=False, default="")
    prefix = Column(Integer, nullable=False, default=0)
    gateway = Column(String(50))
    dns_servers = Column(JSON, nullable=False, default=list)
    pre_allocations = Column(JSON, nullable=False, default=dict)  # claim name -> address
    ranges = Column(JSON, nullable=False, default=list)  # list of IPPoolRange dicts
    # Status
    allocations = Column(JSON, nullable=False, default=dict)  # claim name -> address
    last_updated = Column(DateTime(timezone=True))

    resource_version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": resource_version}

    @property
    def spec(self) -> IPPoolSpec:
        return IPPoolSpec(
            name_prefix=self.name_prefix or "",
            prefix=self.prefix or 0,
            gateway=self.gateway,
            dns_servers=list(self.dns_servers or []),
            pre_allocations=dict(self.pre_allocations or {}),
            ranges=list(self.ranges or []),
        )

    @spec.setter
    def spec(self, spec: IPPoolSpec) -> None:
        self.name_prefix = spec.name_prefix
        self.prefix = spec.prefix
        self.gateway = spec.gateway
        self.dns_servers = list(spec.dns_servers)
        self.pre_allocations = dict(spec.pre_allocations)
        self.ranges = [r.model_dump() for r in spec.ranges]

    @property
    def status(self) -> IPPoolStatus:
        return IPPoolStatus(
            allocations=dict(self.allocations or {}),
            last_updated=self.last_updated,
        )
