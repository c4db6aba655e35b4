from sqlalchemy import Column, Integer, String, JSON, UniqueConstraint
from ..database import Base
from .meta import ObjectMetaMixin


class IPAddressMixin:
    pool_name = Column(String(253), nullable=False, index=True)
    claim_name = Column(String(253))
    address = Column(String(50), nullable=False)  # e.g., "192.168.0.11"
    prefix = Column(Integer, nullable=False, default=0)  # e.g., 24
    gateway = Column(String(50))
    dns_servers = Column(JSON, nullable=False, default=list)


class IPAddress(IPAddressMixin, ObjectMetaMixin, Base):
    __tablename__ = "ip_addresses"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_ip_addresses_namespace_name"),)

    resource_version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": resource_version}


class FederatedIPAddress(IPAddressMixin, ObjectMetaMixin, Base):
    __tablename__ = "federated_ip_addresses"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_federated_ip_addresses_namespace_name"),)

    resource_version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": resource_version}
