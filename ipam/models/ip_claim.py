from sqlalchemy import Column, Integer, String, Text, JSON, UniqueConstraint
from ..database import Base
from .meta import ObjectMetaMixin

IPCLAIM_FINALIZER = "ipclaim.ipam.io"
FEDERATED_IPCLAIM_FINALIZER = "federated.ipclaim.ipam.io"

# Annotation carrying an explicitly requested address
REQUESTED_ADDRESS_ANNOTATION = "ipam.io/ip-address"


class IPClaim(ObjectMetaMixin, Base):
    __tablename__ = "ip_claims"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_ip_claims_namespace_name"),)

    pool_name = Column(String(253), nullable=False, index=True)
    # Status
    address_name = Column(String(253))  # name of the bound IPAddress
    error_message = Column(Text)

    resource_version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": resource_version}


class FederatedIPClaim(ObjectMetaMixin, Base):
    """Claim family issued by remote cluster tooling, bound through ``address_ref``."""

    __tablename__ = "federated_ip_claims"
    __table_args__ = (UniqueConstraint("namespace", "name", name="uq_federated_ip_claims_namespace_name"),)

    pool_name = Column(String(253), nullable=False, index=True)
    pool_kind = Column(String(63), nullable=False, default="IPPool")
    # Status
    address_ref = Column(JSON)  # {"kind": ..., "name": ...} of the bound FederatedIPAddress
    error_message = Column(Text)

    resource_version = Column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": resource_version}
