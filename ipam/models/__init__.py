from .ip_pool import IPPool, IPPOOL_FINALIZER
from .ip_claim import (
    IPClaim,
    FederatedIPClaim,
    IPCLAIM_FINALIZER,
    FEDERATED_IPCLAIM_FINALIZER,
    REQUESTED_ADDRESS_ANNOTATION,
)
from .ip_address import IPAddress, FederatedIPAddress

__all__ = [
    "IPPool",
    "IPClaim",
    "FederatedIPClaim",
    "IPAddress",
    "FederatedIPAddress",
    "IPPOOL_FINALIZER",
    "IPCLAIM_FINALIZER",
    "FEDERATED_IPCLAIM_FINALIZER",
    "REQUESTED_ADDRESS_ANNOTATION",
]
