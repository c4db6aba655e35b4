from .ip_pool import (
    IPPoolRange,
    IPPoolSpec,
    IPPoolStatus,
    IPPoolCreate,
    IPPoolUpdate,
    IPPoolResponse,
    FieldError,
    ReconcileResponse,
)
from .ip_claim import (
    IPClaimCreate,
    IPClaimUpdate,
    IPClaimResponse,
)
from .ip_address import (
    AllocatedAddress,
    IPAddressResponse,
    IPAddressListResponse,
)

__all__ = [
    "IPPoolRange",
    "IPPoolSpec",
    "IPPoolStatus",
    "IPPoolCreate",
    "IPPoolUpdate",
    "IPPoolResponse",
    "FieldError",
    "ReconcileResponse",
    "IPClaimCreate",
    "IPClaimUpdate",
    "IPClaimResponse",
    "AllocatedAddress",
    "IPAddressResponse",
    "IPAddressListResponse",
]
