from typing import Optional

from ..models import (
    IPClaim,
    IPAddress,
    FederatedIPClaim,
    FederatedIPAddress,
    IPCLAIM_FINALIZER,
    FEDERATED_IPCLAIM_FINALIZER,
    REQUESTED_ADDRESS_ANNOTATION,
)


class ClaimFamily:
    """
    What the reconciliation engine needs to know about one kind of claim.

    The families differ only in their tables, their hold-marker and how the
    bound address object is recorded on the claim. Claims are tracked in the
    pool allocations under ``claim_key``, so same-named claims of different
    families never share an entry.
    """

    name = ""
    claim_model = None
    address_model = None
    hold_marker = ""
    key_prefix = ""

    def claim_key(self, claim_name: str) -> str:
        return f"{self.key_prefix}{claim_name}"

    def extract_requested_address(self, claim) -> Optional[str]:
        return (claim.annotations or {}).get(REQUESTED_ADDRESS_ANNOTATION) or None

    def read_bound_address(self, claim) -> Optional[str]:
        raise NotImplementedError

    def write_bound_address(self, claim, address_name: Optional[str]) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<ClaimFamily {self.name}>"


class LocalClaimFamily(ClaimFamily):
    name = "local"
    claim_model = IPClaim
    address_model = IPAddress
    hold_marker = IPCLAIM_FINALIZER

    def read_bound_address(self, claim: IPClaim) -> Optional[str]:
        return claim.address_name

    def write_bound_address(self, claim: IPClaim, address_name: Optional[str]) -> None:
        claim.address_name = address_name


class FederatedClaimFamily(ClaimFamily):
    name = "federated"
    claim_model = FederatedIPClaim
    address_model = FederatedIPAddress
    hold_marker = FEDERATED_IPCLAIM_FINALIZER
    # Claim names cannot contain "/", so local keys never take this form
    key_prefix = "federated/"

    def read_bound_address(self, claim: FederatedIPClaim) -> Optional[str]:
        return (claim.address_ref or {}).get("name")

    def write_bound_address(self, claim: FederatedIPClaim, address_name: Optional[str]) -> None:
        if address_name is None:
            claim.address_ref = None
        else:
            claim.address_ref = {"kind": FederatedIPAddress.__name__, "name": address_name}


LOCAL = LocalClaimFamily()
FEDERATED = FederatedClaimFamily()

# Order in which a pass processes the families
CLAIM_FAMILIES = (LOCAL, FEDERATED)
