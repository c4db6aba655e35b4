from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..errors import NotFoundError
from ..schemas.ip_claim import IPClaimCreate, IPClaimUpdate, IPClaimResponse
from ..schemas.ip_address import IPAddressResponse, IPAddressListResponse
from ..services.admission import IPClaimAdmission
from ..services.claim_families import ClaimFamily, LOCAL, FEDERATED
from ..services.store import ObjectStore
from .ip_pools import commit_or_conflict, default_namespace, reject_invalid


def build_claim_router(family: ClaimFamily, claims_path: str, addresses_path: str, tag: str) -> APIRouter:
    """Claims and IP address listing for one claim family."""
    router = APIRouter(tags=[tag])

    def build_claim_response(claim) -> IPClaimResponse:
        return IPClaimResponse(
            name=claim.name,
            namespace=claim.namespace,
            pool_name=claim.pool_name,
            labels=dict(claim.labels or {}),
            annotations=dict(claim.annotations or {}),
            finalizers=list(claim.finalizers or []),
            address=family.read_bound_address(claim),
            error_message=claim.error_message,
            deletion_timestamp=claim.deletion_timestamp,
            resource_version=claim.resource_version,
        )

    def get_claim_or_404(store: ObjectStore, namespace: str, name: str):
        try:
            return store.get(family.claim_model, namespace, name)
        except NotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Claim '{name}' not found"
            )

    @router.post(claims_path, response_model=IPClaimResponse, status_code=status.HTTP_201_CREATED)
    def create_claim(claim_data: IPClaimCreate, namespace: Optional[str] = None, db: Session = Depends(get_db)):
        """
        Request an address from a pool.

        The address is bound by the pool controller; set the
        'ipam.io/ip-address' annotation to request a specific one.
        """
        reject_invalid(IPClaimAdmission.validate_create(claim_data.pool_name))

        claim = family.claim_model(
            name=claim_data.name,
            namespace=namespace or default_namespace(),
            pool_name=claim_data.pool_name,
            labels=claim_data.labels,
            annotations=claim_data.annotations,
            owner_references=claim_data.owner_references,
            finalizers=[],
        )
        commit_or_conflict(db, ObjectStore(db).create, claim)
        db.refresh(claim)
        return build_claim_response(claim)

    @router.get(claims_path, response_model=List[IPClaimResponse])
    def list_claims(namespace: Optional[str] = None, pool_name: Optional[str] = None, db: Session = Depends(get_db)):
        """List claims, optionally only those of one pool."""
        filters = {"pool_name": pool_name} if pool_name else {}
        claims = ObjectStore(db).list(family.claim_model, namespace or default_namespace(), **filters)
        return [build_claim_response(claim) for claim in claims]

    @router.get(claims_path + "/{name}", response_model=IPClaimResponse)
    def get_claim(name: str, namespace: Optional[str] = None, db: Session = Depends(get_db)):
        claim = get_claim_or_404(ObjectStore(db), namespace or default_namespace(), name)
        return build_claim_response(claim)

    @router.put(claims_path + "/{name}", response_model=IPClaimResponse)
    def update_claim(name: str, update: IPClaimUpdate, namespace: Optional[str] = None, db: Session = Depends(get_db)):
        """
        Update labels and annotations of a claim.

        The pool cannot be changed. A recorded allocation error is cleared so
        the claim is tried again.
        """
        store = ObjectStore(db)
        claim = get_claim_or_404(store, namespace or default_namespace(), name)

        if update.resource_version is not None and update.resource_version != claim.resource_version:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Claim '{name}' has been modified, current version is {claim.resource_version}"
            )
        reject_invalid(IPClaimAdmission.validate_update(claim.pool_name, update.pool_name))

        claim.labels = update.labels
        claim.annotations = update.annotations
        claim.error_message = None

        commit_or_conflict(db, store.update, claim)
        db.refresh(claim)
        return build_claim_response(claim)

    @router.delete(claims_path + "/{name}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_claim(name: str, namespace: Optional[str] = None, db: Session = Depends(get_db)):
        """
        Delete a claim.

        A bound claim is only marked for deletion; the controller releases its
        address and then lets it go.
        """
        store = ObjectStore(db)
        claim = get_claim_or_404(store, namespace or default_namespace(), name)
        reject_invalid(IPClaimAdmission.validate_delete())
        commit_or_conflict(db, store.delete, claim)

    @router.get(addresses_path, response_model=IPAddressListResponse)
    def list_addresses(namespace: Optional[str] = None, pool_name: Optional[str] = None, db: Session = Depends(get_db)):
        """List the IP address objects created for this claim family."""
        filters = {"pool_name": pool_name} if pool_name else {}
        addresses = ObjectStore(db).list(family.address_model, namespace or default_namespace(), **filters)
        return IPAddressListResponse(
            total_addresses=len(addresses),
            addresses=[IPAddressResponse.model_validate(a) for a in addresses],
        )

    return router


ip_claims_router = build_claim_router(LOCAL, "/ip-claims", "/ip-addresses", "IP Claims")
federated_ip_claims_router = build_claim_router(
    FEDERATED, "/federated-ip-claims", "/federated-ip-addresses", "Federated IP Claims"
)
