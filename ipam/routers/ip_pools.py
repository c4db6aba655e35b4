from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..config import get_settings
from ..database import get_db
from ..errors import NotFoundError, TransientError
from ..models import IPPool
from ..schemas.ip_pool import (
    IPPoolCreate,
    IPPoolUpdate,
    IPPoolResponse,
    ReconcileResponse,
)
from ..services.admission import IPPoolAdmission
from ..services.claim_families import CLAIM_FAMILIES
from ..services.controller import reconcile_pool
from ..services.store import ObjectStore

router = APIRouter(prefix="/ip-pools", tags=["IP Pools"])


def default_namespace() -> str:
    return get_settings().default_namespace


def build_pool_response(pool: IPPool) -> IPPoolResponse:
    """Helper to build IPPoolResponse from a stored pool."""
    return IPPoolResponse(
        name=pool.name,
        namespace=pool.namespace,
        spec=pool.spec,
        status=pool.status,
        finalizers=list(pool.finalizers or []),
        deletion_timestamp=pool.deletion_timestamp,
        resource_version=pool.resource_version,
        created_at=pool.created_at,
    )


def get_pool_or_404(store: ObjectStore, namespace: str, name: str) -> IPPool:
    try:
        return store.get(IPPool, namespace, name)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pool '{name}' not found"
        )


def reject_invalid(errors) -> None:
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[e.model_dump() for e in errors],
        )


def commit_or_conflict(db: Session, store_call, *args) -> None:
    try:
        store_call(*args)
    except TransientError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    db.commit()


@router.post("", response_model=IPPoolResponse, status_code=status.HTTP_201_CREATED)
def create_ip_pool(
    pool_data: IPPoolCreate,
    namespace: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Create a new IP address pool.

    - **name**: Unique name for the pool within the namespace
    - **spec.name_prefix**: Prefix of the IP address object names, immutable
    - **spec.ranges**: Ordered ranges given by start/end and/or subnet
    - **spec.pre_allocations**: Fixed claim name -> address mappings

    Addresses are handed out to claims by the pool controller.
    """
    namespace = namespace or default_namespace()
    reject_invalid(IPPoolAdmission.validate_create(pool_data.spec))

    pool = IPPool(
        name=pool_data.name,
        namespace=namespace,
        labels={},
        annotations={},
        owner_references=[],
        finalizers=[],
        allocations={},
    )
    pool.spec = pool_data.spec

    commit_or_conflict(db, ObjectStore(db).create, pool)
    db.refresh(pool)
    return build_pool_response(pool)


@router.get("", response_model=List[IPPoolResponse])
def list_ip_pools(namespace: Optional[str] = None, db: Session = Depends(get_db)):
    """List all IP address pools of a namespace."""
    pools = ObjectStore(db).list(IPPool, namespace or default_namespace())
    return [build_pool_response(pool) for pool in pools]


@router.get("/{name}", response_model=IPPoolResponse)
def get_ip_pool(name: str, namespace: Optional[str] = None, db: Session = Depends(get_db)):
    """Get a pool including its current allocations."""
    pool = get_pool_or_404(ObjectStore(db), namespace or default_namespace(), name)
    return build_pool_response(pool)


@router.put("/{name}", response_model=IPPoolResponse)
def update_ip_pool(
    name: str,
    update: IPPoolUpdate,
    namespace: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Replace the spec of a pool.

    Rejected when the name prefix changes, or when a preallocation or an
    address in use would fall outside the new ranges. Claims of the pool that
    failed to allocate are retried with the new spec.
    """
    store = ObjectStore(db)
    pool = get_pool_or_404(store, namespace or default_namespace(), name)

    if update.resource_version is not None and update.resource_version != pool.resource_version:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Pool '{name}' has been modified, current version is {pool.resource_version}"
        )

    reject_invalid(IPPoolAdmission.validate_update(pool.spec, pool.status, update.spec))

    pool.spec = update.spec
    for family in CLAIM_FAMILIES:
        for claim in store.list(family.claim_model, pool.namespace, pool_name=pool.name):
            if claim.error_message:
                claim.error_message = None

    commit_or_conflict(db, store.update, pool)
    db.refresh(pool)
    return build_pool_response(pool)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_ip_pool(name: str, namespace: Optional[str] = None, db: Session = Depends(get_db)):
    """
    Delete an IP pool.

    Refused while addresses are allocated. The pool is removed once the
    controller has released its finalizer.
    """
    store = ObjectStore(db)
    pool = get_pool_or_404(store, namespace or default_namespace(), name)

    errors = IPPoolAdmission.validate_delete(pool.status)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=[e.model_dump() for e in errors],
        )

    commit_or_conflict(db, store.delete, pool)


@router.post("/{name}/reconcile", response_model=ReconcileResponse)
def reconcile_ip_pool(name: str, namespace: Optional[str] = None, db: Session = Depends(get_db)):
    """Run one reconciliation pass for the pool immediately."""
    namespace = namespace or default_namespace()
    get_pool_or_404(ObjectStore(db), namespace, name)

    result = reconcile_pool(db, namespace, name)
    return ReconcileResponse(
        pool_name=name,
        allocations=result.allocations,
        requeue=result.requeue,
    )
