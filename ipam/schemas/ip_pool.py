from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, List
from datetime import datetime


class IPPoolRange(BaseModel):
    """A contiguous or subnet-bounded slice of address space.

    Validity of the address fields is checked by pool admission, so that
    every problem is reported as a field error rather than a parse failure.
    """

    start: Optional[str] = Field(None, description="First address of the range, e.g., 192.168.0.10")
    end: Optional[str] = Field(None, description="Last address of the range (inclusive)")
    subnet: Optional[str] = Field(None, description="CIDR bounding the range, e.g., 192.168.0.0/24")
    prefix: Optional[int] = Field(
        None, ge=0, le=128, description="Prefix length override for addresses of this range"
    )
    gateway: Optional[str] = Field(None, description="Gateway override for addresses of this range")
    dns_servers: List[str] = Field(default_factory=list, description="DNS servers override")


class IPPoolSpec(BaseModel):
    name_prefix: str = Field("", max_length=100, description="Prefix of the generated IP address object names")
    prefix: int = Field(0, ge=0, le=128, description="Default prefix length")
    gateway: Optional[str] = Field(None, description="Default gateway")
    dns_servers: List[str] = Field(default_factory=list, description="Default DNS servers")
    pre_allocations: Dict[str, str] = Field(
        default_factory=dict, description="Fixed claim name -> address mappings"
    )
    ranges: List[IPPoolRange] = Field(default_factory=list, description="Ordered address ranges")


class IPPoolStatus(BaseModel):
    allocations: Dict[str, str] = Field(
        default_factory=dict, description="Claim key -> address; federated claims are keyed \"federated/<name>\""
    )
    last_updated: Optional[datetime] = None


class IPPoolCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=253, description="Unique pool name within the namespace")
    spec: IPPoolSpec


class IPPoolUpdate(BaseModel):
    spec: IPPoolSpec
    resource_version: Optional[int] = Field(
        None, description="If set, the update only applies to this version of the pool"
    )


class IPPoolResponse(BaseModel):
    name: str
    namespace: str
    spec: IPPoolSpec
    status: IPPoolStatus
    finalizers: List[str] = []
    deletion_timestamp: Optional[datetime] = None
    resource_version: int
    created_at: Optional[datetime] = None


class FieldError(BaseModel):
    """A single admission failure, e.g. ``spec.ranges[0].start``."""

    field: str
    value: Any = None
    detail: str


class ReconcileResponse(BaseModel):
    pool_name: str
    allocations: int
    requeue: bool
