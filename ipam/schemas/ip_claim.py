from pydantic import BaseModel, Field
from typing import Dict, Optional, List
from datetime import datetime


class IPClaimCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=253, pattern=r"^[^/]+$")
    pool_name: str = Field("", max_length=253, description="Name of the pool to allocate from")
    labels: Dict[str, str] = Field(default_factory=dict, description="Copied onto the IP address object")
    annotations: Dict[str, str] = Field(
        default_factory=dict,
        description="'ipam.io/ip-address' requests a specific address",
    )
    owner_references: List[Dict[str, str]] = Field(
        default_factory=list, description="Referents propagated to the IP address object"
    )


class IPClaimUpdate(BaseModel):
    pool_name: str = Field("", max_length=253)
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    resource_version: Optional[int] = None


class IPClaimResponse(BaseModel):
    name: str
    namespace: str
    pool_name: str
    labels: Dict[str, str] = {}
    annotations: Dict[str, str] = {}
    finalizers: List[str] = []
    address: Optional[str] = None  # name of the bound IP address object
    error_message: Optional[str] = None
    deletion_timestamp: Optional[datetime] = None
    resource_version: int
