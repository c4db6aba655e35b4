from pydantic import BaseModel
from typing import Dict, Optional, List
from datetime import datetime


class AllocatedAddress(BaseModel):
    """Result of an allocation: the address with its resolved network settings."""

    address: str
    prefix: int
    gateway: Optional[str] = None
    dns_servers: List[str] = []


class IPAddressResponse(BaseModel):
    name: str
    namespace: str
    pool_name: str
    claim_name: Optional[str]
    address: str
    prefix: int
    gateway: Optional[str]
    dns_servers: List[str] = []
    owner_references: List[Dict[str, str]] = []
    finalizers: List[str] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class IPAddressListResponse(BaseModel):
    total_addresses: int
    addresses: List[IPAddressResponse]
