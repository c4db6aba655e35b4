from .ip_pools import router as ip_pools_router
from .ip_claims import ip_claims_router, federated_ip_claims_router

__all__ = ["ip_pools_router", "ip_claims_router", "federated_ip_claims_router"]
