from fastapi import FastAPI
from contextlib import asynccontextmanager

from .config import get_settings
from .database import SessionLocal, create_tables
from .logger import setup_logging
from .routers import ip_pools_router, ip_claims_router, federated_ip_claims_router
from .services.controller import PoolReconciler

settings = get_settings()
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create database tables and start the pool controller
    create_tables()
    reconciler = None
    if settings.controller_enabled:
        reconciler = PoolReconciler(
            SessionLocal,
            workers=settings.reconcile_workers,
            resync_period=settings.resync_period,
            requeue_after=settings.requeue_after,
        )
        reconciler.start()
    yield
    # Shutdown: stop the controller loop
    if reconciler is not None:
        reconciler.stop()


app = FastAPI(
    title="IP Pool Manager",
    description="""
## IP Pool Manager API

Assigns IP addresses from operator-declared pools to claims, for bare-metal
infrastructure that is provisioned and torn down continuously.

---

### Pools

A pool holds ordered ranges, default network settings and preallocations:

| Range fields | Candidates |
|--------------|-----------|
| start | start, start+1, ... (until end when set) |
| start + subnet | start, start+1, ... while inside subnet |
| subnet | network+1, network+2, ... while inside subnet |

Ranges may override prefix, gateway and DNS servers.

---

### Claims

Claims exist in two families, `ip-claims` and `federated-ip-claims`, which
draw from the same pools without conflicts. The pool controller binds each
claim to an IP address object and releases it when the claim is deleted.

---

### Key Features
- Pool status rebuilt from the IP address objects on every pass
- Preallocated and explicitly requested addresses
- Admission checks keep in-use addresses inside the pool ranges
- Optimistic concurrency with automatic requeue
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(ip_pools_router, prefix=settings.api_v1_prefix)
app.include_router(ip_claims_router, prefix=settings.api_v1_prefix)
app.include_router(federated_ip_claims_router, prefix=settings.api_v1_prefix)

