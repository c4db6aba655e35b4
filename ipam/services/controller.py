import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from sqlalchemy.orm import Session

from ..errors import NotFoundError, TransientError
from ..models import IPPool
from .ip_pool_manager import IPPoolManager
from .store import ObjectStore

logger = logging.getLogger(__name__)


class ReconcileResult(NamedTuple):
    allocations: int = 0
    requeue: bool = False
    error: Optional[str] = None


def reconcile_pool(db: Session, namespace: str, name: str) -> ReconcileResult:
    """
    Run one reconciliation pass for a pool and commit it.

    A live pool gets its finalizer and its claims served. A pool being
    deleted keeps releasing claims and drops its finalizer once no address
    is held any more, which lets the store remove it. On requeue everything
    written during the pass is rolled back.
    """
    store = ObjectStore(db)
    try:
        pool = store.get(IPPool, namespace, name)
    except NotFoundError:
        return ReconcileResult()

    manager = IPPoolManager(store, pool)
    try:
        if not pool.deleting:
            manager.set_finalizer()
            result = manager.update_addresses()
        else:
            result = manager.update_addresses()
            if not result.requeue and result.allocations == 0:
                manager.unset_finalizer()

        if not result.requeue:
            store.update(pool)
    except TransientError as e:
        logger.info("Requeuing pool %s/%s: %s", namespace, name, e)
        result = ReconcileResult(requeue=True)

    if result.requeue:
        db.rollback()
        return ReconcileResult(requeue=True)

    db.commit()
    return ReconcileResult(allocations=result.allocations)


class PoolReconciler:
    """
    Runs reconciliation passes, one session per pass.

    Distinct pools are reconciled in parallel on a bounded thread pool. A
    pool is never reconciled twice at once by this reconciler; concurrent
    writers elsewhere are caught by the version checks and requeued.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        workers: int = 4,
        resync_period: float = 30.0,
        requeue_after: float = 1.0,
    ):
        self.session_factory = session_factory
        self.workers = workers
        self.resync_period = resync_period
        self.requeue_after = requeue_after
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        db = self.session_factory()
        try:
            return reconcile_pool(db, namespace, name)
        except Exception:
            db.rollback()
            logger.exception("Failed to reconcile pool %s/%s", namespace, name)
            return ReconcileResult(error=f"Failed to reconcile pool {namespace}/{name}")
        finally:
            db.close()

    def list_pools(self):
        db = self.session_factory()
        try:
            return [(p.namespace, p.name) for p in db.query(IPPool).order_by(IPPool.id).all()]
        finally:
            db.close()

    def reconcile_all(self) -> Dict[Tuple[str, str], ReconcileResult]:
        pools = self.list_pools()
        if not pools:
            return {}
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            results = executor.map(lambda key: self.reconcile(*key), pools)
            return dict(zip(pools, results))

    def run(self) -> None:
        logger.info("Pool controller started with %d workers", self.workers)
        while not self._stop.is_set():
            try:
                results = self.reconcile_all()
            except Exception:
                logger.exception("Failed to list pools")
                results = {}
            requeued = [key for key, result in results.items() if result.requeue]
            if requeued:
                logger.info("%d pool(s) requeued", len(requeued))
            self._stop.wait(self.requeue_after if requeued else self.resync_period)
        logger.info("Pool controller stopped")

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="pool-controller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
