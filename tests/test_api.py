"""End-to-end tests of the HTTP API with reconciliation triggered by hand."""

from ipam.models import FEDERATED_IPCLAIM_FINALIZER, IPCLAIM_FINALIZER, IPPOOL_FINALIZER

API = "/api/v1"

POOL = {
    "name": "pool",
    "spec": {
        "name_prefix": "pool",
        "prefix": 24,
        "gateway": "192.168.0.1",
        "ranges": [{"start": "192.168.0.11", "end": "192.168.0.20"}],
    },
}


def create_pool(client, body=POOL):
    response = client.post(f"{API}/ip-pools", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def reconcile(client, name="pool"):
    response = client.post(f"{API}/ip-pools/{name}/reconcile")
    assert response.status_code == 200, response.text
    return response.json()


def test_pool_crud(client) -> None:
    pool = create_pool(client)
    assert pool["namespace"] == "default"
    assert pool["spec"]["name_prefix"] == "pool"
    assert pool["status"]["allocations"] == {}
    assert pool["finalizers"] == []
    assert pool["resource_version"] == 1

    assert client.post(f"{API}/ip-pools", json=POOL).status_code == 409
    assert [p["name"] for p in client.get(f"{API}/ip-pools").json()] == ["pool"]
    assert client.get(f"{API}/ip-pools?namespace=other").json() == []
    assert client.get(f"{API}/ip-pools/pool").status_code == 200
    assert client.get(f"{API}/ip-pools/missing").status_code == 404

    spec = dict(POOL["spec"], ranges=[{"subnet": "192.168.0.0/24"}])
    response = client.put(f"{API}/ip-pools/pool", json={"spec": spec, "resource_version": 1})
    assert response.status_code == 200
    assert response.json()["spec"]["ranges"][0]["subnet"] == "192.168.0.0/24"
    assert response.json()["resource_version"] == 2

    response = client.put(f"{API}/ip-pools/pool", json={"spec": spec, "resource_version": 1})
    assert response.status_code == 409

    # Nothing is allocated and the pool holds no finalizer yet
    assert client.delete(f"{API}/ip-pools/pool").status_code == 204
    assert client.get(f"{API}/ip-pools/pool").status_code == 404


def test_pool_admission(client) -> None:
    body = {"name": "bad", "spec": {"name_prefix": "bad", "ranges": [{"start": "192.168.0.300"}]}}
    response = client.post(f"{API}/ip-pools", json=body)
    assert response.status_code == 422
    assert response.json()["detail"][0]["field"] == "spec.ranges[0].start"

    create_pool(client)
    spec = dict(POOL["spec"], name_prefix="other")
    response = client.put(f"{API}/ip-pools/pool", json={"spec": spec})
    assert response.status_code == 422
    assert response.json()["detail"][0]["field"] == "spec.name_prefix"


def test_claim_lifecycle(client) -> None:
    create_pool(client)
    response = client.post(f"{API}/ip-claims", json={"name": "abc", "pool_name": "pool"})
    assert response.status_code == 201
    assert response.json()["address"] is None

    assert reconcile(client) == {"pool_name": "pool", "allocations": 1, "requeue": False}

    claim = client.get(f"{API}/ip-claims/abc").json()
    assert claim["address"] == "pool-192-168-0-11"
    assert claim["finalizers"] == [IPCLAIM_FINALIZER]

    addresses = client.get(f"{API}/ip-addresses?pool_name=pool").json()
    assert addresses["total_addresses"] == 1
    assert addresses["addresses"][0]["address"] == "192.168.0.11"
    assert addresses["addresses"][0]["claim_name"] == "abc"
    assert addresses["addresses"][0]["gateway"] == "192.168.0.1"

    pool = client.get(f"{API}/ip-pools/pool").json()
    assert pool["status"]["allocations"] == {"abc": "192.168.0.11"}
    assert pool["finalizers"] == [IPPOOL_FINALIZER]

    # A pool with allocations cannot be deleted
    assert client.delete(f"{API}/ip-pools/pool").status_code == 409

    assert client.delete(f"{API}/ip-claims/abc").status_code == 204
    assert client.get(f"{API}/ip-claims/abc").json()["deletion_timestamp"] is not None

    assert reconcile(client)["allocations"] == 0
    assert client.get(f"{API}/ip-claims/abc").status_code == 404
    assert client.get(f"{API}/ip-addresses").json()["total_addresses"] == 0

    # The pool finalizer keeps it until the next pass
    assert client.delete(f"{API}/ip-pools/pool").status_code == 204
    assert client.get(f"{API}/ip-pools/pool").json()["deletion_timestamp"] is not None
    reconcile(client)
    assert client.get(f"{API}/ip-pools/pool").status_code == 404


def test_federated_claims(client) -> None:
    create_pool(client)
    client.post(f"{API}/ip-claims", json={"name": "abc", "pool_name": "pool"})
    response = client.post(f"{API}/federated-ip-claims", json={"name": "fed", "pool_name": "pool"})
    assert response.status_code == 201

    assert reconcile(client)["allocations"] == 2

    claim = client.get(f"{API}/federated-ip-claims/fed").json()
    assert claim["address"] == "pool-192-168-0-12"
    assert claim["finalizers"] == [FEDERATED_IPCLAIM_FINALIZER]
    addresses = client.get(f"{API}/federated-ip-addresses").json()
    assert [a["address"] for a in addresses["addresses"]] == ["192.168.0.12"]
    assert client.get(f"{API}/ip-addresses").json()["total_addresses"] == 1


def test_requested_address(client) -> None:
    create_pool(client)
    body = {
        "name": "abc",
        "pool_name": "pool",
        "annotations": {"ipam.io/ip-address": "192.168.0.15"},
    }
    client.post(f"{API}/ip-claims", json=body)
    reconcile(client)
    assert client.get(f"{API}/ip-claims/abc").json()["address"] == "pool-192-168-0-15"


def test_claim_admission(client) -> None:
    assert client.post(f"{API}/ip-claims", json={"name": "abc"}).status_code == 422
    client.post(f"{API}/ip-claims", json={"name": "abc", "pool_name": "pool"})

    response = client.put(f"{API}/ip-claims/abc", json={"pool_name": "other"})
    assert response.status_code == 422
    assert response.json()["detail"][0]["detail"] == "cannot be modified"

    response = client.put(f"{API}/ip-claims/abc", json={"pool_name": "pool", "resource_version": 7})
    assert response.status_code == 409

    response = client.put(f"{API}/ip-claims/abc", json={"pool_name": "pool", "labels": {"a": "b"}})
    assert response.status_code == 200
    assert response.json()["labels"] == {"a": "b"}

    assert client.get(f"{API}/ip-claims/missing").status_code == 404


def test_exhausted_claim_retried_after_pool_update(client) -> None:
    body = {
        "name": "pool",
        "spec": {"name_prefix": "pool", "ranges": [{"start": "192.168.0.11", "end": "192.168.0.11"}]},
    }
    create_pool(client, body)
    client.post(f"{API}/ip-claims", json={"name": "abc", "pool_name": "pool"})
    client.post(f"{API}/ip-claims", json={"name": "bcd", "pool_name": "pool"})

    assert reconcile(client)["allocations"] == 1
    assert client.get(f"{API}/ip-claims/bcd").json()["error_message"] == "Exhausted IP Pools"

    # Dropping the range holding an address in use is refused
    spec = {"name_prefix": "pool", "ranges": [{"start": "192.168.0.12", "end": "192.168.0.13"}]}
    response = client.put(f"{API}/ip-pools/pool", json={"spec": spec})
    assert response.status_code == 422
    assert response.json()["detail"][0]["field"] == "spec.ranges"

    spec = {"name_prefix": "pool", "ranges": [{"start": "192.168.0.11", "end": "192.168.0.12"}]}
    assert client.put(f"{API}/ip-pools/pool", json={"spec": spec}).status_code == 200
    assert client.get(f"{API}/ip-claims/bcd").json()["error_message"] is None

    assert reconcile(client)["allocations"] == 2
    assert client.get(f"{API}/ip-claims/bcd").json()["address"] == "pool-192-168-0-12"


def test_reconcile_missing_pool(client) -> None:
    assert client.post(f"{API}/ip-pools/missing/reconcile").status_code == 404


def test_range_prefix_out_of_bounds(client) -> None:
    body = {
        "name": "pool",
        "spec": {"name_prefix": "pool", "ranges": [{"start": "192.168.0.11", "prefix": 200}]},
    }
    assert client.post(f"{API}/ip-pools", json=body).status_code == 422


def test_claim_name_cannot_hold_a_slash(client) -> None:
    body = {"name": "federated/abc", "pool_name": "pool"}
    assert client.post(f"{API}/ip-claims", json=body).status_code == 422
    assert client.post(f"{API}/federated-ip-claims", json=body).status_code == 422


def test_same_claim_name_in_both_families(client) -> None:
    create_pool(client)
    client.post(f"{API}/ip-claims", json={"name": "abc", "pool_name": "pool"})
    client.post(f"{API}/federated-ip-claims", json={"name": "abc", "pool_name": "pool"})

    assert reconcile(client)["allocations"] == 2

    assert client.get(f"{API}/ip-claims/abc").json()["address"] == "pool-192-168-0-11"
    assert client.get(f"{API}/federated-ip-claims/abc").json()["address"] == "pool-192-168-0-12"
    allocations = client.get(f"{API}/ip-pools/pool").json()["status"]["allocations"]
    assert allocations == {"abc": "192.168.0.11", "federated/abc": "192.168.0.12"}
