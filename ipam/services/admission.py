import ipaddress
from typing import List, Optional

from ..errors import InternalError
from ..schemas.ip_pool import FieldError, IPPoolSpec, IPPoolStatus
from .address_space import AddressSpace


def is_valid_ip(address: Optional[str]) -> bool:
    if not address:
        return True
    try:
        ipaddress.ip_address(address)
        return True
    except ValueError:
        return False


class IPPoolAdmission:
    """
    Admission checks for pool writes.

    Every problem is returned as a FieldError and the write must be refused
    when the list is not empty. On update, preallocations and the addresses
    currently in use must stay inside the new ranges.
    """

    @staticmethod
    def validate_create(spec: IPPoolSpec) -> List[FieldError]:
        return IPPoolAdmission.validate_pool_ranges(spec)

    @staticmethod
    def validate_update(
        old_spec: Optional[IPPoolSpec],
        old_status: Optional[IPPoolStatus],
        new_spec: IPPoolSpec,
    ) -> List[FieldError]:
        if old_spec is None:
            raise InternalError("unable to convert existing object")
        old_status = old_status or IPPoolStatus()

        errors: List[FieldError] = []
        if new_spec.name_prefix != old_spec.name_prefix:
            errors.append(FieldError(field="spec.name_prefix", value=new_spec.name_prefix, detail="cannot be modified"))

        errors.extend(IPPoolAdmission.validate_pool_ranges(new_spec))

        for name, address in new_spec.pre_allocations.items():
            if not IPPoolAdmission.is_address_in_bounds(new_spec, address):
                errors.append(
                    FieldError(
                        field=f"spec.pre_allocations.{name}",
                        value=address,
                        detail="is out of bounds of the ranges given",
                    )
                )

        for address in old_status.allocations.values():
            if not IPPoolAdmission.is_address_in_bounds(new_spec, address):
                errors.append(
                    FieldError(
                        field="spec.ranges",
                        value=address,
                        detail="is in use but out of bounds of the ranges given",
                    )
                )
        return errors

    @staticmethod
    def validate_delete(status: IPPoolStatus) -> List[FieldError]:
        if status.allocations:
            return [
                FieldError(
                    field="status.allocations",
                    value=sorted(status.allocations),
                    detail="pool still has allocated addresses",
                )
            ]
        return []

    @staticmethod
    def is_address_in_bounds(spec: IPPoolSpec, address: str) -> bool:
        return any(AddressSpace.contains(entry, address) for entry in spec.ranges)

    @staticmethod
    def validate_pool_ranges(spec: IPPoolSpec) -> List[FieldError]:
        errors: List[FieldError] = []

        def invalid_ip(field: str, value: str) -> None:
            errors.append(FieldError(field=field, value=value, detail="is not a valid IP address"))

        if not is_valid_ip(spec.gateway):
            invalid_ip("spec.gateway", spec.gateway)

        for i, dns_server in enumerate(spec.dns_servers):
            if not is_valid_ip(dns_server):
                invalid_ip(f"spec.dns_servers[{i}]", dns_server)

        for name, address in spec.pre_allocations.items():
            if not is_valid_ip(address):
                invalid_ip(f"spec.pre_allocations.{name}", address)

        for i, entry in enumerate(spec.ranges):
            path = f"spec.ranges[{i}]"
            if not is_valid_ip(entry.start):
                invalid_ip(f"{path}.start", entry.start)
            if not is_valid_ip(entry.end):
                invalid_ip(f"{path}.end", entry.end)
            if entry.subnet:
                try:
                    if "/" not in entry.subnet:
                        raise ValueError(entry.subnet)
                    ipaddress.ip_network(entry.subnet, strict=False)
                except ValueError:
                    errors.append(FieldError(field=f"{path}.subnet", value=entry.subnet, detail="is not a valid CIDR"))
            if not is_valid_ip(entry.gateway):
                invalid_ip(f"{path}.gateway", entry.gateway)
            for j, dns_server in enumerate(entry.dns_servers):
                if not is_valid_ip(dns_server):
                    invalid_ip(f"{path}.dns_servers[{j}]", dns_server)

            if entry.start and entry.end and is_valid_ip(entry.start) and is_valid_ip(entry.end):
                start = ipaddress.ip_address(entry.start)
                end = ipaddress.ip_address(entry.end)
                if start.version == end.version and start > end:
                    errors.append(
                        FieldError(
                            field=path,
                            value=f"start: {entry.start}, end: {entry.end}",
                            detail="start address must be less than or equal to end address",
                        )
                    )
        return errors


class IPClaimAdmission:
    """Admission checks for claim writes, shared by both claim families."""

    @staticmethod
    def validate_create(pool_name: str) -> List[FieldError]:
        if not pool_name:
            return [FieldError(field="pool_name", value=pool_name, detail="cannot be empty")]
        return []

    @staticmethod
    def validate_update(old_pool_name: Optional[str], new_pool_name: str) -> List[FieldError]:
        if old_pool_name is None:
            raise InternalError("unable to convert existing object")
        if not new_pool_name:
            return [FieldError(field="pool_name", value=new_pool_name, detail="cannot be empty")]
        if new_pool_name != old_pool_name:
            return [FieldError(field="pool_name", value=new_pool_name, detail="cannot be modified")]
        return []

    @staticmethod
    def validate_delete() -> List[FieldError]:
        return []
