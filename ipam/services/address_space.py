import ipaddress
from typing import Optional, Tuple, Union

from ..errors import (
    AddressOverflowError,
    ExhaustedError,
    InternalError,
    InvalidRangeError,
    OutOfBoundsError,
)
from ..schemas.ip_pool import IPPoolRange

IPAddressType = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetworkType = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class AddressSpace:
    """
    Address-at-offset arithmetic over pool ranges. IP version agnostic.

    Candidate rules:
    - start only:        start + index, bounded by end when given
    - start and subnet:  start + index, must stay inside subnet
    - subnet only:       network address + index + 1 (the network address itself is skipped)

    Every function here is pure.
    """

    @staticmethod
    def normalize(address: str) -> str:
        """Canonical text form of an address, e.g. '2001:db8::1'."""
        return str(ipaddress.ip_address(address))

    @staticmethod
    def parse_range(
        entry: IPPoolRange,
    ) -> Tuple[Optional[IPAddressType], Optional[IPAddressType], Optional[IPNetworkType]]:
        """Parse start, end and subnet of a range, raising InvalidRangeError."""
        if not entry.start and not entry.subnet:
            raise InvalidRangeError()
        try:
            start = ipaddress.ip_address(entry.start) if entry.start else None
            end = ipaddress.ip_address(entry.end) if entry.end else None
            subnet = ipaddress.ip_network(entry.subnet, strict=False) if entry.subnet else None
        except ValueError as e:
            raise InvalidRangeError(f"Invalid IP address range: {e}")

        if start is not None and end is not None and start.version != end.version:
            raise InvalidRangeError(f"Mixed IP versions in range: {start} - {end}")
        return start, end, subnet

    @staticmethod
    def add_offset_to_ip(
        ip: IPAddressType, end: Optional[IPAddressType], offset: int
    ) -> IPAddressType:
        """
        Add an offset to an address as a big-endian unsigned integer.

        Raises AddressOverflowError when the result no longer fits the address
        width (4 or 16 bytes) and ExhaustedError when it passes ``end``.
        """
        if offset < 0:
            raise InternalError(f"Negative offset {offset}")

        value = int(ip) + offset
        if value >= 2 ** ip.max_prefixlen:
            raise AddressOverflowError(f"IP address overflow for : {ip}")

        if end is not None and value > int(end):
            raise ExhaustedError(f"IP address out of bounds for : {ip}")

        return type(ip)(value)

    @staticmethod
    def get_address_at(entry: IPPoolRange, index: int) -> str:
        """Render the address at ``index`` inside a range."""
        start, end, subnet = AddressSpace.parse_range(entry)

        if start is not None:
            ip = AddressSpace.add_offset_to_ip(start, end, index)
        else:
            # Offset 0 would be the network address
            ip = AddressSpace.add_offset_to_ip(subnet.network_address, None, index + 1)

        if subnet is not None and ip not in subnet:
            raise OutOfBoundsError(f"IP address out of bounds for : {ip}")

        return str(ip)

    @staticmethod
    def index_of(entry: IPPoolRange, address: str) -> Optional[int]:
        """
        Inverse of get_address_at.

        Returns the index ``i`` for which ``get_address_at(entry, i) == address``,
        or None if walking the range would never produce the address.
        """
        start, end, subnet = AddressSpace.parse_range(entry)
        ip = ipaddress.ip_address(address)

        if start is not None:
            if ip.version != start.version:
                return None
            offset = int(ip) - int(start)
            if offset < 0:
                return None
            if end is not None and int(ip) > int(end):
                return None
            if subnet is not None and (start not in subnet or ip not in subnet):
                # The walk stops at the first candidate outside the subnet
                return None
            return offset

        if ip not in subnet:
            return None
        offset = int(ip) - int(subnet.network_address) - 1
        return offset if offset >= 0 else None

    @staticmethod
    def contains(entry: IPPoolRange, address: str) -> bool:
        """
        Range membership as used by pool admission.

        The address is in the range when it is not below start, not above end
        and inside subnet, ignoring whichever of those are unset. A range with
        neither start nor subnet contains nothing.
        """
        if not entry.start and not entry.subnet:
            return False
        try:
            ip = ipaddress.ip_address(address)
            if entry.start:
                start = ipaddress.ip_address(entry.start)
                if start.version != ip.version or int(start) > int(ip):
                    return False
            if entry.end:
                end = ipaddress.ip_address(entry.end)
                if end.version != ip.version or int(end) < int(ip):
                    return False
            if entry.subnet:
                subnet = ipaddress.ip_network(entry.subnet, strict=False)
                if ip not in subnet:
                    return False
        except ValueError:
            return False
        return True

    @staticmethod
    def format_address_name(name_prefix: str, address: str) -> str:
        """Name of the IP address object, e.g. 'pool-192-168-0-11'."""
        name = f"{name_prefix}-{address.replace(':', '-').replace('.', '-')}"
        return name.rstrip("-")
