from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict, override


class _InterfaceAddressSerialization(TypedDict):
	ip: str
	netmask: NotRequired[str]


class _NetworkInterfaceSerialization(TypedDict):
	name: str
	dhcp: bool
	addrs: list[_InterfaceAddressSerialization]
	gateway: str | None
	dns: list[str]


@dataclass
class InterfaceAddress:
	ip: str
	netmask: str = '255.255.255.0'

	def __post_init__(self) -> None:
		ipaddress.ip_address(self.ip)
		ipaddress.ip_network(f'0.0.0.0/{self.netmask}')

	@property
	def prefix_length(self) -> int:
		return ipaddress.ip_network(f'0.0.0.0/{self.netmask}').prefixlen

	def json(self) -> _InterfaceAddressSerialization:
		return {'ip': self.ip, 'netmask': self.netmask}


@dataclass
class NetworkInterface:
	"""
	A network interface as it should be configured on the target.
	Interfaces are identified by name, two entries for the same
	interface are the same interface regardless of their settings.
	"""

	name: str
	dhcp: bool = True
	addrs: list[InterfaceAddress] = field(default_factory=list)
	gateway: str | None = None
	dns: list[str] = field(default_factory=list)

	def __post_init__(self) -> None:
		if not self.name:
			raise ValueError('A network interface must have a name')

		if self.gateway:
			ipaddress.ip_address(self.gateway)

	@override
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, NetworkInterface):
			return NotImplemented

		return self.name == other.name

	@override
	def __hash__(self) -> int:
		return hash(self.name)

	def table_data(self) -> dict[str, str | bool]:
		return {
			'name': self.name,
			'dhcp': self.dhcp,
			'addrs': ', '.join(f'{a.ip}/{a.prefix_length}' for a in self.addrs),
			'gateway': self.gateway or '',
			'dns': ', '.join(self.dns),
		}

	def json(self) -> _NetworkInterfaceSerialization:
		return {
			'name': self.name,
			'dhcp': self.dhcp,
			'addrs': [addr.json() for addr in self.addrs],
			'gateway': self.gateway,
			'dns': self.dns,
		}

	@classmethod
	def parse_arg(cls, arg: dict[str, Any]) -> NetworkInterface:
		if not isinstance(arg, dict):
			raise ValueError(f'Invalid network interface entry: {arg}')

		addrs = [InterfaceAddress(**entry) for entry in arg.get('addrs', [])]

		return NetworkInterface(
			name=arg.get('name', ''),
			dhcp=arg.get('dhcp', not addrs) is True,
			addrs=addrs,
			gateway=arg.get('gateway', None),
			dns=list(arg.get('dns', [])),
		)
