from .device import (
	AliasRegistry,
	BlockDevice,
	BlockDeviceType,
	FilesystemType,
	PartitionFlag,
	device_aliases,
	format_size,
	is_valid_device_file,
	parse_size,
)
from .kernel import KernelArguments
from .network import InterfaceAddress, NetworkInterface
from .system_install import SystemInstall
from .telemetry import LOCAL_TELEMETRY_SERVER, Telemetry
from .users import User

__all__ = [
	'LOCAL_TELEMETRY_SERVER',
	'AliasRegistry',
	'BlockDevice',
	'BlockDeviceType',
	'FilesystemType',
	'InterfaceAddress',
	'KernelArguments',
	'NetworkInterface',
	'PartitionFlag',
	'SystemInstall',
	'Telemetry',
	'User',
	'device_aliases',
	'format_size',
	'is_valid_device_file',
	'parse_size',
]
