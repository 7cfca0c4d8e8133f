from __future__ import annotations

import re
from collections.abc import Iterator
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..output import debug

_SIZE_UNITS = {
	'B': 1,
	'K': 1024**1,
	'M': 1024**2,
	'G': 1024**3,
	'T': 1024**4,
	'P': 1024**5,
}

_SIZE_REGEX = re.compile(r'^\s*(?P<value>\d+(\.\d+)?)\s*(?P<unit>[BKMGTP])?(i?B)?\s*$', re.IGNORECASE)
_TEMPLATE_REGEX = re.compile(r'\$\{(?P<alias>[A-Za-z0-9_-]+)\}')


def parse_size(value: str | int) -> int:
	"""
	Parses a size given either in bytes or as a human readable
	string, e.g. '150M', '30G' or '1.5TiB', using binary units.
	"""
	if isinstance(value, bool):
		raise ValueError(f'Invalid size: {value}')

	if isinstance(value, int):
		if value < 0:
			raise ValueError(f'Invalid size: {value}')
		return value

	match = _SIZE_REGEX.match(value)
	if not match:
		raise ValueError(f'Invalid size: {value}')

	unit = (match.group('unit') or 'B').upper()
	return int(float(match.group('value')) * _SIZE_UNITS[unit])


def format_size(size: int) -> str:
	for unit in ['P', 'T', 'G', 'M', 'K']:
		factor = _SIZE_UNITS[unit]
		if size >= factor:
			value = f'{size / factor:.1f}'
			if value.endswith('.0'):
				value = value[:-2]
			return f'{value}{unit}'

	return f'{size}B'


class AliasRegistry:
	"""
	Alias names recognized in place of real device files. Tests register
	loopback or purely virtual device files here so descriptors referencing
	them can be loaded without real hardware. Unregistered names resolve to
	themselves.
	"""

	def __init__(self) -> None:
		self._aliases: dict[str, str] = {}

	def register(self, alias: str, device_file: str | None = None) -> None:
		self._aliases[alias] = device_file or alias

	def unregister(self, alias: str) -> None:
		self._aliases.pop(alias, None)

	def clear(self) -> None:
		self._aliases.clear()

	def is_alias(self, name: str) -> bool:
		return name in self._aliases or name in self._aliases.values()

	def resolve(self, name: str) -> str:
		return self._aliases.get(name, name)

	def aliases(self) -> list[str]:
		return list(self._aliases.keys())


device_aliases = AliasRegistry()


def is_valid_device_file(device_file: str) -> bool:
	if device_aliases.is_alias(device_file):
		return True

	return Path(device_file).is_block_device()


class BlockDeviceType(Enum):
	Disk = 'disk'
	Part = 'part'
	Loop = 'loop'
	Crypt = 'crypt'
	Lvm = 'lvm'
	Rom = 'rom'
	Unknown = 'unknown'


class FilesystemType(Enum):
	Btrfs = 'btrfs'
	Ext2 = 'ext2'
	Ext3 = 'ext3'
	Ext4 = 'ext4'
	F2fs = 'f2fs'
	Vfat = 'vfat'
	Xfs = 'xfs'
	Swap = 'swap'

	def is_swap(self) -> bool:
		return self == FilesystemType.Swap


class PartitionFlag(Enum):
	BOOT = 'boot'
	ESP = 'esp'
	ROOT = 'root'
	SWAP = 'swap'

	@classmethod
	def from_string(cls, s: str) -> PartitionFlag | None:
		s = s.lower()

		for flag in cls:
			if s == flag.value:
				return flag

		debug(f'Partition flag not supported: {s}')
		return None


BOOT_MOUNT_POINTS = [Path('/boot'), Path('/boot/efi')]
ROOT_MOUNT_POINT = Path('/')


class BlockDevice(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	name: str = ''
	device_file: str | None = Field(default=None, alias='file')
	type: BlockDeviceType = BlockDeviceType.Disk
	fs_type: FilesystemType | None = None
	mount_point: str | None = None
	label: str | None = None
	size: int = 0
	read_only: bool = False
	removable: bool = False
	options: str | None = None
	flags: list[PartitionFlag] = Field(default_factory=list)
	children: list[BlockDevice] = Field(default_factory=list)

	@field_validator('size', mode='before')
	@classmethod
	def convert_size(cls, v: str | int | None) -> int:
		if v is None:
			return 0
		return parse_size(v)

	@field_validator('flags', mode='before')
	@classmethod
	def convert_flags(cls, v: list[str | PartitionFlag] | None) -> list[PartitionFlag]:
		flags: list[PartitionFlag] = []

		for entry in v or []:
			if isinstance(entry, PartitionFlag):
				flags.append(entry)
			elif flag := PartitionFlag.from_string(str(entry)):
				flags.append(flag)

		return flags

	@field_validator('mount_point', mode='before')
	@classmethod
	def strip_mount_point(cls, v: str | None) -> str | None:
		if v is None:
			return None

		v = str(v).strip()
		if v and not v.startswith('/'):
			raise ValueError(f'Mount point must be an absolute path: {v}')

		return v or None

	def get_device_file(self) -> str:
		if self.device_file:
			return self.device_file

		resolved = device_aliases.resolve(self.name)
		if resolved.startswith('/'):
			return resolved

		return str(Path('/dev') / resolved)

	def expand_names(self, aliases: dict[str, str]) -> None:
		"""
		Expands ${alias} variables in the device and children names,
		aliases maps an alias to its device file. Children are positionally
		named after their parent when no name is given and get their device
		file placed next to the parent's one.
		"""

		def _expand(match: re.Match[str]) -> str:
			alias = match.group('alias')
			if alias not in aliases:
				raise ValueError(f'Unknown block device alias: {alias}')
			return Path(aliases[alias]).name

		for alias, device_file in aliases.items():
			if self.name == f'${{{alias}}}' and not self.device_file:
				self.device_file = device_file

		self.name = _TEMPLATE_REGEX.sub(_expand, self.name)

		for i, child in enumerate(self.children, start=1):
			if not child.name:
				child.name = self.child_name(i)

			child.expand_names(aliases)

			if not child.device_file and self.device_file:
				child.device_file = str(Path(self.device_file).parent / child.name)

	def child_name(self, index: int) -> str:
		if self.name and self.name[-1].isdigit():
			return f'{self.name}p{index}'
		return f'{self.name}{index}'

	def partitions(self) -> Iterator[BlockDevice]:
		for child in self.children:
			yield child
			yield from child.partitions()

	def is_bootable(self) -> bool:
		if PartitionFlag.BOOT in self.flags or PartitionFlag.ESP in self.flags:
			return True

		if self.mount_point is not None:
			return Path(self.mount_point) in BOOT_MOUNT_POINTS

		return False

	def is_root(self) -> bool:
		if PartitionFlag.ROOT in self.flags:
			return True

		if self.mount_point is not None:
			return Path(self.mount_point) == ROOT_MOUNT_POINT

		return False

	def is_swap(self) -> bool:
		if PartitionFlag.SWAP in self.flags:
			return True
		return self.fs_type is not None and self.fs_type.is_swap()

	def has_bootable_partition(self) -> bool:
		return any(part.is_bootable() for part in self.partitions())

	def root_partitions(self) -> list[BlockDevice]:
		return [part for part in self.partitions() if part.is_root()]

	def clone(self) -> BlockDevice:
		return self.model_copy(deep=True)

	def table_data(self) -> dict[str, str]:
		return {
			'name': self.name,
			'file': self.get_device_file(),
			'type': self.type.value,
			'fs_type': self.fs_type.value if self.fs_type else '',
			'mount_point': self.mount_point or '',
			'size': format_size(self.size),
		}

	def json(self) -> dict[str, Any]:
		return self.model_dump(mode='json', by_alias=True, exclude_none=True)

	@classmethod
	def parse_arg(cls, arg: dict[str, Any]) -> BlockDevice:
		return cls.model_validate(arg)
