from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from ..output import debug
from .device import BlockDevice, is_valid_device_file
from .kernel import KernelArguments
from .network import NetworkInterface
from .telemetry import Telemetry
from .users import User

if TYPE_CHECKING:
	from ..validation import Violation


class SystemInstall:
	"""
	The installation plan. Collections are only reachable through the
	methods below so that the de-duplication rules always hold: adding an
	element equal to one already present never creates a second entry.
	"""

	def __init__(self) -> None:
		self.version: str | None = None
		self.keyboard: str | None = None
		self.language: str | None = None
		self.timezone: str | None = None
		self.hostname: str | None = None
		self.http_proxy: str | None = None
		self.autoupdate: bool = True
		self.post_install: list[str] = []

		self._block_devices: dict[str, str] = {}
		self._target_medias: list[BlockDevice] = []
		self._network_interfaces: list[NetworkInterface] = []
		self._users: list[User] = []
		self._bundles: list[str] = []
		self._user_bundles: list[str] = []
		self._kernel_arguments: KernelArguments | None = None
		self._telemetry: Telemetry | None = None

	@property
	def block_devices(self) -> dict[str, str]:
		return dict(self._block_devices)

	@property
	def target_medias(self) -> tuple[BlockDevice, ...]:
		return tuple(self._target_medias)

	@property
	def network_interfaces(self) -> tuple[NetworkInterface, ...]:
		return tuple(self._network_interfaces)

	@property
	def users(self) -> tuple[User, ...]:
		return tuple(self._users)

	@property
	def bundles(self) -> tuple[str, ...]:
		return tuple(self._bundles)

	@property
	def user_bundles(self) -> tuple[str, ...]:
		return tuple(self._user_bundles)

	@property
	def kernel_arguments(self) -> KernelArguments | None:
		if self._kernel_arguments is None:
			return None
		return copy.deepcopy(self._kernel_arguments)

	@property
	def telemetry(self) -> Telemetry | None:
		if self._telemetry is None:
			return None
		return copy.copy(self._telemetry)

	def add_block_device_alias(self, alias: str, device_file: str) -> None:
		if not is_valid_device_file(device_file):
			raise ValueError(f'Invalid block device alias {alias}: {device_file} is not a block device')

		self._block_devices[alias] = device_file

	def add_target_media(self, device: BlockDevice) -> None:
		if device in self._target_medias:
			return

		self._target_medias.append(device)

	def remove_target_media(self, device: BlockDevice) -> None:
		if device in self._target_medias:
			self._target_medias.remove(device)

	def clear_target_medias(self) -> None:
		self._target_medias.clear()

	def add_network_interface(self, iface: NetworkInterface) -> None:
		if iface in self._network_interfaces:
			return

		self._network_interfaces.append(iface)

	def remove_network_interface(self, name: str) -> None:
		self._network_interfaces = [iface for iface in self._network_interfaces if iface.name != name]

	def add_user(self, user: User) -> None:
		if any(curr.login == user.login for curr in self._users):
			return

		self._users.append(user)

	def remove_all_users(self) -> None:
		self._users.clear()

	def add_bundle(self, name: str) -> None:
		if name not in self._bundles:
			self._bundles.append(name)

	def remove_bundle(self, name: str) -> None:
		if name in self._bundles:
			self._bundles.remove(name)

	def contains_bundle(self, name: str) -> bool:
		return name in self._bundles

	def add_user_bundle(self, name: str) -> None:
		if name not in self._user_bundles:
			self._user_bundles.append(name)

	def remove_user_bundle(self, name: str) -> None:
		if name in self._user_bundles:
			self._user_bundles.remove(name)

	def contains_user_bundle(self, name: str) -> bool:
		return name in self._user_bundles

	def add_extra_kernel_arguments(self, args: Iterable[str]) -> None:
		if self._kernel_arguments is None:
			self._kernel_arguments = KernelArguments()

		self._kernel_arguments.add_arguments(list(args))

	def remove_kernel_arguments(self, args: Iterable[str]) -> None:
		if self._kernel_arguments is None:
			self._kernel_arguments = KernelArguments()

		self._kernel_arguments.remove_arguments(list(args))

	def enable_telemetry(self, enabled: bool) -> None:
		if self._telemetry is None:
			self._telemetry = Telemetry()

		self._telemetry.enabled = enabled

	def configure_telemetry(self, server: str | None, tid: str | None = None) -> None:
		if self._telemetry is None:
			raise ValueError('Telemetry must be enabled or disabled before configuring its server')

		self._telemetry.server = server
		self._telemetry.tid = tid

	def is_telemetry_enabled(self) -> bool:
		if self._telemetry is None:
			return False
		return self._telemetry.enabled

	def has_telemetry_decision(self) -> bool:
		return self._telemetry is not None

	def validate(self) -> None:
		from ..validation import validate

		validate(self)

	def violations(self) -> list[Violation]:
		from ..validation import collect_violations

		return collect_violations(self)

	def json(self) -> dict[str, Any]:
		config: dict[str, Any] = {
			'version': self.version,
			'keyboard': self.keyboard,
			'language': self.language,
			'timezone': self.timezone,
			'hostname': self.hostname,
			'http_proxy': self.http_proxy,
			'autoupdate': self.autoupdate,
			'bundles': list(self._bundles),
			'user_bundles': list(self._user_bundles),
			'post_install': list(self.post_install),
		}

		if self._block_devices:
			config['block_devices'] = [{'name': name, 'file': file} for name, file in self._block_devices.items()]

		if self._target_medias:
			config['target_media'] = [media.json() for media in self._target_medias]

		if self._network_interfaces:
			config['network_interfaces'] = [iface.json() for iface in self._network_interfaces]

		if self._users:
			config['users'] = [user.json() for user in self._users]

		if self._kernel_arguments:
			config['kernel_arguments'] = self._kernel_arguments.json()

		if self._telemetry:
			config['telemetry'] = self._telemetry.json()

		return config

	@classmethod
	def parse_arg(cls, args_config: dict[str, Any]) -> SystemInstall:
		if not isinstance(args_config, dict):
			raise ValueError('The installation descriptor must be a JSON object')

		si = SystemInstall()

		si.version = _optional_string(args_config, 'version')
		si.keyboard = _optional_string(args_config, 'keyboard')
		si.language = _optional_string(args_config, 'language')
		si.timezone = _optional_string(args_config, 'timezone')
		si.hostname = _optional_string(args_config, 'hostname')
		si.http_proxy = _optional_string(args_config, 'http_proxy')
		si.autoupdate = args_config.get('autoupdate', True) is True

		if post_install := args_config.get('post_install', []):
			si.post_install = _string_list(post_install, 'post_install')

		for entry in args_config.get('block_devices', []):
			if not isinstance(entry, dict) or not entry.get('name') or not entry.get('file'):
				raise ValueError(f'Invalid block device alias entry: {entry}')

			si.add_block_device_alias(entry['name'], entry['file'])

		for entry in args_config.get('target_media', []):
			media = BlockDevice.parse_arg(entry)
			media.expand_names(si._block_devices)
			si.add_target_media(media)

		for entry in args_config.get('network_interfaces', []):
			si.add_network_interface(NetworkInterface.parse_arg(entry))

		if users := args_config.get('users', []):
			for user in User.parse_arguments(users):
				si.add_user(user)

		for bundle in _string_list(args_config.get('bundles', []), 'bundles'):
			si.add_bundle(bundle)

		for bundle in _string_list(args_config.get('user_bundles', []), 'user_bundles'):
			si.add_user_bundle(bundle)

		if (kernel_args := args_config.get('kernel_arguments', None)) is not None:
			parsed = KernelArguments.parse_arg(kernel_args)
			si.add_extra_kernel_arguments(parsed.add)
			si.remove_kernel_arguments(parsed.remove)

		if (telemetry := args_config.get('telemetry', None)) is not None:
			parsed_telemetry = Telemetry.parse_arg(telemetry)
			si.enable_telemetry(parsed_telemetry.enabled)
			si.configure_telemetry(parsed_telemetry.server, parsed_telemetry.tid)

		debug(f'Parsed installation descriptor with {len(si._target_medias)} target media(s)')

		return si


def _optional_string(config: dict[str, Any], key: str) -> str | None:
	value = config.get(key, None)

	if value is not None and not isinstance(value, str):
		raise ValueError(f'{key} must be a string')

	return value


def _string_list(value: Any, key: str) -> list[str]:
	if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
		raise ValueError(f'{key} must be a list of strings')
	return value
