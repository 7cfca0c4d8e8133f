from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from .exceptions import BackendError
from .models.device import BlockDevice
from .models.kernel import KernelArguments
from .models.network import NetworkInterface
from .models.telemetry import Telemetry
from .models.users import User
from .output import debug


class InstallBackend(ABC):
	"""
	The system facing side of an installation: partitioning, file systems,
	bundle installation and target configuration. The orchestrators only
	decide what to do and in which order, everything touching the machine
	goes through a backend.
	"""

	def environment_checks(self) -> list[tuple[str, Callable[[], None]]]:
		"""
		Checks run during the pre-check, as (description, check) pairs.
		A check raises BackendError when the requirement is not met.
		"""
		return []

	@abstractmethod
	def partition(self, media: BlockDevice) -> None: ...

	@abstractmethod
	def format(self, partition: BlockDevice) -> None: ...

	@abstractmethod
	def mount(self, root_dir: Path, partition: BlockDevice) -> None: ...

	@abstractmethod
	def unmount(self, root_dir: Path) -> None: ...

	@abstractmethod
	def install_bundle(self, root_dir: Path, bundle: str) -> None: ...

	@abstractmethod
	def configure_locale(self, root_dir: Path, keyboard: str, language: str, timezone: str | None) -> None: ...

	@abstractmethod
	def configure_hostname(self, root_dir: Path, hostname: str) -> None: ...

	@abstractmethod
	def configure_network(self, root_dir: Path, iface: NetworkInterface) -> None: ...

	@abstractmethod
	def create_user(self, root_dir: Path, user: User) -> None: ...

	@abstractmethod
	def configure_kernel_arguments(self, root_dir: Path, kernel_arguments: KernelArguments) -> None: ...

	@abstractmethod
	def configure_telemetry(self, root_dir: Path, telemetry: Telemetry) -> None: ...

	@abstractmethod
	def run_hook(self, root_dir: Path, command: str) -> None: ...


def _require_root() -> None:
	if os.getuid() != 0:
		raise BackendError('The installer requires root privileges')


class DryRunBackend(InstallBackend):
	"""
	Walks through an installation without touching the system, every call
	is logged and recorded in calls.
	"""

	def __init__(self, require_root: bool = False) -> None:
		self.calls: list[tuple[str, str]] = []
		self._needs_root = require_root

	def _record(self, operation: str, target: str) -> None:
		debug(f'[dry-run] {operation}: {target}')
		self.calls.append((operation, target))

	def environment_checks(self) -> list[tuple[str, Callable[[], None]]]:
		if self._needs_root:
			return [('Checking for root privileges', _require_root)]
		return []

	def partition(self, media: BlockDevice) -> None:
		self._record('partition', media.get_device_file())

	def format(self, partition: BlockDevice) -> None:
		fs_type = partition.fs_type.value if partition.fs_type else 'none'
		self._record('format', f'{partition.get_device_file()} ({fs_type})')

	def mount(self, root_dir: Path, partition: BlockDevice) -> None:
		mount_point = partition.mount_point or '/'
		target = root_dir / mount_point.lstrip('/')
		self._record('mount', f'{partition.get_device_file()} -> {target}')

	def unmount(self, root_dir: Path) -> None:
		self._record('unmount', str(root_dir))

	def install_bundle(self, root_dir: Path, bundle: str) -> None:
		self._record('bundle', bundle)

	def configure_locale(self, root_dir: Path, keyboard: str, language: str, timezone: str | None) -> None:
		self._record('locale', f'{keyboard} {language} {timezone or "UTC"}')

	def configure_hostname(self, root_dir: Path, hostname: str) -> None:
		self._record('hostname', hostname)

	def configure_network(self, root_dir: Path, iface: NetworkInterface) -> None:
		self._record('network', iface.name)

	def create_user(self, root_dir: Path, user: User) -> None:
		self._record('user', user.login)

	def configure_kernel_arguments(self, root_dir: Path, kernel_arguments: KernelArguments) -> None:
		self._record('kernel_arguments', ' '.join(kernel_arguments.apply([])))

	def configure_telemetry(self, root_dir: Path, telemetry: Telemetry) -> None:
		self._record('telemetry', 'enabled' if telemetry.enabled else 'disabled')

	def run_hook(self, root_dir: Path, command: str) -> None:
		self._record('hook', command)
