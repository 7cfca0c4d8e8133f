from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path

from .backend import InstallBackend
from .exceptions import BackendError, InstallError, InstallKitError, PreCheckError
from .models.device import BlockDevice, is_valid_device_file
from .models.system_install import SystemInstall
from .output import debug, error, info
from .progress import ProgressSession

# the pre-check result stays on screen for this many loop waits
PRE_CHECK_PAUSE_FACTOR = 25


@dataclass
class InstallOptions:
	skip_hooks: bool = False


def _partitions(model: SystemInstall) -> list[BlockDevice]:
	return [part for media in model.target_medias for part in media.partitions()]


def _mount_order(partitions: list[BlockDevice]) -> list[BlockDevice]:
	"""
	Mountable partitions, parents before the partitions mounted below them
	so that the root file system always comes first.
	"""
	mountable = [part for part in partitions if part.mount_point and not part.is_swap()]
	return sorted(mountable, key=lambda part: len(Path(part.mount_point or '/').parts))


def pre_check(model: SystemInstall, session: ProgressSession, backend: InstallBackend) -> None:
	"""
	Verifies that the installation can be attempted: the descriptor is
	valid, every target media exists and the backend is happy with the
	environment. Raises PreCheckError carrying the cause.
	"""
	try:
		with session.loop('Validating installation descriptor'):
			model.validate()

		with session.loop('Checking target media'):
			for media in model.target_medias:
				device_file = media.get_device_file()

				if not is_valid_device_file(device_file):
					raise PreCheckError(f'Target media {device_file} is not a block device')

		for description, check in backend.environment_checks():
			with session.loop(description):
				check()
	except PreCheckError:
		raise
	except InstallKitError as err:
		raise PreCheckError(f'Pre-check failed: {err}') from err

	info('Pre-check succeeded')
	time.sleep(session.loop_wait_duration() * PRE_CHECK_PAUSE_FACTOR)


def install(
	root_dir: Path,
	model: SystemInstall,
	options: InstallOptions,
	session: ProgressSession,
	backend: InstallBackend,
) -> None:
	mounted = False

	try:
		with session.loop('Validating installation descriptor'):
			model.validate()

		for media in model.target_medias:
			with session.loop(f'Writing partition table to {media.get_device_file()}'):
				backend.partition(media)

		partitions = _partitions(model)
		formattable = [part for part in partitions if part.fs_type is not None]

		with session.multi_step(len(formattable), 'Creating file systems') as progress:
			for part in formattable:
				backend.format(part)
				progress.advance()

		with session.loop('Mounting file systems'):
			mounted = True
			for part in _mount_order(partitions):
				backend.mount(root_dir, part)

		bundles = list(model.bundles) + [b for b in model.user_bundles if b not in model.bundles]

		with session.multi_step(len(bundles), 'Installing bundles') as progress:
			for bundle in bundles:
				debug(f'Installing bundle: {bundle}')
				backend.install_bundle(root_dir, bundle)
				progress.advance()
				time.sleep(session.loop_wait_duration())

		with session.loop('Configuring locale'):
			backend.configure_locale(root_dir, model.keyboard or '', model.language or '', model.timezone)

		if model.hostname:
			with session.loop('Setting hostname'):
				backend.configure_hostname(root_dir, model.hostname)

		if ifaces := model.network_interfaces:
			with session.multi_step(len(ifaces), 'Configuring network interfaces') as progress:
				for iface in ifaces:
					backend.configure_network(root_dir, iface)
					progress.advance()

		if users := model.users:
			with session.multi_step(len(users), 'Creating users') as progress:
				for user in users:
					backend.create_user(root_dir, user)
					progress.advance()

		if (kernel_arguments := model.kernel_arguments) is not None:
			with session.loop('Configuring kernel arguments'):
				backend.configure_kernel_arguments(root_dir, kernel_arguments)

		if (telemetry := model.telemetry) is not None:
			with session.loop('Configuring telemetry'):
				backend.configure_telemetry(root_dir, telemetry)

		if model.post_install and not options.skip_hooks:
			with session.multi_step(len(model.post_install), 'Running post-install hooks') as progress:
				for command in model.post_install:
					backend.run_hook(root_dir, command)
					progress.advance()

		with session.loop('Unmounting file systems'):
			mounted = False
			backend.unmount(root_dir)
	except InstallError:
		raise
	except (InstallKitError, OSError) as err:
		raise InstallError(f'Installation failed: {err}') from err
	finally:
		if mounted:
			try:
				backend.unmount(root_dir)
			except BackendError as err:
				error(f'Could not unmount {root_dir}: {err.message}')

	info('Installation completed')
