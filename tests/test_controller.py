from collections.abc import Callable
from pathlib import Path

import pytest

from installkit.lib.backend import DryRunBackend
from installkit.lib.configuration import load_file
from installkit.lib.controller import InstallOptions, install, pre_check
from installkit.lib.exceptions import BackendError, InstallError, PreCheckError
from installkit.lib.models.device import BlockDevice
from installkit.lib.models.users import User
from installkit.lib.progress import LogClient, ProgressSession, StepStatus
from installkit.lib.worker import InstallWorker


class FailingBackend(DryRunBackend):
	def __init__(self, fail_on: str) -> None:
		super().__init__()
		self._fail_on = fail_on

	def install_bundle(self, root_dir: Path, bundle: str) -> None:
		if bundle == self._fail_on:
			raise BackendError(f'Could not install bundle {bundle}\nswupd exited with 1', exit_code=1)
		super().install_bundle(root_dir, bundle)

	def environment_checks(self) -> list[tuple[str, Callable[[], None]]]:
		def _check() -> None:
			if self._fail_on == 'environment':
				raise BackendError('Not enough memory')

		return [('Checking memory', _check)]


def _run(job: Callable[[ProgressSession], None], client: LogClient) -> InstallWorker:
	worker = InstallWorker(job, ProgressSession(client))
	worker.start()
	worker.wait(10)
	return worker


def test_pre_check_success(valid_descriptor: Path) -> None:
	model = load_file(valid_descriptor)
	client = LogClient()

	worker = _run(lambda session: pre_check(model, session, DryRunBackend()), client)

	assert worker.wait() is True
	assert [step.description for step in client.tracker.steps] == [
		'Validating installation descriptor',
		'Checking target media',
	]
	assert all(step.status == StepStatus.Succeeded for step in client.tracker.steps)


def test_pre_check_reports_first_violation(invalid_descriptor: Path) -> None:
	model = load_file(invalid_descriptor)
	client = LogClient()

	worker = _run(lambda session: pre_check(model, session, DryRunBackend()), client)

	assert worker.wait() is False
	assert isinstance(worker.error, PreCheckError)
	assert worker.summary() == 'Pre-check failed: Keyboard not set'
	assert client.tracker.status_of('Validating installation descriptor') == StepStatus.Failed


def test_pre_check_missing_media(minimal_descriptor: Path) -> None:
	model = load_file(minimal_descriptor)
	model.clear_target_medias()
	model.add_target_media(
		BlockDevice(
			name='installkit-missing',
			children=[
				BlockDevice(name='installkit-missing1', mount_point='/boot'),
				BlockDevice(name='installkit-missing2', mount_point='/'),
			],
		)
	)

	with ProgressSession(LogClient()) as session:
		with pytest.raises(PreCheckError, match='/dev/installkit-missing'):
			pre_check(model, session, DryRunBackend())


def test_pre_check_environment(minimal_descriptor: Path) -> None:
	model = load_file(minimal_descriptor)
	client = LogClient()

	with ProgressSession(client) as session:
		with pytest.raises(PreCheckError, match='Not enough memory'):
			pre_check(model, session, FailingBackend('environment'))

	assert client.tracker.status_of('Checking memory') == StepStatus.Failed


def test_install_dry_run(valid_descriptor: Path) -> None:
	model = load_file(valid_descriptor)
	backend = DryRunBackend()
	client = LogClient()
	root = Path('/mnt')

	worker = _run(lambda session: install(root, model, InstallOptions(), session, backend), client)

	assert worker.wait() is True
	assert [op for op, _ in backend.calls] == [
		'partition',
		'format',
		'format',
		'format',
		'mount',
		'mount',
		'bundle',
		'bundle',
		'bundle',
		'bundle',
		'locale',
		'hostname',
		'user',
		'kernel_arguments',
		'telemetry',
		'hook',
		'unmount',
	]

	mounts = [target for op, target in backend.calls if op == 'mount']
	assert mounts == ['/dev/sda3 -> /mnt', '/dev/sda1 -> /mnt/boot']
	assert ('bundle', 'editors') in backend.calls
	assert ('kernel_arguments', 'quiet') in backend.calls
	assert all(step.status == StepStatus.Succeeded for step in client.tracker.steps)


def test_install_skip_hooks(valid_descriptor: Path) -> None:
	model = load_file(valid_descriptor)
	backend = DryRunBackend()

	with ProgressSession(LogClient()) as session:
		install(Path('/mnt'), model, InstallOptions(skip_hooks=True), session, backend)

	assert 'hook' not in [op for op, _ in backend.calls]


def test_install_failure_unmounts(valid_descriptor: Path) -> None:
	model = load_file(valid_descriptor)
	backend = FailingBackend('os-core-update')
	client = LogClient()

	worker = _run(lambda session: install(Path('/mnt'), model, InstallOptions(), session, backend), client)

	assert worker.wait() is False
	assert isinstance(worker.error, InstallError)
	assert worker.summary() == 'Installation failed: Could not install bundle os-core-update'
	assert client.tracker.status_of('Installing bundles') == StepStatus.Failed
	assert backend.calls[-1] == ('unmount', '/mnt')
	assert ('user', 'john') not in backend.calls


def test_install_rejects_invalid_model(minimal_descriptor: Path) -> None:
	model = load_file(minimal_descriptor)
	model.add_user(User('root'))
	backend = DryRunBackend()

	with ProgressSession(LogClient()) as session:
		with pytest.raises(InstallError, match='Invalid user login: root'):
			install(Path('/mnt'), model, InstallOptions(), session, backend)

	assert backend.calls == []


def test_swap_is_not_mounted(valid_descriptor: Path) -> None:
	model = load_file(valid_descriptor)
	backend = DryRunBackend()

	with ProgressSession(LogClient()) as session:
		install(Path('/target'), model, InstallOptions(), session, backend)

	mounted = [target for op, target in backend.calls if op == 'mount']
	assert not any(target.startswith('/dev/sda2') for target in mounted)
	assert ('format', '/dev/sda2 (swap)') in backend.calls


def test_dry_run_backend_require_root() -> None:
	backend = DryRunBackend(require_root=True)

	assert [description for description, _ in backend.environment_checks()] == ['Checking for root privileges']
	assert DryRunBackend().environment_checks() == []


def test_partition_uses_device_file() -> None:
	backend = DryRunBackend()
	backend.partition(BlockDevice(name='sdb', device_file='/dev/disk/by-id/test'))

	assert backend.calls == [('partition', '/dev/disk/by-id/test')]
