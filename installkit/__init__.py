"""Descriptor driven OS installer - configuration model, validation and progress reporting."""

import traceback

from .lib.args import InstallConfigHandler
from .lib.backend import DryRunBackend, InstallBackend
from .lib.configuration import ConfigurationOutput, load_file, write_file
from .lib.controller import InstallOptions, install, pre_check
from .lib.exceptions import ConfigurationError
from .lib.models.system_install import SystemInstall
from .lib.output import FormattedOutput, debug, error, info, log, logger, warn
from .lib.progress import LogClient, ProgressSession
from .lib.worker import InstallWorker


def _confirm(prompt: str) -> bool:
	try:
		answer = input(f'{prompt} [y/N] ')
	except EOFError:
		return False

	return answer.strip().lower() in ('y', 'yes')


def main(argv: list[str] | None = None, backend: InstallBackend | None = None) -> int:
	"""
	Loads and validates the descriptor given with --config, then runs the
	pre-check and the installation in a worker, reporting the progress
	either to the log or to the textual progress app.
	"""
	handler = InstallConfigHandler(argv)
	args = handler.args

	if args.config is None:
		error('No installation descriptor given, see --help')
		return 1

	try:
		model = handler.load_model()
		model.validate()
	except ConfigurationError as err:
		error(str(err))
		return 1

	if args.debug:
		ConfigurationOutput(model).write_debug()

	if args.save_config is not None:
		try:
			write_file(model, args.save_config)
		except ConfigurationError as err:
			error(str(err))
			return 1

	info(FormattedOutput.as_table(list(model.target_medias)))

	if backend is None:
		if not args.dry_run:
			error('No installation backend is available, use --dry-run to walk through the installation')
			return 1

		backend = DryRunBackend()

	install_backend: InstallBackend = backend

	if not args.silent and not _confirm('The target media listed above will be erased, continue?'):
		info('Installation aborted')
		return 0

	options = InstallOptions(skip_hooks=args.skip_hooks)

	def _job(session: ProgressSession) -> None:
		pre_check(model, session, install_backend)
		install(args.mountpoint, model, options, session, install_backend)

	if args.tui:
		from .tui.progress_app import run_progress_app

		logger.console = False
		try:
			succeeded, summary = run_progress_app(_job, 'Installing')
		finally:
			logger.console = True
	else:
		worker = InstallWorker(_job, ProgressSession(LogClient()))
		worker.start()
		succeeded = worker.wait()
		summary = worker.summary()

	if not succeeded:
		error(summary or 'Installation failed')
		return 1

	return 0


def run_as_a_module() -> None:
	rc = 0
	exc = None

	try:
		rc = main()
	except Exception as e:
		exc = e
	finally:
		if exc:
			err = ''.join(traceback.format_exception(exc))
			error(err)

			warn(f'installkit experienced the above error, the full log is available in "{logger.path}"')
			rc = 1

		exit(rc)


__all__ = [
	'DryRunBackend',
	'FormattedOutput',
	'InstallBackend',
	'InstallConfigHandler',
	'InstallOptions',
	'InstallWorker',
	'LogClient',
	'ProgressSession',
	'SystemInstall',
	'debug',
	'error',
	'info',
	'install',
	'load_file',
	'log',
	'pre_check',
	'warn',
	'write_file',
]
