import argparse
from argparse import ArgumentParser
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from pydantic.dataclasses import dataclass as p_dataclass

from .configuration import load_file
from .models.system_install import SystemInstall
from .output import logger, warn


@p_dataclass
class Arguments:
	config: Path | None = None
	dry_run: bool = False
	silent: bool = False
	mountpoint: Path = Path('/mnt')
	debug: bool = False
	verbose: bool = False
	tui: bool = False
	save_config: Path | None = None
	skip_hooks: bool = False
	log_dir: Path | None = None


class InstallConfigHandler:
	def __init__(self, argv: list[str] | None = None) -> None:
		self._parser: ArgumentParser = self._define_arguments()
		self._args: Arguments = self._parse_args(argv)

	@property
	def args(self) -> Arguments:
		return self._args

	def print_help(self) -> None:
		self._parser.print_help()

	def load_model(self) -> SystemInstall:
		if self._args.config is None:
			return SystemInstall()

		return load_file(self._args.config)

	@staticmethod
	def get_version() -> str:
		try:
			return version('installkit')
		except PackageNotFoundError:
			return 'installkit version not found'

	def _define_arguments(self) -> ArgumentParser:
		parser = ArgumentParser(prog='installkit', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
		parser.add_argument(
			'-v',
			'--version',
			action='version',
			version='%(prog)s ' + self.get_version(),
		)
		parser.add_argument(
			'--config',
			type=Path,
			nargs='?',
			default=None,
			help='JSON installation descriptor',
		)
		parser.add_argument(
			'--dry-run',
			'--dry_run',
			action='store_true',
			default=False,
			help='Validates the descriptor and walks through the installation without touching any disk',
		)
		parser.add_argument(
			'--silent',
			action='store_true',
			default=False,
			help='Do not ask for confirmation before installing. If no descriptor is provided, this is ignored',
		)
		parser.add_argument(
			'--mountpoint',
			type=Path,
			nargs='?',
			default=Path('/mnt'),
			help='Root directory the target is mounted on during the installation',
		)
		parser.add_argument(
			'--debug',
			action='store_true',
			default=False,
			help='Adds debug info into the log',
		)
		parser.add_argument(
			'--verbose',
			action='store_true',
			default=False,
			help='Print debug messages to the console as well',
		)
		parser.add_argument(
			'--tui',
			action='store_true',
			default=False,
			help='Show the installation progress in a terminal user interface',
		)
		parser.add_argument(
			'--save-config',
			type=Path,
			nargs='?',
			default=None,
			help='Write the resulting descriptor to this file or directory',
		)
		parser.add_argument(
			'--skip-hooks',
			action='store_true',
			default=False,
			help='Do not run the post-install hooks of the descriptor',
		)
		parser.add_argument(
			'--log-dir',
			type=Path,
			nargs='?',
			default=None,
			help='Directory for install.log',
		)

		return parser

	def _parse_args(self, argv: list[str] | None) -> Arguments:
		argparse_args = vars(self._parser.parse_args(argv))
		args: Arguments = Arguments(**argparse_args)

		# Installation can't be silent if no descriptor is passed
		if args.config is None:
			args.silent = False

		if args.log_dir is not None:
			logger.directory = args.log_dir

		logger.verbose = args.verbose

		if args.debug:
			warn(f'Warning: --debug mode will write the full descriptor to {logger.path}!')

		return args
