import logging
import os
import sys
import unicodedata
from dataclasses import asdict, is_dataclass
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any


@lru_cache(maxsize=128)
def _is_wide_character(char: str) -> bool:
	return unicodedata.east_asian_width(char) in 'FW'


def _display_width(string: str) -> int:
	return len(string) + sum(_is_wide_character(c) for c in string)


def _ljust(string: str, width: int) -> str:
	return string + ' ' * max(width - _display_width(string), 0)


def _rjust(string: str, width: int) -> str:
	return ' ' * max(width - _display_width(string), 0) + string


class FormattedOutput:
	@classmethod
	def _get_values(cls, o: Any) -> dict[str, Any]:
		if hasattr(o, 'table_data'):
			return o.table_data()
		elif hasattr(o, 'json'):
			return o.json()
		elif is_dataclass(o) and not isinstance(o, type):
			return asdict(o)
		else:
			return o.__dict__

	@classmethod
	def as_table(cls, obj: list[Any], filter_list: list[str] = []) -> str:
		"""
		Renders a list of objects as a text table, one record per line.
		Objects provide their columns through table_data(), json() or
		are dataclasses; filter_list restricts and orders the columns.
		"""
		raw_data = [cls._get_values(o) for o in obj]

		column_width: dict[str, int] = {}
		for record in raw_data:
			for k, v in record.items():
				if not filter_list or k in filter_list:
					column_width.setdefault(k, 0)
					column_width[k] = max([column_width[k], _display_width(str(v)), len(k)])

		if not filter_list:
			filter_list = list(column_width.keys())

		output = ' | '.join(_ljust(key.replace('_', ' '), column_width.get(key, len(key))) for key in filter_list) + '\n'
		output += '-' * len(output) + '\n'

		for record in raw_data:
			row = []
			for key in filter_list:
				width = column_width.get(key, len(key))
				value = record.get(key, '')

				if isinstance(value, int | float) and not isinstance(value, bool):
					row.append(_rjust(str(value), width))
				else:
					row.append(_ljust(str(value), width))

			output += ' | '.join(row) + '\n'

		return output


class Journald:
	@staticmethod
	def log(message: str, level: int = logging.DEBUG) -> None:
		try:
			import systemd.journal  # type: ignore[import-not-found]
		except ModuleNotFoundError:
			return None

		log_adapter = logging.getLogger('installkit')

		if not any(isinstance(h, systemd.journal.JournalHandler) for h in log_adapter.handlers):
			log_fmt = logging.Formatter('[%(levelname)s]: %(message)s')
			log_ch = systemd.journal.JournalHandler()
			log_ch.setFormatter(log_fmt)
			log_adapter.addHandler(log_ch)
			log_adapter.setLevel(logging.DEBUG)

		log_adapter.log(level, message)


class Logger:
	def __init__(self, path: Path = Path('/var/log/installkit')) -> None:
		self._path = path
		self.verbose = False
		self.console = True

	@property
	def path(self) -> Path:
		return self._path / 'install.log'

	@property
	def directory(self) -> Path:
		return self._path

	@directory.setter
	def directory(self, path: Path) -> None:
		self._path = path

	def _check_permissions(self) -> None:
		log_file = self.path

		try:
			self._path.mkdir(exist_ok=True, parents=True)
			log_file.touch(exist_ok=True)

			with log_file.open('a') as f:
				f.write('')
		except PermissionError:
			# Fallback to creating the log file in the current folder
			self._path = Path('./').absolute()

			warn(f'Not enough permission to place log file at {log_file}, creating it in {self.path} instead')

	def log(self, level: int, content: str) -> None:
		self._check_permissions()

		with self.path.open('a') as f:
			ts = _timestamp()
			level_name = logging.getLevelName(level)
			f.write(f'[{ts}] - {level_name} - {content}\n')


logger = Logger()


def _supports_color() -> bool:
	"""
	Return True if the running system's terminal supports color,
	and False otherwise.
	"""
	supported_platform = sys.platform != 'win32' or 'ANSICON' in os.environ

	is_a_tty = hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()
	return supported_platform and is_a_tty


_COLORS = {
	'black': '0',
	'red': '1',
	'green': '2',
	'yellow': '3',
	'blue': '4',
	'magenta': '5',
	'cyan': '6',
	'white': '7',
	'gray': '8;5;246',
}


def _stylize_output(text: str, fg: str, bg: str | None) -> str:
	code_list = [f'3{_COLORS[fg]}']

	if bg:
		code_list.append(f'4{_COLORS[bg]}')

	ansi = ';'.join(code_list)

	return f'\033[{ansi}m{text}\033[0m'


def _timestamp() -> str:
	now = datetime.now(tz=UTC)
	return now.strftime('%Y-%m-%d %H:%M:%S')


def info(*msgs: str, level: int = logging.INFO, fg: str = 'white', bg: str | None = None) -> None:
	log(*msgs, level=level, fg=fg, bg=bg)


def debug(*msgs: str, level: int = logging.DEBUG, fg: str = 'white', bg: str | None = None) -> None:
	log(*msgs, level=level, fg=fg, bg=bg)


def error(*msgs: str, level: int = logging.ERROR, fg: str = 'red', bg: str | None = None) -> None:
	log(*msgs, level=level, fg=fg, bg=bg)


def warn(*msgs: str, level: int = logging.WARNING, fg: str = 'yellow', bg: str | None = None) -> None:
	log(*msgs, level=level, fg=fg, bg=bg)


def log(*msgs: str, level: int = logging.INFO, fg: str = 'white', bg: str | None = None) -> None:
	text = ' '.join([str(x) for x in msgs])

	logger.log(level, text)

	if _supports_color():
		text = _stylize_output(text, fg, bg)

	Journald.log(text, level=level)

	if logger.console and (level != logging.DEBUG or logger.verbose):
		print(text)
