import json
import stat
from pathlib import Path

from .exceptions import DescriptorError
from .serialization import DescriptorEncoder, PrivateDescriptorEncoder
from .models.system_install import SystemInstall
from .output import debug, info

DEFAULT_DESCRIPTOR_NAME = Path('installkit.json')


def load_file(path: Path) -> SystemInstall:
	"""
	Reads an installation descriptor into a new SystemInstall. Any problem
	with the file, its JSON or its structure raises a DescriptorError, no
	partially loaded model is ever returned.
	"""
	try:
		data = path.read_text()
	except OSError as err:
		raise DescriptorError(f'Could not read descriptor: {err.strerror or err}', str(path)) from err
	except UnicodeDecodeError as err:
		raise DescriptorError(f'Descriptor is not valid UTF-8: {err.reason}', str(path)) from err

	try:
		config = json.loads(data)
	except json.JSONDecodeError as err:
		raise DescriptorError(f'Malformed descriptor: {err}', str(path)) from err

	try:
		model = SystemInstall.parse_arg(config)
	except (ValueError, TypeError, KeyError) as err:
		# pydantic's ValidationError is a ValueError as well
		raise DescriptorError(f'Invalid descriptor: {err}', str(path)) from err

	debug(f'Loaded installation descriptor {path}')
	return model


class ConfigurationOutput:
	def __init__(self, model: SystemInstall):
		"""
		Serializes an installation plan back into a descriptor, either
		for the log or onto disk.
		"""
		self._model = model

	def descriptor_to_json(self, safe: bool = False) -> str:
		out = self._model.json()
		encoder = DescriptorEncoder if safe else PrivateDescriptorEncoder
		return json.dumps(out, indent=4, sort_keys=True, cls=encoder)

	def write_debug(self) -> None:
		debug(' -- Installation descriptor --')
		debug(self.descriptor_to_json(safe=True))

	def write_file(self, path: Path) -> Path:
		if path.is_dir():
			path = path / DEFAULT_DESCRIPTOR_NAME

		try:
			path.write_text(self.descriptor_to_json())
			path.chmod(stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP)
		except OSError as err:
			raise DescriptorError(f'Could not write descriptor: {err.strerror or err}', str(path)) from err

		info(f'Installation descriptor saved to {path}')
		return path


def write_file(model: SystemInstall, path: Path) -> Path:
	return ConfigurationOutput(model).write_file(path)
