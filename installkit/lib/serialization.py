import json
from enum import Enum
from pathlib import Path
from typing import Any, override

# descriptor keys starting with this prefix hold secrets, e.g. '!password'
PRIVATE_PREFIX = '!'


def is_private(key: Any) -> bool:
	return isinstance(key, str) and key.startswith(PRIVATE_PREFIX)


def descriptor_data(obj: Any, private: bool = False) -> Any:
	"""
	Turns models into plain JSON data through their json() method.
	Private keys are dropped unless private is set.
	"""
	match obj:
		case dict():
			return {str(key): descriptor_data(value, private) for key, value in obj.items() if private or not is_private(key)}
		case list() | tuple() | set():
			return [descriptor_data(item, private) for item in obj]
		case Enum():
			return obj.value
		case Path():
			return str(obj)
		case _ if hasattr(obj, 'json'):
			return descriptor_data(obj.json(), private)

	return obj


class DescriptorEncoder(json.JSONEncoder):
	"""
	Encoder for anything that ends up in the log, private keys are omitted
	"""

	private = False

	@override
	def encode(self, o: Any) -> str:
		return super().encode(descriptor_data(o, self.private))


class PrivateDescriptorEncoder(DescriptorEncoder):
	"""
	Keeps private keys, only used for descriptors written on request
	"""

	private = True
