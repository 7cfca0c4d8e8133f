from dataclasses import dataclass, field
from typing import Any, TypedDict


class _KernelArgumentsSerialization(TypedDict):
	add: list[str]
	remove: list[str]


@dataclass
class KernelArguments:
	"""
	Kernel command line changes relative to the distribution defaults.
	Both lists keep their insertion order and never hold duplicates.
	"""

	add: list[str] = field(default_factory=list)
	remove: list[str] = field(default_factory=list)

	def add_arguments(self, args: list[str]) -> None:
		for arg in args:
			if arg not in self.add:
				self.add.append(arg)

	def remove_arguments(self, args: list[str]) -> None:
		for arg in args:
			if arg not in self.remove:
				self.remove.append(arg)

	def conflicts(self) -> list[str]:
		return [arg for arg in self.add if arg in self.remove]

	def apply(self, cmdline: list[str]) -> list[str]:
		result = [arg for arg in cmdline if arg not in self.remove]
		result.extend(arg for arg in self.add if arg not in result)
		return result

	def json(self) -> _KernelArgumentsSerialization:
		return {
			'add': list(self.add),
			'remove': list(self.remove),
		}

	@classmethod
	def parse_arg(cls, arg: dict[str, Any]) -> 'KernelArguments':
		if not isinstance(arg, dict):
			raise ValueError(f'Invalid kernel arguments entry: {arg}')

		kernel_args = KernelArguments()
		kernel_args.add_arguments(list(arg.get('add', [])))
		kernel_args.remove_arguments(list(arg.get('remove', [])))
		return kernel_args
