from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from .validation import Violation


class InstallKitError(Exception):
	pass


class ConfigurationError(InstallKitError):
	"""
	Common base for everything that is wrong with an installation descriptor,
	be it unreadable, malformed or failing validation.
	"""


class DescriptorError(ConfigurationError):
	def __init__(self, message: str, path: str | None = None) -> None:
		if path:
			message = f'{path}: {message}'

		super().__init__(message)
		self.message = message
		self.path = path


class ValidationError(ConfigurationError):
	def __init__(self, violations: list[Violation]) -> None:
		self.violations = violations
		super().__init__('\n'.join(str(v) for v in violations))


class PreCheckError(InstallKitError):
	pass


class InstallError(InstallKitError):
	pass


class BackendError(InstallKitError):
	def __init__(self, message: str, exit_code: int | None = None) -> None:
		super().__init__(message)
		self.message = message
		self.exit_code = exit_code


class ProgressSessionError(InstallKitError):
	pass


class WorkerStateError(InstallKitError):
	pass


class StepTransitionError(InstallKitError):
	pass
