from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, override

from .exceptions import ValidationError
from .models.users import User

if TYPE_CHECKING:
	from .models.system_install import SystemInstall

_HOSTNAME_LABEL_REGEX = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$')
MAX_HOSTNAME_LENGTH = 253


class ViolationKind(Enum):
	MissingKeyboard = 'missing_keyboard'
	MissingLanguage = 'missing_language'
	MissingTelemetry = 'missing_telemetry'
	NoTargetMedia = 'no_target_media'
	NoBootablePartition = 'no_bootable_partition'
	NoRootPartition = 'no_root_partition'
	MultipleRootPartitions = 'multiple_root_partitions'
	DuplicateMountPoint = 'duplicate_mount_point'
	InvalidHostname = 'invalid_hostname'
	InvalidLogin = 'invalid_login'
	KernelArgumentConflict = 'kernel_argument_conflict'


@dataclass(frozen=True)
class Violation:
	kind: ViolationKind
	message: str

	@override
	def __str__(self) -> str:
		return self.message


def is_valid_hostname(hostname: str) -> bool:
	if not isinstance(hostname, str) or not hostname or len(hostname) > MAX_HOSTNAME_LENGTH:
		return False

	return all(_HOSTNAME_LABEL_REGEX.match(label) for label in hostname.split('.'))


def _is_set(value: str | None) -> bool:
	return isinstance(value, str) and value.strip() != ''


def _check_locale(model: SystemInstall) -> list[Violation]:
	violations = []

	if not _is_set(model.keyboard):
		violations.append(Violation(ViolationKind.MissingKeyboard, 'Keyboard not set'))

	if not _is_set(model.language):
		violations.append(Violation(ViolationKind.MissingLanguage, 'System Language not set'))

	return violations


def _check_telemetry(model: SystemInstall) -> list[Violation]:
	if not model.has_telemetry_decision():
		return [Violation(ViolationKind.MissingTelemetry, 'Telemetry not acknowledged, it must be explicitly enabled or disabled')]
	return []


def _check_target_medias(model: SystemInstall) -> list[Violation]:
	medias = model.target_medias

	if not medias:
		return [Violation(ViolationKind.NoTargetMedia, 'System Installation must provide a target media')]

	violations = []

	if not any(media.has_bootable_partition() for media in medias):
		violations.append(Violation(ViolationKind.NoBootablePartition, 'No bootable partition defined in the target media'))

	roots = [part for media in medias for part in media.root_partitions()]

	if not roots:
		violations.append(Violation(ViolationKind.NoRootPartition, 'No root partition defined in the target media'))
	elif len(roots) > 1:
		names = ', '.join(part.name for part in roots)
		violations.append(Violation(ViolationKind.MultipleRootPartitions, f'Multiple root partitions defined: {names}'))

	mount_points = Counter(part.mount_point for media in medias for part in media.partitions() if part.mount_point)

	for mount_point, count in mount_points.items():
		if count > 1 and mount_point != '/':
			violations.append(Violation(ViolationKind.DuplicateMountPoint, f'Mount point {mount_point} used by {count} partitions'))

	return violations


def _check_identity(model: SystemInstall) -> list[Violation]:
	violations = []

	if model.hostname is not None and not is_valid_hostname(model.hostname):
		violations.append(Violation(ViolationKind.InvalidHostname, f'Invalid hostname: {model.hostname}'))

	for user in model.users:
		if not User.is_valid_login(user.login):
			violations.append(Violation(ViolationKind.InvalidLogin, f'Invalid user login: {user.login}'))

	return violations


def _check_kernel_arguments(model: SystemInstall) -> list[Violation]:
	kernel_args = model.kernel_arguments

	if kernel_args is None:
		return []

	return [
		Violation(ViolationKind.KernelArgumentConflict, f'Kernel argument {arg} is both added and removed')
		for arg in kernel_args.conflicts()
	]


_CHECKS = [
	_check_locale,
	_check_telemetry,
	_check_target_medias,
	_check_identity,
	_check_kernel_arguments,
]


def collect_violations(model: SystemInstall) -> list[Violation]:
	"""
	Runs every check against the model and returns all the violations
	found, in check order. The model is never modified.
	"""
	violations: list[Violation] = []

	for check in _CHECKS:
		violations.extend(check(model))

	return violations


def validate(model: SystemInstall) -> None:
	if violations := collect_violations(model):
		raise ValidationError(violations)
