from collections.abc import Iterator
from pathlib import Path

import pytest

from installkit.lib.models.device import device_aliases
from installkit.lib.output import logger

DATA_DIR = Path(__file__).parent / 'data'


@pytest.fixture(autouse=True)
def fake_block_devices() -> Iterator[None]:
	# descriptors in tests/data target /dev/sda which won't exist on the test machine
	device_aliases.register('/dev/sda')
	yield
	device_aliases.clear()


@pytest.fixture(autouse=True)
def log_to_tmp(tmp_path: Path) -> Iterator[None]:
	directory = logger.directory
	logger.directory = tmp_path
	yield
	logger.directory = directory


@pytest.fixture(scope='session')
def valid_descriptor() -> Path:
	return DATA_DIR / 'basic-valid-descriptor.json'


@pytest.fixture(scope='session')
def minimal_descriptor() -> Path:
	return DATA_DIR / 'valid-minimal.json'


@pytest.fixture(scope='session')
def versioned_descriptor() -> Path:
	return DATA_DIR / 'valid-with-version.json'


@pytest.fixture(scope='session')
def network_descriptor() -> Path:
	return DATA_DIR / 'valid-network.json'


@pytest.fixture(scope='session')
def alias_descriptor() -> Path:
	return DATA_DIR / 'block-devices-alias.json'


@pytest.fixture(scope='session')
def invalid_descriptor() -> Path:
	return DATA_DIR / 'basic-invalid-descriptor.json'


@pytest.fixture(scope='session')
def malformed_descriptor() -> Path:
	return DATA_DIR / 'malformed-descriptor.json'


@pytest.fixture(scope='session')
def invalid_structure_descriptor() -> Path:
	return DATA_DIR / 'invalid-structure.json'


@pytest.fixture(scope='session')
def no_keyboard_descriptor() -> Path:
	return DATA_DIR / 'invalid-no-keyboard.json'


@pytest.fixture(scope='session')
def no_language_descriptor() -> Path:
	return DATA_DIR / 'invalid-no-language.json'


@pytest.fixture(scope='session')
def no_telemetry_descriptor() -> Path:
	return DATA_DIR / 'no-telemetry.json'


@pytest.fixture(scope='session')
def no_bootable_descriptor() -> Path:
	return DATA_DIR / 'no-bootable-descriptor.json'


@pytest.fixture(scope='session')
def no_root_descriptor() -> Path:
	return DATA_DIR / 'no-root-partition-descriptor.json'
