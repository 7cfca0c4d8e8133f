import json
import os
from pathlib import Path

import pytest

from installkit.lib.configuration import DEFAULT_DESCRIPTOR_NAME, ConfigurationOutput, load_file, write_file
from installkit.lib.exceptions import ConfigurationError, DescriptorError
from installkit.lib.models.device import FilesystemType
from installkit.lib.models.system_install import SystemInstall
from installkit.lib.serialization import descriptor_data


def test_load_valid_descriptor(valid_descriptor: Path) -> None:
	si = load_file(valid_descriptor)

	assert si.keyboard == 'us'
	assert si.language == 'en_US.UTF-8'
	assert si.timezone == 'Europe/Helsinki'
	assert si.hostname == 'installkit-test'
	assert si.bundles == ('os-core', 'os-core-update', 'kernel-native')
	assert si.user_bundles == ('editors',)
	assert si.has_telemetry_decision()
	assert not si.is_telemetry_enabled()
	assert si.post_install == ['/usr/bin/true']

	disk = si.target_medias[0]
	assert disk.size == 30 * 1024**3
	assert [child.fs_type for child in disk.children] == [FilesystemType.Vfat, FilesystemType.Swap, FilesystemType.Ext4]

	user = si.users[0]
	assert user.login == 'john'
	assert user.password == 'secret'
	assert user.admin is True

	kernel_args = si.kernel_arguments
	assert kernel_args is not None
	assert kernel_args.add == ['quiet']
	assert kernel_args.remove == ['console=tty0']

	si.validate()


def test_load_versioned_descriptor(versioned_descriptor: Path) -> None:
	si = load_file(versioned_descriptor)

	assert si.version == '31020'
	assert si.is_telemetry_enabled()

	telemetry = si.telemetry
	assert telemetry is not None
	assert telemetry.is_local_only()
	assert telemetry.tid == 'installkit-tests'


def test_load_network_descriptor(network_descriptor: Path) -> None:
	si = load_file(network_descriptor)

	assert si.http_proxy == 'http://proxy.example.com:8080'
	assert [iface.name for iface in si.network_interfaces] == ['enp0s1', 'enp0s2']

	static, dhcp = si.network_interfaces
	assert static.dhcp is False
	assert static.gateway == '10.0.2.2'
	assert static.addrs[0].ip == '10.0.2.15'
	assert dhcp.dhcp is True


def test_device_alias_resolution(minimal_descriptor: Path) -> None:
	si = load_file(minimal_descriptor)
	disk = si.target_medias[0]

	assert disk.get_device_file() == '/dev/sda'
	assert [child.get_device_file() for child in disk.children] == ['/dev/sda1', '/dev/sda2']


def test_block_devices_alias_section(alias_descriptor: Path) -> None:
	si = load_file(alias_descriptor)
	disk = si.target_medias[0]

	assert si.block_devices == {'sda': '/dev/sda'}
	assert disk.name == 'sda'
	assert [child.name for child in disk.children] == ['sda1', 'sda2']
	assert disk.get_device_file() == '/dev/sda'
	assert [child.get_device_file() for child in disk.children] == ['/dev/sda1', '/dev/sda2']


def test_alias_to_missing_device(tmp_path: Path) -> None:
	descriptor = tmp_path / 'descriptor.json'
	descriptor.write_text(json.dumps({'block_devices': [{'name': 'disk', 'file': '/dev/installkit-does-not-exist'}]}))

	with pytest.raises(DescriptorError):
		load_file(descriptor)


def test_roundtrip(valid_descriptor: Path, tmp_path: Path) -> None:
	si = load_file(valid_descriptor)

	out = write_file(si, tmp_path / 'out.json')
	reloaded = load_file(out)

	reloaded.validate()
	assert reloaded.target_medias == si.target_medias
	assert reloaded.bundles == si.bundles
	assert reloaded.user_bundles == si.user_bundles
	assert [u.json() for u in reloaded.users] == [u.json() for u in si.users]
	assert reloaded.json() == si.json()


def test_write_to_directory(minimal_descriptor: Path, tmp_path: Path) -> None:
	si = load_file(minimal_descriptor)

	out = ConfigurationOutput(si).write_file(tmp_path)

	assert out == tmp_path / DEFAULT_DESCRIPTOR_NAME
	assert json.loads(out.read_text())['keyboard'] == 'us'
	assert out.stat().st_mode & 0o777 == 0o640


def test_write_to_invalid_path(minimal_descriptor: Path) -> None:
	si = load_file(minimal_descriptor)
	before = si.json()

	with pytest.raises(DescriptorError):
		write_file(si, Path('/invalid-dir/invalid.json'))

	assert si.json() == before
	si.validate()


def test_safe_json_hides_passwords(valid_descriptor: Path) -> None:
	output = ConfigurationOutput(load_file(valid_descriptor))

	safe = json.loads(output.descriptor_to_json(safe=True))
	unsafe = json.loads(output.descriptor_to_json())

	assert '!password' not in safe['users'][0]
	assert unsafe['users'][0]['!password'] == 'secret'


def test_malformed_descriptor(malformed_descriptor: Path) -> None:
	with pytest.raises(DescriptorError) as exc_info:
		load_file(malformed_descriptor)

	assert str(malformed_descriptor) in str(exc_info.value)


def test_invalid_structure(invalid_structure_descriptor: Path) -> None:
	with pytest.raises(ConfigurationError):
		load_file(invalid_structure_descriptor)


def test_descriptor_must_be_an_object(tmp_path: Path) -> None:
	descriptor = tmp_path / 'list.json'
	descriptor.write_text('["os-core"]')

	with pytest.raises(DescriptorError):
		load_file(descriptor)


def test_missing_descriptor(tmp_path: Path) -> None:
	with pytest.raises(DescriptorError):
		load_file(tmp_path / 'missing.json')


@pytest.mark.skipif(os.geteuid() == 0, reason='root can read any file')
def test_unreadable_descriptor(minimal_descriptor: Path, tmp_path: Path) -> None:
	descriptor = tmp_path / 'unreadable.json'
	descriptor.write_text(minimal_descriptor.read_text())
	descriptor.chmod(0o000)

	try:
		with pytest.raises(DescriptorError):
			load_file(descriptor)
	finally:
		descriptor.chmod(0o600)


def test_empty_model_json() -> None:
	data = SystemInstall().json()

	assert data['bundles'] == []
	assert data['autoupdate'] is True
	assert 'telemetry' not in data
	assert 'target_media' not in data
	assert SystemInstall.parse_arg(data).json() == data


def test_descriptor_data() -> None:
	data = {'!secret': 'x', 'path': Path('/mnt'), 'fs': FilesystemType.Ext4, 'items': ('a', 'b')}

	assert descriptor_data(data) == {'path': '/mnt', 'fs': 'ext4', 'items': ['a', 'b']}
	assert descriptor_data(data, private=True)['!secret'] == 'x'


def test_descriptor_not_utf8(tmp_path: Path) -> None:
	descriptor = tmp_path / 'latin1.json'
	descriptor.write_bytes(b'{"keyboard": "\xff\xfe"}')

	with pytest.raises(DescriptorError, match='UTF-8'):
		load_file(descriptor)


@pytest.mark.parametrize('key', ['version', 'keyboard', 'language', 'timezone', 'hostname', 'http_proxy'])
def test_non_string_setting(minimal_descriptor: Path, tmp_path: Path, key: str) -> None:
	config = json.loads(minimal_descriptor.read_text())
	config[key] = 5

	descriptor = tmp_path / 'descriptor.json'
	descriptor.write_text(json.dumps(config))

	with pytest.raises(DescriptorError, match=key):
		load_file(descriptor)


def test_non_string_login(minimal_descriptor: Path, tmp_path: Path) -> None:
	config = json.loads(minimal_descriptor.read_text())
	config['users'] = [{'login': 5}]

	descriptor = tmp_path / 'descriptor.json'
	descriptor.write_text(json.dumps(config))

	with pytest.raises(DescriptorError, match='login'):
		load_file(descriptor)
