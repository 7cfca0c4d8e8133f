from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict, override

_LOGIN_REGEX = re.compile(r'^[a-z_][a-z0-9_-]*[$]?$')
MAX_LOGIN_LENGTH = 31

# accounts the installer never creates on behalf of the user
RESERVED_LOGINS = ['root', 'bin', 'daemon', 'nobody']


UserSerialization = TypedDict(
	'UserSerialization',
	{
		'login': str,
		'username': NotRequired[str | None],
		'!password': NotRequired[str | None],
		'admin': bool,
		'ssh_keys': NotRequired[list[str]],
	},
)


@dataclass
class User:
	login: str
	username: str | None = None
	password: str | None = None
	admin: bool = False
	ssh_keys: list[str] = field(default_factory=list)

	@override
	def __str__(self) -> str:
		# safety overwrite to make sure password is not leaked
		return f'User({self.login=}, {self.username=}, {self.admin=})'

	@staticmethod
	def is_valid_login(login: str) -> bool:
		if not isinstance(login, str) or not login or len(login) > MAX_LOGIN_LENGTH:
			return False

		if login in RESERVED_LOGINS:
			return False

		return _LOGIN_REGEX.match(login) is not None

	def table_data(self) -> dict[str, str | bool]:
		return {
			'login': self.login,
			'username': self.username or '',
			'password': '*' * 8 if self.password else '',
			'admin': self.admin,
		}

	def json(self) -> UserSerialization:
		return {
			'login': self.login,
			'username': self.username,
			'!password': self.password,
			'admin': self.admin,
			'ssh_keys': self.ssh_keys,
		}

	@classmethod
	def parse_arguments(cls, args: list[dict[str, Any]]) -> list[User]:
		users: list[User] = []

		if not isinstance(args, list):
			raise ValueError('Users must be given as a list')

		for entry in args:
			if not isinstance(entry, dict):
				raise ValueError(f'Invalid user entry: {entry}')

			login = entry.get('login')

			if not login:
				raise ValueError('User entry is missing a login')

			if not isinstance(login, str):
				raise ValueError(f'User login must be a string: {login}')

			users.append(
				User(
					login=login,
					username=entry.get('username', None),
					password=entry.get('!password', entry.get('password', None)),
					admin=entry.get('admin', False) is True,
					ssh_keys=list(entry.get('ssh_keys', [])),
				)
			)

		return users
