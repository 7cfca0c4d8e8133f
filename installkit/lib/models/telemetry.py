from dataclasses import dataclass
from typing import Any, TypedDict

LOCAL_TELEMETRY_SERVER = 'http://localhost/v2/collector'


class _TelemetrySerialization(TypedDict):
	enabled: bool
	server: str | None
	tid: str | None


@dataclass
class Telemetry:
	enabled: bool = False
	server: str | None = None
	tid: str | None = None

	def is_local_only(self) -> bool:
		return self.server == LOCAL_TELEMETRY_SERVER

	def json(self) -> _TelemetrySerialization:
		return {
			'enabled': self.enabled,
			'server': self.server,
			'tid': self.tid,
		}

	@classmethod
	def parse_arg(cls, arg: bool | dict[str, Any]) -> 'Telemetry':
		# a plain boolean is accepted as shorthand for {'enabled': <bool>}
		if isinstance(arg, bool):
			return Telemetry(enabled=arg)

		if not isinstance(arg, dict) or not isinstance(arg.get('enabled'), bool):
			raise ValueError(f'Invalid telemetry entry: {arg}')

		return Telemetry(
			enabled=arg['enabled'],
			server=arg.get('server', None),
			tid=arg.get('tid', None),
		)
