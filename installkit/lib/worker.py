from __future__ import annotations

import asyncio
import threading
import traceback
from collections.abc import Callable
from concurrent.futures import Future
from enum import Enum

from .exceptions import WorkerStateError
from .output import debug, error
from .progress import ProgressSession


class WorkerState(Enum):
	Idle = 'idle'
	Running = 'running'
	Succeeded = 'succeeded'
	Failed = 'failed'
	Signaled = 'signaled'


def first_line(err: BaseException) -> str:
	lines = str(err).strip().splitlines()
	return lines[0] if lines else type(err).__name__


class InstallWorker:
	"""
	Runs a pre-check or install job off the caller's thread. The job gets the
	progress session explicitly, the terminal result is published exactly
	once through a future (True on success) that blocking callers wait() on
	and event loops await through completion(). A worker runs only once.
	"""

	def __init__(
		self,
		job: Callable[[ProgressSession], None],
		session: ProgressSession,
		name: str = 'installkit-worker',
	):
		self._job = job
		self._session = session
		self._name = name
		self._state = WorkerState.Idle
		self._outcome: WorkerState | None = None
		self._error: Exception | None = None
		self._future: Future[bool] = Future()
		self._lock = threading.Lock()
		self._thread: threading.Thread | None = None

	@property
	def state(self) -> WorkerState:
		return self._state

	@property
	def outcome(self) -> WorkerState | None:
		return self._outcome

	@property
	def error(self) -> Exception | None:
		return self._error

	@property
	def future(self) -> Future[bool]:
		return self._future

	def start(self) -> Future[bool]:
		with self._lock:
			if self._state != WorkerState.Idle:
				raise WorkerStateError(f'Worker {self._name} has already been started')

			self._session.open()
			self._state = WorkerState.Running

		self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
		self._thread.start()

		return self._future

	def _run(self) -> None:
		try:
			self._job(self._session)
		except Exception as err:
			self._error = err
			self._state = WorkerState.Failed
			error(first_line(err))
			debug(''.join(traceback.format_exception(err)))
		else:
			self._state = WorkerState.Succeeded
		finally:
			self._outcome = self._state
			self._session.close()
			self._state = WorkerState.Signaled
			self._future.set_result(self._outcome == WorkerState.Succeeded)

	def wait(self, timeout: float | None = None) -> bool:
		return self._future.result(timeout)

	async def completion(self) -> bool:
		return await asyncio.wrap_future(self._future)

	def summary(self) -> str | None:
		if self._error is None:
			return None
		return first_line(self._error)
