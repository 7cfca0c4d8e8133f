from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import TracebackType

from .exceptions import ProgressSessionError, StepTransitionError
from .output import debug, error, info

# pause between cosmetic updates so that steps stay readable on screen
LOOP_WAIT_DURATION = 0.05


class ProgressClient(ABC):
	"""
	Implemented by whatever presents the progress of a long running
	worker. Calls arrive from the worker thread, in the order the worker
	issued them.
	"""

	@abstractmethod
	def desc(self, text: str) -> None:
		"""Announces a new step, the previous one (if any) is finalized."""

	@abstractmethod
	def partial(self, total: int, step: int) -> None:
		"""Progress within the current step, step is in [0, total]."""

	@abstractmethod
	def step(self) -> None:
		"""Indeterminate progress pulse."""

	@abstractmethod
	def success(self) -> None: ...

	@abstractmethod
	def failure(self) -> None: ...

	@abstractmethod
	def loop_wait_duration(self) -> float:
		"""Seconds the worker waits between cosmetic updates."""


class StepStatus(Enum):
	Pending = 'pending'
	Active = 'active'
	Completed = 'completed'
	Succeeded = 'succeeded'
	Failed = 'failed'

	def is_final(self) -> bool:
		return self in (StepStatus.Completed, StepStatus.Succeeded, StepStatus.Failed)


class StepEvent(Enum):
	Activate = 'activate'
	Complete = 'complete'
	Succeed = 'succeed'
	Fail = 'fail'


_TRANSITIONS: dict[tuple[StepStatus, StepEvent], StepStatus] = {
	(StepStatus.Pending, StepEvent.Activate): StepStatus.Active,
	(StepStatus.Active, StepEvent.Complete): StepStatus.Completed,
	(StepStatus.Active, StepEvent.Succeed): StepStatus.Succeeded,
	(StepStatus.Active, StepEvent.Fail): StepStatus.Failed,
}


@dataclass
class ProgressStep:
	index: int
	description: str
	status: StepStatus = StepStatus.Pending

	def transition(self, event: StepEvent) -> StepStatus:
		try:
			self.status = _TRANSITIONS[(self.status, event)]
		except KeyError:
			raise StepTransitionError(f'Step "{self.description}" cannot {event.value} while {self.status.value}') from None

		return self.status


class StepTracker:
	"""
	Ordered record of the steps of one run. The index starts at -1 (no step
	described yet) and moves forward once per described step.
	"""

	def __init__(self) -> None:
		self._steps: list[ProgressStep] = []
		self._index = -1

	@property
	def index(self) -> int:
		return self._index

	@property
	def steps(self) -> tuple[ProgressStep, ...]:
		return tuple(self._steps)

	@property
	def current(self) -> ProgressStep | None:
		if self._index < 0:
			return None
		return self._steps[self._index]

	def begin(self, description: str) -> tuple[ProgressStep, ProgressStep | None]:
		"""
		Starts a new step and returns it together with the previous step,
		which gets implicitly completed if it was still active.
		"""
		previous = self.current

		if previous is not None and previous.status == StepStatus.Active:
			previous.transition(StepEvent.Complete)

		self._index += 1
		step = ProgressStep(self._index, description)
		step.transition(StepEvent.Activate)
		self._steps.append(step)

		return step, previous

	def finish(self, succeeded: bool) -> ProgressStep:
		step = self.current

		if step is None:
			raise StepTransitionError('No step has been described yet')

		step.transition(StepEvent.Succeed if succeeded else StepEvent.Fail)
		return step

	def status_of(self, description: str) -> StepStatus | None:
		for step in self._steps:
			if step.description == description:
				return step.status
		return None


class StepTrackingClient(ProgressClient):
	"""
	Base for presentation clients, keeps the step record and turns the raw
	protocol calls into the hooks below.
	"""

	def __init__(self, loop_wait: float = LOOP_WAIT_DURATION) -> None:
		self._tracker = StepTracker()
		self._loop_wait = loop_wait
		self.fraction = 0.0

	@property
	def tracker(self) -> StepTracker:
		return self._tracker

	def desc(self, text: str) -> None:
		step, previous = self._tracker.begin(text)
		self.on_step_started(step, previous)

	def partial(self, total: int, step: int) -> None:
		if total <= 0 or not 0 <= step <= total:
			raise ValueError(f'Invalid partial progress {step}/{total}')

		self.fraction = step / total
		self.on_fraction(self.fraction)

	def step(self) -> None:
		self.on_pulse()

	def success(self) -> None:
		self.on_step_finished(self._tracker.finish(True))

	def failure(self) -> None:
		self.on_step_finished(self._tracker.finish(False))

	def loop_wait_duration(self) -> float:
		return self._loop_wait

	def on_step_started(self, step: ProgressStep, previous: ProgressStep | None) -> None:
		pass

	def on_step_finished(self, step: ProgressStep) -> None:
		pass

	def on_fraction(self, fraction: float) -> None:
		pass

	def on_pulse(self) -> None:
		pass


class LogClient(StepTrackingClient):
	"""
	Headless client for unattended runs, every event goes to the log.
	"""

	def __init__(self, loop_wait: float = 0.0) -> None:
		super().__init__(loop_wait=loop_wait)
		self._pulses = 0

	def on_step_started(self, step: ProgressStep, previous: ProgressStep | None) -> None:
		if previous is not None and previous.status == StepStatus.Completed:
			debug(f'[{previous.index}] {previous.description}: done')

		self._pulses = 0
		info(f'[{step.index}] {step.description}...')

	def on_step_finished(self, step: ProgressStep) -> None:
		if step.status == StepStatus.Succeeded:
			info(f'[{step.index}] {step.description}: success')
		else:
			error(f'[{step.index}] {step.description}: failed')

	def on_fraction(self, fraction: float) -> None:
		debug(f'Progress: {int(fraction * 100)}%')

	def on_pulse(self) -> None:
		self._pulses += 1


class ProgressSession:
	"""
	The reporting channel of one pre-check or install run. The orchestrator
	opens the session before it starts the worker and hands it to the worker
	explicitly; only one session can be open at any time.
	"""

	_lock = threading.Lock()
	_active: ProgressSession | None = None

	def __init__(self, client: ProgressClient) -> None:
		self._client = client
		self._open = False

	@property
	def client(self) -> ProgressClient:
		return self._client

	@property
	def is_open(self) -> bool:
		return self._open

	@classmethod
	def active(cls) -> ProgressSession | None:
		return cls._active

	def open(self) -> None:
		with ProgressSession._lock:
			if ProgressSession._active is not None:
				raise ProgressSessionError('Another progress session is already active')

			ProgressSession._active = self
			self._open = True

	def close(self) -> None:
		with ProgressSession._lock:
			if ProgressSession._active is self:
				ProgressSession._active = None

			self._open = False

	def __enter__(self) -> ProgressSession:
		self.open()
		return self

	def __exit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> None:
		self.close()

	def _require_open(self) -> ProgressClient:
		if not self._open:
			raise ProgressSessionError('Progress session is not open')
		return self._client

	def desc(self, text: str) -> None:
		self._require_open().desc(text)

	def partial(self, total: int, step: int) -> None:
		self._require_open().partial(total, step)

	def step(self) -> None:
		self._require_open().step()

	def success(self) -> None:
		self._require_open().success()

	def failure(self) -> None:
		self._require_open().failure()

	def loop_wait_duration(self) -> float:
		return self._client.loop_wait_duration()

	def loop(self, description: str) -> LoopProgress:
		return LoopProgress(self, description)

	def multi_step(self, total: int, description: str) -> MultiStepProgress:
		return MultiStepProgress(self, total, description)


class _StepProgress:
	def __init__(self, session: ProgressSession, description: str) -> None:
		self._session = session
		self._done = False
		session.desc(description)

	def _finish(self) -> bool:
		if self._done:
			return False

		self._done = True
		return True

	def success(self) -> None:
		if self._finish():
			self._session.success()

	def failure(self) -> None:
		if self._finish():
			self._session.failure()

	def __enter__(self) -> _StepProgress:
		return self

	def __exit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> None:
		if exc_type is None:
			self.success()
		else:
			self.failure()


class LoopProgress(_StepProgress):
	"""
	A step with no measurable size, pulses the client from a helper thread
	until the step is finished.
	"""

	def __init__(self, session: ProgressSession, description: str) -> None:
		super().__init__(session, description)
		self._stop = threading.Event()
		self._thread = threading.Thread(target=self._pulse, name='installkit-progress-loop', daemon=True)
		self._thread.start()

	def _pulse(self) -> None:
		wait = max(self._session.loop_wait_duration(), 0.01)

		while not self._stop.is_set():
			self._session.step()
			self._stop.wait(wait)

	def _finish(self) -> bool:
		self._stop.set()

		if self._thread is not threading.current_thread():
			self._thread.join()

		return super()._finish()

	def __enter__(self) -> LoopProgress:
		return self


class MultiStepProgress(_StepProgress):
	def __init__(self, session: ProgressSession, total: int, description: str) -> None:
		if total < 0:
			raise ValueError(f'Invalid total: {total}')

		super().__init__(session, description)
		self._total = total
		self._current = 0

	def partial(self, step: int) -> None:
		self._current = step

		if self._total > 0:
			self._session.partial(self._total, step)

	def advance(self) -> None:
		self.partial(min(self._current + 1, self._total))

	def __enter__(self) -> MultiStepProgress:
		return self
