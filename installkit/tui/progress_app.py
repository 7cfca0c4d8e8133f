from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar, override

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Label, ListItem, ListView, ProgressBar, Static

from installkit.lib.output import debug
from installkit.lib.progress import LOOP_WAIT_DURATION, ProgressSession, ProgressStep, StepStatus, StepTrackingClient
from installkit.lib.worker import InstallWorker

_STATUS_MARKERS = {
	StepStatus.Pending: '·',
	StepStatus.Active: '>',
	StepStatus.Completed: '✓',
	StepStatus.Succeeded: '✓',
	StepStatus.Failed: '✗',
}


class AppProgressClient(StepTrackingClient):
	"""
	Forwards the progress of the worker thread to the app. call_from_thread
	blocks until the event loop applied the update, which keeps the calls
	in the order the worker issued them. Pulses are not forwarded, the bar
	animates on its own while a step has no known size.
	"""

	def __init__(self, app: ProgressApp, loop_wait: float = LOOP_WAIT_DURATION) -> None:
		super().__init__(loop_wait=loop_wait)
		self._app = app

	@override
	def on_step_started(self, step: ProgressStep, previous: ProgressStep | None) -> None:
		self._app.call_from_thread(self._app.step_started, step, previous)

	@override
	def on_step_finished(self, step: ProgressStep) -> None:
		self._app.call_from_thread(self._app.step_finished, step)

	@override
	def on_fraction(self, fraction: float) -> None:
		self._app.call_from_thread(self._app.set_fraction, fraction)


class ProgressApp(App[bool]):
	BINDINGS: ClassVar = [
		Binding('q', 'quit_app', 'Quit', show=True),
	]

	CSS = """
	.app-header {
		dock: top;
		height: auto;
		width: 100%;
		content-align: center middle;
		background: $primary;
		color: white;
		text-style: bold;
	}

	#steps {
		height: 1fr;
		border: none;
	}

	#status {
		margin: 1 0;
	}
	"""

	def __init__(
		self,
		job: Callable[[ProgressSession], None],
		header: str = 'Installing',
		loop_wait: float = LOOP_WAIT_DURATION,
	) -> None:
		super().__init__(ansi_color=True)
		self._header = header
		self._client = AppProgressClient(self, loop_wait=loop_wait)
		self._install_worker = InstallWorker(job, ProgressSession(self._client))
		self._labels: dict[int, Label] = {}
		self._done = False
		self._result = False

	@property
	def progress_client(self) -> AppProgressClient:
		return self._client

	@property
	def finished(self) -> bool:
		return self._done

	@property
	def summary(self) -> str | None:
		return self._install_worker.summary()

	@override
	def compose(self) -> ComposeResult:
		yield Static(self._header, classes='app-header')

		with Vertical():
			yield ListView(id='steps')
			yield ProgressBar(total=None, show_eta=False, id='progress')
			yield Static('', id='status')

	def on_mount(self) -> None:
		self._install_worker.start()
		self._wait_for_worker()

	@work
	async def _wait_for_worker(self) -> None:
		self._result = await self._install_worker.completion()
		self._done = True

		status = self.query_one('#status', Static)

		if self._result:
			status.update('Installation finished successfully. Press q to quit.')
		else:
			status.update(f'{self.summary or "Installation failed"}. Press q to quit.')

		debug(f'Progress app worker finished: {self._result}')

	def _render_step(self, step: ProgressStep) -> str:
		return f'{_STATUS_MARKERS[step.status]} {step.description}'

	def step_started(self, step: ProgressStep, previous: ProgressStep | None) -> None:
		if previous is not None and previous.index in self._labels:
			self._labels[previous.index].update(self._render_step(previous))

		label = Label(self._render_step(step), markup=False)
		self._labels[step.index] = label
		self.query_one('#steps', ListView).append(ListItem(label))

		self.query_one('#progress', ProgressBar).update(total=None, progress=0)

	def step_finished(self, step: ProgressStep) -> None:
		if label := self._labels.get(step.index):
			label.update(self._render_step(step))

		if step.status == StepStatus.Succeeded:
			self.query_one('#progress', ProgressBar).update(total=100, progress=100)

	def set_fraction(self, fraction: float) -> None:
		self.query_one('#progress', ProgressBar).update(total=100, progress=fraction * 100)

	def action_quit_app(self) -> None:
		if self._done:
			self.exit(self._result)


def run_progress_app(job: Callable[[ProgressSession], None], header: str) -> tuple[bool, str | None]:
	app = ProgressApp(job, header=header)
	result = app.run()
	return bool(result), app.summary
