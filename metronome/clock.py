"""Clock sources for the metronome scheduler.

The scheduler needs three things from a clock: the current monotonic time in
seconds, a way to run a callback after a delay, and a way to cancel that
callback. ``AsyncioClock`` provides these from the running event loop;
``SimulatedClock`` provides them in virtual time for tests and offline
rendering.
"""

import asyncio
import dataclasses
import heapq
import itertools
import typing


ClockCallback = typing.Callable[[], typing.Any]


@typing.runtime_checkable
class ClockSource (typing.Protocol):

	"""
	Protocol for anything the metronome can schedule against.
	"""

	def now (self) -> float:

		"""Return the current monotonic time in seconds."""

		...


	def after (self, delay: float, callback: ClockCallback) -> typing.Any:

		"""Run *callback* once *delay* seconds from now and return a cancellable handle."""

		...


	def cancel (self, handle: typing.Any) -> None:

		"""Cancel a handle returned by ``after``. Cancelling twice is harmless."""

		...


class AsyncioClock:

	"""
	Clock backed by the running asyncio event loop.

	``now()`` is ``loop.time()``, which is monotonic, and ``after()`` is
	``loop.call_later``. The loop is looked up on first use, so the clock may
	be constructed before the loop starts but must be used from inside it.
	"""

	def __init__ (self, loop: typing.Optional[asyncio.AbstractEventLoop] = None) -> None:

		self._loop = loop


	@property
	def loop (self) -> asyncio.AbstractEventLoop:

		if self._loop is None:
			self._loop = asyncio.get_running_loop()

		return self._loop


	def now (self) -> float:

		return self.loop.time()


	def after (self, delay: float, callback: ClockCallback) -> asyncio.TimerHandle:

		return self.loop.call_later(max(0.0, delay), callback)


	def cancel (self, handle: asyncio.TimerHandle) -> None:

		handle.cancel()


@dataclasses.dataclass (order=True)
class SimulatedTimer:

	"""
	A callback waiting in a ``SimulatedClock`` queue.
	"""

	when: float
	sequence: int
	callback: ClockCallback = dataclasses.field(compare=False)
	cancelled: bool = dataclasses.field(compare=False, default=False)


	def cancel (self) -> None:

		self.cancelled = True


class SimulatedClock:

	"""
	Deterministic virtual-time clock.

	Time only moves when ``advance()`` is called. Due callbacks run in time
	order, ties broken by scheduling order, and a callback scheduled by
	another callback runs in the same ``advance()`` if it falls due within
	the window. ``after()`` never runs the callback immediately, even with a
	zero delay.
	"""

	def __init__ (self, start_time: float = 0.0) -> None:

		self._now = start_time
		self._queue: typing.List[SimulatedTimer] = []
		self._counter = itertools.count()


	def now (self) -> float:

		return self._now


	def after (self, delay: float, callback: ClockCallback) -> SimulatedTimer:

		timer = SimulatedTimer(
			when = self._now + max(0.0, delay),
			sequence = next(self._counter),
			callback = callback
		)

		heapq.heappush(self._queue, timer)

		return timer


	def cancel (self, handle: SimulatedTimer) -> None:

		handle.cancel()


	@property
	def pending (self) -> int:

		"""Number of scheduled callbacks that have not run or been cancelled."""

		return sum(1 for timer in self._queue if not timer.cancelled)


	def advance (self, seconds: float) -> None:

		"""Move virtual time forward by *seconds*, running every callback that falls due."""

		if seconds < 0:
			raise ValueError("Cannot advance a clock backwards")

		target = self._now + seconds

		while self._queue and self._queue[0].when <= target:

			timer = heapq.heappop(self._queue)

			if timer.cancelled:
				continue

			self._now = max(self._now, timer.when)
			timer.callback()

		self._now = target
