import asyncio
import typing


CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	A small synchronous event emitter.

	Listeners run in registration order on the caller's thread, which for a
	running metronome is the clock's callback runner. Exceptions raised by a
	listener are not caught here.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {}


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.

		Coroutine functions are rejected because beat dispatch cannot await.
		"""

		if asyncio.iscoroutinefunction(callback):
			raise ValueError(f"Async callback cannot be registered for event {event_name!r}")

		self._listeners.setdefault(event_name, []).append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if event_name not in self._listeners or callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def has_listeners (self, event_name: str) -> bool:

		return bool(self._listeners.get(event_name))


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for an event immediately.
		"""

		# Copy so a listener may unregister itself while being called.
		for callback in list(self._listeners.get(event_name, [])):
			callback(*args, **kwargs)
