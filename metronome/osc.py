"""OSC broadcast of metronome events.

Attach an ``OscBeatBroadcaster`` to a metronome to forward its events over
UDP, for example to drive visuals or lighting in time with the click.

Sent messages
─────────────
- ``/beat <beat_number> <total_beats>``: On every beat start
- ``/interval <current_interval>``: On every interval
- ``/end``: When the max-beats limit is reached
- ``/transport <state>``: On start, pause, resume and stop
"""

import functools
import logging
import typing

import pythonosc.udp_client

import metronome.state

if typing.TYPE_CHECKING:
	from metronome.scheduler import Metronome


logger = logging.getLogger(__name__)


class OscBeatBroadcaster:

	"""Forward metronome events to an OSC receiver."""

	def __init__ (self, target: "Metronome", host: str = "127.0.0.1", port: int = 9001) -> None:

		self._metronome = target
		self._host = host
		self._port = port
		self._client: typing.Optional[pythonosc.udp_client.SimpleUDPClient] = pythonosc.udp_client.SimpleUDPClient(host, port)

		self._handlers: typing.List[typing.Tuple[str, typing.Callable[..., None]]] = [
			("beat_start", self._on_beat_start),
			("beat_interval", self._on_beat_interval),
			("end", self._on_end),
		]

		for transport_event in ("start", "pause", "resume", "stop"):
			self._handlers.append((transport_event, functools.partial(self._on_transport, transport_event)))

		for event_name, handler in self._handlers:
			self._metronome.events.on(event_name, handler)

		logger.info(f"OSC beat broadcast sending to {host}:{port}")


	def send (self, address: str, *args: typing.Any) -> None:

		"""Send an OSC message."""

		if self._client is None:
			return

		try:
			self._client.send_message(address, list(args))
		except Exception as e:
			logger.warning(f"OSC send error: {e}")


	def close (self) -> None:

		"""Stop forwarding events."""

		if self._client is None:
			return

		for event_name, handler in self._handlers:
			self._metronome.events.off(event_name, handler)

		self._client = None
		logger.info("OSC beat broadcast stopped")


	# Handlers

	def _on_beat_start (self, event: metronome.state.BeatEvent) -> None:
		self.send("/beat", event.beat_number, event.total_beats)

	def _on_beat_interval (self, event: metronome.state.BeatIntervalEvent) -> None:
		self.send("/interval", event.current_interval)

	def _on_end (self) -> None:
		self.send("/end")

	def _on_transport (self, state: str) -> None:
		self.send("/transport", state)
