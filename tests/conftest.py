import typing

import mido
import pytest

import metronome.clock
import metronome.config
import metronome.constants
import metronome.emitters
import metronome.scheduler
import metronome.state


class FakeMidiOut:

	"""Minimal MIDI output stub that remembers what was sent."""

	def __init__ (self, name: str = "Dummy MIDI") -> None:

		self.name = name
		self.sent: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		self.sent.append(message)


	def close (self) -> None:

		self.closed = True


# Module-level reference so tests can inspect the most recently opened port.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	_current_fake_output = FakeMidiOut(name)
	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use fake MIDI outputs."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def fake_output (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Return an accessor for the port opened during the test."""

	return lambda: _current_fake_output


@pytest.fixture
def clock () -> metronome.clock.SimulatedClock:

	"""A virtual clock starting at zero."""

	return metronome.clock.SimulatedClock()


@pytest.fixture
def recorder () -> metronome.emitters.RecordingEmitter:

	"""An emitter that keeps every click."""

	return metronome.emitters.RecordingEmitter()


class BeatLog:

	"""Collects every callback a metronome makes, in order."""

	def __init__ (self) -> None:

		self.beats: typing.List[metronome.state.BeatEvent] = []
		self.intervals: typing.List[metronome.state.BeatIntervalEvent] = []
		self.ends = 0
		self.order: typing.List[typing.Tuple[str, int]] = []


	def on_beat_start (self, event: metronome.state.BeatEvent) -> None:

		self.beats.append(event)
		self.order.append(("beat", event.total_beats))


	def on_beat_interval (self, event: metronome.state.BeatIntervalEvent) -> None:

		self.intervals.append(event)
		self.order.append(("interval", event.current_interval))


	def on_end (self) -> None:

		self.ends += 1
		self.order.append(("end", 0))


@pytest.fixture
def beat_log () -> BeatLog:

	return BeatLog()


@pytest.fixture
def make_metronome (
	clock: metronome.clock.SimulatedClock,
	recorder: metronome.emitters.RecordingEmitter,
	beat_log: BeatLog
) -> typing.Callable[..., metronome.scheduler.Metronome]:

	"""Build metronomes wired to the simulated clock, the recorder and the beat log."""

	def _make (
		tempo: float = 120,
		beats_per_bar: int = 4,
		volume: float = 100,
		max_beats: typing.Optional[int] = None,
		interval: typing.Optional[int] = None,
		lookahead: float = metronome.constants.DEFAULT_LOOKAHEAD
	) -> metronome.scheduler.Metronome:

		config = metronome.config.MetronomeConfig(
			tempo = tempo,
			beats_per_bar = beats_per_bar,
			volume = volume,
			on_beat_start = beat_log.on_beat_start,
			max_beats = metronome.config.MaxBeatsConfig(count=max_beats, on_end=beat_log.on_end) if max_beats is not None else None,
			beat_interval = metronome.config.BeatIntervalConfig(count=interval, on_beat_interval=beat_log.on_beat_interval) if interval is not None else None
		)

		return metronome.scheduler.Metronome(config, emitter=recorder, clock=clock, lookahead=lookahead)

	return _make
