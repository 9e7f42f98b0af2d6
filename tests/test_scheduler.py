import dataclasses
import typing

import pytest

import metronome.clock
import metronome.config
import metronome.emitters
import metronome.scheduler
import metronome.state


MetronomeFactory = typing.Callable[..., metronome.scheduler.Metronome]


def test_first_beat_sounds_immediately (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter, beat_log: typing.Any) -> None:

	"""start() queues the first click at the current time and dispatches it on the next clock turn."""

	m = make_metronome()
	m.start()

	assert len(recorder.clicks) == 1
	assert recorder.clicks[0].start_time == 0.0
	assert recorder.clicks[0].accented is True

	# Dispatch is deferred to the clock, never run inside start().
	assert beat_log.beats == []

	clock.advance(0)

	assert beat_log.beats == [metronome.state.BeatEvent(beat_number=1, time=0.0, total_beats=1)]


def test_bar_of_four_with_interval_of_four (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""Beat 5 starts a new bar and the second interval."""

	m = make_metronome(beats_per_bar=4, interval=4)
	m.start()
	clock.advance(0)

	assert beat_log.beats[0].beat_number == 1
	assert beat_log.beats[0].total_beats == 1
	assert [e.current_interval for e in beat_log.intervals] == [0]

	# Beats at 0.0, 0.5, 1.0, 1.5, 2.0
	clock.advance(2.2)

	assert len(beat_log.beats) == 5
	assert beat_log.beats[4] == metronome.state.BeatEvent(beat_number=1, time=2.0, total_beats=5)
	assert [e.current_interval for e in beat_log.intervals] == [0, 1]
	assert m.get_state().current_interval == 2


def test_beat_numbers_cycle_through_the_bar (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""beat_number runs 1..N and total_beats counts every beat."""

	m = make_metronome(beats_per_bar=3)
	m.start()

	# Ten beats: 0.0 .. 4.5
	clock.advance(4.75)

	assert [e.beat_number for e in beat_log.beats] == [1, 2, 3, 1, 2, 3, 1, 2, 3, 1]
	assert [e.total_beats for e in beat_log.beats] == list(range(1, 11))


def test_current_beat_matches_total_beats_when_scheduling (clock: metronome.clock.SimulatedClock) -> None:

	"""current_beat == total_beats % beats_per_bar every time a click is queued."""

	class StateSpy:

		"""Emitter that samples the scheduler state at click time."""

		def __init__ (self) -> None:
			self.target: typing.Optional[metronome.scheduler.Metronome] = None
			self.samples: typing.List[typing.Tuple[int, int]] = []

		def click (self, start_time: float, accented: bool, volume: float) -> None:
			assert self.target is not None
			self.samples.append((self.target.state.current_beat, self.target.state.total_beats))

	spy = StateSpy()
	config = metronome.config.MetronomeConfig(tempo=240, beats_per_bar=5)
	m = metronome.scheduler.Metronome(config, emitter=spy, clock=clock)
	spy.target = m

	m.start()
	clock.advance(5.1)

	assert len(spy.samples) >= 20

	for current_beat, total_beats in spy.samples:
		assert current_beat == total_beats % 5
		assert 0 <= current_beat < 5

	assert [current for current, _ in spy.samples[:7]] == [0, 1, 2, 3, 4, 0, 1]


def test_first_beat_of_each_bar_is_accented (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter) -> None:

	"""Only the first click of each bar is accented."""

	m = make_metronome(beats_per_bar=3)
	m.start()
	clock.advance(2.9)

	assert [c.accented for c in recorder.clicks] == [True, False, False, True, False, False]


@pytest.mark.parametrize("lookahead", [0.005, 0.025, 0.1, 0.4])
def test_beat_spacing_is_exact (lookahead: float, make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter) -> None:

	"""Consecutive beats are 60 / tempo apart whatever the polling period."""

	m = make_metronome(tempo=100, lookahead=lookahead)
	m.start()
	clock.advance(6.1)

	times = [c.start_time for c in recorder.clicks]

	assert len(times) >= 11

	for earlier, later in zip(times, times[1:]):
		assert later - earlier == pytest.approx(0.6)

	# No drift: beat n sits exactly n beat lengths after the first.
	assert times[10] == pytest.approx(6.0)


def test_dispatch_happens_at_beat_time (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""A click queued ahead of time is reported only when its time arrives."""

	m = make_metronome(lookahead=0.2)
	m.start()

	# The tick at 0.4 queues the beat at 0.5.
	clock.advance(0.45)

	assert m.state.total_beats == 2
	assert len(beat_log.beats) == 1

	clock.advance(0.1)

	assert len(beat_log.beats) == 2
	assert beat_log.beats[1].time == 0.5


def test_total_beats_is_read_live_at_dispatch (clock: metronome.clock.SimulatedClock) -> None:

	"""When several beats are queued ahead, each dispatch reports the live counter."""

	events: typing.List[metronome.state.BeatEvent] = []
	config = metronome.config.MetronomeConfig(tempo=600, beats_per_bar=4, on_beat_start=events.append)

	# A lookahead longer than three beats queues four beats in the first tick.
	m = metronome.scheduler.Metronome(config, clock=clock, lookahead=0.35)
	m.start()

	assert m.state.total_beats == 4

	clock.advance(0.01)

	assert [e.beat_number for e in events] == [1]
	assert [e.total_beats for e in events] == [4]


def test_interval_fires_on_first_beat_of_each_interval (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""With a bar of 3 and an interval of 3 the interval fires on beats 1, 4 and 7."""

	m = make_metronome(beats_per_bar=3, interval=3)
	m.start()
	clock.advance(3.25)

	fired_on = [
		beat_log.order[i - 1][1]
		for i, (kind, _) in enumerate(beat_log.order)
		if kind == "interval"
	]

	assert fired_on == [1, 4, 7]
	assert [e.current_interval for e in beat_log.intervals] == [0, 1, 2]


def test_interval_requires_first_beat_of_bar (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""An interval count that lands mid-bar only fires where it meets a bar start."""

	m = make_metronome(beats_per_bar=4, interval=2)
	m.start()

	# Nine beats: 0.0 .. 4.0
	clock.advance(4.25)

	fired_on = [
		beat_log.order[i - 1][1]
		for i, (kind, _) in enumerate(beat_log.order)
		if kind == "interval"
	]

	assert fired_on == [1, 5, 9]


def test_interval_of_one_fires_every_beat (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""A one-beat interval in a one-beat bar fires on every beat."""

	m = make_metronome(beats_per_bar=1, interval=1)
	m.start()
	clock.advance(1.75)

	assert len(beat_log.beats) == 4
	assert [e.current_interval for e in beat_log.intervals] == [0, 1, 2, 3]


def test_beat_start_precedes_interval (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, beat_log: typing.Any) -> None:

	"""The interval event follows the beat that anchors it."""

	m = make_metronome(beats_per_bar=2, interval=2)
	m.start()
	clock.advance(1.25)

	assert beat_log.order == [
		("beat", 1),
		("interval", 0),
		("beat", 2),
		("beat", 3),
		("interval", 1),
	]


def test_max_beats_stops_after_last_beat (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter, beat_log: typing.Any) -> None:

	"""Eight beats in bars of four, one end callback, then stopped with counters reset."""

	m = make_metronome(beats_per_bar=4, max_beats=8)
	m.start()
	clock.advance(3.9)

	assert len(beat_log.beats) == 8
	assert beat_log.ends == 0
	assert m.get_state().playback_state == "playing"

	# The end fires where the ninth beat would have started.
	clock.advance(0.2)

	assert beat_log.ends == 1
	assert beat_log.order[-1] == ("end", 0)

	state = m.get_state()

	assert state.playback_state == "stopped"
	assert state.total_beats == 0
	assert state.current_beat == 0
	assert state.current_interval == 0

	clock.advance(10)

	assert len(beat_log.beats) == 8
	assert len(recorder.clicks) == 8
	assert beat_log.ends == 1
	assert clock.pending == 0


def test_max_beats_never_overshoots_in_one_tick (clock: metronome.clock.SimulatedClock) -> None:

	"""A lookahead spanning many beats still queues exactly max_beats clicks."""

	recorder = metronome.emitters.RecordingEmitter()
	ends: typing.List[bool] = []

	config = metronome.config.MetronomeConfig(
		tempo = 600,
		beats_per_bar = 4,
		max_beats = metronome.config.MaxBeatsConfig(count=3, on_end=lambda: ends.append(True))
	)

	m = metronome.scheduler.Metronome(config, emitter=recorder, clock=clock, lookahead=2.0)
	m.start()

	assert len(recorder.clicks) == 3

	clock.advance(5)

	assert ends == [True]
	assert m.playback_state == "stopped"


def test_max_beats_without_end_callback (clock: metronome.clock.SimulatedClock) -> None:

	"""on_end is optional; playback still stops."""

	config = metronome.config.MetronomeConfig(tempo=120, beats_per_bar=4, max_beats=metronome.config.MaxBeatsConfig(count=2))
	m = metronome.scheduler.Metronome(config, clock=clock)
	m.start()
	clock.advance(2)

	assert m.playback_state == "stopped"


def test_tempo_change_applies_to_later_beats (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter) -> None:

	"""Doubling the tempo halves the spacing from the next unqueued beat on."""

	m = make_metronome(tempo=120)
	m.start()
	clock.advance(1.2)

	# The beat at 1.5 was computed at the old tempo and keeps its time.
	m.update_config(tempo=240)
	clock.advance(1.2)

	times = [c.start_time for c in recorder.clicks]

	assert times[:7] == pytest.approx([0.0, 0.5, 1.0, 1.5, 1.75, 2.0, 2.25])


def test_tempo_change_leaves_queued_beats_alone (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter, beat_log: typing.Any) -> None:

	"""A beat already inside the lookahead window is not moved by a tempo change."""

	m = make_metronome(tempo=120, lookahead=0.2)
	m.start()

	# The beat at 0.5 is queued by the tick at 0.4.
	clock.advance(0.45)
	m.update_config(tempo=60)
	clock.advance(3.05)

	assert [c.start_time for c in recorder.clicks] == pytest.approx([0.0, 0.5, 1.0, 2.0, 3.0])
	assert [e.time for e in beat_log.beats] == pytest.approx([0.0, 0.5, 1.0, 2.0, 3.0])


def test_volume_change_applies_to_later_clicks (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock, recorder: metronome.emitters.RecordingEmitter) -> None:

	"""Volume is normalised for the emitter and reported back on the 0-100 scale."""

	m = make_metronome(volume=80)
	m.start()
	clock.advance(0.75)

	m.update_config(volume=25)
	clock.advance(0.5)

	assert [c.volume for c in recorder.clicks] == pytest.approx([0.8, 0.8, 0.25])
	assert m.get_state().volume == pytest.approx(25)


def test_update_config_validates (make_metronome: MetronomeFactory) -> None:

	"""Bad tempo or volume updates are rejected and leave the metronome unchanged."""

	m = make_metronome(tempo=120, volume=50)

	with pytest.raises(ValueError):
		m.update_config(tempo=0)

	with pytest.raises(ValueError):
		m.update_config(volume=101)

	state = m.get_state()

	assert state.tempo == 120
	assert state.volume == pytest.approx(50)


def test_get_state_snapshot (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock) -> None:

	"""get_state() reports configuration and counters without touching them."""

	m = make_metronome(tempo=90, beats_per_bar=3, volume=70, max_beats=12, interval=6)

	assert m.get_state() == metronome.state.MetronomeState(
		playback_state = "stopped",
		tempo = 90.0,
		beats_per_bar = 3,
		volume = pytest.approx(70),
		current_beat = 0,
		total_beats = 0,
		current_interval = 0,
		max_beats = 12,
		beat_interval = 6
	)

	m.start()
	first = m.get_state()
	second = m.get_state()

	assert first == second
	assert first.total_beats == 1
	assert first.current_beat == 1


def test_get_state_without_policies (make_metronome: MetronomeFactory) -> None:

	state = make_metronome().get_state()

	assert state.max_beats is None
	assert state.beat_interval is None


def test_snapshot_is_read_only (make_metronome: MetronomeFactory) -> None:

	"""The snapshot cannot be used to change the metronome."""

	state = make_metronome().get_state()

	with pytest.raises(dataclasses.FrozenInstanceError):
		state.total_beats = 10  # type: ignore[misc]


def test_callback_errors_propagate (clock: metronome.clock.SimulatedClock) -> None:

	"""An exception in on_beat_start reaches whoever runs the clock."""

	def broken (event: metronome.state.BeatEvent) -> None:
		raise RuntimeError("boom")

	config = metronome.config.MetronomeConfig(tempo=120, beats_per_bar=4, on_beat_start=broken)
	m = metronome.scheduler.Metronome(config, clock=clock)
	m.start()

	with pytest.raises(RuntimeError, match="boom"):
		clock.advance(0)


def test_emitter_errors_propagate (clock: metronome.clock.SimulatedClock) -> None:

	"""A failing sound emitter is not swallowed by start()."""

	class BrokenEmitter:

		def click (self, start_time: float, accented: bool, volume: float) -> None:
			raise OSError("no audio device")

	config = metronome.config.MetronomeConfig(tempo=120, beats_per_bar=4)
	m = metronome.scheduler.Metronome(config, emitter=BrokenEmitter(), clock=clock)

	with pytest.raises(OSError):
		m.start()


def test_events_emitter_receives_beats (make_metronome: MetronomeFactory, clock: metronome.clock.SimulatedClock) -> None:

	"""Extra listeners can subscribe through metronome.events."""

	m = make_metronome()
	seen: typing.List[int] = []

	m.events.on("beat_start", lambda event: seen.append(event.beat_number))
	m.start()
	clock.advance(1.25)

	assert seen == [1, 2, 3]


def test_create_metronome_returns_stopped_instance (clock: metronome.clock.SimulatedClock) -> None:

	config = metronome.config.MetronomeConfig(tempo=120, beats_per_bar=4)
	m = metronome.scheduler.create_metronome(config, clock=clock)

	assert isinstance(m, metronome.scheduler.Metronome)
	assert m.playback_state == "stopped"
	assert m.clock is clock


def test_lookahead_must_be_positive () -> None:

	config = metronome.config.MetronomeConfig(tempo=120, beats_per_bar=4)

	with pytest.raises(ValueError):
		metronome.scheduler.Metronome(config, lookahead=0)
