import asyncio
import functools
import logging
import typing

import metronome.clock
import metronome.config
import metronome.constants
import metronome.emitters
import metronome.event_emitter
import metronome.state


logger = logging.getLogger(__name__)


class Metronome:

	"""
	A headless metronome that schedules clicks ahead of time and reports beats on time.

	Scheduling uses a short lookahead loop: every ``lookahead`` seconds the
	metronome queues, on the sound emitter, every beat that starts before
	``now + lookahead``. Beat times are accumulated from the first beat rather
	than measured from "now", so polling granularity never causes drift.

	Each queued beat also arms its own clock callback at the beat's exact
	time. That callback is what emits ``beat_start`` (and ``beat_interval``),
	so listeners hear about a beat when it sounds rather than when it was
	queued.

	Events emitted on ``metronome.events``:

	- ``beat_start`` with a ``BeatEvent``
	- ``beat_interval`` with a ``BeatIntervalEvent``
	- ``end`` when the max-beats limit is reached
	- ``start``, ``pause``, ``resume``, ``stop`` on transport changes

	Pausing or stopping cancels the loop but not the clicks and beat
	callbacks already queued inside the lookahead window, so a short tail of
	events may still arrive afterwards.
	"""

	def __init__ (
		self,
		config: metronome.config.MetronomeConfig,
		emitter: typing.Optional[metronome.emitters.SoundEmitter] = None,
		clock: typing.Optional[metronome.clock.ClockSource] = None,
		lookahead: float = metronome.constants.DEFAULT_LOOKAHEAD
	) -> None:

		"""Create a stopped metronome.

		Parameters:
			config: Tempo, bar length, volume and optional policies.
			emitter: Click producer. Defaults to a ``SilentEmitter``.
			clock: Clock to schedule against. When omitted an ``AsyncioClock``
				is created on the first ``start()`` and kept from then on.
			lookahead: Scheduling window and polling period, in seconds.
		"""

		if lookahead <= 0:
			raise ValueError("Lookahead must be positive")

		self._tempo = config.tempo
		self._beats_per_bar = config.beats_per_bar
		self._volume = config.volume / metronome.constants.MAX_VOLUME
		self._max_beats = config.max_beats
		self._beat_interval = config.beat_interval

		self._emitter: metronome.emitters.SoundEmitter = emitter if emitter is not None else metronome.emitters.SilentEmitter()
		self._clock = clock

		self.state = metronome.state.SchedulerState(lookahead=lookahead)
		self.events = metronome.event_emitter.EventEmitter()

		if config.on_beat_start is not None:
			self.events.on("beat_start", config.on_beat_start)

		if self._beat_interval is not None:
			self.events.on("beat_interval", self._beat_interval.on_beat_interval)

		if self._max_beats is not None and self._max_beats.on_end is not None:
			self.events.on("end", self._max_beats.on_end)


	@property
	def clock (self) -> typing.Optional[metronome.clock.ClockSource]:

		"""The clock in use, or None before the first ``start()`` when none was given."""

		return self._clock


	@property
	def playback_state (self) -> metronome.state.PlaybackState:

		return self.state.playback_state


	@property
	def beat_length (self) -> float:

		"""Seconds per beat at the current tempo."""

		return metronome.constants.SECONDS_PER_MINUTE / self._tempo


	def _ensure_clock (self) -> metronome.clock.ClockSource:

		if self._clock is None:
			self._clock = metronome.clock.AsyncioClock()
			logger.debug("Created asyncio clock")

		return self._clock


	def _cancel_pending_timer (self) -> None:

		if self.state.pending_timer is not None and self._clock is not None:
			self._clock.cancel(self.state.pending_timer)

		self.state.pending_timer = None


	# Transport

	def start (self) -> None:

		"""Start playback, or continue it from a pause.

		From ``stopped`` the beat and interval counters restart at zero. From
		``paused`` they are kept, but the next beat sounds immediately: the
		phase of the beat before the pause is not preserved.
		"""

		if self.state.playback_state == metronome.constants.PLAYBACK_PLAYING:
			logger.debug("start() ignored - already playing")
			return

		clock = self._ensure_clock()
		resuming = self.state.playback_state == metronome.constants.PLAYBACK_PAUSED

		if not resuming:
			self.state.reset_counters()

		self.state.playback_state = metronome.constants.PLAYBACK_PLAYING
		self.state.next_note_time = clock.now()

		if resuming:
			logger.info(f"Metronome resumed at beat {self.state.total_beats + 1}")
			self.events.emit("resume")
		else:
			logger.info(f"Metronome started at {self._tempo:.2f} BPM, {self._beats_per_bar} beats per bar")
			self.events.emit("start")

		self._tick()


	def stop (self) -> None:

		"""Stop playback and reset the beat and interval counters."""

		if self.state.playback_state == metronome.constants.PLAYBACK_STOPPED:
			logger.debug("stop() ignored - already stopped")
			return

		self._cancel_pending_timer()
		self.state.reset_counters()
		self.state.playback_state = metronome.constants.PLAYBACK_STOPPED

		logger.info("Metronome stopped")

		self.events.emit("stop")


	def pause (self) -> None:

		"""Pause playback, keeping the position in the bar and all counters."""

		if self.state.playback_state != metronome.constants.PLAYBACK_PLAYING:
			logger.debug(f"pause() ignored - metronome is {self.state.playback_state}")
			return

		self._cancel_pending_timer()
		self.state.playback_state = metronome.constants.PLAYBACK_PAUSED

		logger.info(f"Metronome paused after beat {self.state.total_beats}")

		self.events.emit("pause")


	def resume (self) -> None:

		"""Resume a paused metronome. Does nothing unless paused."""

		if self.state.playback_state != metronome.constants.PLAYBACK_PAUSED:
			logger.debug(f"resume() ignored - metronome is {self.state.playback_state}")
			return

		self.start()


	async def play (self) -> None:

		"""
		Start playback and wait until the metronome stops.

		Returns when ``stop()`` is called or the max-beats limit ends playback.
		If the waiting task is cancelled the metronome is stopped first.
		"""

		finished: asyncio.Future = asyncio.get_running_loop().create_future()

		def _on_stop () -> None:
			if not finished.done():
				finished.set_result(None)

		self.events.on("stop", _on_stop)

		try:
			self.start()
			await finished
		finally:
			self.events.off("stop", _on_stop)
			self.stop()


	# Scheduling

	def _max_beats_reached (self) -> bool:

		return self._max_beats is not None and self.state.total_beats >= self._max_beats.count


	def _tick (self) -> None:

		"""Queue every beat due inside the lookahead window, then re-arm or finish."""

		self.state.pending_timer = None

		if self.state.playback_state != metronome.constants.PLAYBACK_PLAYING:
			return

		clock = typing.cast(metronome.clock.ClockSource, self._clock)

		while True:

			if self._max_beats_reached():
				self._schedule_end(self.state.next_note_time)
				return

			if self.state.next_note_time >= clock.now() + self.state.lookahead:
				break

			self._schedule_beat(self.state.next_note_time)

			self.state.current_beat = (self.state.current_beat + 1) % self._beats_per_bar
			self.state.total_beats += 1
			self.state.next_note_time += self.beat_length

		self.state.pending_timer = clock.after(self.state.lookahead, self._tick)


	def _schedule_beat (self, beat_time: float) -> None:

		"""Queue the click for one beat and arm its on-time dispatch."""

		clock = typing.cast(metronome.clock.ClockSource, self._clock)
		position = self.state.current_beat % self._beats_per_bar

		scheduled = metronome.state.ScheduledBeat(
			beat_number = position + 1,
			time = beat_time,
			first_beat_of_bar = position == 0
		)

		self._emitter.click(beat_time, scheduled.first_beat_of_bar, self._volume)

		clock.after(beat_time - clock.now(), functools.partial(self._dispatch_beat, scheduled))

		logger.debug(f"Scheduled beat {scheduled.beat_number} at {beat_time:.4f}")


	def _dispatch_beat (self, scheduled: metronome.state.ScheduledBeat) -> None:

		"""Report a beat at the moment it starts.

		``total_beats`` and ``current_interval`` are read from the live state,
		not from the time the beat was queued.
		"""

		self.events.emit(
			"beat_start",
			metronome.state.BeatEvent(
				beat_number = scheduled.beat_number,
				time = scheduled.time,
				total_beats = self.state.total_beats
			)
		)

		if self._beat_interval is None or not scheduled.first_beat_of_bar:
			return

		total_beats = self.state.total_beats

		# Fires on beats 1, count + 1, 2 * count + 1, ...
		if total_beats >= 1 and (total_beats - 1) % self._beat_interval.count == 0:

			self.events.emit(
				"beat_interval",
				metronome.state.BeatIntervalEvent(current_interval=self.state.current_interval)
			)

			self.state.current_interval += 1


	def _schedule_end (self, end_time: float) -> None:

		"""Arm the end of playback at the time the next beat would have started."""

		clock = typing.cast(metronome.clock.ClockSource, self._clock)

		logger.debug(f"Max beats reached, ending at {end_time:.4f}")

		clock.after(end_time - clock.now(), self._finish)


	def _finish (self) -> None:

		logger.info(f"Metronome reached {typing.cast(metronome.config.MaxBeatsConfig, self._max_beats).count} beats")

		self.events.emit("end")
		self.stop()


	# Configuration

	def update_config (self, tempo: typing.Optional[float] = None, volume: typing.Optional[float] = None) -> None:

		"""
		Change the tempo and/or volume during playback.

		Both take effect from the next beat that is scheduled. Beats already
		queued inside the lookahead window keep their time and volume. The bar
		length cannot be changed.
		"""

		if tempo is not None:
			self._tempo = metronome.config.validate_tempo(tempo)
			logger.info(f"Tempo set to {self._tempo:.2f} BPM")

		if volume is not None:
			self._volume = metronome.config.validate_volume(volume) / metronome.constants.MAX_VOLUME
			logger.info(f"Volume set to {volume}")


	def get_state (self) -> metronome.state.MetronomeState:

		"""Return a read-only snapshot of the metronome."""

		return metronome.state.MetronomeState(
			playback_state = self.state.playback_state,
			tempo = self._tempo,
			beats_per_bar = self._beats_per_bar,
			volume = self._volume * metronome.constants.MAX_VOLUME,
			current_beat = self.state.current_beat,
			total_beats = self.state.total_beats,
			current_interval = self.state.current_interval,
			max_beats = self._max_beats.count if self._max_beats is not None else None,
			beat_interval = self._beat_interval.count if self._beat_interval is not None else None
		)


def create_metronome (
	config: metronome.config.MetronomeConfig,
	emitter: typing.Optional[metronome.emitters.SoundEmitter] = None,
	clock: typing.Optional[metronome.clock.ClockSource] = None,
	lookahead: float = metronome.constants.DEFAULT_LOOKAHEAD
) -> Metronome:

	"""Create a stopped ``Metronome``."""

	return Metronome(config, emitter=emitter, clock=clock, lookahead=lookahead)
