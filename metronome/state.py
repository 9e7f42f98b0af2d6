import dataclasses
import typing

import metronome.constants


PlaybackState = typing.Literal["stopped", "playing", "paused"]


@dataclasses.dataclass
class SchedulerState:

	"""
	Mutable scheduler bookkeeping, owned by exactly one ``Metronome``.
	"""

	playback_state: PlaybackState = metronome.constants.PLAYBACK_STOPPED
	current_beat: int = 0
	total_beats: int = 0
	current_interval: int = 0
	next_note_time: float = 0.0
	lookahead: float = metronome.constants.DEFAULT_LOOKAHEAD
	pending_timer: typing.Optional[typing.Any] = None


	def reset_counters (self) -> None:

		self.current_beat = 0
		self.total_beats = 0
		self.current_interval = 0


@dataclasses.dataclass (frozen=True)
class ScheduledBeat:

	"""
	The part of a beat that is fixed when the beat is queued.

	Dispatch pairs this record with live reads of ``SchedulerState``. The
	counters are read at dispatch time.
	"""

	beat_number: int
	time: float
	first_beat_of_bar: bool


@dataclasses.dataclass (frozen=True)
class BeatEvent:

	"""
	Payload passed to ``on_beat_start`` listeners.

	``beat_number`` is the 1-based position in the bar, ``time`` the beat's
	clock time and ``total_beats`` the number of beats scheduled in this run
	up to and including this one.
	"""

	beat_number: int
	time: float
	total_beats: int


@dataclasses.dataclass (frozen=True)
class BeatIntervalEvent:

	"""Payload passed to ``on_beat_interval`` listeners."""

	current_interval: int


@dataclasses.dataclass (frozen=True)
class MetronomeState:

	"""
	Read-only snapshot returned by ``Metronome.get_state()``.
	"""

	playback_state: PlaybackState
	tempo: float
	beats_per_bar: int
	volume: float
	current_beat: int
	total_beats: int
	current_interval: int
	max_beats: typing.Optional[int]
	beat_interval: typing.Optional[int]
