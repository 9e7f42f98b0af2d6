"""Sound emitters: the collaborators that turn a scheduled beat into a click.

The scheduler calls ``click(start_time, accented, volume)`` ahead of time,
up to one lookahead window before ``start_time``. An emitter must make the
click sound at ``start_time`` itself; it is never told about the beat again.
"""

import dataclasses
import functools
import logging
import typing

import mido

import metronome.clock
import metronome.constants
import metronome.midi_utils


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class SoundEmitter (typing.Protocol):

	"""
	Protocol for click producers.
	"""

	def click (self, start_time: float, accented: bool, volume: float) -> None:

		"""Produce a click at clock time *start_time* with *volume* in 0.0-1.0."""

		...


class SilentEmitter:

	"""Emitter that makes no sound. Used when a metronome only drives events."""

	def click (self, start_time: float, accented: bool, volume: float) -> None:

		return None


def volume_to_velocity (volume: float) -> int:

	"""Map a 0.0-1.0 volume onto a MIDI velocity."""

	velocity = int(round(volume * metronome.constants.MIDI_MAX_VELOCITY))

	return max(0, min(metronome.constants.MIDI_MAX_VELOCITY, velocity))


class MidiClickEmitter:

	"""
	Click on a MIDI output, General MIDI percussion style.

	Accented beats play the GM metronome bell and the rest the metronome
	click, each lasting ``CLICK_DURATION`` seconds. MIDI has no timestamped
	send, so the note on and note off are timed with the same clock the
	metronome schedules against.
	"""

	def __init__ (
		self,
		clock: metronome.clock.ClockSource,
		output_device_name: typing.Optional[str] = None,
		channel: int = metronome.constants.GM_DRUM_CHANNEL,
		accent_note: int = metronome.constants.METRONOME_BELL,
		note: int = metronome.constants.METRONOME_CLICK
	) -> None:

		"""Open the MIDI output.

		Parameters:
			clock: The clock shared with the metronome.
			output_device_name: MIDI output port name. When omitted the only
				available port is used, or the user is prompted to choose.
			channel: MIDI channel, 0-15. Defaults to the GM drum channel.
			accent_note: Note played on the first beat of each bar.
			note: Note played on every other beat.

		Raises:
			ValueError: If the channel is out of range.
			RuntimeError: If no MIDI output could be opened.
		"""

		if not 0 <= channel <= 15:
			raise ValueError("MIDI channel must be between 0 and 15")

		self.clock = clock
		self.channel = channel
		self.accent_note = accent_note
		self.note = note

		device_name, midi_out = metronome.midi_utils.select_output_device(output_device_name)

		if midi_out is None:
			raise RuntimeError("No MIDI output device available for the click")

		self.output_device_name = device_name
		self.midi_out: typing.Optional[typing.Any] = midi_out


	def click (self, start_time: float, accented: bool, volume: float) -> None:

		velocity = volume_to_velocity(volume)

		if velocity == 0:
			return

		note = self.accent_note if accented else self.note
		delay = start_time - self.clock.now()

		note_on = mido.Message('note_on', channel=self.channel, note=note, velocity=velocity)
		note_off = mido.Message('note_off', channel=self.channel, note=note, velocity=0)

		self.clock.after(delay, functools.partial(self._send, note_on))
		self.clock.after(delay + metronome.constants.CLICK_DURATION, functools.partial(self._send, note_off))


	def _send (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


	def close (self) -> None:

		"""Close the MIDI output. Clicks still queued on the clock are dropped."""

		if self.midi_out is not None:
			self.midi_out.close()
			self.midi_out = None
			logger.info(f"Closed MIDI output: {self.output_device_name}")


@dataclasses.dataclass (frozen=True)
class ClickRecord:

	"""One click captured by ``RecordingEmitter``."""

	start_time: float
	accented: bool
	volume: float


class RecordingEmitter:

	"""
	Emitter that remembers every click so it can be inspected or saved.
	"""

	def __init__ (
		self,
		accent_note: int = metronome.constants.METRONOME_BELL,
		note: int = metronome.constants.METRONOME_CLICK,
		channel: int = metronome.constants.GM_DRUM_CHANNEL
	) -> None:

		self.clicks: typing.List[ClickRecord] = []
		self.accent_note = accent_note
		self.note = note
		self.channel = channel


	def click (self, start_time: float, accented: bool, volume: float) -> None:

		self.clicks.append(ClickRecord(start_time=start_time, accented=accented, volume=volume))


	def to_midi_file (self) -> mido.MidiFile:

		"""Build a type 1 MIDI file holding every recorded click.

		Times are measured from the first click. The file is written at a
		fixed tempo and click times are converted to ticks at that tempo, so
		the absolute timing is kept even when the metronome tempo changed.
		"""

		mid = mido.MidiFile(type=1)
		mid.ticks_per_beat = metronome.constants.MIDI_TICKS_PER_BEAT

		track = mido.MidiTrack()
		mid.tracks.append(track)

		file_tempo = mido.bpm2tempo(metronome.constants.MIDI_FILE_BPM)
		track.append(mido.MetaMessage('set_tempo', tempo=file_tempo, time=0))

		if not self.clicks:
			return mid

		origin = min(record.start_time for record in self.clicks)
		timed: typing.List[typing.Tuple[float, int, mido.Message]] = []

		for record in self.clicks:

			velocity = volume_to_velocity(record.volume)

			if velocity == 0:
				continue

			note = self.accent_note if record.accented else self.note
			start = record.start_time - origin

			# Sort key puts note offs before note ons at the same instant.
			timed.append((start, 1, mido.Message('note_on', channel=self.channel, note=note, velocity=velocity)))
			timed.append((start + metronome.constants.CLICK_DURATION, 0, mido.Message('note_off', channel=self.channel, note=note, velocity=0)))

		timed.sort(key=lambda item: (item[0], item[1]))

		last_tick = 0

		for seconds, _, message in timed:

			tick = int(round(mido.second2tick(seconds, mid.ticks_per_beat, file_tempo)))
			message.time = max(0, tick - last_tick)
			track.append(message)
			last_tick = max(last_tick, tick)

		return mid


	def save (self, filename: str) -> None:

		"""Save the recorded clicks as a standard MIDI file."""

		mid = self.to_midi_file()

		logger.info(f"Saving {len(self.clicks)} clicks to {filename}...")

		mid.save(filename)

		logger.info(f"Saved {filename}")
