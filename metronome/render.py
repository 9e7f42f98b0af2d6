import logging
import typing

import metronome.clock
import metronome.config
import metronome.constants
import metronome.emitters
import metronome.scheduler


logger = logging.getLogger(__name__)


# Virtual seconds advanced per step while rendering.
RENDER_STEP = 0.1


def render (
	config: metronome.config.MetronomeConfig,
	filename: str = "metronome.mid",
	max_minutes: typing.Optional[float] = 60.0,
	lookahead: float = metronome.constants.DEFAULT_LOOKAHEAD
) -> metronome.emitters.RecordingEmitter:

	"""Render a metronome run to a MIDI file without real-time playback.

	The metronome runs against a ``SimulatedClock`` as fast as possible. All
	callbacks in *config* fire exactly as they would live, in virtual time.

	Parameters:
		config: The metronome to render.
		filename: Output MIDI filename.
		max_minutes: Safety cap on rendered time. Pass ``None`` to disable it,
			in which case ``config.max_beats`` must be set.
		lookahead: Scheduling window, as for ``Metronome``.

	Returns:
		The ``RecordingEmitter`` holding the rendered clicks.

	Raises:
		ValueError: If neither ``config.max_beats`` nor *max_minutes* limits
			the render.
	"""

	if config.max_beats is None and max_minutes is None:
		raise ValueError("Render needs a limit: set max_beats in the config or pass max_minutes")

	if max_minutes is not None and max_minutes <= 0:
		raise ValueError("max_minutes must be positive")

	clock = metronome.clock.SimulatedClock()
	recorder = metronome.emitters.RecordingEmitter()
	target = metronome.scheduler.Metronome(config, emitter=recorder, clock=clock, lookahead=lookahead)

	limit_seconds = max_minutes * metronome.constants.SECONDS_PER_MINUTE if max_minutes is not None else None

	target.start()

	while target.playback_state != metronome.constants.PLAYBACK_STOPPED:

		if limit_seconds is not None and clock.now() >= limit_seconds:
			logger.warning(
				f"Render stopped at {max_minutes:.1f}-minute safety limit. "
				f"Pass max_minutes=None with max_beats set to remove this limit."
			)
			target.stop()
			break

		clock.advance(RENDER_STEP)

	recorder.save(filename)

	return recorder
