import argparse
import asyncio
import logging
import typing

import metronome.clock
import metronome.config
import metronome.constants
import metronome.emitters
import metronome.osc
import metronome.render
import metronome.scheduler
import metronome.state


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _log_beat (event: metronome.state.BeatEvent) -> None:

	logger.info(f"Beat {event.beat_number} (total {event.total_beats})")


def _log_interval (event: metronome.state.BeatIntervalEvent) -> None:

	logger.info(f"Interval {event.current_interval}")


def _log_end () -> None:

	logger.info("Max beats reached")


async def _run (config: metronome.config.MetronomeConfig, settings: typing.Dict[str, typing.Any]) -> None:

	"""
	Play the metronome live through a MIDI click until it stops.
	"""

	midi_settings = settings.get('midi', {}) or {}
	osc_settings = settings.get('osc', {}) or {}

	clock = metronome.clock.AsyncioClock()

	emitter = metronome.emitters.MidiClickEmitter(
		clock,
		output_device_name = midi_settings.get('device_name'),
		channel = midi_settings.get('channel', metronome.constants.GM_DRUM_CHANNEL)
	)

	player = metronome.scheduler.Metronome(config, emitter=emitter, clock=clock)
	broadcaster: typing.Optional[metronome.osc.OscBeatBroadcaster] = None

	if osc_settings.get('enabled', False):
		broadcaster = metronome.osc.OscBeatBroadcaster(
			player,
			host = osc_settings.get('host', '127.0.0.1'),
			port = osc_settings.get('port', 9001)
		)

	try:
		await player.play()
	finally:
		if broadcaster is not None:
			broadcaster.close()
		emitter.close()


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the metronome application.
	"""

	parser = argparse.ArgumentParser(prog="metronome", description="Headless metronome with a MIDI click.")
	parser.add_argument("--config", default="config.yaml", help="YAML config file (default: config.yaml)")
	parser.add_argument("--render", metavar="FILE", default=None, help="Render to a MIDI file instead of playing live")
	args = parser.parse_args(argv)

	settings = metronome.config.load_config(args.config)

	config = metronome.config.config_from_dict(
		settings,
		on_beat_start = _log_beat,
		on_beat_interval = _log_interval,
		on_end = _log_end
	)

	if args.render is not None:
		render_settings = settings.get('render', {}) or {}
		metronome.render.render(config, filename=args.render, max_minutes=render_settings.get('max_minutes', 60.0))
		return

	logger.info("Metronome starting... (Ctrl+C to stop)")

	try:
		asyncio.run(_run(config, settings))
	except KeyboardInterrupt:
		logger.info("Stopping...")


if __name__ == "__main__":
	main()
