import asyncio
import logging

import metronome
import metronome.clock
import metronome.emitters

logging.basicConfig(level=logging.INFO)


def on_beat (event: metronome.BeatEvent) -> None:

	marker = "ONE" if event.beat_number == 1 else str(event.beat_number)
	logging.info(f"{marker:>3}  (beat {event.total_beats})")


def on_end () -> None:

	logging.info("Done.")


async def main () -> None:

	clock = metronome.clock.AsyncioClock()

	# Clicks on the only MIDI output, or prompts when there are several.
	click = metronome.emitters.MidiClickEmitter(clock)

	config = metronome.MetronomeConfig(
		tempo = 96,
		beats_per_bar = 3,
		volume = 80,
		on_beat_start = on_beat,
		max_beats = metronome.MaxBeatsConfig(count=24, on_end=on_end)
	)

	player = metronome.Metronome(config, emitter=click, clock=clock)

	try:
		await player.play()
	finally:
		click.close()


if __name__ == "__main__":

	asyncio.run(main())
