"""Practice routine: speed up by 4 BPM every two bars.

The interval callback fires on the first beat of every eight-beat interval,
which is where the tempo steps up. Runs in virtual time and writes the
clicks to practice.mid so the result can be checked in a DAW.
"""

import logging

import metronome
import metronome.clock
import metronome.emitters

logging.basicConfig(level=logging.INFO)

START_BPM = 80
STEP_BPM = 4
TOTAL_BEATS = 64

clock = metronome.clock.SimulatedClock()
recorder = metronome.emitters.RecordingEmitter()


def on_interval (event: metronome.BeatIntervalEvent) -> None:

	tempo = START_BPM + STEP_BPM * event.current_interval
	player.update_config(tempo=tempo)
	logging.info(f"Interval {event.current_interval}: {tempo} BPM")


config = metronome.MetronomeConfig(
	tempo = START_BPM,
	beats_per_bar = 4,
	max_beats = metronome.MaxBeatsConfig(count=TOTAL_BEATS),
	beat_interval = metronome.BeatIntervalConfig(count=8, on_beat_interval=on_interval)
)

player = metronome.Metronome(config, emitter=recorder, clock=clock)

if __name__ == "__main__":

	player.start()

	while player.playback_state != "stopped":
		clock.advance(0.1)

	recorder.save("practice.mid")
