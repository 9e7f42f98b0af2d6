"""Beat event jitter benchmark.

Runs the metronome against the asyncio clock for a number of bars and
measures how late each ``on_beat_start`` callback arrives compared with the
beat's scheduled time.

Usage:
    python benchmarks/beat_jitter.py [--bpm BPM] [--bars N] [--beats-per-bar N]
                                     [--lookahead SECONDS] [--device DEVICE_NAME]
                                     [--compare]

Options:
    --bpm BPM            Tempo in BPM (default: 120)
    --bars N             Number of bars to measure (default: 16)
    --beats-per-bar N    Bar length (default: 4)
    --lookahead SECONDS  Scheduling window (default: 0.025)
    --device NAME        Click on a MIDI output while measuring (default: silent)
    --compare            Run with a 25 ms and a 100 ms lookahead and compare
"""

import argparse
import asyncio
import logging
import statistics
import typing

# Suppress metronome logging during benchmark - we want clean output.
logging.basicConfig(level=logging.ERROR)

import metronome
import metronome.clock
import metronome.constants
import metronome.emitters


def _run_benchmark (
	bpm: float,
	bars: int,
	beats_per_bar: int,
	lookahead: float,
	device_name: typing.Optional[str],
) -> typing.List[float]:

	"""Play *bars* bars and return per-beat lateness (seconds)."""

	jitter_log: typing.List[float] = []

	async def _run () -> None:

		clock = metronome.clock.AsyncioClock()

		def on_beat (event: metronome.BeatEvent) -> None:
			jitter_log.append(clock.now() - event.time)

		emitter: metronome.emitters.SoundEmitter

		if device_name is not None:
			emitter = metronome.emitters.MidiClickEmitter(clock, output_device_name=device_name)
		else:
			emitter = metronome.emitters.SilentEmitter()

		config = metronome.MetronomeConfig(
			tempo = bpm,
			beats_per_bar = beats_per_bar,
			on_beat_start = on_beat,
			max_beats = metronome.MaxBeatsConfig(count=bars * beats_per_bar),
		)

		player = metronome.Metronome(config, emitter=emitter, clock=clock, lookahead=lookahead)

		try:
			await player.play()
		finally:
			if isinstance(emitter, metronome.emitters.MidiClickEmitter):
				emitter.close()

	asyncio.run(_run())

	return jitter_log


def _print_report (
	jitter: typing.List[float],
	bpm: float,
	bars: int,
	lookahead: float,
	label: str = "",
) -> None:

	if not jitter:
		print("No jitter data collected.")
		return

	ms = [j * 1000 for j in jitter]

	mean_ms   = statistics.mean(ms)
	median_ms = statistics.median(ms)
	stdev_ms  = statistics.stdev(ms) if len(ms) > 1 else 0.0
	p95_ms    = sorted(ms)[int(len(ms) * 0.95)]
	max_ms    = max(ms)

	# Lateness of the last beat against the first shows whether error accumulates.
	drift_ms  = ms[-1] - ms[0] if len(ms) > 1 else 0.0

	beat_ms = metronome.constants.SECONDS_PER_MINUTE / bpm * 1000
	header = f"  {label}  " if label else " "

	print(f"\nBeat Jitter Benchmark{header}- {bars} bars at {bpm:.0f} BPM (lookahead {lookahead * 1000:.0f} ms)")
	print(f"{'─' * 62}")
	print(f"  Beats measured  : {len(ms)}")
	print(f"  Beat interval   : {beat_ms:.3f} ms")
	print(f"{'─' * 62}")
	print(f"  Mean lateness   : {mean_ms:>8.3f} ms")
	print(f"  Median lateness : {median_ms:>8.3f} ms")
	print(f"  Std deviation   : {stdev_ms:>8.3f} ms")
	print(f"  P95 lateness    : {p95_ms:>8.3f} ms")
	print(f"  Max lateness    : {max_ms:>8.3f} ms")
	print(f"  Drift           : {drift_ms:>+8.3f} ms  (first beat to last)")
	print(f"{'─' * 62}")

	if mean_ms < 0.5:
		rating = "Very good  (sub-500 μs, well below human perception)"
	elif mean_ms < 2.0:
		rating = "Good       (< 2 ms, at or below human perception threshold)"
	elif mean_ms < 5.0:
		rating = "Fair       (2-5 ms, visuals may lag the click slightly)"
	else:
		rating = "Poor       (> 5 ms, noticeable timing issues likely)"

	print(f"  Rating          : {rating}")
	print()


def main () -> None:

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--bpm",           type=float, default=120,   help="Tempo in BPM (default: 120)")
	parser.add_argument("--bars",          type=int,   default=16,    help="Bars to measure (default: 16)")
	parser.add_argument("--beats-per-bar", type=int,   default=4,     help="Bar length (default: 4)")
	parser.add_argument("--lookahead",     type=float, default=metronome.constants.DEFAULT_LOOKAHEAD, help="Scheduling window in seconds")
	parser.add_argument("--device",        type=str,   default=None,  help="MIDI output device name")
	parser.add_argument("--compare",       action="store_true",        help="Compare a 25 ms and a 100 ms lookahead")
	args = parser.parse_args()

	if args.compare:
		for lookahead in (0.025, 0.1):
			print(f"\nRunning with {lookahead * 1000:.0f} ms lookahead ...")
			jitter = _run_benchmark(args.bpm, args.bars, args.beats_per_bar, lookahead, args.device)
			_print_report(jitter, args.bpm, args.bars, lookahead, label=f"[{lookahead * 1000:.0f} ms]")

	else:
		jitter = _run_benchmark(args.bpm, args.bars, args.beats_per_bar, args.lookahead, args.device)
		_print_report(jitter, args.bpm, args.bars, args.lookahead)


if __name__ == "__main__":
	main()
