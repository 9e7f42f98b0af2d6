"""
Metronome - a headless, drift-free beat scheduler for Python.

A ``Metronome`` produces a precisely timed sequence of beats against a
clock, asks a sound emitter to click on each one, and tells your code the
moment every beat starts. It has no user interface of its own; wire its
events into whatever needs to follow the beat.

What it does:

- **Lookahead scheduling.** Clicks are queued a short window ahead of real
  time so polling granularity never makes them late, and beat times are
  accumulated from the first beat so there is no long-term drift.
- **On-time events.** ``on_beat_start`` fires when the beat sounds, not when
  it was queued, with the 1-based beat in the bar and the running total.
- **Intervals and limits.** ``BeatIntervalConfig`` fires a callback on the
  first beat of every N-beat interval (new bar, new chord, next exercise).
  ``MaxBeatsConfig`` stops after N beats and calls ``on_end``.
- **Transport.** ``start()``, ``pause()``, ``resume()``, ``stop()`` plus
  live ``update_config(tempo=..., volume=...)`` and ``get_state()``.
- **Pluggable collaborators.** Any clock with ``now/after/cancel`` and any
  emitter with ``click()``. Bundled: an asyncio clock, a simulated clock,
  a General MIDI click, a recorder that writes MIDI files, and OSC beat
  broadcast.

Minimal example:

    ```python
    import asyncio
    import metronome

    def on_beat (event):
        print(f"beat {event.beat_number} ({event.total_beats} total)")

    config = metronome.MetronomeConfig(
        tempo = 120,
        beats_per_bar = 4,
        volume = 80,
        on_beat_start = on_beat,
        max_beats = metronome.MaxBeatsConfig(count=16),
    )

    asyncio.run(metronome.Metronome(config).play())
    ```

Package-level exports: ``Metronome``, ``create_metronome``,
``MetronomeConfig``, ``MaxBeatsConfig``, ``BeatIntervalConfig``,
``BeatEvent``, ``BeatIntervalEvent``, ``MetronomeState``.
"""

import metronome.config
import metronome.scheduler
import metronome.state


Metronome = metronome.scheduler.Metronome
create_metronome = metronome.scheduler.create_metronome
MetronomeConfig = metronome.config.MetronomeConfig
MaxBeatsConfig = metronome.config.MaxBeatsConfig
BeatIntervalConfig = metronome.config.BeatIntervalConfig
BeatEvent = metronome.state.BeatEvent
BeatIntervalEvent = metronome.state.BeatIntervalEvent
MetronomeState = metronome.state.MetronomeState
