"""Constants shared by the scheduler and the bundled collaborators."""

# How far ahead of "now" the scheduler queues beats, in seconds.
DEFAULT_LOOKAHEAD = 0.025

SECONDS_PER_MINUTE = 60.0

MAX_VOLUME = 100.0

# Length of a single click, in seconds.
CLICK_DURATION = 0.03

# General MIDI percussion lives on channel 10 (0-indexed channel 9).
GM_DRUM_CHANNEL = 9

# GM Level 1 percussion keys used for the click.
METRONOME_CLICK = 33
METRONOME_BELL = 34

MIDI_MAX_VELOCITY = 127

# Resolution used when writing recordings to a MIDI file.
MIDI_TICKS_PER_BEAT = 480

# Recordings are written at a fixed file tempo so absolute click times survive
# tempo changes during the run.
MIDI_FILE_BPM = 120.0

PLAYBACK_STOPPED = "stopped"
PLAYBACK_PLAYING = "playing"
PLAYBACK_PAUSED = "paused"
