"""Metronome configuration.

``MetronomeConfig`` and its two optional policies are plain dataclasses that
validate themselves on construction, so a bad tempo or bar length fails here
rather than producing a scheduler that never fires or never stops.

File-based configuration is YAML::

    metronome:
      tempo: 120
      beats_per_bar: 4
      volume: 80
      max_beats: 32       # optional
      beat_interval: 4    # optional
    midi:
      device_name: null
      channel: 9
    osc:
      enabled: false
      host: 127.0.0.1
      port: 9001
    render:
      max_minutes: 60
"""

import dataclasses
import logging
import numbers
import os
import typing

import yaml

import metronome.constants

if typing.TYPE_CHECKING:
	from metronome.state import BeatEvent, BeatIntervalEvent


logger = logging.getLogger(__name__)


def validate_tempo (tempo: float) -> float:

	"""Return *tempo* as a float, or raise ``ValueError`` if it is not a positive number."""

	if isinstance(tempo, bool) or not isinstance(tempo, numbers.Real):
		raise ValueError(f"Tempo must be a number, got {tempo!r}")

	if tempo <= 0:
		raise ValueError("Tempo must be positive")

	return float(tempo)


def validate_volume (volume: float) -> float:

	"""Return *volume* as a float, or raise ``ValueError`` if it is outside 0-100."""

	if isinstance(volume, bool) or not isinstance(volume, numbers.Real):
		raise ValueError(f"Volume must be a number, got {volume!r}")

	if not 0 <= volume <= metronome.constants.MAX_VOLUME:
		raise ValueError(f"Volume must be between 0 and {metronome.constants.MAX_VOLUME:.0f}")

	return float(volume)


def _validate_count (name: str, count: int) -> None:

	if isinstance(count, bool) or not isinstance(count, numbers.Integral):
		raise ValueError(f"{name} must be an integer, got {count!r}")

	if count <= 0:
		raise ValueError(f"{name} must be positive")


@dataclasses.dataclass
class MaxBeatsConfig:

	"""
	Stop automatically after ``count`` beats, then call ``on_end``.
	"""

	count: int
	on_end: typing.Optional[typing.Callable[[], typing.Any]] = None

	def __post_init__ (self) -> None:
		_validate_count("Max beats count", self.count)


@dataclasses.dataclass
class BeatIntervalConfig:

	"""
	Call ``on_beat_interval`` on the first beat of every ``count``-beat interval.

	With ``count=4`` the callback fires on beats 1, 5, 9, 13 and so on,
	provided each of those beats is also the first beat of a bar.
	"""

	count: int
	on_beat_interval: typing.Callable[["BeatIntervalEvent"], typing.Any]

	def __post_init__ (self) -> None:
		_validate_count("Beat interval count", self.count)


@dataclasses.dataclass
class MetronomeConfig:

	"""
	Everything needed to build a metronome.

	Parameters:
		tempo: Beats per minute, greater than zero.
		beats_per_bar: Bar length in beats. Fixed for the life of the metronome.
		volume: Click volume from 0 to 100.
		on_beat_start: Called with a ``BeatEvent`` at the moment each beat starts.
		max_beats: Optional auto-stop policy.
		beat_interval: Optional interval callback policy.
	"""

	tempo: float
	beats_per_bar: int
	volume: float = 100.0
	on_beat_start: typing.Optional[typing.Callable[["BeatEvent"], typing.Any]] = None
	max_beats: typing.Optional[MaxBeatsConfig] = None
	beat_interval: typing.Optional[BeatIntervalConfig] = None

	def __post_init__ (self) -> None:

		self.tempo = validate_tempo(self.tempo)
		self.volume = validate_volume(self.volume)
		_validate_count("Beats per bar", self.beats_per_bar)


def load_config (config_path: str = 'config.yaml') -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		data = yaml.safe_load(f)

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return data


def config_from_dict (
	settings: typing.Dict[str, typing.Any],
	on_beat_start: typing.Optional[typing.Callable[["BeatEvent"], typing.Any]] = None,
	on_beat_interval: typing.Optional[typing.Callable[["BeatIntervalEvent"], typing.Any]] = None,
	on_end: typing.Optional[typing.Callable[[], typing.Any]] = None
) -> MetronomeConfig:

	"""Build a ``MetronomeConfig`` from the ``metronome:`` section of loaded settings.

	Callbacks cannot be expressed in YAML, so they are passed alongside.
	An interval given without an ``on_beat_interval`` callback still counts
	intervals; listeners can be attached later through ``Metronome.events``.
	"""

	section = settings.get('metronome', {}) or {}

	max_beats: typing.Optional[MaxBeatsConfig] = None
	beat_interval: typing.Optional[BeatIntervalConfig] = None

	if section.get('max_beats') is not None:
		max_beats = MaxBeatsConfig(count=section['max_beats'], on_end=on_end)

	if section.get('beat_interval') is not None:
		beat_interval = BeatIntervalConfig(
			count = section['beat_interval'],
			on_beat_interval = on_beat_interval if on_beat_interval is not None else _ignore_interval
		)

	return MetronomeConfig(
		tempo = section.get('tempo', 120),
		beats_per_bar = section.get('beats_per_bar', 4),
		volume = section.get('volume', 100),
		on_beat_start = on_beat_start,
		max_beats = max_beats,
		beat_interval = beat_interval
	)


def _ignore_interval (event: "BeatIntervalEvent") -> None:

	return None
