import logging
import typing

import mido


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output port for the click.

	If ``device_name`` is given, only that port is opened. Otherwise the
	available ports are listed: a single port is used automatically, several
	ports prompt for a choice on the console.

	Returns:
		A tuple of (device_name, midi_out) or (None, None) when nothing could be opened.
	"""

	try:
		outputs = mido.get_output_names()
		logger.info(f"Available MIDI outputs: {outputs}")

		if not outputs:
			logger.error("No MIDI output devices found.")
			return None, None

		if device_name is not None:

			if device_name not in outputs:
				logger.error(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
				return None, None

			midi_out = mido.open_output(device_name)
			logger.info(f"Opened MIDI output: {device_name}")
			return device_name, midi_out

		if len(outputs) == 1:
			selected_name = outputs[0]
			midi_out = mido.open_output(selected_name)
			logger.info(f"One MIDI output found - using '{selected_name}'")
			return selected_name, midi_out

		selected_name = _prompt_for_device(outputs)
		midi_out = mido.open_output(selected_name)
		logger.info(f"Opened MIDI output: {selected_name}")

		print(f"\nTip: To skip this prompt, set midi.device_name in config.yaml:\n")
		print(f"  midi:\n    device_name: \"{selected_name}\"\n")

		return selected_name, midi_out

	except (OSError, IOError) as e:
		logger.error(f"Failed to open MIDI output: {e}")
		return None, None


def _prompt_for_device (outputs: typing.List[str]) -> str:

	print("\nAvailable MIDI output devices:\n")

	for i, name in enumerate(outputs, 1):
		print(f"  {i}. {name}")

	print()

	while True:
		try:
			choice = int(input(f"Select a device (1-{len(outputs)}): "))
			if 1 <= choice <= len(outputs):
				return outputs[choice - 1]
		except ValueError:
			pass

		print(f"Enter a number between 1 and {len(outputs)}.")
