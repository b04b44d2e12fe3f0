import sounddevice as sd

from domain.errors import CaptureError


class AudioDeviceManager:
    """
    Gestionează dispozitivele audio: verifică existența unui microfon și a unei ieșiri.
    """

    def __init__(self, config):
        self.config = config

    def check_audio_devices(self):
        """
        Verifică disponibilitatea dispozitivelor audio.
        :return: Tuple (input_devices, output_devices, error_message)
        """
        try:
            devices = sd.query_devices()
            input_devices = []
            output_devices = []

            for i, device in enumerate(devices):
                if device['max_input_channels'] > 0:
                    input_devices.append((i, device['name']))
                if device['max_output_channels'] > 0:
                    output_devices.append((i, device['name']))

            if not input_devices:
                return None, None, "Nu s-au găsit dispozitive de intrare audio."
            if not output_devices:
                return None, None, "Nu s-au găsit dispozitive de ieșire audio."

            return input_devices, output_devices, None

        except Exception as e:
            return None, None, f"Eroare la verificarea dispozitivelor audio: {str(e)}"

    def ensure_input_available(self):
        """
        Verifică dacă dispozitivul de intrare configurat poate capta mono la rata configurată.
        :raises CaptureError: nu există microfon sau accesul la el a eșuat
        """
        inputs, _, error = self.check_audio_devices()
        if error:
            raise CaptureError(error)

        try:
            sd.check_input_settings(
                device=self.config.input_device,
                channels=1,
                samplerate=self.config.sample_rate,
            )
        except Exception as e:
            raise CaptureError(f"Microfonul nu poate fi folosit: {e}") from e
        return inputs
