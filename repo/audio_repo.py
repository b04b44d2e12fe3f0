# /cry_match/repo/audio_repo.py

import io

import librosa
import numpy as np
import scipy.io.wavfile as wav

from domain.audio_buffer import AudioBuffer
from domain.errors import DecodeError


class AudioRepository:
    @staticmethod
    def decode_bytes(raw):
        """
        Decodează un clip audio (WAV, OGG, FLAC, MP3) într-un AudioBuffer mono.
        WAV-urile trec prin scipy, restul formatelor prin librosa.
        :param raw: conținutul fișierului, ca bytes
        :raises DecodeError: conținut gol sau format nerecunoscut
        """
        if not raw:
            raise DecodeError("Nu există date audio de decodat.")

        try:
            if raw[:4] == b"RIFF":
                sr, data = wav.read(io.BytesIO(raw))
                data = AudioRepository._to_float(data)
            else:
                data, sr = librosa.load(io.BytesIO(raw), sr=None, mono=True)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Clipul audio nu a putut fi decodat: {e}") from e

        if data.ndim == 2:
            # stereo -> mono prin mediere
            data = data.mean(axis=1)
        return AudioBuffer(data, sr)

    @staticmethod
    def encode_wav(buffer):
        """
        Codifică un AudioBuffer ca WAV int16, în memorie.
        """
        out = io.BytesIO()
        wav.write(out, buffer.sample_rate, np.int16(np.clip(buffer.data, -1.0, 1.0) * 32767))
        return out.getvalue()

    @staticmethod
    def _to_float(data):
        if data.dtype == np.int16:
            return data.astype(np.float64) / 32768.0
        if data.dtype == np.int32:
            return data.astype(np.float64) / 2147483648.0
        if data.dtype == np.uint8:
            return (data.astype(np.float64) - 128.0) / 128.0
        if np.issubdtype(data.dtype, np.floating):
            return data.astype(np.float64)
        raise DecodeError(f"Format de eșantion WAV nesuportat: {data.dtype}")
