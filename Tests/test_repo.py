import io
import unittest

import numpy as np
import scipy.io.wavfile as wav

from domain.audio_buffer import AudioBuffer
from domain.errors import DecodeError
from repo.audio_repo import AudioRepository

class TestAudioRepository(unittest.TestCase):

    def setUp(self):
        self.sample_rate = 44100
        self.data = np.random.rand(self.sample_rate).astype(np.float64) * 2 - 1
        self.buffer = AudioBuffer(self.data, self.sample_rate)

    def test_encode_and_decode_wav(self):
        raw = AudioRepository.encode_wav(self.buffer)
        self.assertEqual(raw[:4], b"RIFF")

        loaded = AudioRepository.decode_bytes(raw)
        self.assertIsInstance(loaded, AudioBuffer)
        self.assertEqual(loaded.sample_rate, self.sample_rate)
        self.assertEqual(len(loaded), len(self.data))
        np.testing.assert_almost_equal(loaded.data, self.data, decimal=1)

    def test_decode_stereo_wav_is_mixed_to_mono(self):
        stereo = np.stack([np.full(100, 16384), np.zeros(100)], axis=1).astype(np.int16)
        out = io.BytesIO()
        wav.write(out, 8000, stereo)

        loaded = AudioRepository.decode_bytes(out.getvalue())
        self.assertEqual(len(loaded), 100)
        np.testing.assert_allclose(loaded.data, 0.25)

    def test_decode_float_wav(self):
        out = io.BytesIO()
        wav.write(out, 16000, np.full(10, 0.5, dtype=np.float32))
        loaded = AudioRepository.decode_bytes(out.getvalue())
        np.testing.assert_allclose(loaded.data, 0.5)

    def test_decode_empty_raises(self):
        with self.assertRaises(DecodeError):
            AudioRepository.decode_bytes(b"")

    def test_decode_garbage_raises(self):
        with self.assertRaises(DecodeError):
            AudioRepository.decode_bytes(b"RIFF\x00\x00not really a wave file")

    def test_encode_clips_out_of_range(self):
        raw = AudioRepository.encode_wav(AudioBuffer([2.0, -2.0], 8000))
        _, data = wav.read(io.BytesIO(raw))
        self.assertEqual(list(data), [32767, -32767])

if __name__ == '__main__':
    unittest.main()
