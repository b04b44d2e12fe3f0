# /cry_match/domain/audio_buffer.py

import numpy as np


class AudioBuffer:
    def __init__(self, data, sample_rate):
        """
        Clasa AudioBuffer surprinde o înregistrare audio mono, imuabilă după creare.

        :param data: eșantioanele semnalului (orice secvență numerică); se copiază într-un
        numpy array float64 marcat read-only, astfel încât consumatorii doar citesc din el
        :param sample_rate: rata de eșantionare (Hz)
        """
        samples = np.array(data, dtype=np.float64)
        if samples.ndim == 2 and samples.shape[1] == 1:
            # sounddevice livrează (frames, 1) pentru un singur canal
            samples = samples[:, 0]
        if samples.ndim != 1:
            raise ValueError(f"Se acceptă doar semnal mono, s-a primit forma {samples.shape}")
        if sample_rate <= 0:
            raise ValueError(f"Rata de eșantionare invalidă: {sample_rate}")

        samples.setflags(write=False)
        self._data = samples
        self._sample_rate = int(sample_rate)

    @property
    def data(self):
        return self._data

    @property
    def sample_rate(self):
        return self._sample_rate

    @property
    def duration(self):
        return len(self._data) / self._sample_rate

    def head(self, n):
        """
        Returnează primele min(n, len) eșantioane, ca view read-only.
        """
        return self._data[:max(0, n)]

    def __len__(self):
        return len(self._data)

    def __repr__(self):
        return f"AudioBuffer(samples={len(self._data)}, sample_rate={self._sample_rate})"
