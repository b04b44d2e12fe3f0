# /cry_match/domain/features.py

from dataclasses import dataclass

import numpy as np

from domain.errors import EmptyInputError, TransformFailureError

DEFAULT_ANALYSIS_WINDOW = 4096


@dataclass(frozen=True)
class FeatureSet:
    """
    Cei patru descriptori scalari calculați dintr-un AudioBuffer.
    :param rms: amplitudinea RMS (loudness), tipic în intervalul 0-1
    :param spectral_centroid: centroidul spectral, în unități de bin FFT
    :param zcr: rata de treceri prin zero, fracție în intervalul 0-1
    :param energy: suma pătratelor eșantioanelor din fereastra de analiză
    """
    rms: float
    spectral_centroid: float
    zcr: float
    energy: float


class FeatureExtractor:
    def __init__(self, window_size=DEFAULT_ANALYSIS_WINDOW):
        """
        Extrage descriptorii din primele `window_size` eșantioane ale unui buffer mono.
        :param window_size: dimensiunea ferestrei de analiză, putere a lui 2 (implicit 4096).
        Transformata folosită (np.fft.rfft) acceptă orice lungime, deci un buffer mai scurt
        decât fereastra se analizează exact cu eșantioanele disponibile, fără padding.
        """
        if window_size <= 0 or window_size & (window_size - 1):
            raise ValueError(f"Fereastra de analiză trebuie să fie o putere a lui 2, nu {window_size}")
        self.window_size = window_size

    def extract(self, buffer):
        """
        Calculează FeatureSet-ul pentru un AudioBuffer.
        :param buffer: AudioBuffer mono
        :return: FeatureSet
        :raises EmptyInputError: bufferul nu conține eșantioane
        :raises TransformFailureError: fereastra conține valori ne-finite sau FFT-ul a eșuat
        """
        if buffer is None or len(buffer) == 0:
            raise EmptyInputError("Bufferul audio este gol.")

        window = buffer.head(self.window_size)
        if not np.all(np.isfinite(window)):
            raise TransformFailureError("Fereastra de analiză conține valori NaN sau infinite.")

        try:
            magnitudes = np.abs(np.fft.rfft(window))
        except (ValueError, TypeError) as e:
            raise TransformFailureError(f"Transformata Fourier a eșuat: {e}") from e

        return FeatureSet(
            rms=self._rms(window),
            spectral_centroid=self._spectral_centroid(magnitudes),
            zcr=self._zero_crossing_rate(window),
            energy=float(np.sum(window * window)),
        )

    @staticmethod
    def _rms(window):
        return float(np.sqrt(np.mean(window * window)))

    @staticmethod
    def _spectral_centroid(magnitudes):
        total = float(np.sum(magnitudes))
        if total <= 0.0:
            return 0.0
        bins = np.arange(len(magnitudes), dtype=np.float64)
        return float(np.sum(bins * magnitudes) / total)

    @staticmethod
    def _zero_crossing_rate(window):
        if len(window) < 2:
            return 0.0
        # -0.0 se consideră pozitiv, ca 0.0
        signs = window < 0
        # fracția perechilor adiacente cu semn diferit
        return float(np.mean(signs[1:] != signs[:-1]))
