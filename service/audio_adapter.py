# /cry_match/service/audio_adapter.py

import itertools
from abc import ABC, abstractmethod
from enum import Enum


class HandleKind(Enum):
    REFERENCE = "reference"
    CAPTURE = "capture"
    PLAYBACK = "playback"


class AudioEventKind(Enum):
    DECODED = "decoded"
    DECODE_FAILED = "decode_failed"
    CAPTURE_FINISHED = "capture_finished"
    CAPTURE_FAILED = "capture_failed"
    PLAYBACK_FINISHED = "playback_finished"


_handle_ids = itertools.count(1)


class AudioHandle:
    def __init__(self, kind, key):
        """
        Referință opacă la o resursă audio deținută de adaptor.
        :param kind: HandleKind
        :param key: cheia sesiunii (id-ul entității) căreia îi aparține resursa
        """
        self.id = next(_handle_ids)
        self.kind = kind
        self.key = key

    def __repr__(self):
        return f"AudioHandle(#{self.id}, {self.kind.value}, key={self.key!r})"


class AudioEvent:
    def __init__(self, kind, handle, payload=None, error=None):
        """
        Notificare trimisă de adaptor către manager.
        :param payload: bytes-urile captate, pentru CAPTURE_FINISHED
        :param error: excepția, pentru DECODE_FAILED / CAPTURE_FAILED
        """
        self.kind = kind
        self.handle = handle
        self.payload = payload
        self.error = error

    @property
    def key(self):
        return self.handle.key

    def __repr__(self):
        return f"AudioEvent({self.kind.value}, {self.handle!r})"


class AudioSourceAdapter(ABC):
    """
    Granița dintre motorul de sesiuni și stiva audio concretă.

    Operațiile lente (decodarea, finalizarea captării, sfârșitul redării) nu întorc
    rezultatul direct: adaptorul trimite un AudioEvent către listener-ul înregistrat,
    posibil de pe alt thread.
    """

    # Câte secunde trebuie așteptat după CAPTURE_FINISHED până când get_samples()
    # poate citi înregistrarea. 0 = datele sunt lizibile imediat,
    # None = adaptorul nu știe; se folosește Config.capture_settle_delay.
    settle_delay = None

    def __init__(self):
        self._listener = None

    def set_listener(self, listener):
        self._listener = listener

    def emit(self, event):
        if self._listener is not None:
            self._listener(event)

    @abstractmethod
    def decode(self, url, key):
        """Pornește decodarea clipului de la `url`; întoarce imediat handle-ul."""

    @abstractmethod
    def create_capture_session(self, key):
        ...

    @abstractmethod
    def start_capture(self, handle):
        ...

    @abstractmethod
    def stop_capture(self, handle):
        """Oprește captarea; bytes-urile sosesc prin CAPTURE_FINISHED."""

    @abstractmethod
    def create_playback_from_bytes(self, raw, key):
        ...

    @abstractmethod
    def play(self, handle):
        """Redă de la început resursa decodată."""

    @abstractmethod
    def stop(self, handle):
        ...

    @abstractmethod
    def release(self, handle):
        """Eliberează resursa. Apelurile repetate pentru același handle nu au efect."""

    @abstractmethod
    def get_samples(self, handle):
        """AudioBuffer-ul decodat al resursei sau None dacă nu e (încă) disponibil."""

    def close(self):
        """Eliberează contextul audio comun al adaptorului."""
