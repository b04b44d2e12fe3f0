# /cry_match/domain/session.py

import threading
from enum import Enum


class ReferenceState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"


class CaptureState(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    CAPTURED = "captured"
    SCORED = "scored"


class RecordingSession:
    def __init__(self, entity_id):
        """
        Starea unei sesiuni de imitație pentru o singură entitate.

        Sesiunea aparține exclusiv lui RecordingSessionManager; toate tranzițiile se fac
        sub `lock`.
        :param entity_id: identificatorul entității (cheia sesiunii)
        """
        self.entity_id = entity_id
        self.lock = threading.RLock()
        self.reference_state = ReferenceState.IDLE
        self.capture_state = CaptureState.IDLE
        self.reference = None
        self.capture = None
        self.playback = None
        self.score = None
        self.error = None
        self.finalizing = False
        self.released = False

    @property
    def is_recording(self):
        return self.capture_state is CaptureState.RECORDING

    @property
    def has_attempt(self):
        # există un handle de redare doar după o captare completă
        return self.playback is not None

    def handles(self):
        """
        Handle-urile deținute, în ordinea eliberării: captare, redare, referință.
        Același obiect nu apare de două ori.
        """
        ordered = []
        for handle in (self.capture, self.playback, self.reference):
            if handle is not None and not any(handle is seen for seen in ordered):
                ordered.append(handle)
        return ordered

    def __repr__(self):
        return (f"RecordingSession(entity_id={self.entity_id!r}, reference={self.reference_state.value}, "
                f"capture={self.capture_state.value}, score={self.score})")
