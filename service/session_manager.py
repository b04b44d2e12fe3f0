# /cry_match/service/session_manager.py

import threading

from domain.errors import AnalysisError, AudioError, CaptureError, DecodeError, ResourceReleaseError
from domain.features import FeatureExtractor
from domain.session import CaptureState, RecordingSession, ReferenceState
from domain.similarity import SimilarityScorer
from service.audio_adapter import AudioEventKind


def timer_scheduler(delay, func):
    timer = threading.Timer(delay, func)
    timer.daemon = True
    timer.start()
    return timer


class RecordingSessionManager:
    def __init__(self, adapter, config, extractor=None, scorer=None, scheduler=None):
        """
        Deține câte o sesiune de imitație pentru fiecare entitate și resursele ei audio.

        Toate tranzițiile unei sesiuni se execută sub lock-ul ei; evenimentele adaptorului
        (decodare terminată, captare terminată, redare terminată) intră prin handle_event.
        :param adapter: AudioSourceAdapter
        :param config: Config (analysis_window, capture_settle_delay)
        :param extractor: FeatureExtractor (opțional)
        :param scorer: SimilarityScorer (opțional)
        :param scheduler: funcție (delay, func) care rulează func după delay secunde;
        implicit threading.Timer
        """
        self.adapter = adapter
        self.config = config
        self.extractor = extractor or FeatureExtractor(config.analysis_window)
        self.scorer = scorer or SimilarityScorer()
        self.scheduler = scheduler or timer_scheduler

        self.score_callback = None  # (entity_id, score)
        self.error_callback = None  # (entity_id, error)
        self.state_callback = None  # (entity_id, reference_state, capture_state)

        self._sessions = {}
        self._sessions_lock = threading.Lock()
        self.adapter.set_listener(self.handle_event)

    # --- Proiecții read-only ---

    def has_session(self, entity_id):
        return self._get(entity_id) is not None

    def get_score(self, entity_id):
        session = self._get(entity_id)
        return session.score if session else None

    def scores(self):
        with self._sessions_lock:
            sessions = list(self._sessions.values())
        return {s.entity_id: s.score for s in sessions if s.score is not None}

    def has_reference(self, entity_id):
        session = self._get(entity_id)
        return session is not None and session.reference is not None

    def get_error(self, entity_id):
        session = self._get(entity_id)
        return session.error if session else None

    def get_state(self, entity_id):
        """
        :return: Tuple (reference_state, capture_state) sau None dacă sesiunea nu există
        """
        session = self._get(entity_id)
        if session is None:
            return None
        with session.lock:
            return session.reference_state, session.capture_state

    # --- Comenzi ---

    def play_reference(self, entity_id, clip_url):
        """
        Redă clipul de referință. La primul apel clipul se decodează și redarea pornește
        după evenimentul DECODED; apelurile următoare redau de la început fără re-decodare.
        :return: True dacă redarea a pornit sau urmează să pornească
        """
        if not clip_url:
            print(f"Entitatea {entity_id} nu are clip de referință.")
            return False

        session = self._get_or_create(entity_id)
        with session.lock:
            if session.released:
                return False

            if session.reference is None:
                session.error = None
                try:
                    session.reference = self.adapter.decode(clip_url, entity_id)
                except AudioError as e:
                    self._fail(session, e)
                    return False
                session.reference_state = ReferenceState.LOADING
                self._notify_state(session)
                return True

            if session.reference_state is ReferenceState.LOADING:
                return True

            return self._play_reference_now(session)

    def toggle_recording(self, entity_id):
        """
        Pornește sau oprește captarea. După o captare completă, apelul redă înregistrarea
        în loc să înregistreze din nou, până la reset_session.
        :return: CaptureState-ul sesiunii după apel
        """
        session = self._get_or_create(entity_id)
        with session.lock:
            if session.released:
                return session.capture_state

            if session.has_attempt:
                self._replay_attempt(session)
            elif session.is_recording:
                self._stop_capture(session)
            else:
                self._start_capture(session)
            return session.capture_state

    def compare_audio(self, entity_id):
        """
        Compară clipul de referință cu înregistrarea și memorează scorul.
        Lipsa datelor sau o eroare de analiză nu sunt fatale: se raportează și sesiunea
        rămâne în starea anterioară.
        :return: scorul sau None
        """
        session = self._get(entity_id)
        if session is None:
            print(f"Nu există sesiune pentru entitatea {entity_id}; comparația este ignorată.")
            return None

        with session.lock:
            if session.released:
                return None
            if session.reference is None or session.playback is None:
                print(f"Comparație imposibilă pentru {entity_id}: lipsește clipul de referință sau înregistrarea.")
                return None

            try:
                reference = self.adapter.get_samples(session.reference)
                attempt = self.adapter.get_samples(session.playback)
            except AudioError as e:
                print(f"Eroare la citirea datelor audio pentru {entity_id}: {e}")
                return None
            if reference is None or attempt is None:
                print(f"Comparație imposibilă pentru {entity_id}: datele audio nu sunt încă decodate.")
                return None

            try:
                score = self.scorer.score(self.extractor.extract(reference), self.extractor.extract(attempt))
            except AnalysisError as e:
                print(f"Eroare la analiza audio pentru {entity_id}: {e}")
                return None

            session.score = score
            session.capture_state = CaptureState.SCORED
            print(f"Scor de similaritate pentru {entity_id}: {score:.2f}%")
            self._notify_state(session)
            if self.score_callback:
                self.score_callback(entity_id, score)
            return score

    def reset_session(self, entity_id):
        """
        Renunță la încercarea curentă (captare, redare, scor); clipul de referință rămâne.
        """
        session = self._get(entity_id)
        if session is None:
            return False

        with session.lock:
            if session.released:
                return False
            if session.playback is not None:
                # replay-ul încercării se oprește înainte de eliberare
                self._stop_quietly(session.playback)
            for handle in (session.capture, session.playback):
                if handle is not None and handle is not session.reference:
                    self._release_quietly(handle)
            session.capture = None
            session.playback = None
            session.finalizing = False
            session.score = None
            session.capture_state = CaptureState.IDLE
            self._notify_state(session)
            return True

    def release_session(self, entity_id):
        """
        Eliberează toate resursele sesiunii: captare, redare, referință, în această ordine.
        Fiecare eliberare e tratată separat; erorile se raportează, nu se propagă.
        Un al doilea apel pentru aceeași entitate nu are efect.
        :return: lista de ResourceReleaseError (goală dacă totul a mers bine) sau None
        dacă sesiunea nu exista
        """
        with self._sessions_lock:
            session = self._sessions.pop(entity_id, None)
        if session is None:
            return None

        with session.lock:
            if session.released:
                return None
            session.released = True
            handles = session.handles()
            session.capture = session.playback = session.reference = None

        errors = []
        for handle in handles:
            error = self._release_quietly(handle)
            if error is not None:
                errors.append(error)
        return errors

    def release_all(self):
        with self._sessions_lock:
            keys = list(self._sessions)

        errors = []
        for key in keys:
            errors.extend(self.release_session(key) or [])

        # contextul audio comun se închide o singură dată, după toate handle-urile
        try:
            self.adapter.close()
        except Exception as e:
            error = ResourceReleaseError("context audio", e)
            print(f"Eroare la închiderea contextului audio: {error}")
            errors.append(error)
        return errors

    # --- Evenimente de la adaptor ---

    def handle_event(self, event):
        session = self._get(event.key)
        if session is None:
            # rezultatul unei operații pornite înainte de eliberarea sesiunii
            self._release_quietly(event.handle)
            return

        with session.lock:
            if session.released or not self._owns(session, event.handle):
                self._release_quietly(event.handle)
                return

            if event.kind is AudioEventKind.DECODED:
                self._on_decoded(session, event.handle)
            elif event.kind is AudioEventKind.DECODE_FAILED:
                self._on_decode_failed(session, event.handle, event.error)
            elif event.kind is AudioEventKind.CAPTURE_FINISHED:
                self._on_capture_finished(session, event.payload)
            elif event.kind is AudioEventKind.CAPTURE_FAILED:
                self._discard_capture(session)
                self._fail(session, event.error or CaptureError("Captarea a eșuat."))
            elif event.kind is AudioEventKind.PLAYBACK_FINISHED:
                if event.handle is session.reference:
                    session.reference_state = ReferenceState.IDLE
                    self._notify_state(session)

    def _on_decoded(self, session, handle):
        if handle is not session.reference:
            return
        session.error = None
        if session.reference_state is ReferenceState.LOADING:
            self._play_reference_now(session)

    def _on_decode_failed(self, session, handle, error):
        self._release_quietly(handle)
        if handle is session.reference:
            session.reference = None
            session.reference_state = ReferenceState.IDLE
        elif handle is session.playback:
            session.playback = None
            session.capture_state = CaptureState.IDLE
        self._notify_state(session)
        self._fail(session, error or DecodeError("Decodarea a eșuat."))

    def _on_capture_finished(self, session, raw):
        session.finalizing = False
        try:
            playback = self.adapter.create_playback_from_bytes(raw, session.entity_id)
        except AudioError as e:
            self._discard_capture(session)
            self._fail(session, e)
            return

        # intrarea live nu mai e necesară; înregistrarea trăiește în handle-ul de redare
        self._release_quietly(session.capture)
        session.capture = None
        session.playback = playback
        session.capture_state = CaptureState.CAPTURED
        session.error = None
        self._notify_state(session)

        delay = self.adapter.settle_delay
        if delay is None:
            delay = self.config.capture_settle_delay
        if delay > 0:
            entity_id = session.entity_id
            self.scheduler(delay, lambda: self.compare_audio(entity_id))
        else:
            self.compare_audio(session.entity_id)

    # --- Tranziții interne (se apelează sub session.lock) ---

    def _play_reference_now(self, session):
        try:
            self.adapter.play(session.reference)
        except AudioError as e:
            session.reference_state = ReferenceState.IDLE
            self._fail(session, e)
            return False
        session.reference_state = ReferenceState.PLAYING
        self._notify_state(session)
        return True

    def _start_capture(self, session):
        session.error = None
        try:
            if session.capture is None:
                session.capture = self.adapter.create_capture_session(session.entity_id)
            self.adapter.start_capture(session.capture)
        except AudioError as e:
            self._discard_capture(session)
            self._fail(session, e)
            return
        session.capture_state = CaptureState.RECORDING
        self._notify_state(session)

    def _stop_capture(self, session):
        if session.finalizing:
            return
        try:
            self.adapter.stop_capture(session.capture)
        except AudioError as e:
            self._discard_capture(session)
            self._fail(session, e)
            return
        session.finalizing = True

    def _replay_attempt(self, session):
        try:
            self.adapter.play(session.playback)
        except AudioError as e:
            self._fail(session, e)

    def _discard_capture(self, session):
        if session.capture is not None:
            self._release_quietly(session.capture)
        session.capture = None
        session.finalizing = False
        if session.capture_state is CaptureState.RECORDING:
            session.capture_state = CaptureState.IDLE
            self._notify_state(session)

    def _fail(self, session, error):
        session.error = error
        print(f"Eroare în sesiunea {session.entity_id}: {error}")
        if self.error_callback:
            self.error_callback(session.entity_id, error)

    def _notify_state(self, session):
        if self.state_callback:
            self.state_callback(session.entity_id, session.reference_state, session.capture_state)

    def _stop_quietly(self, handle):
        try:
            self.adapter.stop(handle)
        except AudioError as e:
            print(f"Eroare la oprirea redării: {e}")

    def _release_quietly(self, handle):
        try:
            self.adapter.release(handle)
        except Exception as e:
            error = ResourceReleaseError(handle, e)
            print(f"Eroare la eliberarea resursei: {error}")
            return error
        return None

    @staticmethod
    def _owns(session, handle):
        return any(handle is h for h in (session.reference, session.capture, session.playback))

    def _get(self, entity_id):
        with self._sessions_lock:
            return self._sessions.get(entity_id)

    def _get_or_create(self, entity_id):
        with self._sessions_lock:
            session = self._sessions.get(entity_id)
            if session is None:
                session = RecordingSession(entity_id)
                self._sessions[entity_id] = session
            return session
