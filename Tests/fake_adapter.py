from domain.errors import CaptureError, DecodeError
from service.audio_adapter import AudioEvent, AudioEventKind, AudioHandle, AudioSourceAdapter, HandleKind


class FakeAudioAdapter(AudioSourceAdapter):
    """
    Adaptor în memorie pentru teste: evenimentele se livrează doar la cerere,
    prin finish_decode / finish_capture / finish_playback.
    """

    def __init__(self, settle_delay=0.0):
        super().__init__()
        self.settle_delay = settle_delay
        self.clips = {}          # url -> AudioBuffer
        self.recordings = {}     # bytes -> AudioBuffer
        self.samples = {}        # handle.id -> AudioBuffer
        self.pending_decodes = []
        self.live_captures = []
        self.played = []
        self.stopped_captures = []
        self.stopped = []
        self.released = []
        self.release_calls = 0
        self.capture_sessions_created = 0
        self.fail_release_kinds = set()
        self.capture_error = None
        self.close_count = 0

    def decode(self, url, key):
        handle = AudioHandle(HandleKind.REFERENCE, key)
        self.pending_decodes.append((handle, url))
        return handle

    def finish_decode(self):
        handle, url = self.pending_decodes.pop(0)
        if url in self.clips:
            if not self._is_released(handle):
                self.samples[handle.id] = self.clips[url]
            self.emit(AudioEvent(AudioEventKind.DECODED, handle))
        else:
            self.emit(AudioEvent(AudioEventKind.DECODE_FAILED, handle, error=DecodeError(f"404 {url}")))
        return handle

    def create_capture_session(self, key):
        if self.capture_error is not None:
            raise self.capture_error
        self.capture_sessions_created += 1
        return AudioHandle(HandleKind.CAPTURE, key)

    def start_capture(self, handle):
        if any(h is handle for h in self.live_captures):
            raise CaptureError("Captarea rulează deja.")
        self.live_captures.append(handle)

    def stop_capture(self, handle):
        self.stopped_captures.append(handle)

    def finish_capture(self, handle, raw):
        self.emit(AudioEvent(AudioEventKind.CAPTURE_FINISHED, handle, payload=raw))

    def fail_capture(self, handle):
        self.emit(AudioEvent(AudioEventKind.CAPTURE_FAILED, handle, error=CaptureError("mic deconectat")))

    def finish_playback(self, handle):
        self.emit(AudioEvent(AudioEventKind.PLAYBACK_FINISHED, handle))

    def create_playback_from_bytes(self, raw, key):
        if raw not in self.recordings:
            raise DecodeError("Înregistrare invalidă.")
        handle = AudioHandle(HandleKind.PLAYBACK, key)
        self.samples[handle.id] = self.recordings[raw]
        return handle

    def play(self, handle):
        if handle.id not in self.samples:
            raise DecodeError("Nu este decodat.")
        self.played.append(handle)

    def stop(self, handle):
        self.stopped.append(handle)

    def release(self, handle):
        self.release_calls += 1
        if handle.kind in self.fail_release_kinds:
            raise RuntimeError(f"nu pot elibera {handle.kind.value}")
        if self._is_released(handle):
            return
        self.released.append(handle)
        self.live_captures = [h for h in self.live_captures if h is not handle]
        self.samples.pop(handle.id, None)

    def get_samples(self, handle):
        return self.samples.get(handle.id)

    def close(self):
        self.close_count += 1

    def _is_released(self, handle):
        return any(h is handle for h in self.released)
