# /cry_match/service/sounddevice_adapter.py

import threading

import httpx
import numpy as np
import sounddevice as sd

from domain.audio_buffer import AudioBuffer
from domain.audio_device_manager import AudioDeviceManager
from domain.errors import CaptureError, DecodeError
from repo.audio_repo import AudioRepository
from service.audio_adapter import AudioEvent, AudioEventKind, AudioHandle, AudioSourceAdapter, HandleKind


class _Resource:
    def __init__(self, handle, buffer=None):
        self.handle = handle
        self.buffer = buffer
        self.released = False
        # doar pentru captare
        self.stream = None
        self.chunks = []
        self.frames = 0
        self.finalized = False


class SoundDeviceAdapter(AudioSourceAdapter):
    """
    Adaptor audio peste sounddevice (microfon și difuzoare), httpx (descărcarea clipurilor)
    și librosa/scipy (decodare).

    Înregistrarea se decodează sincron în create_playback_from_bytes, deci datele sunt
    lizibile imediat după CAPTURE_FINISHED (settle_delay = 0).
    """

    settle_delay = 0.0
    PLAYBACK_CHUNK_SECONDS = 0.05

    def __init__(self, config, client=None, device_manager=None):
        super().__init__()
        self.config = config
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(
            timeout=config.http_timeout, follow_redirects=True)
        self.device_manager = device_manager or AudioDeviceManager(config)

        self._resources = {}
        self._lock = threading.Lock()
        self._playing = None
        self._play_stop_event = None
        self._closed = False

    # --- Decodare ---

    def decode(self, url, key):
        handle = AudioHandle(HandleKind.REFERENCE, key)
        resource = self._register(handle)
        threading.Thread(target=self._decode_task, args=(resource, url), daemon=True).start()
        return handle

    def _decode_task(self, resource, url):
        try:
            response = self._client.get(url)
            response.raise_for_status()
            buffer = AudioRepository.decode_bytes(response.content)
        except httpx.HTTPError as e:
            self._emit_unless_released(resource, AudioEvent(
                AudioEventKind.DECODE_FAILED, resource.handle,
                error=DecodeError(f"Clipul {url} nu a putut fi descărcat: {e}")))
            return
        except DecodeError as e:
            self._emit_unless_released(resource, AudioEvent(AudioEventKind.DECODE_FAILED, resource.handle, error=e))
            return

        with self._lock:
            if resource.released:
                # sesiunea a fost eliberată cât timp clipul se descărca
                return
            resource.buffer = buffer
        self.emit(AudioEvent(AudioEventKind.DECODED, resource.handle))

    def create_playback_from_bytes(self, raw, key):
        buffer = AudioRepository.decode_bytes(raw)
        handle = AudioHandle(HandleKind.PLAYBACK, key)
        self._register(handle, buffer)
        return handle

    def get_samples(self, handle):
        resource = self._resources.get(handle.id)
        return resource.buffer if resource is not None else None

    # --- Captare ---

    def create_capture_session(self, key):
        self.device_manager.ensure_input_available()
        handle = AudioHandle(HandleKind.CAPTURE, key)
        self._register(handle)
        return handle

    def start_capture(self, handle):
        resource = self._resource(handle)
        if resource.stream is not None:
            return

        max_frames = int(self.config.max_record_seconds * self.config.sample_rate)

        def callback(indata, frames, time, status):
            if status:
                print(f"Status captare: {status}")
            resource.chunks.append(indata[:, 0].copy())
            resource.frames += frames
            if resource.frames >= max_frames:
                raise sd.CallbackStop()

        def finished():
            # rulează pe thread-ul PortAudio; finalizarea se face separat
            threading.Thread(target=self._finalize_capture, args=(resource,), daemon=True).start()

        try:
            stream = sd.InputStream(
                samplerate=self.config.sample_rate,
                channels=1,
                dtype='float32',
                device=self.config.input_device,
                blocksize=self.config.buffer_size,
                callback=callback,
                finished_callback=finished,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise CaptureError(f"Microfonul nu a putut fi pornit: {e}") from e
        resource.stream = stream
        print("Începere înregistrare...")

    def stop_capture(self, handle):
        resource = self._resource(handle)
        if resource.stream is None:
            raise CaptureError("Captarea nu a fost pornită.")
        threading.Thread(target=self._finalize_capture, args=(resource,), daemon=True).start()

    def _finalize_capture(self, resource):
        with self._lock:
            if resource.finalized:
                return
            resource.finalized = True

        try:
            resource.stream.stop()
            resource.stream.close()
        except sd.PortAudioError as e:
            print(f"Eroare la oprirea înregistrării: {e}")
        print("Înregistrare finalizată.")

        if not resource.chunks:
            self._emit_unless_released(resource, AudioEvent(
                AudioEventKind.CAPTURE_FAILED, resource.handle,
                error=CaptureError("Nu s-a captat niciun eșantion.")))
            return

        buffer = AudioBuffer(np.concatenate(resource.chunks), self.config.sample_rate)
        raw = AudioRepository.encode_wav(buffer)
        self._emit_unless_released(resource, AudioEvent(AudioEventKind.CAPTURE_FINISHED, resource.handle, payload=raw))

    # --- Redare ---

    def play(self, handle):
        resource = self._resource(handle)
        if resource.buffer is None:
            raise DecodeError("Resursa nu este încă decodată.")

        stop_event = threading.Event()
        with self._lock:
            previous = self._play_stop_event
            self._playing = handle
            self._play_stop_event = stop_event
        if previous is not None:
            # ieșirea e una singură: redarea anterioară se întrerupe
            previous.set()
        threading.Thread(target=self._playback_task, args=(resource, stop_event), daemon=True).start()

    def _playback_task(self, resource, stop_event):
        """
        Redă bufferul pe chunks de 50 ms, ca să poată fi oprit între chunks.
        PLAYBACK_FINISHED se emite și când redarea e întreruptă (stop sau alt play),
        mai puțin când același handle a fost repornit între timp.
        """
        buffer = resource.buffer
        if buffer is None:
            return
        data = buffer.data.astype(np.float32).reshape(-1, 1)
        chunk_size = max(1, int(buffer.sample_rate * self.PLAYBACK_CHUNK_SECONDS))

        try:
            with sd.OutputStream(
                    samplerate=buffer.sample_rate,
                    channels=1,
                    dtype=np.float32,
                    device=self.config.output_device,
                    blocksize=chunk_size
            ) as stream:
                for i in range(0, len(data), chunk_size):
                    if stop_event.is_set():
                        break
                    stream.write(data[i:i + chunk_size])
        except sd.PortAudioError as e:
            print(f"Eroare la redare: {e}")

        if stop_event.is_set():
            with self._lock:
                restarted = self._playing is resource.handle
            if restarted:
                return
        self._emit_unless_released(resource, AudioEvent(AudioEventKind.PLAYBACK_FINISHED, resource.handle))

    def stop(self, handle):
        if self._playing is handle:
            self._stop_output()

    def _stop_output(self):
        with self._lock:
            event = self._play_stop_event
            self._playing = None
            self._play_stop_event = None
        if event is not None:
            # nu se face join: thread-ul de redare poate aștepta lock-ul sesiunii apelante
            event.set()

    # --- Eliberare ---

    def release(self, handle):
        with self._lock:
            resource = self._resources.pop(handle.id, None)
            if resource is None:
                return
            resource.released = True
            stream = resource.stream if not resource.finalized else None
            resource.finalized = True

        if self._playing is handle:
            self._stop_output()
        resource.buffer = None
        resource.chunks = []
        if stream is not None:
            stream.abort()
            stream.close()

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            handles = [r.handle for r in self._resources.values()]

        for handle in handles:
            try:
                self.release(handle)
            except sd.PortAudioError as e:
                print(f"Eroare la eliberarea resursei {handle}: {e}")
        self._stop_output()
        sd.stop()
        if self._owns_client:
            self._client.close()

    # --- Utilitare ---

    def _register(self, handle, buffer=None):
        resource = _Resource(handle, buffer)
        with self._lock:
            self._resources[handle.id] = resource
        return resource

    def _resource(self, handle):
        resource = self._resources.get(handle.id)
        if resource is None:
            error = CaptureError if handle.kind is HandleKind.CAPTURE else DecodeError
            raise error(f"Resursa {handle} a fost eliberată.")
        return resource

    def _emit_unless_released(self, resource, event):
        if resource.released:
            return
        self.emit(event)
