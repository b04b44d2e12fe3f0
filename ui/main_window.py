# --- /cry_match/ui/main_window.py ---

import threading
import tkinter as tk
from tkinter import ttk, messagebox

from domain.config import Config
from domain.errors import CatalogError
from domain.session import CaptureState, ReferenceState
from repo.catalog_repo import CatalogRepository
from service.session_manager import RecordingSessionManager
from service.sounddevice_adapter import SoundDeviceAdapter

RECORD_LABELS = {
    CaptureState.IDLE: "Înregistrează",
    CaptureState.RECORDING: "Oprește",
    CaptureState.CAPTURED: "Redă încercarea",
    CaptureState.SCORED: "Redă încercarea",
}


class MainWindow:
    def __init__(self, root, config=None, catalog=None, adapter=None):
        self.root = root
        self.root.title("Imită strigătul")
        self.root.geometry("700x800")

        self.config = config or Config()
        self.catalog = catalog or CatalogRepository(self.config)
        self.manager = RecordingSessionManager(adapter or SoundDeviceAdapter(self.config), self.config)
        # callback-urile vin de pe thread-urile audio; UI-ul se actualizează doar prin root.after
        self.manager.score_callback = lambda eid, score: self.root.after(0, self.update_score, eid, score)
        self.manager.error_callback = lambda eid, err: self.root.after(0, self.show_error, eid, err)
        self.manager.state_callback = lambda eid, ref, cap: self.root.after(0, self.update_state, eid, ref, cap)

        self.entities = []
        self.rows = {}
        self.is_loading = False

        self.setup_menu()
        self.setup_ui()
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)

    def setup_menu(self):
        menubar = tk.Menu(self.root)
        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="Altă listă", command=self.load_entities)
        file_menu.add_separator()
        file_menu.add_command(label="Exit", command=self.on_close)
        menubar.add_cascade(label="File", menu=file_menu)
        self.root.config(menu=menubar)

    def setup_ui(self):
        style = ttk.Style()
        style.configure("TButton", font=("Helvetica", 10))

        header = ttk.Frame(self.root)
        header.pack(fill="x", padx=10, pady=10)
        ttk.Label(header, text="Sunetele monștrilor tăi de buzunar preferați!").pack(side="left")
        ttk.Button(header, text="Altă listă", command=self.load_entities).pack(side="right")

        self.status_label = ttk.Label(self.root, text="Standby")
        self.status_label.pack(fill="x", padx=10)

        self.list_frame = ttk.Frame(self.root)
        self.list_frame.pack(fill="both", expand=True, padx=10, pady=10)

    # --- Catalog ---

    def load_entities(self):
        if self.is_loading:
            return
        self.is_loading = True
        self.status_label.config(text="Se încarcă lista...")

        def task():
            try:
                entities = self.catalog.fetch()
            except CatalogError as e:
                self.root.after(0, self._on_entities_failed, e)
                return
            self.root.after(0, self._on_entities_loaded, entities)

        threading.Thread(target=task, daemon=True).start()

    def _on_entities_loaded(self, entities):
        self.is_loading = False
        visible = {entity.id for entity in entities}
        # sesiunile entităților care dispar din listă se eliberează
        for entity in self.entities:
            if entity.id not in visible:
                self.manager.release_session(entity.id)
        for row in self.rows.values():
            row["frame"].destroy()
        self.rows = {}

        self.entities = entities
        for index, entity in enumerate(entities):
            self._build_row(index, entity)
        self.status_label.config(text=f"{len(entities)} intrări încărcate.")

    def _on_entities_failed(self, error):
        self.is_loading = False
        self.status_label.config(text="Eroare")
        messagebox.showerror("Eroare", f"Lista nu a putut fi încărcată: {error}")

    def _build_row(self, index, entity):
        frame = ttk.Frame(self.list_frame)
        frame.grid(row=index, column=0, sticky="we", pady=4)

        ttk.Label(frame, text=entity.name, width=16).grid(row=0, column=0, padx=5)
        play_button = ttk.Button(frame, text="Redă strigătul", command=lambda: self.play_reference(entity))
        play_button.grid(row=0, column=1, padx=5)
        record_button = ttk.Button(frame, text=RECORD_LABELS[CaptureState.IDLE],
                                   command=lambda: self.toggle_recording(entity))
        record_button.grid(row=0, column=2, padx=5)
        reset_button = ttk.Button(frame, text="Din nou", command=lambda: self.reset_attempt(entity))
        reset_button.grid(row=0, column=3, padx=5)
        score_label = ttk.Label(frame, text="Scor: -", width=14)
        score_label.grid(row=0, column=4, padx=5)

        if not entity.has_cry:
            play_button.config(state="disabled")
        # se înregistrează doar după ce strigătul a fost ascultat, ca să existe referința
        if not self.manager.has_reference(entity.id):
            record_button.config(state="disabled")

        self.rows[entity.id] = {
            "frame": frame,
            "play": play_button,
            "record": record_button,
            "reset": reset_button,
            "score": score_label,
        }

    # --- Acțiuni ---

    def play_reference(self, entity):
        self.manager.play_reference(entity.id, entity.cry_url)

    def toggle_recording(self, entity):
        self.manager.toggle_recording(entity.id)

    def reset_attempt(self, entity):
        self.manager.reset_session(entity.id)
        row = self.rows.get(entity.id)
        if row:
            row["score"].config(text="Scor: -")

    # --- Actualizări UI (pe thread-ul tkinter) ---

    def update_score(self, entity_id, score):
        row = self.rows.get(entity_id)
        if row:
            row["score"].config(text=f"Scor: {score:.2f}%")
        self.status_label.config(text=f"Similaritate: {score:.2f}%")

    def update_state(self, entity_id, reference_state, capture_state):
        row = self.rows.get(entity_id)
        if not row:
            return
        row["record"].config(text=RECORD_LABELS[capture_state])
        if self.manager.has_reference(entity_id):
            row["record"].config(state="normal")
        if reference_state is ReferenceState.LOADING:
            self.status_label.config(text="Se încarcă strigătul...")
        elif capture_state is CaptureState.RECORDING:
            self.status_label.config(text="Se înregistrează...")
        else:
            self.status_label.config(text="Standby")

    def show_error(self, entity_id, error):
        self.status_label.config(text="Eroare")
        messagebox.showerror("Eroare", str(error))

    def on_close(self):
        self.manager.release_all()
        self.catalog.close()
        self.root.destroy()
