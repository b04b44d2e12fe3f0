import unittest
from unittest.mock import MagicMock, patch

from domain.config import Config
from domain.entity import CatalogEntity
from domain.errors import CatalogError, CaptureError
from domain.session import CaptureState, ReferenceState
from fake_adapter import FakeAudioAdapter


class TestMainWindow(unittest.TestCase):

    def setUp(self):
        # widget-urile tkinter sunt înlocuite cu mock-uri, testele rulează fără display
        self.tk_patch = patch("ui.main_window.tk")
        self.ttk_patch = patch("ui.main_window.ttk")
        self.tk_patch.start()
        self.ttk = self.ttk_patch.start()
        self.ttk.Button.side_effect = lambda *args, **kwargs: MagicMock()
        self.ttk.Label.side_effect = lambda *args, **kwargs: MagicMock()
        self.ttk.Frame.side_effect = lambda *args, **kwargs: MagicMock()

        from ui.main_window import MainWindow

        self.root = MagicMock()
        # root.after rulează imediat callback-ul
        self.root.after.side_effect = lambda delay, func, *args: func(*args)
        self.catalog = MagicMock()
        self.adapter = FakeAudioAdapter()
        self.app = MainWindow(self.root, config=Config(), catalog=self.catalog, adapter=self.adapter)

        self.pikachu = CatalogEntity(25, "pikachu", cry_url="https://cries.example/25.ogg")
        self.silent = CatalogEntity(1, "bulbasaur")

    def tearDown(self):
        self.ttk_patch.stop()
        self.tk_patch.stop()

    def test_entities_loaded_builds_rows(self):
        self.app._on_entities_loaded([self.pikachu, self.silent])

        self.assertEqual(set(self.app.rows), {25, 1})
        self.app.rows[1]["play"].config.assert_called_with(state="disabled")
        self.app.rows[25]["record"].config.assert_called_with(state="disabled")
        self.app.status_label.config.assert_called_with(text="2 intrări încărcate.")

    def test_reloading_releases_sessions_of_removed_entities(self):
        self.app._on_entities_loaded([self.pikachu])
        self.app.play_reference(self.pikachu)
        self.assertTrue(self.app.manager.has_session(25))

        self.app._on_entities_loaded([self.silent])

        self.assertFalse(self.app.manager.has_session(25))
        self.assertEqual(len(self.adapter.released), 1)

    @patch("ui.main_window.threading.Thread")
    def test_load_entities_runs_in_background(self, mock_thread):
        self.catalog.fetch.return_value = [self.pikachu]

        self.app.load_entities()
        self.assertTrue(self.app.is_loading)
        mock_thread.call_args.kwargs["target"]()

        self.assertFalse(self.app.is_loading)
        self.assertIn(25, self.app.rows)

    @patch("ui.main_window.messagebox.showerror")
    @patch("ui.main_window.threading.Thread")
    def test_load_entities_failure_shows_error(self, mock_thread, mock_error):
        self.catalog.fetch.side_effect = CatalogError("offline")

        self.app.load_entities()
        mock_thread.call_args.kwargs["target"]()

        mock_error.assert_called_once()
        self.assertFalse(self.app.is_loading)

    @patch("ui.main_window.messagebox.showerror")
    @patch("ui.main_window.threading.Thread")
    def test_malformed_catalog_response_allows_reload(self, mock_thread, mock_error):
        self.catalog.fetch.side_effect = CatalogError("Intrare invalidă în catalog: {'name': 'x'}")

        self.app.load_entities()
        mock_thread.call_args.kwargs["target"]()
        self.assertFalse(self.app.is_loading)

        self.catalog.fetch.side_effect = None
        self.catalog.fetch.return_value = [self.pikachu]
        self.app.load_entities()
        mock_thread.call_args.kwargs["target"]()

        self.assertIn(25, self.app.rows)

    def test_full_attempt_updates_score_label(self):
        buffer = MagicMock()
        self.app._on_entities_loaded([self.pikachu])
        self.adapter.clips[self.pikachu.cry_url] = buffer

        self.app.play_reference(self.pikachu)
        self.adapter.finish_decode()
        self.app.rows[25]["record"].config.assert_any_call(state="normal")

        self.app.toggle_recording(self.pikachu)
        capture = self.adapter.live_captures[0]
        self.app.toggle_recording(self.pikachu)

        self.app.manager.compare_audio = MagicMock()
        self.adapter.recordings[b"attempt"] = buffer
        self.adapter.finish_capture(capture, b"attempt")
        self.app.rows[25]["record"].config.assert_any_call(text="Redă încercarea")

        self.app.update_score(25, 87.5)
        self.app.rows[25]["score"].config.assert_called_with(text="Scor: 87.50%")

    def test_update_state_labels(self):
        self.app._on_entities_loaded([self.pikachu])

        self.app.update_state(25, ReferenceState.IDLE, CaptureState.RECORDING)

        self.app.rows[25]["record"].config.assert_called_with(text="Oprește")
        self.app.status_label.config.assert_called_with(text="Se înregistrează...")

    @patch("ui.main_window.messagebox.showerror")
    def test_capture_error_is_shown(self, mock_error):
        self.app._on_entities_loaded([self.pikachu])
        self.adapter.capture_error = CaptureError("permisiune refuzată")

        self.app.toggle_recording(self.pikachu)

        mock_error.assert_called_once_with("Eroare", "permisiune refuzată")

    def test_reset_attempt_clears_score(self):
        self.app._on_entities_loaded([self.pikachu])
        self.app.toggle_recording(self.pikachu)

        self.app.reset_attempt(self.pikachu)

        self.app.rows[25]["score"].config.assert_called_with(text="Scor: -")
        self.assertEqual(self.app.manager.get_state(25)[1], CaptureState.IDLE)

    def test_on_close_releases_everything(self):
        self.app._on_entities_loaded([self.pikachu])
        self.app.play_reference(self.pikachu)

        self.app.on_close()

        self.assertEqual(self.adapter.close_count, 1)
        self.catalog.close.assert_called_once()
        self.root.destroy.assert_called_once()


if __name__ == '__main__':
    unittest.main()
