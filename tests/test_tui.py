import io
import unittest.mock as mock
import pytest
from textual.widgets import Label
import sys
from pathlib import Path

# Add project root to path so we can import the package
sys.path.append(str(Path(__file__).parent.parent))

from PIL import Image
from retro_halftones.core.raster import HalftoneOptions
from retro_halftones.errors import DecodeError
from retro_halftones.tui import screens
from retro_halftones.tui.app import HalftoneApp


def _png_bytes(size=(20, 10)):
    buffer = io.BytesIO()
    Image.new('RGB', size, (100, 150, 200)).save(buffer, 'PNG')
    return buffer.getvalue()


class TestFileSelection:
    def test_on_list_view_selected(self):
        """Test that selecting a file item pushes the halftone screen."""
        screen = screens.FileSelectionScreen()
        mock_app = mock.MagicMock()

        # 'app' is a property on the base class, so patch it on the screen class
        with mock.patch.object(screens.FileSelectionScreen, 'app', new_callable=mock.PropertyMock) as mock_app_prop:
            mock_app_prop.return_value = mock_app

            event = mock.MagicMock()
            filename = "test_image.png"
            event.item.query_one.return_value = Label(filename)

            # Avoid touching the file system
            with mock.patch('pathlib.Path.exists', return_value=True), \
                 mock.patch('pathlib.Path.read_bytes', return_value=_png_bytes()):
                screen.on_list_view_selected(event)

            assert mock_app.push_screen.called

            args, _ = mock_app.push_screen.call_args
            pushed_screen = args[0]

            assert isinstance(pushed_screen, screens.HalftoneScreen)
            assert pushed_screen.image_path.name == filename
            assert pushed_screen.original_image.size == (20, 10)

    def test_on_list_view_selected_no_files(self):
        """Test that selecting 'No image files...' does nothing."""
        screen = screens.FileSelectionScreen()

        with mock.patch.object(screens.FileSelectionScreen, 'app', new_callable=mock.PropertyMock) as mock_app_prop:
            mock_app = mock.MagicMock()
            mock_app_prop.return_value = mock_app

            event = mock.MagicMock()
            event.item.query_one.return_value = Label("No image files found in current directory")

            screen.on_list_view_selected(event)

            assert not mock_app.push_screen.called

    def test_on_list_view_selected_missing_file(self):
        """A file that vanished after listing is reported instead of opened."""
        screen = screens.FileSelectionScreen()

        with mock.patch.object(screens.FileSelectionScreen, 'app', new_callable=mock.PropertyMock) as mock_app_prop, \
             mock.patch.object(screen, 'notify') as notify:
            mock_app = mock.MagicMock()
            mock_app_prop.return_value = mock_app

            event = mock.MagicMock()
            event.item.query_one.return_value = Label("gone.png")

            with mock.patch('pathlib.Path.exists', return_value=False):
                screen.on_list_view_selected(event)

            assert not mock_app.push_screen.called
            assert notify.call_args.kwargs["severity"] == "error"

    def test_on_list_view_selected_unreadable_file(self):
        screen = screens.FileSelectionScreen()

        with mock.patch.object(screens.FileSelectionScreen, 'app', new_callable=mock.PropertyMock) as mock_app_prop, \
             mock.patch.object(screen, 'notify') as notify:
            mock_app = mock.MagicMock()
            mock_app_prop.return_value = mock_app

            event = mock.MagicMock()
            event.item.query_one.return_value = Label("locked.png")

            with mock.patch('pathlib.Path.exists', return_value=True), \
                 mock.patch('pathlib.Path.read_bytes', side_effect=PermissionError("denied")):
                screen.on_list_view_selected(event)

            assert not mock_app.push_screen.called
            assert notify.called


class TestHalftoneScreen:
    @pytest.fixture
    def screen(self, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(_png_bytes((30, 20)))
        screen = screens.HalftoneScreen(path)
        yield screen
        screen.session.shutdown()

    def _inputs(self, screen, values):
        def query_one(selector, _type=None):
            widget = mock.MagicMock()
            widget.value = values[selector]
            return widget
        return mock.patch.object(screen, 'query_one', side_effect=query_one)

    def test_options_from_inputs_are_clamped(self, screen):
        values = {"#size": "50", "#angle": "370", "#saturation": "oops", "#contrast": "1.5"}
        with self._inputs(screen, values):
            options = screen._get_halftone_options()

        assert options == HalftoneOptions(size=32, angle=10, saturation=1.3, contrast=1.5)

    def test_seed_from_input(self, screen):
        with self._inputs(screen, {"#seed": " 42 "}):
            assert screen._get_seed() == 42
        with self._inputs(screen, {"#seed": ""}):
            assert screen._get_seed() is None

    def test_stale_preview_is_not_shown(self, screen):
        """Only the newest request's preview reaches the widget."""
        screen._select_preview_source(30, 20)
        old = screen.session.request(HalftoneOptions(size=3))
        new = screen.session.request(HalftoneOptions(size=4))
        old_result = screen.session.run(old)
        new_result = screen.session.run(new)

        preview = mock.MagicMock()
        with mock.patch.object(screen, 'query_one', return_value=preview):
            assert not screen._show_preview(old_result)
            assert not preview.update.called

            assert screen._show_preview(new_result)
            assert preview.update.called

        assert screen.preview_path.exists()

    def test_image_to_ascii(self, screen):
        img = Image.new('RGB', (4, 3), (255, 0, 0))
        text = screen.image_to_ascii(img)
        # Two pixel rows per line, so 3 rows need 2 lines of 4 blocks
        assert text.plain == "▀▀▀▀\n▀▀▀▀\n"


class TestMissingImage:
    def test_screen_rejects_missing_file(self, tmp_path):
        with pytest.raises(DecodeError):
            screens.HalftoneScreen(tmp_path / "missing.png")

    def test_screen_rejects_non_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("hello")
        with pytest.raises(DecodeError):
            screens.HalftoneScreen(path)

    def test_app_falls_back_to_file_picker(self, tmp_path):
        app = HalftoneApp(str(tmp_path / "missing.png"))
        with mock.patch.object(app, 'push_screen') as push_screen, \
             mock.patch.object(app, 'notify') as notify:
            app.on_mount()

        assert notify.called
        push_screen.assert_called_once()
        assert isinstance(push_screen.call_args.args[0], screens.FileSelectionScreen)
