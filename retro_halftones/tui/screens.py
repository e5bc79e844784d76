import io
import sys
import subprocess
from pathlib import Path
from typing import cast, Tuple
from PIL import Image
from textual.app import ComposeResult
from textual.containers import Container, VerticalScroll
from textual.widgets import Button, Header, Footer, Label, Input, Static, ListItem, ListView
from textual.binding import Binding
from textual.screen import Screen
from rich.text import Text
from rich.style import Style

from ..constants import DEFAULT_SIZE, DEFAULT_ANGLE, DEFAULT_SATURATION, DEFAULT_CONTRAST, MIN_SIZE
from ..core.pipeline import halftone_image
from ..core.raster import HalftoneOptions, decode_image
from ..core.session import HalftoneSession, HalftoneResult, RenderRequest
from ..core.utils import get_output_filename
from ..errors import DecodeError, HalftoneError

class FileSelectionScreen(Screen):
    CSS = """
    FileSelectionScreen {
        layout: vertical;
        align: center middle;
    }
    #file-list-container {
        width: 80%;
        height: 80%;
        border: solid $accent;
        background: $surface;
    }
    .header-label {
        text-align: center;
        padding: 1;
        background: $primary;
        color: $text;
        text-style: bold;
    }
    ListView {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="file-list-container"):
            yield Label("Select an image file (jpg, jpeg, png, webp)", classes="header-label")
            yield ListView(id="file-list")
        yield Label("Tip: You can also run with 'retro-halftones-tui <image>'", classes="header-label")
        yield Footer()

    def on_mount(self):
        extensions = {'.jpg', '.jpeg', '.png', '.webp'}
        files = sorted([
            f for f in Path('.').iterdir()
            if f.is_file() and f.suffix.lower() in extensions
            and not f.name.endswith('-preview.png') # Exclude previews
        ])

        list_view = self.query_one("#file-list", ListView)
        for f in files:
            list_view.append(ListItem(Label(f.name)))

        if not files:
            list_view.append(ListItem(Label("No image files found in current directory")))

    def on_list_view_selected(self, event: ListView.Selected):
        label = event.item.query_one(Label)
        filename = str(label.render())
        if filename.startswith("No image files"):
            return

        file_path = Path(filename).resolve()
        try:
            screen = HalftoneScreen(file_path)
        except HalftoneError as e:
            self.notify(f"Error: {e}", severity="error")
            return
        self.app.push_screen(screen)


class HalftoneScreen(Screen):
    CSS = """
    HalftoneScreen {
        layout: horizontal;
    }
    #sidebar {
        width: 40;
        height: 100%;
        dock: left;
        border-right: solid $accent;
        padding: 1 2;
        background: $surface;
    }
    #preview-container {
        width: 1fr;
        height: 100%;
        align: center middle;
        overflow: auto;
    }
    #preview {
        width: auto;
        height: auto;
    }
    Label {
        margin-bottom: 1;
        color: $text-muted;
    }
    .header-label {
        color: $text;
        text-style: bold;
        margin-top: 1;
    }
    Input {
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit_app", "Quit"),
        Binding("escape", "back", "Back/Quit"),
        Binding("o", "open_viewer", "Open Viewer"),
        Binding("s", "save_output", "Save"),
    ]

    def __init__(self, image_path: Path):
        super().__init__()
        self.image_path = image_path
        if not self.image_path.exists():
            raise DecodeError(f"File {image_path} not found")

        try:
            self.original_image = decode_image(self.image_path.read_bytes()).to_pil().convert('RGB')
        except OSError as e:
            raise DecodeError(f"Failed to read image: {e}") from e

        # Preview file path
        self.preview_path = self.image_path.parent / f"{self.image_path.stem}-preview.png"

        # Renders the downscaled preview; tracks which request is the newest
        self.session = HalftoneSession()

        # Debounce timer
        self.update_timer = None

    def compose(self) -> ComposeResult:
        yield Header()

        with VerticalScroll(id="sidebar"):
            yield Label("Halftone Controls", classes="header-label")

            yield Label("Dot Size (2 - 32)")
            yield Input(value=str(DEFAULT_SIZE), id="size")

            yield Label("Screen Angle (0 - 360)")
            yield Input(value=str(DEFAULT_ANGLE), id="angle")

            yield Label("Saturation (0.5 - 3)")
            yield Input(value=str(DEFAULT_SATURATION), id="saturation")

            yield Label("Contrast (0.5 - 2)")
            yield Input(value=str(DEFAULT_CONTRAST), id="contrast")

            yield Label("Seed (Optional Integer)")
            yield Input(value="", placeholder="Random", id="seed")

            yield Label("")
            yield Button("Open External Viewer (o)", id="btn-open", variant="primary")
            yield Label("")
            yield Button("Save & Quit (s)", id="btn-save", variant="success")

        with Container(id="preview-container"):
            yield Static(id="preview")

        yield Footer()

    def on_mount(self):
        self.update_preview()

    def on_input_changed(self, event):
        self.update_preview_debounced()

    def on_button_pressed(self, event):
        if event.button.id == "btn-open":
            self.action_open_viewer()
        elif event.button.id == "btn-save":
            self.action_save_output()

    def on_unmount(self):
        self.session.shutdown()

    def action_quit_app(self):
        self.app.exit()

    def action_back(self):
        # If we pushed this screen, popping it goes back.
        # But if it was the first screen, we should exit.
        if len(self.app.screen_stack) > 1:
            self.app.pop_screen()
        else:
            self.app.exit()

    def update_preview_debounced(self):
        if self.update_timer:
            self.update_timer.stop()
        self.update_timer = self.set_timer(0.5, self.update_preview)

    def _get_halftone_options(self) -> HalftoneOptions:
        """Read the controls, falling back to defaults on bad input, and clamp."""
        def read_float(widget_id: str, default: float) -> float:
            try:
                return float(self.query_one(widget_id, Input).value)
            except ValueError:
                return default

        options = HalftoneOptions(
            size=read_float("#size", DEFAULT_SIZE),
            angle=read_float("#angle", DEFAULT_ANGLE),
            saturation=read_float("#saturation", DEFAULT_SATURATION),
            contrast=read_float("#contrast", DEFAULT_CONTRAST),
        )
        return options.clamped()

    def _get_seed(self):
        seed_str = self.query_one("#seed", Input).value
        try:
            return int(seed_str) if seed_str.strip() else None
        except ValueError:
            return None

    def _get_preview_target_size(self) -> Tuple[int, int]:
        """Calculate the target pixel dimensions for the preview based on container size."""
        container = self.query_one("#preview-container")
        width = container.size.width or 80
        height = container.size.height or 40

        # Adjust for padding
        width = max(20, width - 4)
        height = max(10, height - 2)

        # One character cell shows two pixels stacked vertically
        target_w_max = width
        target_h_max = height * 2

        img_w, img_h = self.original_image.size

        scale_w = target_w_max / img_w
        scale_h = target_h_max / img_h
        scale = min(scale_w, scale_h)

        new_w = int(img_w * scale)
        new_h = int(img_h * scale)

        # Ensure new_h is even
        if new_h % 2 != 0:
            new_h -= 1

        return max(1, new_w), max(1, new_h)

    def _select_preview_source(self, target_w: int, target_h: int) -> None:
        """Give the session a downscaled copy of the image, once per preview size."""
        selection_id = f"{self.image_path}@{target_w}x{target_h}"
        if self.session.selection_id == selection_id:
            return

        preview_input = self.original_image.resize((target_w, target_h), Image.Resampling.BILINEAR)
        buffer = io.BytesIO()
        preview_input.save(buffer, 'PNG')
        self.session.select(selection_id, buffer.getvalue(), target_w, target_h)

    def update_preview(self):
        try:
            options = self._get_halftone_options()
            self.session.seed = self._get_seed()

            target_w, target_h = self._get_preview_target_size()
            self._select_preview_source(target_w, target_h)

            # Shrink the dots along with the image so the preview keeps its look
            scale = target_w / self.original_image.size[0]
            preview_options = HalftoneOptions(
                size=max(MIN_SIZE, options.size * scale),
                angle=options.angle,
                saturation=options.saturation,
                contrast=options.contrast,
            )
            request = self.session.request(preview_options)
        except HalftoneError as e:
            self.notify(f"Error updating preview: {e}", severity="error")
            return

        self.run_worker(
            lambda: self._render_preview(request),
            thread=True,
            group="preview",
            exit_on_error=False,
        )

    def _render_preview(self, request: RenderRequest) -> None:
        if not self.session.is_current(request):
            return
        result = self.session.run(request)
        self.app.call_from_thread(self._show_preview, result)

    def _show_preview(self, result: HalftoneResult) -> bool:
        """Display a finished preview unless a newer request superseded it."""
        if not self.session.accept(result):
            return False

        result_img = Image.open(io.BytesIO(result.data)).convert('RGB')
        result_img.save(self.preview_path)

        ascii_art = self.image_to_ascii(result_img)
        self.query_one("#preview", Static).update(ascii_art)
        return True

    def image_to_ascii(self, img: Image.Image) -> Text:
        """Convert PIL image to coloured half-block text for preview."""
        target_w, target_h = img.size

        pixels = img.load()
        if pixels is None:
            return Text("Error loading image pixels")

        text = Text()

        for y in range(0, target_h, 2):
            for x in range(target_w):
                r1, g1, b1 = cast(Tuple[int, int, int], pixels[x, y])

                # Check next row if available
                if y + 1 < target_h:
                    r2, g2, b2 = cast(Tuple[int, int, int], pixels[x, y + 1])
                else:
                    r2, g2, b2 = 0, 0, 0

                # Foreground color is top pixel, Background is bottom pixel
                # using unicode upper half block ▀
                color_top = f"rgb({r1},{g1},{b1})"
                color_bot = f"rgb({r2},{g2},{b2})"

                text.append("▀", style=Style(color=color_top, bgcolor=color_bot))
            text.append("\n")

        return text

    def action_open_viewer(self):
        """Open a full resolution render in an external viewer."""
        try:
            self.notify("Generating full resolution preview...")
            full_preview_path = self.image_path.parent / f"{self.image_path.stem}-preview-full.png"
            halftone_image(
                self.image_path,
                self._get_halftone_options(),
                seed=self._get_seed(),
                output_path=full_preview_path
            )

            if sys.platform == "linux":
                subprocess.Popen(["xdg-open", str(full_preview_path)])
            elif sys.platform == "darwin": # macOS
                subprocess.Popen(["open", str(full_preview_path)])
            elif sys.platform == "win32":
                subprocess.Popen(["start", str(full_preview_path)], shell=True)
            self.notify("Opened external viewer")
        except (HalftoneError, OSError) as e:
            self.notify(f"Failed to open viewer: {e}", severity="error")

    def action_save_output(self):
        """Save to final filename and quit."""
        try:
            self.notify("Generating high-quality output...")
            final_path = halftone_image(
                self.image_path,
                self._get_halftone_options(),
                seed=self._get_seed(),
                output_path=get_output_filename(self.image_path)
            )

            print(f"Saved to {final_path}")
            self.app.exit()
        except (HalftoneError, OSError) as e:
            self.notify(f"Error saving: {e}", severity="error")
