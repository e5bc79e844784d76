import sys
from pathlib import Path
from typing import Optional
from textual.app import App
from ..errors import HalftoneError
from .screens import FileSelectionScreen, HalftoneScreen

class HalftoneApp(App):
    CSS = """
    Screen {
        layout: horizontal;
    }
    """

    def __init__(self, initial_image: Optional[str] = None):
        super().__init__()
        self.initial_image = initial_image

    def on_mount(self):
        if self.initial_image:
            try:
                screen = HalftoneScreen(Path(self.initial_image))
            except HalftoneError as e:
                self.notify(f"Error: {e}", severity="error")
            else:
                self.push_screen(screen)
                return
        self.push_screen(FileSelectionScreen())


def run() -> None:
    """Start the TUI, optionally with an image path as the only argument."""
    initial_image = sys.argv[1] if len(sys.argv) > 1 else None
    HalftoneApp(initial_image).run()
