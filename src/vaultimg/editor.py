import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SELECTION_PLACEHOLDER = "{{image}}"


class HostEditor(Protocol):
    def replace_selection(self, text: str) -> None: ...


class NoteEditor:
    """Edits a markdown note on disk.

    The first ``{{image}}`` placeholder plays the role of the selection. A note
    without one has its cursor at the end, so the text is appended there.
    Missing notes are created.
    """

    def __init__(self, note_path: str | Path):
        self.note_path = Path(note_path)

    def replace_selection(self, text: str) -> None:
        content = ""
        if self.note_path.exists():
            content = self.note_path.read_text(encoding="utf-8")

        if SELECTION_PLACEHOLDER in content:
            content = content.replace(SELECTION_PLACEHOLDER, text, 1)
        else:
            if content and not content.endswith("\n"):
                content += "\n"
            content += text + "\n"

        self.note_path.parent.mkdir(parents=True, exist_ok=True)
        self.note_path.write_text(content, encoding="utf-8")
        logger.info(f"Inserted image link into {self.note_path}")
