import logging
from typing import Callable, Optional

import typer
from rich.console import Console
from rich.table import Table

from vaultimg.catalog import MODEL_CATALOG, find_model
from vaultimg.errors import InvalidDimensions
from vaultimg.models import MAX_DIMENSION, MIN_DIMENSION, GenerationRequest, PluginSettings

logger = logging.getLogger(__name__)


def dimensions_valid(width: int, height: int) -> bool:
    return (
        MIN_DIMENSION <= width <= MAX_DIMENSION
        and MIN_DIMENSION <= height <= MAX_DIMENSION
    )


def build_request(prompt: str, width: int, height: int, model_id: str) -> GenerationRequest:
    """Validates form input and builds the request handed to the client."""
    prompt = (prompt or "").strip()
    if not prompt:
        raise ValueError("Please enter a description of the image.")
    if not dimensions_valid(width, height):
        raise InvalidDimensions(width, height)
    return GenerationRequest(
        prompt=prompt, width=width, height=height, model_identifier=model_id
    )


class PromptForm:
    """Terminal form collecting a prompt, dimensions and a model.

    ``ask`` returns exactly one validated request, or None when the user
    cancels. Invalid entries are reported and asked again; when the user
    aborts right after a rejected entry, ``last_error`` keeps its message.
    """

    def __init__(
        self,
        settings: PluginSettings,
        console: Optional[Console] = None,
        prompt_fn: Callable = typer.prompt,
        confirm_fn: Callable = typer.confirm,
    ):
        self.settings = settings
        self.console = console or Console()
        self._prompt = prompt_fn
        self._confirm = confirm_fn
        self.last_error: Optional[str] = None

    def _show_models(self):
        table = Table(title="Available models", show_header=True, header_style="bold magenta")
        table.add_column("#", style="cyan", no_wrap=True)
        table.add_column("Model", style="green")
        table.add_column("Description")
        for index, descriptor in enumerate(MODEL_CATALOG, start=1):
            table.add_row(str(index), descriptor.id, descriptor.description)
        self.console.print(table)

    def _ask_model(self) -> str:
        default = self.settings.default_model
        if find_model(default) is None:
            default = MODEL_CATALOG[0].id
        while True:
            answer = str(self._prompt("Model", default=default)).strip()
            if answer.isdigit() and 1 <= int(answer) <= len(MODEL_CATALOG):
                return MODEL_CATALOG[int(answer) - 1].id
            if find_model(answer) is not None:
                return answer
            self.console.print(f"[bold red]Unknown model:[/bold red] {answer}")

    def ask(
        self,
        prompt: Optional[str] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        model_id: Optional[str] = None,
    ) -> Optional[GenerationRequest]:
        self.last_error = None
        try:
            while True:
                if not prompt or not prompt.strip():
                    prompt = self._prompt("Describe the image you want to generate")
                if width is None:
                    width = self._prompt("Width", default=self.settings.default_width, type=int)
                if height is None:
                    height = self._prompt("Height", default=self.settings.default_height, type=int)
                if model_id is None:
                    self._show_models()
                    model_id = self._ask_model()

                try:
                    request = build_request(prompt, width, height, model_id)
                except InvalidDimensions as e:
                    self.console.print(f"[bold yellow]⚠️ {e}[/bold yellow]")
                    self.last_error = str(e)
                    width = height = None
                    continue
                except ValueError as e:
                    self.console.print(f"[bold yellow]⚠️ {e}[/bold yellow]")
                    self.last_error = str(e)
                    prompt = None
                    continue

                self.last_error = None
                if not self._confirm(
                    f"Generate {request.width}x{request.height} with {request.model_identifier}?",
                    default=True,
                ):
                    logger.debug("Prompt form cancelled at confirmation")
                    return None
                return request
        except typer.Abort:
            logger.debug("Prompt form aborted")
            return None
