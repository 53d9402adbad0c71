import typer
from typing_extensions import Annotated
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
import asyncio
import logging

from vaultimg import __version__
from vaultimg.catalog import MODEL_CATALOG
from vaultimg.config import SETTING_KEYS, load_plugin_settings, settings, update_setting
from vaultimg.core import generate_and_insert
from vaultimg.editor import NoteEditor
from vaultimg.prompt_ui import PromptForm, build_request
from vaultimg.storage import VaultStorage

app = typer.Typer(
    name="vaultimg",
    help="🎨 Generate images from a prompt and insert them into your notes.",
    add_completion=False,
)
settings_app = typer.Typer(help="Show or change the stored plugin settings.")
app.add_typer(settings_app, name="settings")
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"Vaultimg Version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logs.", is_flag=True),
    ] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _storage(vault: str | None) -> VaultStorage:
    return VaultStorage(vault or settings.vault_dir)


@app.command()
def generate(
    note: Annotated[
        str,
        typer.Argument(help="Markdown note that receives the image link."),
    ],
    prompt: Annotated[
        str | None,
        typer.Option(
            "--prompt",
            "-p",
            help="The text prompt for image generation. If not provided, you will be asked to enter it.",
            show_default=False,
        ),
    ] = None,
    width: Annotated[
        int | None,
        typer.Option("--width", "-W", help="Image width in pixels (64-2048)."),
    ] = None,
    height: Annotated[
        int | None,
        typer.Option("--height", "-H", help="Image height in pixels (64-2048)."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model id (see list-models)."),
    ] = None,
    vault: Annotated[
        str | None,
        typer.Option("--vault", help="Vault directory. Defaults to VAULTIMG__VAULT_DIR."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip the form; missing size and model use the stored defaults.",
            is_flag=True,
        ),
    ] = False,
):
    storage = _storage(vault)
    plugin_settings = load_plugin_settings(storage)

    if not plugin_settings.api_token.strip():
        console.print(
            "[bold red]Error:[/bold red] No Replicate API token configured. "
            "Use 'vaultimg settings set api-token <token>'."
        )
        raise typer.Exit(code=1)

    if yes:
        if prompt is None:
            prompt = typer.prompt("Please enter the prompt for image generation")
        try:
            request = build_request(
                prompt,
                width if width is not None else plugin_settings.default_width,
                height if height is not None else plugin_settings.default_height,
                model or plugin_settings.default_model,
            )
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1)
    else:
        form = PromptForm(plugin_settings, console=console)
        request = form.ask(prompt=prompt, width=width, height=height, model_id=model)
        if request is None:
            if form.last_error:
                console.print(f"[bold red]Error:[/bold red] {form.last_error}")
                raise typer.Exit(code=1)
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit()

    console.print(
        f"🖼️ Generating {request.width}x{request.height} image with model: "
        f"[bold cyan]{request.model_identifier}[/bold cyan]"
    )
    console.print(f'📜 Prompt: "{request.prompt}"')
    editor = NoteEditor(storage.root / note)

    async def _generate():
        return await generate_and_insert(request, plugin_settings, storage, editor)

    with console.status("[spinner]Generating image...", spinner="dots"):
        outcome = asyncio.run(_generate())

    if outcome.error:
        console.print(f"\n[bold red]{outcome.notice}[/bold red]")
        raise typer.Exit(code=1)
    console.print(
        Panel(
            f"{outcome.notice}\nSaved to: [green]{outcome.saved_path}[/green]",
            title="[bold green]Success ✨[/bold green]",
            expand=False,
        )
    )


@app.command(name="list-models")
def list_models_command():
    table = Table(title="⚙️ Available Models")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Version", style="green")
    table.add_column("Description", style="yellow")
    for descriptor in MODEL_CATALOG:
        table.add_row(
            descriptor.id,
            descriptor.display_name,
            descriptor.version,
            descriptor.description,
        )
    console.print(table)


@settings_app.command(name="show")
def show_settings(
    vault: Annotated[str | None, typer.Option("--vault", help="Vault directory.")] = None,
):
    plugin_settings = load_plugin_settings(_storage(vault))
    token_status = "✅ Set" if plugin_settings.api_token.strip() else "⚠️ Not Set"
    table = Table(title="🔧 Image Generator Settings")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("api-token", token_status)
    table.add_row("default-width", str(plugin_settings.default_width))
    table.add_row("default-height", str(plugin_settings.default_height))
    table.add_row("default-model", plugin_settings.default_model)
    console.print(table)
    console.print("Get your Replicate API token at: https://replicate.com/account")


@settings_app.command(name="set")
def set_setting(
    key: Annotated[
        str,
        typer.Argument(help=f"One of: {', '.join(SETTING_KEYS)}."),
    ],
    value: Annotated[str, typer.Argument(help="New value.")],
    vault: Annotated[str | None, typer.Option("--vault", help="Vault directory.")] = None,
):
    storage = _storage(vault)
    try:
        update_setting(load_plugin_settings(storage), key, value, storage)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Saved {key}.[/green]")


if __name__ == "__main__":
    app()
