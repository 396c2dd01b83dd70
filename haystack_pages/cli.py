"""CLI entrypoints for building and serving Haystack documents."""

import logging
import webbrowser
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .builder import BuildError, build_site
from .config import Config, load_config
from .highlight import Highlighter, ThemeError, default_registry
from .render import DocumentRenderer, RenderError
from .server import bound_address, make_request_handler, serve, site_url

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="Build and serve Markdown/Org documents as themed HTML.")


ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to a haystack.yml file or the directory holding it."),
]
ThemeLightOption = Annotated[
    str | None,
    typer.Option("--theme-light", metavar="NAME", help="Light theme name for syntax highlighting."),
]
ThemeDarkOption = Annotated[
    str | None,
    typer.Option("--theme-dark", metavar="NAME", help="Dark theme name for syntax highlighting."),
]


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"haystack {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = False,
) -> None:
    """Build and serve Markdown/Org documents as themed HTML."""
    _configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command()
def build(
    config_path: ConfigPathOption = ".",
    theme_light: ThemeLightOption = None,
    theme_dark: ThemeDarkOption = None,
) -> None:
    """Compile src/*.md and src/*.org to output/*.html."""
    config = _load(config_path).with_overrides(theme_light=theme_light, theme_dark=theme_dark)
    renderer = _make_renderer(config)

    def _report(action: str, source: Path, destination: Path) -> None:
        console.print(
            f"{action} {_display_path(source)} -> {_display_path(destination)}",
            markup=False,
            highlight=False,
        )

    try:
        result = build_site(
            config.source_dir,
            config.output_dir,
            renderer,
            config.theme,
            on_progress=_report,
        )
    except BuildError as exc:
        console.print(f"[bold red]Build failed[/]: {exc}")
        raise typer.Exit(code=1) from exc
    except (RenderError, OSError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Build aborted[/]: {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        "[bold green]Build complete[/]: "
        f"{len(result.rendered)} page(s) rendered, {len(result.copied)} file(s) copied "
        f"into {_display_path(config.output_dir)}"
    )


@app.command("serve")
def serve_documents(
    config_path: ConfigPathOption = ".",
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host interface to bind the server."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to listen on (default 4000)."),
    ] = None,
    theme_light: ThemeLightOption = None,
    theme_dark: ThemeDarkOption = None,
    open_browser: Annotated[
        bool,
        typer.Option(
            "--open-browser/--no-open-browser",
            help="Automatically open the site in a browser after starting.",
        ),
    ] = False,
) -> None:
    """Serve on-demand HTML from src/*.md and src/*.org."""
    if port is not None and (port < 0 or port > 65535):
        raise typer.BadParameter("Port must be between 0 and 65535.")
    config = _load(config_path).with_overrides(
        theme_light=theme_light,
        theme_dark=theme_dark,
        host=host,
        port=port,
    )

    source_dir = config.source_dir
    if not source_dir.exists():
        console.print(f"[bold red]src folder not found[/]: {_display_path(source_dir)}")
        raise typer.Exit(code=1)

    renderer = _make_renderer(config)
    handler = make_request_handler(source_dir, renderer, config.theme)

    try:
        with serve(config.host, config.port, handler) as server:
            url = site_url(*bound_address(server))
            console.print(
                f"[bold green]Serving[/] {_display_path(source_dir)} on {url} (press Ctrl+C to stop)"
            )
            if open_browser:
                webbrowser.open(url)
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                console.print("\n[bold yellow]Stopping server...[/]")
    except OSError as exc:
        console.print(f"[bold red]Failed to start server[/]: {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def themes() -> None:
    """List available syntax highlighting themes."""
    names = default_registry().names()
    console.print(f"Available themes ({len(names)}):", highlight=False)
    for name in names:
        console.print(f"- {name}", highlight=False, markup=False)


def _configure_logging(level: int) -> None:
    root = logging.getLogger()
    if not any(isinstance(handler, RichHandler) for handler in root.handlers):
        root.addHandler(RichHandler(console=err_console, show_path=False, show_time=False))
    logging.getLogger("haystack_pages").setLevel(level)


def _make_renderer(config: Config) -> DocumentRenderer:
    highlighter = Highlighter(default_registry())
    try:
        # Resolve both modes up front so a missing default theme fails before any work.
        highlighter.theme_css(config.theme.light, config.theme.dark)
    except ThemeError as exc:
        console.print(f"[bold red]Theme setup failed[/]: {exc}")
        raise typer.Exit(code=1) from exc
    return DocumentRenderer(highlighter, head_snippet=config.head_snippet)


def _load(path: str) -> Config:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _display_path(path: Path) -> str:
    try:
        return path.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return path.as_posix()
