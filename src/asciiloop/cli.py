"""CLI interface for asciiloop."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from asciiloop import __version__
from asciiloop.config import CONFIG_FILE, AsciiloopConfig

console = Console()


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="asciiloop")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """asciiloop - Loop ASCII-art animations from a frame-data file.

    The frame file is written by an external converter; asciiloop plays it
    and restarts the animation whenever the file is rewritten.

    \b
    Usage:
      asciiloop play                     # Play the configured frame file
      asciiloop play output.data         # Play a specific file
      asciiloop play --html-out view.html
      asciiloop inspect output.data      # Show frames and styling problems
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = AsciiloopConfig.load()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("frame_file", required=False)
@click.option("--interval", "-i", type=click.IntRange(min=1), help="Milliseconds per frame")
@click.option(
    "--html-out",
    type=click.Path(dir_okay=False),
    help="Write frames to an HTML file instead of the terminal",
)
@click.option(
    "--duration",
    "-d",
    type=click.FloatRange(min=0, min_open=True),
    help="Stop after this many seconds",
)
@click.pass_context
def play(
    ctx: click.Context,
    frame_file: str | None,
    interval: int | None,
    html_out: str | None,
    duration: float | None,
) -> None:
    """Play the frame file, restarting whenever it changes."""
    config: AsciiloopConfig = ctx.obj["config"]

    if interval is not None:
        config.playback.interval_ms = interval
    if html_out is not None:
        config.display.markup = "html"
        config.display.html_path = html_out

    path = Path(frame_file or config.watch.frame_file)
    if not path.resolve().parent.is_dir():
        console.print(f"[red]Directory not found:[/red] {path.parent}")
        ctx.exit(1)
    if html_out is not None and not Path(html_out).resolve().parent.is_dir():
        console.print(f"[red]Directory not found:[/red] {Path(html_out).parent}")
        ctx.exit(1)
    if not path.exists():
        console.print(f"[yellow]Waiting for[/yellow] {path} [dim](Ctrl-C to stop)[/dim]")

    try:
        asyncio.run(_play(config, path, duration))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


async def _play(config: AsciiloopConfig, frame_file: Path, duration: float | None) -> None:
    """Run the watch coordinator on the current event loop."""
    from asciiloop.coordinator import WatchCoordinator
    from asciiloop.scheduler import AsyncioScheduler
    from asciiloop.sinks import HtmlFileSink, LiveSink

    sink: HtmlFileSink | LiveSink
    if config.display.markup == "html" and config.display.html_path:
        sink = HtmlFileSink(config.display.html_path)
    else:
        config.display.markup = "console"
        sink = LiveSink(console)

    scheduler = AsyncioScheduler(asyncio.get_running_loop())
    coordinator = WatchCoordinator.from_config(config, sink, scheduler, frame_file)
    coordinator.activate()
    try:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)
    finally:
        coordinator.deactivate()
        sink.close()


@main.command()
@click.argument("frame_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def inspect(ctx: click.Context, frame_file: str) -> None:
    """Decode a frame file and report its frames."""
    from asciiloop.frames import DecodeError, load_frames
    from asciiloop.style import translate_frames

    try:
        frames = load_frames(frame_file)
    except DecodeError as e:
        console.print(f"[red]Cannot decode {frame_file}:[/red] {e}")
        ctx.exit(1)

    rendered = translate_frames(frames, flavor="console")

    table = Table(title=f"Frames in {frame_file}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Lines", justify="right")
    table.add_column("Width", justify="right")
    table.add_column("Status")

    for i, frame in enumerate(rendered):
        lines = frame.text.plain.splitlines() or [""]
        status = (
            "[green]ok[/green]"
            if frame.status == "rendered"
            else f"[yellow]{len(frame.anomalies)} anomalies[/yellow]"
        )
        table.add_row(str(i), str(len(lines)), str(max(len(line) for line in lines)), status)

    console.print(table)

    for i, frame in enumerate(rendered):
        for anomaly in frame.anomalies:
            console.print(
                f"  [yellow]frame {i}[/yellow] offset {anomaly.offset}: "
                f"{escape(repr(anomaly.sequence))} ({anomaly.reason})",
                markup=True,
                highlight=False,
            )

    console.print(f"\n[bold]{len(rendered)}[/bold] frame(s)")


@main.group()
def config() -> None:
    """Show or change configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration."""
    cfg: AsciiloopConfig = ctx.obj["config"]
    console.print_json(cfg.model_dump_json(exclude_none=True))


@config.command("set-frame-file")
@click.argument("path")
@click.pass_context
def config_set_frame_file(ctx: click.Context, path: str) -> None:
    """Set the frame file to watch."""
    cfg: AsciiloopConfig = ctx.obj["config"]
    cfg.watch.frame_file = path
    cfg.save(CONFIG_FILE)
    console.print(f"[green]Frame file set:[/green] {path}")


if __name__ == "__main__":
    main()
