from __future__ import annotations

import json
import logging
import sys
from enum import StrEnum
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path
from typing import Any

import click

from loudtag.config import Config
from loudtag.console import get_console, print_error, print_success, print_tags, set_console
from loudtag.dispatch import EXTENSIONS, OGG_EXTENSIONS, detect_kind, engine_version, get_writer
from loudtag.errors import TagError
from loudtag.models import REPLAYGAIN_REFERENCE, ReplayGain, Scan
from loudtag.safe_logging import configure_rich_logging

logger = logging.getLogger(__name__)

# Supported audio file extensions
AUDIO_EXTENSIONS = tuple(sorted(f"*{ext}" for ext in (*EXTENSIONS, *OGG_EXTENSIONS)))


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


def _collect_audio_files(paths: tuple[Path, ...]) -> list[Path]:
    """
    Collect audio files from paths (files or directories).

    Recursively searches directories for supported audio formats.
    """
    audio_files: list[Path] = []
    for path in paths:
        if path.is_dir():
            found: set[Path] = set()
            for ext in AUDIO_EXTENSIONS:
                found.update(path.rglob(ext))
            audio_files.extend(sorted(found))
        else:
            audio_files.append(path)
    return audio_files


def _emit(ctx: click.Context, results: list[dict[str, Any]]) -> None:
    if ctx.obj["output"] == OutputFormat.JSON:
        click.echo(json.dumps(results, indent=2))


def _exit_code(results: list[dict[str, Any]]) -> int:
    if not results:
        return ExitCode.NO_RESULTS
    if any("error" in result for result in results):
        return ExitCode.ERROR
    return ExitCode.SUCCESS


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration TOML file",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v for INFO, -vv for DEBUG)")
@click.pass_context
def loudtag(ctx: click.Context, config: Path | None, output: str, verbose: int) -> None:
    """
    loudtag: write ReplayGain 2.0 and R128 loudness tags.

    Stores scan results in MP3, FLAC, Ogg, Opus, MP4, ASF, WAV, AIFF,
    WavPack and Monkey's Audio files.
    """
    cfg = Config.load(config)

    # CLI flag > config file setting
    if verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    console = configure_rich_logging(
        level=log_level,
        hash_paths=cfg.logging.hash_paths,
        format_string=cfg.logging.format,
    )
    set_console(console)

    if config:
        logger.info(f"Loaded config from {config}")

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["output"] = OutputFormat(output)


def _apply_overrides(cfg: Config, **overrides: Any) -> None:
    # CLI > env > config file > defaults
    for name, value in overrides.items():
        if value is not None:
            setattr(cfg.tagging, name, value)


@loudtag.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--track-gain", type=float, required=True, help="Track gain in dB")
@click.option("--track-peak", type=float, required=True, help="Track peak (linear, 1.0 = full scale)")
@click.option("--track-range", type=float, default=0.0, help="Track loudness range in LU")
@click.option(
    "--reference",
    type=float,
    default=REPLAYGAIN_REFERENCE,
    show_default=True,
    help="Reference loudness in LUFS the gains are relative to",
)
@click.option("--album-gain", type=float, help="Album gain in dB")
@click.option("--album-peak", type=float, help="Album peak (linear)")
@click.option("--album-range", type=float, default=0.0, help="Album loudness range in LU")
@click.option("-a", "--album", "do_album", is_flag=True, help="Write album gain and peak")
@click.option("-e", "--extended/--no-extended", default=None, help="Also write reference and ranges")
@click.option(
    "-u", "--unit", type=click.Choice(["dB", "LU"]), help="Unit label for gain and range values"
)
@click.option("-L", "--lowercase/--no-lowercase", default=None, help="Lowercase tag keys")
@click.option("-S", "--strip/--no-strip", default=None, help="Strip other tags before writing")
@click.option("-I", "--id3v2version", type=click.IntRange(2, 4), help="ID3v2 version for MP3/WAV/AIFF")
@click.option(
    "--opus-non-standard/--opus-standard",
    "non_standard_opus",
    default=None,
    help="Write REPLAYGAIN_* instead of R128_* to Opus files",
)
@click.pass_context
def write(
    ctx: click.Context,
    file: Path,
    track_gain: float,
    track_peak: float,
    track_range: float,
    reference: float,
    album_gain: float | None,
    album_peak: float | None,
    album_range: float,
    do_album: bool,
    extended: bool | None,
    unit: str | None,
    lowercase: bool | None,
    strip: bool | None,
    id3v2version: int | None,
    non_standard_opus: bool | None,
) -> None:
    """
    Write loudness tags to FILE from scan results.

    Gains are in dB relative to --reference; peaks are linear. Album values
    are written only with --album.
    """
    cfg: Config = ctx.obj["config"]
    _apply_overrides(
        cfg,
        extended=extended,
        unit=unit,
        lowercase=lowercase,
        strip=strip,
        id3v2version=id3v2version,
        non_standard_opus=non_standard_opus,
    )

    if (album_gain is None) != (album_peak is None):
        raise click.UsageError("--album-gain and --album-peak must be given together")

    album = None
    if album_gain is not None and album_peak is not None:
        album = ReplayGain(
            gain=album_gain,
            peak=album_peak,
            loudness_range=album_range,
            loudness_reference=reference,
        )
    scan = Scan(
        file=file,
        track=ReplayGain(
            gain=track_gain,
            peak=track_peak,
            loudness_range=track_range,
            loudness_reference=reference,
        ),
        album=album,
    )
    options = cfg.tagging.to_write_options(do_album=do_album)

    result: dict[str, Any] = {"file": str(file)}
    try:
        kind = detect_kind(file)
        writer = get_writer(kind, cfg.tagging.non_standard_opus)
        report = writer.write(scan, options)
        result.update(kind=str(kind), written=report.keys_written, removed=report.keys_removed)
    except TagError as e:
        logger.debug(f"Write failed for {file}: {e!r}")
        result["error"] = str(e)

    if ctx.obj["output"] == OutputFormat.TEXT:
        if "error" in result:
            print_error(f"{file.name}: {result['error']}")
        else:
            print_success(f"✔︎ {file.name} ({result['kind']})")
            get_console().print(f"  Written: {', '.join(result['written'])}")
    _emit(ctx, [result])
    sys.exit(_exit_code([result]))


@loudtag.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path), required=True)
@click.option("-S", "--strip/--no-strip", default=None, help="Delete the whole tag where supported")
@click.option("-I", "--id3v2version", type=click.IntRange(2, 4), help="ID3v2 version for MP3/WAV/AIFF")
@click.pass_context
def clear(
    ctx: click.Context,
    paths: tuple[Path, ...],
    strip: bool | None,
    id3v2version: int | None,
) -> None:
    """
    Remove loudness tags from audio files.

    Directories are searched recursively. Unrelated tags are kept unless
    --strip is given.
    """
    cfg: Config = ctx.obj["config"]
    _apply_overrides(cfg, strip=strip, id3v2version=id3v2version)
    options = cfg.tagging.to_write_options()

    audio_files = _collect_audio_files(paths)
    logger.debug(f"Collected {len(audio_files)} audio files")

    results: list[dict[str, Any]] = []
    for audio_file in audio_files:
        result: dict[str, Any] = {"file": str(audio_file)}
        try:
            kind = detect_kind(audio_file)
            report = get_writer(kind).clear(audio_file, options)
            result.update(kind=str(kind), removed=report.keys_removed, stripped=report.stripped)
        except TagError as e:
            result["error"] = str(e)
        results.append(result)

        if ctx.obj["output"] == OutputFormat.TEXT:
            if "error" in result:
                print_error(f"{audio_file.name}: {result['error']}")
            elif result["stripped"]:
                print_success(f"✔︎ {audio_file.name}: tags stripped")
            else:
                print_success(f"✔︎ {audio_file.name}: removed {len(result['removed'])} tags")

    _emit(ctx, results)
    if ctx.obj["output"] == OutputFormat.TEXT:
        errors = sum(1 for r in results if "error" in r)
        get_console().print(f"\nProcessed {len(results)} files, {errors} errors")
    sys.exit(_exit_code(results))


@loudtag.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path), required=True)
@click.pass_context
def show(ctx: click.Context, paths: tuple[Path, ...]) -> None:
    """Show the loudness tags stored in audio files."""
    results: list[dict[str, Any]] = []
    for audio_file in _collect_audio_files(paths):
        result: dict[str, Any] = {"file": str(audio_file)}
        try:
            result["tags"] = get_writer(detect_kind(audio_file)).read_tags(audio_file)
        except TagError as e:
            result["error"] = str(e)
        results.append(result)

        if ctx.obj["output"] == OutputFormat.TEXT:
            if "error" in result:
                print_error(f"{audio_file.name}: {result['error']}")
            else:
                print_tags(audio_file, result["tags"])

    _emit(ctx, results)
    sys.exit(_exit_code(results))


@loudtag.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show loudtag and tag library versions."""
    try:
        loudtag_version = package_version("loudtag")
    except PackageNotFoundError:
        loudtag_version = "unknown"
    mutagen_version = ".".join(str(part) for part in engine_version())

    if ctx.obj["output"] == OutputFormat.JSON:
        click.echo(json.dumps({"loudtag": loudtag_version, "mutagen": mutagen_version}))
    else:
        get_console().print(f"loudtag {loudtag_version} (mutagen {mutagen_version})")


def main() -> None:
    """Entry point for the loudtag CLI."""
    loudtag()


if __name__ == "__main__":
    main()
