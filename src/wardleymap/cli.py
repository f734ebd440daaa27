"""Command-line interface for rendering map models to SVG and PNG."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .model import MapModel, MapModelError, map_from_json
from .renderer import RasterUnavailableError, render_png, render_svg
from .resources import load_example_map
from .themes import DEFAULT_THEME, theme_names

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720

logger = logging.getLogger(__name__)


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _add_layout_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", nargs="?", help="Input map model (.json)")
    parser.add_argument("--text", help="Raw map model JSON")
    parser.add_argument("--stdout", action="store_true", help="Write output to stdout")
    parser.add_argument("-o", "--output", help="Output path")
    parser.add_argument("--theme", default=DEFAULT_THEME, help="Theme name (see `themes`)")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH)
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="wardleymap",
        description="Render Wardley map models to SVG and PNG.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")

    # SUPPRESS keeps the top-level value unless the flag follows the subcommand.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--error-format", choices=["text", "json"], default=argparse.SUPPRESS)
    common.add_argument("--debug", action="store_true", default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser(
        "compile", parents=[common], help="Render a map model to SVG"
    )
    _add_layout_arguments(compile_parser)

    render_parser = subparsers.add_parser(
        "render", parents=[common], help="Render a map model to PNG"
    )
    _add_layout_arguments(render_parser)
    render_parser.add_argument("--scale", type=float, default=1.0)

    subparsers.add_parser("themes", parents=[common], help="List available themes")
    subparsers.add_parser("example", parents=[common], help="Print an example map model")

    return parser


def _read_input(path: Optional[str], text: Optional[str]) -> tuple[str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(encoding="utf-8"), input_path
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe map model JSON into stdin.",
            exit_code=2,
        )
    return data, None


def _load_model(source: str, source_path: Optional[Path]) -> MapModel:
    try:
        return map_from_json(source)
    except json.JSONDecodeError as exc:
        raise CliError(
            "E_PARSE_JSON",
            f"failed to parse map model JSON: {exc.msg} at line {exc.lineno}, column {exc.colno}",
            hint="The input must be the JSON map model produced by the map parser.",
            exit_code=2,
            file=str(source_path) if source_path else None,
        )


def _check_dimensions(args: argparse.Namespace) -> None:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )
    if args.width <= 0 or args.height <= 0:
        raise CliError(
            "E_ARGS",
            "--width and --height must be > 0",
            hint="Use positive pixel sizes like 1280x720.",
            exit_code=2,
        )


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _write_bytes(path: Path, content: bytes) -> None:
    try:
        path.write_bytes(content)
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _error_from_exception(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, MapModelError):
        return CliError(
            exc.code,
            str(exc),
            hint="Check that every component and anchor has a name and numeric coordinates.",
            exit_code=3,
            retryable=True,
        )
    if isinstance(exc, RasterUnavailableError):
        return CliError(
            "E_RASTER",
            str(exc),
            hint="Use `compile` for SVG output, or install the cairo library.",
            exit_code=4,
            retryable=False,
        )
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_compile(args: argparse.Namespace) -> int:
    _check_dimensions(args)
    source, source_path = _read_input(args.input, args.text)
    model = _load_model(source, source_path)
    svg_text = render_svg(model, args.width, args.height, args.theme)

    if args.stdout or (source_path is None and not args.output):
        sys.stdout.write(svg_text)
        if not svg_text.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = Path(args.output) if args.output else source_path.with_suffix(".svg")
    _write_text(output_path, svg_text)
    print(f"Wrote {output_path}")
    return 0


def _handle_render(args: argparse.Namespace) -> int:
    _check_dimensions(args)
    if args.scale <= 0:
        raise CliError(
            "E_ARGS",
            "--scale must be > 0",
            hint="Use a positive scale factor like 1 or 2.",
            exit_code=2,
        )

    source, source_path = _read_input(args.input, args.text)
    model = _load_model(source, source_path)
    svg_text = render_svg(model, args.width, args.height, args.theme)
    png_bytes = render_png(svg_text, scale=args.scale)

    if args.stdout or (source_path is None and not args.output):
        sys.stdout.buffer.write(png_bytes)
        return 0

    output_path = Path(args.output) if args.output else source_path.with_suffix(".png")
    _write_bytes(output_path, png_bytes)
    print(f"Wrote {output_path}")
    return 0


def _handle_themes() -> int:
    for name in theme_names():
        marker = " (default)" if name == DEFAULT_THEME else ""
        print(f"{name}{marker}")
    return 0


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, render, themes, example.",
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("WARDLEYMAP_DEBUG") == "1"
    _configure_logging(debug_enabled)
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "render":
            return _handle_render(args)
        if args.command == "themes":
            return _handle_themes()
        if args.command == "example":
            print(load_example_map())
            return 0

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, render, themes, example.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint="Use subcommands: compile, render, themes, example.",
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        logger.debug("command failed with %s", err.code)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
