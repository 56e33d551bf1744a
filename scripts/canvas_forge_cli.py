#!/usr/bin/env python3
"""Generate a watermarked image from a prompt (Canvas Forge).

Usage:
  python scripts/canvas_forge_cli.py --prompt "a red bicycle on a beach" \
    --aspect-ratio 1:1 --style Anime --out outputs
  python scripts/canvas_forge_cli.py --prompt "combine the character from image 1 with image 2" \
    --image hero.png --image city.jpg --provider gemini
  python scripts/canvas_forge_cli.py --list-providers

Notes:
- Loads .env from the nearest parent directory that has one.
- The provider defaults to $CANVAS_FORGE_PROVIDER, then stability.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
import time
from pathlib import Path

try:
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover
    load_dotenv = None  # type: ignore

from canvas_forge.api import download_filename, generate_image
from canvas_forge.core.capabilities import list_capabilities
from canvas_forge.core.contracts import ASPECT_RATIOS, DEFAULT_ASPECT_RATIO, DEFAULT_STYLE, STYLES, GenerationRequest, ReferenceImage
from canvas_forge.core.errors import CanvasForgeError
from canvas_forge.core.intake import accept_reference_images
from canvas_forge.providers import build_adapter

LOADING_MESSAGES = [
    "Consulting the digital muse...",
    "Painting pixels with pure imagination...",
    "Adding the finishing touches to your masterpiece...",
    "Translating your dreams into images...",
    "Hold on, the magic is happening...",
]


def _find_repo_dotenv() -> Path | None:
    current = Path.cwd().resolve()
    for parent in (current, *current.parents):
        dotenv_path = parent / ".env"
        if dotenv_path.exists():
            return dotenv_path
    return None


def _load_repo_dotenv() -> Path | None:
    dotenv_path = _find_repo_dotenv()
    if load_dotenv is None:
        return dotenv_path
    if dotenv_path is not None:
        load_dotenv(dotenv_path=dotenv_path, override=False)
    return dotenv_path


class _Spinner:
    def __init__(self, interval: float = 0.15, message_every: float = 3.0) -> None:
        self.interval = interval
        self.message_every = message_every
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)

    def start(self) -> None:
        if sys.stdout.isatty():
            self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()
            sys.stdout.write("\r\033[K")
            sys.stdout.flush()

    def _run(self) -> None:
        frames = "|/-\\"
        started = time.time()
        index = 0
        while not self._stop.is_set():
            message = LOADING_MESSAGES[int((time.time() - started) / self.message_every) % len(LOADING_MESSAGES)]
            sys.stdout.write(f"\r\033[K{message} {frames[index % len(frames)]}")
            sys.stdout.flush()
            time.sleep(self.interval)
            index += 1


def _print_providers() -> None:
    for caps in list_capabilities():
        features = []
        if caps.supports_reference_images:
            features.append("reference images")
        if caps.honors_aspect_ratio:
            features.append("aspect ratio")
        if caps.translates_prompt:
            features.append("prompt translation")
        print(f"{caps.name:<12} {caps.label}")
        print(f"{'':<12} key: {' or '.join(caps.credential_env)}; supports: {', '.join(features) or 'text only'}")


def _load_images(paths: list[str]) -> list[ReferenceImage]:
    incoming = []
    unreadable = []
    for path in paths:
        try:
            incoming.append(ReferenceImage.from_path(path))
        except OSError as exc:
            unreadable.append(f'Could not read "{path}": {exc.strerror or exc}')
    intake = accept_reference_images([], incoming)
    for error in [*unreadable, *intake.errors]:
        print(error, file=sys.stderr)
    if unreadable or not intake.ok:
        raise SystemExit(2)
    return intake.accepted


def _run_generation(args: argparse.Namespace) -> int:
    _load_repo_dotenv()
    request = GenerationRequest(
        prompt=args.prompt,
        reference_images=_load_images(args.image or []),
        aspect_ratio=args.aspect_ratio,
        style=args.style,
    )
    options = {"model": args.model} if args.model else {}
    try:
        request.validate()
        adapter = build_adapter(args.provider, **options)
    except CanvasForgeError as exc:
        print(exc, file=sys.stderr)
        return 2

    out_dir = Path(args.out).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    spinner = _Spinner()
    spinner.start()
    try:
        try:
            result = asyncio.run(generate_image(request, adapter=adapter))
        finally:
            spinner.stop()
    except CanvasForgeError as exc:
        print(f"Generation failed: {exc}", file=sys.stderr)
        return 1
    path = out_dir / download_filename(request.prompt)
    path.write_bytes(result.image_bytes())
    print(path)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Canvas Forge: generate a watermarked image from a prompt.")
    parser.add_argument("--prompt", help="Describe the image to generate")
    parser.add_argument("--image", action="append", help="Reference image path (repeatable, up to 10)")
    parser.add_argument("--aspect-ratio", default=DEFAULT_ASPECT_RATIO, choices=ASPECT_RATIOS)
    parser.add_argument("--style", default=DEFAULT_STYLE, help=f"Visual style ({', '.join(STYLES)})")
    parser.add_argument("--provider", default=None, help="Provider name (default: $CANVAS_FORGE_PROVIDER or stability)")
    parser.add_argument("--model", default=None, help="Optional model override")
    parser.add_argument("--out", default="outputs", help="Output directory (default: outputs)")
    parser.add_argument("--list-providers", action="store_true", help="List providers and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log provider diagnostics.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.list_providers:
        _print_providers()
        return 0
    if not args.prompt or not args.prompt.strip():
        parser.error("--prompt is required")
    return _run_generation(args)


if __name__ == "__main__":
    raise SystemExit(main())
