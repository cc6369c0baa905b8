"""
Command-line adapter for VoiceSketch.

Architectural role:
- Exposes parsing and generation from a terminal.
- Delegates all pipeline work to `voicesketch.core.engine.ArtworkOrchestrator`.

Subcommands:
- `parse <text>`: print the classified command as JSON (no side effects).
- `generate <transcript>`: run the voice pipeline.
- `create <prompt> --style <label>`: run the typed pipeline.
- `styles`: list the style catalog.
- no subcommand: interactive session.

Interactive session (per line):
1. Read stdin.
2. Handle local control commands (`exit`/`quit`, `undo`).
3. Route everything else through `process_command` with the current artwork.
4. Print the outcome; a created or edited artwork becomes the current one.

Error handling strategy:
- `VoiceSketchError` prints its message and recovery suggestion; one-shot
  subcommands then exit with status 1.
- EOF and keyboard interrupts end the session without traceback output.

Side effects:
- Configures root logging from `LOG_LEVEL` (default WARNING).
- Builds the runtime, which creates the cache directory and reads the store.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import json
import logging
import os
import sys

from voicesketch.api.runtime import build_runtime
from voicesketch.core.errors import VoiceSketchError
from voicesketch.core.models import Artwork, ImageQuality
from voicesketch.core.styles import ArtStyle
from voicesketch.image import provider_config
from voicesketch.nlp.intent_parser import parse


logger = logging.getLogger(__name__)


# =========================================================
# OUTPUT HELPERS
# =========================================================

def print_error(error: VoiceSketchError) -> None:
    print(f"Error: {error.message}", file=sys.stderr)
    if error.detail:
        print(f"  {error.detail}", file=sys.stderr)
    print(f"Suggestion: {error.recovery_suggestion}", file=sys.stderr)


def print_artwork(artwork: Artwork) -> None:
    print(f"Artwork {artwork.id}")
    print(f"  prompt: {artwork.prompt}")
    print(f"  style:  {artwork.style.label}")
    print(f"  image:  {artwork.image_url}")
    if artwork.tags:
        print(f"  tags:   {', '.join(artwork.tags)}")
    metadata = artwork.metadata
    if metadata:
        print(f"  model:  {metadata.model} ({metadata.generation_time_ms} ms)")


def print_styles() -> None:
    for style in ArtStyle:
        print(f"{style.label:<16} {style.description}")


# =========================================================
# SUBCOMMANDS
# =========================================================

def run_parse(text: str) -> int:
    print(json.dumps(parse(text).to_dict(), indent=2))
    return 0


def run_generate(transcript: str, quality: ImageQuality | None) -> int:
    runtime = build_runtime()
    try:
        artwork = asyncio.run(runtime.orchestrator.generate_from_transcript(transcript, quality=quality))
    except VoiceSketchError as e:
        print_error(e)
        return 1
    print_artwork(artwork)
    return 0


def run_create(prompt: str, style_label: str | None, quality: ImageQuality | None) -> int:
    try:
        style = ArtStyle.from_label(style_label) if style_label else provider_config.DEFAULT_STYLE
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    runtime = build_runtime()
    try:
        artwork = asyncio.run(runtime.orchestrator.generate_from_prompt(prompt, style, quality=quality))
    except VoiceSketchError as e:
        print_error(e)
        return 1
    print_artwork(artwork)
    return 0


# =========================================================
# INTERACTIVE SESSION
# =========================================================

def run_interactive() -> int:
    """
    Read commands line by line and keep a pointer to the current artwork.

    Local commands:
    - `exit` / `quit`: end the session.
    - `undo`: revert the current artwork's last edit.
    """
    runtime = build_runtime()
    orchestrator = runtime.orchestrator
    current: Artwork | None = None

    print("VoiceSketch started. (Type 'exit' to quit)")
    print(f"Provider: {orchestrator.provider.display_name}")
    print(f"Artworks stored: {len(runtime.store.all())}")
    print("-" * 60)

    while True:
        try:
            line = input("Command: ").strip()
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        try:
            if line.lower() == "undo":
                if current is None:
                    print("No artwork selected.")
                    continue
                current = orchestrator.undo_last_edit(current)
                print_artwork(current)
                continue

            result = asyncio.run(orchestrator.process_command(line, artwork=current))

        except VoiceSketchError as e:
            print_error(e)
            continue

        if result.action == "delete":
            print(f"Deleted {current.id}")
            current = None
        elif result.action == "export":
            print(f"Exported: {result.locator}")
        elif result.artwork is not None:
            current = result.artwork
            print_artwork(current)

        print("-" * 60)

    return 0


# =========================================================
# MAIN
# =========================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voicesketch", description="Voice-driven image generation")
    parser.add_argument(
        "--quality",
        choices=[quality.value for quality in ImageQuality],
        default=None,
        help="Output resolution (default: high)",
    )
    sub = parser.add_subparsers(dest="command")

    p_parse = sub.add_parser("parse", help="Classify a transcript")
    p_parse.add_argument("text", nargs="+")

    p_generate = sub.add_parser("generate", help="Generate from a voice transcript")
    p_generate.add_argument("transcript", nargs="+")

    p_create = sub.add_parser("create", help="Generate from a typed prompt")
    p_create.add_argument("prompt", nargs="+")
    p_create.add_argument("--style", default=None, help="Art style label (default: configured default style)")

    sub.add_parser("styles", help="List art styles")
    return parser


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = build_parser().parse_args(argv)
    quality = ImageQuality(args.quality) if args.quality else None

    if args.command == "parse":
        return run_parse(" ".join(args.text))
    if args.command == "generate":
        return run_generate(" ".join(args.transcript), quality)
    if args.command == "create":
        return run_create(" ".join(args.prompt), args.style, quality)
    if args.command == "styles":
        print_styles()
        return 0
    return run_interactive()


if __name__ == "__main__":
    sys.exit(main())
