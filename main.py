#!/usr/bin/env python3
"""Funnel Player — plays a quiz/funnel JSON file in the terminal."""

import argparse
import json
import logging
import sys
from pathlib import Path


def _parse_placeholders(pairs: list[str]) -> dict[str, str]:
    placeholders: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Placeholder must look like KEY=VALUE, got {pair!r}")
        placeholders[key] = value
    return placeholders


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Funnel Player — play quiz screens in the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Controls:
  1-9               Pick an option / answer a popup
  Up / Down         Move between selections and inputs
  Enter             Press the screen button
  Esc               Leave a branch, or go back one screen
  Q                 Quit

Examples:
  python main.py quiz.json                  Play from the first screen
  python main.py quiz.json --screen intro   Start at screen "intro"
  python main.py quiz.json --check          Validate only
""",
    )
    parser.add_argument("quiz", type=Path, help="Quiz JSON: one screen, an array, or {\"screens\": [...]}")
    parser.add_argument("--check", action="store_true", help="Validate the quiz and exit")
    parser.add_argument("--screen", metavar="ID", help="Start at the screen with this id")
    parser.add_argument(
        "--placeholder",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Substitute a placeholder (repeatable)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    from flow.router import QuizFlow, prepare_screens
    from player.settings import load_settings
    from screens.validator import ScreenValidationError, load_screens_json

    settings = load_settings()
    try:
        placeholders = _parse_placeholders(args.placeholder)
        parsed = load_screens_json(args.quiz.read_text(encoding="utf-8"))
        screens = prepare_screens(parsed, placeholders, settings)
    except (OSError, ScreenValidationError, argparse.ArgumentTypeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.check:
        summary = [{"id": s.id, "items": len(s.content), "category": s.category} for s in screens]
        print(json.dumps({"screens": summary}, indent=2))
        return

    from ui.app import QuizPlayerApp

    app = QuizPlayerApp(QuizFlow(screens, settings, start_at=args.screen))
    app.run()


if __name__ == "__main__":
    main()
