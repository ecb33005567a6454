from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from .app import ActionResult, HookBuilderApp
from .config import Settings, hydrate_secrets
from .postprocess.pipeline import ScriptPostProcessor
from .postprocess.tables import ProcessingTables
from .prompt_builder.model import EndingStyle, ResistanceLevel


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score video hooks and generate philosophical dialogue scripts."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--email", default=os.environ.get("HOOKBUILDER_EMAIL"), help="Account email")
    parser.add_argument(
        "--password",
        default=os.environ.get("HOOKBUILDER_PASSWORD"),
        help="Account password (defaults to HOOKBUILDER_PASSWORD)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze-hook", help="Score a hook and suggest variations")
    analyze.add_argument("hook")
    analyze.add_argument("--context", required=True)
    analyze.add_argument("--emotion", required=True)
    analyze.add_argument("--theme", required=True)
    analyze.add_argument("--tone")
    analyze.add_argument(
        "--save-variation",
        type=int,
        metavar="N",
        help="Save variation number N (1-based) after analysis",
    )

    sub.add_parser("list-hooks", help="Show saved hook variations").add_argument("--limit", type=int)

    generate = sub.add_parser("generate-script", help="Generate a script from a JSON/YAML brief")
    generate.add_argument("brief", type=Path, help="Path to the script brief (form field names)")
    generate.add_argument("--save", action="store_true", help="Save the script after generating it")

    sub.add_parser("list-scripts", help="Show saved scripts").add_argument("--limit", type=int)

    delete = sub.add_parser("delete-script", help="Delete a saved script")
    delete.add_argument("script_id")

    edit = sub.add_parser("edit-script", help="Replace the text of a saved script")
    edit.add_argument("script_id")
    edit.add_argument("text_file", type=Path, help="File holding the new script text")
    edit.add_argument("--title")

    process = sub.add_parser("process", help="Run the post-processor over a local script file")
    process.add_argument("script_file", type=Path)
    process.add_argument("--resistance", default=ResistanceLevel.MEDIUM.value)
    process.add_argument("--ending", default=EndingStyle.IMPACT.value)
    process.add_argument("--tables", type=Path, help="Optional processing tables JSON/YAML")
    return parser


def _load_mapping(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        import yaml

        return yaml.safe_load(text)


def _report(result: ActionResult) -> int:
    if result.message:
        print(result.message, file=sys.stdout if result.ok else sys.stderr)
    return 0 if result.ok else 1


def _print_analysis(analysis: Any) -> None:
    trip = analysis.trip_breakdown
    print(f"Score: {analysis.score}/10")
    print(
        "T.R.I.P.: "
        f"tension={trip.tension} relatability={trip.relatability} "
        f"intrigue={trip.intrigue} personal_stakes={trip.personal_stakes}"
    )
    if analysis.feedback:
        print(f"\n{analysis.feedback}")
    for number, variation in enumerate(analysis.variations, start=1):
        print(f"{number}. {variation}")
    if analysis.reframe_prompt:
        print(f"\nReframe: {analysis.reframe_prompt}")


def _run_process(args: argparse.Namespace) -> int:
    tables = ProcessingTables.from_file(args.tables) if args.tables else None
    processed = ScriptPostProcessor(tables=tables).process(
        args.script_file.read_text(encoding="utf-8"),
        resistance_level=args.resistance,
        ending_style=args.ending,
    )
    print(processed.text)
    return 0


def _dispatch(app: HookBuilderApp, args: argparse.Namespace) -> int:
    if args.command == "analyze-hook":
        form = {
            "hook": args.hook,
            "context": args.context,
            "emotion": args.emotion,
            "theme": args.theme,
            "tone": args.tone,
        }
        result = app.analyze_hook(form)
        if not result.ok:
            return _report(result)
        _print_analysis(result.payload)
        if args.save_variation:
            variations = result.payload.variations
            if not 1 <= args.save_variation <= len(variations):
                print(f"No variation number {args.save_variation}", file=sys.stderr)
                return 1
            return _report(
                app.save_variation(args.hook, variations[args.save_variation - 1], result.payload.score)
            )
        return 0

    if args.command == "list-hooks":
        result = app.list_hooks(limit=args.limit)
        for saved in result.payload or []:
            print(f"[{saved.hook_id}] {saved.score}/10  {saved.selected_variation}")
            print(f"    from: {saved.original_hook}")
        return _report(result)

    if args.command == "generate-script":
        result = app.generate_script(_load_mapping(args.brief))
        if not result.ok:
            return _report(result)
        print(result.payload.text)
        if result.payload.music_recommendation:
            print(f"\n🎵 Music Recommendation: {result.payload.music_recommendation}")
        return _report(app.save_script()) if args.save else 0

    if args.command == "list-scripts":
        result = app.list_scripts(limit=args.limit)
        for saved in result.payload or []:
            print(f"[{saved.script_id}] {saved.title}  ({saved.created_at})")
        return _report(result)

    if args.command == "delete-script":
        return _report(app.delete_script(args.script_id))

    if args.command == "edit-script":
        listed = app.list_scripts()
        if not listed.ok:
            return _report(listed)
        record = next((item for item in listed.payload if item.script_id == args.script_id), None)
        if record is None:
            print(f"No saved script with id {args.script_id}", file=sys.stderr)
            return 1
        result = app.edit_script(record, args.text_file.read_text(encoding="utf-8"), title=args.title)
        if result.ok:
            print(f"New id: {result.payload.script_id}")
        return _report(result)

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "process":
        return _run_process(args)

    hydrate_secrets()
    app = HookBuilderApp.from_settings(Settings.from_env())
    if not args.email or not args.password:
        parser.error("--email and --password (or HOOKBUILDER_EMAIL/HOOKBUILDER_PASSWORD) are required")
    signed_in = app.sign_in(args.email, args.password)
    if not signed_in.ok:
        return _report(signed_in)
    return _dispatch(app, args)


if __name__ == "__main__":
    raise SystemExit(main())
