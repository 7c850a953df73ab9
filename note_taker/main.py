"""Entry point: note-taker command line."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .core.config import ConfigManager, get_config
from .core.constants import NoteType
from .core.errors import NoteTakerError
from .core.formatting import format_duration, format_file_size, preview_text
from .core.note_service import NoteService

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="note-taker", description="Capture and browse notes.")
    parser.add_argument("--config-dir", type=Path, default=None, help="Override ~/.note_taker")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List notes, newest first")
    p.add_argument("--type", choices=[t.value for t in NoteType], default=None)
    p.add_argument("--search", default="")

    p = sub.add_parser("text", help="Add a text note")
    p.add_argument("content")
    p.add_argument("--title", default="")

    p = sub.add_parser("link", help="Add a web link note")
    p.add_argument("url")
    p.add_argument("--title", default=None)
    p.add_argument("--fetch", action="store_true", help="Fetch a text preview")

    p = sub.add_parser("import", help="Import a file")
    p.add_argument("path", type=Path)

    p = sub.add_parser("record", help="Record audio from the default input")
    p.add_argument("title")
    p.add_argument("--seconds", type=float, required=True)

    p = sub.add_parser("play", help="Play an audio note")
    p.add_argument("id")

    p = sub.add_parser("delete", help="Delete a note and its stored file")
    p.add_argument("id")
    return parser


def _format_row(note) -> str:
    extra = ""
    if note.type is NoteType.AUDIO:
        extra = format_duration(note.duration or 0.0)
    elif note.file_size is not None:
        extra = format_file_size(note.file_size)
    elif note.web_url:
        extra = note.web_url
    stamp = note.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")
    lines = preview_text(note).splitlines()
    preview = lines[0] if lines else ""
    return f"{note.id[:8]}  {note.type.value:<7}  {stamp}  {note.title}  [{extra}]  {preview[:60]}"


def _run_event_loop(controller_factory) -> int:
    """Run a Qt event loop until the controller callback calls quit()."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    controller_factory(app)
    return app.exec()


def _record(service: NoteService, config: ConfigManager, title: str, seconds: float) -> int:
    from PyQt6.QtCore import QTimer

    from .core.audio_recorder import create_recording_controller

    if not title.strip():
        print("error: recording title is required", file=sys.stderr)
        return 1
    result: dict = {}

    def setup(app) -> None:
        recorder = create_recording_controller(
            service.documents_dir,
            sample_rate=int(config.get("recording.sample_rate", 44100)),
            channels=int(config.get("recording.channels", 2)),
            tick_interval_ms=int(config.get("recording.tick_interval_ms", 100)),
            parent=app,
        )

        def finish() -> None:
            recorder.stop()
            try:
                result["note"] = service.save_recording(recorder, title)
            except (NoteTakerError, ValueError) as exc:
                result["error"] = exc
                recorder.release()
            app.quit()

        try:
            recorder.start()
        except NoteTakerError as exc:
            result["error"] = exc
            QTimer.singleShot(0, app.quit)
            return
        QTimer.singleShot(int(seconds * 1000), finish)

    _run_event_loop(setup)
    if "error" in result:
        print(f"error: {result['error']}", file=sys.stderr)
        return 1
    note = result["note"]
    print(f"Saved {note.id} ({format_duration(note.duration or 0.0)})")
    return 0


def _play(service: NoteService, config: ConfigManager, note_id: str) -> int:
    from PyQt6.QtCore import QTimer

    from .core.audio_player import create_playback_controller

    note = next((n for n in service.notes() if n.id.startswith(note_id)), None)
    if note is None or note.audio_url is None:
        print(f"error: no audio note {note_id}", file=sys.stderr)
        return 1
    result: dict = {}

    def setup(app) -> None:
        player = create_playback_controller(
            tick_interval_ms=int(config.get("playback.tick_interval_ms", 100)),
            skip_seconds=float(config.get("playback.skip_seconds", 15.0)),
            parent=app,
        )
        player.playback_finished.connect(app.quit)
        try:
            player.load(note.audio_url)
            player.play()
        except NoteTakerError as exc:
            result["error"] = exc
            player.release()
            QTimer.singleShot(0, app.quit)

    _run_event_loop(setup)
    if "error" in result:
        print(f"error: {result['error']}", file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config = ConfigManager(args.config_dir) if args.config_dir else get_config()

    try:
        service = NoteService.from_config(config)
        if args.command == "list":
            notes = service.search(args.search) if args.search else service.notes()
            if args.type:
                notes = [n for n in notes if n.type is NoteType(args.type)]
            for note in notes:
                print(_format_row(note))
        elif args.command == "text":
            note = service.add_text(args.title, args.content)
            print(f"Saved {note.id}")
        elif args.command == "link":
            note = service.add_web_link(args.url, args.title, fetch=args.fetch)
            print(f"Saved {note.id}")
        elif args.command == "import":
            imported = service.import_file(args.path)
            note = service.save_import(imported)
            print(f"Saved {note.id} as {note.type.value}")
        elif args.command == "record":
            return _record(service, config, args.title, args.seconds)
        elif args.command == "play":
            return _play(service, config, args.id)
        elif args.command == "delete":
            matches = [n for n in service.notes() if n.id.startswith(args.id)]
            if len(matches) != 1:
                print(f"error: {len(matches)} notes match {args.id}", file=sys.stderr)
                return 1
            service.delete(matches[0])
            print(f"Deleted {matches[0].id}")
    except (NoteTakerError, ValueError) as exc:
        log.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
