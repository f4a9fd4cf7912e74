"""Command line front end: inspect documents and read them aloud."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from novelreader.infrastructure.tts import GoogleTranslateProvider, KokoroProvider, SpeechService
from novelreader.models import ProviderKind
from novelreader.services.chapter_segmenter import ChapterSegmenter
from novelreader.services.navigation import NavigationState
from novelreader.services.paginator import paginate_all
from novelreader.services.playback import ReaderEvent, ReaderEventKind
from novelreader.services.progress_store import SqlProgressStore
from novelreader.services.text_extraction import ExtractionError, extract_text
from novelreader.settings import Settings, get_settings

logger = logging.getLogger(__name__)

READ_HELP = """Commands:
  p  play / pause      s  stop        n  skip ahead
  >  next page         <  previous page
  ]  next chapter      [  previous chapter
  q  quit"""


def build_speech_service(settings: Settings) -> SpeechService:
    google = GoogleTranslateProvider(
        base_url=settings.google_tts_url,
        language=settings.google_tts_language,
        client_tag=settings.google_tts_client,
    )
    kokoro = KokoroProvider(
        base_url=settings.kokoro_base_url,
        model=settings.kokoro_model,
        api_key=settings.kokoro_api_key,
        timeout=settings.http_timeout,
    )
    return SpeechService(google, kokoro, prefer_secondary=settings.prefer_secondary_provider)


def _load_navigation(path: Path, settings: Settings) -> NavigationState:
    chapters = ChapterSegmenter().segment(extract_text(path))
    return NavigationState(chapters, paginate_all(chapters, settings.words_per_page))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------
def cmd_chapters(args: argparse.Namespace, settings: Settings) -> int:
    nav = _load_navigation(args.file, settings)
    print(f"Found {nav.chapter_count} chapters in {args.file.name}:")
    print("-" * 70)
    for index, chapter in enumerate(nav.chapters):
        print(
            f"  {index + 1:3d}. {chapter.title:<44} "
            f"{chapter.word_count:>7} words  {nav.total_pages(index):>4} pages"
        )
    print("-" * 70)
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    nav = _load_navigation(args.file, settings)
    if not nav.go_to(args.chapter - 1, args.page - 1):
        print(f"ERROR: No page {args.page} in chapter {args.chapter}", file=sys.stderr)
        return 1
    print(f"{nav.current_chapter.title} (page {nav.page_index + 1} of {nav.total_pages()})")
    print()
    print(nav.current_page.text if nav.current_page else "")
    return 0


def cmd_voices(args: argparse.Namespace, settings: Settings) -> int:
    service = build_speech_service(settings)
    for provider in service.providers:
        print(f"{provider.name}:")
        for voice in provider.list_voices():
            print(f"  {voice.id:<18} {voice.name:<10} {voice.gender or '':<8} {voice.description or ''}")
    return 0


def cmd_progress(args: argparse.Namespace, settings: Settings) -> int:
    store = SqlProgressStore(database_url=settings.database_url)
    record = store.load(args.source) if args.source else store.latest()
    if record is None:
        print("No saved progress")
        return 1
    print(
        f"{record.source_name}: chapter {record.chapter_index + 1}, "
        f"page {record.page_index + 1}, word {record.word_cursor} "
        f"(saved {record.timestamp:%Y-%m-%d %H:%M})"
    )
    return 0


def cmd_read(args: argparse.Namespace, settings: Settings) -> int:
    return asyncio.run(_read(args, settings))


async def _read(args: argparse.Namespace, settings: Settings) -> int:
    # pygame is only needed for audio output
    from novelreader.infrastructure.audio.pygame_player import PygameAudioPlayer
    from novelreader.services.reader_session import ReaderSession

    player = PygameAudioPlayer(timeout=settings.http_timeout)
    session = ReaderSession(
        SqlProgressStore(database_url=settings.database_url),
        build_speech_service(settings),
        player,
        settings,
    )
    session.add_listener(_print_event)
    try:
        view = session.load_file(args.file)
        if args.chapter is not None or args.page is not None:
            chapter = view.chapter_index if args.chapter is None else args.chapter - 1
            page = 0 if args.page is None else args.page - 1
            view = session.go_to_page(chapter, page) or view
        if args.voice or args.provider or args.speed:
            session.update_speech(
                voice_id=args.voice,
                provider_kind=ProviderKind(args.provider) if args.provider else None,
                speed=args.speed,
            )
        print(f"{view.chapter_title}, page {view.page_index + 1} of {view.total_pages}")
        print(READ_HELP)

        if args.sentence is not None:
            session.jump_to_sentence(args.sentence - 1)
        else:
            session.play()
        await _command_loop(session)
    finally:
        session.close()
        await player.aclose()
    return 0


async def _command_loop(session) -> None:
    loop = asyncio.get_running_loop()
    actions = {
        "p": session.toggle,
        "s": session.stop,
        "n": session.skip,
        ">": session.next_page,
        "<": session.previous_page,
        "]": session.next_chapter,
        "[": session.previous_chapter,
    }
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        command = line.strip()
        if not line or command == "q":
            return
        action = actions.get(command)
        if action is None:
            print(READ_HELP)
            continue
        result = action()
        if hasattr(result, "chapter_title"):
            print(f"{result.chapter_title}, page {result.page_index + 1} of {result.total_pages}")


def _print_event(event: ReaderEvent) -> None:
    if event.kind in (ReaderEventKind.STATUS, ReaderEventKind.ERROR):
        print(f"[{event.message}]")
    elif event.kind is ReaderEventKind.PAGE_TURNED:
        print(f"[page {event.page_index + 1} of chapter {event.chapter_index + 1}]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="novelreader",
        description="Read TXT, PDF, EPUB, DOCX and RTF documents aloud, page by page",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    chapters = sub.add_parser("chapters", help="List detected chapters")
    chapters.add_argument("file", type=Path)
    chapters.set_defaults(handler=cmd_chapters)

    show = sub.add_parser("show", help="Print one page")
    show.add_argument("file", type=Path)
    show.add_argument("--chapter", type=int, default=1, metavar="N", help="1-based chapter number")
    show.add_argument("--page", type=int, default=1, metavar="N", help="1-based page number")
    show.set_defaults(handler=cmd_show)

    voices = sub.add_parser("voices", help="List the voices of both speech providers")
    voices.set_defaults(handler=cmd_voices)

    read = sub.add_parser("read", help="Read a document aloud")
    read.add_argument("file", type=Path)
    read.add_argument("--chapter", type=int, default=None, metavar="N")
    read.add_argument("--page", type=int, default=None, metavar="N")
    read.add_argument("--sentence", type=int, default=None, metavar="K", help="Start at sentence K of the page")
    read.add_argument("--voice", default=None, metavar="ID")
    read.add_argument("--provider", choices=[kind.value for kind in ProviderKind], default=None)
    read.add_argument("--speed", type=float, default=None, metavar="X")
    read.set_defaults(handler=cmd_read)

    progress = sub.add_parser("progress", help="Show saved reading progress")
    progress.add_argument("source", nargs="?", default=None, help="Document name; latest when omitted")
    progress.set_defaults(handler=cmd_progress)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = get_settings()
    try:
        return args.handler(args, settings)
    except ExtractionError as exc:
        logger.error(f"Could not open {getattr(args, 'file', '')}: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
