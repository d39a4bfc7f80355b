"""
Command line entry point for rawadf.

Usage:
    rawadf <command> [args]

Commands:
    compare (cmp)   Compare two Extended ADF images
    dosmerge (dos)  Merge two images, preferring DOS tracks
    help (?, h)     Describe the usage of this program or its commands
    info            Print the headers of Extended ADF images
    merge           Merge two images, preferring non-empty tracks
    replace (rpl)   Replace tracks of one image with those of another
    split           Keep only the specified tracks of an image

Exit status is 0 on success and 1 on any failure.
"""

import argparse
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from rawadf import __version__
from rawadf.analysis.reporter import format_copy_summary, print_comparison, print_info
from rawadf.core.comparator import compare_images
from rawadf.core.merge import merge_with_policy
from rawadf.core.settings import MIN_BUFFER_SIZE, Settings, load_settings
from rawadf.core.split import split_tracks
from rawadf.core.track_source import SelectionPolicy, parse_track_specs
from rawadf.imaging.image_formats import EADFError, parse_header
from rawadf.utils.error_handler import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    describe_error,
    error_kind_name,
)
from rawadf.utils.logging import log_error, setup_logging

logger = logging.getLogger(__name__)

PROG = "rawadf"
USAGE = f"{PROG}: Type '{PROG} help' for usage."


# =============================================================================
# Help Text
# =============================================================================

BASIC_HELP = (
    f"usage: {PROG} <command> [args]\n"
    f"{PROG}, version {__version__}.\n"
    f"Type '{PROG} help <command>' for help on a specific command.\n"
    f"Type '{PROG} --version' to see the program version.\n\n"
    "Available commands:"
)

COMMAND_ALIASES: Dict[str, List[str]] = {
    "compare": ["cmp"],
    "dosmerge": ["dos"],
    "help": ["?", "h"],
    "info": [],
    "merge": [],
    "replace": ["rpl"],
    "split": [],
}

COMMAND_HELP: Dict[str, str] = {
    "compare": (
        "compare (cmp): Compare two Extended ADF images.\n"
        "usage: compare SOURCE1 SOURCE2\n\n"
        "Print the extended ADF headers of SOURCE1 and SOURCE2 side by\n"
        "side, highlighting differences with a '*' in the last column.\n\n"
        "Two tracks are considered different if they have different\n"
        "types, different sizes (in either bytes or bits) or the data\n"
        "contained within the track is different.\n\n"
        "With --bytes, the number of differing data bytes is shown for\n"
        "tracks whose types and sizes match.\n"
    ),
    "dosmerge": (
        "dosmerge (dos): Merge two Extended ADF images, preferring DOS tracks.\n"
        "usage: dosmerge SOURCE1 SOURCE2 DESTINATION\n\n"
        "Copy SOURCE1 to DESTINATION replacing non-DOS tracks with the\n"
        "corresponding DOS track from SOURCE2. If the corresponding\n"
        "track in SOURCE2 is not a DOS track, the track from SOURCE1\n"
        "is used.\n\n"
        "The resulting image will have the larger of the number of\n"
        "tracks in SOURCE1 and SOURCE2. Non-DOS tracks from SOURCE2 will\n"
        "be used where there are more tracks in SOURCE2 than SOURCE1.\n"
    ),
    "help": (
        "help (?, h): Describe the usage of this program or its commands.\n"
        "usage: help [SUBCOMMAND...]\n"
    ),
    "info": (
        "info: Print the Extended ADF headers of the specified files.\n"
        "usage: info FILENAME...\n\n"
        "The track type, track size in bytes, track size in bits and the\n"
        "offset of the track data within the Extended ADF file are shown.\n"
    ),
    "merge": (
        "merge: Merge two Extended ADF images.\n"
        "usage: merge SOURCE1 SOURCE2 DESTINATION\n\n"
        "Copy SOURCE1 to DESTINATION replacing empty tracks from\n"
        "SOURCE1 with the corresponding track from SOURCE2. Where a\n"
        "track is not empty in both SOURCE1 and SOURCE2, the data\n"
        "from SOURCE1 is used.\n\n"
        "The resulting image will have the larger of the number of\n"
        "tracks in SOURCE1 and the number in SOURCE2.\n"
    ),
    "replace": (
        "replace (rpl): Replace tracks in an Extended ADF image.\n"
        "usage: replace SOURCE1 SOURCE2 DESTINATION TRACKSPEC...\n\n"
        "Copy SOURCE1 to DESTINATION replacing the specified tracks\n"
        "from SOURCE1 with those from SOURCE2.\n\n"
        "A TRACKSPEC may specify a single track (e.g. \"35\") or a range\n"
        "of tracks (e.g. \"35-45\"). For example:\n\n"
        f"{PROG} replace src1.adf src2.adf dest.adf 15 57-59 77\n\n"
        "will copy src1.adf to dest.adf replacing tracks 15, 57, 58, 59\n"
        "and 77 with those from src2.adf.\n"
    ),
    "split": (
        "split: Split an Extended ADF image.\n"
        "usage: split SOURCE DESTINATION TRACKSPEC...\n\n"
        "Copy SOURCE to DESTINATION including only the specified tracks.\n"
        "The resulting image will have empty (zero length) tracks for\n"
        "all tracks other than the specified tracks.\n\n"
        "A TRACKSPEC may specify a single track (e.g. \"74\") or a range\n"
        "of tracks (e.g. \"74-84\"). For example:\n\n"
        f"{PROG} split src1.adf dest.adf 12 21 38-47\n\n"
        "will create dest.adf containing tracks 12, 21 and 38-47 from\n"
        "src1.adf.\n"
    ),
}


def resolve_command(name: str) -> Optional[str]:
    """Map a command name or alias to its canonical name."""
    for command, aliases in COMMAND_ALIASES.items():
        if name == command or name in aliases:
            return command
    return None


def format_command_list() -> str:
    lines = []
    for command, aliases in COMMAND_ALIASES.items():
        if aliases:
            lines.append(f"   {command} ({', '.join(aliases)})")
        else:
            lines.append(f"   {command}")
    return "\n".join(lines)


# =============================================================================
# Argument Parsing
# =============================================================================

class UsageError(Exception):
    """Raised instead of argparse's exit on bad usage."""
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def _buffer_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid buffer size: {value!r}")
    if size < MIN_BUFFER_SIZE:
        raise argparse.ArgumentTypeError(f"buffer size must be at least {MIN_BUFFER_SIZE}")
    return size


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=PROG, add_help=False)
    parser.add_argument("--version", action="store_true")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--buffer-size", type=_buffer_size, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")

    subparsers = parser.add_subparsers(dest="command", parser_class=_ArgumentParser)

    def add(name: str) -> argparse.ArgumentParser:
        return subparsers.add_parser(name, aliases=COMMAND_ALIASES[name], add_help=False)

    compare = add("compare")
    compare.add_argument("source1")
    compare.add_argument("source2")
    compare.add_argument("--bytes", action="store_true", dest="count_bytes")

    for name in ("merge", "dosmerge"):
        merge = add(name)
        merge.add_argument("source1")
        merge.add_argument("source2")
        merge.add_argument("destination")

    replace = add("replace")
    replace.add_argument("source1")
    replace.add_argument("source2")
    replace.add_argument("destination")
    replace.add_argument("trackspecs", nargs="+")

    split = add("split")
    split.add_argument("source")
    split.add_argument("destination")
    split.add_argument("trackspecs", nargs="+")

    info = add("info")
    info.add_argument("filenames", nargs="+")

    help_cmd = add("help")
    help_cmd.add_argument("topics", nargs="*")

    return parser


# =============================================================================
# Helpers
# =============================================================================

def _check_destination(destination: str, *sources: str) -> None:
    dest_path = Path(destination)
    for source in sources:
        if dest_path.exists() and dest_path.resolve() == Path(source).resolve():
            raise UsageError(f"destination {destination} is also a source")


def _remove_partial(destination: str) -> None:
    try:
        Path(destination).unlink()
        logger.info("Removed partial output %s", destination)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove partial output %s: %s", destination, e)


# =============================================================================
# Commands
# =============================================================================

def cmd_compare(args, settings: Settings, console: Console) -> int:
    with open(args.source1, "rb") as f1, open(args.source2, "rb") as f2:
        header1 = parse_header(f1, args.source1)
        header2 = parse_header(f2, args.source2)
        report = compare_images(header1, f1, header2, f2,
                                buffer_size=settings.compare_buffer_size,
                                count_bytes=args.count_bytes)
    print_comparison(console, report)
    return EXIT_SUCCESS


def _run_merge(policy: SelectionPolicy, args, settings: Settings,
               console: Console, tracks=frozenset()) -> int:
    _check_destination(args.destination, args.source1, args.source2)

    with ExitStack() as stack:
        f1 = stack.enter_context(open(args.source1, "rb"))
        f2 = stack.enter_context(open(args.source2, "rb"))
        header1 = parse_header(f1, args.source1)
        header2 = parse_header(f2, args.source2)

        dest = stack.enter_context(open(args.destination, "wb"))
        try:
            result = merge_with_policy(policy, header1, f1, header2, f2, dest,
                                       tracks=tracks, buffer_size=settings.buffer_size)
        except EADFError:
            dest.close()
            _remove_partial(args.destination)
            raise

    summary = format_copy_summary(args.command_name, result, args.destination)
    console.print(escape(summary), soft_wrap=True)
    return EXIT_SUCCESS


def cmd_merge(args, settings: Settings, console: Console) -> int:
    return _run_merge(SelectionPolicy.MERGE, args, settings, console)


def cmd_dosmerge(args, settings: Settings, console: Console) -> int:
    return _run_merge(SelectionPolicy.DOSMERGE, args, settings, console)


def cmd_replace(args, settings: Settings, console: Console) -> int:
    tracks = parse_track_specs(args.trackspecs)
    return _run_merge(SelectionPolicy.REPLACE, args, settings, console, tracks)


def cmd_split(args, settings: Settings, console: Console) -> int:
    tracks = parse_track_specs(args.trackspecs)
    _check_destination(args.destination, args.source)

    with open(args.source, "rb") as src:
        header = parse_header(src, args.source)
        with open(args.destination, "wb") as dest:
            try:
                result = split_tracks(header, src, tracks, dest,
                                      buffer_size=settings.buffer_size)
            except EADFError:
                dest.close()
                _remove_partial(args.destination)
                raise

    summary = format_copy_summary("split", result, args.destination)
    console.print(escape(summary), soft_wrap=True)
    return EXIT_SUCCESS


def cmd_info(args, settings: Settings, console: Console) -> int:
    status = EXIT_SUCCESS
    for filename in args.filenames:
        try:
            with open(filename, "rb") as f:
                header = parse_header(f, filename)
        except (OSError, EADFError) as e:
            _report_error(e, "info")
            status = EXIT_FAILURE
            continue
        print_info(console, header, filename)
    return status


def cmd_help(args, settings: Settings, console: Console) -> int:
    if not args.topics:
        print(BASIC_HELP)
        print(format_command_list())
        return EXIT_SUCCESS

    status = EXIT_SUCCESS
    for i, topic in enumerate(args.topics):
        if i:
            print()
        command = resolve_command(topic)
        if command is None:
            print(f"{topic}: Unknown command", file=sys.stderr)
            status = EXIT_FAILURE
            continue
        print(COMMAND_HELP[command])
    return status


COMMANDS: Dict[str, Callable[..., int]] = {
    "compare": cmd_compare,
    "dosmerge": cmd_dosmerge,
    "help": cmd_help,
    "info": cmd_info,
    "merge": cmd_merge,
    "replace": cmd_replace,
    "split": cmd_split,
}


def _report_error(error: BaseException, context: str) -> None:
    log_error(context, error_kind_name(error), str(error))
    print(describe_error(error, context), file=sys.stderr)


# =============================================================================
# Entry Point
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the rawadf command line.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Process exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        print(USAGE, file=sys.stderr)
        return EXIT_FAILURE

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        command = resolve_command(argv[0]) if argv else None
        if command is None and not argv[0].startswith("-"):
            print(f"{argv[0]}: Unknown command", file=sys.stderr)
        else:
            print(f"{command or PROG}: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return EXIT_FAILURE

    if args.version:
        print(f"{PROG} {__version__}")
        return EXIT_SUCCESS

    if args.command is None:
        print(USAGE, file=sys.stderr)
        return EXIT_FAILURE

    settings = load_settings()
    if args.buffer_size is not None:
        settings.buffer_size = args.buffer_size
        settings.compare_buffer_size = args.buffer_size
    if args.log_file is not None:
        settings.log_file = args.log_file

    setup_logging(settings.log_file, settings.log_level_value,
                  console_level=logging.INFO if args.verbose else None)

    command = resolve_command(args.command)
    args.command_name = command
    console = Console(highlight=False)

    logger.debug("Running %s with %s", command, argv)
    try:
        return COMMANDS[command](args, settings, console)
    except UsageError as e:
        print(f"{command}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except (EADFError, OSError) as e:
        _report_error(e, command)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
