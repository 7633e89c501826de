"""Command-line interface for assembly-cli.

WHY: Users need two things from the terminal: turn an audio URL (or a
job they already started) into a transcript file, and ask questions
about finished transcripts. The CLI wires configuration, the HTTP
client, the poller, and the question flow behind two subcommands.

HOW: Uses argparse with "transcribe" and "question" subcommands.
Settings are loaded once after parsing, passed into AssemblyClient,
and the client is shared by every call of the run. Status messages go
to stderr; answers go to stdout.

RULES:
- transcribe: --audio-url submits first; --transcript-id alone resumes polling
- transcribe with neither flag exits 1 before any API call
- question: --questions-file-path plus one or more --transcript-id
- Exit 0 on success, 1 on any error (AssemblyError or unexpected),
  130 on Ctrl-C or SIGTERM
- .env is loaded from the working directory before anything else
- SIGTERM sets the poller's cancel event instead of killing mid-write
"""

from __future__ import annotations

import argparse
import functools
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from assembly_cli import __version__
from assembly_cli.api.client import AssemblyClient
from assembly_cli.config import load_env_file, load_settings, log_level_from_env
from assembly_cli.core.poller import TranscriptPoller
from assembly_cli.core.questions import ask_and_print, load_questions
from assembly_cli.core.storage import write_transcript
from assembly_cli.errors import AssemblyError, PollCancelled

logger = logging.getLogger(__name__)

_NO_TRANSCRIPT_ID = "no transcript id present for request"


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: stdout carries the answers of the question flow and must stay
    clean for piping.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else log_level_from_env()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # httpx logs every request at INFO
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _install_sigterm(cancel_event: threading.Event):
    """Route SIGTERM to the cancel event; returns the previous handler."""
    if threading.current_thread() is not threading.main_thread():
        return None

    def _handler(signum, frame):  # noqa: ANN001
        logger.info("Received signal %s, cancelling", signum)
        cancel_event.set()

    return signal.signal(signal.SIGTERM, _handler)


def _run_transcribe(args: argparse.Namespace) -> None:
    """Submit (optionally) and poll one transcription job.

    HOW: Validates the flags, loads Settings, then submits the audio URL
    when one is given and polls the resulting (or supplied) job ID until
    the payload is written to <output_dir>/<job_id>.json.
    """
    if not args.audio_url and not args.transcript_id:
        _fail(_NO_TRANSCRIPT_ID)

    output_dir: Optional[Path] = None
    if args.output_dir:
        output_dir = Path(args.output_dir).resolve()
        if not output_dir.is_dir():
            _fail("Output directory does not exist: {}".format(output_dir))

    settings = load_settings(require_transcript=True)
    interval = args.interval if args.interval is not None else settings.poll_interval

    cancel_event = threading.Event()
    previous = _install_sigterm(cancel_event)
    try:
        with AssemblyClient(settings) as client:
            job_id = args.transcript_id
            if args.audio_url:
                if job_id:
                    logger.warning(
                        "Both --audio-url and --transcript-id given; submitting %s "
                        "and ignoring transcript %s", args.audio_url, job_id,
                    )
                _status("Submitting {}...".format(args.audio_url))
                job_id = client.submit_transcription(args.audio_url)

            _status("Transcript ID: {}".format(job_id))
            poller = TranscriptPoller(
                client,
                interval=interval,
                max_attempts=args.max_attempts,
                timeout=args.timeout,
                sink=functools.partial(write_transcript, directory=output_dir),
                cancel_event=cancel_event,
                on_status=_status,
            )
            result = poller.poll(job_id)
            _status("Saved: {}".format(result.output_path))
    finally:
        if previous is not None:
            signal.signal(signal.SIGTERM, previous)


def _run_question(args: argparse.Namespace) -> None:
    """Ask every question in the file about the given transcripts."""
    questions = load_questions(args.questions_file_path)
    settings = load_settings(require_question=True)
    with AssemblyClient(settings) as client:
        ask_and_print(client, args.transcript_id, questions, stream=sys.stdout)


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return n


def _non_negative_float(value: str) -> float:
    f = float(value)
    if f < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return f


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() lets tests inspect
    the parser without touching the network.
    """
    parser = argparse.ArgumentParser(
        prog="assembly-cli",
        description="Transcribe audio through a speech-to-text API and ask "
                    "questions about the transcripts.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s {}".format(__version__)
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe = subparsers.add_parser(
        "transcribe",
        help="Submit an audio URL and wait for its transcript.",
        description="Sends an audio transcription request, or resumes an "
                    "existing one, and saves the transcript as <id>.json.",
    )
    transcribe.add_argument(
        "-a", "--audio-url",
        default=None,
        help="URL of the audio to transcribe (submits a new job).",
    )
    transcribe.add_argument(
        "-t", "--transcript-id",
        default=None,
        help="ID of an existing transcription job to poll instead of submitting.",
    )
    transcribe.add_argument(
        "--interval",
        type=_non_negative_float,
        default=None,
        help="Seconds between status checks (default: POLL_INTERVAL or 10).",
    )
    transcribe.add_argument(
        "--max-attempts",
        type=_positive_int,
        default=None,
        help="Give up after this many status checks (default: unlimited).",
    )
    transcribe.add_argument(
        "--timeout",
        type=_non_negative_float,
        default=None,
        help="Give up after this many seconds of polling (default: unlimited).",
    )
    transcribe.add_argument(
        "--output-dir",
        default=None,
        help="Directory for <id>.json (default: current directory).",
    )
    transcribe.set_defaults(func=_run_transcribe)

    question = subparsers.add_parser(
        "question",
        help="Ask questions about completed transcripts.",
        description="Sends a series of questions and prints the answers.",
    )
    question.add_argument(
        "-q", "--questions-file-path",
        required=True,
        help="Path to a JSON array of questions.",
    )
    question.add_argument(
        "-t", "--transcript-id",
        action="append",
        required=True,
        help="Transcript ID to ask about. Can be specified multiple times.",
    )
    question.set_defaults(func=_run_question)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        load_env_file()
        _configure_logging(args.verbose)
        args.func(args)
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)
    except PollCancelled as e:
        _status(str(e))
        sys.exit(130)
    except AssemblyError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Command %s crashed", args.command, exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
