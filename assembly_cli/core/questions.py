"""Question batches: load from file, ask, and print the answers.

WHY: The question flow reads a user-written JSON file, sends every
question in one request, and prints the answers for a human to read.

HOW: load_questions() parses the file into Question records.
ask_and_print() sends the batch through AssemblyClient.ask_questions()
and only writes to the output stream after the whole answer list parsed.

RULES:
- The questions file is a JSON array of Question objects
- Questions are sent exactly as loaded
- Answers are printed in the order the service returned them
- Nothing is printed if the response cannot be parsed
- A question/answer mismatch at the same position is logged, not fatal
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Union

from assembly_cli.api.client import AssemblyClient
from assembly_cli.api.models import Answer, Question
from assembly_cli.errors import QuestionFileError

logger = logging.getLogger(__name__)


def load_questions(file_path: Union[str, Path]) -> List[Question]:
    """Read a JSON array of questions from file_path.

    Raises:
        QuestionFileError: The file is unreadable, not JSON, not an
            array, or an entry lacks a string "question".
    """
    path = Path(file_path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise QuestionFileError(f"failed to open file {path}: {e}") from e

    try:
        raw = json.loads(content)
    except ValueError as e:
        raise QuestionFileError(f"failed to parse JSON in {path}: {e}") from e

    if not isinstance(raw, list):
        raise QuestionFileError(
            f"{path} must contain a JSON array of questions, got {type(raw).__name__}"
        )

    questions: List[Question] = []
    for index, entry in enumerate(raw):
        try:
            questions.append(Question.from_dict(entry))
        except ValueError as e:
            raise QuestionFileError(f"{path}: question {index}: {e}") from e

    logger.debug("Loaded %d question(s) from %s", len(questions), path)
    return questions


def render_answers(answers: Sequence[Answer], stream: Optional[TextIO] = None) -> None:
    """Print each answer as a "Question:" / "Answer:" line pair."""
    if stream is None:
        stream = sys.stdout
    for a in answers:
        print("Question: {}".format(a.question), file=stream)
        print("Answer: {}".format(a.answer), file=stream)


def _warn_on_reordering(questions: Sequence[Question], answers: Sequence[Answer]) -> None:
    if len(questions) != len(answers):
        logger.warning(
            "Sent %d question(s) but received %d answer(s)", len(questions), len(answers)
        )
    for index, (q, a) in enumerate(zip(questions, answers)):
        if q.question != a.question:
            logger.warning(
                "Answer %d is for %r, but question %d was %r",
                index, a.question, index, q.question,
            )


def ask_and_print(
    client: AssemblyClient,
    transcript_ids: Sequence[str],
    questions: Sequence[Question],
    stream: Optional[TextIO] = None,
) -> List[Answer]:
    """Ask a question batch and print the answers.

    Errors from the client propagate before anything is printed.

    Returns:
        The parsed answers, in the order they were printed.
    """
    answers = client.ask_questions(transcript_ids, questions)
    _warn_on_reordering(questions, answers)
    render_answers(answers, stream)
    return answers
