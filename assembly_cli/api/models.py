"""Question and Answer records and transcription status values.

WHY: The question endpoint takes and returns small, fixed JSON objects.
Typed dataclasses make the shapes explicit and give one place to
validate what the service sends back.

HOW: Each dataclass maps 1:1 to an API JSON object. from_dict() parses
raw dicts and raises ValueError on shape mismatches; callers translate
that into the domain exception that fits their context.

RULES:
- Question.to_dict() always emits all three keys (null for absent optionals)
- Answer requires string question and answer fields
- Status values other than "completed" and "error" are non-terminal
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

STATUS_QUEUED = "queued"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


@dataclass
class Question:
    """A single question to ask about one or more transcripts.

    RULES:
    - question: the question text, required
    - answer_format: optional hint such as "short sentence"
    - answer_options: optional list of allowed answers
    """

    question: str
    answer_format: Optional[str] = None
    answer_options: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Any) -> Question:
        """Parse a Question from a dict loaded from the questions file."""
        if not isinstance(data, dict):
            raise ValueError(f"question entry must be an object, got {type(data).__name__}")
        question = data.get("question")
        if not isinstance(question, str):
            raise ValueError("question entry needs a string 'question' field")

        answer_format = data.get("answer_format")
        if answer_format is not None and not isinstance(answer_format, str):
            raise ValueError("'answer_format' must be a string or null")

        answer_options = data.get("answer_options")
        if answer_options is not None:
            if not isinstance(answer_options, list) or not all(
                isinstance(o, str) for o in answer_options
            ):
                raise ValueError("'answer_options' must be a list of strings or null")
            answer_options = list(answer_options)

        return cls(
            question=question,
            answer_format=answer_format,
            answer_options=answer_options,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "answer_format": self.answer_format,
            "answer_options": self.answer_options,
        }


@dataclass
class Answer:
    """A question/answer pair returned by the service."""

    question: str
    answer: str

    @classmethod
    def from_dict(cls, data: Any) -> Answer:
        if not isinstance(data, dict):
            raise ValueError(f"answer entry must be an object, got {type(data).__name__}")
        question = data.get("question")
        answer = data.get("answer")
        if not isinstance(question, str) or not isinstance(answer, str):
            raise ValueError(
                "answer entry needs string 'question' and 'answer' fields"
            )
        return cls(question=question, answer=answer)
