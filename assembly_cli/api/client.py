"""HTTP client for the transcription and question-answering API.

WHY: Both CLI flows share one authenticated HTTP configuration: the same
Authorization and Content-Type headers, the same timeouts, and the same
rules for turning transport failures and unparseable bodies into typed
errors. This module keeps all HTTP details behind one
class so the poller and the question flow never touch httpx directly.

HOW: Wraps a synchronous httpx.Client built once from Settings. The
AssemblyClient is a context manager: enter it to open the connection
pool, exit to close it. Each API operation is a separate method:
submit_transcription → get_transcript (called by the poller) and
ask_questions for the question flow. _request_json() is the single
choke point that maps httpx errors and JSON decoding failures onto the
exception hierarchy in assembly_cli.errors.

RULES:
- Always use the context manager (with AssemblyClient(settings) as client:)
- Authorization header carries the raw token, no "Bearer" prefix
- No retries here; every failure propagates to the caller
- Status codes are logged, not raised; the body decides the error type
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from assembly_cli.api.models import Answer, Question
from assembly_cli.config import (
    FINAL_MODEL,
    HTTP_CONNECT_TIMEOUT_S,
    HTTP_TIMEOUT_S,
    Settings,
)
from assembly_cli.errors import (
    AnswerParseError,
    MalformedResponse,
    MissingIdentifier,
    MissingResponseField,
    TransportError,
)

logger = logging.getLogger(__name__)


class AssemblyClient:
    """Synchronous client for the transcript and question endpoints.

    WHY: One object owns the headers and connection pool for a whole run,
    so the submission, every poll, and the question batch reuse them.

    HOW: Wraps httpx.Client with the auth and JSON content-type headers.
    A custom transport can be injected for tests (httpx.MockTransport).

    RULES:
    - Use as: with AssemblyClient(settings) as client: ...
    - settings is required; the client never reads the environment
    - transport is for tests only
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def settings(self) -> Settings:
        return self._settings

    def __enter__(self) -> AssemblyClient:
        self._client = httpx.Client(
            headers={
                "Authorization": self._settings.api_token,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(HTTP_TIMEOUT_S, connect=HTTP_CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AssemblyClient must be used as a context manager: "
                "with AssemblyClient(settings) as client: ..."
            )
        return self._client

    def _request_json(
        self,
        method: str,
        url: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        WHY: Every endpoint fails the same two ways before its own field
        checks run: the connection breaks, or the body is not JSON.
        Handling them in one place keeps the messages uniform.

        HOW: Issues the request and decodes JSON. httpx.HTTPError becomes
        TransportError and a decoding ValueError becomes MalformedResponse.
        A non-2xx status is logged as a warning; its JSON body is returned
        like any other, so a missing field still surfaces as MissingField.

        RULES:
        - The decoded value is returned as-is, object or not
        - Error messages include the method and URL
        - MalformedResponse for a non-2xx reply carries the status code
        """
        client = self._ensure_client()
        logger.debug("%s %s", method, url)
        try:
            resp = client.request(method, url, json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if not resp.is_success:
            logger.warning("%s %s returned HTTP %d", method, url, resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            if resp.is_success:
                raise MalformedResponse(
                    f"could not read body of {method} {url} response: {e}"
                ) from e
            raise MalformedResponse(
                f"{method} {url} returned HTTP {resp.status_code} "
                f"with a non-JSON body: {_snippet(resp.text)}"
            ) from e

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit_transcription(self, audio_url: str) -> str:
        """Submit an audio URL for transcription and return the job ID.

        WHY: The service transcribes asynchronously. Submission only
        creates the job; the poller waits for it to finish.

        HOW: POSTs the audio URL with topic (IAB category) and entity
        detection enabled, then pulls the string "id" out of the reply.

        RULES:
        - Exactly one POST, no retry
        - Raises MissingIdentifier if "id" is absent or not a string
        - Raises TransportError / MalformedResponse on failure

        Args:
            audio_url: Publicly reachable URL of the audio to transcribe.

        Returns:
            The job identifier assigned by the service.
        """
        data = {
            "audio_url": audio_url,
            "iab_categories": True,
            "entity_detection": True,
        }
        parsed = self._request_json("POST", self._settings.transcript_url, data)

        job_id = parsed.get("id") if isinstance(parsed, dict) else None
        if not isinstance(job_id, str) or not job_id:
            raise MissingIdentifier(parsed)

        logger.info("Submitted %s as transcript %s", audio_url, job_id)
        return job_id

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def polling_url(self, job_id: str) -> str:
        return "{}/{}".format(self._settings.transcript_url, job_id)

    def get_transcript(self, job_id: str) -> Any:
        """Fetch the current status payload for one transcription job.

        The payload is returned undecoded beyond JSON parsing; checking
        the "status" field is the poller's job.
        """
        return self._request_json("GET", self.polling_url(job_id))

    # ------------------------------------------------------------------
    # Questions
    # ------------------------------------------------------------------

    def ask_questions(
        self,
        transcript_ids: Sequence[str],
        questions: Sequence[Question],
    ) -> List[Answer]:
        """Ask a batch of questions about one or more transcripts.

        HOW: One POST with the transcript IDs, the questions exactly as
        loaded, and the fixed final model. The top-level "response"
        list is parsed in full before anything is returned.

        RULES:
        - Raises MissingResponseField if "response" is absent
        - Raises AnswerParseError if "response" is not a list of
          {question, answer} string objects
        - Answers keep the order the service returned them in

        Args:
            transcript_ids: Job identifiers of completed transcripts.
            questions: Questions to send, in order.

        Returns:
            List of Answer objects.
        """
        data = {
            "transcript_ids": list(transcript_ids),
            "questions": [q.to_dict() for q in questions],
            "final_model": FINAL_MODEL,
        }
        parsed = self._request_json("POST", self._settings.question_url, data)

        if not isinstance(parsed, dict) or "response" not in parsed:
            raise MissingResponseField(parsed)

        raw_answers = parsed["response"]
        if not isinstance(raw_answers, list):
            raise AnswerParseError(
                "failed to parse 'response' into a list of answers: "
                "expected a list, got {}".format(type(raw_answers).__name__)
            )
        try:
            answers = [Answer.from_dict(a) for a in raw_answers]
        except ValueError as e:
            raise AnswerParseError(
                f"failed to parse 'response' into a list of answers: {e}"
            ) from e

        logger.info(
            "Received %d answer(s) for %d question(s)", len(answers), len(questions)
        )
        return answers


def _snippet(text: str, limit: int = 200) -> str:
    text = " ".join(text.split())
    if not text:
        return "(empty)"
    if len(text) > limit:
        return text[:limit] + "..."
    return text
