"""API client package: HTTP interface to the transcript and question endpoints.

RULES:
- All HTTP calls go through AssemblyClient (no direct httpx usage elsewhere)
- Response shapes are parsed into the dataclasses in models.py
"""

from assembly_cli.api.client import AssemblyClient
from assembly_cli.api.models import Answer, Question

__all__ = ["AssemblyClient", "Answer", "Question"]
