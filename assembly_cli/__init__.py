"""assembly-cli: command-line client for a speech-to-text and Q&A web API.

WHY: Transcription through the service is asynchronous: a job is
submitted, runs remotely, and must be polled until it finishes. This
package turns that lifecycle into one blocking command, and adds a
second command for asking questions about finished transcripts.

HOW: Three layers: configuration (config.py), HTTP access (api/), and
the workflows built on it (core/poller.py, core/storage.py,
core/questions.py). cli.py wires them together.

RULES:
- Configuration is loaded once and passed explicitly; nothing below
  cli.py reads the environment
- All failures are AssemblyError subclasses (errors.py)
"""

__version__ = "0.1.0"
