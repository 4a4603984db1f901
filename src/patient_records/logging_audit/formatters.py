"""Log formatting with optional redaction of patient names and credentials."""

import logging
import re
from typing import List, Tuple

REDACTION_RULES: List[Tuple[re.Pattern[str], str]] = [
    # Authorization header values
    (re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*'), 'Bearer [TOKEN-REDACTED]'),
    # password=secret, "password": "secret"
    (re.compile(r'("?password"?\s*[=:]\s*)"?[^"\s,}]+"?', re.IGNORECASE),
     r'\1[PASSWORD-REDACTED]'),
    # name=Ada Shaw up to the next field separator
    (re.compile(r'name=["\']?([^"\'|]+?)["\']?(?=\s*(?:\||$))'), 'name=[NAME-REDACTED]'),
    # Patient payload fields in logged request/response bodies
    (re.compile(r'("(?:firstName|lastName|fatherName)"\s*:\s*)"[^"]*"'),
     r'\1"[NAME-REDACTED]"'),
    (re.compile(r'(Patient|Name):\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)'),
     r'\1: [NAME-REDACTED]'),
]


def redact(text: str) -> str:
    """Apply every redaction rule to ``text``."""
    for pattern, replacement in REDACTION_RULES:
        text = pattern.sub(replacement, text)
    return text


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that can scrub patient names, bearer tokens and passwords.

    Redaction runs on the fully formatted line, so exception text and the
    logged REST bodies are covered as well as the message itself.

    Example:
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(PIIRedactingFormatter(redact_pii=True))
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

    @property
    def patterns(self) -> List[Tuple[re.Pattern[str], str]]:
        return REDACTION_RULES

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        return redact(line) if self.redact_pii else line
