"""
Regex-based PII detection and redaction for resume text.
"""
import re
from typing import Iterable, List, Union

from resumatch.models.models import PIIData

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.IGNORECASE)
# Optional +1, optional parenthesized area code, 3-3-4 digits
PHONE_RE = re.compile(r"(\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})")
# Two capitalized words; a heuristic, not NER
NAME_RE = re.compile(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b")

EMAIL_PLACEHOLDER = "[EMAIL REDACTED]"
PHONE_PLACEHOLDER = "[PHONE REDACTED]"
NAME_PLACEHOLDER = "[NAME REDACTED]"


def _unique(matches: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(matches))


def extract_pii(text: str) -> PIIData:
    return PIIData(
        emails=_unique(m.group(0) for m in EMAIL_RE.finditer(text)),
        phones=_unique(m.group(0) for m in PHONE_RE.finditer(text)),
        names=_unique(m.group(0) for m in NAME_RE.finditer(text)),
    )


def redact_pii(text: str, pii: Union[PIIData, dict, None], redact_names: bool = False) -> str:
    """Replace every literal email and phone found in ``pii`` with a placeholder.

    Names are left in place unless ``redact_names`` is set. Placeholders never
    match the email or phone patterns, so redacting twice changes nothing.
    """
    if pii is None:
        return text
    if isinstance(pii, dict):
        pii = PIIData(**{k: v or [] for k, v in pii.items() if k in ("emails", "phones", "names")})

    redacted = text
    for email in pii.emails:
        if email:
            redacted = redacted.replace(email, EMAIL_PLACEHOLDER)
    for phone in pii.phones:
        if phone:
            redacted = redacted.replace(phone, PHONE_PLACEHOLDER)
    if redact_names:
        for name in pii.names:
            if name:
                redacted = redacted.replace(name, NAME_PLACEHOLDER)
    return redacted
