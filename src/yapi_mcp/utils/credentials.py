"""Per-project token lookup for YApi.

YApi issues one token per project. The server is configured with a single
string listing all of them::

    YAPI_TOKEN="28:4f1a...,31:9b2c...,c0ffee..."

Each comma-separated entry is split on its first colon into project id and
token. An entry without a colon becomes the default token, used for any
project that has no token of its own.
"""

from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenTable:
    """Immutable mapping of project id to token, with an optional default."""

    tokens: dict[str, str] = field(default_factory=dict)
    default: str = ""

    @property
    def project_ids(self) -> list[str]:
        """Configured project ids, in configuration order."""
        return list(self.tokens)

    def token_for(self, project_id: str | None) -> str:
        """Return the token for a project.

        Falls back to the default token, then to an empty string. An empty
        result means the request cannot be authenticated.
        """
        if project_id is not None and project_id in self.tokens:
            return self.tokens[project_id]
        return self.default


def parse_tokens(raw: str | None) -> TokenTable:
    """Parse a 'projectId:token,...' string into a TokenTable.

    Duplicate project ids keep the last token; several bare tokens keep the
    last one as default.
    """
    tokens: dict[str, str] = {}
    default = ""

    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue

        if ":" not in entry:
            default = entry
            continue

        project_id, token = (part.strip() for part in entry.split(":", 1))
        if not project_id or not token:
            logger.warning("Ignoring malformed token entry for project %r", project_id)
            continue
        tokens[project_id] = token

    return TokenTable(tokens=tokens, default=default)


def mask_token(token: str) -> str:
    """Mask a secret for logging, keeping only the last 4 characters."""
    if len(token) <= 4:  # noqa: PLR2004
        return "****"
    return f"****{token[-4:]}"
