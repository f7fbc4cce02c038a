"""Best-effort lookup of the locally stored access token."""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class TokenProvider:
    """Supplies the bearer token for backend requests, if one is available."""

    def __init__(self, token: Optional[str] = None, token_file: Optional[str] = None):
        """
        Initialize token provider.

        Args:
            token: Explicit token, takes precedence over the file
            token_file: Path to a file whose first line is the token
        """
        self.token = token or None
        self.token_file = Path(token_file).expanduser() if token_file else None

    def get_token(self) -> Optional[str]:
        """
        Return the current token, or None.

        The file is read on every call so a token written after startup is
        picked up. A missing or unreadable file is not an error.
        """
        if self.token:
            return self.token
        if not self.token_file:
            return None
        try:
            lines = self.token_file.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.debug(f"No access token available from {self.token_file}: {e}")
            return None
        token = lines[0].strip() if lines else ""
        return token or None
