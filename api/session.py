"""In-process table sessions with signed session IDs."""

import logging
from datetime import datetime, timedelta
from uuid import uuid4

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import config
from table.game import BlackjackTable
from table.strategy import AdvisoryClient, DecisionPolicy

logger = logging.getLogger(__name__)


class SessionSigner:
    """Sign and verify session IDs using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key)

    def sign(self, session_id: str) -> str:
        """Create a signed token from a session ID."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Verify and extract session_id from a signed token.

        Args:
            token: The signed token to verify
            max_age: Maximum age in seconds (defaults to session_ttl)

        Returns:
            The session ID if valid, None otherwise
        """
        max_age = max_age or config.session_ttl
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def build_policy() -> DecisionPolicy:
    """Decision policy for computer seats, with advice when configured."""
    advisory = config.advisory
    if not advisory.enabled:
        return DecisionPolicy()

    client = AdvisoryClient(
        api_key=advisory.api_key,
        url=advisory.url,
        model=advisory.model,
        timeout=advisory.timeout,
    )
    return DecisionPolicy(advisor=client, timeout=advisory.timeout)


def build_table() -> BlackjackTable:
    """A fresh table with the configured rules."""
    return BlackjackTable(rules=config.table.to_rules(), policy=build_policy())


class TableStore:
    """
    Tables kept in memory, keyed by session token.

    Nothing is persisted; a session idle for longer than its TTL is dropped.
    """

    def __init__(self, ttl: int | None = None) -> None:
        self._ttl = ttl or config.session_ttl
        self._tables: dict[str, tuple[BlackjackTable, datetime]] = {}

    def create(self, table: BlackjackTable | None = None) -> str:
        """Open a session for a new table and return its signed token."""
        dropped = self.cleanup_expired()
        if dropped:
            logger.info("Dropped %d expired table sessions", dropped)
        token = get_session_signer().sign(str(uuid4()))
        self.put(token, table or build_table())
        logger.info("Opened table session (%d active)", len(self._tables))
        return token

    def put(self, token: str, table: BlackjackTable) -> None:
        self._tables[token] = (table, datetime.now() + timedelta(seconds=self._ttl))

    def get(self, token: str) -> BlackjackTable | None:
        """Return the session's table and refresh its expiry."""
        entry = self._tables.get(token)
        if entry is None:
            return None

        table, expiry = entry
        if expiry < datetime.now():
            self.delete(token)
            return None

        self.put(token, table)
        return table

    def delete(self, token: str) -> None:
        self._tables.pop(token, None)

    def cleanup_expired(self) -> int:
        """Remove expired sessions."""
        now = datetime.now()
        expired = [token for token, (_, expiry) in self._tables.items() if expiry < now]
        for token in expired:
            del self._tables[token]
        return len(expired)

    def __len__(self) -> int:
        return len(self._tables)


# Global table store
_table_store: TableStore | None = None


def get_table_store() -> TableStore:
    """Get or create the table store."""
    global _table_store
    if _table_store is None:
        _table_store = TableStore()
    return _table_store


def extract_session_id(token: str) -> str | None:
    """
    Extract the raw session ID from a signed token.

    Args:
        token: The signed session token

    Returns:
        The raw session ID if valid, None otherwise
    """
    return get_session_signer().unsign(token)
