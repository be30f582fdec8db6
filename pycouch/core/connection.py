from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from pycouch.utils.exceptions import NotConnected

if TYPE_CHECKING:
    from pycouch.core.view import View

logger = logging.getLogger(__name__)

_DB_NAME_RE = re.compile(r"^[a-z][a-z0-9_$()+/-]*$")


@dataclass(frozen=True)
class Database:
    """A CouchDB database bound to a registered HTTP client."""

    name: str
    client: httpx.AsyncClient
    alias: str = "default"

    @property
    def path(self) -> str:
        """URL path of the database, relative to the server root."""
        return "/" + quote(self.name, safe="")

    def view(self, view_id: str, document_class: type | None = None) -> "View":
        """Start a view query against this database."""
        from pycouch.core.executor import HttpViewExecutor
        from pycouch.core.view import View

        return View(
            view_id,
            document_class,
            executor=HttpViewExecutor(view_id, database=self),
        )


_clients: dict[str, httpx.AsyncClient] = {}
_databases: dict[str, Database] = {}


async def connect(
    uri: str,
    *,
    alias: str = "default",
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Database:
    """Connect to a CouchDB database and register the connection.

    Args:
        uri: Database URI, ``http(s)://[user:password@]host[:port]/database``.
        alias: Connection alias for multi-database setups.
        timeout: Request timeout in seconds.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``.

    Returns:
        The Database handle.

    Raises:
        ValueError: If URI format is invalid
    """
    logger.info(f"Connecting to CouchDB with alias '{alias}'")

    try:
        server_url, db_name, auth = _parse_uri(uri)
        client_kwargs: dict[str, Any] = {
            "base_url": server_url,
            "timeout": timeout,
            "headers": {"Accept": "application/json"},
        }
        if auth is not None:
            client_kwargs["auth"] = auth
        if transport is not None:
            client_kwargs["transport"] = transport
        client = httpx.AsyncClient(**client_kwargs)
        previous = _clients.pop(alias, None)
        if previous is not None:
            await previous.aclose()
        db = Database(name=db_name, client=client, alias=alias)
        _clients[alias] = client
        _databases[alias] = db
        logger.info(f"Connected to database '{db_name}' with alias '{alias}'")
        return db
    except Exception as e:
        logger.error(f"Failed to connect to CouchDB: {e}")
        raise


async def disconnect(alias: str = "default") -> None:
    """Disconnect and remove a registered connection.

    Args:
        alias: Connection alias to disconnect
    """
    client = _clients.pop(alias, None)
    _databases.pop(alias, None)
    if client is not None:
        await client.aclose()
        logger.info(f"Disconnected from CouchDB (alias: '{alias}')")


def get_database(alias: str = "default") -> Database:
    """Retrieve a registered database or raise NotConnected.

    Args:
        alias: Connection alias

    Returns:
        Database handle

    Raises:
        NotConnected: If no connection exists for the alias
    """
    try:
        return _databases[alias]
    except KeyError:
        raise NotConnected(
            f"No connection registered for alias '{alias}'. Call connect() first."
        )


def get_client(alias: str = "default") -> httpx.AsyncClient:
    """Retrieve a registered client or raise NotConnected.

    Args:
        alias: Connection alias

    Returns:
        httpx.AsyncClient instance

    Raises:
        NotConnected: If no client exists for the alias
    """
    try:
        return _clients[alias]
    except KeyError:
        raise NotConnected(
            f"No client registered for alias '{alias}'. Call connect() first."
        )


def _parse_uri(uri: str) -> tuple[str, str, tuple[str, str] | None]:
    """Split a CouchDB database URI into server URL, database name and auth.

    Args:
        uri: CouchDB database URI

    Returns:
        Tuple of (server_url, database_name, auth or None)

    Raises:
        ValueError: If URI format is invalid or database name cannot be extracted
    """
    if not uri:
        raise ValueError("CouchDB URI cannot be empty")

    try:
        url = httpx.URL(uri)
    except httpx.InvalidURL as e:
        raise ValueError(f"Invalid CouchDB URI: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(
            "Cannot parse CouchDB URI. "
            "Expected format: http://[user:password@]host:port/database"
        )

    db_name = url.path.strip("/")
    if not db_name:
        raise ValueError(
            "Cannot extract database name from URI. "
            "Expected format: http://host:port/database"
        )

    # CouchDB naming rules
    if not _DB_NAME_RE.match(db_name):
        raise ValueError(
            f"Invalid database name '{db_name}'. Database names must start with a "
            f"lowercase letter and contain only lowercase letters, digits and _$()+-/."
        )

    auth = None
    if url.username:
        auth = (url.username, url.password)

    server_url = f"{url.scheme}://{url.netloc.decode('ascii').rsplit('@', 1)[-1]}"
    logger.debug(f"Extracted database name: {db_name}")
    return server_url, db_name, auth
