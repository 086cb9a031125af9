# Sesame RDF Client
# File: tools/tasks.py
# Version: v3
#
# NOTE: This module is the single place where repository operations are
# exposed as MCP tools. The stdio transport simply calls
# `register_tools(server)` to wire these up.

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional

from ..config import SesameConfig
from ..connection import Connection
from ..errors import SesameError
from ..repository import Repository


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape shared by all tools."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


def _error_of(exc: Optional[SesameError]) -> Optional[Dict[str, Any]]:
    if exc is None:
        return None
    return _make_error(exc.code, str(exc))


def _make_connection(cfg: Optional[SesameConfig] = None) -> Connection:
    """Create a Connection from environment variables.

    Note: Callers should prefer invoking this with *no arguments* to keep
    unit tests monkeypatch-friendly (tests often replace _make_connection
    with a no-arg lambda).
    """
    return Connection(config=cfg or SesameConfig.from_env())


def _with_repository(
    repository_id: Optional[str],
    action: Callable[[Repository], Dict[str, Any]],
) -> Dict[str, Any]:
    """Open a repository on a fresh connection, run ``action``, disconnect."""
    repository_id = repository_id or SesameConfig.from_env().default_repository
    if not repository_id:
        return {
            "ok": False,
            "error": _make_error(
                "CONFIG_ERROR",
                "No repository given and SESAME_DEFAULT_REPOSITORY is not set.",
            ),
        }

    try:
        conn = _make_connection()
    except SesameError as exc:
        return {"ok": False, "repository": repository_id, "error": _error_of(exc)}

    try:
        repo = conn.open(repository_id)
        out = action(repo)
    finally:
        conn.disconnect()

    out.setdefault("repository", repository_id)
    out.setdefault("error", _error_of(repo.last_error))
    return out


def _redacted_config() -> Dict[str, Any]:
    cfg = SesameConfig.from_env()
    return {
        "base_url": cfg.base_url,
        "host": cfg.host,
        "default_repository": cfg.default_repository,
        "verify_tls": bool(cfg.verify_tls),
        "timeout_seconds": cfg.timeout,
        "auth": {
            "username_configured": cfg.username is not None,
            "password_configured": bool(cfg.password),
        },
        "limits": {"max_rows": cfg.max_rows},
        "cache_config": {
            "ttl_seconds": cfg.cache_ttl_seconds,
            "max_entries": cfg.cache_max_entries,
        },
    }


# ---------------------------------------------------------------------------
# Blocking implementations
# ---------------------------------------------------------------------------


def _list_repositories(refresh: bool) -> Dict[str, Any]:
    conn = _make_connection()
    try:
        infos = conn.repository_info(refresh=refresh)
    finally:
        conn.disconnect()

    items = [
        {
            "id": info.id,
            "title": info.title,
            "readable": info.readable,
            "writeable": info.writeable,
        }
        for info in infos
    ]
    return {"repositories": items, "count": len(items)}


def _select(
    query: str,
    repository: Optional[str],
    language: Optional[str],
    strip: Optional[str],
    max_rows: Optional[int],
) -> Dict[str, Any]:
    cap = SesameConfig.from_env().max_rows
    requested = cap if max_rows is None else max_rows
    effective = max(1, min(int(requested), cap))

    def action(repo: Repository) -> Dict[str, Any]:
        table = repo.select(query, language=language, strip=strip)
        if table is None:
            return {"ok": False, "columns": [], "rows": [], "truncated": False}
        rows = [table.row(i) for i in range(min(effective, table.row_count))]
        return {
            "ok": True,
            "columns": list(table.header),
            "rows": rows,
            "truncated": table.row_count > len(rows),
            "meta": {
                "row_count": table.row_count,
                "requested_max_rows": max_rows,
                "effective_max_rows": effective,
                "language": language or repo.query_language,
                "strip": table.strip.value,
            },
        }

    return _with_repository(repository, action)


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def list_repositories(refresh: bool = False) -> Dict[str, Any]:
    try:
        return await asyncio.to_thread(_list_repositories, refresh)
    except SesameError as exc:
        return {"repositories": [], "count": 0, "error": _error_of(exc)}


async def select(
    query: str,
    repository: Optional[str] = None,
    language: Optional[str] = None,
    strip: Optional[str] = None,
    max_rows: Optional[int] = None,
) -> Dict[str, Any]:
    return await asyncio.to_thread(_select, query, repository, language, strip, max_rows)


async def upload_data(
    data: str,
    repository: Optional[str] = None,
    format: str = "ntriples",
    base_uri: Optional[str] = None,
    verify: bool = True,
) -> Dict[str, Any]:
    def action(repo: Repository) -> Dict[str, Any]:
        count = repo.upload_data(data, format=format, base_uri=base_uri, verify=verify)
        return {"ok": repo.last_error is None, "statements_added": count}

    return await asyncio.to_thread(_with_repository, repository, action)


async def upload_uri(
    uri: str,
    repository: Optional[str] = None,
    format: str = "rdfxml",
    base_uri: Optional[str] = None,
    verify: bool = True,
) -> Dict[str, Any]:
    def action(repo: Repository) -> Dict[str, Any]:
        count = repo.upload_uri(uri, format=format, base_uri=base_uri, verify=verify)
        return {"ok": repo.last_error is None, "statements_added": count}

    return await asyncio.to_thread(_with_repository, repository, action)


async def remove_statements(
    repository: Optional[str] = None,
    subject: Optional[str] = None,
    predicate: Optional[str] = None,
    object: Optional[str] = None,  # noqa: A002
) -> Dict[str, Any]:
    def action(repo: Repository) -> Dict[str, Any]:
        count = repo.remove(subject, predicate, object)
        return {"ok": repo.last_error is None, "statements_removed": count}

    return await asyncio.to_thread(_with_repository, repository, action)


async def clear_repository(repository: Optional[str] = None) -> Dict[str, Any]:
    def action(repo: Repository) -> Dict[str, Any]:
        return {"ok": repo.clear()}

    return await asyncio.to_thread(_with_repository, repository, action)


async def extract(
    repository: Optional[str] = None,
    format: str = "ntriples",
    explicit_only: bool = False,
) -> Dict[str, Any]:
    def action(repo: Repository) -> Dict[str, Any]:
        body = repo.extract(format=format, explicit_only=explicit_only)
        return {"ok": body is not None, "format": format, "content": body or ""}

    return await asyncio.to_thread(_with_repository, repository, action)


async def diagnostics() -> Dict[str, Any]:
    started = time.time()
    checks: List[Dict[str, Any]] = []

    def _check(name: str, fn: Callable[[], Dict[str, Any]]) -> bool:
        t0 = time.time()
        try:
            extra = fn()
        except SesameError as exc:
            checks.append(
                {
                    "name": name,
                    "ok": False,
                    "error": _error_of(exc),
                    "elapsed_ms": int((time.time() - t0) * 1000),
                }
            )
            return False
        checks.append(
            {
                "name": name,
                "ok": True,
                "error": None,
                "elapsed_ms": int((time.time() - t0) * 1000),
                **extra,
            }
        )
        return True

    def _run() -> bool:
        holder: Dict[str, Connection] = {}

        def init() -> Dict[str, Any]:
            holder["conn"] = _make_connection()
            return {}

        if not _check("connection_init", init):
            return False

        conn = holder["conn"]
        try:
            return _check(
                "list_repositories",
                lambda: {"count": len(conn.repository_info(refresh=True))},
            )
        finally:
            conn.disconnect()

    overall_ok = await asyncio.to_thread(_run)

    return {
        "ok": overall_ok,
        "config": _redacted_config(),
        "checks": checks,
        "meta": {"elapsed_ms": int((time.time() - started) * 1000)},
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(
        name="sesame_list_repositories",
        description="List the repositories visible on the configured Sesame server.",
    )
    async def mcp_list_repositories(refresh: bool = False) -> Dict[str, Any]:
        return await list_repositories(refresh=refresh)

    @server.tool(
        name="sesame_select",
        description="Run a tuple (select) query in SeRQL, RQL or RDQL and return the result table.",
    )
    async def mcp_select(
        query: str,
        repository: Optional[str] = None,
        language: Optional[str] = None,
        strip: Optional[str] = None,
        max_rows: Optional[int] = None,
    ) -> Dict[str, Any]:
        return await select(
            query=query,
            repository=repository,
            language=language,
            strip=strip,
            max_rows=max_rows,
        )

    @server.tool(
        name="sesame_upload_data",
        description="Upload RDF (rdfxml, ntriples or turtle) into a repository.",
    )
    async def mcp_upload_data(
        data: str,
        repository: Optional[str] = None,
        format: str = "ntriples",
        base_uri: Optional[str] = None,
        verify: bool = True,
    ) -> Dict[str, Any]:
        return await upload_data(
            data=data,
            repository=repository,
            format=format,
            base_uri=base_uri,
            verify=verify,
        )

    @server.tool(
        name="sesame_upload_uri",
        description="Load RDF from a URI into a repository.",
    )
    async def mcp_upload_uri(
        uri: str,
        repository: Optional[str] = None,
        format: str = "rdfxml",
        base_uri: Optional[str] = None,
        verify: bool = True,
    ) -> Dict[str, Any]:
        return await upload_uri(
            uri=uri,
            repository=repository,
            format=format,
            base_uri=base_uri,
            verify=verify,
        )

    @server.tool(
        name="sesame_remove_statements",
        description="Remove statements matching an N-Triples pattern; omitted positions match anything.",
    )
    async def mcp_remove_statements(
        repository: Optional[str] = None,
        subject: Optional[str] = None,
        predicate: Optional[str] = None,
        object: Optional[str] = None,  # noqa: A002
    ) -> Dict[str, Any]:
        return await remove_statements(
            repository=repository,
            subject=subject,
            predicate=predicate,
            object=object,
        )

    @server.tool(
        name="sesame_clear_repository",
        description="Remove every statement from a repository.",
    )
    async def mcp_clear_repository(repository: Optional[str] = None) -> Dict[str, Any]:
        return await clear_repository(repository=repository)

    @server.tool(
        name="sesame_extract",
        description="Export repository contents as rdfxml, ntriples, turtle or n3.",
    )
    async def mcp_extract(
        repository: Optional[str] = None,
        format: str = "ntriples",
        explicit_only: bool = False,
    ) -> Dict[str, Any]:
        return await extract(repository=repository, format=format, explicit_only=explicit_only)

    @server.tool(
        name="sesame_diagnostics",
        description="Run health checks against the configured Sesame server.",
    )
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()
