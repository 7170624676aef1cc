"""Documentation extraction backend.

``DenoDocExtractor`` runs ``doc_bridge.ts`` under Deno. The bridge calls
``@deno/doc`` over the root specifier and forwards every module load back over
its stdin/stdout pipes, where it is answered by the Python load callback. Each
import therefore goes through the Loader: its cache, its scheme rules and its
private-network checks. Deno never fetches or caches a documented module.

Specifiers of the form ``deno//<library>`` name Deno's built-in type
libraries. They have no source to load and are documented by the configured
builtin command (``deno doc --json`` by default).
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from moddoc.config import ExtractorSettings
    from moddoc.protocols import LoadFn

log = structlog.get_logger()

UNABLE_TO_LOAD = "Unable to load specifier"
BUILTIN_PREFIX = "deno//"
BRIDGE_SCRIPT = Path(__file__).with_name("doc_bridge.ts")


class ExtractionError(Exception):
    """The extractor rejected the module (unreachable root, syntax error, ...)."""


class DenoDocExtractor:
    """ExtractorProtocol implementation backed by Deno."""

    def __init__(self, settings: ExtractorSettings) -> None:
        self._command = list(settings.command)
        self._builtin_command = list(settings.builtin_command)
        self._builtin_libraries = dict(settings.builtin_libraries)
        self._max_message_bytes = settings.max_message_bytes

    async def extract(self, root: str, load: LoadFn) -> list[dict[str, Any]]:
        if root.startswith(BUILTIN_PREFIX):
            return await self._extract_builtin(root)

        # Loading the root here keeps the "not found" wording independent of
        # the @deno/doc release; the bridge's own load of it is a cache hit.
        if await load(root) is None:
            raise ExtractionError(f'{UNABLE_TO_LOAD}: "{root}"')

        argv = [*self._command, str(BRIDGE_SCRIPT), root]
        log.debug("extractor_started", argv=argv)
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=self._max_message_bytes,
        )
        stderr_task = asyncio.create_task(proc.stderr.read())

        try:
            nodes = await _converse(proc, load)
        except BaseException:
            if proc.returncode is None:
                proc.kill()
            raise
        finally:
            proc.stdin.close()
            await proc.wait()
            stderr = (await stderr_task).decode("utf-8", errors="replace").strip()

        if nodes is None:
            # The bridge exited without reporting a result
            raise ExtractionError(stderr or f"{self._command[0]} exited with {proc.returncode}")
        return nodes

    async def _extract_builtin(self, root: str) -> list[dict[str, Any]]:
        library = root[len(BUILTIN_PREFIX) :]
        extra = self._builtin_libraries.get(library)
        if extra is None:
            raise ExtractionError(f'{UNABLE_TO_LOAD}: "{root}"')

        argv = [*self._builtin_command, *extra, "--json"]
        log.debug("extractor_started", argv=argv)
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ExtractionError(
                message or f"{self._builtin_command[0]} exited with {proc.returncode}"
            )

        return parse_extractor_output(stdout)


async def _converse(proc: asyncio.subprocess.Process, load: LoadFn) -> list[Any] | None:
    """Answer the bridge's load requests until it reports a result or exits."""
    answers: set[asyncio.Task[None]] = set()
    try:
        while True:
            try:
                line = await proc.stdout.readline()
            except ValueError as exc:
                raise ExtractionError(f"Extractor message too large: {exc}") from exc
            if not line:
                return None
            message = _decode_message(line)
            op = message.get("op")
            if op == "load":
                task = asyncio.create_task(_answer_load(proc.stdin, message, load))
                answers.add(task)
                task.add_done_callback(answers.discard)
            elif op == "done":
                nodes = message.get("nodes")
                if not isinstance(nodes, list):
                    raise ExtractionError("Extractor output is not a list of nodes")
                return nodes
            elif op == "error":
                raise ExtractionError(str(message.get("message", "")))
            else:
                raise ExtractionError(f"Unexpected extractor message: {op!r}")
    finally:
        for task in answers:
            task.cancel()


async def _answer_load(
    stdin: asyncio.StreamWriter, message: dict[str, Any], load: LoadFn
) -> None:
    resource = await load(str(message.get("specifier", "")))
    payload = None
    if resource is not None:
        payload = {
            "specifier": resource.final_url,
            "headers": resource.headers,
            "content": resource.content,
        }
    stdin.write((json.dumps({"id": message.get("id"), "resource": payload}) + "\n").encode())
    try:
        await stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        log.debug("extractor_pipe_closed", specifier=message.get("specifier"))


def _decode_message(line: bytes) -> dict[str, Any]:
    try:
        message = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Extractor produced invalid JSON: {exc}") from exc
    if not isinstance(message, dict):
        raise ExtractionError("Extractor message is not an object")
    return message


def parse_extractor_output(stdout: bytes) -> list[dict[str, Any]]:
    """Decode ``deno doc --json`` output.

    Newer releases wrap the node list as ``{"version": N, "nodes": [...]}``;
    older ones print the bare list.
    """
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Extractor produced invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("nodes", [])
    if not isinstance(data, list):
        raise ExtractionError("Extractor output is not a list of nodes")
    return data
