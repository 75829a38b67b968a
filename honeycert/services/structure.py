"""
Applies the tenant table structure to a freshly created schema

The structure is the tenant Alembic tree; it runs out of process against the
new schema and must finish within the configured timeout.
"""

import asyncio
import os
import sys
from typing import List, Optional, Protocol, Sequence

import structlog

from honeycert.core.exceptions import StructureApplicationError

logger = structlog.get_logger(__name__)

# Tail of the tool output kept in error details
OUTPUT_TAIL_CHARS = 2000


class StructureApplier(Protocol):
    async def apply(self, schema_name: str) -> None: ...


class AlembicStructureApplier:
    """Runs `alembic upgrade head` for the tenant tree, scoped to one schema"""

    def __init__(
        self,
        config_path: str,
        database_url: str,
        timeout: float = 45.0,
        command: Optional[Sequence[str]] = None,
    ):
        self.config_path = config_path
        self.database_url = database_url
        self.timeout = timeout
        self.command = list(command) if command else None

    def build_command(self, schema_name: str) -> List[str]:
        if self.command:
            return list(self.command)
        return [
            sys.executable, "-m", "alembic",
            "-c", self.config_path,
            "-x", f"schema={schema_name}",
            "upgrade", "head",
        ]

    def build_env(self, schema_name: str) -> dict:
        env = dict(os.environ)
        env["DATABASE_URL"] = self.database_url
        env["TENANT_SCHEMA"] = schema_name
        return env

    async def apply(self, schema_name: str) -> None:
        command = self.build_command(schema_name)
        logger.info(f"Applying tenant structure to '{schema_name}'", timeout=self.timeout)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                env=self.build_env(schema_name),
            )
        except OSError as e:
            raise StructureApplicationError(f"could not start structure tool: {e}") from e

        try:
            output, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"Structure application for '{schema_name}' timed out after {self.timeout}s")
            raise StructureApplicationError(f"timed out after {self.timeout}s")
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        text_output = (output or b"").decode("utf-8", errors="replace")
        if process.returncode != 0:
            logger.error(
                f"Structure application for '{schema_name}' failed",
                returncode=process.returncode,
                output=text_output[-OUTPUT_TAIL_CHARS:],
            )
            raise StructureApplicationError(
                f"exit code {process.returncode}: {text_output[-OUTPUT_TAIL_CHARS:].strip()}"
            )

        logger.info(f"Tenant structure applied to '{schema_name}'")
