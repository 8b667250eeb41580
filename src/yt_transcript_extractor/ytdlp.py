"""Thin async wrapper around the yt-dlp command line."""

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass

from yt_transcript_extractor.errors import ConfigurationError, ParseFailure, classify_ytdlp_stderr

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str


class YtDlp:
    def __init__(self, binary: str = "yt-dlp", proxy: str = ""):
        self.binary = binary
        self.proxy = proxy

    async def run(self, args: list[str]) -> ProcessResult:
        cmd = [self.binary, *args]
        if self.proxy:
            cmd[1:1] = ["--proxy", self.proxy]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ConfigurationError(f"{self.binary} not found in PATH") from e
        stdout, stderr = await proc.communicate()
        return ProcessResult(
            returncode=proc.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def run_checked(self, args: list[str]) -> ProcessResult:
        """Run and raise a classified error on a non-zero exit."""
        result = await self.run(args)
        if result.returncode != 0:
            logger.error(f"yt-dlp exited with code {result.returncode}: {result.stderr.strip()}")
            raise classify_ytdlp_stderr(result.stderr, result.returncode)
        return result

    async def dump_json(self, url: str) -> dict:
        result = await self.run_checked(["--dump-json", "--no-warnings", "--no-playlist", url])
        try:
            return json.loads(result.stdout)
        except ValueError as e:
            raise ParseFailure(f"yt-dlp returned invalid JSON: {e}") from e

    async def version(self) -> str | None:
        try:
            result = await self.run(["--version"])
        except ConfigurationError:
            return None
        return result.stdout.strip() or None

    def location(self) -> str | None:
        return shutil.which(self.binary)
