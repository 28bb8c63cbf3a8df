# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Devvit logs tools for MCP server."""

import asyncio
import contextlib
import os
import signal
import sys
from devvit_mcp_server.common import decode_output, resolve_repo_root, truncate_tail
from devvit_mcp_server.devvit_logs.models import DevvitLogsParams, LogsToolResult, ProcessOutcome
from fastmcp import Context
from fastmcp.exceptions import ToolError
from loguru import logger
from pydantic import Field
from typing import Annotated, Callable, List, Mapping, Optional


# Process lifetime limits
KILL_TIMEOUT_SECONDS = 2.0  # SIGINT is sent once the CLI has run this long
KILL_GRACE_SECONDS = 5.0  # SIGKILL follows if SIGINT was ignored
READ_CHUNK_SIZE = 4096

APP_REQUIRED_MESSAGE = 'App name is required when running outside of a Devvit workspace'
NO_OUTPUT_MESSAGE = 'No log output returned.'
UNKNOWN_ERROR_MESSAGE = 'Unknown error'


class DevvitLogsTools:
    """Devvit logs tools for MCP server."""

    def __init__(
        self,
        executable: str = 'devvit',
        env: Optional[Mapping[str, str]] = None,
        repo_root_resolver: Callable[[], Optional[str]] = resolve_repo_root,
    ):
        """Initialize the Devvit logs tools.

        Args:
            executable: Name or path of the Devvit CLI
            env: Complete environment for the CLI process. None passes through a
                snapshot of the server's environment taken at invocation time.
            repo_root_resolver: Returns the Devvit workspace root, or None outside one
        """
        self.executable = executable
        self._env = env
        self._repo_root_resolver = repo_root_resolver

    def register(self, mcp):
        """Register all Devvit logs tools with the MCP server."""
        mcp.tool(name='devvit_logs')(self.devvit_logs)

    def build_logs_args(self, params: DevvitLogsParams) -> List[str]:
        """Build the `devvit logs` argument vector.

        Positional arguments come first, then flags in a fixed order regardless of
        how the parameters were supplied. Boolean flags never carry a value.

        Args:
            params: Invocation parameters

        Returns:
            Argument vector without the executable
        """
        args = ['logs', params.subreddit]

        if params.app:
            args.append(params.app)

        if params.config:
            args.extend(['--config', params.config])
        if params.connect:
            args.append('--connect')
        if params.dateformat:
            args.extend(['--dateformat', params.dateformat])
        if params.json_output:
            args.append('--json')
        if params.since:
            args.extend(['--since', params.since])
        if params.verbose:
            args.append('--verbose')

        return args

    async def run_logs(self, params: DevvitLogsParams) -> LogsToolResult:
        """Run `devvit logs` once and normalize its outcome into a result envelope.

        Expected failures (missing app name outside a workspace, spawn errors and
        abnormal exits) are returned as error envelopes rather than raised.
        """
        repo_root = self._repo_root_resolver()
        if not repo_root and not params.app:
            return LogsToolResult.error(APP_REQUIRED_MESSAGE)

        args = self.build_logs_args(params)
        logger.info(f'Executing: {self.executable} {" ".join(args)}')

        env = dict(os.environ) if self._env is None else dict(self._env)
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=repo_root,
                env=env,
            )
        except OSError as e:
            logger.error(f'Failed to spawn devvit logs: {str(e)}')
            return LogsToolResult.error(f'Failed to execute devvit logs: {str(e)}')

        outcome = await self._collect_outcome(process)
        return self._format_outcome(outcome)

    async def _collect_outcome(self, process: asyncio.subprocess.Process) -> ProcessOutcome:
        """Wait for the process to close while capturing stdout and stderr.

        The timeout only requests termination. The outcome is produced once the process
        has exited, so a late timer can never yield a second result. Output still
        held open by a grandchild is waited on for at most KILL_GRACE_SECONDS.
        """
        stdout_chunks: List[bytes] = []
        stderr_chunks: List[bytes] = []
        completion = asyncio.ensure_future(
            asyncio.gather(
                self._drain(process.stdout, stdout_chunks),
                self._drain(process.stderr, stderr_chunks),
                process.wait(),
            )
        )
        timed_out = False

        try:
            try:
                await asyncio.wait_for(asyncio.shield(completion), timeout=KILL_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                timed_out = True
                logger.info(
                    f'Reached timeout ({KILL_TIMEOUT_SECONDS}s), terminating devvit logs process'
                )
                self._interrupt(process)
                try:
                    await asyncio.wait_for(asyncio.shield(completion), timeout=KILL_GRACE_SECONDS)
                except asyncio.TimeoutError:
                    if process.returncode is None:
                        logger.warning(
                            f'devvit logs ignored interrupt for {KILL_GRACE_SECONDS}s, killing it'
                        )
                        self._kill(process)
                    try:
                        await asyncio.wait_for(
                            asyncio.shield(completion), timeout=KILL_GRACE_SECONDS
                        )
                    except asyncio.TimeoutError:
                        # Pipes inherited by a grandchild never reach EOF
                        logger.warning(
                            'devvit logs output pipes still open after exit, dropping remaining output'
                        )
        finally:
            # Only reached with a live process when the invocation itself was cancelled
            self._kill(process)
            if not completion.done():
                completion.cancel()

        return ProcessOutcome(
            stdout=decode_output(stdout_chunks),
            stderr=decode_output(stderr_chunks),
            returncode=process.returncode,
            timed_out=timed_out,
        )

    @staticmethod
    async def _drain(stream: asyncio.StreamReader, chunks: List[bytes]) -> None:
        while chunk := await stream.read(READ_CHUNK_SIZE):
            chunks.append(chunk)

    @staticmethod
    def _interrupt(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        # Windows has no SIGINT delivery for child processes
        with contextlib.suppress(ProcessLookupError):
            if sys.platform == 'win32':
                process.terminate()
            else:
                process.send_signal(signal.SIGINT)

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()

    def _format_outcome(self, outcome: ProcessOutcome) -> LogsToolResult:
        """Turn a finished process into a result envelope.

        Success reports stdout. Failure prefers stderr, then stdout. Both keep only
        the tail of long output.
        """
        if outcome.succeeded:
            logger.info('devvit logs completed')
            return LogsToolResult.success(truncate_tail(outcome.stdout) or NO_OUTPUT_MESSAGE)

        logger.warning(f'devvit logs exited with code {outcome.returncode}')
        return LogsToolResult.error(
            truncate_tail(outcome.stderr or outcome.stdout or UNKNOWN_ERROR_MESSAGE)
        )

    async def devvit_logs(
        self,
        ctx: Context,
        subreddit: str = Field(
            ...,
            description='Provide the subreddit name. The "r/" prefix is optional',
        ),
        app: Annotated[
            Optional[str],
            Field(description='Provide the app name. Required when running outside of a Devvit workspace'),
        ] = None,
        config: Annotated[
            Optional[str],
            Field(description='Path to devvit config file (default: devvit.yaml)'),
        ] = None,
        connect: Annotated[
            bool,
            Field(description='Connect to local runtime'),
        ] = False,
        dateformat: Annotated[
            Optional[str],
            Field(
                description='Format for rendering dates (default: "MMM d HH:mm:ss"). See https://date-fns.org/docs/format for formatting options.'
            ),
        ] = None,
        json: Annotated[
            bool,
            Field(description='Output JSON for each log line'),
        ] = False,
        since: Annotated[
            Optional[str],
            Field(description='Start time for logs (e.g. "15s", "2w1d", "30m"). Defaults to 0m (now)'),
        ] = None,
        verbose: Annotated[
            bool,
            Field(description='Enable verbose output'),
        ] = True,
    ) -> str:
        """Streams logs for an installation within a specified subreddit.

        This is a convenience wrapper around the `devvit logs` CLI command. Supply a subreddit, and optionally an app name,
        as well as any CLI flags you would normally pass to `devvit logs`. The tool executes the command in a child process
        for a couple of seconds and returns the most recent output (up to 2000 characters) or an error message if the
        command fails.

        Usage: Use this tool to inspect recent logs of a Devvit app installed on a subreddit.

        Examples:
            { "subreddit": "mySubreddit" }
            { "subreddit": "r/myTestSubreddit", "app": "my-app", "json": true, "since": "15m" }

        Returns:
        --------
            The tail of the log output. Failures are reported as tool errors carrying the CLI's error output.
        """
        try:
            params = DevvitLogsParams(
                subreddit=subreddit,
                app=app,
                config=config,
                connect=connect,
                dateformat=dateformat,
                json=json,
                since=since,
                verbose=verbose,
            )
            result = await self.run_logs(params)
        except Exception as e:
            logger.error(f'Error in devvit_logs_tool: {str(e)}')
            raise

        if result.isError:
            await ctx.warning(result.text)
            raise ToolError(result.text)
        return result.text
