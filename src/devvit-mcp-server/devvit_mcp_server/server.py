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

import os
import sys
from devvit_mcp_server.devvit_logs.tools import DevvitLogsTools
from fastmcp import FastMCP
from loguru import logger
from starlette.requests import Request
from starlette.responses import JSONResponse


DEFAULT_PORT = 3335
SUPPORTED_TRANSPORTS = ('stdio', 'streamable-http', 'sse')

mcp = FastMCP(
    'devvit-mcp-server',
    instructions='Use this MCP server to read logs of Devvit apps installed on Reddit communities. The devvit_logs tool runs the `devvit logs` CLI for a subreddit (and optionally an app) and returns the most recent output. Outside of a Devvit workspace an app name must be provided.',
)

# Initialize and register Devvit tools
try:
    devvit_logs_tools = DevvitLogsTools(executable=os.getenv('DEVVIT_CLI_PATH', 'devvit'))
    devvit_logs_tools.register(mcp)
    logger.info('Devvit logs tools registered successfully')
except Exception as e:
    logger.error(f'Error initializing Devvit tools: {str(e)}')
    raise


# Health check endpoint for HTTP transports
@mcp.custom_route('/health', methods=['GET'], include_in_schema=False)
async def health_check(request: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({'status': 'ok'})


def _configure_logging():
    # stdout carries the protocol on the stdio transport, so logs go to stderr
    logger.remove()
    logger.add(sys.stderr, level=os.getenv('DEVVIT_MCP_LOG_LEVEL', 'INFO'))


def _resolve_port(raw_port: str) -> int:
    try:
        return int(raw_port)
    except ValueError:
        suffix = raw_port.rsplit(':', 1)[-1]
        if raw_port.startswith('tcp://') and suffix.isdigit():
            port = int(suffix)
            logger.warning(f'Normalized DEVVIT_MCP_PORT {raw_port} to {port}')
            return port
        logger.warning(f'Invalid DEVVIT_MCP_PORT {raw_port}, defaulting to {DEFAULT_PORT}')
        return DEFAULT_PORT


def main():
    """Run the MCP server."""
    _configure_logging()
    logger.info('Initializing Devvit MCP server...')
    transport = os.getenv('DEVVIT_MCP_TRANSPORT', 'stdio')
    if transport not in SUPPORTED_TRANSPORTS:
        logger.warning(f'Unknown DEVVIT_MCP_TRANSPORT {transport}, defaulting to stdio')
        transport = 'stdio'

    if transport == 'stdio':
        mcp.run(transport='stdio')
    else:
        host = os.getenv('DEVVIT_MCP_SERVER_HOST', '127.0.0.1')
        port = _resolve_port(os.getenv('DEVVIT_MCP_PORT', str(DEFAULT_PORT)))
        logger.info(f'Serving on {host}:{port} over {transport}')
        mcp.run(transport=transport, host=host, port=port)

    logger.info('Devvit MCP server stopped')


if __name__ == '__main__':
    main()
