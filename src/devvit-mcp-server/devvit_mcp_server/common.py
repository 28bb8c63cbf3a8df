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

"""Shared helpers for the Devvit MCP server."""

import os
from pathlib import Path
from typing import Iterable, Optional


# Output is cut to its tail so the most recent log lines survive
MAX_OUTPUT_LENGTH = 2000
TRUNCATION_MARKER = '…'

WORKSPACE_MARKERS = ('devvit.yaml', 'devvit.yml', 'devvit.json')
WORKSPACE_ROOT_ENV = 'DEVVIT_WORKSPACE_ROOT'


def truncate_tail(text: str, max_length: int = MAX_OUTPUT_LENGTH) -> str:
    """Keep the trailing max_length characters of text, prefixed with an ellipsis.

    Text at or under the limit is returned unchanged.
    """
    if len(text) > max_length:
        return f'{TRUNCATION_MARKER}{text[-max_length:]}'
    return text


def decode_output(chunks: Iterable[bytes]) -> str:
    """Join captured process output chunks into text."""
    return b''.join(chunks).decode('utf-8', errors='replace')


def resolve_repo_root(start: Optional[str] = None) -> Optional[str]:
    """Locate the enclosing Devvit workspace.

    An explicit DEVVIT_WORKSPACE_ROOT pointing at a directory wins. Otherwise the
    directory tree is walked upwards from start (or the current working directory)
    until a directory holding a Devvit config file is found.

    Args:
        start: Directory to begin the search from

    Returns:
        Absolute path of the workspace root, or None outside of a workspace
    """
    if configured := os.environ.get(WORKSPACE_ROOT_ENV):
        if Path(configured).is_dir():
            return str(Path(configured).resolve())

    current = Path(start or os.getcwd()).resolve()
    for directory in (current, *current.parents):
        if any((directory / marker).is_file() for marker in WORKSPACE_MARKERS):
            return str(directory)
    return None
