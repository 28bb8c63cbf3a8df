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

"""Shared fixtures for Devvit MCP server tests."""

import os
import pytest
import sys
from devvit_mcp_server.devvit_logs.tools import DevvitLogsTools


# Stand-in for the Devvit CLI. FAKE_DEVVIT_MODE selects the behaviour.
FAKE_DEVVIT_SOURCE = '''
import json
import os
import signal
import sys
import time

mode = os.environ.get('FAKE_DEVVIT_MODE', 'echo')

if mode == 'echo':
    sys.stdout.write(json.dumps({
        'argv': sys.argv[1:],
        'cwd': os.getcwd(),
        'marker': os.environ.get('FAKE_DEVVIT_MARKER'),
    }))
elif mode == 'hello':
    sys.stdout.write('hello')
elif mode == 'silent':
    pass
elif mode == 'long':
    sys.stdout.write('a' * 100 + 'b' * 2000)
elif mode == 'stderr':
    sys.stdout.write('partial output')
    sys.stderr.write('boom')
    sys.exit(1)
elif mode == 'stdout-fail':
    sys.stdout.write('partial output')
    sys.exit(1)
elif mode == 'quiet-fail':
    sys.exit(3)
elif mode == 'stream':
    print('streaming', flush=True)
    time.sleep(60)
elif mode == 'ignore-interrupt':
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    print('streaming', flush=True)
    time.sleep(60)
elif mode == 'orphan':
    import subprocess
    subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(15)'])
    sys.stdout.write('parent done')
'''


@pytest.fixture
def fake_devvit(tmp_path):
    """Path of an executable fake `devvit` CLI."""
    script = tmp_path / 'fake_devvit.py'
    script.write_text(FAKE_DEVVIT_SOURCE)
    wrapper = tmp_path / 'devvit'
    wrapper.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{script}" "$@"\n')
    wrapper.chmod(0o755)
    return str(wrapper)


@pytest.fixture
def workspace(tmp_path):
    """A Devvit workspace directory."""
    root = tmp_path / 'workspace'
    root.mkdir()
    (root / 'devvit.yaml').write_text('name: my-app\nversion: 0.0.1\n')
    return root


@pytest.fixture
def make_tools(fake_devvit, workspace):
    """Factory for DevvitLogsTools running the fake CLI in the given mode."""

    def _make(mode='echo', repo_root='workspace', **extra_env):
        root = str(workspace) if repo_root == 'workspace' else repo_root
        env = {**os.environ, 'FAKE_DEVVIT_MODE': mode, **extra_env}
        return DevvitLogsTools(
            executable=fake_devvit,
            env=env,
            repo_root_resolver=lambda: root,
        )

    return _make
