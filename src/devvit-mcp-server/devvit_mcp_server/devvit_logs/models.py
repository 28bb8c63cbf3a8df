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

"""Data models for the Devvit logs tool."""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class DevvitLogsParams(BaseModel):
    """Parameters of a single `devvit logs` invocation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    subreddit: str = Field(..., description='Subreddit name, the "r/" prefix is optional')
    app: Optional[str] = Field(default=None, description='App name')
    config: Optional[str] = Field(default=None, description='Path to devvit config file')
    connect: bool = Field(default=False, description='Connect to local runtime')
    dateformat: Optional[str] = Field(default=None, description='Format for rendering dates')
    json_output: bool = Field(default=False, alias='json', description='Output JSON for each log line')
    since: Optional[str] = Field(default=None, description='Start time for logs')
    verbose: bool = Field(default=True, description='Enable verbose output')


class TextContent(BaseModel):
    """A single text content item."""

    type: Literal['text'] = 'text'
    text: str


class LogsToolResult(BaseModel):
    """Result envelope returned for every invocation."""

    content: List[TextContent]
    isError: bool = False

    @classmethod
    def success(cls, text: str) -> 'LogsToolResult':
        return cls(content=[TextContent(text=text)], isError=False)

    @classmethod
    def error(cls, text: str) -> 'LogsToolResult':
        return cls(content=[TextContent(text=text)], isError=True)

    @property
    def text(self) -> str:
        return self.content[0].text if self.content else ''


class ProcessOutcome(BaseModel):
    """Captured output and exit status of a finished CLI process.

    returncode is negative when the process was terminated by a signal.
    """

    stdout: str = ''
    stderr: str = ''
    returncode: Optional[int] = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0
