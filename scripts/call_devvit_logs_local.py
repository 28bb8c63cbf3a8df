#!/usr/bin/env python3
"""Local smoke script for the devvit_logs tool over streamable-http.

Start the server first:
    DEVVIT_MCP_TRANSPORT=streamable-http devvit-mcp-server
"""

import httpx
import os
import sys

# MCP server configuration
MCP_SERVER_URL = os.getenv("DEVVIT_MCP_URL", "http://127.0.0.1:3335/mcp")
SUBREDDIT = os.getenv("DEVVIT_SMOKE_SUBREDDIT", "mySubreddit")
APP = os.getenv("DEVVIT_SMOKE_APP")


def call_mcp_tool(tool_name: str, arguments: dict):
    """Call an MCP tool via HTTP transport."""
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {
            "name": tool_name,
            "arguments": arguments
        }
    }

    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json, text/event-stream"
    }

    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(MCP_SERVER_URL, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()
    except Exception as e:
        print(f"Error calling tool: {e}")
        return None


def print_result(result) -> bool:
    if not result or "result" not in result:
        print(f"✗ Call failed: {result}")
        return False

    content = result["result"].get("content", [])
    text = content[0].get("text", "") if content else ""
    is_error = result["result"].get("isError", False)

    print(f"  - isError: {is_error}")
    print(f"  - Characters returned: {len(text)}")
    print(f"  - Truncated: {text.startswith('…')}")
    print("\n  Last lines:")
    for line in text.splitlines()[-5:]:
        print(f"    {line[:120]}")
    return True


def check_plain_logs():
    """Check 1: Plain logs for the configured subreddit."""
    print("\n" + "="*80)
    print("CHECK 1: Plain logs")
    print("="*80)

    arguments = {"subreddit": SUBREDDIT}
    if APP:
        arguments["app"] = APP

    print(f"Arguments: {arguments}")
    return print_result(call_mcp_tool("devvit_logs", arguments))


def check_json_logs():
    """Check 2: JSON log lines from the last 15 minutes."""
    print("\n" + "="*80)
    print("CHECK 2: JSON logs since 15m")
    print("="*80)

    arguments = {"subreddit": SUBREDDIT, "json": True, "since": "15m", "verbose": False}
    if APP:
        arguments["app"] = APP

    print(f"Arguments: {arguments}")
    return print_result(call_mcp_tool("devvit_logs", arguments))


def main():
    """Run all smoke checks."""
    print("\n" + "="*80)
    print("Devvit MCP Server - devvit_logs smoke check")
    print("="*80)
    print(f"Server: {MCP_SERVER_URL}")

    checks = [
        ("Plain logs", check_plain_logs),
        ("JSON logs", check_json_logs),
    ]

    results = []
    for name, check_func in checks:
        try:
            results.append((name, check_func()))
        except Exception as e:
            print(f"\n✗ Check failed with exception: {e}")
            results.append((name, False))

    print("\n" + "="*80)
    print("SUMMARY")
    print("="*80)
    for name, success in results:
        status = "✓ RESPONDED" if success else "✗ FAILED"
        print(f"{status}: {name}")

    passed = sum(1 for _, success in results if success)
    print(f"\nTotal: {passed}/{len(results)} checks responded")
    print("Server logs (stderr) show the executed devvit command and timeout handling.")

    return 0 if passed == len(results) else 1


if __name__ == "__main__":
    sys.exit(main())
