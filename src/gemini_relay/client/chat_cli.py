"""Interactive command-line client for the local /chat endpoint."""
from __future__ import annotations
import argparse
import sys
from typing import Callable, TextIO

import httpx

from gemini_relay.common.config import load_settings

EXIT_WORDS = ("exit", "quit")
# A full upstream sweep can take minutes, so the client waits well beyond one candidate timeout.
CLIENT_TIMEOUT_SECONDS = 300.0


class ChatClientError(Exception):
    """Raised when the relay cannot be reached or returns an unusable reply."""


def send_chat_request(client: httpx.Client, base_url: str, message: str) -> str:
    """
    Post one message to the relay.

    Args:
        client: HTTP client to send with.
        base_url: Relay root, e.g. http://localhost:3000.
        message: Text to send.

    Returns:
        The generated reply text.
    """
    try:
        r = client.post(f"{base_url}/chat", json={"message": message})
    except httpx.HTTPError as e:
        raise ChatClientError(
            f"Failed to connect to server: {e}. Make sure the server is running at {base_url}."
        ) from e

    if not r.is_success:
        raise ChatClientError(f"Server error: {r.text or 'Unknown error'}")

    try:
        data = r.json()
    except ValueError as e:
        raise ChatClientError(f"Failed to parse response: {e}") from e

    reply = data.get("response") if isinstance(data, dict) else None
    if not isinstance(reply, str):
        raise ChatClientError("Invalid response format")
    return reply


def run_interactive_chat(
    base_url: str,
    input_fn: Callable[[str], str] = input,
    out: TextIO | None = None,
    err: TextIO | None = None,
    client: httpx.Client | None = None,
) -> None:
    """Read lines until exit/quit or EOF, relaying each non-blank one."""
    out = out or sys.stdout
    err = err or sys.stderr
    own_client = client is None
    if client is None:
        client = httpx.Client(timeout=CLIENT_TIMEOUT_SECONDS)

    print("Gemini Chat - Interactive Mode", file=out)
    print("Type 'exit' or 'quit' to end the conversation\n", file=out)
    try:
        while True:
            try:
                message = input_fn("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("", file=out)
                break

            if not message:
                continue
            if message.lower() in EXIT_WORDS:
                print("Goodbye!", file=out)
                break

            try:
                reply = send_chat_request(client, base_url, message)
            except ChatClientError as e:
                print(f"Error: {e}\n", file=err)
                continue
            print(f"Bot: {reply}\n", file=out)
    finally:
        if own_client:
            client.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Chat with the local Gemini relay")
    ap.add_argument("--url", default=None, help="Relay base URL (default: RELAY_BACKEND_URL)")
    args = ap.parse_args()

    base_url = (args.url or load_settings().backend_url).rstrip("/")
    run_interactive_chat(base_url)

if __name__ == "__main__":
    main()
