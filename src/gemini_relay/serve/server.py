"""Process entrypoint: serve the relay, or run the interactive client."""
from __future__ import annotations
import argparse

def main(argv: list[str] | None = None) -> None:
    ap = argparse.ArgumentParser(description="Gemini chat relay")
    ap.add_argument("mode", nargs="?", default="serve", help="'chat' or 'cli' runs the interactive client; anything else serves")
    ap.add_argument("--chat", "--cli", dest="chat", action="store_true", help="Run the interactive client")
    args, _ = ap.parse_known_args(argv)

    if args.chat or args.mode in ("chat", "cli"):
        from gemini_relay.client.chat_cli import run_interactive_chat
        from gemini_relay.common.config import load_settings

        run_interactive_chat(load_settings().backend_url)
        return

    import uvicorn

    from gemini_relay.serve.fastapi_app import app, get_settings

    settings = get_settings()
    print(f"Server running on http://localhost:{settings.port}")
    print(f"POST to http://localhost:{settings.port}/chat with {{\"message\": \"your message\"}}")
    print(f"Health check: http://localhost:{settings.port}/health")
    uvicorn.run(app, host=settings.host, port=settings.port)

if __name__ == "__main__":
    main()
