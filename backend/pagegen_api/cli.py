"""Command-line entry point: run the server or stream a generation from it"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urljoin
import httpx
from pagegen_api.core.sse import SSEDecoder
from pagegen_api.utils.document import compose_document


DEFAULT_SERVER = "http://127.0.0.1:8000"


def write_bundle(out_dir: Path, event: Dict[str, Any]) -> Path:
    """Write spec.json and, when code was generated, index.html into out_dir"""
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "spec.json").write_text(
        json.dumps(event.get("spec", {}), indent=2, ensure_ascii=False), encoding="utf-8")
    if event.get("codeHtml"):
        document = compose_document(event["codeHtml"], event.get("codeCss"), event.get("codeJs"))
        (out_dir / "index.html").write_text(document, encoding="utf-8")
    return out_dir


def run_generate(
    input_text: str,
    server: str = DEFAULT_SERVER,
    out_dir: Optional[Path] = None,
    client: Optional[httpx.Client] = None,
) -> int:
    """Stream one generation run to stdout. Returns the process exit code."""
    owns_client = client is None
    client = client or httpx.Client(timeout=httpx.Timeout(10.0, read=None))
    decoder = SSEDecoder()
    terminal: Optional[Dict[str, Any]] = None

    try:
        with client.stream("POST", urljoin(server, "/api/generate"), json={"input": input_text}) as response:
            if response.status_code != 200:
                response.read()
                print(f"✗ Server returned HTTP {response.status_code}: {response.text}", file=sys.stderr)
                return 1
            for chunk in response.iter_bytes():
                for event in decoder.feed(chunk):
                    kind = event.get("type")
                    if kind == "progress":
                        print(f"• {event.get('message', '')}")
                    elif kind in ("complete", "error"):
                        terminal = event
    except httpx.HTTPError as e:
        print(f"✗ Could not reach {server}: {e}", file=sys.stderr)
        return 1
    finally:
        if owns_client:
            client.close()

    if terminal is None:
        print("✗ Stream ended without a result", file=sys.stderr)
        return 1
    if terminal["type"] == "error":
        print(f"✗ {terminal.get('message', 'Unexpected error')}", file=sys.stderr)
        return 1

    for key, value in (terminal.get("diagnostics") or {}).items():
        print(f"! {key}: {value}")
    print(f"✓ {terminal['spec'].get('title', '')}")
    print(f"Preview: {urljoin(server, terminal['previewUrl'])}")
    if out_dir is not None:
        print(f"Saved to {write_bundle(out_dir, terminal)}")
    return 0


def run_serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("pagegen_api.main:app", host=host, port=port, reload=reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    from pagegen_api.core.config import settings

    parser = argparse.ArgumentParser(prog="pagegen", description="Generate landing pages from prompts or screenshots")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=settings.backend_host)
    serve.add_argument("--port", type=int, default=settings.backend_port)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    gen = subparsers.add_parser("generate", help="Generate a page through a running server")
    gen.add_argument("input", help="Free-form prompt or screenshot URL")
    gen.add_argument("--server", default=DEFAULT_SERVER, help=f"Server base URL (default: {DEFAULT_SERVER})")
    gen.add_argument("--out", type=Path, default=None, help="Directory to write spec.json and index.html")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "serve":
        return run_serve(args.host, args.port, args.reload)
    return run_generate(args.input, server=args.server, out_dir=args.out)


if __name__ == "__main__":
    sys.exit(main())
