"""Tests for the pagegen command-line client"""
import json
import sys
from pathlib import Path

import httpx

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from pagegen_api.cli import build_parser, run_generate
from pagegen_api.utils.document import compose_document


def sse_body(*events) -> bytes:
    return "".join(f"data: {json.dumps(e)}\n\n" for e in events).encode("utf-8")


COMPLETE = {
    "type": "complete",
    "spec": {"id": "abc12345", "title": "Crumb & Co.", "hero": {}, "sections": []},
    "previewUrl": "/preview/abc12345",
    "rawText": "{}",
    "codeHtml": "<h1>Crumb</h1>",
    "codeCss": "h1{color:brown}",
    "codeJs": "console.log('</script>')",
    "diagnostics": {"codeError": "partial"},
}


def mock_client(status=200, body=b"", captured=None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        headers = {"content-type": "text/event-stream" if status == 200 else "application/json"}
        return httpx.Response(status, headers=headers, content=body)
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_generate_prints_progress_and_preview(capsys):
    captured = []
    body = sse_body({"type": "progress", "message": "Detected free-form prompt"}, COMPLETE)

    code = run_generate("a bakery", server="http://testserver", client=mock_client(body=body, captured=captured))

    out = capsys.readouterr().out
    assert code == 0
    assert "• Detected free-form prompt" in out
    assert "! codeError: partial" in out
    assert "Preview: http://testserver/preview/abc12345" in out
    assert captured[0].url == "http://testserver/api/generate"
    assert json.loads(captured[0].content) == {"input": "a bakery"}


def test_generate_writes_bundle(tmp_path):
    body = sse_body(COMPLETE)

    code = run_generate("a bakery", server="http://testserver", out_dir=tmp_path / "out", client=mock_client(body=body))

    assert code == 0
    spec = json.loads((tmp_path / "out" / "spec.json").read_text(encoding="utf-8"))
    assert spec["title"] == "Crumb & Co."
    index = (tmp_path / "out" / "index.html").read_text(encoding="utf-8")
    assert index == compose_document("<h1>Crumb</h1>", "h1{color:brown}", "console.log('</script>')")


def test_generate_error_event_exits_nonzero(capsys):
    body = sse_body({"type": "progress", "message": "x"}, {"type": "error", "message": "Unexpected error"})

    code = run_generate("a bakery", server="http://testserver", client=mock_client(body=body))

    assert code == 1
    assert "Unexpected error" in capsys.readouterr().err


def test_generate_http_error_exits_nonzero(capsys):
    code = run_generate("", server="http://testserver", client=mock_client(status=400, body=b'{"code": "INVALID_INPUT"}'))

    assert code == 1
    assert "HTTP 400" in capsys.readouterr().err


def test_generate_truncated_stream_exits_nonzero(capsys):
    body = sse_body({"type": "progress", "message": "x"})

    code = run_generate("a bakery", server="http://testserver", client=mock_client(body=body))

    assert code == 1
    assert "without a result" in capsys.readouterr().err


def test_parser():
    args = build_parser().parse_args(["generate", "a bakery", "--out", "site"])
    assert args.command == "generate"
    assert args.input == "a bakery"
    assert args.out == Path("site")

    args = build_parser().parse_args(["serve", "--port", "9000"])
    assert args.port == 9000
    assert args.reload is False


def test_compose_document_neutralizes_script_close():
    doc = compose_document("<p>x</p>", None, "var s = '</SCRIPT>';")

    assert "<\\/SCRIPT>" in doc
    assert doc.count("</script>") == 1
    assert "<style></style>" in doc
