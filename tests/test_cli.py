from urllib.parse import unquote

import pytest

from stringtable_deobfuscator.cli import build_link, main
from stringtable_deobfuscator.syntax import generate, parse

DOCUMENT = """<html><body><script>
function A() { var t = ["Hello"]; A = function () { return t; }; return A(); }
function B(a) { var b = A(); var c = b[a - 0x10]; return c; }
var _0x1 = B;
alert(_0x1(0x10) + " & more");
</script></body></html>
"""


def canonical(source):
    return generate(parse(source))


EXPECTED = canonical('alert("Hello & more");')


@pytest.fixture
def viewer(monkeypatch):
    monkeypatch.setenv("VIEWER_HOST_PATH", "/opt/viewer/index.html")
    monkeypatch.delenv("DEOBFUSCATOR_MARKER", raising=False)
    monkeypatch.delenv("DEOBFUSCATOR_MAX_ITERATIONS", raising=False)


@pytest.fixture
def page(tmp_path):
    path = tmp_path / "page.html"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


def test_link_is_printed(viewer, page, capsys):
    assert main([str(page)]) == 0
    captured = capsys.readouterr()
    link = captured.out.strip()
    assert link.startswith("file:///opt/viewer/index.html#")
    assert canonical(unquote(link.split("#", 1)[1])) == EXPECTED
    assert "[*] Found decoder: B, Offset: 16" in captured.err
    assert "[*] --- URL for AST Viewer ---" in captured.err


def test_output_file_is_written(viewer, page, tmp_path, capsys):
    output = tmp_path / "out.js"
    assert main([str(page), "-o", str(output)]) == 0
    assert canonical(output.read_text(encoding="utf-8")) == EXPECTED
    assert f"Deobfuscated code written to {output}" in capsys.readouterr().err


def test_verbose_logs_pass_details(viewer, page, capsys):
    assert main([str(page), "--verbose"]) == 0
    assert "[-] Resolved 1 decoder calls" in capsys.readouterr().err


def test_missing_viewer_path(monkeypatch, page, capsys):
    monkeypatch.delenv("VIEWER_HOST_PATH", raising=False)
    assert main([str(page)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[!] VIEWER_HOST_PATH environment variable not set." in captured.err


def test_undecodable_bytes_are_replaced(viewer, tmp_path, capsys):
    path = tmp_path / "latin1.html"
    path.write_bytes(b"<p>caf\xe9 \xff</p>" + DOCUMENT.encode("utf-8"))
    assert main([str(path)]) == 0
    link = capsys.readouterr().out.strip()
    assert canonical(unquote(link.split("#", 1)[1])) == EXPECTED


def test_missing_input_file(viewer, tmp_path, capsys):
    missing = tmp_path / "nope.html"
    assert main([str(missing)]) == 1
    assert f"[!] Input file not found at {missing}" in capsys.readouterr().err


def test_document_without_target(viewer, tmp_path, capsys):
    path = tmp_path / "plain.html"
    path.write_text("<script>console.log(1)</script>", encoding="utf-8")
    assert main([str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Deobfuscation did not return valid code. Exiting." in captured.err


def test_missing_argument_exits_with_one(capsys):
    with pytest.raises(SystemExit) as raised:
        main([])
    assert raised.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_link_encoding_matches_encode_uri_component():
    link = build_link("/v.html", "a = 'b' + \"c\";\n/* é */ (x)!~*")
    assert link == "file:///v.html#a%20%3D%20'b'%20%2B%20%22c%22%3B%0A%2F*%20%C3%A9%20*%2F%20(x)!~*"
