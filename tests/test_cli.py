from datetime import date
from pathlib import Path

import yaml
from click.testing import CliRunner

from inkpress import __version__
from inkpress.cli import _post_skeleton, _required, cli
from inkpress.content import extract_frontmatter


def scaffold(tmp_path: Path) -> Path:
    runner = CliRunner()
    target = tmp_path / "mysite"
    result = runner.invoke(cli, ["new", str(target)])
    assert result.exit_code == 0, result.output
    return target


class FakePrompt:
    def __init__(self, answer):
        self.answer = answer

    def ask(self):
        return self.answer


def fake_questionary(monkeypatch, texts, confirms):
    texts = list(texts)
    confirms = list(confirms)
    monkeypatch.setattr(
        "inkpress.cli.questionary.text", lambda *a, **k: FakePrompt(texts.pop(0))
    )
    monkeypatch.setattr(
        "inkpress.cli.questionary.confirm", lambda *a, **k: FakePrompt(confirms.pop(0))
    )


def test_cli_new_scaffolds_project(tmp_path):
    target = scaffold(tmp_path)
    assert (target / "inkpress.yaml").exists()
    assert (target / "writing" / "posts" / "hello-world.md").exists()
    for name in ("base.html", "post.html", "index.html", "about.html", "404.html"):
        assert (target / "theme" / "templates" / name).exists()
    for name in ("styles.css", "script.js", "favicon.svg"):
        assert (target / "theme" / name).exists()

    # fails on non-empty directory
    result = CliRunner().invoke(cli, ["new", str(target)])
    assert result.exit_code != 0
    assert "non-empty" in result.output


def test_cli_build(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    monkeypatch.chdir(target)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Generated 1 posts + index + about" in result.output
    assert (target / "public" / "posts" / "hello-world" / "index.html").exists()


def test_cli_build_failure_exits_nonzero(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    (target / "theme" / "templates" / "base.html").unlink()
    monkeypatch.chdir(target)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "theme/templates/base.html" in result.output
    assert "Template not found" in result.output


def test_cli_serve_passes_options(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None, live_reload=True):
            called.update(
                root=root, port=http_port, ws_port=ws_port, live_reload=live_reload
            )

        def start(self):
            called["started"] = True

    monkeypatch.setattr("inkpress.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--port", "5050", "--ws-port", "5051", "--no-reload"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert called == {
        "root": tmp_path,
        "port": 5050,
        "ws_port": 5051,
        "live_reload": False,
        "started": True,
    }


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_md_creates_post(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    monkeypatch.chdir(target)
    fake_questionary(monkeypatch, ["Second Thoughts", "second-thoughts"], [True, False])
    result = CliRunner().invoke(cli, ["md"], catch_exceptions=False)
    assert result.exit_code == 0
    created = target / "writing" / "posts" / "second-thoughts.md"
    assert created.exists()
    assert "Created writing/posts/second-thoughts.md" in result.output
    data, body = extract_frontmatter(created.read_text(encoding="utf-8"))
    assert data["title"] == "Second Thoughts"
    assert data["uses_math"] is True
    assert data["uses_code"] is False
    assert str(data["date"]) == date.today().isoformat()
    assert "Start writing here." in body


def test_cli_md_rejects_slug_collision(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    monkeypatch.chdir(target)
    fake_questionary(monkeypatch, ["Hello again", "Hello-World"], [False, False])
    result = CliRunner().invoke(cli, ["md"])
    assert result.exit_code != 0
    assert "already exists" in result.output
    assert [p.name for p in (target / "writing" / "posts").iterdir()] == [
        "hello-world.md"
    ]


def test_cli_md_requires_project(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["md"])
    assert result.exit_code != 0
    assert "No writing/ directory found" in result.output


def test_cli_md_aborts_on_cancel(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    monkeypatch.chdir(target)
    fake_questionary(monkeypatch, [None], [])
    result = CliRunner().invoke(cli, ["md"])
    assert result.exit_code != 0
    assert sorted(p.name for p in (target / "writing" / "posts").iterdir()) == [
        "hello-world.md"
    ]


def test_post_skeleton_is_valid_frontmatter():
    text = _post_skeleton("A: tricky title", date(2025, 12, 28), False, True)
    assert text.startswith("---\n")
    header = text.split("---\n")[1]
    data = yaml.safe_load(header)
    assert data["title"] == "A: tricky title"
    assert data["date"] == "2025-12-28"
    assert data["uses_code"] is True


def test_module_main_entrypoint():
    from inkpress.__main__ import main

    assert callable(main)


def test_cli_md_strips_answers_and_aborts_on_cancelled_confirm(monkeypatch, tmp_path):
    target = scaffold(tmp_path)
    monkeypatch.chdir(target)
    fake_questionary(monkeypatch, ["  Spaced Title  ", "  spaced  "], [False, False])
    result = CliRunner().invoke(cli, ["md"], catch_exceptions=False)
    assert result.exit_code == 0
    data, _ = extract_frontmatter(
        (target / "writing" / "posts" / "spaced.md").read_text(encoding="utf-8")
    )
    assert data["title"] == "Spaced Title"

    fake_questionary(monkeypatch, ["Later", "later"], [True, None])
    result = CliRunner().invoke(cli, ["md"])
    assert result.exit_code != 0
    assert not (target / "writing" / "posts" / "later.md").exists()


def test_required_validator():
    check = _required("Title")
    assert check("x") is True
    assert check("   ") == "Title cannot be empty"
