import sys

import pytest

import main
from pagewriter.config import Settings
from pagewriter.session import Session


def test_new_session_starts_with_one_page():
    with Session(settings=Settings()) as s:
        assert len(s.store) == 1
        assert s.store.current_index == 0
        assert "Untitled" in s.store.pages[0].content
        assert not s.undo()
        assert not s.redo()


def test_sessions_are_independent():
    with Session(settings=Settings()) as a, Session(settings=Settings()) as b:
        a.store.add_page()
        assert len(a.store) == 2
        assert len(b.store) == 1


def test_apply_font_sets_family_with_fallbacks():
    with Session(settings=Settings(), pages=['<div class="page-content"><p>x</p></div>']) as s:
        s.apply_font("Karen")
        assert "font-family:'Karen', Inter, sans-serif" in s.store.pages[0].content
        assert s.undo()
        assert "Karen" not in s.store.pages[0].content


def test_remote_font_listing_failure_keeps_session_usable(monkeypatch):
    def unreachable(*args, **kwargs):
        raise ValueError("no listing")

    monkeypatch.setattr("pagewriter.fonts.remote.GithubFontSource.list_files", unreachable)
    with Session(settings=Settings()) as s:
        assert s.load_remote_fonts(apply_first=True) == []
        assert s.fonts.list_loaded() == []
        assert s.history.undo_depth == 0


def test_cli_exports_docx(tmp_path, monkeypatch, capsys):
    page = tmp_path / "page.html"
    page.write_text("<div><p>hello from the cli</p></div>", encoding="utf-8")
    out = tmp_path / "out.docx"
    monkeypatch.setattr(sys, "argv", ["pagewriter", "-p", str(page), "-e", "docx", "--flatten", "-o", str(out)])
    main._cli()
    assert out.exists()
    assert "Saved docx export" in capsys.readouterr().out


def test_cli_missing_page_file(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["pagewriter", "-p", str(tmp_path / "missing.html")])
    with pytest.raises(SystemExit) as info:
        main._cli()
    assert info.value.code == 2


def test_cli_reports_bad_custom_paper(tmp_path, monkeypatch, capsys):
    page = tmp_path / "page.html"
    page.write_text("<div><p>x</p></div>", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", [
        "pagewriter", "-p", str(page), "-e", "pdf", "--paper", "custom",
        "--custom-width", "-5", "--custom-height", "10", "-o", str(tmp_path / "doc.pdf"),
    ])
    with pytest.raises(SystemExit) as info:
        main._cli()
    assert info.value.code == 1
    assert "Export failed" in capsys.readouterr().out
