import json

import pytest

from pagewriter.config import Settings, load_settings


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "nope.json"))
    assert settings == Settings()
    assert settings.history_capacity == 50
    assert settings.min_page_width == 320


def test_partial_file_overlays_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"history_capacity": 5, "padding": 10, "unknown": True}), encoding="utf-8")
    settings = load_settings(str(path))
    assert settings.history_capacity == 5
    assert settings.padding == 10
    assert settings.export_scale == 2.0


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"history_capacity": 0}'])
def test_bad_file_falls_back_to_defaults(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    assert load_settings(str(path)) == Settings()


def test_shipped_settings_load():
    settings = load_settings()
    assert settings.font_extensions == [".woff", ".woff2"]
    assert settings.font_source["repo"] == "Knyawfonts"
