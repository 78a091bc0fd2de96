"""Tests for the settings template patch (patch_settings_lines / write_settings_file)."""

from __future__ import annotations

from pathlib import Path

from djangify_cli import (
    APPS_MARKER,
    BUNDLED_TEMPLATES_DIR,
    PROJECT_NAME_PLACEHOLDER,
    patch_settings_lines,
    write_settings_file,
)

TEMPLATE = [
    '"""Settings for project_name."""\n',
    "INSTALLED_APPS = [\n",
    '    "django.contrib.admin",\n',
    "    ##django apps##\n",
    "]\n",
    'ROOT_URLCONF = "project_name.urls"\n',
    'WSGI_APPLICATION = "project_name.wsgi.application"  # project_name\n',
    "DEBUG = True\n",
]


class TestPatchSettingsLines:
    def test_app_inserted_before_marker(self):
        out = "\n".join(patch_settings_lines(TEMPLATE, "blog")).split("\n")
        index = out.index("    'users',")
        assert out[index + 1] == "    ##django apps##"

    def test_marker_kept_verbatim(self):
        out = "\n".join(patch_settings_lines(TEMPLATE, "blog"))
        assert out.count(APPS_MARKER) == 1

    def test_every_placeholder_replaced(self):
        out = "\n".join(patch_settings_lines(TEMPLATE, "blog"))
        assert PROJECT_NAME_PLACEHOLDER not in out
        assert 'ROOT_URLCONF = "blog.urls"' in out
        assert 'WSGI_APPLICATION = "blog.wsgi.application"  # blog' in out
        assert '"""Settings for blog."""' in out

    def test_line_count_grows_by_one_per_marker(self):
        lines = TEMPLATE + ["    ##django apps##\n"]
        out = "\n".join(patch_settings_lines(lines, "blog")).split("\n")
        assert len(out) == len(lines) + 2

    def test_other_lines_unchanged(self):
        out = list(patch_settings_lines(TEMPLATE, "blog"))
        assert out[2] == '    "django.contrib.admin",'
        assert out[-1] == "DEBUG = True"

    def test_marker_line_takes_priority_over_placeholder(self):
        out = list(patch_settings_lines(["project_name ##django apps##"], "blog"))
        assert out == ["project_name 'users',\n##django apps##"]

    def test_custom_app_name(self):
        out = list(patch_settings_lines(["\t##django apps##"], "blog", app_name="shop"))
        assert out == ["\t'shop',\n\t##django apps##"]

    def test_repeated_patch_layers_apps(self):
        first = "\n".join(patch_settings_lines(TEMPLATE, "blog", app_name="users"))
        second = "\n".join(patch_settings_lines(first.split("\n"), "blog", app_name="orders"))
        lines = second.split("\n")
        assert lines.index("    'users',") < lines.index("    'orders',") < lines.index("    ##django apps##")


class TestWriteSettingsFile:
    def test_writes_patched_file(self, tmp_path: Path):
        template = tmp_path / "settings.py"
        template.write_text("".join(TEMPLATE), encoding="utf-8")
        destination = tmp_path / "out.py"

        assert write_settings_file(template, destination, "blog") is True

        text = destination.read_text(encoding="utf-8")
        assert text.endswith("DEBUG = True\n")
        assert len(text.splitlines()) == len(TEMPLATE) + 1
        assert "'users'," in text

    def test_bundled_template_has_marker_and_placeholder(self, tmp_path: Path):
        destination = tmp_path / "settings.py"
        assert write_settings_file(BUNDLED_TEMPLATES_DIR / "settings.py", destination, "blog")

        text = destination.read_text(encoding="utf-8")
        assert "'users'," in text
        assert APPS_MARKER in text
        assert PROJECT_NAME_PLACEHOLDER not in text
        assert 'ROOT_URLCONF = "blog.urls"' in text

    def test_missing_template_reports_failure(self, tmp_path: Path, capsys):
        destination = tmp_path / "settings.py"
        assert write_settings_file(tmp_path / "nope.py", destination, "blog") is False
        assert not destination.exists()
        assert "Error occurred while editing settings file" in capsys.readouterr().err

    def test_unwritable_destination_reports_failure(self, tmp_path: Path):
        template = tmp_path / "settings.py"
        template.write_text("".join(TEMPLATE), encoding="utf-8")
        destination = tmp_path / "missing-dir" / "settings.py"
        assert write_settings_file(template, destination, "blog") is False
