"""Tests for the dtbridge command-line interface."""

from __future__ import annotations

from dtbridge.cli import main


class TestConfigCommand:
    """Tests for `dtbridge config`."""

    def test_show_is_default(self, capsys):
        assert main(["config"]) == 0
        assert "dtbridge Configuration" in capsys.readouterr().out

    def test_toml(self, capsys):
        assert main(["config", "--toml"]) == 0
        assert "[grid]" in capsys.readouterr().out

    def test_env(self, capsys):
        assert main(["config", "--env"]) == 0
        assert "export DTBRIDGE_URL__EXTENSION='json'" in capsys.readouterr().out

    def test_output_file(self, tmp_path, capsys):
        target = tmp_path / "out.toml"
        assert main(["config", "--toml", "-o", str(target)]) == 0
        assert "[paginator]" in target.read_text(encoding="utf-8")
        assert "Configuration written to" in capsys.readouterr().out


class TestScriptCommand:
    """Tests for `dtbridge script`."""

    def test_prints_script(self, capsys):
        assert main(["script", "grid", "-f", "id, title", "--controller", "articles"]) == 0
        out = capsys.readouterr().out
        assert "$('#grid').DataTable({" in out
        assert "{data: 'id'}" in out
        assert "{data: 'title'}" in out
        assert "data: 'actions'" in out
        assert "http://localhost/articles/index.json" in out

    def test_no_row_actions(self, capsys):
        assert main(["script", "grid", "-f", "id", "--no-row-actions"]) == 0
        assert "data: 'actions'" not in capsys.readouterr().out

    def test_data_url(self, capsys):
        assert main(["script", "grid", "-f", "id", "--url", "articles/feed"]) == 0
        assert "http://localhost/articles/feed.json" in capsys.readouterr().out

    def test_missing_fields(self, capsys):
        assert main(["script", "grid", "-f", ","]) == 1
        assert "Error:" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage: dtbridge" in capsys.readouterr().out
