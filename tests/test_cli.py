"""
Tests for the FsGuard CLI.
"""

import json
import os

import pytest

from fsguard.main import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer FSGUARD_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("FSGUARD_"):
            monkeypatch.delenv(name)


def run(*argv) -> int:
    with pytest.raises(SystemExit) as exc:
        main(list(argv))
    return exc.value.code


class TestScanCommand:
    """fsguard scan"""

    def test_blocked_path_exits_nonzero(self, tmp_path):
        """An Error finding makes the command fail."""
        source = tmp_path / "app.js"
        source.write_text("const cfg = fs.readFileSync('./.git/config');\n")
        assert run("scan", str(source)) == 1

    def test_clean_file_exits_zero(self, tmp_path):
        """Warnings alone do not fail the command."""
        source = tmp_path / "app.js"
        source.write_text("fs.unlinkSync(tmpFile);\nrequire('./lib/util');\n")
        assert run("scan", str(source)) == 0

    def test_json_output_with_fixes(self, tmp_path, capsys):
        """--json prints machine-readable findings keyed by file."""
        source = tmp_path / "app.js"
        source.write_text("read('/etc/passwd')\n")
        assert run("scan", "--json", "--fixes", str(source)) == 0

        payload = json.loads(capsys.readouterr().out)
        (finding,) = payload[str(source)]
        assert finding["kind"] == "OutsideWorkspace"
        assert finding["severity"] == "Warning"
        assert finding["matchedValue"] == "/etc/passwd"
        assert finding["fixes"][0]["title"] == "Use workspace-relative path"

    def test_config_file_applies(self, tmp_path):
        """Blocked paths come from --config."""
        config = tmp_path / "fsguard.json"
        config.write_text(json.dumps({"security": {"blockedPaths": ["vendor"]}}))
        source = tmp_path / "app.js"
        source.write_text("read('./.git/config')\nread('./vendor/lib.js')\n")
        assert run("scan", "--config", str(config), str(source)) == 1

        config.write_text(json.dumps({"security": {"blockedPaths": ["build"]}}))
        assert run("scan", "--config", str(config), str(source)) == 0

    def test_metrics_log_written(self, tmp_path):
        """--metrics appends one record per file."""
        source = tmp_path / "app.js"
        source.write_text("x();\n")
        log = tmp_path / "scans.jsonl"
        run("scan", "--metrics", str(log), str(source), str(source))
        assert len(log.read_text().splitlines()) == 2

    def test_missing_file(self, tmp_path):
        """An unreadable input is a usage error."""
        assert run("scan", str(tmp_path / "nope.js")) == 2


class TestDiffCommand:
    """fsguard diff"""

    def test_patch_file(self, tmp_path):
        """Added blocked references fail the check."""
        patch = tmp_path / "change.patch"
        patch.write_text(
            "--- a/app.js\n"
            "+++ b/app.js\n"
            "@@ -1,1 +1,2 @@\n"
            " x();\n"
            "+read('./.ssh/id_rsa');\n"
        )
        assert run("diff", str(patch)) == 1

    def test_invalid_patch(self, tmp_path):
        """Garbage input is a usage error."""
        patch = tmp_path / "change.patch"
        patch.write_text("not a diff\n")
        assert run("diff", str(patch)) == 2


class TestSettingsCommands:
    """fsguard validate / fsguard config"""

    def test_validate_defaults(self):
        """The defaults validate."""
        assert run("validate") == 0

    def test_validate_invalid_config(self, tmp_path):
        """A batch limit below the file limit fails validation."""
        config = tmp_path / "fsguard.json"
        config.write_text(json.dumps({
            "security": {"maxFileSize": 1000000, "maxBatchSize": 500000}
        }))
        assert run("validate", "--config", str(config)) == 1

    def test_validate_unreadable_config(self, tmp_path):
        """A malformed settings file fails validation."""
        config = tmp_path / "fsguard.json"
        config.write_text("{oops")
        assert run("validate", "--config", str(config)) == 1

    def test_config_set_persists(self, tmp_path, capsys):
        """--set writes the coerced value to the settings file."""
        config = tmp_path / "fsguard.json"
        assert run("config", "--config", str(config), "--set", "server.timeout=5000") == 0

        printed = json.loads(capsys.readouterr().out)
        assert printed["server"]["timeout"] == 5000
        assert json.loads(config.read_text()) == {"server": {"timeout": 5000}}

    def test_config_set_rejected(self, tmp_path):
        """An invalid update leaves the file untouched."""
        config = tmp_path / "fsguard.json"
        assert run("config", "--config", str(config), "--set", "server.timeout=10") == 1
        assert not config.exists()
