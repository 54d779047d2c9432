"""Tests for the click command line front end."""

import json
import sys
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from QueryHelper.cli.ui import cli


_CONFIG_YAML = """
log:
  level: CRITICAL
  to_file: false
  dir: log

query:
  timezone: Asia/Seoul

keys:
  - title: Server
    items:
      - name: project_id
        label: Project
        reference: project

references:
  project:
    p-1:
      label: Alpha
"""


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "config.yml"
        self.config_path.write_text(_CONFIG_YAML, encoding="utf-8")
        self.runner = CliRunner()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _invoke(self, *args: str, stdin: str | None = None):
        return self.runner.invoke(cli, ["--config", str(self.config_path), *args], input=stdin)

    def test_api_command(self) -> None:
        result = self._invoke("api", '["p-1","project_id","="]', '["hello"]', '["2023","created_at",">=t"]')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            json.loads(result.output),
            {
                "filter": [
                    {"k": "project_id", "v": "p-1", "o": "eq"},
                    {"k": "created_at", "v": "2022-12-31T15:00:00Z", "o": "datetime_gte"},
                ],
                "filter_or": [],
                "keyword": "hello",
            },
        )

    def test_tags_command_uses_references(self) -> None:
        result = self._invoke("tags", '["p-1","project_id","="]')
        self.assertEqual(result.exit_code, 0, result.output)
        tags = json.loads(result.output)
        self.assertEqual(tags[0]["value"], {"name": "p-1", "label": "Alpha"})
        self.assertEqual(tags[0]["key"]["label"], "Project")

    def test_normalize_reads_stdin_and_drops_malformed(self) -> None:
        result = self._invoke("normalize", stdin='["a"]\nnot-json\n[ "b" , "k" ]\n')
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.splitlines(), ['["a"]', '["b","k"]'])

    def test_missing_config_fails(self) -> None:
        result = self.runner.invoke(cli, ["--config", str(Path(self._tmp.name) / "missing.yml"), "api"], input="")
        self.assertNotEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
