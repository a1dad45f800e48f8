# tests/test_cli.py
import json

from typer.testing import CliRunner

from roprojection.cli import app

runner = CliRunner()


def test_project_command(tmp_path, feed_water, single_stage_config):
    path = tmp_path / "design.json"
    path.write_text(
        json.dumps({"waterData": feed_water, "systemConfig": single_stage_config}),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["project", str(path), "--no-pretty"])
    assert result.exit_code == 0, result.output
    body = json.loads(result.output)
    assert body["hydraulics"]["flow_unit"] == "gpm"
    assert len(body["stages"]) == 1


def test_membranes_command():
    result = runner.invoke(app, ["membranes", "--type", "Seawater"])
    assert result.exit_code == 0
    assert "swc5ld" in result.output
    assert "espa2ld" not in result.output
