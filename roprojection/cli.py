# roprojection/cli.py

from __future__ import annotations

import json
from typing import Optional

import typer

from roprojection.schemas.projection import ProjectionRequest
from roprojection.services.membranes import list_membranes
from roprojection.services.projection.engine import ProjectionEngine

app = typer.Typer(help="RO membrane-train projection")


@app.command("project")
def project(json_path: str, pretty: bool = True):
    """Run a projection from a saved design (feed / config / membranes JSON)."""
    with open(json_path, "r", encoding="utf-8") as f:
        payload = ProjectionRequest.model_validate(json.load(f))
    out = ProjectionEngine().run(payload)
    typer.echo(out.model_dump_json(indent=2 if pretty else None))


@app.command("membranes")
def membranes(type: Optional[str] = typer.Option(None, help="Brackish / Seawater / Low Fouling")):
    """List the default membrane library."""
    for m in list_membranes(type=type):
        typer.echo(f"{m.id}\t{m.name or ''}\t{m.type or ''}\tarea={m.area_ft2} ft2\tA={m.a_value}")


if __name__ == "__main__":
    app()
