from __future__ import annotations

import json
from typing import Any, Literal

import yaml
from rich.console import Console
from rich.table import Table

OutputFormat = Literal["json", "yaml", "table"]


def _plain_value(value: float) -> int | float:
    # 2.0 -> 2
    return int(value) if value.is_integer() else value


def _plain_rows(samples: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "name": str(sample["name"]),
            "labels": {str(key): str(value) for key, value in sample.get("labels", {}).items()},
            "value": _plain_value(float(sample["value"])),
        }
        for sample in samples
    ]


def _format_labels(labels: dict[str, str]) -> str:
    return ",".join(f'{key}="{value}"' for key, value in labels.items())


def emit_samples(samples: list[dict[str, Any]], *, output: OutputFormat = "json", title: str | None = None) -> None:
    """Render collected metric samples as json, yaml, or a table."""

    rows = _plain_rows(samples)
    if output == "json":
        print(json.dumps(rows, indent=2))
        return
    if output == "yaml":
        print(yaml.safe_dump(rows, sort_keys=False))
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("metric")
    table.add_column("labels")
    table.add_column("value", justify="right")
    for row in rows:
        table.add_row(row["name"], _format_labels(row["labels"]), str(row["value"]))
    Console().print(table)
