from __future__ import annotations

import json

import pytest
import yaml

from rsspot_exporter.utils.output import emit_samples

SAMPLES = [
    {"name": "rackspace_spot_spotnodepool_desired", "labels": {"namespace": "org-test", "nodepool": "a"}, "value": 5.0},
    {"name": "rackspace_spot_spotnodepool_desired", "labels": {"namespace": "org-test", "nodepool": "b"}, "value": 0.5},
]


def test_json_output(capsys: pytest.CaptureFixture[str]) -> None:
    emit_samples(SAMPLES, output="json")

    rows = json.loads(capsys.readouterr().out)
    assert [row["value"] for row in rows] == [5, 0.5]
    assert isinstance(rows[0]["value"], int)
    assert rows[1]["labels"] == {"namespace": "org-test", "nodepool": "b"}


def test_yaml_output(capsys: pytest.CaptureFixture[str]) -> None:
    emit_samples(SAMPLES, output="yaml")

    rows = yaml.safe_load(capsys.readouterr().out)
    assert rows[0] == {
        "name": "rackspace_spot_spotnodepool_desired",
        "labels": {"namespace": "org-test", "nodepool": "a"},
        "value": 5,
    }


def test_table_output(capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COLUMNS", "200")

    emit_samples(SAMPLES, output="table", title="Rackspace Spot (org-test)")

    out = capsys.readouterr().out
    assert "Rackspace Spot (org-test)" in out
    assert 'namespace="org-test",nodepool="a"' in out
