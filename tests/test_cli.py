"""
Tests for the command-line interface.
"""

import json

from typer.testing import CliRunner

from nfe_reconciler.cli import app, load_xml_documents

runner = CliRunner()


def write_batch(directory, numbers, build):
    for n in numbers:
        (directory / f"nfe-{n:04d}.xml").write_text(build(number=str(n)), encoding="utf-8")


class TestLoadXmlDocuments:

    def test_only_xml_in_name_order(self, tmp_path, nfe_xml):
        write_batch(tmp_path, [2, 1], nfe_xml)
        (tmp_path / "readme.txt").write_text("ignore me")
        documents = load_xml_documents(tmp_path)
        assert [d["name"] for d in documents] == ["nfe-0001.xml", "nfe-0002.xml"]
        assert "<nNF>1</nNF>" in documents[0]["content"]


class TestReconcileCommand:

    def test_writes_report(self, tmp_path, nfe_xml):
        write_batch(tmp_path, [1, 2, 5], nfe_xml)
        out = tmp_path / "out" / "report.json"
        out.parent.mkdir()

        result = runner.invoke(app, ["reconcile", "--xml-dir", str(tmp_path), "--report", str(out), "--ranges"])

        assert result.exit_code == 0, result.output
        assert "RECONCILIATION SUMMARY" in result.output
        assert "3-4" in result.output
        report = json.loads(out.read_text(encoding="utf-8"))
        assert report["totalProcessed"] == 3
        assert report["missingNumbers"] == [3, 4]

    def test_empty_directory(self, tmp_path):
        result = runner.invoke(app, ["reconcile", "--xml-dir", str(tmp_path)])
        assert result.exit_code == 1

    def test_fail_on_errors(self, tmp_path, monkeypatch, nfe_xml):
        write_batch(tmp_path, [1], nfe_xml)

        def broken(raw_text, lookup=None):
            raise RuntimeError("unreadable protocol")

        monkeypatch.setattr("nfe_reconciler.engine.classify_protocol", broken)
        result = runner.invoke(app, ["reconcile", "--xml-dir", str(tmp_path), "--fail-on-errors"])
        assert result.exit_code == 1

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
