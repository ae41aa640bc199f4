"""Integration tests for the CLI and the MCP tools."""

import asyncio
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dotwalk.cli import app
from dotwalk.mcp.server import call_tool, list_tools

runner = CliRunner()

LINEAGE_DOT = """digraph lineage {
  node [shape=box];
  "meta-llama/Llama-2-7b" [label="Llama 2 7B"];
  "meta-llama/Llama-2-7b" -> "TheBloke/Llama-2-7B-GGUF" [label="GGUF"];
  "meta-llama/Llama-2-7b" -> "lmsys/vicuna-7b" [label="sft"];
  "lmsys/vicuna-7b" -> "org/vicuna-lora" [label="LoRA adapter"];
  "org/vicuna-lora" -> "org/vicuna-merge" [label="merge"];
}
"""


@pytest.fixture
def dot_file(tmp_path: Path) -> Path:
    """Write a small lineage graph to disk."""
    path = tmp_path / "lineage.dot"
    path.write_text(LINEAGE_DOT, encoding="utf-8")
    return path


class TestTraceCommand:
    """Tests for `dotwalk trace`."""

    def test_json_downstream(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "meta-llama/Llama-2-7b", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["direction"] == "downstream"
        assert data["max_level"] == 3
        assert [n["id"] for n in data["nodes"]] == [
            "meta-llama/Llama-2-7b",
            "TheBloke/Llama-2-7B-GGUF",
            "lmsys/vicuna-7b",
            "org/vicuna-lora",
            "org/vicuna-merge",
        ]
        assert [e["abbr"] for e in data["edges"]] == ["QN", "FT", "AD", "MR"]

    def test_json_upstream(self, dot_file: Path) -> None:
        result = runner.invoke(
            app, ["trace", str(dot_file), "vicuna-merge", "-D", "upstream", "--json"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["start"] == "org/vicuna-merge"
        base = [n["id"] for n in data["nodes"] if n["is_extremal"]]
        assert base == ["meta-llama/Llama-2-7b"]
        assert "rankdir=BT;" in data["dot"]

    def test_depth_limit(self, dot_file: Path) -> None:
        result = runner.invoke(
            app, ["trace", str(dot_file), "Llama 2 7B", "--depth", "1", "--json"]
        )

        data = json.loads(result.stdout)
        assert data["max_level"] == 1
        assert len(data["nodes"]) == 3

    def test_table_output(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "lmsys/vicuna-7b"])

        assert result.exit_code == 0, result.output
        assert "Done!" in result.output
        assert "3 nodes, 2 edges" in result.output

    def test_dot_output(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "org/vicuna-lora", "--dot"])

        assert result.exit_code == 0, result.output
        title = "Forward_Subgraph_Analysis_of_org_vicuna_lora"
        assert result.stdout.startswith(f'digraph "{title}" {{')

    def test_output_directory(self, dot_file: Path, tmp_path: Path) -> None:
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        result = runner.invoke(
            app, ["trace", str(dot_file), "lmsys/vicuna-7b", "-o", str(out_dir)]
        )

        assert result.exit_code == 0, result.output
        saved = out_dir / "Forward_analysis_of_lmsys_vicuna_7b.dot"
        assert saved.exists()
        assert saved.read_text(encoding="utf-8").startswith("digraph ")

    def test_output_file(self, dot_file: Path, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "trace.dot"
        result = runner.invoke(
            app, ["trace", str(dot_file), "lmsys/vicuna-7b", "-o", str(target), "--json"]
        )

        assert result.exit_code == 0, result.output
        assert target.read_text(encoding="utf-8").rstrip() == json.loads(result.stdout)["dot"]

    def test_missing_start(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "zzz-does-not-exist"])

        assert result.exit_code == 1
        assert 'Start node "zzz-does-not-exist" not found' in result.output

    def test_missing_start_json(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "zzz-does-not-exist", "--json"])

        assert result.exit_code == 1
        assert json.loads(result.stdout)["kind"] == "not_found"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["trace", str(tmp_path / "missing.dot"), "a"])

        assert result.exit_code == 1
        assert "Failed to load" in result.output

    def test_bad_direction(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "lmsys/vicuna-7b", "-D", "setup"])

        assert result.exit_code == 1
        assert "Unknown direction 'setup'" in result.output

    def test_bad_algorithm(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["trace", str(dot_file), "lmsys/vicuna-7b", "-a", "astar"])

        assert result.exit_code == 1
        assert "Unknown algorithm" in result.output


class TestStatsCommand:
    """Tests for `dotwalk stats`."""

    def test_json(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["stats", str(dot_file), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["nodes"] == 5
        assert data["edges"] == 4
        assert data["labeled"] == 1
        assert data["sources"] == 1
        assert data["sinks"] == 2

    def test_text(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["stats", str(dot_file)])

        assert result.exit_code == 0, result.output
        assert "Nodes: 5" in result.output
        assert "Edges: 4" in result.output


class TestFindCommand:
    """Tests for `dotwalk find`."""

    def test_json(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["find", str(dot_file), "vicuna", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [r["id"] for r in data] == [
            "lmsys/vicuna-7b",
            "org/vicuna-lora",
            "org/vicuna-merge",
        ]
        assert data[0]["in_degree"] == 1
        assert data[0]["out_degree"] == 1

    def test_no_matches(self, dot_file: Path) -> None:
        result = runner.invoke(app, ["find", str(dot_file), "mistral"])

        assert result.exit_code == 0, result.output
        assert "No matches" in result.output


class TestMCPTools:
    """Tests for the MCP tool handlers."""

    def call(self, name: str, arguments: dict) -> dict:
        content = asyncio.run(call_tool(name, arguments))
        return json.loads(content[0].text)

    def test_list_tools(self) -> None:
        tools = asyncio.run(list_tools())
        assert {t.name for t in tools} == {"dotwalk_trace", "dotwalk_find", "dotwalk_stats"}

    def test_trace(self, dot_file: Path) -> None:
        data = self.call(
            "dotwalk_trace",
            {"path": str(dot_file), "start": "lmsys/vicuna-7b", "algorithm": "DFS"},
        )
        assert data["algorithm"] == "DFS"
        assert [n["level"] for n in data["nodes"]] == [0, 1, 2]

    def test_trace_not_found(self, dot_file: Path) -> None:
        data = self.call("dotwalk_trace", {"path": str(dot_file), "start": "nope"})
        assert data["kind"] == "not_found"

    def test_trace_bad_direction(self, dot_file: Path) -> None:
        data = self.call(
            "dotwalk_trace",
            {"path": str(dot_file), "start": "lmsys/vicuna-7b", "direction": "setup"},
        )
        assert "Unknown direction" in data["error"]

    def test_stats(self, dot_file: Path) -> None:
        assert self.call("dotwalk_stats", {"path": str(dot_file)})["nodes"] == 5

    def test_find(self, dot_file: Path) -> None:
        data = self.call("dotwalk_find", {"path": str(dot_file), "query": "org/"})
        assert [r["id"] for r in data["results"]] == ["org/vicuna-lora", "org/vicuna-merge"]

    def test_unknown_tool(self) -> None:
        assert self.call("dotwalk_nope", {}) == {"error": "Unknown tool: dotwalk_nope"}

    def test_missing_file(self, tmp_path: Path) -> None:
        data = self.call("dotwalk_stats", {"path": str(tmp_path / "missing.dot")})
        assert "Failed to load" in data["error"]
