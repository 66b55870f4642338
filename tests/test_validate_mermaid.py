"""
Structural validation of flowchart text and the mmdc fallback path.
"""

import os
import subprocess

from flowgraph import validate_mermaid as vm
from flowgraph.mermaid import FALLBACK_DIAGRAM, code_to_mermaid


class TestValidateBasic:

    def test_generated_output_is_valid(self):
        assert vm.validate_basic(code_to_mermaid("a()\nif (b) { c() }")) == (True, "")

    def test_fallback_is_valid(self):
        assert vm.validate_basic(FALLBACK_DIAGRAM) == (True, "")

    def test_empty(self):
        ok, error = vm.validate_basic("  ")
        assert not ok
        assert error == "Empty Mermaid code"

    def test_fence_only(self):
        ok, error = vm.validate_basic("```mermaid\n```")
        assert not ok
        assert "after stripping fences" in error

    def test_wrong_diagram_type(self):
        ok, error = vm.validate_basic("sequenceDiagram\n    A->>B: hi")
        assert not ok
        assert "No flowchart declaration" in error

    def test_header_only(self):
        ok, error = vm.validate_basic("flowchart TD\n%% just a comment")
        assert not ok
        assert "no content" in error

    def test_dangling_edge(self):
        ok, error = vm.validate_basic('flowchart TD\n    a["A"]\n    a --> b')
        assert not ok
        assert error == "Edges reference undeclared nodes: b"

    def test_edge_before_declaration(self):
        text = 'flowchart TD\n    a --> b\n    a["A"]\n    b["B"]'
        assert vm.undeclared_edge_refs(text) == ["a", "b"]

    def test_fenced_output_accepted(self):
        assert vm.validate_basic(code_to_mermaid("x = 1", fenced=True)) == (True, "")


class TestCountElements:

    def test_counts_generated_output(self):
        text = code_to_mermaid("while (i < 3) { i = i + 1 }")
        assert vm.count_elements(text) == {"node_count": 3, "edge_count": 3}

    def test_counts_fenced_fallback(self):
        fenced = f"```mermaid\n{FALLBACK_DIAGRAM}\n```"
        assert vm.count_elements(fenced) == {"node_count": 2, "edge_count": 1}


class TestMmdc:

    def test_basic_failure_skips_mmdc(self, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("mmdc should not run")
        monkeypatch.setattr(vm.subprocess, "run", boom)
        assert vm.validate_mermaid("", use_mmdc=True) == (False, "Empty Mermaid code")

    def test_mmdc_not_requested(self, monkeypatch):
        def boom(*args, **kwargs):
            raise AssertionError("mmdc should not run")
        monkeypatch.setattr(vm.subprocess, "run", boom)
        assert vm.validate_mermaid(FALLBACK_DIAGRAM) == (True, "")

    def test_missing_tool_is_basic_only(self, monkeypatch):
        def missing(*args, **kwargs):
            raise FileNotFoundError("mmdc")
        monkeypatch.setattr(vm.subprocess, "run", missing)
        ok, error = vm.validate_mermaid(FALLBACK_DIAGRAM, use_mmdc=True)
        assert ok
        assert "basic validation only" in error

    def test_syntax_error_reported(self, monkeypatch):
        def failing(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Parse error on line 2")
        monkeypatch.setattr(vm.subprocess, "run", failing)
        ok, error = vm.validate_mermaid(FALLBACK_DIAGRAM, use_mmdc=True)
        assert not ok
        assert error == "mmdc validation failed: Parse error on line 2"

    def test_infra_error_falls_through(self, monkeypatch):
        calls = []

        def flaky(cmd, **kwargs):
            calls.append(cmd[0])
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="npm ERR! network")
        monkeypatch.setattr(vm.subprocess, "run", flaky)
        ok, _ = vm.validate_mermaid(FALLBACK_DIAGRAM, use_mmdc=True)
        assert ok
        assert calls == ["mmdc", "npx"]

    def test_output_is_temporary_svg(self, monkeypatch):
        seen = {}

        def render(cmd, **kwargs):
            seen["input"] = cmd[cmd.index("-i") + 1]
            seen["output"] = cmd[cmd.index("-o") + 1]
            with open(seen["output"], "w", encoding="utf-8") as f:
                f.write("<svg/>")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        monkeypatch.setattr(vm.subprocess, "run", render)
        assert vm.validate_mermaid(FALLBACK_DIAGRAM, use_mmdc=True) == (True, "")
        assert seen["output"].endswith(".svg")
        assert seen["input"].endswith(".mmd")
        assert not os.path.exists(seen["output"])
        assert not os.path.exists(seen["input"])
