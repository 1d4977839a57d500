# tests/test_render.py
"""
Tests for the render pipeline.

The external layout program is replaced by shell scripts from conftest:
one that sleeps, one that writes a small svg, one that fails.
"""
import os

import pytest

from hierviz.render import (
    CSS, FAILED_SVG, FALLBACK_SVG, RenderStatus, add_css, render, render_all,
    run_with_deadline, show,
)


@pytest.fixture
def dot_path(tmp_path):
    path = tmp_path / "Top_hierarchy.dot"
    path.write_text('digraph "Top" { "a" -> "b"; }\n')
    return str(path)


def _read(path):
    with open(path) as f:
        return f.read()


def test_add_css(tmp_path):
    path = add_css(str(tmp_path))
    assert os.path.basename(path) == "styles.css"
    assert _read(path) == CSS
    assert ".edge:hover" in CSS


def test_run_with_deadline_success(working_renderer, dot_path):
    status, message = run_with_deadline([working_renderer, "-Tsvg", "-O", dot_path], 10)
    assert status is RenderStatus.SUCCEEDED
    assert message == ""


def test_run_with_deadline_timeout(sleeping_renderer):
    status, message = run_with_deadline([sleeping_renderer], 0)
    assert status is RenderStatus.TIMED_OUT
    assert "timed out" in message


def test_run_with_deadline_missing_program(tmp_path):
    status, message = run_with_deadline([str(tmp_path / "no_such_dot")], 1)
    assert status is RenderStatus.FAILED
    assert "cannot run" in message


def test_render_success(make_config, working_renderer, dot_path):
    status = render(dot_path, make_config(render_program=working_renderer))
    assert status is RenderStatus.SUCCEEDED
    assert "<title>ok</title>" in _read(dot_path + ".svg")


def test_render_timeout_writes_fallback(make_config, sleeping_renderer, dot_path, capsys):
    status = render(dot_path, make_config(render_program=sleeping_renderer, dot_timeout=0))
    assert status is RenderStatus.TIMED_OUT
    assert _read(dot_path + ".svg") == FALLBACK_SVG
    out = capsys.readouterr().out
    assert "timed out" in out
    assert "--dot-timeout-seconds" in out


def test_render_failure_writes_placeholder(make_config, broken_renderer, dot_path, capsys):
    status = render(dot_path, make_config(render_program=broken_renderer))
    assert status is RenderStatus.FAILED
    assert _read(dot_path + ".svg") == FAILED_SVG
    assert "syntax error" in capsys.readouterr().out


def test_render_missing_input(make_config, working_renderer, tmp_path, capsys):
    missing = str(tmp_path / "Ghost.dot")
    assert render(missing, make_config(render_program=working_renderer)) is RenderStatus.FAILED
    assert not os.path.exists(missing + ".svg")
    assert "non existent file" in capsys.readouterr().out


def test_render_without_file_name(make_config, working_renderer):
    assert render("", make_config(render_program=working_renderer)) is RenderStatus.FAILED


@pytest.mark.parametrize("program", ["none", ""])
def test_render_disabled(make_config, dot_path, program):
    assert render(dot_path, make_config(render_program=program)) is RenderStatus.SKIPPED
    assert not os.path.exists(dot_path + ".svg")


@pytest.mark.parametrize("jobs", [1, 3])
def test_render_all_keeps_every_file(make_config, sleeping_renderer, tmp_path, jobs):
    paths = []
    for name in ("A_hierarchy.dot", "B.dot", "C.dot"):
        path = tmp_path / name
        path.write_text("digraph {}\n")
        paths.append(str(path))
    statuses = render_all(paths, make_config(render_program=sleeping_renderer, dot_timeout=0, jobs=jobs))
    assert list(statuses) == paths
    assert set(statuses.values()) == {RenderStatus.TIMED_OUT}
    for path in paths:
        assert _read(path + ".svg") == FALLBACK_SVG


def test_show_without_viewer_prints_path(capsys):
    assert show("out/Top_hierarchy.dot", "") is False
    assert "out/Top_hierarchy.dot.svg" in capsys.readouterr().out


def test_show_with_missing_viewer_prints_path(tmp_path, capsys):
    assert show("out/Top_hierarchy.dot", str(tmp_path / "no_viewer")) is False
    out = capsys.readouterr().out
    assert "could not open" in out
    assert "out/Top_hierarchy.dot.svg" in out


def test_show_opens_with_viewer(ok_viewer):
    assert show("Top_hierarchy.dot", ok_viewer) is True
