# tests/conftest.py
"""
Shared fixtures.

two_module_xml: `Top` instantiates `Child` twice, chained in -> c1 -> c2 -> out.
pipeline_xml:   one module with a register feedback loop, used for ranking.
Fake renderers are small shell scripts written into tmp_path.
"""
import os
import stat

import pytest

from hierviz.circuit_ir import parse_circuit
from hierviz.config import DiagramConfig

TWO_MODULE_XML = """
<circuit main="Top">
  <module name="Top">
    <port name="in" dir="input"/>
    <port name="out" dir="output"/>
    <inst name="c1" module="Child"/>
    <inst name="c2" module="Child"/>
    <connect sink="c1.in" source="in"/>
    <connect sink="c2.in" source="c1.out"/>
    <connect sink="out" source="c2.out"/>
  </module>
  <module name="Child">
    <port name="in" dir="input"/>
    <port name="out" dir="output"/>
    <connect sink="out" source="in"/>
  </module>
</circuit>
"""

#   a, b, acc -> sum = a + acc -> prod = sum * b -> acc (register), y
PIPELINE_XML = """
<circuit main="Pipe">
  <module name="Pipe">
    <port name="a" dir="input"/>
    <port name="b" dir="input"/>
    <port name="y" dir="output"/>
    <reg name="acc"/>
    <node name="sum" op="add" args="a acc"/>
    <node name="prod" op="mul" args="sum b"/>
    <connect sink="acc" source="prod"/>
    <connect sink="y" source="prod"/>
  </module>
</circuit>
"""

PRINTF_XML = """
<circuit main="Logger">
  <module name="Logger">
    <port name="x" dir="input"/>
    <port name="y" dir="input"/>
    <printf name="p0" format="x=%d" args="x"/>
    <printf format="x=%d y=%d">
      <arg ref="x"/>
      <arg ref="y"/>
    </printf>
  </module>
</circuit>
"""

SLEEPING_RENDERER = "#!/bin/sh\nexec sleep 30\n"

# called as: <program> -Tsvg -O <file>
WORKING_RENDERER = """#!/bin/sh
echo '<svg xmlns="http://www.w3.org/2000/svg"><title>ok</title></svg>' > "$3.svg"
"""

BROKEN_RENDERER = "#!/bin/sh\necho 'syntax error in line 1' >&2\nexit 1\n"


def _write_script(path, content):
    path.write_text(content)
    os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def two_module_circuit():
    return parse_circuit(TWO_MODULE_XML)


@pytest.fixture
def pipeline_circuit():
    return parse_circuit(PIPELINE_XML)


@pytest.fixture
def printf_circuit():
    return parse_circuit(PRINTF_XML)


@pytest.fixture
def make_config(tmp_path):
    """Config factory writing into tmp_path with rendering and viewing off."""
    def _make(**overrides):
        options = dict(target_dir=str(tmp_path) + "/", render_program="none", open_program="")
        options.update(overrides)
        return DiagramConfig(**options)
    return _make


@pytest.fixture
def sleeping_renderer(tmp_path):
    return _write_script(tmp_path / "slow_dot.sh", SLEEPING_RENDERER)


@pytest.fixture
def working_renderer(tmp_path):
    return _write_script(tmp_path / "fake_dot.sh", WORKING_RENDERER)


@pytest.fixture
def broken_renderer(tmp_path):
    return _write_script(tmp_path / "broken_dot.sh", BROKEN_RENDERER)


@pytest.fixture
def ok_viewer(tmp_path):
    return _write_script(tmp_path / "viewer.sh", "#!/bin/sh\nexit 0\n")
