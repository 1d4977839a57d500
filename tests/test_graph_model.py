# tests/test_graph_model.py
"""Tests for diagram nodes, edges and the DiagramGraph arena."""
import pytest

from hierviz.graph_model import (
    DEFAULT_RANK, ClusterNode, DiagramGraph, Edge, InstanceNode, MemoryNode,
    OpNode, PortNode, PrintfNode, RegisterNode, escape_record, quote,
)


@pytest.fixture
def graph():
    return DiagramGraph("Top")


def test_absolute_name_follows_owner_chain(graph):
    inst = graph.add_node(graph.root, InstanceNode("c1", graph.root, "Child"))
    port = graph.add_node(inst, PortNode("in", inst, "input"))
    assert graph.root.absolute_name == "Top"
    assert inst.absolute_name == "Top.c1"
    assert port.absolute_name == "Top.c1.in"
    assert port.parent_name == "Top.c1"


def test_absolute_name_is_stable_across_builds():
    first = DiagramGraph("Top")
    second = DiagramGraph("Top")
    a = PortNode("x", ClusterNode("u", first.root))
    b = PortNode("x", ClusterNode("u", second.root))
    assert a.absolute_name == b.absolute_name == "Top.u.x"


def test_add_child_rejects_foreign_node(graph):
    other = ClusterNode("other", graph.root)
    with pytest.raises(ValueError):
        graph.root.add_child(PortNode("x", other))


def test_add_node_rejects_duplicates(graph):
    graph.add_node(graph.root, PortNode("x", graph.root))
    with pytest.raises(ValueError):
        graph.add_node(graph.root, RegisterNode("x", graph.root))


def test_children_keep_insertion_order(graph):
    for name in ["c", "a", "b"]:
        graph.add_node(graph.root, PortNode(name, graph.root))
    assert [c.name for c in graph.root.children] == ["c", "a", "b"]


def test_port_render():
    node = PortNode("in", DiagramGraph("Top").root, "input", rank=0)
    assert node.render() == ('"Top.in" [shape="rectangle", style="filled", fillcolor="lightblue", '
                             'label="in", rank="0"];')


def test_default_rank():
    assert RegisterNode("r", DiagramGraph("Top").root).rank == DEFAULT_RANK


def test_op_label_includes_literals():
    node = OpNode("k", DiagramGraph("Top").root, "add", ["1"])
    assert node.label == "add(1)"
    assert OpNode("n", None, "not").label == "not"


def test_printf_render_escapes_format():
    node = PrintfNode("p0", DiagramGraph("Top").root, 'v={%d} "q"', ["x", "y"])
    text = node.render()
    assert 'label="{printf|v=\\{%d\\} \\"q\\"|{<arg0> x|<arg1> y}}"' in text
    assert text.startswith('"Top.p0" [shape="record"')


def test_memory_cluster_render(graph):
    mem = graph.add_node(graph.root, MemoryNode("m", graph.root, 16, 8))
    graph.add_node(mem, PortNode("r0.addr", mem, "field"))
    text = mem.render()
    assert text.startswith('subgraph "cluster_Top.m" {')
    assert 'label="m [16 x 8]";' in text
    assert '  "Top.m.r0.addr" [' in text


def test_expanded_instance_carries_link(graph):
    inst = graph.add_node(graph.root, InstanceNode("c1", graph.root, "Child"))
    text = inst.render({"Top.c1": "Child.dot.svg"})
    assert 'URL="Child.dot.svg";' in text
    assert 'tooltip="Go to module: Child";' in text
    assert 'URL' not in inst.render()


def test_opaque_instance_is_a_record(graph):
    inst = InstanceNode("c1", graph.root, "Child", opaque=True, port_names=["in", "out"])
    assert not inst.is_container
    assert 'label="{c1: Child|{<in> in|<out> out}}"' in inst.render()
    with pytest.raises(ValueError):
        inst.add_child(PortNode("in", inst))


def test_edge_render():
    assert Edge("Top.in", "Top.c1:in").render() == '"Top.in" -> "Top.c1":"in";'
    assert Edge("a", "b", "data").render() == '"a" -> "b" [label="data"];'
    assert Edge.node_of("Top.p0:arg1") == "Top.p0"


def test_quoting_helpers():
    assert quote('say "hi"\n') == '"say \\"hi\\"\\n"'
    assert escape_record("a|b<c>") == "a\\|b\\<c\\>"


def test_report_records_problem(graph, capsys):
    graph.report("something odd")
    assert graph.problems == ["something odd"]
    assert "Warning: [Top] something odd" in capsys.readouterr().out


def test_rankable_nodes_skip_containers(graph):
    inst = graph.add_node(graph.root, InstanceNode("c1", graph.root, "Child"))
    graph.add_node(inst, PortNode("in", inst, "input"))
    graph.add_node(graph.root, InstanceNode("c2", graph.root, "Child", opaque=True))
    names = [n.absolute_name for n in graph.rankable_nodes()]
    assert names == ["Top.c1.in", "Top.c2"]
