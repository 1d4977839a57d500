# File: ranking.py

import networkx as nx

from hierviz.graph_model import DiagramGraph, Edge, InstanceNode, PortNode


def build_dependency_graph(graph: DiagramGraph) -> nx.DiGraph:
    """
    Builds the signal dependency graph of a diagram. Record fields collapse
    onto their node, and edges into registers are dropped so that register
    outputs become sources. An expanded instance is a black box: each of its
    outputs depends on each of its inputs.
    """
    G = nx.DiGraph()
    G.add_nodes_from(n.absolute_name for n in graph.rankable_nodes())

    for edge in graph.edges:
        src = Edge.node_of(edge.source)
        dst = Edge.node_of(edge.sink)
        if dst in graph.pinned:
            continue
        if src not in G or dst not in G:
            continue
        G.add_edge(src, dst)

    for node in graph.nodes.values():
        if not isinstance(node, InstanceNode) or node.opaque:
            continue
        ports = [c for c in node.children if isinstance(c, PortNode)]
        inputs = [p.absolute_name for p in ports if p.direction == "input"]
        outputs = [p.absolute_name for p in ports if p.direction == "output"]
        G.add_edges_from((i, o) for i in inputs for o in outputs)
    return G


def compute_ranks(graph: DiagramGraph) -> dict:
    """Ranks every node by its dependency depth from the diagram's sources."""
    G = build_dependency_graph(graph)

    if nx.is_directed_acyclic_graph(G):
        ranks = {}
        for depth, generation in enumerate(nx.topological_generations(G)):
            for node in generation:
                ranks[node] = depth
        return ranks

    # combinational loop: members of one strongly connected component share a rank
    cycles = [sorted(c) for c in nx.strongly_connected_components(G) if len(c) > 1]
    cycles.extend([n] for n in nx.nodes_with_selfloops(G))
    for cycle in sorted(cycles):
        graph.report(f"combinational loop through {', '.join(cycle)}")

    condensed = nx.condensation(G)
    members = condensed.graph['mapping']
    component_rank = {}
    for depth, generation in enumerate(nx.topological_generations(condensed)):
        for component in generation:
            component_rank[component] = depth
    return {node: component_rank[members[node]] for node in G.nodes}


def apply_ranks(graph: DiagramGraph, ranks: dict):
    for name, rank in ranks.items():
        graph.nodes[name].rank = rank
    graph.ranked = True


def rank_groups(graph: DiagramGraph) -> list:
    """Returns [(rank, [node ids])] in rank order, for rank=same subgraphs."""
    groups = {}
    for node in graph.rankable_nodes():
        groups.setdefault(node.rank, []).append(node.absolute_name)
    return sorted(groups.items())
