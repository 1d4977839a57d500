# File: dependency_plot.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx

from hierviz.graph_model import DiagramGraph
from hierviz.ranking import build_dependency_graph


def plot_dependencies(graph: DiagramGraph, out_path: str) -> str:
    """Draws the signal dependency graph of one diagram into a png."""
    G = build_dependency_graph(graph)
    prefix = graph.root.absolute_name + "."
    labels = {n: n[len(prefix):] if n.startswith(prefix) else n for n in G.nodes}
    colors = ["darkseagreen" if n in graph.pinned else "lightgreen" for n in G.nodes]

    fig = plt.figure(figsize=(8, 6))
    pos = nx.spring_layout(G, seed=42)  # fixed seed for reproducible layout
    nx.draw(
        G,
        pos,
        labels=labels,
        with_labels=True,
        node_color=colors,
        node_size=1000,
        font_size=10,
        edge_color="gray",
    )
    plt.title(f"Signal dependencies of {graph.name}")
    fig.savefig(out_path)
    plt.close(fig)
    print(f"Wrote Dependency Plot -> {out_path}")
    return out_path
