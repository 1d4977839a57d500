# File: dot_generator.py

import os
import textwrap

from hierviz.config import DiagramConfig
from hierviz.graph_model import DiagramGraph, quote
from hierviz.ranking import rank_groups

DOT_SUFFIX = ".dot"
HIERARCHY_SUFFIX = "_hierarchy"
STYLESHEET = "styles.css"


def dot_file_name(module_name: str, is_entry: bool = False) -> str:
    """The entry module gets '<name>_hierarchy.dot', every other module '<name>.dot'."""
    if is_entry:
        return f"{module_name}{HIERARCHY_SUFFIX}{DOT_SUFFIX}"
    return f"{module_name}{DOT_SUFFIX}"


def svg_file_name(dot_name: str) -> str:
    # the renderer is run with -O, which appends the format to the input name
    return f"{dot_name}.svg"


def link_urls(graph: DiagramGraph, entry: str) -> dict:
    """Maps each linked instance to the svg of the module it instantiates."""
    return {
        instance: svg_file_name(dot_file_name(module, module == entry))
        for instance, module in graph.links.items()
    }


def generate_dot(graph: DiagramGraph, config: DiagramConfig, urls: dict = None) -> str:
    lines = [
        f"digraph {quote(graph.name)} {{",
        f"  stylesheet={quote(STYLESHEET)};",
        f"  rankdir={quote(graph.root.rank_dir)};",
        '  node [fontname="Helvetica", fontsize=12];',
        '  edge [fontname="Helvetica", fontsize=10, color="#555555"];',
        textwrap.indent(graph.root.render(urls or {}), "  "),
    ]

    if config.use_ranking and graph.ranked:
        for rank, names in rank_groups(graph):
            members = "; ".join(quote(n) for n in names)
            lines.append(f"  {{ rank=same; {members}; }}")

    for edge in graph.edges:
        lines.append(f"  {edge.render()}")

    lines.append("}")
    return "\n".join(lines) + "\n"


def generate_all_dots(diagrams: dict, entry: str, config: DiagramConfig) -> dict:
    """Returns {file name: dot text}, entry module first."""
    dot_files = {}
    for name, graph in diagrams.items():
        urls = link_urls(graph, entry)
        dot_files[dot_file_name(name, name == entry)] = generate_dot(graph, config, urls)
    return dot_files


def write_dot_files(dot_files: dict, target_dir: str) -> list:
    paths = []
    for file_name, dot_content in dot_files.items():
        path = os.path.join(target_dir, file_name)
        with open(path, 'w') as f:
            f.write(dot_content)
        print(f"Wrote DOT -> {path}")
        paths.append(path)
    return paths
