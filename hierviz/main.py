#!/usr/bin/env python3
# File: main.py

import argparse
import os
import sys
from dataclasses import dataclass, field

from hierviz.circuit_ir import Circuit, CircuitParseError, UnknownModuleError, load_circuit
from hierviz.config import DEFAULT_DOT_TIMEOUT, DEFAULT_RANK_DIR, DEFAULT_RENDER_PROGRAM, DiagramConfig
from hierviz.dot_generator import generate_all_dots, write_dot_files
from hierviz.graph_builder import GraphBuilder
from hierviz.render import RenderStatus, add_css, render_all, show


@dataclass
class RunResult:
    entry: str
    entry_file: str
    dot_files: list = field(default_factory=list)
    statuses: dict = field(default_factory=dict)
    problems: list = field(default_factory=list)
    plot_file: str = ""


def run(config: DiagramConfig, circuit: Circuit) -> RunResult:
    """Builds, writes and renders the diagrams of circuit, then opens the entry one."""
    target_dir = config.target_dir
    os.makedirs(target_dir, exist_ok=True)

    print("Building diagrams...")
    builder = GraphBuilder(circuit, config)
    diagrams = builder.build()
    entry = builder.entry_module()

    print(f"Generating {len(diagrams)} DOT files...")
    dot_files = generate_all_dots(diagrams, entry, config)
    paths = write_dot_files(dot_files, target_dir)

    # stylesheet goes in before any svg that refers to it
    add_css(target_dir)
    statuses = render_all(paths, config)

    result = RunResult(entry, paths[0], paths, statuses, builder.problems)

    if config.plot_dependencies:
        from hierviz.dependency_plot import plot_dependencies
        plot_path = os.path.join(target_dir, f"{entry}_dependencies.png")
        result.plot_file = plot_dependencies(diagrams[entry], plot_path)

    timed_out = [p for p, s in statuses.items() if s is RenderStatus.TIMED_OUT]
    if timed_out:
        print(f"{len(timed_out)} of {len(paths)} diagrams timed out")

    if config.renderer_enabled:
        show(result.entry_file, config.open_program)
    return result


def make_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hierviz",
                                description="Render a circuit hierarchy as a set of linked Graphviz diagrams")
    p.add_argument('-i', '--circuit-source', required=True,
                   help="Circuit XML file (lowered structural description)")
    p.add_argument('-m', '--module-name', help="The module in the hierarchy to start, default is the circuit top")
    p.add_argument('-t', '--target-dir', help="The directory to put dot and svg files in")
    p.add_argument('-o', '--open-command', default=None,
                   help="Program used to open the svg file, 'none' to just print its path")
    p.add_argument('-j', '--just-top-level', action='store_true', help="Only render the top level view")
    p.add_argument('-f', '--flatten', action='store_true',
                   help="Inline the whole hierarchy into a single diagram")
    p.add_argument('-d', '--rank-dir', default=DEFAULT_RANK_DIR,
                   help="Ranking direction, default is LR, TB is a good alternative")
    p.add_argument('-r', '--rank-elements', action='store_true', help="Rank elements by depth from inputs")
    p.add_argument('-p', '--show-printfs', action='store_true', help="Render printfs showing arguments")
    p.add_argument('-s', '--dot-timeout-seconds', type=float, default=DEFAULT_DOT_TIMEOUT,
                   help="Gives up rendering a module after this many seconds (default 7)")
    p.add_argument('--render-program', default=DEFAULT_RENDER_PROGRAM,
                   help="Graphviz program used for layout, 'none' to only write dot files")
    p.add_argument('--jobs', type=int, default=1, help="Number of modules to render in parallel")
    p.add_argument('--plot-dependencies', action='store_true',
                   help="Also save a matplotlib plot of the entry module's signal dependencies")
    return p


def main(argv=None):
    args = make_parser().parse_args(argv)

    try:
        config = DiagramConfig.from_args(args)
    except ValueError as e:
        sys.exit(f"Error: {e}")

    try:
        circuit = load_circuit(args.circuit_source)
    except CircuitParseError as e:
        sys.exit(f"Error: {e}")

    try:
        result = run(config, circuit)
    except UnknownModuleError as e:
        sys.exit(f"Error: {e}")

    if result.problems:
        print(f"Finished with {len(result.problems)} warnings")
    print(f"\nProcess complete! Start with {result.entry_file}")
    return 0


if __name__ == '__main__':
    main()
