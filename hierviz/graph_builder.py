# File: graph_builder.py

import re

from hierviz.circuit_ir import Circuit, Module
from hierviz.config import DiagramConfig
from hierviz.graph_model import (
    DEFAULT_RANK, ClusterNode, DiagramGraph, InstanceNode, MemoryNode,
    OpNode, PortNode, PrintfNode, RegisterNode,
)
from hierviz.ranking import apply_ranks, compute_ranks

LITERAL = re.compile(r"^(-?\d+|0x[0-9a-f_]+|\d*'s?[bodh][0-9a-f_xz]+)$", re.IGNORECASE)

LINKED, TOP_LEVEL, FLATTENED = "linked", "top_level", "flattened"


def is_literal(arg: str) -> bool:
    return bool(LITERAL.match(arg))


class GraphBuilder:
    """
    Walks a circuit and builds its diagrams.

    In the default (linked) mode every module reachable from the entry
    module gets its own DiagramGraph and instances link to the child's
    diagram. Top-level mode builds only the entry module with opaque
    instances, flattened mode inlines the whole hierarchy into one diagram.
    """

    def __init__(self, circuit: Circuit, config: DiagramConfig):
        self.circuit = circuit
        self.config = config
        self.diagrams = {}
        self._in_progress = []

    @property
    def mode(self) -> str:
        if self.config.just_top_level:
            return TOP_LEVEL
        if self.config.flatten:
            return FLATTENED
        return LINKED

    @property
    def problems(self) -> list:
        return [p for graph in self.diagrams.values() for p in graph.problems]

    def entry_module(self) -> str:
        name = self.config.start_module or self.circuit.main
        self.circuit.get_module(name)
        return name

    def build(self) -> dict:
        """Returns {module name: DiagramGraph}, entry module first."""
        entry = self.entry_module()
        self._build_module(entry)
        return self.diagrams

    def _build_module(self, name: str) -> DiagramGraph:
        module = self.circuit.modules[name]
        graph = DiagramGraph(name, self.config.rank_dir)
        self.diagrams[name] = graph

        self._in_progress.append(name)
        self._populate(graph, graph.root, module)
        self._in_progress.pop()

        if self.config.use_ranking:
            apply_ranks(graph, compute_ranks(graph))
        return graph

    def _add(self, graph, container, node, scope, key):
        if graph.has_node(node.absolute_name):
            graph.report(f"'{key}' is declared twice in {container.absolute_name}, skipping")
            return None
        graph.add_node(container, node)
        scope[key] = node.absolute_name
        return node

    def _populate(self, graph: DiagramGraph, container, module: Module) -> dict:
        """
        Adds the contents of module under container. Returns the scope, a map
        from references as written in the module to node identities.
        """
        scope = {}
        is_root = container is graph.root

        for port in module.ports:
            rank = 0 if is_root and port.direction == "input" else DEFAULT_RANK
            self._add(graph, container, PortNode(port.name, container, port.direction, rank), scope, port.name)

        for wire in module.wires:
            self._add(graph, container, PortNode(wire.name, container, "wire"), scope, wire.name)

        for reg in module.registers:
            node = self._add(graph, container, RegisterNode(reg.name, container), scope, reg.name)
            if node is not None:
                graph.pinned.add(node.absolute_name)

        op_nodes = []
        for op in module.nodes:
            literals = [a for a in op.args if is_literal(a)]
            node = self._add(graph, container, OpNode(op.name, container, op.op, literals), scope, op.name)
            if node is not None:
                op_nodes.append((op, node))

        for mem in module.memories:
            mem_node = self._add(graph, container, MemoryNode(mem.name, container, mem.depth, mem.width),
                                 scope, mem.name)
            if mem_node is None:
                continue
            for mem_port in mem.ports:
                for field in mem_port.fields:
                    name = f"{mem_port.name}.{field}"
                    self._add(graph, mem_node, PortNode(name, mem_node, "field"), scope, f"{mem.name}.{name}")

        for inst in module.instances:
            self._add_instance(graph, container, inst, scope)

        for op, node in op_nodes:
            for arg in op.args:
                if is_literal(arg):
                    continue
                source = scope.get(arg)
                if source is None:
                    graph.report(f"node '{op.name}' uses unknown reference '{arg}', skipping argument")
                    continue
                graph.add_edge(source, node.absolute_name)

        for connect in module.connects:
            source = scope.get(connect.source)
            sink = scope.get(connect.sink)
            if source is None or sink is None:
                missing = connect.source if source is None else connect.sink
                graph.report(f"connection {connect.sink} <= {connect.source} names unknown '{missing}', skipping")
                continue
            graph.add_edge(source, sink)

        if self.config.show_printfs:
            for printf in module.printfs:
                node = self._add(graph, container, PrintfNode(printf.name, container, printf.format, printf.args),
                                 scope, printf.name)
                if node is None:
                    continue
                for index, arg in enumerate(printf.args):
                    if is_literal(arg):
                        continue
                    source = scope.get(arg)
                    if source is None:
                        graph.report(f"printf '{printf.name}' uses unknown reference '{arg}', skipping argument")
                        continue
                    graph.add_edge(source, f"{node.absolute_name}:{PrintfNode.arg_field(index)}")

        return scope

    def _add_instance(self, graph, container, inst, scope):
        child = self.circuit.modules.get(inst.module)
        if child is None:
            graph.report(f"instance '{inst.name}' refers to unknown module '{inst.module}', skipping")
            return
        if inst.module in self._in_progress:
            graph.report(f"instance '{inst.name}' instantiates '{inst.module}' recursively, skipping")
            return

        if self.mode == TOP_LEVEL:
            node = InstanceNode(inst.name, container, inst.module, opaque=True,
                                port_names=[p.name for p in child.ports])
            if self._add(graph, container, node, scope, inst.name) is None:
                return
            for port in child.ports:
                scope[f"{inst.name}.{port.name}"] = f"{node.absolute_name}:{port.name}"

        elif self.mode == FLATTENED:
            cluster = ClusterNode(inst.name, container, label=f"{inst.name}: {inst.module}")
            if self._add(graph, container, cluster, scope, inst.name) is None:
                return
            self._in_progress.append(inst.module)
            child_scope = self._populate(graph, cluster, child)
            self._in_progress.pop()
            for port in child.ports:
                if port.name in child_scope:
                    scope[f"{inst.name}.{port.name}"] = child_scope[port.name]

        else:
            node = InstanceNode(inst.name, container, inst.module)
            if self._add(graph, container, node, scope, inst.name) is None:
                return
            for port in child.ports:
                self._add(graph, node, PortNode(port.name, node, port.direction), scope, f"{inst.name}.{port.name}")
            graph.add_link(node, inst.module)
            # each module gets exactly one diagram, however often it is instantiated
            if inst.module not in self.diagrams:
                self._build_module(inst.module)
