# File: graph_model.py

import textwrap
from typing import Dict, List, Optional

SEPARATOR = "."
DEFAULT_RANK = 10

NODE_STYLES = {
    'input':    dict(shape='rectangle', style='filled', fillcolor='lightblue'),
    'output':   dict(shape='rectangle', style='filled', fillcolor='lightpink'),
    'wire':     dict(shape='ellipse'),
    'field':    dict(shape='rectangle', fontsize='10'),
    'register': dict(shape='box3d', style='filled', fillcolor='darkseagreen1'),
    'op':       dict(shape='circle', style='filled', fillcolor='lightgoldenrod'),
    'printf':   dict(shape='record', style='filled', fillcolor='lightcyan'),
    'instance': dict(shape='record', style='filled', fillcolor='#e6f3ff'),
}


def quote(value) -> str:
    """Quotes a value as a DOT string."""
    text = str(value).replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
    return f'"{text}"'


def escape_record(text: str) -> str:
    """Escapes the characters that have a meaning inside record labels."""
    for ch in '\\{}|<>':
        text = text.replace(ch, '\\' + ch)
    return text.replace('\n', '\\n')


def quote_record(label: str) -> str:
    """Quotes a record label that was already escaped with escape_record."""
    return '"' + label.replace('"', '\\"') + '"'


def format_attrs(attrs: dict) -> str:
    return ", ".join(f"{k}={quote(v)}" for k, v in attrs.items())


def endpoint(ref: str) -> str:
    """Formats an edge endpoint; 'node:field' addresses a record field."""
    node_id, _, record_field = ref.partition(":")
    if record_field:
        return f"{quote(node_id)}:{quote(record_field)}"
    return quote(node_id)


class DotNode:
    """A node of a diagram. The parent is referenced by absolute name only."""
    style = 'wire'

    def __init__(self, name: str, parent: Optional["DotNode"] = None, rank: int = DEFAULT_RANK):
        self.name = name
        self.parent_name = parent.absolute_name if parent is not None else None
        if self.parent_name is None:
            self.absolute_name = name
        else:
            self.absolute_name = f"{self.parent_name}{SEPARATOR}{name}"
        self.rank = rank

    @property
    def is_container(self) -> bool:
        return False

    @property
    def label(self) -> str:
        return self.name

    def attributes(self, links=None) -> dict:
        attrs = dict(NODE_STYLES[self.style])
        attrs['label'] = self.label
        attrs['rank'] = self.rank
        return attrs

    def render(self, links=None) -> str:
        return f"{quote(self.absolute_name)} [{format_attrs(self.attributes(links))}];"

    def __repr__(self):
        return f"{type(self).__name__}({self.absolute_name!r})"


class PortNode(DotNode):
    """A module port, a wire, or a field of a memory port."""

    def __init__(self, name, parent=None, direction='wire', rank=DEFAULT_RANK, label=None):
        super().__init__(name, parent, rank)
        self.direction = direction
        self._label = label

    @property
    def style(self):
        return self.direction

    @property
    def label(self):
        return self._label if self._label is not None else self.name


class RegisterNode(DotNode):
    style = 'register'


class OpNode(DotNode):
    style = 'op'

    def __init__(self, name, parent=None, op='', literals=(), rank=DEFAULT_RANK):
        super().__init__(name, parent, rank)
        self.op = op
        self.literals = list(literals)

    @property
    def label(self):
        if self.literals:
            return f"{self.op}({', '.join(self.literals)})"
        return self.op


class PrintfNode(DotNode):
    style = 'printf'

    def __init__(self, name, parent=None, format_string='', args=(), rank=DEFAULT_RANK):
        super().__init__(name, parent, rank)
        self.format_string = format_string
        self.args = list(args)

    @staticmethod
    def arg_field(index: int) -> str:
        return f"arg{index}"

    @property
    def label(self):
        fields = "|".join(f"<{self.arg_field(i)}> {escape_record(a)}" for i, a in enumerate(self.args))
        head = f"printf|{escape_record(self.format_string)}"
        return f"{{{head}|{{{fields}}}}}" if fields else f"{{{head}}}"

    def render(self, links=None):
        # record labels carry their own escapes
        attrs = dict(NODE_STYLES[self.style])
        return (f'{quote(self.absolute_name)} [{format_attrs(attrs)}, '
                f'label={quote_record(self.label)}, rank={quote(self.rank)}];')


class ContainerNode(DotNode):
    """A node that boxes its children in a cluster subgraph."""

    def __init__(self, name, parent=None, rank=DEFAULT_RANK):
        super().__init__(name, parent, rank)
        self.children: List[DotNode] = []

    @property
    def is_container(self) -> bool:
        return True

    def add_child(self, node: DotNode) -> DotNode:
        if node.parent_name != self.absolute_name:
            raise ValueError(f"{node!r} is not owned by {self!r}")
        self.children.append(node)
        return node

    def cluster_attributes(self, links=None) -> dict:
        return {'label': self.label}

    def render(self, links=None) -> str:
        lines = [f"subgraph {quote('cluster_' + self.absolute_name)} {{"]
        for key, value in self.cluster_attributes(links).items():
            lines.append(f"  {key}={quote(value)};")
        for child in self.children:
            lines.append(textwrap.indent(child.render(links), "  "))
        lines.append("}")
        return "\n".join(lines)


class ModuleNode(ContainerNode):
    """The root of one diagram."""

    def __init__(self, name, rank_dir="LR"):
        super().__init__(name, None, 0)
        self.rank_dir = rank_dir

    def cluster_attributes(self, links=None):
        return {'label': self.name, 'style': 'rounded'}


class ClusterNode(ContainerNode):
    """A box around the inlined contents of an instance."""

    def __init__(self, name, parent=None, label=None):
        super().__init__(name, parent)
        self._label = label

    @property
    def label(self):
        return self._label if self._label is not None else self.name

    def cluster_attributes(self, links=None):
        return {'label': self.label, 'style': 'filled', 'fillcolor': 'lightgrey'}


class MemoryNode(ContainerNode):

    def __init__(self, name, parent=None, depth=0, width=0):
        super().__init__(name, parent)
        self.depth = depth
        self.width = width

    @property
    def label(self):
        return f"{self.name} [{self.depth} x {self.width}]"

    def cluster_attributes(self, links=None):
        return {'label': self.label, 'style': 'filled', 'fillcolor': 'lightgoldenrodyellow'}


class InstanceNode(ContainerNode):
    """
    An instantiation of another module. Expanded instances box the child's
    ports; opaque ones render as a single record with one field per port.
    """

    def __init__(self, name, parent=None, module_name='', opaque=False, port_names=(), rank=DEFAULT_RANK):
        super().__init__(name, parent, rank)
        self.module_name = module_name
        self.opaque = opaque
        self.port_names = list(port_names)

    @property
    def is_container(self) -> bool:
        return not self.opaque

    @property
    def label(self):
        return f"{self.name}: {self.module_name}"

    def add_child(self, node):
        if self.opaque:
            raise ValueError(f"opaque instance {self!r} cannot hold children")
        return super().add_child(node)

    def link_attributes(self, links) -> dict:
        url = (links or {}).get(self.absolute_name)
        if not url:
            return {}
        return {'URL': url, 'target': '_top', 'tooltip': f"Go to module: {self.module_name}"}

    def cluster_attributes(self, links=None):
        attrs = {'label': self.label, 'style': 'filled,bold', 'fillcolor': '#e6f3ff'}
        attrs.update(self.link_attributes(links))
        return attrs

    def render(self, links=None):
        if not self.opaque:
            return super().render(links)
        fields = "|".join(f"<{p}> {escape_record(p)}" for p in self.port_names)
        record = f"{{{escape_record(self.label)}|{{{fields}}}}}" if fields else escape_record(self.label)
        attrs = dict(NODE_STYLES['instance'])
        attrs.update(self.link_attributes(links))
        return (f'{quote(self.absolute_name)} [{format_attrs(attrs)}, '
                f'label={quote_record(record)}, rank={quote(self.rank)}];')


class Edge:
    """A connection between two node identities."""

    def __init__(self, source: str, sink: str, label: Optional[str] = None):
        self.source = source
        self.sink = sink
        self.label = label

    @staticmethod
    def node_of(ref: str) -> str:
        return ref.partition(":")[0]

    def render(self) -> str:
        attrs = f" [label={quote(self.label)}]" if self.label else ""
        return f"{endpoint(self.source)} -> {endpoint(self.sink)}{attrs};"

    def __eq__(self, other):
        return isinstance(other, Edge) and (self.source, self.sink, self.label) == (other.source, other.sink, other.label)

    def __hash__(self):
        return hash((self.source, self.sink, self.label))

    def __repr__(self):
        return f"Edge({self.source!r} -> {self.sink!r})"


class DiagramGraph:
    """Holds the nodes, edges and navigation links of one diagram."""

    def __init__(self, name: str, rank_dir: str = "LR"):
        self.name = name
        self.root = ModuleNode(name, rank_dir)
        self.nodes: Dict[str, DotNode] = {self.root.absolute_name: self.root}
        self.edges: List[Edge] = []
        self.links: Dict[str, str] = {}
        self.pinned = set()
        self.problems: List[str] = []
        self.ranked = False

    def has_node(self, absolute_name: str) -> bool:
        return absolute_name in self.nodes

    def add_node(self, container: ContainerNode, node: DotNode) -> DotNode:
        if node.absolute_name in self.nodes:
            raise ValueError(f"duplicate node {node.absolute_name} in diagram {self.name}")
        container.add_child(node)
        self.nodes[node.absolute_name] = node
        return node

    def add_edge(self, source: str, sink: str, label: Optional[str] = None) -> Edge:
        edge = Edge(source, sink, label)
        self.edges.append(edge)
        return edge

    def add_link(self, instance: InstanceNode, module_name: str):
        self.links[instance.absolute_name] = module_name

    def nodes_of_type(self, cls) -> list:
        return [n for n in self.nodes.values() if isinstance(n, cls)]

    def rankable_nodes(self) -> list:
        return [n for n in self.nodes.values() if not n.is_container and n is not self.root]

    def report(self, message: str):
        self.problems.append(message)
        print(f"Warning: [{self.name}] {message}")
