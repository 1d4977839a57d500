# File: circuit_ir.py

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

READER_FIELDS = ("addr", "en", "clk", "data")
WRITER_FIELDS = ("addr", "en", "clk", "data", "mask")


class CircuitParseError(ValueError):
    """Raised when a circuit document cannot be read into the IR."""


class UnknownModuleError(ValueError):
    """Raised when the requested entry module is not part of the circuit."""


@dataclass
class Port:
    name: str
    direction: str  # 'input' or 'output'


@dataclass
class Wire:
    name: str


@dataclass
class Register:
    name: str


@dataclass
class OpNode:
    name: str
    op: str
    args: List[str] = field(default_factory=list)


@dataclass
class MemoryPort:
    name: str
    kind: str  # 'reader' or 'writer'

    @property
    def fields(self):
        return READER_FIELDS if self.kind == "reader" else WRITER_FIELDS


@dataclass
class Memory:
    name: str
    depth: int = 0
    width: int = 0
    ports: List[MemoryPort] = field(default_factory=list)


@dataclass
class Instance:
    name: str
    module: str


@dataclass
class Connect:
    sink: str
    source: str


@dataclass
class Printf:
    name: str
    format: str
    args: List[str] = field(default_factory=list)


@dataclass
class Module:
    name: str
    ports: List[Port] = field(default_factory=list)
    wires: List[Wire] = field(default_factory=list)
    registers: List[Register] = field(default_factory=list)
    nodes: List[OpNode] = field(default_factory=list)
    memories: List[Memory] = field(default_factory=list)
    instances: List[Instance] = field(default_factory=list)
    connects: List[Connect] = field(default_factory=list)
    printfs: List[Printf] = field(default_factory=list)

    def port(self, name: str) -> Optional[Port]:
        return next((p for p in self.ports if p.name == name), None)


@dataclass
class Circuit:
    main: str
    modules: Dict[str, Module] = field(default_factory=dict)

    def get_module(self, name: str) -> Module:
        if name not in self.modules:
            raise UnknownModuleError(f"module '{name}' not found in circuit '{self.main}'")
        return self.modules[name]


# --- XML loading ---------------------------------------------------------------

def _required(elem: ET.Element, attr: str) -> str:
    value = elem.get(attr)
    if not value:
        raise CircuitParseError(f"<{elem.tag}> is missing required attribute '{attr}'")
    return value


def _split_args(elem: ET.Element) -> List[str]:
    args = elem.get("args", "").split()
    # <arg ref="..."/> children are accepted as well as the args attribute
    args.extend(_required(a, "ref") for a in elem.findall("arg"))
    return args


def _parse_memory(elem: ET.Element) -> Memory:
    name = _required(elem, "name")
    try:
        depth = int(elem.get("depth", "0"))
        width = int(elem.get("width", "0"))
    except ValueError as e:
        raise CircuitParseError(
            f"memory '{name}' has non-numeric depth/width '{elem.get('depth')}'/'{elem.get('width')}'") from e
    mem = Memory(name=name, depth=depth, width=width)
    for child in elem:
        if child.tag in ("reader", "writer"):
            mem.ports.append(MemoryPort(_required(child, "name"), child.tag))
    return mem


def _parse_module(elem: ET.Element) -> Module:
    module = Module(_required(elem, "name"))
    unnamed = []
    for item in elem:
        tag = item.tag.lower()
        if tag == "port":
            direction = item.get("dir", "")
            if direction in ("in", "input"):
                direction = "input"
            elif direction in ("out", "output"):
                direction = "output"
            else:
                raise CircuitParseError(
                    f"port '{item.get('name')}' in module '{module.name}' has bad direction '{direction}'")
            module.ports.append(Port(_required(item, "name"), direction))
        elif tag == "wire":
            module.wires.append(Wire(_required(item, "name")))
        elif tag in ("reg", "register"):
            module.registers.append(Register(_required(item, "name")))
        elif tag == "node":
            module.nodes.append(OpNode(_required(item, "name"), _required(item, "op"), _split_args(item)))
        elif tag in ("mem", "memory"):
            module.memories.append(_parse_memory(item))
        elif tag in ("inst", "instance"):
            module.instances.append(Instance(_required(item, "name"), _required(item, "module")))
        elif tag == "connect":
            module.connects.append(Connect(_required(item, "sink"), _required(item, "source")))
        elif tag == "printf":
            printf = Printf(item.get("name", ""), item.get("format", ""), _split_args(item))
            if not printf.name:
                unnamed.append((len(module.printfs), printf))
            module.printfs.append(printf)
    _name_printfs(module, unnamed)
    return module


def _name_printfs(module: Module, unnamed):
    """Gives each unnamed printf `printf_<position>`, suffixed until no declared name clashes."""
    taken = {p.name for p in module.printfs if p.name}
    for group in (module.ports, module.wires, module.registers, module.nodes, module.memories, module.instances):
        taken.update(item.name for item in group)
    for position, printf in unnamed:
        base = name = f"printf_{position}"
        suffix = 0
        while name in taken:
            suffix += 1
            name = f"{base}_{suffix}"
        printf.name = name
        taken.add(name)


def parse_circuit(text: str) -> Circuit:
    """Parses a lowered circuit XML document into a Circuit."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise CircuitParseError(f"cannot parse circuit: {e}") from e

    if root.tag != "circuit":
        raise CircuitParseError(f"expected <circuit> root element, found <{root.tag}>")

    modules = {}
    for elem in root.findall("module"):
        module = _parse_module(elem)
        if module.name in modules:
            raise CircuitParseError(f"module '{module.name}' is defined twice")
        modules[module.name] = module

    if not modules:
        raise CircuitParseError("circuit contains no modules")

    main = root.get("main") or next(iter(modules))
    if main not in modules:
        raise CircuitParseError(f"main module '{main}' is not defined")
    return Circuit(main, modules)


def load_circuit(path: str) -> Circuit:
    try:
        with open(path, "r") as f:
            text = f.read()
    except OSError as e:
        raise CircuitParseError(f"cannot open circuit file '{path}': {e}") from e
    return parse_circuit(text)
