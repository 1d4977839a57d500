# File: __init__.py

from hierviz.circuit_ir import Circuit, CircuitParseError, UnknownModuleError, load_circuit, parse_circuit
from hierviz.config import DiagramConfig
from hierviz.graph_builder import GraphBuilder
from hierviz.main import run

__version__ = "0.1.0"
