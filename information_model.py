"""In-process object model for panel variables, stores and data loggers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union


class ModelError(Exception):
    """Raised when a model document cannot be turned into nodes."""


class DataType(Enum):
    """OPC UA built-in data types used by logged variables."""

    BOOLEAN = "Boolean"
    SBYTE = "SByte"
    BYTE = "Byte"
    INT16 = "Int16"
    UINT16 = "UInt16"
    INT32 = "Int32"
    UINT32 = "UInt32"
    INT64 = "Int64"
    UINT64 = "UInt64"
    FLOAT = "Float"
    DOUBLE = "Double"
    STRING = "String"
    DATETIME = "DateTime"
    UTC_TIME = "UtcTime"
    BASE_DATA_TYPE = "BaseDataType"

    @classmethod
    def parse(cls, name: str) -> "DataType":
        for member in cls:
            if member.value.lower() == str(name).strip().lower():
                return member
        raise ModelError(f"Unknown data type '{name}'")


def _new_node_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Variable:
    browse_name: str
    data_type: DataType
    value: Any = None
    # browse path of the variable this one is linked to
    dynamic_link: Optional[str] = None
    node_id: str = field(default_factory=_new_node_id)


@dataclass
class SQLiteStore:
    browse_name: str
    filename: str = ""
    in_memory: bool = False
    node_id: str = field(default_factory=_new_node_id)


@dataclass
class DataLogger:
    browse_name: str
    store: Optional[str] = None
    variables_to_log: List[Variable] = field(default_factory=list)
    sampling_period_ms: int = 1000
    log_local_time: bool = False
    node_id: str = field(default_factory=_new_node_id)


Node = Union[Variable, SQLiteStore, DataLogger]
N = TypeVar("N", Variable, SQLiteStore, DataLogger)


def _normalize_path(path: str) -> str:
    return "/".join(part for part in str(path).strip().split("/") if part)


class InformationModel:
    """Registry of nodes addressable by node id and by browse path."""

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._paths: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def add(self, node: N, path: Optional[str] = None) -> N:
        """Register ``node``, optionally under a browse path."""
        if node.node_id in self._nodes:
            raise ModelError(f"Node id '{node.node_id}' is already registered")
        self._nodes[node.node_id] = node
        if path:
            self._paths[_normalize_path(path)] = node.node_id
        return node

    def get(self, node_id: Optional[str], expected: Optional[Type[N]] = None) -> Optional[Node]:
        """Return the node, or ``None`` if missing or of another type."""
        if not node_id:
            return None
        node = self._nodes.get(node_id)
        if expected is not None and not isinstance(node, expected):
            return None
        return node

    def resolve_path(self, path: Optional[str]) -> Optional[Node]:
        if not path:
            return None
        node_id = self._paths.get(_normalize_path(path))
        return self._nodes.get(node_id) if node_id else None


def load_model(document: Mapping[str, Any]) -> tuple[InformationModel, str]:
    """Build a model from a logger document and return it with the logger id.

    The document looks like::

        {
          "nodes": [{"path": "Plant/Tank1/Level", "type": "Float"}],
          "logger": {
            "name": "TankLogger",
            "sampling_period_ms": 1000,
            "log_local_time": true,
            "store": {"name": "LocalDb", "filename": "tanks", "in_memory": false},
            "variables": [
              {"name": "Level", "type": "BaseDataType", "link": "Plant/Tank1/Level"}
            ]
          }
        }
    """
    if not isinstance(document, Mapping):
        raise ModelError("Logger document must be a JSON object")

    model = InformationModel()

    for raw_node in document.get("nodes", []):
        try:
            path = raw_node["path"]
            data_type = DataType.parse(raw_node["type"])
        except (KeyError, TypeError) as exc:
            raise ModelError(f"Invalid node entry {raw_node!r}") from exc
        variable = Variable(browse_name=_normalize_path(path).split("/")[-1], data_type=data_type,
                            value=raw_node.get("value"))
        model.add(variable, path=path)

    raw_logger = document.get("logger")
    if not isinstance(raw_logger, Mapping):
        raise ModelError("Logger document has no 'logger' section")

    store_id = None
    raw_store = raw_logger.get("store")
    if isinstance(raw_store, Mapping):
        store = model.add(SQLiteStore(
            browse_name=str(raw_store.get("name", "EmbeddedDatabase")),
            filename=str(raw_store.get("filename") or ""),
            in_memory=bool(raw_store.get("in_memory", False)),
            node_id=str(raw_store.get("node_id") or _new_node_id()),
        ))
        store_id = store.node_id

    variables = []
    for raw_variable in raw_logger.get("variables", []):
        try:
            variables.append(Variable(
                browse_name=str(raw_variable["name"]),
                data_type=DataType.parse(raw_variable["type"]),
                dynamic_link=raw_variable.get("link"),
            ))
        except (KeyError, TypeError) as exc:
            raise ModelError(f"Invalid logged variable {raw_variable!r}") from exc

    try:
        sampling_period_ms = int(raw_logger.get("sampling_period_ms", 1000))
    except (TypeError, ValueError) as exc:
        raise ModelError("sampling_period_ms must be an integer") from exc

    logger_node = model.add(DataLogger(
        browse_name=str(raw_logger.get("name", "DataLogger")),
        store=store_id,
        variables_to_log=variables,
        sampling_period_ms=sampling_period_ms,
        log_local_time=bool(raw_logger.get("log_local_time", False)),
    ))
    return model, logger_node.node_id
