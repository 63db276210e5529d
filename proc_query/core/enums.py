"""Enumerations shared across the execution layer."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    ORACLE = "oracle"


class CommandType(Enum):
    """How the command text is interpreted."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"


class ParameterDirection(Enum):
    """Direction of a command parameter."""

    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


class ResultMode(Enum):
    """Shape of the result returned by the executor."""

    NON_QUERY = "non_query"
    DATASET = "dataset"
    READER = "reader"
    SCALAR = "scalar"
    XML_READER = "xml_reader"
