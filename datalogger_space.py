"""Storage footprint estimation for data loggers backed by an embedded SQLite store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from information_model import (
    DataLogger,
    DataType,
    InformationModel,
    ModelError,
    SQLiteStore,
    Variable,
    load_model,
)
from logger import LogCategory, get_logger
from outcome import Outcome


class DataLoggerConfigError(Exception):
    """Raised when a data logger cannot be estimated or loaded."""


# SQLite stores every numeric value in at most 8 bytes
FIXED_WIDTH_BYTES = 8
TIMESTAMP_BYTES = 27
ID_COLUMN_BYTES = 8

FIXED_WIDTH_TYPES = frozenset({
    DataType.BOOLEAN,
    DataType.SBYTE,
    DataType.BYTE,
    DataType.INT16,
    DataType.UINT16,
    DataType.INT32,
    DataType.UINT32,
    DataType.INT64,
    DataType.UINT64,
    DataType.FLOAT,
    DataType.DOUBLE,
})
TIMESTAMP_TYPES = frozenset({DataType.DATETIME, DataType.UTC_TIME})

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 60 * MS_PER_MINUTE


@dataclass
class SpaceEstimate:
    """Estimated storage use of one data logger."""

    logger_name: str
    bytes_per_record: int
    sampling_period_ms: int
    bytes_per_minute: int
    bytes_per_hour: int
    skipped_variables: List[str] = field(default_factory=list)

    @property
    def records_per_minute(self) -> float:
        return MS_PER_MINUTE / self.sampling_period_ms

    @property
    def kilobytes_per_hour(self) -> int:
        return self.bytes_per_hour // 1024


def type_size(data_type: Optional[DataType]) -> Optional[int]:
    """Bytes one value of ``data_type`` occupies, ``None`` if unsupported."""
    if data_type in FIXED_WIDTH_TYPES:
        return FIXED_WIDTH_BYTES
    if data_type in TIMESTAMP_TYPES:
        return TIMESTAMP_BYTES
    return None


def resolve_logged_type(variable: Variable, model: InformationModel) -> Optional[DataType]:
    """Data type of a logged variable, following its dynamic link if needed."""
    logger = get_logger()
    if variable.data_type is not DataType.BASE_DATA_TYPE:
        return variable.data_type

    if not variable.dynamic_link:
        logger.warning(
            f"Cannot find any dynamic link for '{variable.browse_name}', "
            "cannot retrieve original data type",
            category=LogCategory.DATALOGGER,
            variable=variable.browse_name,
        )
        return None

    target = model.resolve_path(variable.dynamic_link)
    if not isinstance(target, Variable):
        logger.warning(
            f"Cannot resolve source variable for '{variable.browse_name}'",
            category=LogCategory.DATALOGGER,
            variable=variable.browse_name,
            link=variable.dynamic_link,
        )
        return None

    logger.debug(
        f"Resolved path '{variable.dynamic_link}' to '{target.browse_name}' ({target.node_id})",
        category=LogCategory.DATALOGGER,
    )
    return target.data_type


def record_size(
    variables: Iterable[Variable],
    model: InformationModel,
    *,
    log_local_time: bool,
) -> Tuple[int, List[str]]:
    """Return bytes per logged record and the variables that were skipped."""
    logger = get_logger()
    size = 0
    skipped: List[str] = []

    for variable in variables:
        data_type = resolve_logged_type(variable, model)
        variable_size = type_size(data_type)
        if variable_size is None:
            logger.warning(
                f"Cannot calculate space for '{variable.browse_name}', unsupported data type",
                category=LogCategory.DATALOGGER,
                variable=variable.browse_name,
                data_type=data_type.value if data_type else None,
            )
            skipped.append(variable.browse_name)
            continue
        size += variable_size

    # Timestamp column, plus LocalTimestamp when enabled
    size += TIMESTAMP_BYTES
    if log_local_time:
        size += TIMESTAMP_BYTES
    size += ID_COLUMN_BYTES
    return size, skipped


def _estimate(model: InformationModel, logger_node_id: Optional[str]) -> SpaceEstimate:
    if not logger_node_id:
        raise DataLoggerConfigError("No data logger node id was given")

    data_logger = model.get(logger_node_id, DataLogger)
    if data_logger is None:
        raise DataLoggerConfigError(
            f"Data logger '{logger_node_id}' does not exist in the current project"
        )

    if model.get(data_logger.store, SQLiteStore) is None:
        raise DataLoggerConfigError(
            f"The store of data logger '{data_logger.browse_name}' is not an embedded SQLite store"
        )

    period = data_logger.sampling_period_ms
    if period <= 0:
        raise DataLoggerConfigError(
            f"Data logger '{data_logger.browse_name}' has a non-positive sampling period ({period} ms)"
        )

    get_logger().debug(
        f"Found '{len(data_logger.variables_to_log)}' variables to log",
        category=LogCategory.DATALOGGER,
    )
    size, skipped = record_size(
        data_logger.variables_to_log, model, log_local_time=data_logger.log_local_time
    )
    return SpaceEstimate(
        logger_name=data_logger.browse_name,
        bytes_per_record=size,
        sampling_period_ms=period,
        bytes_per_minute=size * MS_PER_MINUTE // period,
        bytes_per_hour=size * MS_PER_HOUR // period,
        skipped_variables=skipped,
    )


def estimate_logger_space(model: InformationModel, logger_node_id: Optional[str]) -> Outcome[SpaceEstimate]:
    """Estimate how much storage a data logger consumes over time."""
    logger = get_logger()
    try:
        estimate = _estimate(model, logger_node_id)
    except DataLoggerConfigError as exc:
        logger.error(f"Cannot estimate data logger space: {exc}", category=LogCategory.DATALOGGER)
        return Outcome.failure(str(exc))

    logger.info(
        f"Logger '{estimate.logger_name}' consumes {estimate.bytes_per_record} bytes "
        f"every {estimate.sampling_period_ms} ms",
        category=LogCategory.DATALOGGER,
        bytes_per_record=estimate.bytes_per_record,
    )
    logger.info(
        f"Logger '{estimate.logger_name}' will consume {estimate.bytes_per_minute} bytes "
        f"({estimate.bytes_per_minute // 1024} KB) per minute",
        category=LogCategory.DATALOGGER,
        bytes_per_minute=estimate.bytes_per_minute,
    )
    logger.info(
        f"Logger '{estimate.logger_name}' will consume {estimate.bytes_per_hour} bytes "
        f"({estimate.kilobytes_per_hour} KB) per hour",
        category=LogCategory.DATALOGGER,
        bytes_per_hour=estimate.bytes_per_hour,
    )
    return Outcome.success(estimate)


def load_logger_document(file_path: Path) -> Tuple[InformationModel, str]:
    """Read a JSON logger description and build its model."""
    file_path = Path(file_path)
    try:
        with file_path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except json.JSONDecodeError as exc:
        raise DataLoggerConfigError(
            f"Logger document '{file_path}' contains invalid JSON"
        ) from exc
    except OSError as exc:
        raise DataLoggerConfigError(
            f"Unable to read logger document '{file_path}': {exc}"
        ) from exc

    try:
        return load_model(document)
    except ModelError as exc:
        raise DataLoggerConfigError(f"Invalid logger document '{file_path}': {exc}") from exc
