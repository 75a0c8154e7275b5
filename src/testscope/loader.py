"""Reading raw reports and writing view models."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from testscope.core.exceptions import InvalidReportError, ReportNotFoundError
from testscope.logging import get_logger

if TYPE_CHECKING:
    from testscope.core.view_model import ViewModel

logger = get_logger(__name__)


def load_report(report_path: Path) -> Any:
    """
    Load a raw JSON test report.

    Args:
        report_path: Path to the JSON report file.

    Returns:
        The decoded JSON document. Its shape is not checked here.

    Raises:
        ReportNotFoundError: If the report file doesn't exist.
        InvalidReportError: If the file is not valid JSON.
    """
    if not report_path.is_file():
        raise ReportNotFoundError(report_path)

    try:
        data = json.loads(report_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidReportError(report_path, str(e)) from e

    logger.info("report_loaded", path=str(report_path))
    return data


def write_view_model(view: ViewModel, output_path: Path, indent: int = 2) -> Path:
    """Serialize a view model to JSON, creating parent directories as needed."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(view.to_dict(), indent=indent, ensure_ascii=False), encoding="utf-8")
    logger.info("view_model_written", path=str(output_path))
    return output_path
