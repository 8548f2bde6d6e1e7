"""Public request/response API for the calculators.

Every entry point takes a wire request (a dict or the matching pydantic
model) and returns ``{"success": True, "results": ...}`` or
``{"success": False, "error": "..."}``. Nothing is raised to the caller.

Example:
    >>> from statcalc.stats import run_descriptives
    >>> response = run_descriptives({
    ...     "variable": {"name": "age", "measure": "scale"},
    ...     "data": [21, 35, 42, None],
    ... })
    >>> response["results"]["stats"]["mean"]
    32.666...
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Type, Union

from pydantic import BaseModel, ValidationError

from statcalc.stats.config import CrosstabsOptions, DescriptiveOptions, ExamineOptions, FrequencyOptions
from statcalc.stats.crosstabs import CrosstabsCalculator
from statcalc.stats.descriptive import DescriptiveCalculator
from statcalc.stats.examine import ExamineCalculator
from statcalc.stats.frequency import FrequencyCalculator
from statcalc.stats.messages import AnalysisRequest, CrosstabsRequest

logger = logging.getLogger(__name__)

Request = Union[Dict[str, Any], BaseModel]


def _respond(
    analysis: str,
    request: Request,
    model: Type[BaseModel],
    handler: Callable[[Any], Any],
) -> Dict[str, Any]:
    """Validate, compute and wrap the result in the response envelope."""
    if request is None:
        return {"success": False, "error": f"{analysis}: request is required"}
    try:
        parsed = request if isinstance(request, model) else model.model_validate(request)
        results = handler(parsed)
    except (ValidationError, ValueError, TypeError) as e:
        logger.warning(f"{analysis} request rejected: {e}")
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception(f"{analysis} failed")
        return {"success": False, "error": str(e)}
    return {"success": True, "results": results}


def _descriptives(req: AnalysisRequest) -> Any:
    options = DescriptiveOptions.from_wire(req.options)
    statistics = [
        DescriptiveCalculator(item.variable, item.data, req.weights, options).statistics().to_dict()
        for item in req.items()
    ]
    if req.is_batched:
        return {"statistics": statistics}
    return statistics[0]


def _frequencies(req: AnalysisRequest) -> Any:
    options = FrequencyOptions.from_wire(req.options)
    results = [
        FrequencyCalculator(
            item.variable, item.data, req.weights, options, case_numbers=req.case_numbers
        )
        .statistics()
        .to_dict()
        for item in req.items()
    ]
    if not req.is_batched:
        return results[0]

    statistics: List[Dict[str, Any]] = []
    tables: List[Dict[str, Any]] = []
    for result in results:
        table = result.pop("frequency_table", None)
        statistics.append(result)
        if table is not None:
            tables.append({"variable": result["variable"], "rows": table, "summary": result["summary"]})
    return {"statistics": statistics, "frequencyTables": tables}


def _examine(req: AnalysisRequest) -> Any:
    options = ExamineOptions.from_wire(req.options)
    statistics = [
        ExamineCalculator(
            item.variable, item.data, req.weights, options, case_numbers=req.case_numbers
        )
        .compute()
        .to_dict()
        for item in req.items()
    ]
    if req.is_batched:
        return {"statistics": statistics}
    return statistics[0]


def _crosstabs(req: CrosstabsRequest) -> Any:
    options = CrosstabsOptions.from_wire(req.options)
    calc = CrosstabsCalculator(req.variable.row, req.variable.col, req.data, req.weights, options)
    return calc.compute().to_dict()


def run_descriptives(request: Request) -> Dict[str, Any]:
    """Descriptive statistics for one variable or a batch."""
    return _respond("descriptives", request, AnalysisRequest, _descriptives)


def run_frequencies(request: Request) -> Dict[str, Any]:
    """Frequency tables and statistics for one variable or a batch."""
    return _respond("frequencies", request, AnalysisRequest, _frequencies)


def run_examine(request: Request) -> Dict[str, Any]:
    """Exploratory statistics for one variable or a batch."""
    return _respond("examine", request, AnalysisRequest, _examine)


def run_crosstabs(request: Request) -> Dict[str, Any]:
    """Contingency table of ``variable.row`` by ``variable.col``."""
    return _respond("crosstabs", request, CrosstabsRequest, _crosstabs)


ANALYSES: Dict[str, Callable[[Request], Dict[str, Any]]] = {
    "descriptives": run_descriptives,
    "frequencies": run_frequencies,
    "crosstabs": run_crosstabs,
    "examine": run_examine,
}

_ALIASES = {"descriptive": "descriptives", "frequency": "frequencies", "explore": "examine"}


def handle_request(analysis: str, request: Request) -> Dict[str, Any]:
    """Dispatch a request to a calculator by analysis name.

    Args:
        analysis: ``descriptives``, ``frequencies``, ``crosstabs`` or ``examine``
        request: Wire request

    Returns:
        Response envelope
    """
    key = str(analysis or "").strip().lower()
    key = _ALIASES.get(key, key)
    if key not in ANALYSES:
        logger.warning(f"Unknown analysis requested: {analysis!r}")
        return {
            "success": False,
            "error": f"Unknown analysis: {analysis!r}. Expected one of {sorted(ANALYSES)}",
        }
    return ANALYSES[key](request)
