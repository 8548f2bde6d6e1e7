"""Pydantic models for calculator request messages."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class VariableData(BaseModel):
    """One variable and its observations in a batched request."""

    model_config = ConfigDict(extra="ignore")

    variable: Dict[str, Any] = Field(..., description="Variable definition wire object")
    data: List[Any] = Field(default_factory=list, description="Raw observations")

    @field_validator("variable")
    @classmethod
    def _has_name(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if not value.get("name"):
            raise ValueError("variable definition requires 'name'")
        return value


class AnalysisRequest(BaseModel):
    """Request for a single-variable calculator (descriptives, frequencies, examine).

    Either ``variable`` + ``data`` or ``variableData`` (batched mode) must be given.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    variable: Optional[Dict[str, Any]] = Field(default=None, description="Variable definition")
    data: Optional[List[Any]] = Field(default=None, description="Raw observations")
    weights: Optional[List[Any]] = Field(default=None, description="Case weights")
    options: Dict[str, Any] = Field(default_factory=dict, description="Calculator options")
    variable_data: Optional[List[VariableData]] = Field(
        default=None, alias="variableData", description="Batched variables"
    )
    case_numbers: Optional[List[int]] = Field(
        default=None, alias="caseNumbers", description="Case numbers aligned to data"
    )

    @field_validator("options", mode="before")
    @classmethod
    def _options_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _check_payload(self) -> "AnalysisRequest":
        if self.variable_data:
            return self
        if self.variable is None:
            raise ValueError("request requires 'variable' or 'variableData'")
        if not self.variable.get("name"):
            raise ValueError("variable definition requires 'name'")
        if self.data is None:
            raise ValueError("request requires 'data'")
        return self

    @property
    def is_batched(self) -> bool:
        return bool(self.variable_data)

    def items(self) -> List[VariableData]:
        """The (variable, data) pairs of the request, batched or single."""
        if self.is_batched:
            return list(self.variable_data)
        return [VariableData(variable=self.variable, data=self.data)]


class CrosstabsVariables(BaseModel):
    """Row and column variable definitions."""

    row: Dict[str, Any]
    col: Dict[str, Any]

    @field_validator("row", "col")
    @classmethod
    def _has_name(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if not value.get("name"):
            raise ValueError("variable definition requires 'name'")
        return value


class CrosstabsRequest(BaseModel):
    """Request for the crosstabs calculator."""

    model_config = ConfigDict(extra="ignore")

    variable: CrosstabsVariables
    data: List[Dict[str, Any]] = Field(..., description="Case records keyed by variable name")
    weights: Optional[List[Any]] = None
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    @classmethod
    def _options_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _check_weights(self) -> "CrosstabsRequest":
        if self.weights is not None and len(self.weights) != len(self.data):
            raise ValueError(
                f"weights length ({len(self.weights)}) does not match data length ({len(self.data)})"
            )
        return self
