from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_SEVERITIES = ("unsafe", "caution")


class VLMFinding(BaseModel):
    """
    One detected allergen. Lenient per field: an unknown severity reads as
    "unsafe", a blank name or found text borrows the other one.
    """
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    found: str = ""
    severity: Literal["unsafe", "caution"] = "unsafe"

    @field_validator("name", "found", mode="before")
    @classmethod
    def _null_text_is_blank(cls, v):
        return "" if v is None else v

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, v):
        v = v.strip().lower() if isinstance(v, str) else v
        return v if v in _SEVERITIES else "unsafe"

    @model_validator(mode="after")
    def _fill_blank_text(self) -> "VLMFinding":
        if not self.name.strip():
            self.name = self.found
        if not self.found.strip():
            self.found = self.name
        return self


class VLMStructuredOutput(BaseModel):
    """
    Reply shape requested from the vision model. Every field is optional:
    missing fields get fallbacks during parsing, only the shape is enforced here.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_name: Optional[str] = Field(default=None, alias="productName")
    is_safe: Optional[bool] = Field(default=None, alias="isSafe")
    detected_allergens: Optional[List[VLMFinding]] = Field(default=None, alias="detectedAllergens")
    ingredients: Optional[str] = None
    recommendation: Optional[str] = None
    alternative_suggestion: Optional[str] = Field(default=None, alias="alternativeSuggestion")

    @model_validator(mode="before")
    @classmethod
    def _blank_verdict_is_missing(cls, data):
        if isinstance(data, dict) and isinstance(data.get("isSafe"), str) and not data["isSafe"].strip():
            data = {**data, "isSafe": None}
        return data

    @model_validator(mode="after")
    def _drop_empty_findings(self) -> "VLMStructuredOutput":
        # a finding with neither name nor found text carries nothing to show
        if self.detected_allergens:
            self.detected_allergens = [f for f in self.detected_allergens if f.name.strip()]
        return self
