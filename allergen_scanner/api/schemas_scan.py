from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from allergen_scanner.analyzers.allergen_catalog import AllergenGroup
from allergen_scanner.analyzers.analysis_base import (
    Allergen,
    AllergenCategory,
    AnalysisResult,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------
# Allergens
# ---------

class AllergenIn(_CamelModel):
    id: str
    name: str = Field(..., min_length=1)
    category: Literal["common", "dietary", "religious", "custom"]
    selected: bool

    def to_domain(self) -> Allergen:
        return Allergen(
            id=self.id,
            name=self.name,
            category=AllergenCategory(self.category),
            selected=self.selected,
        )


class AllergenOut(_CamelModel):
    id: str
    name: str
    category: Literal["common", "dietary", "religious", "custom"]
    selected: bool


class AllergenGroupOut(_CamelModel):
    category: Literal["common", "dietary", "religious", "custom"]
    title: str
    allergens: List[AllergenOut] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, group: AllergenGroup) -> "AllergenGroupOut":
        return cls(
            category=group.category.value,
            title=group.title,
            allergens=[
                AllergenOut(id=a.id, name=a.name, category=a.category.value, selected=a.selected)
                for a in group.allergens
            ],
        )


# ---------
# Scan request / response
# ---------

class ScanAnalysisRequest(_CamelModel):
    # Image presence and encoding are checked by the pipeline (400, not 422).
    base64_image: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("base64Image", "image", "base64_image"),
    )
    allergens: List[AllergenIn] = Field(default_factory=list)


class DetectedAllergenOut(_CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    found: str
    severity: Literal["unsafe", "caution"]


class ScanAnalysisResponse(_CamelModel):
    model_config = ConfigDict(extra="forbid")

    product_name: str
    is_safe: Optional[bool]  # None == unclear photo, retake requested
    detected_allergens: List[DetectedAllergenOut] = Field(default_factory=list)
    ingredients: str
    recommendation: str
    alternative_suggestion: str = ""

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "ScanAnalysisResponse":
        return cls.model_validate(result.to_dict())


# ---------
# History record shape (the client owns storage)
# ---------

class ScanRecordRequest(ScanAnalysisResponse):
    image_url: str = ""  # thumbnail/data URL chosen by the client; full image is never stored


class ScanRecord(ScanRecordRequest):
    id: str
    timestamp: int  # epoch milliseconds


# ---------
# Errors
# ---------

class ErrorBody(BaseModel):
    code: str
    message: str
    request_id: Optional[str] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody
