from typing import List

from fastapi import APIRouter

from allergen_scanner.analyzers.allergen_catalog import default_allergen_groups
from allergen_scanner.api.schemas_scan import AllergenGroupOut

router = APIRouter(prefix="/api/allergens", tags=["allergens"])


@router.get("/defaults", response_model=List[AllergenGroupOut])
def default_allergens():
    """Onboarding catalog: every category in prompt order, nothing selected."""
    return [AllergenGroupOut.from_domain(g) for g in default_allergen_groups()]
