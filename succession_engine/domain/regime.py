"""Selection of the distribution regime that governs an intestate estate"""

from enum import Enum
from typing import Optional

from succession_engine.domain.models import CustomaryLawProfile, FamilyStructure


class Regime(str, Enum):
    CUSTOMARY = "CUSTOMARY"
    S40_POLYGAMOUS = "S.40"
    S35_MONOGAMOUS_WITH_ISSUE = "S.35"
    S36_SPOUSE_ONLY = "S.36"
    S38_ISSUE_ONLY = "S.38"
    S39_RESIDUAL_KIN = "S.39"

    @property
    def citation(self) -> str:
        if self is Regime.CUSTOMARY:
            return "Customary Law"
        return f"LSA Section {self.value[2:]}"


def select_regime(
    family: FamilyStructure,
    customary_profile: Optional[CustomaryLawProfile] = None,
    is_testate: bool = False,
) -> Regime:
    """
    Map family structure and customary-law context to a distribution regime.

    Decision order (first match wins):
    1. Customary profile attached      -> CUSTOMARY
    2. Polygamous flag or >1 spouse    -> S.40
    3. One spouse + at least one child -> S.35
    4. One spouse, no children         -> S.36
    5. No spouse, at least one child   -> S.38
    6. Otherwise                       -> S.39 (parents, siblings, ... the State)

    Only counts are inspected, so the result does not depend on list ordering.
    `is_testate` does not change the regime: any residue a will fails to dispose
    of passes under the same intestacy rules (S.34).
    """
    if customary_profile is not None:
        return Regime.CUSTOMARY

    spouse_count = len(family.surviving_spouses)
    child_count = len(family.surviving_children)

    if family.is_polygamous or spouse_count > 1:
        return Regime.S40_POLYGAMOUS
    if spouse_count == 1 and child_count > 0:
        return Regime.S35_MONOGAMOUS_WITH_ISSUE
    if spouse_count == 1:
        return Regime.S36_SPOUSE_ONLY
    if child_count > 0:
        return Regime.S38_ISSUE_ONLY
    return Regime.S39_RESIDUAL_KIN
