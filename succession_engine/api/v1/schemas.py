"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from succession_engine.domain.models import (
    ApplicableLaw,
    CourtOrderImpact,
    DependencyLevel,
    Gender,
    InflationMode,
    Role,
)
from succession_engine.domain.scenario import ScenarioType


class EstateSchema(BaseModel):
    """Estate valuation; amounts in major units (e.g. KES, not cents)"""

    estate_id: str = Field(..., min_length=1)
    deceased_id: str = Field(..., min_length=1)
    deceased_full_name: str = Field(..., min_length=1)
    date_of_death: date
    gross_value: Decimal = Field(..., ge=0)
    net_value: Decimal = Field(..., ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="Defaults to the service currency")
    is_testate: bool = False
    will_id: Optional[str] = None


class CustomaryProfileSchema(BaseModel):
    tribe: str = Field(..., min_length=1)
    clan: Optional[str] = None
    eldest_son_extra_share_percent: Optional[Decimal] = Field(
        None, ge=0, le=100, description="Enables the eldest-son carve-out when set"
    )
    patrilineal_only: bool = False


class CourtOrderSchema(BaseModel):
    order_number: str = Field(..., min_length=1)
    order_date: date
    description: str = ""
    impact: CourtOrderImpact


class LegalSchema(BaseModel):
    applicable_law: ApplicableLaw = ApplicableLaw.LSA_2009
    customary_profile: Optional[CustomaryProfileSchema] = None
    court_orders: List[CourtOrderSchema] = []
    pending_litigation: bool = False
    litigation_details: Optional[str] = None


class FamilyMemberSchema(BaseModel):
    member_id: str = Field(..., min_length=1)
    role: Role
    gender: Gender
    full_name: str = ""
    is_minor: bool = False
    house_id: Optional[str] = None
    is_deceased: bool = False
    date_of_birth: Optional[date] = None


class HouseSchema(BaseModel):
    house_id: str = Field(..., min_length=1)
    house_name: str
    house_order: int = Field(..., ge=1)
    is_recognized: bool = True


class DependantSchema(BaseModel):
    dependant_id: str = Field(..., min_length=1)
    full_name: str
    relationship: str
    dependency_level: DependencyLevel
    monthly_support: Optional[Decimal] = Field(None, ge=0)
    entitlement: Optional[Decimal] = Field(None, ge=0, description="Pre-computed entitlement, if known")
    is_minor: bool = False


class FamilySchema(BaseModel):
    members: List[FamilyMemberSchema] = []
    is_polygamous: bool = False
    houses: List[HouseSchema] = []
    dependants: List[DependantSchema] = []


class GiftSchema(BaseModel):
    gift_id: str = Field(..., min_length=1)
    recipient_id: str = Field(..., min_length=1)
    value: Decimal = Field(..., gt=0)
    gift_date: date
    is_subject_to_hotchpot: bool = True
    recipient_name: str = ""
    exemption_reason: Optional[str] = None


class HotchpotSchema(BaseModel):
    gifts: List[GiftSchema] = []
    inflation_rate: Decimal = Field(Decimal(0), ge=0, le=100, description="Percent, e.g. 5 for 5%")
    inflation_mode: Optional[InflationMode] = None


class ScenarioRequest(BaseModel):
    name: str = Field(..., min_length=3)
    scenario_type: ScenarioType = ScenarioType.INTESTATE_AUTO
    description: Optional[str] = None
    include_hotchpot: bool = False
    hotchpot_gift_ids: List[str] = []
    hotchpot_inflation_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    include_dependant_provision: bool = True
    debt_adjustment_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    valuation_date: Optional[date] = None
    set_as_default: bool = False


class RequesterSchema(BaseModel):
    user_id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)


class CalculationRequest(BaseModel):
    """Request body for POST /v1/calculations"""

    requested_by: RequesterSchema
    estate: EstateSchema
    legal: LegalSchema = LegalSchema()
    family: FamilySchema
    hotchpot: HotchpotSchema = HotchpotSchema()
    scenarios: List[ScenarioRequest] = Field(..., min_length=1)


class WarningSchema(BaseModel):
    code: str
    message: str
    severity: str


class CalculationResponse(BaseModel):
    """Response for POST /v1/calculations"""

    calculation_id: str
    status: str
    version: int
    recommended_scenario_id: Optional[str] = None
    warnings: List[WarningSchema]
    analysis: Dict[str, Any]
    calculation: Dict[str, Any]


class HistoryItem(BaseModel):
    """Single entry in a calculation's history"""

    timestamp: str
    action: str
    details: str
    scenario_id: Optional[str] = None
    performed_by: Optional[str] = None


class HistoryResponse(BaseModel):
    """Response for GET /v1/calculations/{calculation_id}/history"""

    calculation_id: str
    history: List[HistoryItem]


class CalculationSummaryItem(BaseModel):
    calculation_id: str
    status: str
    version: int
    recommended_scenario_id: Optional[str] = None
    updated_at: str


class EstateCalculationsResponse(BaseModel):
    """Response for GET /v1/estates/{estate_id}/calculations"""

    estate_id: str
    calculations: List[CalculationSummaryItem]
