"""Pydantic data models — the shared business objects.

Both the scoring core and the MCP server use these models as the common
interface for validation, scoring, interpretation, and persistence.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field


class BusinessCategory(str, Enum):
    """Closed set of business categories a location can be scored for."""

    RESTAURANT_KOREAN = "restaurant_korean"
    RESTAURANT_WESTERN = "restaurant_western"
    RESTAURANT_JAPANESE = "restaurant_japanese"
    RESTAURANT_CHINESE = "restaurant_chinese"
    RESTAURANT_CHICKEN = "restaurant_chicken"
    RESTAURANT_PIZZA = "restaurant_pizza"
    RESTAURANT_FASTFOOD = "restaurant_fastfood"
    CAFE = "cafe"
    BAKERY = "bakery"
    DESSERT = "dessert"
    BAR = "bar"
    CONVENIENCE = "convenience"
    MART = "mart"
    BEAUTY = "beauty"
    NAIL = "nail"
    LAUNDRY = "laundry"
    PHARMACY = "pharmacy"
    GYM = "gym"
    ACADEMY = "academy"


class PeakTime(str, Enum):
    MORNING = "morning"
    DAY = "day"
    NIGHT = "night"


class WeekendSensitivity(str, Enum):
    WEEKEND_FAVORED = "weekend_favored"
    WEEKDAY_FAVORED = "weekday_favored"
    NEUTRAL = "neutral"


class RiskLevel(str, Enum):
    """Ordinal risk bands over the 0-100 composite score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class AreaType(str, Enum):
    """Coarse commercial character of a district."""

    RESIDENTIAL = "RESIDENTIAL"
    MIXED = "MIXED"
    COMMERCIAL = "COMMERCIAL"
    SPECIAL = "SPECIAL"


class Factor(str, Enum):
    COMPETITION = "competition"
    COST = "cost"
    SURVIVAL = "survival"
    TRAFFIC = "traffic"
    ANCHOR = "anchor"


class Level(str, Enum):
    """Discretized risk level of a single factor."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Tone(str, Enum):
    POSITIVE = "positive"
    CAUTION = "caution"
    WARNING = "warning"
    CRITICAL = "critical"


class Impact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SurvivalTrend(str, Enum):
    GROWING = "growing"
    STABLE = "stable"
    SHRINKING = "shrinking"


class WeekendBias(str, Enum):
    WEEKEND = "weekend"
    BALANCED = "balanced"
    WEEKDAY = "weekday"


class SubwayBand(str, Enum):
    """Walking distance to the nearest station, bucketed."""

    NEAR = "near"
    WALKABLE = "walkable"
    FAR = "far"
    NONE = "none"


# ─── Category profiles ──────────────────────────────────────────────────────


class FactorWeights(BaseModel):
    """Per-category factor weights. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    competition: float
    cost: float
    survival: float
    traffic: float
    anchor: float

    def get(self, factor: Factor) -> float:
        return getattr(self, factor.value)

    def total(self) -> float:
        return self.competition + self.cost + self.survival + self.traffic + self.anchor


class CategoryProfile(BaseModel):
    """Static scoring configuration for one business category."""

    model_config = ConfigDict(frozen=True)

    category: BusinessCategory
    name: str
    group: str
    weights: FactorWeights
    optimal_peak_time: PeakTime
    weekend_sensitivity: WeekendSensitivity
    base_survival_rate: float = Field(description="Typical 1-year survival rate in percent")
    opening_trend: float = Field(25.0, description="Typical annual opening rate in percent")
    competition_tolerance: float = Field(1.0, description="Multiplier on risk-card competition thresholds")


# ─── Raw metrics (request side) ─────────────────────────────────────────────


class NearestCompetitor(BaseModel):
    name: str
    distance: int


class CompetitionMetrics(BaseModel):
    same_category: int
    total: int
    nearest_competitor: Optional[NearestCompetitor] = None


class TimePattern(BaseModel):
    """Share of daily foot traffic per time band, in percent."""

    model_config = ConfigDict(allow_inf_nan=False)

    morning: float
    day: float
    night: float


class TrafficMetrics(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    index: float
    weekend_ratio: float = Field(description="Share of weekly traffic falling on weekends, 0-1")
    time_pattern: TimePattern
    peak_time: Optional[PeakTime] = None


class CostMetrics(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    avg_rent: float
    district_avg: Optional[float] = None


class SurvivalMetrics(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    closure_rate: float
    opening_rate: float
    net_change: int


class SubwayAnchor(BaseModel):
    name: str
    distance: int
    line: Optional[str] = None


class CoffeeChainAnchor(BaseModel):
    count: int
    distance: int


class NamedAnchor(BaseModel):
    name: str
    distance: int


class AnchorMetrics(BaseModel):
    subway: Optional[SubwayAnchor] = None
    starbucks: Optional[CoffeeChainAnchor] = None
    mart: Optional[NamedAnchor] = None
    department: Optional[NamedAnchor] = None
    has_any_anchor: bool


class AnalysisRequest(BaseModel):
    """One location + category snapshot, as supplied by the metrics collaborator."""

    model_config = ConfigDict(frozen=True)

    category: BusinessCategory
    competition: CompetitionMetrics
    traffic: TrafficMetrics
    cost: CostMetrics
    survival: SurvivalMetrics
    anchors: AnchorMetrics
    store_counts: dict[str, int] = Field(default_factory=dict)
    stable_id: Optional[str] = Field(None, description="Stable location id (e.g. grid cell) seeding phrase choice")


# ─── Derived records ────────────────────────────────────────────────────────


class SubRiskScores(BaseModel):
    """Per-factor risk on a 0-100 scale (higher = riskier)."""

    model_config = ConfigDict(frozen=True)

    competition: float = Field(ge=0.0, le=100.0)
    cost: float = Field(ge=0.0, le=100.0)
    survival: float = Field(ge=0.0, le=100.0)
    traffic: float = Field(ge=0.0, le=100.0)
    anchor: float = Field(ge=0.0, le=100.0)

    def get(self, factor: Factor) -> float:
        return getattr(self, factor.value)


class ConditionKey(BaseModel):
    """Discretized view of a request, used only to pick explanatory templates.

    Metric levels are risk levels: ``traffic=high`` means thin foot traffic.
    """

    model_config = ConfigDict(frozen=True)

    competition: Level
    traffic: Level
    cost: Level
    survival: Level
    area_type: AreaType
    category: BusinessCategory
    peak_time: PeakTime = PeakTime.DAY
    peak_fit: bool = False
    weekend_bias: WeekendBias = WeekendBias.BALANCED
    subway: SubwayBand = SubwayBand.NONE
    has_any_anchor: bool = False
    station_adjacent: bool = False
    coffee_cluster: bool = False
    mart_near: bool = False
    department_near: bool = False
    survival_trend: SurvivalTrend = SurvivalTrend.STABLE


class Template(BaseModel):
    """A pool of interchangeable phrases guarded by a predicate."""

    model_config = ConfigDict(frozen=True)

    id: str
    metric: str
    predicate: Callable[[ConditionKey], bool]
    tone: Tone
    phrases: tuple[str, ...]
    factor: Optional[str] = Field(None, description="Short chip label used for top factors")


class Contribution(BaseModel):
    percent: int
    impact: Impact


class EasyExplanations(BaseModel):
    competition: str
    traffic: str
    cost: str
    survival: str
    time_pattern: str
    area_type: str
    anchor: str


class TopFactors(BaseModel):
    risks: list[str] = Field(default_factory=list, max_length=3)
    opportunities: list[str] = Field(default_factory=list, max_length=3)


class InterpretationResult(BaseModel):
    summary: str
    risks: list[str]
    opportunities: list[str]
    easy_explanations: EasyExplanations
    top_factors: TopFactors
    score_contribution: dict[str, Contribution]
    survival_trend: SurvivalTrend


class ClosureRiskFactor(BaseModel):
    factor: str
    impact: Impact
    description: str


class SurvivalOutlook(BaseModel):
    """Estimated survival metrics plus the labels shown alongside them."""

    estimate: SurvivalMetrics
    risk: Level = Field(description="Closure-risk band: low below 30%, high from 50%")
    trend: SurvivalTrend
    trend_label: str
    risk_label: str
    summary: str
    description: str
    factors: list[ClosureRiskFactor] = Field(default_factory=list)


class EvidenceBadge(BaseModel):
    label: str
    type: str = Field(description="metric | data | trend")


class RiskCard(BaseModel):
    """A red-flag card: flag, one-line warning, evidence and an on-site question."""

    id: str
    flag: str
    warning: str
    evidence_badges: list[EvidenceBadge]
    field_question: str
    severity: Tone
    priority: int


class AnalysisResult(BaseModel):
    """Complete output of one analysis, as consumed by the HTTP layer and report renderer."""

    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    area_type: AreaType
    category: BusinessCategory
    category_name: str
    sub_risks: SubRiskScores
    time_adjustment: int
    interpretation: InterpretationResult
    risk_cards: list[RiskCard] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
