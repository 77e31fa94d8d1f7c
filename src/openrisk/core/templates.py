"""Phrase template pools.

Tone is blunt: weak indicators are called out plainly, good ones
come with the catch, and bad combinations are discouraged more strongly.

Pools are searched in priority order: combination, category-specific,
single-metric, area-type, anchor. Within a pool, earlier templates win.
Placeholders use ``str.format`` field names from ``DynamicVars``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional

from .models import (
    AreaType,
    BusinessCategory,
    ConditionKey,
    Level,
    PeakTime,
    RiskLevel,
    SubwayBand,
    SurvivalTrend,
    Template,
    Tone,
    WeekendBias,
)

LOW, MEDIUM, HIGH = Level.LOW, Level.MEDIUM, Level.HIGH

Predicate = Callable[[ConditionKey], bool]


def when(**conditions) -> Predicate:
    """Predicate matching ConditionKey fields exactly, or any member of a tuple."""

    def predicate(key: ConditionKey) -> bool:
        for field, expected in conditions.items():
            actual = getattr(key, field)
            if isinstance(expected, tuple):
                if actual not in expected:
                    return False
            elif actual != expected:
                return False
        return True

    return predicate


def _bad_count(key: ConditionKey) -> int:
    return sum(level == HIGH for level in (key.competition, key.traffic, key.cost, key.survival))


def _good_count(key: ConditionKey) -> int:
    return sum(level == LOW for level in (key.competition, key.traffic, key.cost, key.survival))


def _facility_near(key: ConditionKey) -> bool:
    return key.coffee_cluster or key.mart_near or key.department_near


def _t(id: str, metric: str, predicate: Predicate, tone: Tone, phrases, factor=None) -> Template:
    return Template(id=id, metric=metric, predicate=predicate, tone=tone, phrases=tuple(phrases), factor=factor)


# ─── (a) Combination templates ──────────────────────────────────────────────

COMBINATION_TEMPLATES: tuple[Template, ...] = (
    _t(
        "worst_combination", "competition",
        when(competition=HIGH, cost=HIGH, traffic=HIGH), Tone.CRITICAL,
        [
            "Honestly, the conditions here are poor: heavy competition, thin foot traffic and high rent. Unless you are very sure, look elsewhere first.",
            "This is a hard spot. {same_category} rivals share few passers-by and the rent is high. Think it over again.",
        ],
        factor="Crowded, quiet and expensive",
    ),
    _t(
        "comp_high_traffic_low", "competition",
        when(competition=HIGH, traffic=HIGH), Tone.CRITICAL,
        [
            "Competition is fierce yet few people walk by. Frankly, the conditions are not good.",
            "There are already {same_category} of them and foot traffic is thin. Worth comparing other locations.",
            "The market is saturated and customers are scarce. This will not be easy.",
        ],
        factor="{same_category} competitors, thin traffic",
    ),
    _t(
        "comp_high_traffic_high", "competition",
        when(competition=HIGH, traffic=LOW), Tone.WARNING,
        [
            "Plenty of customers, but {same_category} shops split them. Expect a war of attrition.",
            "Traffic is good, but you would be competing with {same_category} others. You need a clear edge.",
            "The street is busy and so is the competition. Without a distinct strength it is hard to last.",
        ],
        factor="{same_category} competitors",
    ),
    _t(
        "comp_low_traffic_low", "competition",
        when(competition=LOW, traffic=HIGH), Tone.CAUTION,
        [
            "Little competition, but little foot traffic too. You would depend on nearby residents.",
            "A quiet neighbourhood. Expect to run mostly on regulars.",
            "Few people pass by, so delivery or reservations may carry the business.",
        ],
        factor="Quiet market",
    ),
    _t(
        "high_cost_high_comp", "cost",
        when(competition=HIGH, cost=HIGH), Tone.CRITICAL,
        [
            "Heavy competition and high rent: a double squeeze on margins.",
            "Costs are high and so is the number of rivals. Profit will be hard to come by.",
        ],
        factor="High rent and heavy competition",
    ),
    _t(
        "cost_high_survival_low", "cost",
        when(cost=HIGH, survival=HIGH), Tone.CRITICAL,
        [
            "Rent is high and many shops close here. Losses can pile up quickly.",
            "At {avg_rent} per unit with a {closure_rate}% closure rate, fixed costs leave little room for a slow start.",
        ],
        factor="High rent, high closures",
    ),
)


# ─── (b) Category-specific templates ────────────────────────────────────────

# Keys: competition_high, competition_low, traffic_busy, traffic_thin, anchor_near, anchor_far
_CATEGORY_PHRASES: dict[BusinessCategory, dict[str, tuple[str, ...]]] = {
    BusinessCategory.CAFE: {
        "competition_high": (
            "There are {same_category} cafes already. Without a signature menu you will be buried.",
            "The cafe market is saturated. Social media marketing or a distinctive interior is a must.",
            "Lots of cafes around. You need a reason for people to come to yours.",
        ),
        "competition_low": (
            "Few cafes nearby, so you could be first in.",
            "This is a gap in the cafe market. Solid basics alone could win demand.",
        ),
        "traffic_busy": (
            "Plenty of foot traffic to chase take-out demand.",
            "Many people walk by, so a storefront that stands out matters.",
        ),
        "traffic_thin": (
            "Thin foot traffic means regulars will carry you. A neighbourhood cafe concept fits.",
            "Few people pass by. You would depend on residents behind the street.",
        ),
        "anchor_near": ("Close to the station, so commuters bring take-out demand.",),
        "anchor_far": ("Far from the station, so it has to be a destination cafe. Win on atmosphere or menu.",),
    },
    BusinessCategory.BAKERY: {
        "competition_high": (
            "There are {same_category} bakeries already. You need bread nobody else makes.",
            "Bakery competition is real. Differentiate with a signature loaf.",
        ),
        "competition_low": (
            "Few bakeries around. A chance to become the neighbourhood bakery.",
            "This area has a gap for a bakery.",
        ),
        "traffic_busy": ("You can catch the morning commute.",),
        "traffic_thin": ("Residential demand behind the street can keep things steady.",),
        "anchor_near": ("Near the station, so there is commuter demand for bread.",),
        "anchor_far": ("If it tastes good, people will seek out a neighbourhood bakery.",),
    },
    BusinessCategory.DESSERT: {
        "competition_high": (
            "Many dessert shops here, and the category follows fast-moving trends.",
            "Desserts go in and out of fashion. With {same_category} rivals you need a distinct offer.",
        ),
        "competition_low": ("Few dessert shops. Check first whether there is demand.",),
        "traffic_busy": ("Young foot traffic usually means dessert demand.",),
        "traffic_thin": ("Desserts are impulse buys, so thin traffic hurts.",),
        "anchor_near": ("Near the station, so there is after-work dessert demand.",),
        "anchor_far": ("You need destination visits. Social media will matter.",),
    },
    BusinessCategory.RESTAURANT_KOREAN: {
        "competition_high": (
            "There are {same_category} Korean restaurants. Compete on price or taste.",
            "Korean food is everywhere, so competition is fierce. Specialise.",
        ),
        "competition_low": ("Few Korean restaurants. The basics should find demand.",),
        "traffic_busy": ("You can target office workers at lunch.",),
        "traffic_thin": ("You may have to rely on delivery.",),
        "anchor_near": ("An office crowd nearby supports lunch specials.",),
        "anchor_far": ("It will be a local spot run on regulars.",),
    },
    BusinessCategory.RESTAURANT_WESTERN: {
        "competition_high": ("Western restaurants compete here. Differentiate on price point or atmosphere.",),
        "competition_low": ("Few Western restaurants. Check whether the neighbourhood wants one.",),
        "traffic_busy": ("You can aim for dates and group dinners.",),
        "traffic_thin": ("A reservation-only format may suit this spot.",),
        "anchor_near": ("Easy access brings team dinners and gatherings.",),
        "anchor_far": ("Word of mouth can draw people from further away.",),
    },
    BusinessCategory.RESTAURANT_JAPANESE: {
        "competition_high": ("There are {same_category} Japanese restaurants. Expertise matters.",),
        "competition_low": ("Few Japanese restaurants. An opening if demand exists.",),
        "traffic_busy": ("You can target the office lunch crowd.",),
        "traffic_thin": ("You may need to focus on evening drinks.",),
        "anchor_near": ("Near the station, so after-work drinks are an option.",),
        "anchor_far": ("Earn a reputation and people will travel.",),
    },
    BusinessCategory.RESTAURANT_CHINESE: {
        "competition_high": ("There are {same_category} Chinese restaurants and delivery competition is fierce too.",),
        "competition_low": ("Few Chinese restaurants. An opening if delivery demand exists.",),
        "traffic_busy": ("Expect strong lunch demand.",),
        "traffic_thin": ("You will mostly run on delivery.",),
        "anchor_near": ("There is office lunch demand.",),
        "anchor_far": ("Delivery radius is what counts.",),
    },
    BusinessCategory.RESTAURANT_CHICKEN: {
        "competition_high": (
            "There are {same_category} chicken shops, one of the most crowded categories.",
            "Franchise competition is intense. Without price competitiveness it is tough.",
        ),
        "competition_low": ("Few chicken shops, which is rare. There should be demand.",),
        "traffic_busy": ("You can win dine-in customers as well as delivery.",),
        "traffic_thin": ("Plan for a delivery-only strategy.",),
        "anchor_near": ("Near the station, so there is after-work demand.",),
        "anchor_far": ("Delivery radius matters; app rankings drive sales.",),
    },
    BusinessCategory.RESTAURANT_PIZZA: {
        "competition_high": ("Pizza competition is here. You will be up against big franchises.",),
        "competition_low": ("Few pizza places. An opening if delivery demand exists.",),
        "traffic_busy": ("Take-out demand is possible too.",),
        "traffic_thin": ("You will mostly run on delivery.",),
        "anchor_near": ("There may be office party orders.",),
        "anchor_far": ("Households within delivery range are what count.",),
    },
    BusinessCategory.RESTAURANT_FASTFOOD: {
        "competition_high": ("Fast food competes here. You will face the big brands.",),
        "competition_low": ("Little fast food nearby. If you can turn tables fast, it is an opening.",),
        "traffic_busy": ("Heavy foot traffic means fast turnover.",),
        "traffic_thin": ("Thin traffic means thin fast-food demand.",),
        "anchor_near": ("In front of the station there is demand for a quick meal.",),
        "anchor_far": ("Expect to rely on delivery.",),
    },
    BusinessCategory.BAR: {
        "competition_high": ("There are {same_category} bars. You need a distinct concept or atmosphere.",),
        "competition_low": ("Few bars. Check whether the neighbourhood goes out at night.",),
        "traffic_busy": ("Evening traffic plays in your favour.",),
        "traffic_thin": ("You have to give people a reason to come. Regulars are key.",),
        "anchor_near": ("Near the station, so after-work drinks bring demand.",),
        "anchor_far": ("A hidden-gem concept is the way to go.",),
    },
    BusinessCategory.CONVENIENCE: {
        "competition_high": ("There are {same_category} convenience stores. Check the franchise's territory rules.",),
        "competition_low": ("Few convenience stores. Read the franchise terms carefully.",),
        "traffic_busy": ("Heavy traffic turns into sales.",),
        "traffic_thin": ("You will depend on residents nearby.",),
        "anchor_near": ("Near the station, so commuter demand is steady.",),
        "anchor_far": ("Check whether sales cover 24-hour staffing.",),
    },
    BusinessCategory.MART: {
        "competition_high": ("Supermarkets compete here. Price competitiveness is a must.",),
        "competition_low": ("Few supermarkets. An opening if there are homes behind the street.",),
        "traffic_busy": ("Passers-by will drop in.",),
        "traffic_thin": ("It will be a neighbourhood shop run on regulars.",),
        "anchor_near": ("Being close to a big-box store can actually hurt.",),
        "anchor_far": ("Room to become the local grocer.",),
    },
    BusinessCategory.BEAUTY: {
        "competition_high": ("There are {same_category} hair salons. Building regulars is key.",),
        "competition_low": ("Few hair salons. A chance to become the local salon.",),
        "traffic_busy": ("Walk-ins happen, but bookings are the base.",),
        "traffic_thin": ("It will run on regulars.",),
        "anchor_near": ("Good access makes new customers easy to win.",),
        "anchor_far": ("Skill and word of mouth will bring people.",),
    },
    BusinessCategory.NAIL: {
        "competition_high": ("There are {same_category} nail salons. Design skill is the differentiator.",),
        "competition_low": ("Few nail salons. An opening if demand exists.",),
        "traffic_busy": ("A young shopping crowd helps.",),
        "traffic_thin": ("Expect to run on regular bookings.",),
        "anchor_near": ("On a shopping route there are impulse visits.",),
        "anchor_far": ("Social media marketing matters.",),
    },
    BusinessCategory.LAUNDRY: {
        "competition_high": ("Laundries compete here. Differentiate on service quality.",),
        "competition_low": ("Few laundries. Steady if homes are nearby.",),
        "traffic_busy": ("Homes behind the street matter more than passers-by.",),
        "traffic_thin": ("A neighbourhood laundry can run steadily.",),
        "anchor_near": ("Apartment blocks matter more than stations.",),
        "anchor_far": ("Residential demand behind the street is the core.",),
    },
    BusinessCategory.PHARMACY: {
        "competition_high": ("There are {same_category} pharmacies. Without clinics nearby it is hard.",),
        "competition_low": ("Few pharmacies. A good opening if you hold a licence.",),
        "traffic_busy": ("Near a clinic cluster, demand is steady.",),
        "traffic_thin": ("A local pharmacy gets steady regulars.",),
        "anchor_near": ("Proximity to clinics is what counts.",),
        "anchor_far": ("You will depend on local prescriptions.",),
    },
    BusinessCategory.GYM: {
        "competition_high": ("There are {same_category} gyms. Differentiate on price or facilities.",),
        "competition_low": ("Few gyms. An opening if homes are nearby.",),
        "traffic_busy": ("You can target office workers.",),
        "traffic_thin": ("Members from nearby homes are the core.",),
        "anchor_near": ("Near the station, so after-work training brings demand.",),
        "anchor_far": ("Being near homes matters more. Be the neighbourhood gym.",),
    },
    BusinessCategory.ACADEMY: {
        "competition_high": ("There are {same_category} academies. Specialise in a subject.",),
        "competition_low": ("Few academies. Check whether there are enough students.",),
        "traffic_busy": ("Schools nearby matter more than foot traffic.",),
        "traffic_thin": ("The number of students nearby is the core.",),
        "anchor_near": ("Schools matter more than stations.",),
        "anchor_far": ("Check whether schools cluster nearby.",),
    },
}

_CATEGORY_SLOTS = (
    ("competition_high", "competition", dict(competition=HIGH), Tone.WARNING, "{same_category} competitors"),
    ("competition_low", "competition", dict(competition=LOW), Tone.POSITIVE, "Low competition"),
    ("traffic_busy", "traffic", dict(traffic=LOW), Tone.POSITIVE, "Busy street"),
    ("traffic_thin", "traffic", dict(traffic=HIGH), Tone.WARNING, "Thin foot traffic"),
    ("anchor_near", "anchor", dict(subway=(SubwayBand.NEAR, SubwayBand.WALKABLE), has_any_anchor=True), Tone.POSITIVE, "Station {subway_distance}m"),
    ("anchor_far", "anchor", dict(subway=(SubwayBand.FAR, SubwayBand.NONE), has_any_anchor=True), Tone.CAUTION, None),
)


def _build_category_templates() -> tuple[Template, ...]:
    templates = []
    for category, phrases in _CATEGORY_PHRASES.items():
        for slot, metric, conditions, tone, factor in _CATEGORY_SLOTS:
            if slot not in phrases:
                continue
            templates.append(_t(
                f"{category.value}_{slot}", metric,
                when(category=category, **conditions), tone,
                phrases[slot], factor=factor,
            ))
    return tuple(templates)


CATEGORY_TEMPLATES: tuple[Template, ...] = _build_category_templates()


# ─── (c) Single-metric templates ────────────────────────────────────────────

METRIC_TEMPLATES: tuple[Template, ...] = (
    # Competition
    _t(
        "comp_high", "competition", when(competition=HIGH), Tone.WARNING,
        [
            "{same_category} similar businesses already compete here. An ordinary shop gets lost.",
            "Competition is fierce. Differentiate on price or service.",
            "Many similar shops, so a plan for winning regulars matters.",
        ],
        factor="{same_category} competitors",
    ),
    _t(
        "comp_medium", "competition", when(competition=MEDIUM), Tone.CAUTION,
        [
            "A moderate level of competition: the market is proven here.",
            "There is competition, but it is not overheated.",
            "A few similar shops exist, so work out your price position in advance.",
        ],
    ),
    _t(
        "comp_low", "competition", when(competition=LOW), Tone.POSITIVE,
        [
            "Only {same_category} similar businesses nearby, so competition is light.",
            "Few direct competitors. Still, check why the gap exists.",
        ],
        factor="Low competition",
    ),
    # Traffic (risk levels: high = thin traffic)
    _t(
        "traffic_low", "traffic", when(traffic=HIGH), Tone.WARNING,
        [
            "Not many people walk by. You may have to rely on delivery.",
            "Foot traffic is on the low side. Check the residential demand nearby.",
            "You would depend on destination visits rather than walk-ins.",
        ],
        factor="Thin foot traffic",
    ),
    _t(
        "traffic_high_night", "traffic", when(traffic=LOW, peak_time=PeakTime.NIGHT), Tone.POSITIVE,
        [
            "Evening traffic is strong. After-work demand is there to win.",
            "Traffic peaks in the {peak_time_label}, which suits evening businesses.",
            "Strong night traffic, though daytime trade may be weak.",
        ],
        factor="Strong evening traffic",
    ),
    _t(
        "traffic_high_morning", "traffic", when(traffic=LOW, peak_time=PeakTime.MORNING), Tone.POSITIVE,
        [
            "Morning commuter demand is strong. Take-out and quick meals do well.",
            "Lots of commuter traffic, good for fast-turnover businesses.",
            "Busy in the morning, possibly quiet by midday. Plan by time of day.",
        ],
        factor="Strong morning traffic",
    ),
    _t(
        "traffic_high", "traffic", when(traffic=LOW), Tone.POSITIVE,
        [
            "Plenty of foot traffic, but you still have to give them a reason to come in.",
            "Many people pass by. Signage and frontage matter.",
            "Foot traffic is ample. Weigh it against the competition.",
        ],
        factor="Busy street",
    ),
    _t(
        "traffic_medium", "traffic", when(traffic=MEDIUM), Tone.CAUTION,
        [
            "Foot traffic is moderate. Walk-ins help but will not fill the shop alone.",
            "An average flow of people. Mix walk-in and destination demand.",
        ],
    ),
    # Cost
    _t(
        "cost_high_commercial", "cost", when(cost=HIGH, area_type=AreaType.COMMERCIAL), Tone.WARNING,
        [
            "Rent is high at around {avg_rent} per unit, over {rent_monthly_10} a month for 10 units.",
            "Fixed costs will press hard. High turnover is essential.",
            "Commercial-hub prices. Consider a smaller unit or a take-out format.",
        ],
        factor="High rent",
    ),
    _t(
        "cost_high", "cost", when(cost=HIGH), Tone.WARNING,
        [
            "Rent is high at around {avg_rent} per unit. Work out your monthly fixed costs carefully.",
            "Costs could weigh heavily. Compare them with expected sales.",
            "At {avg_rent} per unit, 10 units cost {rent_monthly_10} a month.",
        ],
        factor="High rent",
    ),
    _t(
        "cost_medium", "cost", when(cost=MEDIUM), Tone.CAUTION,
        [
            "Rent is around {avg_rent} per unit, a middling level.",
            "Rent is neither cheap nor crushing. Size the unit to your sales plan.",
        ],
    ),
    _t(
        "cost_low", "cost", when(cost=LOW), Tone.POSITIVE,
        [
            "Rent is low, so the upfront burden is light.",
            "Low fixed costs allow steady operation.",
            "Costs look fine, but find out why it is cheap.",
        ],
        factor="Affordable rent",
    ),
    # Survival
    _t(
        "survival_high", "survival", when(survival=HIGH), Tone.CRITICAL,
        [
            "Shops close often here ({closure_rate}% a year). This is not an easy area.",
            "The closure rate is high. Treat this as a hard place to operate.",
            "Many shops shut down here. Without solid preparation it can be tough.",
        ],
        factor="High closure rate",
    ),
    _t(
        "survival_medium_shrinking", "survival",
        when(survival=MEDIUM, survival_trend=SurvivalTrend.SHRINKING), Tone.WARNING,
        [
            "Closures are average but store numbers are shrinking. The area may be contracting.",
        ],
        factor="Shrinking store count",
    ),
    _t(
        "survival_medium", "survival", when(survival=MEDIUM), Tone.CAUTION,
        [
            "The closure rate is about average: ordinary startup risk.",
            "Store numbers are not swinging much.",
            "Not especially risky, but do not let your guard down.",
        ],
    ),
    _t(
        "survival_low", "survival", when(survival=LOW), Tone.POSITIVE,
        [
            "Few shops close here, so the area is stable.",
            "Many shops last a long time. There is a culture of regulars.",
            "Survival looks decent, though barriers to entry may be higher.",
        ],
        factor="Shops survive here",
    ),
    # Time pattern
    _t(
        "time_peak_fit", "time_pattern", when(peak_fit=True), Tone.POSITIVE,
        [
            "Traffic peaks in the {peak_time_label}, right when this business does best.",
            "The busiest hours line up with your trading hours.",
        ],
        factor="Peak hours fit",
    ),
    _t(
        "time_morning", "time_pattern", when(peak_time=PeakTime.MORNING), Tone.CAUTION,
        [
            "The morning commute is the peak. Take-out or fast service helps.",
            "A morning-driven street; plan how to hold sales after lunch.",
        ],
    ),
    _t(
        "time_day", "time_pattern", when(peak_time=PeakTime.DAY), Tone.CAUTION,
        [
            "Midday is busiest. Target the office lunch crowd.",
            "Lunch to afternoon is the peak, so staff those hours well.",
        ],
    ),
    _t(
        "time_night", "time_pattern", when(peak_time=PeakTime.NIGHT), Tone.CAUTION,
        [
            "Evening to night is the peak, good for late trading.",
            "An evening street; do not count on daytime sales.",
        ],
    ),
)


# ─── (d) Area-type templates ────────────────────────────────────────────────

AREA_TEMPLATES: tuple[Template, ...] = (
    _t(
        "area_residential", "area_type", when(area_type=AreaType.RESIDENTIAL), Tone.POSITIVE,
        [
            "A residential area, so steady trade with regulars is possible.",
            "A neighbourhood market. Fit your menu and service to residents.",
            "A quiet residential street; comfort beats flash here.",
        ],
        factor="Residential regulars",
    ),
    _t(
        "area_commercial", "area_type", when(area_type=AreaType.COMMERCIAL), Tone.CAUTION,
        [
            "A commercial hub: good inflow, but competition and rent are high too.",
            "A hot spot that is trend-sensitive and changes quickly.",
            "A lively district, though it can become a war of attrition.",
        ],
    ),
    _t(
        "area_mixed", "area_type", when(area_type=AreaType.MIXED), Tone.CAUTION,
        [
            "A mixed work-and-live district: customers change by time of day.",
            "Commute, lunch and evening each bring different customers.",
            "Varied demand; plan by time of day.",
        ],
    ),
    _t(
        "area_special", "area_type", when(area_type=AreaType.SPECIAL), Tone.WARNING,
        [
            "A special-purpose district that may lean on seasons or events.",
            "Tourist or nightlife character: weekday and weekend can differ a lot.",
            "A distinctive district, but volatile.",
        ],
        factor="Seasonal swings",
    ),
)


# ─── (e) Anchor templates ───────────────────────────────────────────────────

ANCHOR_TEMPLATES: tuple[Template, ...] = (
    _t(
        "anchor_none", "anchor", when(has_any_anchor=False), Tone.WARNING,
        [
            "No anchor facilities nearby. The shop has to draw its own customers.",
            "No station or large store as an anchor facility, so you depend on destination visits.",
            "With no anchor facilities to feed traffic, marketing matters more.",
        ],
        factor="No anchor facilities",
    ),
    _t(
        "anchor_subway_near", "anchor", when(subway=SubwayBand.NEAR, has_any_anchor=True), Tone.POSITIVE,
        [
            "{subway_name} is {subway_distance}m away. Inflow is good, but so are rent and competition.",
            "A prime spot by the station, though costs are correspondingly high.",
            "Close to the station, so traffic is assured. Key money will be high too.",
        ],
        factor="Station {subway_distance}m",
    ),
    _t(
        "anchor_subway_walkable", "anchor", when(subway=SubwayBand.WALKABLE, has_any_anchor=True), Tone.POSITIVE,
        [
            "{subway_name} is {subway_distance}m away, close enough for walk-in traffic.",
        ],
        factor="Station within walking distance",
    ),
    _t(
        "anchor_distant", "anchor",
        lambda key: key.has_any_anchor and not _facility_near(key), Tone.CAUTION,
        [
            "There are anchor facilities, but they are far enough that their pull is limited.",
        ],
    ),
)


TEMPLATE_POOLS: tuple[tuple[Template, ...], ...] = (
    COMBINATION_TEMPLATES,
    CATEGORY_TEMPLATES,
    METRIC_TEMPLATES,
    AREA_TEMPLATES,
    ANCHOR_TEMPLATES,
)


# ─── Addenda ────────────────────────────────────────────────────────────────
#
# Sentences appended, in order, after the chosen phrase for a metric. They
# stand alone when no template matched. A tone of None leaves the
# explanation's tone unchanged.


class Addendum(NamedTuple):
    id: str
    metric: str
    predicate: Predicate
    tone: Optional[Tone]
    sentence: str
    factor: Optional[str] = None


ADDENDA: tuple[Addendum, ...] = (
    Addendum(
        "weekend_heavy", "time_pattern", when(weekend_bias=WeekendBias.WEEKEND), Tone.WARNING,
        "Weekends carry most of the traffic, so weekday fixed costs have to be carried.",
        factor="Weekend-dependent traffic",
    ),
    Addendum(
        "weekday_heavy", "time_pattern", when(weekend_bias=WeekendBias.WEEKDAY), None,
        "Weekday demand is strong, so closing at weekends could be an option.",
    ),
    Addendum(
        "coffee_cluster", "anchor", when(has_any_anchor=True, coffee_cluster=True), Tone.POSITIVE,
        "Several coffee chains nearby point to an active street.",
    ),
    Addendum(
        "mart_near", "anchor", when(has_any_anchor=True, mart_near=True), Tone.POSITIVE,
        "{mart_name} is close, so you can tie into grocery trips.",
        factor="{mart_name} nearby",
    ),
    Addendum(
        "department_near", "anchor", when(has_any_anchor=True, department_near=True), Tone.POSITIVE,
        "Being near {department_name} brings customers with spending power.",
        factor="{department_name} nearby",
    ),
    Addendum(
        "station_rent_caveat", "anchor", when(has_any_anchor=True, station_adjacent=True), None,
        "Remember that station-side units also come with higher rent and competition.",
    ),
)


# ─── Summary ────────────────────────────────────────────────────────────────

SUMMARY_LEADS: Mapping[RiskLevel, str] = MappingProxyType({
    RiskLevel.LOW: "Conditions here are favourable for this {category_lower}.",
    RiskLevel.MEDIUM: "This {category_lower} would need a few things checked first.",
    RiskLevel.HIGH: "Risk for this {category_lower} is high here. Review carefully.",
    RiskLevel.VERY_HIGH: "Opening this {category_lower} here is not recommended.",
})


class SummaryRule(NamedTuple):
    id: str
    predicate: Predicate
    sentence: str


SUMMARY_RULES: tuple[SummaryRule, ...] = (
    SummaryRule(
        "worst_combination",
        when(competition=HIGH, traffic=HIGH, cost=HIGH),
        "Competition is fierce, foot traffic is thin and rent is high. The numbers are structurally hard to make work.",
    ),
    SummaryRule(
        "quiet_market",
        when(competition=LOW, traffic=HIGH),
        "Little competition and little traffic. Demand itself may be weak.",
    ),
    SummaryRule(
        "looks_good",
        lambda key: _good_count(key) >= 3,
        "The indicators look good, but good conditions are no secret to competitors.",
    ),
    SummaryRule(
        "many_bad",
        lambda key: _bad_count(key) >= 3,
        "Several indicators are negative. Entry means exposure to compound risk.",
    ),
    SummaryRule(
        "busy_but_crowded",
        when(traffic=LOW, competition=HIGH),
        "Traffic is plentiful but {same_category} shops share it. Without an edge you may lose the endurance game.",
    ),
    SummaryRule(
        "costly_and_closing",
        when(cost=HIGH, survival=HIGH),
        "Closures are frequent and rent is high. Losses can accumulate quickly.",
    ),
    SummaryRule(
        "costly",
        when(cost=HIGH),
        "Fixed costs are heavy. If sales fall short, cash can run out fast.",
    ),
    SummaryRule(
        "thin_traffic",
        when(traffic=HIGH),
        "Foot traffic is thin. Walk-ins alone may not fill the till.",
    ),
    SummaryRule(
        "average",
        lambda key: True,
        "An average market. Results will depend on the business and its target customers.",
    ),
)
