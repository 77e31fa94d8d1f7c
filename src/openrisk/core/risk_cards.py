"""Risk cards — red flag, one-line warning, evidence badges and an on-site question.

Only the top few cards are shown, so every template carries a priority
(lower is more important). Competition thresholds scale with the category's
tolerance: a street with ten cafes is normal, ten pharmacies is not.
"""

from __future__ import annotations

from typing import Callable, Iterable, NamedTuple

from .models import (
    AnalysisRequest,
    AreaType,
    CategoryProfile,
    ConditionKey,
    EvidenceBadge,
    Level,
    RiskCard,
    Tone,
)

MAX_CARDS = 3
SUBWAY_FAR = 500
NIGHT_HEAVY_SHARE = 45


class CardContext(NamedTuple):
    key: ConditionKey
    request: AnalysisRequest
    profile: CategoryProfile


class _CardTemplate(NamedTuple):
    id: str
    applies: Callable[[CardContext], bool]
    severity: Tone
    priority: int
    flag: str
    warning: str
    badges: Callable[[CardContext], list[EvidenceBadge]]
    question: str


def competition_threshold(base: int, profile: CategoryProfile) -> int:
    return max(1, round(base * profile.competition_tolerance))


def _crowded(ctx: CardContext, base: int) -> bool:
    return ctx.request.competition.same_category >= competition_threshold(base, ctx.profile)


def _thin_traffic(ctx: CardContext) -> bool:
    return ctx.key.traffic == Level.HIGH


def _busy_traffic(ctx: CardContext) -> bool:
    return ctx.key.traffic == Level.LOW


def _badge(label: str, type: str = "metric") -> EvidenceBadge:
    return EvidenceBadge(label=label, type=type)


def _competitors(ctx: CardContext) -> EvidenceBadge:
    return _badge(f"{ctx.request.competition.same_category} competitors")


def _rent(ctx: CardContext) -> EvidenceBadge:
    return _badge(f"Rent {ctx.request.cost.avg_rent:g}")


def _traffic(ctx: CardContext) -> EvidenceBadge:
    return _badge(f"Traffic index {ctx.request.traffic.index:g}")


def _closures(ctx: CardContext) -> EvidenceBadge:
    return _badge(f"Closures {ctx.request.survival.closure_rate:g}%")


CARD_TEMPLATES: tuple[_CardTemplate, ...] = (
    # Combination
    _CardTemplate(
        "worst_triple",
        lambda ctx: _crowded(ctx, 8) and ctx.key.cost == Level.HIGH and _thin_traffic(ctx),
        Tone.CRITICAL, 0,
        "Triple risk",
        "Crowded, expensive and quiet: the numbers are hard to make work.",
        lambda ctx: [_competitors(ctx), _rent(ctx), _traffic(ctx)],
        "Compared with other sites, is there a reason it has to be here?",
    ),
    # Competition
    _CardTemplate(
        "comp_high_traffic_low",
        lambda ctx: _crowded(ctx, 10) and _thin_traffic(ctx),
        Tone.CRITICAL, 1,
        "Splitting a small pie",
        "Too many similar shops for too few customers.",
        lambda ctx: [_competitors(ctx), _traffic(ctx)],
        "Why did so many open here if customers are missing?",
    ),
    _CardTemplate(
        "comp_high_traffic_high",
        lambda ctx: _crowded(ctx, 10) and _busy_traffic(ctx),
        Tone.WARNING, 3,
        "Endurance game",
        "A saturated market; without differentiation you get pushed out.",
        lambda ctx: [_competitors(ctx), _traffic(ctx)],
        "What would win customers away from the shops already here?",
    ),
    _CardTemplate(
        "comp_zero",
        lambda ctx: ctx.request.competition.same_category == 0,
        Tone.WARNING, 4,
        "Unproven demand",
        "No similar business at all; demand itself may be missing.",
        lambda ctx: [_badge("No competitors")],
        "Why has nobody opened this kind of business here?",
    ),
    _CardTemplate(
        "comp_high",
        lambda ctx: _crowded(ctx, 8),
        Tone.WARNING, 5,
        "Saturated market",
        "The market is already full; new entrants start at a disadvantage.",
        lambda ctx: [_competitors(ctx)],
        "What separates the shops doing well from the ones that are not?",
    ),
    # Cost
    _CardTemplate(
        "cost_high_comp_high",
        lambda ctx: ctx.key.cost == Level.HIGH and _crowded(ctx, 8),
        Tone.CRITICAL, 2,
        "Double squeeze",
        "High rent plus heavy competition leaves thin margins.",
        lambda ctx: [_rent(ctx), _competitors(ctx)],
        "How much must you take each day just to break even?",
    ),
    _CardTemplate(
        "cost_high",
        lambda ctx: ctx.key.cost == Level.HIGH,
        Tone.WARNING, 6,
        "Heavy fixed costs",
        "Rent is high, so the break-even point is far away.",
        lambda ctx: [_rent(ctx)],
        "Can you carry this rent through the slow season?",
    ),
    _CardTemplate(
        "cost_low_trap",
        lambda ctx: ctx.key.cost == Level.LOW and _thin_traffic(ctx),
        Tone.CAUTION, 8,
        "Cheap for a reason",
        "Low rent may simply reflect low demand.",
        lambda ctx: [_rent(ctx), _traffic(ctx)],
        "Why is this unit so cheap, and what did the last tenant do?",
    ),
    # Survival
    _CardTemplate(
        "survival_critical",
        lambda ctx: ctx.key.survival == Level.HIGH and ctx.request.survival.net_change < 0,
        Tone.CRITICAL, 1,
        "Shrinking district",
        "High closure rate and a falling store count.",
        lambda ctx: [_closures(ctx), _badge(f"Net change {ctx.request.survival.net_change}", "trend")],
        "How many shops closed in the last year, and why?",
    ),
    _CardTemplate(
        "survival_high",
        lambda ctx: ctx.key.survival == Level.HIGH,
        Tone.WARNING, 4,
        "Low survival",
        "Closures here run above average.",
        lambda ctx: [_closures(ctx)],
        "What do the long-lived shops do differently?",
    ),
    # Traffic
    _CardTemplate(
        "traffic_low_no_anchor",
        lambda ctx: _thin_traffic(ctx) and not ctx.request.anchors.has_any_anchor,
        Tone.CRITICAL, 2,
        "No inflow route",
        "Thin traffic and no station or large store to bring people.",
        lambda ctx: [_traffic(ctx), _badge("No anchors")],
        "Is there a reason customers would come here on purpose?",
    ),
    _CardTemplate(
        "traffic_low",
        _thin_traffic,
        Tone.WARNING, 5,
        "Little walk-in trade",
        "Few people pass by, so walk-ins will be scarce.",
        lambda ctx: [_traffic(ctx)],
        "Could dine-in or counter sales alone sustain the shop without delivery?",
    ),
    _CardTemplate(
        "traffic_night_heavy",
        lambda ctx: ctx.request.traffic.time_pattern.night >= NIGHT_HEAVY_SHARE,
        Tone.CAUTION, 7,
        "Evening-heavy",
        "Traffic concentrates in the evening, leaving a daytime gap.",
        lambda ctx: [_badge(f"Evening {ctx.request.traffic.time_pattern.night:g}%"), _badge("Daytime gap")],
        "How will you fill the daytime sales gap?",
    ),
    # Anchor
    _CardTemplate(
        "anchor_subway_far",
        lambda ctx: ctx.request.anchors.subway is not None and ctx.request.anchors.subway.distance > SUBWAY_FAR,
        Tone.WARNING, 6,
        "Off the station catchment",
        "Too far from the station to count on its traffic.",
        lambda ctx: [_badge(f"Station {ctx.request.anchors.subway.distance}m")],
        "Is there enough draw to make people walk here from the station?",
    ),
    _CardTemplate(
        "anchor_none",
        lambda ctx: not ctx.request.anchors.has_any_anchor,
        Tone.CAUTION, 8,
        "No anchor facilities",
        "No station, supermarket or similar draw nearby.",
        lambda ctx: [_badge("No anchors")],
        "How will you build your own pull through brand or marketing?",
    ),
    # Area type
    _CardTemplate(
        "area_special",
        lambda ctx: ctx.key.area_type == AreaType.SPECIAL,
        Tone.WARNING, 7,
        "Season-dependent district",
        "Weekend or seasonal peaks leave weekday gaps.",
        lambda ctx: [_badge(f"Weekend {ctx.request.traffic.weekend_ratio:.0%}"), _badge("Special district", "data")],
        "Do you have the cash to survive three slow months?",
    ),
)


def generate_risk_cards(ctx: CardContext, templates: Iterable[_CardTemplate] = CARD_TEMPLATES) -> list[RiskCard]:
    """Every matching card, most important first."""
    cards = [
        RiskCard(
            id=t.id,
            flag=t.flag,
            warning=t.warning,
            evidence_badges=t.badges(ctx),
            field_question=t.question,
            severity=t.severity,
            priority=t.priority,
        )
        for t in templates
        if t.applies(ctx)
    ]
    cards.sort(key=lambda card: card.priority)
    return cards


def top_risk_cards(
    ctx: CardContext,
    count: int = MAX_CARDS,
    templates: Iterable[_CardTemplate] = CARD_TEMPLATES,
) -> list[RiskCard]:
    """Highest-priority cards, one per flag."""
    seen = set()
    unique = []
    for card in generate_risk_cards(ctx, templates):
        if card.flag not in seen:
            seen.add(card.flag)
            unique.append(card)
    return unique[:count]


def risk_card_stats(cards: list[RiskCard]) -> dict[str, int]:
    return {
        "critical": sum(c.severity == Tone.CRITICAL for c in cards),
        "warning": sum(c.severity == Tone.WARNING for c in cards),
        "caution": sum(c.severity == Tone.CAUTION for c in cards),
        "total": len(cards),
    }
