"""Declarative rule evaluation: which stages a document must pass through.

Each stored rule carries a ``condition_type`` and a JSON ``condition_value``.
Those are parsed into one of a closed set of condition variants through
``CONDITION_PARSERS``; a new kind of condition is a new variant plus a new
parser entry. Every active rule whose condition holds contributes its stage,
in ascending rule ``sort_order``. When nothing matches, the first
``fallback_count`` active stages form the default path.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sowflow.models.enums import ConditionType
from sowflow.models.workflow import Rule
from sowflow.services.workflow.catalog import StageCatalog

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_COUNT = 3


class RuleConditionError(ValueError):
    """A stored condition_value cannot be parsed for its condition_type."""


@dataclass(frozen=True)
class DocumentAttributes:
    amount: float | None = None


@dataclass(frozen=True)
class AmountAtLeast:
    min_amount: float

    def matches(self, attributes: DocumentAttributes) -> bool:
        return attributes.amount is not None and attributes.amount >= self.min_amount


RuleCondition = AmountAtLeast


def _parse_amount(value: dict) -> AmountAtLeast:
    try:
        min_amount = float(value["min_amount"])
    except (KeyError, TypeError, ValueError) as exc:
        raise RuleConditionError(f"amount condition needs a numeric min_amount, got {value!r}") from exc
    if min_amount < 0:
        raise RuleConditionError("min_amount must not be negative")
    return AmountAtLeast(min_amount=min_amount)


CONDITION_PARSERS = {
    ConditionType.AMOUNT: _parse_amount,
}


def parse_condition(condition_type: ConditionType | str, condition_value: dict) -> RuleCondition:
    try:
        parser = CONDITION_PARSERS[ConditionType(condition_type)]
    except (KeyError, ValueError) as exc:
        raise RuleConditionError(f"Unknown condition type '{condition_type}'") from exc
    return parser(condition_value or {})


@dataclass
class RequiredStages:
    stage_ids: list[str] = field(default_factory=list)
    used_fallback: bool = False


def required_stages(
    rules: Iterable[Rule],
    catalog: StageCatalog,
    attributes: DocumentAttributes,
    fallback_count: int = DEFAULT_FALLBACK_COUNT,
) -> RequiredStages:
    """Compute the ordered stage IDs a document requires.

    Pure: depends only on the rule and stage snapshots passed in.
    """
    active_rules = sorted(
        (r for r in rules if r.is_active),
        key=lambda r: (r.sort_order, r.rule_id),
    )

    stage_ids: list[str] = []
    for rule in active_rules:
        stage = catalog.get(rule.stage_id)
        if stage is None or not stage.is_active:
            logger.warning(
                "Skipping rule %s: stage %s is %s",
                rule.rule_id,
                rule.stage_id,
                "unknown" if stage is None else "inactive",
            )
            continue
        try:
            condition = parse_condition(rule.condition_type, rule.condition_value)
        except RuleConditionError as exc:
            logger.warning("Skipping rule %s: %s", rule.rule_id, exc)
            continue
        if condition.matches(attributes) and rule.stage_id not in stage_ids:
            stage_ids.append(rule.stage_id)

    if stage_ids:
        return RequiredStages(stage_ids=stage_ids)

    return RequiredStages(
        stage_ids=[s.stage_id for s in catalog.first_active(fallback_count)],
        used_fallback=True,
    )
