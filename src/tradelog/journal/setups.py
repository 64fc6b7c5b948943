"""Match a trade's analysis selections against a strategy's named setups."""

from __future__ import annotations

from tradelog.core.models import AnalysisSelections, RuleCombination, Setup, Strategy


def combination_satisfied(
    combination: RuleCombination, selections: AnalysisSelections
) -> bool:
    """Every required sub-category has at least one required option selected."""
    recorded = selections.get(combination.timeframe)
    if not recorded:
        return False
    for sub_category_id, rules in combination.selected_rules.items():
        if not rules:
            continue
        chosen = {s.option_id for s in recorded.get(sub_category_id, [])}
        if not chosen & {rule.option_id for rule in rules}:
            return False
    return True


def setup_matches(setup: Setup, selections: AnalysisSelections) -> bool:
    if not setup.rules:
        return False
    return all(combination_satisfied(c, selections) for c in setup.rules)


def match_setups(strategy: Strategy | None, selections: AnalysisSelections) -> list[str]:
    """Names of the strategy's setups matched by ``selections``, in order."""
    if strategy is None or not selections:
        return []
    return [setup.name for setup in strategy.setups if setup_matches(setup, selections)]
