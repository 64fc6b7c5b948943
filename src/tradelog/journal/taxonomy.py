"""Analysis taxonomy merging and lookup.

A strategy may carry its own analysis configuration that refines the
application-wide one.  ``merge_analysis_configurations`` builds a new
merged tree; neither input is modified.
"""

from __future__ import annotations

from tradelog.core.models import AnalysisCategory, AnalysisSubCategory, Strategy


def _merge_sub_categories(
    base: list[AnalysisSubCategory],
    override: list[AnalysisSubCategory],
) -> list[AnalysisSubCategory]:
    replacements = {sc.id: sc for sc in override}
    merged = [replacements.pop(sc.id, sc) for sc in base]
    # Strategy-only sub-categories keep their declared order
    merged.extend(sc for sc in override if sc.id in replacements)
    return merged


def merge_analysis_configurations(
    global_config: list[AnalysisCategory],
    strategy_config: list[AnalysisCategory] | None,
) -> list[AnalysisCategory]:
    """Overlay a strategy-level taxonomy on the global one.

    Categories are matched by id.  Within a matched category the
    strategy's sub-categories replace same-id global ones and new ones
    are appended; unmatched strategy categories are appended whole.
    """
    if not strategy_config:
        return list(global_config)

    overrides = {cat.id: cat for cat in strategy_config}
    merged: list[AnalysisCategory] = []
    for category in global_config:
        override = overrides.pop(category.id, None)
        if override is None:
            merged.append(category)
            continue
        merged.append(
            category.model_copy(update={
                "title": override.title or category.title,
                "is_single_choice": override.is_single_choice,
                "sub_categories": _merge_sub_categories(
                    category.sub_categories, override.sub_categories
                ),
            })
        )
    merged.extend(cat for cat in strategy_config if cat.id in overrides)
    return merged


def sub_category_index(
    categories: list[AnalysisCategory],
) -> dict[str, AnalysisSubCategory]:
    """Flatten a taxonomy to ``{sub_category_id: sub_category}``.

    The first occurrence of an id wins, matching lookup order.
    """
    index: dict[str, AnalysisSubCategory] = {}
    for category in categories:
        for sub_category in category.sub_categories:
            index.setdefault(sub_category.id, sub_category)
    return index


def taxonomy_for(
    global_config: list[AnalysisCategory],
    strategy: Strategy | None,
) -> dict[str, AnalysisSubCategory]:
    """Sub-category index effective for trades of ``strategy``."""
    strategy_config = strategy.analysis_configurations if strategy else None
    return sub_category_index(merge_analysis_configurations(global_config, strategy_config))
