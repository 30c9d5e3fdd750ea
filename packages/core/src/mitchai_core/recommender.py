"""Model recommendation: scores registry models against a project's languages.

score = compatibility(strengths, languages) * quality_score

where compatibility is the share of the project's languages the model is
strong at, plus a bonus when it covers the primary (first) language, capped
at 1.0. Ties keep registry declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from mitchai_core.models import DEFAULT_MODEL, MODEL_REGISTRY, UNKNOWN_MODEL, ModelDescriptor, Tier

_PRIMARY_LANGUAGE_BONUS = 0.2
_UPGRADE_MIN_COMPATIBILITY = 0.7


@dataclass(frozen=True)
class UpgradeSuggestion:
    model: ModelDescriptor
    compatibility: float
    quality_improvement: int

    @property
    def tier(self) -> Tier:
        return self.model.tier


def compatibility(strengths: Iterable[str], languages: list[str]) -> float:
    strengths = set(strengths)
    if not languages or not strengths:
        return 0.0
    covered = [lang for lang in dict.fromkeys(languages) if lang in strengths]
    score = len(covered) / len(set(languages))
    if languages[0] in strengths:
        score += _PRIMARY_LANGUAGE_BONUS
    return min(score, 1.0)


def score_model(model: ModelDescriptor, languages: list[str]) -> float:
    return compatibility(model.strengths, languages) * model.quality_score


def models_by_tier(tier: str | Tier) -> list[ModelDescriptor]:
    tier = Tier.from_name(tier)
    return [m for m in MODEL_REGISTRY.values() if m.tier is tier]


def model_info(name: str) -> ModelDescriptor:
    """Registry entry for ``name``, or the ``UNKNOWN_MODEL`` placeholder. Never raises."""
    return MODEL_REGISTRY.get(name, UNKNOWN_MODEL)


def _best(candidates: list[ModelDescriptor], languages: list[str]) -> ModelDescriptor | None:
    best: ModelDescriptor | None = None
    best_score = 0.0
    for model in candidates:
        score = score_model(model, languages)
        # Strict comparison keeps the earliest registry entry on ties.
        if best is None or score > best_score:
            best, best_score = model, score
    return best


def recommend(languages: list[str], tier: str | Tier = Tier.FAST) -> str:
    """Pick the best model for ``languages`` within ``tier``.

    An empty tier, or one where no model covers any language, falls back to the
    best fast-tier model, then to ``DEFAULT_MODEL``.
    """
    candidates = models_by_tier(tier)
    best = _best(candidates, languages)
    if best is not None and score_model(best, languages) > 0:
        return best.name

    fallback = _best(models_by_tier(Tier.FAST), languages)
    return fallback.name if fallback is not None else DEFAULT_MODEL


def upgrade_suggestions(current_model: str, languages: list[str]) -> list[UpgradeSuggestion]:
    """Better models in strictly higher tiers, best improvement first."""
    current = MODEL_REGISTRY.get(current_model)
    if current is None:
        return []

    upgrades = []
    for model in MODEL_REGISTRY.values():
        if model.tier.priority <= current.tier.priority:
            continue
        compat = compatibility(model.strengths, languages)
        if compat < _UPGRADE_MIN_COMPATIBILITY:
            continue
        improvement = model.quality_score - current.quality_score
        if improvement <= 0:
            continue
        upgrades.append(UpgradeSuggestion(model=model, compatibility=compat, quality_improvement=improvement))

    upgrades.sort(key=lambda u: (-u.quality_improvement, -u.compatibility))
    return upgrades


def recommended_models(languages: list[str], threshold: float = 0.3) -> list[tuple[ModelDescriptor, float]]:
    """Every registry model above a compatibility threshold, most compatible first."""
    scored = [(m, compatibility(m.strengths, languages)) for m in MODEL_REGISTRY.values()]
    return sorted([(m, c) for m, c in scored if c > threshold], key=lambda pair: -pair[1])


def best_installed_model(languages: list[str], installed: Iterable[str]) -> str | None:
    """The installed registry model that scores highest for ``languages``, if any scores at all."""
    installed = set(installed)
    candidates = [m for m in MODEL_REGISTRY.values() if m.name in installed]
    best = _best(candidates, languages)
    if best is None or score_model(best, languages) <= 0:
        return None
    return best.name
