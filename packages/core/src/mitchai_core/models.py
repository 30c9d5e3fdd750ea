"""Static capability registry of installable local models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Tier(Enum):
    """Quality/size bucket for models, ordered by ``priority``."""

    FAST = ("fast", 1, "Fast downloads, good quality", "~2 minutes")
    BALANCED = ("balanced", 2, "Better quality, moderate setup", "~5-10 minutes")
    PREMIUM = ("premium", 3, "Best quality, longer setup", "~10-15 minutes")

    def __init__(self, label: str, priority: int, description: str, setup_time: str):
        self.label = label
        self.priority = priority
        self.description = description
        self.setup_time = setup_time

    @classmethod
    def from_name(cls, name: str | Tier) -> Tier:
        if isinstance(name, Tier):
            return name
        for tier in cls:
            if tier.label == str(name).lower():
                return tier
        raise ValueError(f"Unknown tier: {name!r}. Choose one of: {', '.join(t.label for t in cls)}.")


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    tier: Tier
    size: str
    quality_score: int
    strengths: frozenset[str] = field(default_factory=frozenset)
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "tier": self.tier.label,
            "size": self.size,
            "quality_score": self.quality_score,
            "strengths": sorted(self.strengths),
            "description": self.description,
        }


def _model(name, tier, size, quality, strengths, description) -> ModelDescriptor:
    return ModelDescriptor(
        name=name,
        tier=tier,
        size=size,
        quality_score=quality,
        strengths=frozenset(strengths.split()),
        description=description,
    )


# Declaration order is the tie-break order for recommendations.
MODEL_REGISTRY: dict[str, ModelDescriptor] = {
    m.name: m
    for m in (
        _model(
            "codegemma:2b",
            Tier.FAST,
            "1.6GB",
            7,
            "ruby python typescript javascript css html go java",
            "Fast, lightweight model for quick reviews",
        ),
        _model(
            "phi3:mini",
            Tier.FAST,
            "2.2GB",
            7,
            "python javascript typescript",
            "Microsoft's efficient coding model",
        ),
        _model(
            "deepseek-coder:6.7b",
            Tier.BALANCED,
            "3.8GB",
            9,
            "ruby python typescript javascript css html",
            "Excellent general-purpose coding model, best for web development",
        ),
        _model(
            "qwen2.5-coder:7b",
            Tier.BALANCED,
            "4.1GB",
            9,
            "rust go cpp java",
            "Optimized for systems programming and compiled languages",
        ),
        _model(
            "codellama:7b",
            Tier.BALANCED,
            "3.9GB",
            8,
            "python java cpp ruby",
            "Strong for enterprise languages and complex logic",
        ),
        _model(
            "codellama:13b",
            Tier.PREMIUM,
            "7.3GB",
            10,
            "python java cpp rust go",
            "Most capable model with superior code understanding",
        ),
        _model(
            "deepseek-coder:33b",
            Tier.PREMIUM,
            "19GB",
            10,
            "ruby python typescript javascript go rust java cpp",
            "Enterprise-grade model for complex codebases",
        ),
    )
}

DEFAULT_MODEL = "codegemma:2b"

# Returned for names outside the registry so callers can still render something.
UNKNOWN_MODEL = ModelDescriptor(
    name="unknown",
    tier=Tier.FAST,
    size="Unknown",
    quality_score=5,
    description="Unknown model",
)
