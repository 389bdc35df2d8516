"""
Configuration for the resume fit scoring and optimization system.
Adjust weights and parameters here, or override them through environment
variables (a .env file is honoured).
"""

import logging
import math
import os
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Dimension weights (must sum to 1.0)
WEIGHTS = {
    "keywords": 0.20,
    "skills": 0.35,
    "attributes": 0.20,
    "experience": 0.15,
    "level": 0.10,
}

WEIGHT_SUM_TOLERANCE = 1e-6

# Optimization loop defaults
OPTIMIZATION = {
    "target_score": 0.8,
    "max_iterations": 10,
    "early_stopping_rounds": 2,
    "min_improvement": 0.01,
}

# Matches below this confidence never reach the scorer
MIN_MATCH_CONFIDENCE = 0.5

# Importance used when an element carries none
DEFAULT_IMPORTANCE = 0.5

# Lexical importance cues, evaluated case-insensitively, longest cue first.
# The highest scoring class present in a context wins.
IMPORTANCE_CUES = {
    0.95: ["required", "must have", "essential", "mandatory", "critical", "necessary"],
    0.75: ["strongly preferred", "highly desired", "important", "strongly recommended"],
    0.40: ["preferred", "nice to have", "bonus", "plus", "optional", "a plus"],
}

CONTEXT_SEPARATOR = " | "

# Seniority terms route an element to the "level" dimension
SENIORITY_TERMS = [
    "senior", "sr", "junior", "jr", "lead", "principal", "staff",
    "entry level", "entry-level", "mid level", "mid-level", "intern",
    "head of", "director", "vp", "executive",
]

# Gap prioritization thresholds
GAP_PRIORITY = {
    "high": 0.8,
    "medium": 0.5,
}

# Static synonym table injected into the LLM matcher (read-only)
SYNONYMS = {
    "javascript": ["js", "ecmascript"],
    "typescript": ["ts"],
    "python": ["py"],
    "react": ["reactjs", "react.js"],
    "vue": ["vuejs", "vue.js"],
    "angular": ["angularjs"],
    "postgresql": ["postgres", "psql"],
    "mongodb": ["mongo"],
    "kubernetes": ["k8s"],
    "leadership": ["led team", "managed team", "team lead"],
    "communication": ["communicate", "communicating"],
    "problem solving": ["problem-solving", "troubleshooting"],
    "senior": ["sr", "lead", "principal"],
    "junior": ["jr", "entry level", "entry-level"],
}

# Skill normalization mappings applied to extractor output
SKILL_NORMALIZATIONS = {
    "react.js": "React",
    "reactjs": "React",
    "react js": "React",
    "node.js": "Node.js",
    "nodejs": "Node.js",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "python3": "Python",
    "amazon web services": "AWS",
    "microsoft azure": "Azure",
    "google cloud": "GCP",
}

# LLM configuration
LLM_CONFIG = {
    "temperature": 0,  # For maximum consistency
    "model": "gpt-4o",  # Default model
    "max_retries": 3,
}

# Model id prefixes that reject a custom temperature
FIXED_TEMPERATURE_MODELS = ("o1", "o3", "o4", "gpt-5")
# Model id prefixes that accept response_format json_object
JSON_MODE_MODELS = ("gpt-4", "gpt-5")


class DimensionWeights(BaseModel):
    """Per-dimension weights. Summing to 1.0 is a class invariant."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    keywords: float = Field(default=WEIGHTS["keywords"], ge=0.0, le=1.0)
    skills: float = Field(default=WEIGHTS["skills"], ge=0.0, le=1.0)
    attributes: float = Field(default=WEIGHTS["attributes"], ge=0.0, le=1.0)
    experience: float = Field(default=WEIGHTS["experience"], ge=0.0, le=1.0)
    level: float = Field(default=WEIGHTS["level"], ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_sum(self) -> "DimensionWeights":
        total = sum(self.as_dict().values())
        if not math.isclose(total, 1.0, abs_tol=WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"weights must sum to 1.0 (current sum: {total:.4f})")
        return self

    def as_dict(self) -> Dict[str, float]:
        return {
            "keywords": self.keywords,
            "skills": self.skills,
            "attributes": self.attributes,
            "experience": self.experience,
            "level": self.level,
        }


class OptimizationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_score: float = Field(default=OPTIMIZATION["target_score"], ge=0.0, le=1.0)
    max_iterations: int = Field(default=OPTIMIZATION["max_iterations"], ge=1)
    early_stopping_rounds: int = Field(default=OPTIMIZATION["early_stopping_rounds"], ge=1)
    min_improvement: float = Field(default=OPTIMIZATION["min_improvement"], ge=0.0)


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=(), frozen=True)
    openai_api_key: Optional[str] = None
    model_name: str = LLM_CONFIG["model"]
    weights: DimensionWeights = Field(default_factory=DimensionWeights)
    optimization: OptimizationConfig = Field(default_factory=OptimizationConfig)


ConfigModel = TypeVar("ConfigModel", bound=BaseModel)


def build_config(model_cls: Type[ConfigModel], values: Union[ConfigModel, Mapping[str, Any], None]) -> ConfigModel:
    """
    Validate configuration values into ``model_cls``.

    Accepts an existing instance (re-validated), a mapping of overrides on top
    of the defaults, or None for defaults. Any violation is raised as
    ConfigurationError instead of pydantic's ValidationError.
    """
    if isinstance(values, model_cls):
        values = values.model_dump()
    try:
        return model_cls(**dict(values or {}))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or model_cls.__name__
        raise ConfigurationError(field, first.get("msg", str(e))) from e
    except TypeError as e:
        raise ConfigurationError(model_cls.__name__, str(e)) from e


def build_weights(weights: Union[DimensionWeights, Mapping[str, float], None] = None) -> DimensionWeights:
    return build_config(DimensionWeights, weights)


def build_optimization_config(
    config: Union[OptimizationConfig, Mapping[str, Any], None] = None
) -> OptimizationConfig:
    return build_config(OptimizationConfig, config)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """
    Load settings from the environment (and a .env file when present).

    Variables: RESUME_FIT_TARGET_SCORE, RESUME_FIT_MAX_ITERATIONS,
    RESUME_FIT_EARLY_STOPPING_ROUNDS, RESUME_FIT_MIN_IMPROVEMENT,
    RESUME_FIT_WEIGHT_<DIMENSION>, OPENAI_MODEL, OPENAI_API_KEY.

    Raises:
        ConfigurationError: If the resulting weights or thresholds are invalid
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)

    weights = build_weights({
        name: _env_float(f"RESUME_FIT_WEIGHT_{name.upper()}", default)
        for name, default in WEIGHTS.items()
    })
    optimization = build_optimization_config({
        "target_score": _env_float("RESUME_FIT_TARGET_SCORE", OPTIMIZATION["target_score"]),
        "max_iterations": _env_int("RESUME_FIT_MAX_ITERATIONS", OPTIMIZATION["max_iterations"]),
        "early_stopping_rounds": _env_int(
            "RESUME_FIT_EARLY_STOPPING_ROUNDS", OPTIMIZATION["early_stopping_rounds"]
        ),
        "min_improvement": _env_float("RESUME_FIT_MIN_IMPROVEMENT", OPTIMIZATION["min_improvement"]),
    })

    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        model_name=os.getenv("OPENAI_MODEL", LLM_CONFIG["model"]),
        weights=weights,
        optimization=optimization,
    )
