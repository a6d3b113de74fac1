"""Configuration management for the athlete recovery engine."""

import os
from typing import Dict
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database (SQL-backed result cache)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///:memory:")

    # Result Cache
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "memory")  # memory or sql
    CACHE_TTL_HOURS: float = float(os.getenv("CACHE_TTL_HOURS", "24"))

    # Composite Recovery Weights
    DOMAIN_WEIGHT_SLEEP: float = float(os.getenv("DOMAIN_WEIGHT_SLEEP", "0.30"))
    DOMAIN_WEIGHT_NUTRITION: float = float(os.getenv("DOMAIN_WEIGHT_NUTRITION", "0.25"))
    DOMAIN_WEIGHT_STRESS: float = float(os.getenv("DOMAIN_WEIGHT_STRESS", "0.25"))
    DOMAIN_WEIGHT_WORKLOAD: float = float(os.getenv("DOMAIN_WEIGHT_WORKLOAD", "0.20"))

    # Domains scoring below this contribute their recommendations
    RECOMMENDATION_SCORE_GATE: float = float(os.getenv("RECOMMENDATION_SCORE_GATE", "70"))

    # Athlete targets
    TARGET_CALORIES: float = float(os.getenv("TARGET_CALORIES", "2500"))
    OPTIMAL_WEEKLY_HOURS: float = float(os.getenv("OPTIMAL_WEEKLY_HOURS", "12"))

    # Request defaults
    DEFAULT_TIMEFRAME_DAYS: int = int(os.getenv("DEFAULT_TIMEFRAME_DAYS", "7"))
    DEFAULT_TREND_DAYS: int = int(os.getenv("DEFAULT_TREND_DAYS", "30"))
    DEFAULT_HORIZON_PERIODS: int = int(os.getenv("DEFAULT_HORIZON_PERIODS", "12"))

    # Injury risk probability: "random" draws inside the tier band, "midpoint" is reproducible
    RISK_PROBABILITY_MODE: str = os.getenv("RISK_PROBABILITY_MODE", "random")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_domain_weights(cls) -> Dict[str, float]:
        """Get composite weights keyed by recovery domain."""
        return {
            "sleep": cls.DOMAIN_WEIGHT_SLEEP,
            "nutrition": cls.DOMAIN_WEIGHT_NUTRITION,
            "stress": cls.DOMAIN_WEIGHT_STRESS,
            "workload": cls.DOMAIN_WEIGHT_WORKLOAD,
        }

    @classmethod
    def cache_ttl_seconds(cls) -> float:
        """Get result cache time-to-live in seconds."""
        return cls.CACHE_TTL_HOURS * 3600

    @classmethod
    def use_midpoint_probability(cls) -> bool:
        """Check whether injury probabilities should be reproducible."""
        return cls.RISK_PROBABILITY_MODE.lower() == "midpoint"

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration."""
        weights = cls.get_domain_weights()
        if any(weight <= 0 for weight in weights.values()):
            raise ValueError(f"Domain weights must be positive, got {weights}")
        if cls.CACHE_TTL_HOURS <= 0:
            raise ValueError(f"CACHE_TTL_HOURS must be positive, got {cls.CACHE_TTL_HOURS}")
        if cls.CACHE_BACKEND not in ("memory", "sql"):
            raise ValueError(f"Unknown CACHE_BACKEND '{cls.CACHE_BACKEND}' (expected memory or sql)")
        return True


config = Config()
