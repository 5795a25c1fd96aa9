"""LifeOS workers: daily life-score rollup and its background job runtime."""

__version__ = "0.1.0"
