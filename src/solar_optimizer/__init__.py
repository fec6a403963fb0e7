"""Solar Optimizer: tracker telemetry ingestion, weather enrichment and power forecast."""

try:
    from importlib.metadata import version as _pkg_version
    __version__ = _pkg_version("solar-optimizer")
except Exception:
    __version__ = "dev"
