"""Prefect orchestration.

  - insights.refresh_weather: Open-Meteo archive -> weather observations
  - insights.build_insights: forecast, impacts, correlations, accuracy -> report

Tasks share the module-level ``store``; tests swap it for a ``MemoryStore``.
"""
