"""Energy Today - deterministic daily energy scores and how well they track real life.

Architecture::

    systems/       Numerology, lunar phase, five elements, weekday fortune (pure)
    engine/        Composite DailySnapshot from the four systems, LRU cache
    analysis/      Pure statistics: habit impact, correlation, forecast accuracy
    tracking/      Async services over the key-value store (observations, ratings)
    store.py       KeyValueStore protocol, memory and file backends, envelopes
    journal.py     Append-only bounded record logs
    datasources/   External APIs (Open-Meteo historical weather)
    flows/         Prefect orchestration (weather refresh, insights report)
    services/      Shared utilities (HTTP client with retry)

Data flow: profile + date -> systems -> engine (snapshot) -> tracking/analysis
joined against observations and ratings -> flows write the derived report.

Extension points - see each package's docstring for step-by-step guides:
  - New calculation system:  systems/__init__.py
  - New analysis:            analysis/__init__.py
  - New data source:         datasources/__init__.py
"""

__version__ = "0.1.0"

from energy_today.config import Settings
from energy_today.schemas import BirthProfile, Observation

__all__ = ["BirthProfile", "Observation", "Settings", "__version__"]
