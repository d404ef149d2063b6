"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants
    └── {feature}.py      # Fetch functions and conversions to observations

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above. See ``weather/``.

2. Write fetch functions that return dicts::

       from energy_today.services.http import session

       def fetch_something(start, end) -> dict[str, Any]:
           resp = session.get(API_URL, params={...})
           resp.raise_for_status()
           return resp.json()

3. Convert responses to ``schemas.Observation`` so the correlation engine
   can use them, and re-export the public API with ``__all__``.

4. Wire into ``flows/insights.py``: a ``@task`` that fetches, a store key,
   and ``CorrelationEngine.record_many`` for the observations.

5. Add tests in ``tests/test_{name}.py``.
"""
