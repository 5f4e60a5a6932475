"""Run session sources and the local session cache.

Modules:
    source     — TelemetrySource ABC and the health-export reader
    cache      — RunSessionCache ABC and its JSON file implementation
    repository — Incremental/full refresh policy over the cache
"""
