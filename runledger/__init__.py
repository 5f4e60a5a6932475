"""RunLedger: run telemetry metrics and batch sync to a self-hosted run log.

Subpackages:
    metrics/  — Pace and per-kilometre split computation
    sessions/ — Telemetry sources, run cache and refresh policy
    sync/     — Sync state, API client, batch upload and scheduling
    models/   — Pydantic wire and API schemas
    routers/  — Local operations API

Core modules:
    config        — Environment settings (pydantic-settings)
    config_loader — Load/validate sync_config.yaml
    storage       — Atomic JSON file persistence
    dependencies  — Service wiring for the API
    main          — FastAPI application entry point
"""
