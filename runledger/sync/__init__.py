"""Run log synchronisation for RunLedger.

Modules:
    results      — SyncResult variants and the scheduler verdict mapping
    status_store — Persistent per-run sync state (PENDING / SYNCED / FAILED)
    credentials  — Server credential storage
    api_client   — httpx client for the remote run log API
    repository   — Batch upload of unsynced runs
    scheduler    — Periodic and one-time background passes with backoff
    setup        — Pairing and unpairing with a server
"""
