"""
scheduling_api.observability

JSON logging (`logging`) and per-request log context (`middleware`), used by both the
API process and the job worker.
"""
