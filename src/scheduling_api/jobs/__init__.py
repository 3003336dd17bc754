"""
scheduling_api.jobs

Background jobs (arq over Redis).

Responsibilities:
- Enqueue jobs from the API through a small queue interface.
- Define task functions and the arq worker configuration.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Run the worker with: `arq scheduling_api.jobs.worker.WorkerSettings`.
