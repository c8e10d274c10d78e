"""
Background Tasks Module

This module contains all background task definitions for ARQ workers.

Task Organization:
-----------------
- email_tasks.py: Outgoing email (welcome, access codes, unlock decisions, password reset)

How Tasks Work:
--------------
1. FastAPI app enqueues a job: await pool.enqueue_job('task_name', arg=value)
2. Redis stores the job in a queue
3. ARQ worker polls Redis and picks up the job
4. Worker executes the task function
5. Result (or error) is stored back in Redis

Running Workers:
---------------
    arq app.worker.WorkerSettings
"""

from app.tasks.email_tasks import send_email_job

# Names used when enqueueing: enqueue_job('send_email_job', ...)
__all__ = [
    "send_email_job",
]
