"""
Durable Work Queue

A minimal durable job queue: producers submit typed jobs, polling workers claim
them one at a time with an atomic claim, and report completion or failure.
Timed-out jobs are retried once before being failed.
"""

__version__ = "1.0.0"
