"""Ephemeral Database Provisioner (EDP).

Single-shot tool that:
 - makes sure a database image and a named container exist
 - reuses the container when it already reports healthy, recreates it otherwise
 - waits for the engine-reported health check to pass
 - runs a short scripted schema + CRUD session against the database

Built for disposable development sandboxes, one environment at a time.
"""
