"""
HandyGo backend: accounts, email verification, cookie sessions and
task-scoped direct messages for the task marketplace.

Run with ``uvicorn handygo.main:app``.
"""
