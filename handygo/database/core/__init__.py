"""
Service layer.

- funcs: authentication orchestration (send/verify code, register, login, profile)
- message_funcs: task-scoped direct messages and conversation summaries
"""
