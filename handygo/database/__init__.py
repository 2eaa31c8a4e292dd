"""
Database package: configuration, entities, DAOs, transaction helpers and the
service functions (`core`) that the HTTP layer calls.
"""
