"""Relay domain services: room membership, per-connection sessions and
occupancy snapshots.

Everything here is process-local and in memory. Socket handlers own the
transport side; these modules only track who is where.
"""
