"""Leaderboard services: validated best-time submissions and top-N queries."""
