"""
TimeOut community API.

Study check-ins, peer photo verification, points, streaks, leaderboards,
achievements and study groups.
"""
