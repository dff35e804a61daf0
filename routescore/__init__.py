"""
Core scoring and analytics for crowd-sourced transit incident reports

- scoring.py: composite 0-5 route scores (persisted)
- scheduler.py: hourly background recomputation
- analytics.py: efficiency, travel time, alternatives, trends, demand
- recommendations.py: personalized route recommendations
"""
