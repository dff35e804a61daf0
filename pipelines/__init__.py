"""
Data pipelines for the route scoring service

This directory contains batch jobs that can run on schedules:
- compute_route_scores.py: Recompute composite route scores from incident reports
"""
