"""Scheduler module for the calendar scrape and email notification jobs.

Schedule overview:
  - at start, then hourly - Campus calendar scrape
  - every minute          - Sweep due pending notifications
  - 00:00 daily           - Queue the coming day's digest notifications
"""
