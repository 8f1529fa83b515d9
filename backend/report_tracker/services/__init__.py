"""Report Tracker - Services"""
