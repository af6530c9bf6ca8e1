"""Scheduling domain - Weekly templates and session generation"""
