"""Booking domain - booking creation with a frozen pricing breakdown"""
