"""
Cohort LMS backend.
"""
