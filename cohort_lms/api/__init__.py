"""
Cohort LMS - API Module
"""
