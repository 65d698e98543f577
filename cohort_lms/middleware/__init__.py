"""
Cohort LMS - Middleware Module
"""

from cohort_lms.middleware.rate_limit import RateLimiter, RateLimitMiddleware

__all__ = ["RateLimiter", "RateLimitMiddleware"]
