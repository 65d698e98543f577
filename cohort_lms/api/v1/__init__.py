"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from cohort_lms.api.v1.endpoints import admin, auth, content, notifications, quiz, student, users

router = APIRouter()

# Include authentication routes
router.include_router(auth.router)

# Include user routes
router.include_router(users.router)

# Include student routes
router.include_router(student.router)

# Include quiz routes
router.include_router(quiz.router)

# Include admin routes
router.include_router(admin.router)

# Include curriculum routes
router.include_router(content.router)

# Include notification socket
router.include_router(notifications.router)
