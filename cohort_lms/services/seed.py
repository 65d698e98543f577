"""
Seed Data

Builds the default 26-week course (three phases), placeholder content,
an admin account and a sample student with week 1 unlocked.

Run with ``python -m cohort_lms.services.seed``. Existing tables are
dropped and recreated.
"""

import asyncio
import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from cohort_lms.core.database import Base, close_db, get_engine, get_session_maker
from cohort_lms.models.content import Content
from cohort_lms.models.enums import UserRole
from cohort_lms.models.phase import Phase
from cohort_lms.models.week import Week
from cohort_lms.services import user_service


logger = logging.getLogger(__name__)


COURSE_START = date(2026, 1, 26)

PHASES = [
    {
        "number": 1,
        "title": "Foundation",
        "description": "Learn Dart basics and Flutter fundamentals",
        "start_week": 1,
        "end_week": 8,
        "color": "#10B981",
    },
    {
        "number": 2,
        "title": "Intermediate",
        "description": "Master state management, APIs, and databases",
        "start_week": 9,
        "end_week": 16,
        "color": "#F59E0B",
    },
    {
        "number": 3,
        "title": "Advanced & Portfolio",
        "description": "Advanced topics, testing, deployment, and capstone projects",
        "start_week": 17,
        "end_week": 26,
        "color": "#3B82F6",
    },
]

# (title, description) per week, in course order
WEEKS = [
    ("Flutter setup + Dart basics", "Variables, control flow"),
    ("Dart functions, null safety + first Flutter widgets", "Functions and basic widgets"),
    ("Layout widgets", "Row, Column, Stack, ListView"),
    ("Forms & interactivity", "TextField, Buttons, Checkbox, Themes"),
    ("Stateful widgets + simple state management", "Navigation basics"),
    ("Packages & persistence", "shared_preferences, intl, loading indicators"),
    ("Consolidation", "Review & polish todo app, deploy to web"),
    ("Mini-project", "Daily Journal app, edit/delete entries, sort by date"),
    ("State Management intro", "Riverpod, Provider, Notifier, ConsumerWidget"),
    ("Riverpod deep dive", "flutter_bloc overview, undo/redo functionality"),
    ("Navigation", "go_router, routes, path/query params, BottomNavigationBar, tabs"),
    ("APIs & Networking", "http, dio, JSON parsing, FutureBuilder, fetch posts"),
    ("Advanced APIs", "POST/PUT/DELETE, Auth, caching with hive/shared_preferences"),
    ("Local DB & Cloud", "hive, drift/sqflite, Firebase setup, Auth, Firestore"),
    ("Cloud integration", "StreamBuilder, Riverpod + Firebase, offline support"),
    ("Intermediate consolidation", "Build News Reader app, polish categories/favorites"),
    ("Animations", "AnimatedContainer, Hero, AnimationController, Lottie/Rive"),
    ("UI polish & responsive", "MediaQuery, LayoutBuilder, flutter_screenutil, themes, fonts, intl, accessibility"),
    ("Testing", "Unit, widget, integration tests, mocktail"),
    ("Performance & optimization", "DevTools, const constructors, image caching, list optimization"),
    ("Deployment", "Android/iOS/web builds, Firebase App Distribution, Play Store, Netlify"),
    ("Capstone Project 1 Start", "E-commerce clone (Fake Store API + Riverpod + mock checkout)"),
    ("Capstone Project 1 Finish", "Animations, tests, polish, deploy, GitHub portfolio"),
    ("Capstone Project 2", "Chat/News/Social app skeleton (Firebase), notifications basics"),
    ("Capstone Project 3 + Portfolio", "Your own idea (weather, fitness, expense tracker), polish & deploy 2-3 apps"),
    ("Final review & next steps", "Fix bugs, update GitHub, explore advanced topics (plugins, desktop apps)"),
]

RESOURCES = [
    {"title": "Flutter Documentation", "url": "https://flutter.dev/docs", "type": "documentation"},
    {"title": "Dart Language Tour", "url": "https://dart.dev/guides/language/language-tour", "type": "tutorial"},
]

PLACEHOLDER_VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"
STUDENT_EMAIL = "student@example.com"
STUDENT_PASSWORD = "student123"


def week_dates(week_number: int) -> tuple[date, date]:
    start = COURSE_START + timedelta(weeks=week_number - 1)
    return start, start + timedelta(days=6)


def phase_for(week_number: int) -> dict:
    return next(p for p in PHASES if p["start_week"] <= week_number <= p["end_week"])


def placeholder_content(week: Week) -> Content:
    """Published content with a deadline one day after the week ends."""
    deadline = datetime.combine(week.end_date, time.min, tzinfo=timezone.utc) + timedelta(days=1)
    return Content(
        week_id=week.id,
        instructions=(
            f"Welcome to Week {week.week_number}: {week.title}\n\n{week.description}\n\n"
            "This week you will learn important concepts and complete practical exercises. "
            "Make sure to watch the video content and submit your assignment on time."
        ),
        notes=f"Week {week.week_number} study notes and additional resources will be provided here.",
        video_url=PLACEHOLDER_VIDEO_URL,
        video_duration=1800,
        assignment_description=(
            f"Complete the Week {week.week_number} assignment focusing on: {week.description}. "
            "Submit your code as a ZIP file or provide a GitHub repository link."
        ),
        assignment_deadline=deadline,
        multiple_choice_questions=[],
        resources=[dict(r) for r in RESOURCES],
        is_published=True,
    )


async def seed_database(db: AsyncSession) -> None:
    """Insert the default course, accounts and first-week unlock."""
    phases = {}
    for data in PHASES:
        phase = Phase(required_points_percentage=80, is_active=True, **data)
        db.add(phase)
        phases[data["number"]] = phase
    await db.flush()
    logger.info("Created %d phases", len(phases))

    weeks = []
    for number, (title, description) in enumerate(WEEKS, start=1):
        start, end = week_dates(number)
        week = Week(
            phase_id=phases[phase_for(number)["number"]].id,
            week_number=number,
            title=title,
            description=description,
            start_date=start,
            end_date=end,
            max_points=100,
            video_points=40,
            assignment_points=60,
            order=number,
        )
        db.add(week)
        weeks.append(week)
    await db.flush()
    logger.info("Created %d weeks", len(weeks))

    for week in weeks:
        db.add(placeholder_content(week))
    await db.flush()

    await user_service.create_user(
        ADMIN_EMAIL, ADMIN_PASSWORD, "Course Administrator", db, role=UserRole.ADMIN,
    )
    await user_service.create_user(STUDENT_EMAIL, STUDENT_PASSWORD, "John Doe", db)
    logger.info("Seeded accounts: %s / %s, %s / %s", ADMIN_EMAIL, ADMIN_PASSWORD, STUDENT_EMAIL, STUDENT_PASSWORD)


async def main() -> None:
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables recreated")

    try:
        async with get_session_maker()() as session:
            await seed_database(session)
            await session.commit()
        logger.info("Seeding completed")
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(main())
