"""
Seed Data

Fills an empty database with the default access codes, the department /
subject catalog and (optionally) a first administrator. Safe to run on
every start: each group is only inserted when its table is empty.
"""

import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import get_password_hash
from app.models import AccessCode, Department, Subject
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_CODES = [
    "OPERATIVE2024",
    "MISSION2024",
    "ACADEMIC2024",
    "RNPATH2024",
    "STUDY2024",
]

# (name, code, icon)
DEFAULT_DEPARTMENTS = [
    ("Medicine & Nursing", "MED", "🏥"),
    ("Engineering", "ENG", "⚙️"),
    ("Science", "SCI", "🔬"),
    ("Business", "BUS", "📊"),
    ("General Studies", "GEN", "📚"),
]

# department code -> [(subject code, name, estimated hours)]
DEFAULT_SUBJECTS = {
    "MED": [
        ("MED101", "Human Anatomy", 35),
        ("MED102", "Human Physiology", 35),
        ("MED103", "Anatomy & Physiology Combined", 40),
        ("NUR101", "Fundamentals of Nursing", 30),
        ("NUR102", "Nursing Ethics & Law", 20),
        ("NUR201", "Medical-Surgical Nursing", 45),
        ("NUR202", "Pediatric Nursing", 30),
        ("NUR203", "Obstetric Nursing", 35),
        ("NUR204", "Psychiatric Nursing", 30),
        ("NUR205", "Community Health Nursing", 25),
        ("NUR301", "Critical Care Nursing", 35),
        ("NUR302", "Emergency Nursing", 30),
        ("MED201", "Pharmacology", 40),
        ("MED202", "Pathophysiology", 35),
        ("MED203", "Microbiology", 30),
        ("MED204", "Biochemistry", 35),
        ("MED205", "Medical Immunology", 25),
        ("MED206", "Histology", 25),
        ("MED207", "Embryology", 20),
        ("MED301", "Clinical Medicine", 45),
        ("MED302", "Medical Diagnostics", 30),
        ("MED303", "Health Assessment", 25),
    ],
    "ENG": [
        ("ENG101", "Engineering Mathematics I", 35),
        ("ENG102", "Engineering Mathematics II", 35),
        ("ENG103", "Engineering Mathematics III", 35),
        ("ENG104", "Linear Algebra", 25),
        ("ENG105", "Differential Equations", 30),
        ("ENG201", "Thermodynamics", 35),
        ("ENG202", "Fluid Mechanics", 35),
        ("ENG203", "Mechanics of Materials", 35),
        ("ENG204", "Engineering Mechanics", 30),
        ("ENG205", "Electrical Circuits", 35),
        ("ENG206", "Electronics Basics", 30),
        ("ENG207", "Digital Logic Design", 30),
        ("ENG301", "Control Systems", 35),
        ("ENG302", "Signals and Systems", 35),
        ("ENG303", "Engineering Economics", 20),
    ],
    "SCI": [
        ("SCI101", "Physics I (Mechanics)", 35),
        ("SCI102", "Physics II (E&M)", 35),
        ("SCI103", "Physics III (Waves)", 30),
        ("SCI104", "Modern Physics", 30),
        ("SCI201", "General Chemistry I", 35),
        ("SCI202", "General Chemistry II", 35),
        ("SCI203", "Organic Chemistry I", 40),
        ("SCI204", "Organic Chemistry II", 40),
        ("SCI205", "Physical Chemistry", 35),
        ("SCI301", "General Biology I", 30),
        ("SCI302", "General Biology II", 30),
        ("SCI303", "Cell Biology", 30),
        ("SCI304", "Genetics", 35),
        ("SCI305", "Molecular Biology", 35),
        ("SCI306", "Ecology", 25),
    ],
    "BUS": [
        ("BUS101", "Principles of Accounting I", 35),
        ("BUS102", "Principles of Accounting II", 35),
        ("BUS103", "Financial Accounting", 35),
        ("BUS104", "Managerial Accounting", 30),
        ("BUS201", "Microeconomics", 30),
        ("BUS202", "Macroeconomics", 30),
        ("BUS203", "Business Statistics", 35),
        ("BUS204", "Business Mathematics", 30),
        ("BUS301", "Financial Management", 35),
        ("BUS302", "Marketing Principles", 25),
        ("BUS303", "Business Law", 30),
        ("BUS304", "Management Principles", 25),
        ("BUS305", "Operations Management", 30),
        ("BUS306", "Human Resource Management", 25),
        ("BUS307", "Entrepreneurship", 20),
    ],
    "GEN": [
        ("GEN101", "Use of English I", 25),
        ("GEN102", "Use of English II", 25),
        ("GEN103", "Communication Skills", 20),
        ("GEN104", "Technical Writing", 20),
        ("GEN201", "Philosophy & Logic", 25),
        ("GEN202", "Nigerian History", 20),
        ("GEN203", "Citizenship Education", 15),
        ("GEN204", "Peace Studies", 15),
        ("GEN301", "Computer Fundamentals", 25),
        ("GEN302", "Introduction to Programming", 35),
        ("GEN303", "Web Development Basics", 30),
        ("GEN304", "Data Analysis Basics", 25),
    ],
}


async def _is_empty(db: AsyncSession, model) -> bool:
    result = await db.execute(select(func.count(model.id)))
    return (result.scalar() or 0) == 0


async def seed_access_codes(db: AsyncSession) -> int:
    if not await _is_empty(db, AccessCode):
        return 0
    for code in DEFAULT_ACCESS_CODES:
        db.add(AccessCode(code=code, used=False))
    await db.flush()
    return len(DEFAULT_ACCESS_CODES)


async def seed_catalog(db: AsyncSession) -> int:
    """Insert departments and their subjects. Returns the number of subjects."""
    if not await _is_empty(db, Department):
        return 0

    inserted = 0
    for name, code, icon in DEFAULT_DEPARTMENTS:
        department = Department(name=name, code=code, icon=icon, is_active=True)
        db.add(department)
        await db.flush()
        for subject_code, subject_name, hours in DEFAULT_SUBJECTS.get(code, []):
            db.add(
                Subject(
                    department_id=department.id,
                    code=subject_code,
                    name=subject_name,
                    estimated_hours=hours,
                    is_active=True,
                )
            )
            inserted += 1
    await db.flush()
    return inserted


async def seed_admin(db: AsyncSession) -> bool:
    """Create the configured administrator if that email is not registered yet."""
    if not settings.INITIAL_ADMIN_EMAIL or not settings.INITIAL_ADMIN_PASSWORD:
        return False

    user_repo = UserRepository(db)
    if await user_repo.get_by_email(settings.INITIAL_ADMIN_EMAIL):
        return False

    user_repo.add_user(
        email=settings.INITIAL_ADMIN_EMAIL,
        password_hash=get_password_hash(settings.INITIAL_ADMIN_PASSWORD),
        is_admin=True,
    )
    await db.flush()
    return True


async def seed_database(db: AsyncSession) -> None:
    """Run every seed step in one transaction."""
    codes = await seed_access_codes(db)
    subjects = await seed_catalog(db)
    admin_created = await seed_admin(db)
    await db.commit()

    if codes:
        logger.info(f"Seeded {codes} default access codes")
    if subjects:
        logger.info(f"Seeded {len(DEFAULT_DEPARTMENTS)} departments with {subjects} subjects")
    if admin_created:
        logger.info(f"Created initial admin {settings.INITIAL_ADMIN_EMAIL}")
