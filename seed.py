import random
from datetime import date, timedelta
from faker import Faker
from huda.core.records import StudentStatus, Term, UserRole
from huda.crud.students import create_user
from huda.database import SessionLocal, engine
from huda.models.all_models import AttendanceRecord, Base, Gender, Grade, Participation, Rating, Student, Subject, User, local_today
from huda.services.escalation import run_escalation


fake = Faker(['de_DE'])

CLASSES = ["Anfänger A", "Anfänger B", "Fortgeschrittene", "Arabisch", "Imam"]
SUBJECTS = ["Qur'an", "Tajwid", "Arabisch", "Fiqh", "Sira", "Akhlaq"]


def school_days(end: date, count: int):
    """The last ``count`` weekend lesson days (Sat/Sun) up to ``end``, newest first"""
    days = []
    day = end
    while len(days) < count:
        if day.weekday() >= 5:
            days.append(day)
        day -= timedelta(days=1)
    return days


def generate_student_data(class_name):
    gender = random.choice(list(Gender))
    first_name = fake.first_name_male() if gender == Gender.BOY else fake.first_name_female()
    return {
        'first_name': first_name,
        'last_name': fake.last_name(),
        'gender': gender,
        'birth_date': fake.date_of_birth(minimum_age=6, maximum_age=16),
        'class_name': class_name,
        'guardian': fake.name(),
        'address': fake.address().replace("\n", ", "),
        'whatsapp': fake.phone_number(),
        'lesson_times': random.choice(["Sa 10-13 Uhr", "So 10-13 Uhr", "Sa+So 14-17 Uhr"]),
        'status': StudentStatus.ACTIVE,
    }


def seed_staff(session):
    if session.query(User).filter(User.role == UserRole.PRINCIPAL).first():
        print("⚠️  Principal already exists, skipping staff")
        return

    create_user(session, username="admin", password="admin123", name="Schulleitung", role=UserRole.PRINCIPAL)
    for i, class_name in enumerate(CLASSES, start=1):
        create_user(
            session,
            username=f"lehrer{i}",
            password="lehrer123",
            name=fake.name(),
            role=UserRole.TEACHER,
            whatsapp=fake.phone_number(),
            assigned_classes=[class_name],
        )
    session.flush()


def seed_subjects(session):
    for position, name in enumerate(SUBJECTS, start=1):
        if not session.query(Subject).filter(Subject.name == name).first():
            session.add(Subject(name=name, position=position))
    session.flush()


def seed_students(session, per_class=8):
    students = []
    for class_name in CLASSES:
        for _ in range(per_class):
            student = Student(**generate_student_data(class_name))
            session.add(student)
            students.append(student)
    session.flush()
    return students


def seed_attendance(session, students, days=20):
    lesson_days = school_days(local_today(), days)
    # A few chronic absentees so the yellow and red lists are not empty
    chronic = set(s.id for s in random.sample(students, k=min(3, len(students))))
    for student in students:
        for day in lesson_days:
            if student.id in chronic:
                is_present = False
            else:
                is_present = random.random() > 0.1
            session.add(AttendanceRecord(student_id=student.id, date=day, is_present=is_present))
    session.flush()


def seed_grades(session, students):
    for student in students:
        for term in Term:
            # Leave some reports incomplete
            graded = SUBJECTS if random.random() > 0.3 else random.sample(SUBJECTS, k=len(SUBJECTS) - 1)
            for subject in graded:
                session.add(Grade(student_id=student.id, subject=subject, term=term, points=random.randint(8, 20)))
            session.add(Participation(
                student_id=student.id,
                term=term,
                behaviour=random.choice(list(Rating)),
                presentation=random.choice(list(Rating)),
                punctuality=random.choice(list(Rating)),
                bonus_points=random.randint(0, 5),
            ))
    session.flush()


def seed_database():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed_staff(session)
        seed_subjects(session)
        students = seed_students(session)
        seed_attendance(session, students)
        seed_grades(session, students)
        session.commit()

        result = run_escalation(session, trigger="manual")

        print("\n" + "="*60)
        print("✅ SEEDING COMPLETED SUCCESSFULLY!")
        print("="*60)
        print(f"🎓 Students added: {len(students)}")
        print(f"📚 Subjects: {len(SUBJECTS)}")
        print(f"🟡 Yellow list this month: {len(result.flagged)}")
        print(f"🔴 Dismissed: {len(result.dismissed)}")

    except Exception as e:
        session.rollback()
        print(f"❌ Error during seeding: {str(e)}")
        raise
    finally:
        session.close()

if __name__ == "__main__":
    print("🏫 Huda Demo Data Seeding Script")
    print("=" * 60)

    seed_database()
