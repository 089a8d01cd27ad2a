import pytest

from scheduler.db.database import create_session_factory, init_db
from scheduler.db.repository import ScheduleRepository
from scheduler.db.tables import Level, SchoolClass, User
from scheduler.models.class_ref import ClassRef
from scheduler.models.subject import Subject


class Seeder:
    """Writes the rows owned by other parts of the system (levels, classes, users)"""

    def __init__(self, session_factory):
        self._session_factory = session_factory
        self._levels = 0

    def level(self, level=1, stage=1):
        self._levels += 1
        level_id = f"level-{self._levels}"
        with self._session_factory.begin() as session:
            session.add(Level(id=level_id, level=level, stage=stage))
        return level_id

    def school_class(self, class_id, location, level_id=None):
        with self._session_factory.begin() as session:
            session.add(SchoolClass(id=class_id, location=location, level_id=level_id))
        return class_id

    def user(self, user_id, name, subject=None, role="teacher"):
        with self._session_factory.begin() as session:
            session.add(User(id=user_id, name=name, subject=subject, role=role))
        return user_id

    def set_subject(self, user_id, subject):
        with self._session_factory.begin() as session:
            session.get(User, user_id).subject = subject


@pytest.fixture
def session_factory(tmp_path):
    factory = create_session_factory({"url": f"sqlite:///{tmp_path / 'schedule.db'}", "echo": False})
    init_db(factory)
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture
def repository(session_factory):
    return ScheduleRepository(session_factory)


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def school(seed):
    """Three classes on one level and one teacher per subject"""
    level_id = seed.level(level=1, stage=1)
    for number in (1, 2, 3):
        seed.school_class(f"c{number}", f"Room {number}", level_id)
    seed.user("t-taks", "Mina", Subject.TAKS.value)
    seed.user("t-al7an", "Bishoy", Subject.AL7AN.value)
    seed.user("t-coptic", "Marina", Subject.COPTIC.value)
    return seed


def make_classes(count):
    return [ClassRef(id=f"c{i}", ordinal_index=i, location=f"Room {i}") for i in range(count)]
