import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from scheduler.db.tables import Level, SchoolClass, TeacherSubjectAssignment, User
from scheduler.exceptions import ClassNotFound, TeacherCapacityExceeded
from scheduler.models.class_ref import ClassRef
from scheduler.models.subject import SUBJECTS, Subject
from scheduler.models.teacher import MAX_CLASSES_PER_TEACHER, TeacherRef

logger = logging.getLogger(__name__)

# A create that hits the unique class_id is retried once as an update
WRITE_ATTEMPTS = 2


def empty_assignment() -> Dict[str, Optional[str]]:
    return {subject.record_field: None for subject in SUBJECTS}


def _record_to_dict(record: TeacherSubjectAssignment) -> Dict[str, Optional[str]]:
    return {subject.record_field: getattr(record, subject.record_field) for subject in SUBJECTS}


def _user_to_teacher(user: User) -> TeacherRef:
    return TeacherRef(id=user.id, name=user.name, specialty_subject=user.subject, role=user.role)


class ScheduleRepository:
    """
    Storage collaborator used by the schedule services.

    Classes, levels and users are only read here; their CRUD lives
    elsewhere. The only table written is teacher_subject_assignments.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def list_classes(self, class_ids: Optional[Iterable[str]] = None) -> List[ClassRef]:
        """
        Loads classes that have a level, in the order ordinal indices derive from.

        The ordinal index is always the position in the full ordered list, so a
        filtered request rotates each class exactly as an unfiltered one does.

        Args:
            class_ids: Optional subset of class ids to return

        Returns:
            Ordered list of ClassRef
        """
        stmt = (
            select(SchoolClass)
            .join(Level, SchoolClass.level_id == Level.id)
            .order_by(Level.level, Level.stage, SchoolClass.location, SchoolClass.id)
        )
        with self._session_factory() as session:
            rows = session.execute(stmt).unique().scalars().all()

        wanted = {str(class_id) for class_id in class_ids} if class_ids else None
        classes = []
        for index, row in enumerate(rows):
            if wanted is not None and row.id not in wanted:
                continue
            classes.append(
                ClassRef(
                    id=row.id,
                    ordinal_index=index,
                    location=row.location,
                    level={"level": row.level.level, "stage": row.level.stage},
                )
            )
        return classes

    def class_exists(self, class_id: str) -> bool:
        with self._session_factory() as session:
            return session.get(SchoolClass, class_id) is not None

    def list_teachers(self, roles=("teacher",), subjects: Optional[Iterable[str]] = None) -> List[TeacherRef]:
        stmt = select(User).where(User.role.in_(roles)).order_by(User.name, User.id)
        if subjects is not None:
            stmt = stmt.where(User.subject.in_(list(subjects)))
        with self._session_factory() as session:
            return [_user_to_teacher(user) for user in session.execute(stmt).scalars()]

    def teacher_ids_for_subject(self, subject: Subject) -> List[str]:
        """Ids of instructional staff specialised in the subject"""
        return [teacher.id for teacher in self.list_teachers(subjects=[subject.value])]

    def get_user(self, user_id: str) -> Optional[TeacherRef]:
        with self._session_factory() as session:
            user = session.get(User, user_id)
            return _user_to_teacher(user) if user else None

    def get_assignments(self) -> Dict[str, Dict[str, Optional[str]]]:
        """All persisted assignment records keyed by class id"""
        with self._session_factory() as session:
            records = session.execute(select(TeacherSubjectAssignment)).scalars()
            return {record.class_id: _record_to_dict(record) for record in records}

    def get_assignment(self, class_id: str) -> Optional[Dict[str, Optional[str]]]:
        with self._session_factory() as session:
            record = session.get(TeacherSubjectAssignment, class_id)
            return _record_to_dict(record) if record else None

    def upsert_assignment(self, class_id: str, teachers: Dict[Subject, Optional[str]]) -> Dict[str, Optional[str]]:
        """
        Creates or fully replaces the assignment record of a class.

        Subjects missing from `teachers` are cleared. The class row is locked
        for the find-or-create and the update, and a create that loses the race
        to a concurrent writer is retried as an update.
        """
        values = {subject.record_field: teachers.get(subject) for subject in SUBJECTS}
        return self._write_assignment(class_id, values)

    def merge_assignment(self, class_id: str, updates: Dict[Subject, Optional[str]],
                         capped_teachers: Optional[Dict[str, str]] = None,
                         max_classes: int = MAX_CLASSES_PER_TEACHER) -> Dict[str, Optional[str]]:
        """
        Creates the record of a class or updates only the given subjects.

        A subject mapped to None is cleared; a subject absent from `updates`
        keeps its stored teacher.

        Args:
            class_id: Class to update
            updates: {Subject: teacher id or None}
            capped_teachers: {teacher id: name} of teachers whose class count
                             (other classes only) is checked against
                             `max_classes` inside the write transaction
            max_classes: Per-teacher class cap

        Raises:
            ClassNotFound: the class does not exist
            TeacherCapacityExceeded: a capped teacher already has `max_classes` other classes
        """
        values = {subject.record_field: teacher_id for subject, teacher_id in updates.items()}
        return self._write_assignment(class_id, values, capped_teachers, max_classes)

    def _find_record(self, session, class_id: str) -> Optional[TeacherSubjectAssignment]:
        return session.execute(
            select(TeacherSubjectAssignment)
            .where(TeacherSubjectAssignment.class_id == class_id)
            .with_for_update()
        ).scalar_one_or_none()

    def _write_assignment(self, class_id: str, values: Dict[str, Optional[str]],
                          capped_teachers: Optional[Dict[str, str]] = None,
                          max_classes: int = MAX_CLASSES_PER_TEACHER) -> Dict[str, Optional[str]]:
        for attempt in range(WRITE_ATTEMPTS):
            try:
                with self._session_factory.begin() as session:
                    # The class row serializes writers even when no record exists yet
                    locked = session.execute(
                        select(SchoolClass.id).where(SchoolClass.id == class_id).with_for_update()
                    ).scalar_one_or_none()
                    if locked is None:
                        raise ClassNotFound(class_id)

                    if capped_teachers:
                        self._check_capacity(session, class_id, capped_teachers, max_classes)

                    record = self._find_record(session, class_id)
                    if record is None:
                        record = TeacherSubjectAssignment(class_id=class_id, **empty_assignment())
                        session.add(record)
                        logger.debug(f"Creating assignment record for class {class_id}")

                    for field, teacher_id in values.items():
                        setattr(record, field, teacher_id)

                    session.flush()
                    return _record_to_dict(record)

            except IntegrityError:
                if attempt + 1 >= WRITE_ATTEMPTS:
                    raise
                logger.info(f"Assignment record for class {class_id} created concurrently, retrying as update")

    def _check_capacity(self, session, class_id: str, teachers: Dict[str, str], max_classes: int):
        # Writers assigning the same teacher wait here until the other commits
        session.execute(select(User.id).where(User.id.in_(list(teachers))).with_for_update()).all()

        over_limit = []
        for teacher_id, name in teachers.items():
            current = self._count_classes(session, teacher_id, exclude_class_id=class_id)
            if current >= max_classes:
                over_limit.append(f"{name} is already assigned to {current} classes (max {max_classes})")
        if over_limit:
            raise TeacherCapacityExceeded("; ".join(over_limit))

    def _count_classes(self, session, teacher_id: str, exclude_class_id: Optional[str] = None) -> int:
        """Number of classes whose record references the teacher in any subject"""
        stmt = select(TeacherSubjectAssignment.class_id).where(
            or_(*[getattr(TeacherSubjectAssignment, s.record_field) == teacher_id for s in SUBJECTS])
        )
        if exclude_class_id is not None:
            stmt = stmt.where(TeacherSubjectAssignment.class_id != exclude_class_id)
        return len(set(session.execute(stmt).scalars()))
