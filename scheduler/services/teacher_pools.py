import logging
from typing import Dict, List, Optional

from scheduler.db.repository import ScheduleRepository
from scheduler.models.subject import SUBJECTS, Subject

logger = logging.getLogger(__name__)

TeacherPools = Dict[Subject, List[str]]


def _dedupe(teacher_ids) -> List[str]:
    seen = set()
    result = []
    for teacher_id in teacher_ids:
        if teacher_id and teacher_id not in seen:
            seen.add(teacher_id)
            result.append(teacher_id)
    return result


def has_explicit_pools(explicit_pools: Optional[Dict[str, List[str]]]) -> bool:
    """True if the caller supplied a non-empty pool for at least one subject"""
    if not explicit_pools:
        return False
    return any(isinstance(pool, list) and len(pool) > 0 for pool in explicit_pools.values())


def resolve_teacher_pools(repository: ScheduleRepository,
                          explicit_pools: Optional[Dict[str, List[str]]] = None) -> TeacherPools:
    """
    Resolves the ordered teacher pool of every subject.

    When the caller supplies at least one non-empty pool, the given pools are
    used as-is and subjects without one get an empty pool (they are never
    filled from the directory). Otherwise each subject's pool is every teacher
    whose specialty is that subject.

    Args:
        repository: Teacher directory
        explicit_pools: Optional {subject value: [teacher ids]} from the caller

    Returns:
        {Subject: [teacher ids]} covering all three subjects
    """
    if has_explicit_pools(explicit_pools):
        for key in explicit_pools:
            if Subject.parse(key) is None:
                logger.warning(f"Ignoring teacher pool for unknown subject {key!r}")
        pools = {}
        for subject in SUBJECTS:
            pool = explicit_pools.get(subject.value)
            pools[subject] = _dedupe(pool) if isinstance(pool, list) else []
        return pools

    pools = {subject: _dedupe(repository.teacher_ids_for_subject(subject)) for subject in SUBJECTS}
    logger.info("Resolved teacher pools from directory: " +
                ", ".join(f"{s.value}={len(p)}" for s, p in pools.items()))
    return pools
