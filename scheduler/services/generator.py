import logging
from typing import Dict, Iterable, List, Optional, Tuple

from scheduler.db.repository import ScheduleRepository
from scheduler.models.schedule_row import ScheduleRow
from scheduler.models.unmet_cell import UnmetCell
from scheduler.services.assignment import assign_teachers
from scheduler.services.rotation import rotations_for_classes
from scheduler.services.teacher_pools import resolve_teacher_pools

logger = logging.getLogger(__name__)


def generate_schedule(repository: ScheduleRepository,
                      class_ids: Optional[Iterable[str]] = None,
                      explicit_pools: Optional[Dict[str, List[str]]] = None) -> Tuple[List[ScheduleRow], List[UnmetCell]]:
    """
    Builds a draft schedule. Nothing is persisted.

    Args:
        repository: Class list and teacher directory
        class_ids: Optional subset of classes to schedule
        explicit_pools: Optional {subject value: [teacher ids]} overriding the directory

    Returns:
        rows: One ScheduleRow per class, in class order
        unmet: Cells left without a teacher
    """
    classes = repository.list_classes(class_ids)
    rotations = rotations_for_classes(classes)
    pools = resolve_teacher_pools(repository, explicit_pools)

    logger.info(f"Generating schedule: {len(classes)} classes, "
                f"{sum(len(p) for p in pools.values())} pooled teachers")

    result = assign_teachers(classes, rotations, pools)
    rows = [result.schedule[class_ref.id] for class_ref in classes]

    logger.info(f"Schedule generated: {len(rows)} rows, {len(result.unmet)} unmet cells")
    return rows, result.unmet
