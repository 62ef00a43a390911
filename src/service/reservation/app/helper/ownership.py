from src.platform.exception.exceptions import ForbiddenError
from src.service.reservation.app.interface import IStudentQueryRepo
from src.service.reservation.domain.entity import Reservation


async def ensure_owner_or_admin(
    *,
    reservation: Reservation,
    actor_id: str,
    student_query_repo: IStudentQueryRepo,
    action: str,
) -> None:
    """The reservation's own student, or a roster admin acting on their behalf"""
    if reservation.student_id == actor_id:
        return
    actor = await student_query_repo.get_by_id(student_id=actor_id)
    if actor is not None and actor.is_admin:
        return
    raise ForbiddenError(f'Only the student who made this reservation can {action} it')
