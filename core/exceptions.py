#/core/exceptions.py

"""
Кастомные исключения приложения.
Сервисы их бросают, handlers ловят и показывают пользователю.
"""

from typing import Iterable, Optional


class PairDateException(Exception):
    """Базовое исключение для всех ошибок приложения"""
    pass


class NotFound(PairDateException):
    """Запись не найдена"""
    pass


class UserNotFound(NotFound):
    """Пользователь не найден в БД"""
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class CoupleNotFound(NotFound):
    """Пара не найдена (в том числе по неверному коду приглашения)"""
    def __init__(self, couple_id: Optional[int] = None, invite_code: Optional[str] = None):
        self.couple_id = couple_id
        self.invite_code = invite_code
        if invite_code is not None:
            message = f"Invalid invite code '{invite_code}'"
        else:
            message = "Couple not found" + (f" (id={couple_id})" if couple_id else "")
        super().__init__(message)


class NotInCouple(NotFound):
    """Пользователь не состоит в паре"""
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a member of any couple")


class ProposalNotFound(NotFound):
    """Предложение не найдено"""
    def __init__(self, proposal_id: int):
        self.proposal_id = proposal_id
        super().__init__(f"Proposal {proposal_id} not found")


class MatchNotFound(NotFound):
    """Мэтч не найден"""
    def __init__(self, match_id: int):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


class PlanNotFound(NotFound):
    """План не найден"""
    def __init__(self, plan_id: int):
        self.plan_id = plan_id
        super().__init__(f"Plan {plan_id} not found")


class CoupleFull(PairDateException):
    """В паре уже два участника"""
    def __init__(self, couple_id: int):
        self.couple_id = couple_id
        super().__init__(f"Couple {couple_id} already has two members")


class InviteCodeExhausted(PairDateException):
    """Не удалось подобрать свободный код приглашения"""
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique invite code after {attempts} attempts")


class ValidationError(PairDateException):
    """Некорректные входные данные"""
    pass


class InvalidStatusTransition(PairDateException):
    """Статус мэтча может двигаться только вперёд"""
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move match status from '{current}' to '{requested}'")


class PlanNotConfirmable(PairDateException):
    """План нельзя подтвердить без даты и времени"""
    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Plan cannot be confirmed, missing: {', '.join(self.missing)}")
