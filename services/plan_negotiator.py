# services/plan_negotiator.py
"""
Согласование свидания на стороне клиента.

Каждый партнёр отмечает свои даты-кандидаты; пересечение с датами партнёра
показывается как общие даты, из них выбирается итоговая дата, время и место.
Состояние живёт в явном контейнере (в боте — в данных FSM) и попадает
в БД только при явном сохранении через PlanService.
"""

from bisect import insort
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from core.exceptions import PlanNotConfirmable
from utils.dates import normalize_date, normalize_time, sorted_unique_dates


class CandidateDates:
    """Упорядоченное множество дат YYYY-MM-DD (без повторов, по возрастанию)"""

    def __init__(self, dates: Iterable[str] = ()):
        self._dates: List[str] = sorted_unique_dates(dates)

    def add(self, raw: str) -> str:
        value = normalize_date(raw)
        if value not in self._dates:
            insort(self._dates, value)
        return value

    def remove(self, raw: str) -> None:
        value = normalize_date(raw)
        if value in self._dates:
            self._dates.remove(value)

    def toggle(self, raw: str) -> bool:
        """Отметить/снять дату. Возвращает True, если дата теперь выбрана"""
        value = normalize_date(raw)
        if value in self._dates:
            self._dates.remove(value)
            return False
        insort(self._dates, value)
        return True

    def as_list(self) -> List[str]:
        return list(self._dates)

    def __contains__(self, raw: object) -> bool:
        return raw in self._dates

    def __iter__(self) -> Iterator[str]:
        return iter(self._dates)

    def __len__(self) -> int:
        return len(self._dates)


def common_dates(selected: Iterable[str], partner: Iterable[str]) -> List[str]:
    """Пересечение дат; порядок — как в списке пользователя"""
    partner_set = set(partner)
    return [d for d in selected if d in partner_set]


@dataclass
class PlanDraft:
    """То, что сохраняется через PlanService"""
    title: str
    proposal_ids: List[int]
    candidate_slots: List[Dict[str, Optional[str]]]
    status: str = "draft"
    final_date: Optional[str] = None
    final_time: Optional[str] = None
    meeting_place: Optional[str] = None


@dataclass
class PlanNegotiator:
    title: str = ""
    proposal_ids: List[int] = field(default_factory=list)
    selected: CandidateDates = field(default_factory=CandidateDates)
    partner_dates: List[str] = field(default_factory=list)
    final_date: Optional[str] = None
    final_time: Optional[str] = None
    meeting_place: Optional[str] = None

    def common_dates(self) -> List[str]:
        return common_dates(self.selected, self.partner_dates)

    def choose_final_date(self, raw: str) -> str:
        # Ожидается дата из common_dates(), но здесь это не проверяется
        self.final_date = normalize_date(raw)
        return self.final_date

    def set_final_time(self, raw: str) -> str:
        self.final_time = normalize_time(raw)
        return self.final_time

    def set_meeting_place(self, place: Optional[str]) -> None:
        self.meeting_place = place.strip() if place and place.strip() else None

    def missing_for_confirmation(self) -> List[str]:
        missing = []
        if not self.final_date:
            missing.append("final_date")
        if not self.final_time:
            missing.append("final_time")
        return missing

    def can_confirm(self) -> bool:
        return not self.missing_for_confirmation()

    def to_draft(self, status: str = "draft") -> PlanDraft:
        return PlanDraft(
            title=self.title,
            proposal_ids=list(self.proposal_ids),
            candidate_slots=[{"date": d, "time": None} for d in self.selected],
            status=status,
            final_date=self.final_date,
            final_time=self.final_time,
            meeting_place=self.meeting_place,
        )

    def confirm(self) -> PlanDraft:
        missing = self.missing_for_confirmation()
        if missing:
            raise PlanNotConfirmable(missing)
        return self.to_draft(status="confirmed")

    # ========== сериализация (для хранилища FSM) ==========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "proposal_ids": list(self.proposal_ids),
            "selected": self.selected.as_list(),
            "partner_dates": list(self.partner_dates),
            "final_date": self.final_date,
            "final_time": self.final_time,
            "meeting_place": self.meeting_place,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlanNegotiator":
        data = data or {}
        return cls(
            title=data.get("title", ""),
            proposal_ids=list(data.get("proposal_ids") or []),
            selected=CandidateDates(data.get("selected") or []),
            partner_dates=list(data.get("partner_dates") or []),
            final_date=data.get("final_date"),
            final_time=data.get("final_time"),
            meeting_place=data.get("meeting_place"),
        )
