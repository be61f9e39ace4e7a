# /keyboards/swipe_kb.py
from typing import List

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from services.match_service import MatchView

STATUS_LABELS = {
    "matched": "💞 Мэтч",
    "scheduled": "📅 Запланировано",
    "completed": "✅ Состоялось",
}


def get_swipe_keyboard(proposal_id: int) -> InlineKeyboardMarkup:
    """Кнопки свайпа для карточки предложения"""
    builder = InlineKeyboardBuilder()
    builder.button(text="👎 Нет", callback_data=f"swipe:left:{proposal_id}")
    builder.button(text="⭐ Супер", callback_data=f"swipe:super_like:{proposal_id}")
    builder.button(text="❤️ Хочу", callback_data=f"swipe:right:{proposal_id}")
    builder.adjust(3)
    return builder.as_markup()


def get_matches_keyboard(matches: List[MatchView]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for match in matches:
        title = match.proposal.title if match.proposal else f"#{match.proposal_id}"
        builder.button(
            text=f"{STATUS_LABELS.get(match.status, match.status)} · {title}",
            callback_data=f"match:{match.id}",
        )
    builder.adjust(1)
    return builder.as_markup()


def get_match_actions_keyboard(match: MatchView) -> InlineKeyboardMarkup:
    """Действия с мэтчем: только шаги вперёд по статусу"""
    builder = InlineKeyboardBuilder()
    if match.status == "matched":
        builder.button(text="📅 Спланировать", callback_data=f"plan_match:{match.id}")
    if match.status == "scheduled":
        builder.button(text="✅ Свидание состоялось", callback_data=f"match_status:{match.id}:completed")
    builder.button(text="⬅️ К списку", callback_data="open_matches")
    builder.adjust(1)
    return builder.as_markup()
