# /keyboards/plan_kb.py
from datetime import date, timedelta
from typing import Iterable, List

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from utils.dates import DATE_FORMAT

CATEGORIES = {
    "date_spot": "💑 Место для свидания",
    "restaurant": "🍽 Ресторан",
    "activity": "🚴 Активность",
    "other": "✨ Другое",
}


def get_dates_keyboard(start: date, selected: Iterable[str], days: int = 28) -> InlineKeyboardMarkup:
    """Календарь на days дней вперёд; выбранные даты отмечены"""
    selected = set(selected)
    builder = InlineKeyboardBuilder()

    for offset in range(days):
        value = (start + timedelta(days=offset)).strftime(DATE_FORMAT)
        mark = "✅ " if value in selected else ""
        builder.button(text=f"{mark}{value[5:]}", callback_data=f"plan_date:{value}")

    builder.button(text="Готово ➡️", callback_data="plan_dates_done")
    builder.adjust(*([4] * ((days + 3) // 4)), 1)
    return builder.as_markup()


def get_common_dates_keyboard(dates: List[str]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for value in dates:
        builder.button(text=f"📅 {value}", callback_data=f"plan_final:{value}")
    builder.adjust(2)
    return builder.as_markup()


def get_plan_confirm_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="✅ Подтвердить", callback_data="plan_confirm")
    builder.button(text="❌ Отмена", callback_data="plan_cancel")
    builder.adjust(2)
    return builder.as_markup()


def get_category_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for key, label in CATEGORIES.items():
        builder.button(text=label, callback_data=f"proposal_category:{key}")
    builder.adjust(2)
    return builder.as_markup()
