# /keyboards/couple_kb.py
from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def get_couple_menu_keyboard(in_couple: bool) -> InlineKeyboardMarkup:
    """Клавиатура для меню пары"""
    builder = InlineKeyboardBuilder()

    if in_couple:
        builder.button(text="💘 Свайпать", callback_data="open_swipe")
        builder.button(text="💞 Мэтчи", callback_data="open_matches")
        builder.button(text="💔 Покинуть пару", callback_data="leave_couple")
    else:
        builder.button(text="🤝 Создать пару", callback_data="create_couple")
        builder.button(text="🔑 Ввести код", callback_data="join_couple")

    builder.adjust(2)
    return builder.as_markup()


def get_leave_confirm_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="✅ Да, выйти", callback_data="leave_couple_confirm")
    builder.button(text="❌ Отмена", callback_data="leave_couple_cancel")
    builder.adjust(2)
    return builder.as_markup()
