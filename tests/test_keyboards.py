"""Tests for inline keyboards and callback payloads."""

from datetime import date

from keyboards.plan_kb import get_common_dates_keyboard, get_dates_keyboard
from keyboards.swipe_kb import get_match_actions_keyboard, get_swipe_keyboard
from services.match_service import MatchView


def callbacks(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


def match_view(status):
    return MatchView(id=5, couple_id=1, proposal_id=2, status=status, matched_at=None, proposal=None)


class TestSwipeKeyboards:
    def test_swipe_buttons(self):
        assert callbacks(get_swipe_keyboard(7)) == ["swipe:left:7", "swipe:super_like:7", "swipe:right:7"]

    def test_actions_follow_status(self):
        assert callbacks(get_match_actions_keyboard(match_view("matched"))) == ["plan_match:5", "open_matches"]
        assert callbacks(get_match_actions_keyboard(match_view("scheduled"))) == [
            "match_status:5:completed",
            "open_matches",
        ]
        assert callbacks(get_match_actions_keyboard(match_view("completed"))) == ["open_matches"]


class TestPlanKeyboards:
    def test_calendar_marks_selected(self):
        markup = get_dates_keyboard(date(2024, 6, 1), ["2024-06-03"], days=8)
        buttons = [button for row in markup.inline_keyboard for button in row]

        assert buttons[0].callback_data == "plan_date:2024-06-01"
        assert buttons[2].text.startswith("✅")
        assert not buttons[1].text.startswith("✅")
        assert buttons[-1].callback_data == "plan_dates_done"
        assert len(buttons) == 9

    def test_common_dates(self):
        assert callbacks(get_common_dates_keyboard(["2024-06-03"])) == ["plan_final:2024-06-03"]
