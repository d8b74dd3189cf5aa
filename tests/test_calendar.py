from datetime import date

from src.app_state import DAY, MONTH, WEEK
from src.ui.calendar import period_title


def test_period_title_per_view():
    focus = date(2024, 9, 4)
    assert period_title(MONTH, focus) == "September 2024"
    assert period_title(WEEK, focus) == "Week of Sep 02, 2024"
    assert period_title(DAY, focus) == "Wednesday, September 04, 2024"
