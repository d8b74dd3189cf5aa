import types

from fakes import FakeStreamlit
from src.app_state import AppState, LoadedData
from src.models import LessonPlan, RecurringClass
from src.ui.library import lesson_plans_frame, render_lesson_plans


def _plan(pid, day, rcid="rc1", title="T"):
    return LessonPlan(id=pid, date=day, recurring_class_id=rcid, class_name="Algebra", title=title)


CLASSES = [RecurringClass(id="rc1", name="Algebra", subject="Math", day=0, time="09:00")]


def test_lesson_plans_frame_sorts_newest_first_and_flags_orphans():
    df = lesson_plans_frame(
        [_plan("a", "2024-09-02"), _plan("b", "2024-10-07", rcid="gone"), _plan("c", "2024-09-16")],
        CLASSES,
    )
    assert list(df["date"]) == ["2024-10-07", "2024-09-16", "2024-09-02"]
    assert list(df["orphaned"]) == [True, False, False]
    assert list(df.columns) == ["date", "class_name", "subject", "title", "homework", "orphaned"]


def test_empty_frame_keeps_columns():
    df = lesson_plans_frame([])
    assert df.empty
    assert "orphaned" in df.columns


class _RecordingStreamlit(FakeStreamlit):
    def __init__(self):
        super().__init__()
        self.frames = []
        self.downloads = []

    def dataframe(self, df, **kwargs):
        self.frames.append(df)

    def download_button(self, label, data, **kwargs):
        self.downloads.append((data, kwargs))


def _planner(plans):
    state = AppState(data=LoadedData(recurring_classes=tuple(CLASSES), lesson_plans=tuple(plans)))
    return types.SimpleNamespace(controller=types.SimpleNamespace(state=state))


def test_render_lesson_plans_offers_csv_and_mentions_orphans():
    st = _RecordingStreamlit()
    render_lesson_plans(_planner([_plan("a", "2024-09-02"), _plan("b", "2024-09-03", rcid="gone")]), st_module=st)

    assert len(st.frames) == 1
    data, kwargs = st.downloads[0]
    assert kwargs["file_name"] == "lesson_plans.csv"
    assert data.decode("utf-8").splitlines()[0] == "date,class_name,subject,title,homework,orphaned"
    assert any("1 plan(s)" in text for text in st.said("caption"))


def test_render_lesson_plans_empty_state():
    st = _RecordingStreamlit()
    render_lesson_plans(_planner([]), st_module=st)
    assert st.frames == []
    assert st.said("info")
