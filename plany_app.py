# ==== Standard Library ====
import logging
from datetime import date

# ==== Third-Party Packages ====
import streamlit as st

st.set_page_config(
    page_title="Plany – Lesson Planner",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ==== Local Modules ====
from src.controller import get_planner
from src.logout import do_logout
from src.ui.calendar import render_calendar
from src.ui.legacy import render_legacy
from src.ui.library import render_classes, render_lesson_plans, render_templates
from src.ui.login import render_auth_page
from src.ui.plan_form import render_plan_form
from src.ui.settings import render_settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

SECTIONS = (
    "🗓️ Calendar",
    "🏫 My classes",
    "📝 Lesson plans",
    "🧩 Templates",
    "⚙️ School year",
    "📚 Legacy lessons",
)


def render_sidebar(planner) -> str:
    user = planner.identity.current_user
    state = planner.controller.state
    st.sidebar.markdown(f"### 👋 {user.label}" if user else "### Plany")
    section = st.sidebar.radio("Go to", SECTIONS, key="_nav_section")
    st.sidebar.divider()
    st.sidebar.metric("Recurring classes", len(state.data.recurring_classes))
    st.sidebar.metric("Lesson plans", len(state.data.lesson_plans))
    st.sidebar.metric("Templates", len(state.data.templates))
    if st.sidebar.button("🔄 Reload data", width="stretch"):
        planner.controller.reload()
    if st.sidebar.button("🚪 Log out", width="stretch"):
        do_logout(planner)
    return section


def main() -> None:
    try:
        planner = get_planner()
    except Exception as exc:  # pragma: no cover - streamlit UI feedback
        logging.exception("Planner initialisation failed")
        st.error(f"Plany could not start: {exc}")
        st.stop()

    planner.identity.init()
    if not planner.identity.is_authenticated:
        render_auth_page(planner)
        return

    section = render_sidebar(planner)
    state = planner.controller.state
    if state.loading:
        st.info("Loading your planner…")

    if section == SECTIONS[0]:
        render_calendar(planner.controller, today=date.today())
        render_plan_form(planner.controller)
    elif section == SECTIONS[1]:
        render_classes(planner)
    elif section == SECTIONS[2]:
        render_lesson_plans(planner)
    elif section == SECTIONS[3]:
        render_templates(planner)
    elif section == SECTIONS[4]:
        render_settings(planner)
    else:
        render_legacy(planner)


main()

if st.session_state.pop("need_rerun", False):
    st.rerun()
