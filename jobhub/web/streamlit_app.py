import asyncio
import html
import logging
from typing import List

import streamlit as st

from jobhub.client.connectivity import ConnectivityMonitor
from jobhub.client.http import HttpGateway
from jobhub.client.loader import load
from jobhub.client.resilience import FetchReport, FetchState, ResilienceController
from jobhub.config import get_settings
from jobhub.jobs.gateway import total_pages
from jobhub.jobs.project import JobView, project
from jobhub.jobs.query import EXPERIENCE_BRACKETS, build_query
from jobhub.models.schema import PAGE_SIZE_ALL, RetrievalSuccess

logging.basicConfig(level=get_settings().log_level.upper())


# ---------- Client wiring ----------
def get_controller() -> ResilienceController:
    # Kept per browser session so the retry counter and generation survive reruns.
    if "controller" not in st.session_state:
        settings = get_settings()
        monitor = ConnectivityMonitor(settings.connectivity_host, settings.connectivity_port)
        st.session_state.monitor = monitor
        st.session_state.controller = ResilienceController(
            HttpGateway(settings.api_url, timeout_s=settings.request_timeout_s * 2),
            timeout_s=settings.request_timeout_s,
            max_retries=settings.max_retries,
            retry_step_s=settings.retry_step_ms / 1000.0,
            connectivity=monitor,
            listener=remember_report,
        )
        monitor.add_listener(st.session_state.controller.on_connectivity_restored)
    return st.session_state.controller


def remember_report(report: FetchReport) -> None:
    st.session_state.report = report


# ---------- Cards ----------
def logo_html(view: JobView, size: int = 40) -> str:
    src = html.escape(view.logo_url, quote=True)
    fallback = html.escape(view.fallback_logo_url, quote=True)
    return (
        f'<img src="{src}" width="{size}" height="{size}" '
        f"style=\"border-radius:6px;object-fit:cover\" "
        f"onerror=\"this.onerror=null;this.src='{fallback}'\" />"
    )


def render_card(view: JobView) -> None:
    with st.container(border=True):
        left, right = st.columns([1, 6])
        left.markdown(logo_html(view), unsafe_allow_html=True)
        right.markdown(f"**{view.title}**  \n{view.company}")
        st.caption(f"📍 {view.location} · 💼 {view.employment_type} · 🕒 {view.experience}")
        st.caption(view.posted_relative)
        with st.expander("View details"):
            st.markdown(logo_html(view, size=64), unsafe_allow_html=True)
            st.write(f"**Experience:** {view.experience}")
            st.write(f"**Posted:** {view.posted_on}")
            if view.can_apply:
                st.link_button("Apply Now", view.apply_url, use_container_width=True)
            else:
                st.button("Apply Now", key=f"apply-{view.id}", disabled=True, use_container_width=True)


def render_jobs(views: List[JobView]) -> None:
    cols = st.columns(2)
    for idx, view in enumerate(views):
        with cols[idx % 2]:
            render_card(view)


# ---------- UI ----------
settings = get_settings()
st.set_page_config(page_title="JobHub", page_icon="💼", layout="wide")
st.title("Find Your Dream Job")
st.caption("Search through thousands of job listings")

st.session_state.setdefault("page", 1)
st.session_state.setdefault("location", "")

with st.form("search"):
    location = st.text_input(
        "Location",
        value=st.session_state.location,
        placeholder="Search jobs by location (e.g., New York, Remote)",
    )
    submitted = st.form_submit_button("Search")
if submitted:
    st.session_state.location = location
    st.session_state.page = 1

labels = [label for label, _ in EXPERIENCE_BRACKETS]
choice = st.selectbox("Experience", labels, key="experience_label", on_change=lambda: st.session_state.update(page=1))
show_all = st.toggle("Show all results on one page", key="show_all", on_change=lambda: st.session_state.update(page=1))

query = build_query(
    location_text=st.session_state.location,
    experience_bracket=dict(EXPERIENCE_BRACKETS)[choice],
    page_number=st.session_state.page,
    page_size_or_all=PAGE_SIZE_ALL if show_all else settings.page_size,
    default_page_size=settings.page_size,
)

controller = get_controller()
with st.spinner("Loading jobs..."):
    retry = st.session_state.pop("retry_requested", False)
    report = asyncio.run(
        load(controller, st.session_state.monitor, query, retry=retry, watch_interval_s=settings.connectivity_interval_s)
    )
report = report or st.session_state.get("report")

if not st.session_state.monitor.is_online():
    st.warning("You appear to be offline. Jobs will reload when the connection returns.")

if report is None or not isinstance(report.outcome, RetrievalSuccess):
    st.error(report.message if report else "Failed to load jobs")
    if report is not None and report.state == FetchState.GIVEN_UP:
        st.caption("Automatic retries exhausted.")
    if st.button("Retry"):
        st.session_state.retry_requested = True
        st.rerun()
    st.stop()

outcome = report.outcome
st.write(f"Showing {len(outcome.records)} of {outcome.total} jobs")
render_jobs([project(job) for job in outcome.records])

pages = total_pages(outcome.total, query.page_size)
if pages > 1:
    prev_col, label_col, next_col = st.columns([1, 2, 1])
    if prev_col.button("Previous", disabled=query.page <= 1):
        st.session_state.page = query.page - 1
        st.rerun()
    label_col.markdown(f"Page {query.page} of {pages}")
    if next_col.button("Next", disabled=query.page >= pages):
        st.session_state.page = query.page + 1
        st.rerun()
