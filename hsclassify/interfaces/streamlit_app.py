"""
interfaces/streamlit_app.py
──────────────────────────────────────────────────────────────────────────────
Streamlit UI for the HS code classifier.

Run:
  streamlit run hsclassify/interfaces/streamlit_app.py

Features:
  • Sign in / sign up (Firebase email + password)
  • Product form → spinner → HS code, Justification and Retro Explanation
  • Sidebar history (newest first): select an item to restore form + result
  • Export history as JSON or CSV, clear history with confirmation
"""
from __future__ import annotations

import html
import logging
import sys
from pathlib import Path

import streamlit as st
from pydantic import ValidationError

# ── Path setup ─────────────────────────────────────────────────────────────
# Allow running from the repo root with: streamlit run hsclassify/interfaces/streamlit_app.py
_REPO_ROOT = Path(__file__).parent.parent.parent
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from hsclassify.domain.exceptions import AuthenticationError, DatabaseError, HSClassifierError
from hsclassify.domain.models import Credentials, HistoryItem, validation_messages
from hsclassify.services.container import get_auth, get_history_store, get_pipeline
from hsclassify.services.history_export import (
    export_filename,
    export_history_json,
    history_to_dataframe,
)

logger = logging.getLogger(__name__)

# ── Page configuration ─────────────────────────────────────────────────────
st.set_page_config(
    page_title="HS Code Classifier",
    page_icon="📦",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ── CSS ────────────────────────────────────────────────────────────────────
st.markdown(
    """
    <style>
    [data-testid="stSidebar"] {
        background: linear-gradient(180deg, #0a1628 0%, #1a3a5c 100%);
    }
    [data-testid="stSidebar"] * { color: #e8f0fe !important; }

    .stApp { background-color: #f4f6f9; }

    .hs-card {
        background: white;
        border-left: 5px solid #16a34a;
        border-radius: 6px;
        padding: 14px 18px;
        margin-bottom: 12px;
        box-shadow: 0 1px 4px rgba(0,0,0,0.08);
    }
    .hs-card .label { font-size: 0.78em; color: #64748b; text-transform: uppercase; }
    .hs-card .code { font-size: 1.8em; font-weight: 700; color: #1e293b; font-family: monospace; }
    </style>
    """,
    unsafe_allow_html=True,
)

_STATE_DEFAULTS = {
    "auth_session": None,
    "result": None,
    "active_id": None,
    "history": None,
    "confirm_clear": False,
    "form_brand": "",
    "form_description": "",
}


def _init_state() -> None:
    for key, value in _STATE_DEFAULTS.items():
        if key not in st.session_state:
            st.session_state[key] = value


# ── Backend singletons ─────────────────────────────────────────────────────

@st.cache_resource(show_spinner="Initialising HS code classifier…")
def _load_pipeline():
    """Loads and caches the ClassifierPipeline for the lifetime of the app."""
    return get_pipeline()


@st.cache_resource
def _load_auth():
    return get_auth()


@st.cache_resource
def _load_history_store():
    return get_history_store()


# ── History helpers ────────────────────────────────────────────────────────

def _history() -> list[HistoryItem]:
    """Current user's history, re-read from the store when invalidated."""
    if st.session_state.history is None:
        uid = st.session_state.auth_session.uid
        try:
            st.session_state.history = _load_history_store().list(uid)
        except DatabaseError as exc:
            logger.exception("Could not load history for %s", uid)
            st.error(str(exc))
            return []
    return st.session_state.history


def _invalidate_history() -> None:
    st.session_state.history = None


def _select_history_item(item: HistoryItem) -> None:
    """on_click callback: restore the form and the result of a past query."""
    st.session_state.form_brand = item.brand
    st.session_state.form_description = item.description
    st.session_state.result = item.result
    st.session_state.active_id = item.id


def _reset_form() -> None:
    st.session_state.form_brand = ""
    st.session_state.form_description = ""
    st.session_state.result = None
    st.session_state.active_id = None


def _clear_history() -> None:
    """on_click callback of the confirmation button."""
    uid = st.session_state.auth_session.uid
    st.session_state.confirm_clear = False
    try:
        _load_history_store().clear_all(uid)
    except DatabaseError as exc:
        logger.exception("Could not clear history for %s", uid)
        st.toast(str(exc), icon="⚠️")
        return
    _invalidate_history()
    _reset_form()
    st.toast("History cleared")


def _sign_out() -> None:
    for key, value in _STATE_DEFAULTS.items():
        st.session_state[key] = value


# ── Login ──────────────────────────────────────────────────────────────────

def _auth_form(action: str) -> None:
    """Render one email/password form; ``action`` is 'sign_in' or 'sign_up'."""
    label = "Sign In" if action == "sign_in" else "Create Account"
    with st.form(f"{action}_form"):
        email = st.text_input("Email", placeholder="name@example.com")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button(label, type="primary")

    if not submitted:
        return

    try:
        credentials = Credentials(email=email, password=password)
    except ValidationError as exc:
        for message in validation_messages(exc):
            st.error(message)
        return

    try:
        auth = _load_auth()
        with st.spinner("Signing in …"):
            session = getattr(auth, action)(credentials)
    except AuthenticationError as exc:
        logger.warning("Authentication error (%s): %s", exc.code, exc)
        st.error(f"Authentication error: {exc}")
        return

    st.session_state.auth_session = session
    _invalidate_history()
    st.rerun()


def _render_login() -> None:
    st.title("📦 HS Code Classifier")
    st.caption("Sign in to classify products and keep your query history.")
    tab_in, tab_up = st.tabs(["Sign In", "Sign Up"])
    with tab_in:
        _auth_form("sign_in")
    with tab_up:
        _auth_form("sign_up")


def _ensure_fresh_session() -> bool:
    """Refresh the id token when close to expiry; sign out if that fails."""
    session = st.session_state.auth_session
    if not session.needs_refresh():
        return True
    try:
        st.session_state.auth_session = _load_auth().refresh(session)
        return True
    except AuthenticationError as exc:
        logger.warning("Session refresh failed: %s", exc)
        _sign_out()
        st.warning(str(exc))
        return False


# ── Sidebar ────────────────────────────────────────────────────────────────

def _render_sidebar() -> None:
    session = st.session_state.auth_session
    items = _history()

    with st.sidebar:
        st.markdown("## 🕘 History")
        st.caption(session.email or session.uid)

        c1, c2 = st.columns(2)
        c1.download_button(
            "⬇ JSON",
            export_history_json(items),
            file_name=export_filename(),
            mime="application/json",
            disabled=not items,
            use_container_width=True,
        )
        c2.download_button(
            "⬇ CSV",
            history_to_dataframe(items).to_csv(index=False).encode(),
            file_name=export_filename(suffix="csv"),
            mime="text/csv",
            disabled=not items,
            use_container_width=True,
        )

        if st.session_state.confirm_clear:
            st.warning(
                "This action cannot be undone. "
                "It will permanently delete your query history."
            )
            a, b = st.columns(2)
            a.button("Continue", on_click=_clear_history, type="primary",
                     use_container_width=True)
            if b.button("Cancel", use_container_width=True):
                st.session_state.confirm_clear = False
                st.rerun()
        elif st.button("🗑 Clear history", disabled=not items, use_container_width=True):
            st.session_state.confirm_clear = True
            st.rerun()

        st.markdown("---")
        if not items:
            st.caption("Your previous queries will appear here.")
        for item in items:
            st.button(
                item.label,
                key=f"history_{item.id}",
                help=item.description,
                on_click=_select_history_item,
                args=(item,),
                type="primary" if item.id == st.session_state.active_id else "secondary",
                use_container_width=True,
            )

        st.markdown("---")
        st.button("Sign out", on_click=_sign_out, use_container_width=True)


# ── Main panel ─────────────────────────────────────────────────────────────

def _render_result(result) -> None:
    st.markdown(
        f"""
        <div class="hs-card">
            <div class="label">Predicted HS code</div>
            <div class="code">{html.escape(result.prediction.hs_code)}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )
    with st.expander("Justification", expanded=True):
        st.write(result.prediction.explanation)
    with st.expander("Retro Explanation", expanded=True):
        st.write(result.explanation.explanation)


def _render_main() -> None:
    col_form, col_result = st.columns(2)

    with col_form:
        st.markdown("### 🔍 Product details")
        st.caption("Enter your product information to predict its HS code.")
        with st.form("classify_form"):
            st.text_input("Brand Name", placeholder="e.g. QuantumLeap", key="form_brand")
            st.text_area(
                "Product Description",
                placeholder="e.g. A high-performance laptop with 16GB RAM and a 1TB SSD.",
                height=160,
                key="form_description",
            )
            submitted = st.form_submit_button("Predict HS Code", type="primary")

    with col_result:
        st.markdown("### 📄 Classification result")
        st.caption("The predicted HS code and explanation will appear here.")

        if submitted:
            st.session_state.result = None
            st.session_state.active_id = None
            try:
                pipeline = _load_pipeline()
            except HSClassifierError as exc:
                logger.exception("Pipeline initialisation failed")
                st.error(f"Classifier unavailable: {exc}")
                return
            with st.spinner("Classifying …"):
                response = pipeline.classify(
                    {
                        "brand": st.session_state.form_brand,
                        "description": st.session_state.form_description,
                        "user_id": st.session_state.auth_session.uid,
                    },
                    require_user=True,
                )
            if not response.success:
                st.error(response.error)
                return
            st.session_state.result = response.data
            if response.saved:
                st.session_state.active_id = response.history_item.id
                _invalidate_history()
                st.rerun()
            elif response.error:
                st.warning(response.error)

        if st.session_state.result is not None:
            _render_result(st.session_state.result)
        else:
            st.info("Enter a product above and press **Predict HS Code**.")


# ── Main ───────────────────────────────────────────────────────────────────

def main() -> None:
    _init_state()

    if st.session_state.auth_session is None:
        _render_login()
        return

    if not _ensure_fresh_session():
        _render_login()
        return

    st.title("📦 HS Code Classifier")
    st.caption("Describe a product and get its Harmonized System code with a justification.")
    _render_sidebar()
    _render_main()


if __name__ == "__main__":
    main()
