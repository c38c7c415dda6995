"""
Streamlit Frontend for Ledger Client

A single page: a login form while signed out; otherwise the total,
the transaction list and a modal-style form to add, edit or delete
an entry.

The page holds no state of its own. Everything it shows comes from the
LedgerController kept in st.session_state, and every button calls one
controller operation and reruns.
"""

import streamlit as st

from ledger_client.audit import configure_logging
from ledger_client.config import get_settings, validate_all_settings
from ledger_client.controller import (
    DELETE_CONFIRMATION,
    LedgerController,
    create_app_components,
)
from ledger_client.event_loop import run_in_session


DELETE_HINT = 'Tick "Are you sure?" to delete this transaction.'


# Page configuration
st.set_page_config(
    page_title="Ledger",
    page_icon="💰",
    layout="centered",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .total-label {
        color: #888;
        text-transform: uppercase;
        font-size: 0.8em;
        letter-spacing: 0.1em;
    }
    .total-amount {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
        margin-top: 0;
    }
    .item-date {
        font-size: 0.75em;
        color: #999;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit, on this session's own loop."""
    return run_in_session(st.session_state, coro)


def get_controller() -> LedgerController:
    """Get or create this browser session's controller."""
    if "controller" not in st.session_state:
        controller = create_app_components()
        controller.prompt.confirm_hint = DELETE_HINT
        run_async(controller.restore())
        st.session_state.controller = controller
    return st.session_state.controller


def show_messages(controller: LedgerController) -> None:
    for message in controller.state.drain_messages():
        st.error(message)


def main():
    """Main application entry point."""
    status = validate_all_settings()
    if not status.get("api", False):
        st.error(f"❌ Ledger API not configured: {status.get('api_error', 'unknown error')}")
        st.markdown("Set `LEDGER_API_BASE_URL` in the environment or a `.env` file.")
        st.stop()

    configure_logging(get_settings().app.effective_log_level)
    controller = get_controller()

    if not controller.state.authenticated:
        render_login_page(controller)
    else:
        render_ledger_page(controller)


def render_login_page(controller: LedgerController):
    """Render the login form."""
    st.markdown("<h2 style='text-align: center; font-weight: 400;'>Login</h2>", unsafe_allow_html=True)
    show_messages(controller)

    with st.form("login"):
        username = st.text_input("Username", placeholder="Username")
        password = st.text_input("Password", type="password", placeholder="Password")
        submitted = st.form_submit_button("Login", type="primary", use_container_width=True)

    if submitted:
        if not username or not password:
            st.error("Please enter your username and password")
            return
        controller.update_auth_form(username=username, password=password)
        run_async(controller.login())
        st.rerun()


def render_ledger_page(controller: LedgerController):
    """Render the navbar, total and transaction list."""
    state = controller.state

    col1, col2 = st.columns([4, 1])
    with col1:
        if st.button("+ Add"):
            run_async(controller.open_detail())
            st.rerun()
    with col2:
        if st.button("Logout"):
            run_async(controller.logout())
            st.rerun()

    show_messages(controller)

    st.markdown('<div class="total-label">Total Balance</div>', unsafe_allow_html=True)
    st.markdown(f'<h1 class="total-amount">{controller.display_total()}</h1>', unsafe_allow_html=True)

    if state.modal.open:
        render_modal(controller)

    st.markdown("---")

    if state.loading:
        st.caption("Loading...")
    elif not state.transactions:
        st.caption("No transactions found.")
    else:
        for transaction in state.transactions:
            with st.container(border=True):
                left, right = st.columns([4, 1])
                with left:
                    st.markdown(f"**{transaction.item}**")
                    st.markdown(
                        f'<span class="item-date">{controller.caption(transaction)}</span>',
                        unsafe_allow_html=True,
                    )
                with right:
                    st.markdown(f"**{controller.display_amount(transaction)}**")
                    if st.button("Open", key=f"open-{transaction.id}"):
                        run_async(controller.open_detail(transaction.id))
                        st.rerun()


def render_modal(controller: LedgerController):
    """Render the create/edit form for the open draft."""
    draft = controller.state.modal.draft

    with st.container(border=True):
        st.subheader(controller.heading())
        if not draft.is_new:
            st.caption(controller.recorded_by())

        with st.form("transaction"):
            item = st.text_input("Item Name", value=draft.item)
            amount = st.text_input("Amount (₹)", value=draft.amount, placeholder="0.00")
            save_clicked = st.form_submit_button("Save", type="primary")

        col1, col2 = st.columns(2)
        with col1:
            cancel_clicked = st.button("Cancel")
        delete_clicked = False
        if not draft.is_new:
            with col2:
                sure = st.checkbox(DELETE_CONFIRMATION, key=f"confirm-delete-{draft.id}")
                delete_clicked = st.button("Delete", type="secondary")

    if save_clicked:
        if not item or not amount:
            st.error("Please fill in the item name and amount")
            return
        controller.update_draft(item=item, amount=amount)
        run_async(controller.save())
        st.rerun()

    if cancel_clicked:
        controller.close_modal()
        st.rerun()

    if delete_clicked:
        controller.prompt.confirm_answer = sure
        run_async(controller.delete())
        controller.prompt.confirm_answer = False
        st.rerun()


if __name__ == "__main__":
    main()
