"""
Streamlit Frontend for Family Ledger

This is the interface the family treasurer uses while collecting
contributions for an event: record payments, import statements, track
spending and copy update messages into the family WhatsApp group.

DESIGN PRINCIPLES:
1. Paste, review, save: parsed values only prefill the form
2. Clear error messages in simple language
3. Visual feedback for all operations
4. Nothing is shared automatically; messages are copied by hand

Everything except the login page sits behind the admin password.
"""

import asyncio
import html
from datetime import date, datetime, time
from typing import Optional

import streamlit as st

from family_ledger.audit import configure_logging
from family_ledger.auth import build_session_token, is_valid_session_token, verify_admin_password
from family_ledger.config import get_settings, validate_all_settings
from family_ledger.orchestrator import AppComponents, create_app_components
from family_ledger.reports import (
    format_datetime,
    format_kes,
    get_transfer_label_from_title,
    is_transfer_record_title,
)


# Page configuration
st.set_page_config(
    page_title="Family Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached), seeding pinned rows once."""
    settings = get_settings()
    configure_logging(debug=settings.app.debug_mode)
    components = create_app_components(settings)
    run_async(components.contributions.seed_pinned_contributions())
    return components


def box(kind: str, title: str, body: str = "") -> None:
    """Render a coloured message box; text is escaped."""
    body_html = f"<p>{html.escape(body)}</p>" if body else ""
    st.markdown(
        f'<div class="{kind}-box"><h4>{html.escape(title)}</h4>{body_html}</div>',
        unsafe_allow_html=True,
    )


def combine_date_time(day: Optional[date], moment: Optional[time]) -> Optional[datetime]:
    if day is None:
        return None
    return datetime.combine(day, moment or time(0, 0))


# =============================================================================
# LOGIN
# =============================================================================

def is_signed_in() -> bool:
    return is_valid_session_token(st.session_state.get("session_token"))


def render_login_page(components: AppComponents):
    """Render the password gate."""
    st.title("📒 Family Ledger")
    st.markdown("Enter the admin password to continue.")

    with st.form("login"):
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        if not password:
            st.error("Password is required")
        elif verify_admin_password(password):
            run_async(components.audit_logger.log_login(succeeded=True))
            st.session_state.session_token = build_session_token()
            st.rerun()
        else:
            run_async(components.audit_logger.log_login(succeeded=False))
            st.error("Incorrect password")


def main():
    """Main application entry point."""
    components = get_components()

    if not is_signed_in():
        render_login_page(components)
        return

    # Sidebar navigation
    st.sidebar.title("📒 Family Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "➕ Add Contribution",
            "📄 Import Statement",
            "🧾 Expenses",
            "📣 Updates",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Paste each payment message and save it
        2. Or import a whole statement PDF
        3. Generate an update and share it in the group
        """
    )
    if st.sidebar.button("Sign out"):
        run_async(components.audit_logger.log_logout())
        st.session_state.pop("session_token", None)
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == "➕ Add Contribution":
        render_contribution_page(components)
    elif page == "📄 Import Statement":
        render_import_page(components)
    elif page == "🧾 Expenses":
        render_expenses_page(components)
    elif page == "📣 Updates":
        render_updates_page(components)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(components: AppComponents):
    """Render totals, new contributions and the contribution list."""
    st.title("📊 Dashboard")

    metrics = run_async(components.updates.dashboard())
    contributions = run_async(components.contributions.list_contributions())
    expenses = run_async(components.expenses.list_expenses())
    total_spent = sum(item.amount for item in expenses)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total collected", format_kes(metrics.total_collected))
    col2.metric(
        "New since last update",
        format_kes(metrics.new_since_last_update_amount),
        f"{metrics.new_since_last_update_count} contributions",
    )
    col3.metric("Spent and transferred", format_kes(total_spent))
    col4.metric("Balance", format_kes(metrics.total_collected - total_spent))

    if metrics.last_update_at:
        st.caption(f"Last update generated {format_datetime(metrics.last_update_at)}")
    else:
        st.caption("No update generated yet.")

    st.markdown("---")
    search = st.text_input("🔍 Search contributors", placeholder="Name or reference")

    tab_all, tab_totals = st.tabs(["All contributions", "Totals per person"])

    with tab_all:
        needle = search.strip().lower()
        rows = [
            item for item in contributions
            if not needle
            or needle in item.name.lower()
            or (item.ref and needle in item.ref.lower())
        ]
        if not rows:
            st.info("No contributions recorded yet." if not needle else "No matches.")
        for item in rows:
            col_info, col_amount, col_delete = st.columns([5, 2, 1])
            with col_info:
                st.markdown(f"**{html.escape(item.name)}**")
                details = [format_datetime(item.contributed_at)]
                if item.ref:
                    details.append(item.ref)
                if item.note:
                    details.append(item.note)
                st.caption(" · ".join(details))
            col_amount.markdown(f"**{format_kes(item.amount)}**")
            if col_delete.button("🗑️", key=f"delete-contribution-{item.id}", help="Delete"):
                run_async(components.contributions.delete_contribution(item.id))
                st.rerun()

    with tab_totals:
        needle = search.strip().lower()
        for row in metrics.running_totals:
            if needle and needle not in row.key:
                continue
            col_name, col_total = st.columns([5, 2])
            col_name.markdown(f"**{html.escape(row.name)}**")
            col_name.caption(f"Last contributed {format_datetime(row.last_contributed_at)}")
            col_total.markdown(f"**{format_kes(row.total)}**")


# =============================================================================
# CONTRIBUTIONS
# =============================================================================

def apply_prefill(parsed) -> None:
    """Copy parsed message fields into the form widgets."""
    if parsed.name:
        st.session_state.contribution_name = parsed.name
    if parsed.amount:
        st.session_state.contribution_amount = f"{parsed.amount:,}"
    if parsed.ref:
        st.session_state.contribution_ref = parsed.ref
    if parsed.contributed_at:
        st.session_state.contribution_set_time = True
        st.session_state.contribution_date = parsed.contributed_at.date()
        st.session_state.contribution_time = parsed.contributed_at.time().replace(second=0, microsecond=0)


def render_contribution_page(components: AppComponents):
    """Render the paste-and-save contribution form."""
    st.title("➕ Add Contribution")
    st.markdown("Paste the payment confirmation message to fill the form, then review and save.")

    message = st.text_area(
        "Payment message",
        height=120,
        placeholder="UAB1234XYZ Confirmed. You have received Ksh5,000.00 from JANE DOE on 11/2/26 at 5:02 PM ...",
    )
    if st.button("✨ Fill from message") and message:
        parsed = run_async(components.contributions.prefill_from_message(message))
        if parsed.is_empty:
            st.warning("Could not read that message. Please fill the form by hand.")
        else:
            apply_prefill(parsed)
            if not parsed.is_complete:
                st.warning("Some details were missing from the message. Please check the form.")

    with st.form("contribution", clear_on_submit=False):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", key="contribution_name")
            ref = st.text_input("Reference (optional)", key="contribution_ref")
        with col2:
            amount = st.text_input("Amount (KES)", key="contribution_amount", placeholder="10,000")
            set_time = st.checkbox("Set date and time", key="contribution_set_time")
        col3, col4 = st.columns(2)
        with col3:
            day = st.date_input("Date", key="contribution_date")
        with col4:
            moment = st.time_input("Time", key="contribution_time")
        note = st.text_area("Note (optional)", key="contribution_note", height=80)

        submitted = st.form_submit_button("💾 Save contribution", type="primary")

    if submitted:
        outcome = run_async(components.contributions.add_contribution({
            "name": name,
            "amount": amount,
            "ref": ref,
            "contributed_at": combine_date_time(day, moment) if set_time else None,
            "note": note,
        }))
        if not outcome.success:
            box("error", "❌ Not saved", outcome.error or "")
        else:
            saved = outcome.contribution
            box("success", "✅ Contribution saved", f"{saved.name} - {format_kes(saved.amount)}")
            if outcome.warning:
                box("warning", "⚠️ Please check", outcome.warning)


def render_import_page(components: AppComponents):
    """Render the statement PDF import page."""
    st.title("📄 Import Statement")
    st.markdown(
        "Upload the statement PDF exported from the app. Every received payment "
        "is saved; payments whose reference is already in the ledger are skipped."
    )

    uploaded_file = st.file_uploader("Choose a statement", type=["pdf"])
    if not uploaded_file:
        return

    if st.button("📥 Import", type="primary"):
        with st.spinner("Reading statement... Please wait."):
            result = run_async(components.statements.import_pdf(uploaded_file.getvalue()))

        if not result.success:
            box("error", "❌ Import failed", result.error or "")
            if result.near_misses:
                st.markdown("These parts of the statement looked like payments but could not be read:")
                for snippet in result.near_misses:
                    st.code(snippet, language=None)
            return

        summary = f"Detected {result.detected_count}, imported {result.imported_count}"
        if result.skipped_count:
            summary += f", skipped {result.skipped_count}"
        box("success", "✅ Statement imported", summary + ".")

        for warning in result.warnings:
            st.warning(warning)

        if result.preview:
            st.markdown("**Imported:**")
            for item in result.preview:
                when = format_datetime(item.contributed_at) if item.contributed_at else "no date"
                st.markdown(f"- {html.escape(item.name)} - {format_kes(item.amount)} ({when})")


# =============================================================================
# EXPENSES
# =============================================================================

def render_expenses_page(components: AppComponents):
    """Render expense and transfer forms plus the expense list."""
    st.title("🧾 Expenses")

    tab_expense, tab_transfer = st.tabs(["Expense", "Transfer"])

    with tab_expense:
        with st.form("expense", clear_on_submit=True):
            title = st.text_input("Expense title", placeholder="Tent deposit")
            amount = st.text_input("Amount (KES)", placeholder="15,000")
            day = st.date_input("Spent on", value=None)
            note = st.text_area("Note (optional)", height=80)
            submitted = st.form_submit_button("💾 Save expense", type="primary")
        if submitted:
            outcome = run_async(components.expenses.add_expense({
                "title": title,
                "amount": amount,
                "spent_at": combine_date_time(day, datetime.now().time()) if day else None,
                "note": note,
            }))
            if outcome.success:
                st.success("Expense saved.")
            else:
                st.error(outcome.error)

    with tab_transfer:
        with st.form("transfer", clear_on_submit=True):
            recipient = st.text_input("Recipient", placeholder="Hospital account")
            amount = st.text_input("Amount (KES)", placeholder="50,000", key="transfer_amount")
            note = st.text_area("Note (optional)", height=80, key="transfer_note")
            submitted = st.form_submit_button("💸 Record transfer", type="primary")
        if submitted:
            outcome = run_async(components.expenses.record_transfer(recipient, amount, note=note))
            if outcome.success:
                st.success("Transfer recorded.")
            else:
                st.error(outcome.error)

    st.markdown("---")
    expenses = run_async(components.expenses.list_expenses())
    st.markdown(f"**Total spent and transferred:** {format_kes(sum(e.amount for e in expenses))}")

    if not expenses:
        st.info("No expenses recorded yet.")
    for item in expenses:
        col_info, col_amount, col_delete = st.columns([5, 2, 1])
        with col_info:
            if is_transfer_record_title(item.title):
                label = f"💸 Transfer to {get_transfer_label_from_title(item.title)}"
            else:
                label = item.title
            st.markdown(f"**{html.escape(label)}**")
            st.caption(format_datetime(item.spent_at) + (f" · {item.note}" if item.note else ""))
        col_amount.markdown(f"**{format_kes(item.amount)}**")
        if col_delete.button("🗑️", key=f"delete-expense-{item.id}", help="Delete"):
            run_async(components.expenses.delete_expense(item.id))
            st.rerun()


# =============================================================================
# UPDATES
# =============================================================================

def render_updates_page(components: AppComponents):
    """Render the message generators."""
    st.title("📣 Updates")
    st.markdown("Generate a message, copy it and paste it into the family group.")

    col1, col2 = st.columns(2)

    with col1:
        st.markdown("### Contribution list")
        if st.button("Generate contribution update", type="primary"):
            st.session_state.last_update = run_async(components.updates.generate_update())
        update = st.session_state.get("last_update")
        if update:
            st.caption(
                f"{update.new_count} new contributions ({format_kes(update.new_amount)}) "
                f"since the previous update · total {format_kes(update.total_collected)}"
            )
            st.code(update.message, language=None)

    with col2:
        st.markdown("### Expenses list")
        if st.button("Generate expenses update"):
            st.session_state.last_expense_update = run_async(
                components.updates.generate_expense_update()
            )
        expense_update = st.session_state.get("last_expense_update")
        if expense_update:
            st.code(expense_update.generated_message, language=None)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Application", "app"),
        ("Statement parser", "statement"),
        ("Update messages", "whatsapp"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in sections:
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    settings = get_settings().app
    st.markdown(f"**Storage backend:** `{settings.storage_backend}`")
    if settings.admin_password == "changeme":
        box("warning", "⚠️ Default password", "Set ADMIN_PASSWORD before sharing this app.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
