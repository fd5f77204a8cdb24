# app.py
# หน้าแรก: สรุปทุกพอร์ต + เพิ่ม/แก้ไข/ลบพอร์ต
import streamlit as st

import config
import portfolio_service as svc
from auth_ui import render_account_sidebar
from portfolio_calc import (
    portfolio_stats, stats_by_portfolio, sort_portfolios,
    format_thb, format_percent, format_allocation,
)

config.setup_logging()

st.set_page_config(page_title="Investing Portfolio", layout="wide")
st.title("Investing Portfolio")

# ---------------- Sidebar ----------------
user = render_account_sidebar()

# ---------------- Load ----------------
portfolios = svc.load_portfolios(user)
all_holdings = svc.load_holdings(user)
stats = stats_by_portfolio(portfolios, all_holdings)

# ---------------- Overall summary ----------------
overall = portfolio_stats(all_holdings)
c1, c2, c3, c4 = st.columns(4)
c1.metric("Market Value", format_thb(overall["total_value"]))
c2.metric("Total Cost", format_thb(overall["total_cost"]))
c3.metric("Gain / Loss", format_thb(overall["gain_loss"]),
          delta=format_percent(overall["gain_loss_percent"]) if overall["total_cost"] > 0 else None)
c4.metric("Return", format_percent(overall["gain_loss_percent"]))
st.caption(f"ทุกมูลค่าแสดงเป็นบาท (USD แปลงที่ {config.USD_THB_RATE:,.2f} THB/USD)")

# ---------------- Portfolio list ----------------
st.subheader("Portfolios")

if not portfolios:
    st.info("No portfolios yet. สร้างพอร์ตแรกได้จากฟอร์มด้านล่าง")
else:
    if len(portfolios) > 1:
        s1, s2 = st.columns([3, 1])
        sort_key = s1.selectbox(
            "Sort portfolios by", ["name", "amount", "returns"],
            format_func={"name": "Name", "amount": "Amount", "returns": "% Returns"}.get,
        )
        direction = s2.radio("Order", ["asc", "desc"], horizontal=True,
                             format_func={"asc": "Asc", "desc": "Desc"}.get)
    else:
        sort_key, direction = "name", "asc"

    for p in sort_portfolios(portfolios, stats, sort_key, direction):
        ps = stats[p["id"]]
        with st.container(border=True):
            left, right = st.columns([3, 2])
            count = ps["holdings_count"]
            left.markdown(f"**{p['name']}**  \n{count} {'holding' if count == 1 else 'holdings'}")
            lines = [f"**{format_thb(ps['total_value'])}**"]
            if count > 0:
                core = ps["type_breakdown"]["core"]["percent"]
                satellite = ps["type_breakdown"]["satellite"]["percent"]
                lines.append(f"Cost {format_thb(ps['total_cost'])} · "
                             f"{format_thb(ps['gain_loss'])} ({format_percent(ps['gain_loss_percent'])})")
                lines.append(f"Core {format_allocation(core)} · Satellite {format_allocation(satellite)}")
            right.markdown("  \n".join(lines))
            if left.button("Open", key=f"open_{p['id']}"):
                st.session_state["active_portfolio_id"] = p["id"]
                st.switch_page("pages/Portfolio_Holdings.py")

# ---------------- Add / Edit portfolio ----------------
st.subheader("จัดการพอร์ต")
tab_add, tab_edit = st.tabs(["Add Portfolio", "Edit Portfolio"])

with tab_add:
    with st.form("add_portfolio_form", clear_on_submit=True):
        name = st.text_input("Portfolio Name", placeholder="e.g. Retirement Fund")
        if st.form_submit_button("Add Portfolio"):
            try:
                created = svc.add_portfolio(user, name)
            except ValueError as e:
                st.error(str(e))
            else:
                if created is None:
                    st.error("บันทึกพอร์ตไม่สำเร็จ ลองใหม่อีกครั้ง")
                else:
                    st.rerun()

with tab_edit:
    if not portfolios:
        st.caption("ยังไม่มีพอร์ตให้แก้ไข")
    else:
        by_id = {p["id"]: p for p in portfolios}
        pid = st.selectbox("Portfolio", list(by_id), format_func=lambda i: by_id[i]["name"])
        with st.form("edit_portfolio_form"):
            new_name = st.text_input("Portfolio Name", value=by_id[pid]["name"], key=f"rename_{pid}")
            confirm_delete = st.checkbox(
                f'Delete "{by_id[pid]["name"]}". All holdings in this portfolio will also be deleted. '
                "This action cannot be undone."
            )
            save_col, delete_col = st.columns(2)
            save = save_col.form_submit_button("Save Changes")
            delete = delete_col.form_submit_button("Delete")
        if save:
            try:
                ok = svc.rename_portfolio(user, pid, new_name)
            except ValueError as e:
                st.error(str(e))
            else:
                if ok:
                    st.rerun()
                else:
                    st.error("แก้ไขพอร์ตไม่สำเร็จ")
        if delete:
            if not confirm_delete:
                st.warning("ติ๊กยืนยันก่อนลบพอร์ต")
            elif svc.remove_portfolio(user, pid):
                st.session_state.pop("active_portfolio_id", None)
                st.rerun()
            else:
                st.error("ลบพอร์ตไม่สำเร็จ")
