# pages/Portfolio_Holdings.py  (หน้า 2: รายการถือครองของพอร์ต)
import streamlit as st
import plotly.express as px

import config
import portfolio_service as svc
from auth_ui import render_account_sidebar
from market_data import cached_last_price
from portfolio_types import ASSET_TYPE_LABELS, INVESTMENT_TYPE_LABELS, CURRENCIES
from portfolio_calc import (
    portfolio_stats, holdings_frame, allocation_frame,
    format_thb, format_percent,
)

config.setup_logging()

st.set_page_config(page_title="Portfolio Holdings", layout="wide")

# --------- Sidebar ---------
user = render_account_sidebar()

portfolios = svc.load_portfolios(user)
if not portfolios:
    st.title("Portfolio Holdings")
    st.info("No portfolios yet. สร้างพอร์ตที่หน้า Summary ก่อน")
    st.page_link("app.py", label="Back to Portfolios")
    st.stop()

by_id = {p["id"]: p for p in portfolios}
active_id = st.session_state.get("active_portfolio_id")
if active_id is not None and active_id not in by_id:
    st.title("Portfolio Not Found")
    st.write("The portfolio you're looking for doesn't exist.")
    if st.button("Back to Portfolios"):
        st.session_state.pop("active_portfolio_id", None)
        st.switch_page("app.py")
    st.stop()

ids = list(by_id)
pf_id = st.sidebar.selectbox(
    "Portfolio", ids,
    index=ids.index(active_id) if active_id in by_id else 0,
    format_func=lambda i: by_id[i]["name"],
)
st.session_state["active_portfolio_id"] = pf_id
portfolio = by_id[pf_id]

holdings = svc.load_holdings(user, pf_id)
st.title(portfolio["name"])
st.caption(f"{len(holdings)} {'holding' if len(holdings) == 1 else 'holdings'}")

# --------- Hero metrics ---------
if holdings:
    snap = portfolio_stats(holdings)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Market Value", format_thb(snap["total_value"]))
    c2.metric("Total Cost", format_thb(snap["total_cost"]))
    c3.metric("Gain / Loss", format_thb(snap["gain_loss"]))
    c4.metric("Return", format_percent(snap["gain_loss_percent"]))
    st.caption(f"มูลค่ารวมแปลงเป็นบาท (USD @ {config.USD_THB_RATE:,.2f})")

    # --------- Allocation Pie + Holdings ---------
    st.subheader("🧩 สัดส่วนพอร์ต (Allocation) และรายการถือครอง (Holdings)")
    col1, col2 = st.columns([1, 2])
    with col1:
        alloc_by = st.radio("Group by", ["asset_type", "investment_type", "holding"], horizontal=True,
                            format_func={"asset_type": "Type", "investment_type": "Core/Satellite",
                                         "holding": "Holding"}.get)
        alloc_df = allocation_frame(holdings, by=alloc_by)
        if alloc_df.empty or alloc_df["MarketValue"].sum() == 0:
            st.info("ยังไม่มีมูลค่าตลาดสำหรับวาด Pie")
        else:
            fig_pie = px.pie(alloc_df, names="Group", values="MarketValue", title="Portfolio Allocation (THB)")
            st.plotly_chart(fig_pie, use_container_width=True)
    with col2:
        st.dataframe(
            holdings_frame(holdings),
            use_container_width=True,
            hide_index=True,
            column_config={
                "MarketValue": st.column_config.NumberColumn("Market Value (THB)", format="%.2f"),
                "GainLoss": st.column_config.NumberColumn("Gain/Loss (THB)", format="%.2f"),
                "Return": st.column_config.NumberColumn("Return", format="percent"),
                "Allocation": st.column_config.NumberColumn("Allocation", format="percent"),
            },
        )
else:
    st.info("This portfolio is empty. Add your first investment holding.")

# --------- Holding form ---------
def holding_form(key: str, holding: dict | None = None) -> tuple[dict, bool, bool]:
    """ฟอร์มกรอก holding; คืน (ข้อมูลที่กรอก, กดบันทึก, กดลบ)"""
    h = holding or {}
    asset_types = list(ASSET_TYPE_LABELS)
    inv_types = list(INVESTMENT_TYPE_LABELS)
    with st.form(key, clear_on_submit=holding is None):
        name = st.text_input("Name", value=h.get("name", ""), placeholder="e.g. Bangkok Bank",
                             key=f"{key}_name")
        ticker = st.text_input("Ticker (optional)", value=h.get("ticker") or "", placeholder="e.g. BBL",
                               key=f"{key}_ticker")
        a1, a2 = st.columns(2)
        asset_type = a1.selectbox("Asset Type", asset_types,
                                  index=asset_types.index(h.get("asset_type", "stock")),
                                  format_func=ASSET_TYPE_LABELS.get, key=f"{key}_asset")
        investment_type = a2.selectbox("Strategy", inv_types,
                                       index=inv_types.index(h.get("investment_type") or "core"),
                                       format_func=INVESTMENT_TYPE_LABELS.get, key=f"{key}_strategy")
        shares = st.number_input("Shares / Units", min_value=0.0, value=float(h.get("shares", 0.0)),
                                 step=1.0, format="%.4f", key=f"{key}_shares")
        p1, p2 = st.columns([3, 1])
        avg_cost = p1.number_input("Average Cost (per unit)", min_value=0.0,
                                   value=float(h.get("avg_cost", 0.0)), format="%.4f", key=f"{key}_avg")
        avg_cost_currency = p2.selectbox("Currency", CURRENCIES, key=f"{key}_avg_ccy",
                                         index=CURRENCIES.index(h.get("avg_cost_currency") or "THB"))
        q1, q2 = st.columns([3, 1])
        current_price = q1.number_input("Current Price (per unit)", min_value=0.0,
                                        value=float(h.get("current_price", 0.0)), format="%.4f", key=f"{key}_px")
        current_price_currency = q2.selectbox("Currency", CURRENCIES, key=f"{key}_px_ccy",
                                              index=CURRENCIES.index(h.get("current_price_currency") or "THB"))
        confirm_delete = False
        if holding is not None:
            confirm_delete = st.checkbox(f'Delete "{h["name"]}". This action cannot be undone.',
                                         key=f"{key}_confirm")
        b1, b2 = st.columns(2)
        saved = b1.form_submit_button("Save Changes" if holding else "Add Holding")
        deleted = bool(holding) and b2.form_submit_button("Delete")

    data = {
        "name": name,
        "ticker": ticker,
        "asset_type": asset_type,
        "investment_type": investment_type,
        "shares": shares,
        "avg_cost": avg_cost,
        "avg_cost_currency": avg_cost_currency,
        "current_price": current_price,
        "current_price_currency": current_price_currency,
    }
    return data, saved, deleted and confirm_delete

st.subheader("จัดการรายการถือครอง")
tab_add, tab_edit, tab_price = st.tabs(["Add Holding", "Edit Holding", "ดึงราคาล่าสุด"])

with tab_add:
    data, saved, _ = holding_form("add_holding_form")
    if saved:
        try:
            created = svc.add_holding(user, pf_id, data)
        except ValueError as e:
            st.error(str(e))
        else:
            if created is None:
                st.error("บันทึกไม่สำเร็จ ลองใหม่อีกครั้ง")
            else:
                st.rerun()

with tab_edit:
    if not holdings:
        st.caption("ยังไม่มีรายการให้แก้ไข")
    else:
        h_by_id = {h["id"]: h for h in holdings}
        hid = st.selectbox("Holding", list(h_by_id),
                           format_func=lambda i: h_by_id[i]["name"] + (f" ({h_by_id[i]['ticker']})"
                                                                       if h_by_id[i].get("ticker") else ""))
        data, saved, deleted = holding_form(f"edit_holding_form_{hid}", h_by_id[hid])
        if deleted:
            if svc.remove_holding(user, hid):
                st.rerun()
            else:
                st.error("ลบไม่สำเร็จ")
        elif saved:
            try:
                ok = svc.update_holding(user, hid, data)
            except ValueError as e:
                st.error(str(e))
            else:
                if ok:
                    st.rerun()
                else:
                    st.error("แก้ไขไม่สำเร็จ")

with tab_price:
    st.caption("ดึงราคาปิดล่าสุดจาก yfinance (หุ้นไทยเติม .BK ให้อัตโนมัติ) แล้วอัปเดต Current Price")
    priced = [h for h in holdings if h.get("ticker")]
    if not priced:
        st.caption("ยังไม่มีรายการที่ใส่ Ticker")
    elif st.button("Update prices"):
        updated = 0
        for h in priced:
            last = cached_last_price(h["ticker"], h.get("current_price_currency") or "THB")
            if last is None:
                st.warning(f"ไม่พบราคาของ {h['ticker']}")
                continue
            if svc.update_holding(user, h["id"], {"current_price": last}):
                updated += 1
        st.success(f"อัปเดตราคาแล้ว {updated} รายการ")
