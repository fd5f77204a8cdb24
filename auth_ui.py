# auth_ui.py
# Sidebar บัญชีผู้ใช้ (ใช้ร่วมกันทุกหน้า)
from typing import Optional

import streamlit as st

import config
import db_utils

SESSION_USER_KEY = "user"


def current_user() -> Optional[dict]:
    return st.session_state.get(SESSION_USER_KEY)


def render_account_sidebar() -> Optional[dict]:
    """
    แสดงส่วน Sign in / Sign up / Sign out ใน sidebar แล้วคืน user ปัจจุบัน
    ถ้าไม่ได้ตั้งค่าฐานข้อมูลไว้ → โหมด local อย่างเดียว คืน None เสมอ
    """
    if not config.is_backend_configured():
        st.sidebar.caption("Local mode: ข้อมูลเก็บในเครื่องนี้เท่านั้น")
        return None

    db_utils.init_db()
    user = current_user()
    st.sidebar.subheader("Account")

    if user:
        st.sidebar.write(user["email"])
        if st.sidebar.button("Sign Out"):
            st.session_state.pop(SESSION_USER_KEY, None)
            st.rerun()
        return user

    st.sidebar.caption("ยังไม่ได้ล็อกอิน: ข้อมูลเก็บในเครื่องนี้ (local)")
    tab_in, tab_up = st.sidebar.tabs(["Sign In", "Sign Up"])

    with tab_in:
        with st.form("sign_in_form"):
            email = st.text_input("Email", key="sign_in_email")
            password = st.text_input("Password", type="password", key="sign_in_password")
            if st.form_submit_button("Sign In"):
                try:
                    st.session_state[SESSION_USER_KEY] = db_utils.sign_in(email, password)
                except db_utils.AuthError as e:
                    st.error(str(e))
                else:
                    st.rerun()

    with tab_up:
        with st.form("sign_up_form", clear_on_submit=False):
            email = st.text_input("Email", key="sign_up_email")
            password = st.text_input("Password", type="password", key="sign_up_password")
            confirm = st.text_input("Confirm Password", type="password", key="sign_up_confirm")
            if st.form_submit_button("Create Account"):
                if password != confirm:
                    st.error("Passwords do not match.")
                else:
                    try:
                        db_utils.sign_up(email, password)
                    except db_utils.AuthError as e:
                        st.error(str(e))
                    else:
                        st.success("Account created! You can sign in now.")

    return None
