import html

import streamlit as st

import auth
from utils import session_manager

def render_auth_screen(auth_error=None):
    if auth_error:
        st.error(auth_error)

    try:
        authorize_url = session_manager.begin_sign_in()
    except auth.AuthError as e:
        st.error(str(e))
        authorize_url = None

    # Same-tab navigation: the redirect back completes sign-in in bootstrap.
    button = (
        f'<a class="login-button" href="{html.escape(authorize_url)}" target="_self">Sign in with Microsoft</a>'
        if authorize_url
        else ""
    )
    st.markdown(
        f"""
        <div class="login-card">
          <h1>Sports Equipment Manager</h1>
          <p>Login with your Microsoft account to continue</p>
          {button}
        </div>
        """,
        unsafe_allow_html=True
    )
