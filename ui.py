import html

import pandas as pd
import streamlit as st
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode, ColumnsAutoSizeMode

def setup_style():
    st.markdown("""
    <style>
        :root {
            --brand: #2F2F9D;
            --brand-dark: #1F1F77;
            --surface: #ffffff;
            --surface-soft: #f4f6f8;
            --text-main: #1f2937;
            --text-soft: #4b5563;
            --border: #dddddd;
        }

        .login-card {
            max-width: 24rem;
            margin: 4rem auto;
            padding: 2.5rem;
            border-radius: 1.5rem;
            background: var(--surface);
            box-shadow: 0 20px 40px rgba(15, 23, 42, 0.12);
            text-align: center;
        }
        .login-card h1 {
            font-size: 1.9rem;
            font-weight: 700;
            color: var(--text-main);
            margin-bottom: 1rem;
        }
        .login-card p { color: var(--text-soft); margin-bottom: 1.5rem; }
        .login-button {
            display: inline-block;
            background: var(--brand);
            color: #ffffff !important;
            font-weight: 700;
            padding: 0.75rem 1.5rem;
            border-radius: 9999px;
            text-decoration: none !important;
            transition: background 300ms ease;
        }
        .login-button:hover { background: var(--brand-dark); }

        .pagination-label {
            text-align: center;
            color: var(--text-soft);
            padding-top: 0.5rem;
        }
    </style>
    """, unsafe_allow_html=True)

def show_loading_overlay(message="Loading..."):
    st.markdown(
        f"""
        <div style="display:flex;justify-content:center;padding:3rem 0;color:var(--text-soft);">
          {html.escape(message)}
        </div>
        """,
        unsafe_allow_html=True
    )

def render_aggrid(df, height=400, theme="balham"):
    if df.empty:
        st.info("No records to display")
        return

    gb = GridOptionsBuilder.from_dataframe(df)
    # Filtering and paging happen before the grid; keep it a plain table.
    gb.configure_default_column(filterable=False, sortable=False, resizable=True, wrapText=True, autoHeight=True)

    for col in df.columns:
        is_num = pd.api.types.is_numeric_dtype(df[col])
        gb.configure_column(col, minWidth=80 if is_num else 150, flex=1 if is_num else 2)

    gb.configure_grid_options(wrapHeaderText=True, autoHeaderHeight=True)
    gridOptions = gb.build()

    valid_themes = ["streamlit", "alpine", "balham", "material"]
    safe_theme = theme if theme in valid_themes else "balham"

    AgGrid(
        df,
        gridOptions=gridOptions,
        height=height,
        theme=safe_theme,
        columns_auto_size_mode=ColumnsAutoSizeMode.FIT_CONTENTS,
        update_mode=GridUpdateMode.NO_UPDATE,
    )
