import html
import json
import logging
import math
from io import BytesIO

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components

logger = logging.getLogger(__name__)

EXPORT_FILE_NAME = "ExportedData.xlsx"
EXPORT_SHEET_NAME = "Data"

PRINT_TEMPLATE = """
<html>
<head>
  <title>Print Data</title>
  <style>
    table {{ border-collapse: collapse; width: 100%; }}
    th, td {{ border: 1px solid #ddd; padding: 8px; }}
    th {{ background: #f2f2f2; }}
  </style>
</head>
<body>
  <h2>Exported Data</h2>
  <table>
    <thead><tr>{header_cells}</tr></thead>
    <tbody>
      {body_rows}
    </tbody>
  </table>
</body>
</html>"""


def _cell_text(value):
    # Falsy cells (None, "", 0, NaN) print as blanks.
    if value is None or (isinstance(value, float) and math.isnan(value)) or not value:
        return ""
    return html.escape(str(value))


def convert_records_to_excel(records, columns):
    """xlsx bytes with one sheet of the filtered records, or None if writing failed."""
    output = BytesIO()
    try:
        df = pd.DataFrame.from_records(records, columns=list(columns))
        with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
            df.to_excel(writer, index=False, sheet_name=EXPORT_SHEET_NAME)
            workbook = writer.book
            worksheet = writer.sheets[EXPORT_SHEET_NAME]

            fmt_header = workbook.add_format({'bold': True, 'bg_color': '#F2F2F2', 'border': 1})
            for col_num, value in enumerate(df.columns.values):
                worksheet.write(0, col_num, value, fmt_header)
                worksheet.set_column(col_num, col_num, 20)
    except Exception as e:
        logger.exception("Excel export failed: %s", e)
        return None
    return output.getvalue()


def build_print_html(records, columns):
    header_cells = "".join(f"<th>{html.escape(str(c))}</th>" for c in columns)
    body_rows = "".join(
        "<tr>" + "".join(f"<td>{_cell_text(row.get(c))}</td>" for c in columns) + "</tr>"
        for row in records
    )
    return PRINT_TEMPLATE.format(header_cells=header_cells, body_rows=body_rows)


def render_export_actions(result):
    c1, c2 = st.columns(2)
    excel_data = convert_records_to_excel(result.all_matching, result.columns)
    with c1:
        if excel_data:
            st.download_button(
                label="Export to Excel",
                data=excel_data,
                file_name=EXPORT_FILE_NAME,
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True
            )
        else:
            st.error("Excel export failed")
    with c2:
        if st.button("Print", use_container_width=True):
            doc = build_print_html(result.all_matching, result.columns)
            # Opens the document in a print window from the component iframe.
            components.html(
                f"""
                <script>
                  const w = window.open("", "", "width=800,height=600");
                  w.document.write({_js_string(doc)});
                  w.document.close();
                  w.print();
                </script>
                """,
                height=0,
            )


def _js_string(text):
    return json.dumps(text).replace("</", "<\\/")
