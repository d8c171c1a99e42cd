# ============================================================================
# FILE: ui_components.py
# Reusable UI components
# ============================================================================

import io
from typing import List, Optional, Tuple

import pandas as pd
import streamlit as st

from config import Config, LogLevel
from data_services import DocumentWriter, LocalLibrary
from models import AnalysisResult, LibraryItem, PicoComparison, PicoRecord
from state_manager import SessionState

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class UIComponents:
    """Reusable UI components."""

    @staticmethod
    def render_sidebar() -> Tuple[List[LibraryItem], Optional[str]]:
        """Library loading, item selection and tool buttons. Returns the selection and the clicked action."""
        session = SessionState.session()
        action = None

        with st.sidebar:
            st.markdown(f"### {Config.PAGE_ICON} {Config.APP_TITLE}")

            library_file = st.file_uploader("Library export (JSON)", type=["json"])
            if library_file is not None and st.button("Load Library", use_container_width=True):
                target = Config.DATA_DIR / "library.json"
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(library_file.getvalue())
                try:
                    SessionState.reload(LocalLibrary.load(target))
                    SessionState.reset()
                    st.rerun()
                except ValueError as e:
                    st.error(f"Could not read library: {e}")

            pdf_files = st.file_uploader("Or add PDFs", type=["pdf"], accept_multiple_files=True)
            if pdf_files and st.button("Add PDFs", use_container_width=True):
                added = session.library.add_pdf_items(pdf_files, Config.DATA_DIR / "uploads")
                st.success(f"✅ {len(added)} files added")

            st.divider()

            items = session.library.items
            labels = {item.id: item.title or item.id for item in items}
            selected_ids = st.multiselect(
                "Selected items",
                options=list(labels),
                format_func=lambda item_id: labels[item_id],
                key="selected_ids",
            )
            st.caption(f"{len(selected_ids)} of {len(items)} items selected")

            if st.button("Analyze PICO Elements", use_container_width=True, type="primary"):
                action = "analyze"
            if st.button("Compare PICO Elements", use_container_width=True):
                action = "compare"
            if st.button("Generate Literature Review", use_container_width=True):
                action = "review"

            st.divider()
            col_settings, col_help = st.columns(2)
            if col_settings.button("Settings", use_container_width=True):
                action = "settings"
            if col_help.button("Help", use_container_width=True):
                action = "help"
            if st.button("Hide Sidebar", use_container_width=True):
                st.session_state.sidebar_open = False
                st.rerun()

        selected = [session.library.get(item_id) for item_id in selected_ids]
        return [item for item in selected if item is not None], action

    @staticmethod
    def log_level_index(value) -> int:
        """Position of a stored logLevel in the selectbox, matched case-insensitively. Unknown values select info."""
        levels = [level.value for level in LogLevel]
        value = str(value or "").lower()
        return levels.index(value) if value in levels else levels.index(LogLevel.INFO.value)

    @staticmethod
    @st.dialog("Settings")
    def settings_dialog():
        session = SessionState.session()
        config = session.config

        st.markdown("#### AI Settings")
        api_key = st.text_input("API Key", value=config.get("aiApiKey", ""), type="password")

        current_model = config.get("aiModel", Config.DEFAULT_MODEL)
        choices = Config.MODEL_CHOICES
        index = choices.index(current_model) if current_model in choices else choices.index("Custom")
        model_choice = st.selectbox("AI Model", choices, index=index)
        if model_choice == "Custom":
            model_choice = st.text_input("Model name", value=current_model if current_model not in choices else "")

        endpoint = st.text_input("API Endpoint", value=config.get("aiApiEndpoint", Config.DEFAULT_API_ENDPOINT))

        st.markdown("#### UI Settings")
        show_sidebar = st.checkbox("Show sidebar on startup", value=config.get("showSidebar", True))
        levels = [level.value for level in LogLevel]
        log_level = st.selectbox("Log level", levels, index=UIComponents.log_level_index(config.get("logLevel")))

        col_save, col_cancel = st.columns(2)
        if col_save.button("Save", type="primary", use_container_width=True):
            saved = session.config_provider.save({
                "aiApiKey": api_key,
                "aiModel": model_choice or Config.DEFAULT_MODEL,
                "aiApiEndpoint": endpoint,
                "showSidebar": show_sidebar,
                "logLevel": log_level,
            })
            if saved:
                SessionState.reload()
                st.rerun()
            else:
                st.error("Failed to save settings")
        if col_cancel.button("Cancel", use_container_width=True):
            st.rerun()

    @staticmethod
    def render_pico_card(pico: PicoRecord):
        cols = st.columns(4)
        cards = [
            ("Population", pico.population),
            ("Intervention", pico.intervention),
            ("Comparison", pico.comparison),
            ("Outcome", pico.outcome),
        ]
        for idx, (label, value) in enumerate(cards):
            display_text = value if value and value.strip() else "None specified"
            cols[idx].markdown(f"""
                <div class="pico-card">
                    <div class="pico-header">{label}</div>
                    <div class="pico-content">{display_text}</div>
                </div>
            """, unsafe_allow_html=True)

    @staticmethod
    def render_pico_results(results: List[AnalysisResult]):
        if not results:
            st.info("No PICO analyses yet. Select items and click Analyze PICO Elements.")
            return

        df = pd.DataFrame([r.to_dict() for r in results])
        st.dataframe(
            df,
            column_config={"Title": st.column_config.TextColumn(width="large")},
            hide_index=True,
            use_container_width=True,
        )
        for result in results:
            with st.expander(result.item.title or result.item.id):
                UIComponents.render_pico_card(result.pico_elements)

    @staticmethod
    def render_comparison(comparison: Optional[PicoComparison]):
        if comparison is None:
            st.info("Select at least two items and click Compare PICO Elements.")
            return

        for element in PicoRecord.FIELDS:
            st.markdown(f"##### {element.capitalize()}")
            common = comparison.similarities.get(element)
            st.caption(f"Common elements: {common if common else 'not computed'}")
            rows = comparison.differences.get(element, [])
            if rows:
                st.table(pd.DataFrame(rows).rename(columns={"itemTitle": "Item", "value": "Value"}))

    @staticmethod
    def render_review(review: str, filename: str = Config.DEFAULT_REVIEW_FILENAME):
        if not review:
            st.info("No literature review generated yet.")
            return

        with st.container(border=True):
            st.markdown(review)

        buffer = io.BytesIO()
        DocumentWriter.build_docx(review).save(buffer)
        st.download_button(
            label="Download DOCX",
            data=buffer.getvalue(),
            file_name=filename,
            mime=DOCX_MIME,
        )

    @staticmethod
    def render_template(template: dict):
        for section in template["sections"]:
            st.markdown(f"**{section['title']}**: {section.get('content', '')}")
            for sub in section.get("subsections", []):
                st.markdown(f"&nbsp;&nbsp;- *{sub['title']}*: {sub['content']}")

    @staticmethod
    def render_help():
        st.markdown("""
            **PicoZot** extracts PICO elements (Population, Intervention, Comparison, Outcome)
            from the abstract, notes and PDFs of the selected items, and writes a literature
            review from them.

            1. Load a library export or add PDFs in the sidebar.
            2. Select items and click **Analyze PICO Elements**. Each analysis is saved as a
               "PICO Analysis" note on the item.
            3. **Compare PICO Elements** lists each item's value per field.
            4. **Generate Literature Review** builds a review from the PICO elements and the
               citation metadata, optionally saved as a Word file.

            Set the API key and model under **Settings**.
        """)
