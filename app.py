import streamlit as st

from config import Config
from errors import PicoZotError
from models import ReviewOptions
from state_manager import SessionState
from ui_components import UIComponents


def main():
    """
    Main application entry point.
    Sidebar tools for PICO analysis, comparison and literature review generation.
    """
    st.set_page_config(
        page_title=Config.APP_TITLE,
        layout="wide",
        page_icon=Config.PAGE_ICON
    )
    # 1. Initialize session state FIRST so the session handle exists
    SessionState.initialize()
    session = SessionState.session()

    st.markdown("""
        <style>
        .stButton > button { border-radius: 10px; }
        .pico-card {
            background-color: #f8f9fa;
            padding: 15px;
            border-radius: 10px;
            border-left: 5px solid #007bff;
            min-height: 140px;
        }
        .pico-header { font-weight: bold; color: #007bff; margin-bottom: 8px; text-transform: uppercase; font-size: 0.85rem; }
        .pico-content { font-size: 0.95rem; line-height: 1.5; color: #333; }
        </style>
    """, unsafe_allow_html=True)

    # 2. Sidebar (or the button bringing it back)
    if st.session_state.sidebar_open:
        selected_items, action = UIComponents.render_sidebar()
    else:
        selected_items, action = [], None
        if st.button("Show PicoZot Sidebar"):
            st.session_state.sidebar_open = True
            st.rerun()

    if action == "settings":
        UIComponents.settings_dialog()
    elif action == "help":
        UIComponents.render_help()

    if not session.ai_service.is_ready:
        st.warning("⚠️ No API key configured. Open Settings to add one.")

    tab_pico, tab_compare, tab_review = st.tabs(["PICO Analysis", "Compare", "Literature Review"])

    # --- TAB 1: PICO ANALYSIS ---
    with tab_pico:
        if action == "analyze":
            if not selected_items:
                st.error("No items selected for analysis")
            else:
                with st.spinner(f"Analyzing {len(selected_items)} items..."):
                    results = session.pico_parser.analyze_pico(selected_items)
                st.session_state.analysis_results = results
                skipped = len(selected_items) - len(results)
                if skipped:
                    st.warning(f"{skipped} items were skipped (no content or extraction failed).")
                else:
                    st.success(f"✅ Analyzed {len(results)} items")

        UIComponents.render_pico_results(st.session_state.analysis_results)

    # --- TAB 2: COMPARISON ---
    with tab_compare:
        if action == "compare":
            if len(selected_items) < 2:
                st.error("Please select at least two items to compare")
            else:
                with st.spinner("Comparing PICO elements..."):
                    st.session_state.comparison = session.pico_parser.compare_pico_elements(selected_items)

        UIComponents.render_comparison(st.session_state.comparison)

    # --- TAB 3: LITERATURE REVIEW ---
    with tab_review:
        template_name = st.selectbox("Template", ["default", "systematic"])
        with st.expander("Template sections", expanded=False):
            UIComponents.render_template(session.review_service.get_review_template(template_name))

        col_opts, col_instr = st.columns([1, 2])
        with col_opts:
            combine_pico = st.checkbox("Combine PICO elements from all items", value=True)
            save_to_file = st.checkbox("Save review to file", value=False)
            filename = st.text_input("Filename", value=Config.DEFAULT_REVIEW_FILENAME)
        with col_instr:
            instructions = st.text_area("Additional instructions", height=150)

        if action == "review":
            if not selected_items:
                st.error("No items selected for review")
            else:
                options = ReviewOptions(
                    combine_pico=combine_pico,
                    save_to_file=save_to_file,
                    filename=filename,
                    additional_instructions=instructions,
                )
                try:
                    with st.spinner("Generating literature review..."):
                        review = session.review_service.generate_literature_review(selected_items, options)
                    st.session_state.review = session.review_service.format_review(review)
                    st.success("✅ Literature review generated")
                    if save_to_file:
                        st.caption(f"Saved copies are written to {session.document_writer.output_dir}")
                except PicoZotError as e:
                    st.error(f"Error: {e}")

        UIComponents.render_review(st.session_state.review, filename)


if __name__ == "__main__":
    main()
