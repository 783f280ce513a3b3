"""
XAI Lab - Streamlit UI

Camera/file/screen image classification and an interactive view of the
claims SHAP pipeline.

Run with:
    streamlit run src/xai_lab/ui.py
"""

import base64
import logging
from typing import Any

import pandas as pd
import streamlit as st

from xai_lab.config import get_settings
from xai_lab.data import simulate_claims
from xai_lab.explainability import dependence_plot, waterfall_plot
from xai_lab.main import JSONFormatter
from xai_lab.pipeline import run_pipeline
from xai_lab.vision import BytesSource, ImageClassifier, ScreenSource, format_predictions


def setup_logging():
    """Configure JSON logging for the UI."""
    logger = logging.getLogger("xai_lab.ui")
    logger.setLevel(logging.DEBUG)

    # Streamlit reruns the script; avoid stacking handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


logger = setup_logging()


def log_user_action(action: str, data: Any = None):
    """Log user actions in the UI."""
    logger.info(
        f"User Action: {action}",
        extra={
            "action": "user_action",
            "data": data,
        }
    )


# ============================================================================
# PAGE CONFIG
# ============================================================================

st.set_page_config(
    page_title="XAI Lab",
    page_icon="🔍",
    layout="wide",
    initial_sidebar_state="expanded",
)

settings = get_settings()


@st.cache_resource
def get_classifier(model_name: str, top_k: int) -> ImageClassifier:
    """Load the pre-trained network once per session."""
    return ImageClassifier(model_name, top_k).load()


@st.cache_resource
def get_pipeline_result(source: str, n_rows: int, n_explain: int, n_background: int, models: tuple[str, ...]):
    """Run the SHAP pipeline once per parameter combination."""
    df = simulate_claims(n_rows, seed=settings.split_seed) if source == "Simulated" else None
    run_settings = settings.model_copy(update={
        "n_explain": n_explain,
        "n_background": n_background,
    })
    return run_pipeline(
        df=df,
        settings=run_settings,
        model_names=list(models),
        make_plots=False,
        make_report=False,
    )


def show_plot(artifact) -> None:
    st.image(base64.b64decode(artifact.plot_base64), caption=artifact.title)


# ============================================================================
# SIDEBAR
# ============================================================================

with st.sidebar:
    st.title("XAI Lab")
    st.markdown("---")
    page = st.radio("Navigation", ["🖼️ Classify Image", "📊 SHAP Explorer"])


# ============================================================================
# IMAGE CLASSIFICATION
# ============================================================================

if page == "🖼️ Classify Image":
    st.title("🖼️ Image Classification")
    st.markdown("Top predictions of a pre-trained ImageNet network.")

    col1, col2 = st.columns(2)
    with col1:
        model_name = st.selectbox(
            "Network",
            ["resnet50", "mobilenet_v2", "efficientnet_b0"],
            index=["resnet50", "mobilenet_v2", "efficientnet_b0"].index(settings.image_model),
        )
    with col2:
        top_k = st.slider("Top classes", 1, 10, settings.top_k)

    input_method = st.radio("Input Method", ["Camera", "Upload File", "Screenshot"], horizontal=True)

    image = None
    if input_method == "Camera":
        snapshot = st.camera_input("Take a picture")
        if snapshot is not None:
            image = BytesSource(snapshot.getvalue()).capture()
    elif input_method == "Upload File":
        uploaded_file = st.file_uploader("Upload image", type=["jpg", "jpeg", "png"])
        if uploaded_file is not None:
            image = BytesSource(uploaded_file.getvalue()).capture()
    elif st.button("📸 Capture Screen", use_container_width=True):
        image = ScreenSource().capture()

    if image is not None:
        log_user_action("classify", {"source": input_method, "model": model_name})
        with st.spinner("Classifying..."):
            classifier = get_classifier(model_name, top_k)
            predictions = classifier.classify(image)

        col1, col2 = st.columns(2)
        with col1:
            st.image(image, caption="Input", use_container_width=True)
        with col2:
            st.subheader("Predictions")
            for pred in predictions:
                st.progress(min(max(pred.score, 0.0), 1.0), text=str(pred))
            st.code(format_predictions(predictions))


# ============================================================================
# SHAP EXPLORER
# ============================================================================

elif page == "📊 SHAP Explorer":
    st.title("📊 SHAP Explorer")
    st.markdown("Explain claim-frequency models with TreeSHAP and Kernel SHAP.")

    col1, col2, col3 = st.columns(3)
    with col1:
        source = st.radio("Data", ["Simulated", "OpenML"], horizontal=True)
        n_rows = st.number_input("Simulated rows", 1000, 200_000, 20_000, step=1000)
    with col2:
        n_explain = st.number_input("Rows to explain", 50, 5000, 200, step=50)
        n_background = st.number_input("Background rows", 20, 1000, 100, step=10)
    with col3:
        models = st.multiselect("Models", ["glm", "nn", "lgb"], default=["glm", "lgb"])

    if st.button("🚀 Run Pipeline", type="primary", use_container_width=True):
        log_user_action("run_pipeline", {"source": source, "models": models})
        st.session_state["pipeline_args"] = (source, int(n_rows), int(n_explain), int(n_background), tuple(models))

    if "pipeline_args" in st.session_state:
        with st.spinner("Training and explaining models..."):
            result = get_pipeline_result(*st.session_state["pipeline_args"])

        if result.glm_coefficients is not None:
            with st.expander("GLM coefficients"):
                st.dataframe(result.glm_coefficients.to_frame())

        st.subheader("Timings (seconds)")
        st.dataframe(pd.Series(result.timings, name="seconds").to_frame().T)

        model_name = st.selectbox("Model", list(result.attributions))
        attribution = result.attributions[model_name]

        st.subheader("Importance")
        st.dataframe(pd.DataFrame([fi.to_dict() for fi in attribution.importance()]))

        col1, col2 = st.columns(2)
        with col1:
            row = st.number_input("Row", 0, attribution.n_rows - 1, 0)
            show_plot(waterfall_plot(attribution, int(row)))
            st.info(attribution.row(int(row)).get_narrative())
        with col2:
            feature = st.selectbox("Dependence feature", attribution.feature_names)
            show_plot(dependence_plot(attribution, feature))
