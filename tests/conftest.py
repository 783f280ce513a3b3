"""
Shared test setup.
"""

import os
import tempfile

# Keep settings-created directories out of the working tree
_TMP = tempfile.mkdtemp(prefix="xai_lab_tests_")
os.environ.setdefault("XAI_DATA_DIR", os.path.join(_TMP, "data"))
os.environ.setdefault("XAI_OUTPUT_DIR", os.path.join(_TMP, "figures"))
os.environ.setdefault("XAI_REPORTS_DIR", os.path.join(_TMP, "reports"))
os.environ.setdefault("KERAS_BACKEND", "tensorflow")
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
